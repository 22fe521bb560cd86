# core/state.py
"""Процессные объекты реального времени: создаются на старте приложения и лежат в app.state."""
from fastapi import FastAPI, Request

from services.notifier import Notifier
from services.presence import PresenceRegistry


def init_realtime(app: FastAPI) -> None:
    registry = PresenceRegistry()
    app.state.presence = registry
    app.state.notifier = Notifier(registry)


async def shutdown_realtime(app: FastAPI) -> None:
    notifier: Notifier = app.state.notifier
    await notifier.drain()
    app.state.presence.clear()


def get_presence(request: Request) -> PresenceRegistry:
    return request.app.state.presence


def get_notifier(request: Request) -> Notifier:
    return request.app.state.notifier
