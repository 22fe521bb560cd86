# services/notifier.py
import asyncio
import logging
from typing import Any, Set

from services.presence import ConnectionHandle, PresenceRegistry

logger = logging.getLogger(__name__)


class Notifier:
    """
    Доставка событий в живые соединения по принципу fire-and-forget.

    Нет очереди, нет повторов: если пользователь офлайн, событие
    отбрасывается. Ошибки транспорта логируются и не доходят до того,
    кто вызвал notify().
    """

    def __init__(self, registry: PresenceRegistry) -> None:
        self._registry = registry
        self._tasks: Set[asyncio.Task] = set()

    def notify(self, user_id: int, event: str, payload: Any) -> None:
        handle = self._registry.get(user_id)
        if handle is None:
            logger.debug("User %s is offline, dropping '%s'", user_id, event)
            return
        self._dispatch(handle, event, payload)

    def broadcast(self, event: str, payload: Any) -> None:
        for handle in self._registry.handles():
            self._dispatch(handle, event, payload)

    def _dispatch(self, handle: ConnectionHandle, event: str, payload: Any) -> None:
        task = asyncio.get_running_loop().create_task(self._deliver(handle, event, payload))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    @staticmethod
    async def _deliver(handle: ConnectionHandle, event: str, payload: Any) -> None:
        try:
            await handle.send_event(event, payload)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Failed to deliver '%s' to connection %s: %s", event, handle.id, exc
            )

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Дождаться всех отправок, которые уже в пути."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
