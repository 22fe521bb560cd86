# services/presence.py
"""
Реестр присутствия: кто из пользователей сейчас онлайн и через какое
соединение ему можно отправить событие.

Один пользователь = одно соединение. Если пользователь открыл вторую
вкладку, события уходят только в последнюю зарегистрированную.
Реестр живёт только в памяти процесса и пуст после рестарта.
"""
import logging
import threading
from typing import Any, Dict, List, Optional, Protocol

logger = logging.getLogger(__name__)


class ConnectionHandle(Protocol):
    """То, во что можно отправить событие: обёртка над живым соединением."""

    id: str

    async def send_event(self, event: str, payload: Any) -> None:
        ...


class PresenceRegistry:

    def __init__(self) -> None:
        self._entries: Dict[int, ConnectionHandle] = {}
        # блокировка держится только на время операций со словарём, без await внутри
        self._lock = threading.Lock()

    def register(self, user_id: int, handle: ConnectionHandle) -> Optional[ConnectionHandle]:
        """Привязывает соединение к пользователю. Возвращает вытесненное соединение, если было."""
        with self._lock:
            previous = self._entries.get(user_id)
            self._entries[user_id] = handle
        if previous is not None and previous is not handle:
            logger.info("User %s re-registered: %s replaces %s", user_id, handle.id, previous.id)
        return previous

    def unregister(self, handle: ConnectionHandle) -> Optional[int]:
        """
        Удаляет запись, которая указывает на это соединение.
        Поиск по значению: при отключении известно только соединение.
        """
        with self._lock:
            for user_id, current in self._entries.items():
                if current is handle:
                    del self._entries[user_id]
                    return user_id
        return None

    def get(self, user_id: int) -> Optional[ConnectionHandle]:
        with self._lock:
            return self._entries.get(user_id)

    def snapshot(self) -> List[int]:
        with self._lock:
            return list(self._entries.keys())

    def handles(self) -> List[ConnectionHandle]:
        with self._lock:
            return list(self._entries.values())

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, user_id: int) -> bool:
        with self._lock:
            return user_id in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
