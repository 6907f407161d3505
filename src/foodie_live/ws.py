# ws.py -- WebSocket connection registry with broadcast groups
# In-memory, single-process only. Groups are plain names (one per dish).

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable

from fastapi import WebSocket
from starlette.websockets import WebSocketDisconnect

log = logging.getLogger(__name__)

_SEND_ERRORS = (WebSocketDisconnect, RuntimeError, ConnectionError)


class ConnectionManager:
    """Tracks live WebSockets by connection id and fans messages out to groups."""

    def __init__(self) -> None:
        self._connections: dict[str, WebSocket] = {}
        self._groups: dict[str, set[str]] = {}

    def __len__(self) -> int:
        return len(self._connections)

    async def connect(self, ws: WebSocket) -> str:
        await ws.accept()
        connection_id = uuid.uuid4().hex
        self._connections[connection_id] = ws
        log.debug("WebSocket %s connected (%d total)", connection_id, len(self._connections))
        return connection_id

    def disconnect(self, connection_id: str) -> None:
        self._connections.pop(connection_id, None)
        for group in list(self._groups):
            self.remove_from_group(connection_id, group)
        log.debug("WebSocket %s disconnected (%d total)", connection_id, len(self._connections))

    def add_to_group(self, connection_id: str, group: str) -> None:
        if connection_id not in self._connections:
            return
        self._groups.setdefault(group, set()).add(connection_id)

    def remove_from_group(self, connection_id: str, group: str) -> None:
        members = self._groups.get(group)
        if members is None:
            return
        members.discard(connection_id)
        if not members:
            del self._groups[group]

    def group_members(self, group: str) -> set[str]:
        return set(self._groups.get(group, ()))

    async def send(self, connection_id: str, data: dict) -> None:
        ws = self._connections.get(connection_id)
        if ws is not None:
            await ws.send_json(data)

    async def send_group(self, group: str, data: dict | Callable[[], dict]) -> int:
        """Send to every member of a group. Returns how many sends succeeded.

        ``data`` may be a zero-argument callable, called just before each send.
        """
        members = self._groups.get(group)
        if not members:
            return 0
        sent = 0
        dead: list[str] = []
        for connection_id in list(members):
            ws = self._connections.get(connection_id)
            if ws is None:
                dead.append(connection_id)
                continue
            try:
                await ws.send_json(data() if callable(data) else data)
                sent += 1
            except _SEND_ERRORS as e:
                log.warning("Send to %s failed, dropping from %s: %s", connection_id, group, e)
                dead.append(connection_id)
        for connection_id in dead:
            self.remove_from_group(connection_id, group)
        return sent
