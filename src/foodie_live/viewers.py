# viewers.py -- Live dish-viewer presence tracking
# In-memory dish -> connection-id sets. Single process, rebuilt empty on restart.

from __future__ import annotations

import logging
import threading
from collections.abc import Hashable

log = logging.getLogger(__name__)


def _require_dish(dish_id: Hashable | None) -> None:
    if dish_id is None:
        raise ValueError("dish_id is required")


def _require_connection(connection_id: str | None) -> None:
    if not connection_id:
        raise ValueError("connection_id is required")


class ActiveDishViewers:
    """Tracks which connections are currently viewing which dishes.

    Every public method runs under one lock, so callers on any thread or event
    loop only ever see whole updates. Counts per dish are independent; there is
    no cross-dish ordering.
    """

    def __init__(self, *, prune_empty: bool = True) -> None:
        self._viewers: dict[Hashable, set[str]] = {}
        self._lock = threading.Lock()
        self._prune_empty = prune_empty

    def start_viewing(self, dish_id: Hashable, connection_id: str) -> int:
        """Register a viewer. Idempotent per (dish, connection). Returns the new count."""
        _require_dish(dish_id)
        _require_connection(connection_id)
        with self._lock:
            viewers = self._viewers.setdefault(dish_id, set())
            viewers.add(connection_id)
            count = len(viewers)
        log.debug("start_viewing dish=%s conn=%s -> %d", dish_id, connection_id, count)
        return count

    def stop_viewing(self, dish_id: Hashable, connection_id: str) -> int:
        """Unregister a viewer if present. Returns the new count."""
        return self.leave(dish_id, connection_id)[1]

    def leave(self, dish_id: Hashable, connection_id: str) -> tuple[bool, int]:
        """Like stop_viewing, but also reports whether the connection was a viewer."""
        _require_dish(dish_id)
        _require_connection(connection_id)
        with self._lock:
            viewers = self._viewers.get(dish_id)
            if viewers is None:
                return False, 0
            removed = connection_id in viewers
            viewers.discard(connection_id)
            count = len(viewers)
            if not viewers and self._prune_empty:
                del self._viewers[dish_id]
        return removed, count

    def remove_connection_from_all(self, connection_id: str) -> list[tuple[Hashable, int]]:
        """Drop a connection from every dish it was viewing.

        Returns one ``(dish_id, new_count)`` pair per dish the connection was
        actually removed from, in no particular order. Empty if it was viewing
        nothing.
        """
        _require_connection(connection_id)
        affected: list[tuple[Hashable, int]] = []
        with self._lock:
            for dish_id, viewers in list(self._viewers.items()):
                if connection_id not in viewers:
                    continue
                viewers.remove(connection_id)
                affected.append((dish_id, len(viewers)))
                if not viewers and self._prune_empty:
                    del self._viewers[dish_id]
        if affected:
            log.debug("Removed conn=%s from %d dish(es)", connection_id, len(affected))
        return affected

    def viewer_count(self, dish_id: Hashable) -> int:
        _require_dish(dish_id)
        with self._lock:
            return len(self._viewers.get(dish_id, ()))

    def snapshot(self) -> dict[Hashable, int]:
        """Point-in-time copy of every tracked dish's count."""
        with self._lock:
            return {dish_id: len(viewers) for dish_id, viewers in self._viewers.items()}

    def connection_count(self) -> int:
        """Distinct connections viewing at least one dish."""
        with self._lock:
            seen: set[str] = set()
            for viewers in self._viewers.values():
                seen.update(viewers)
            return len(seen)
