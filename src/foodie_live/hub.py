# hub.py -- Dish viewers hub
# Maps connection lifecycle events to tracker calls and pushes updated counts
# to everyone watching the affected dish.

from __future__ import annotations

import logging
from collections.abc import Callable, Hashable

from .viewers import ActiveDishViewers
from .ws import ConnectionManager

log = logging.getLogger(__name__)

VIEWER_COUNT_UPDATED = "ViewerCountUpdated"


def viewer_count_message(dish_id: Hashable, viewer_count: int) -> dict:
    return {"type": VIEWER_COUNT_UPDATED, "dishId": str(dish_id), "viewerCount": viewer_count}


class DishViewersHub:
    def __init__(self, viewers: ActiveDishViewers, connections: ConnectionManager) -> None:
        self.viewers = viewers
        self.connections = connections

    def _current_count(self, dish_id: Hashable) -> Callable[[], dict]:
        # Payload is rebuilt per recipient from the live count
        return lambda: viewer_count_message(dish_id, self.viewers.viewer_count(dish_id))

    async def start_viewing_dish(self, connection_id: str, dish_id: Hashable) -> int:
        """Start viewing a dish and notify every viewer of it, the caller included."""
        try:
            count = self.viewers.start_viewing(dish_id, connection_id)
            group = str(dish_id)
            self.connections.add_to_group(connection_id, group)
            await self.connections.send_group(group, self._current_count(dish_id))
        except Exception:
            log.exception("Error starting to view dish %s (connection %s)", dish_id, connection_id)
            raise
        log.info("Connection %s started viewing dish %s (%d viewers)", connection_id, dish_id, count)
        return count

    async def stop_viewing_dish(self, connection_id: str, dish_id: Hashable) -> int:
        group = str(dish_id)
        was_viewing, count = self.viewers.leave(dish_id, connection_id)
        self.connections.remove_from_group(connection_id, group)
        if was_viewing:
            await self.connections.send_group(group, self._current_count(dish_id))
            log.info(
                "Connection %s stopped viewing dish %s (%d viewers)", connection_id, dish_id, count
            )
        return count

    async def on_disconnected(self, connection_id: str) -> None:
        """Purge a closed connection everywhere. Safe to call for any connection id."""
        try:
            affected = self.viewers.remove_connection_from_all(connection_id)
        except Exception:
            log.exception("Error removing connection %s from tracked dishes", connection_id)
            affected = []

        for dish_id, count in affected:
            group = str(dish_id)
            try:
                self.connections.remove_from_group(connection_id, group)
                await self.connections.send_group(group, self._current_count(dish_id))
            except Exception:
                log.exception("Error notifying dish %s after %s disconnected", dish_id, connection_id)
                continue
            log.info(
                "Connection %s disconnected from dish %s (%d viewers left)",
                connection_id,
                dish_id,
                count,
            )

        self.connections.disconnect(connection_id)
