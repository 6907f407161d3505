# routes.py -- REST + WebSocket endpoints for live dish viewer counts
# Shared state (tracker, hub) comes from app.state, set up in the app lifespan.

from __future__ import annotations

import json
import logging
import time
import uuid
from typing import Any

from fastapi import APIRouter, Depends, Request, WebSocket, WebSocketDisconnect

from ..hub import DishViewersHub
from ..viewers import ActiveDishViewers

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def get_viewers(request: Request) -> ActiveDishViewers:
    """FastAPI dependency: get the viewer tracker from app.state."""
    viewers = getattr(request.app.state, "viewers", None)
    if viewers is None:
        raise RuntimeError("Viewer tracker not initialized")
    return viewers


def _parse_frame(raw: str) -> tuple[str, uuid.UUID]:
    """Validate a client frame. Raises ValueError with a client-safe message."""
    try:
        msg = json.loads(raw)
    except json.JSONDecodeError:
        raise ValueError("Message is not valid JSON") from None
    if not isinstance(msg, dict):
        raise ValueError("Message must be a JSON object")
    action = msg.get("type")
    if action not in ("start_viewing", "stop_viewing"):
        raise ValueError(f"Unknown message type: {action!r}")
    try:
        dish_id = uuid.UUID(str(msg.get("dishId")))
    except ValueError:
        raise ValueError("dishId must be a UUID") from None
    return action, dish_id


@router.get("/health")
def health_check(request: Request) -> dict:
    """Health endpoint for Docker healthcheck and monitoring."""
    viewers = getattr(request.app.state, "viewers", None)
    start_time = getattr(request.app.state, "start_time", 0)
    result: dict[str, Any] = {
        "status": "ok",
        "uptime_s": round(time.time() - start_time, 1),
    }
    if viewers is None:
        result["status"] = "starting"
        return result
    result["tracked_dishes"] = len(viewers.snapshot())
    result["connections"] = viewers.connection_count()
    return result


@router.get("/dishes/{dish_id}/viewers")
def dish_viewers(dish_id: uuid.UUID, viewers: ActiveDishViewers = Depends(get_viewers)) -> dict:
    return {"dishId": str(dish_id), "viewerCount": viewers.viewer_count(dish_id)}


@router.websocket("/ws/dish-viewers")
async def dish_viewers_ws(websocket: WebSocket) -> None:
    """Live viewer counts. Clients send start_viewing / stop_viewing frames."""
    hub: DishViewersHub = websocket.app.state.hub
    connection_id = await hub.connections.connect(websocket)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            raw = message.get("text")
            try:
                if raw is None:
                    raise ValueError("Only text frames are supported")
                action, dish_id = _parse_frame(raw)
            except ValueError as e:
                await hub.connections.send(connection_id, {"type": "error", "message": str(e)})
                continue
            if action == "start_viewing":
                await hub.start_viewing_dish(connection_id, dish_id)
            else:
                await hub.stop_viewing_dish(connection_id, dish_id)
    except WebSocketDisconnect:
        log.debug("WebSocket %s closed by client", connection_id)
    finally:
        await hub.on_disconnected(connection_id)
