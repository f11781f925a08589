"""WebSocket endpoint for realtime chat."""

import json
import uuid
from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from app.dependencies import get_chat_service, get_coordinator, get_session_store
from app.services.chat_service import ChatService
from app.services.realtime_gateway import RealtimeGateway
from app.services.session_lifecycle import SessionLifecycleCoordinator
from app.services.session_store import SessionStore

logger = structlog.get_logger()

router = APIRouter(tags=["realtime"])


def parse_frame(raw: str) -> tuple[str, dict[str, Any]] | None:
    """Decode ``{"event": ..., "data": {...}}``; None when malformed."""
    try:
        frame = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(frame, dict) or not isinstance(frame.get("event"), str):
        return None
    data = frame.get("data") or {}
    if not isinstance(data, dict):
        return None
    return frame["event"], data


@router.websocket("/ws/chat")
async def chat_socket(
    websocket: WebSocket,
    store: Annotated[SessionStore, Depends(get_session_store)],
    chat_service: Annotated[ChatService, Depends(get_chat_service)],
    coordinator: Annotated[SessionLifecycleCoordinator, Depends(get_coordinator)],
) -> None:
    """Bridge one WebSocket connection to a RealtimeGateway."""
    await websocket.accept()
    connection_id = str(uuid.uuid4())

    async def emit(event: str, data: dict[str, Any]) -> None:
        await websocket.send_json({"event": event, "data": data})

    gateway = RealtimeGateway(
        emit=emit,
        store=store,
        chat_service=chat_service,
        coordinator=coordinator,
        connection_id=connection_id,
    )
    logger.info("User connected", connection_id=connection_id)

    try:
        await gateway.on_connect()
        while True:
            raw = await websocket.receive_text()
            frame = parse_frame(raw)
            if frame is None:
                await emit("error", {"message": "Malformed event frame"})
                continue
            await gateway.dispatch(*frame)
    except WebSocketDisconnect:
        logger.info("User disconnected", connection_id=connection_id)
    finally:
        await gateway.on_disconnect()
