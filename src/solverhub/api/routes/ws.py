"""WebSocket endpoint for live status events."""

import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from solverhub.notifications.events import StatusEvent

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """Register the connection with the hub and answer its messages."""
    hub = websocket.app.state.hub

    await websocket.accept()
    await hub.register(websocket)
    try:
        await hub.send(websocket, StatusEvent.connected())
        while True:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(frame.get("code", 1000))
            # binary frames are answered as unknown messages
            text = frame.get("text")
            message = None
            if text is not None:
                try:
                    message = json.loads(text)
                except ValueError:
                    message = None
            await hub.handle_message(websocket, message)
    except WebSocketDisconnect:
        logger.debug("WebSocket client disconnected")
    finally:
        await hub.unregister(websocket)
