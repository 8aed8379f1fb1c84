"""WebSocket router streaming auth state and notices."""

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from src.core.logger.logger import logger
from src.core.service.websocket.manager import state_message

router = APIRouter()


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """
    Push channel for the UI.

    Sends the current auth state on connect, then `state` messages whenever
    the session store changes and `notice` messages for every new notice.
    Incoming messages are ignored.
    """
    manager = websocket.app.state.ws_manager
    context = websocket.app.state.context

    await manager.connect(websocket, initial=state_message(context.store.state))

    try:
        while True:
            data = await websocket.receive_text()
            logger.debug(f"Received via WebSocket: {data}")

    except WebSocketDisconnect:
        manager.disconnect(websocket)
    except Exception as e:
        logger.error(f"WebSocket error: {e}")
        manager.disconnect(websocket)
