# backend/routes/ws_routes.py
import asyncio
import logging
from functools import partial

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from backend.services.broadcast_hub import (
    BroadcastHub,
    Connection,
    get_hub,
    on_connect,
    on_disconnect,
    on_error,
    on_message,
)

router = APIRouter(tags=["Realtime"])

logger = logging.getLogger("ws_routes")


#--- live channel: document_update relay in, message/document_update events out ---#
@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket, hub: BroadcastHub = Depends(get_hub)):
    await websocket.accept()
    connection = Connection(websocket)
    handle = on_connect(hub, connection)
    # a failed write unregisters at once, without waiting for the reader
    writer = asyncio.create_task(connection.pump(on_failure=partial(on_error, hub)))
    logger.info(f"WebSocket client connected ({handle})")

    try:
        while True:
            raw = await websocket.receive_text()
            on_message(hub, connection, raw)
    except WebSocketDisconnect:
        logger.info(f"WebSocket client disconnected ({handle})")
    except Exception as e:
        on_error(hub, handle, e)
    finally:
        # unregister is idempotent; it also stops the writer
        on_disconnect(hub, handle)
        await writer
