"""
Real-time WebSocket endpoint.

Clients subscribe to "voting-updates" and "blog-updates" and receive
{"event": ..., "data": ...} frames.
"""

from fastapi import APIRouter, WebSocket

router = APIRouter()


@router.websocket("/ws")
async def realtime_updates(websocket: WebSocket) -> None:
    """Serve one client until it disconnects."""
    hub = websocket.app.state.notification_channel
    await hub.serve(websocket)
