"""
Real-time notification channel.

Clients connect over a WebSocket and subscribe to rooms:
- "voting-updates": voteUpdate events
- "blog-updates": postView, postShare and newComment events

Server frames are JSON objects {"event": <name>, "data": <payload>}.
Delivery is best-effort and at-least-once at most: a socket that fails a
send is dropped, and a publish never raises to its caller.
"""

import asyncio
from typing import Any, Optional, Protocol
from uuid import uuid4

import structlog
from fastapi import WebSocket, WebSocketDisconnect

logger = structlog.get_logger(__name__)

VOTING_ROOM = "voting-updates"
BLOG_ROOM = "blog-updates"

MAX_ROOM_NAME_LENGTH = 100


class NotificationChannel(Protocol):
    """Publish/subscribe transport to connected clients."""

    async def publish(self, event: str, data: Any, room: Optional[str] = None) -> None:
        """Send an event to every subscriber of a room (or to everyone when room is None)."""
        ...


class WebSocketHub:
    """
    Room-scoped WebSocket fan-out.

    Holds every open connection of this process. With several server
    processes each one fans out to its own clients only.
    """

    def __init__(self) -> None:
        self._connections: dict[str, WebSocket] = {}
        self._rooms: dict[str, set[str]] = {}

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def room_members(self, room: str) -> set[str]:
        """IDs of the connections subscribed to a room."""
        return set(self._rooms.get(room, set()))

    async def connect(self, websocket: WebSocket) -> str:
        """Accept a WebSocket and register it."""
        await websocket.accept()
        connection_id = str(uuid4())
        self._connections[connection_id] = websocket
        logger.info("websocket_connected", connection_id=connection_id)
        return connection_id

    def disconnect(self, connection_id: str) -> None:
        """Forget a connection and remove it from every room."""
        self._connections.pop(connection_id, None)
        for room in list(self._rooms):
            members = self._rooms[room]
            members.discard(connection_id)
            if not members:
                del self._rooms[room]
        logger.info("websocket_disconnected", connection_id=connection_id)

    def join(self, connection_id: str, room: str) -> None:
        """Subscribe a connection to a room."""
        if connection_id not in self._connections:
            return
        self._rooms.setdefault(room, set()).add(connection_id)
        logger.info("websocket_joined_room", connection_id=connection_id, room=room)

    def leave(self, connection_id: str, room: str) -> None:
        """Unsubscribe a connection from a room."""
        members = self._rooms.get(room)
        if members is None:
            return
        members.discard(connection_id)
        if not members:
            del self._rooms[room]

    async def publish(self, event: str, data: Any, room: Optional[str] = None) -> None:
        """Send an event to a room, or to every connection when room is None."""
        if room is None:
            targets = list(self._connections)
        else:
            targets = list(self._rooms.get(room, set()))

        if not targets:
            return

        message = {"event": event, "data": data}
        results = await asyncio.gather(
            *(self._send(connection_id, message) for connection_id in targets),
            return_exceptions=True,
        )

        failed = [cid for cid, ok in zip(targets, results) if ok is not True]
        for connection_id in failed:
            self.disconnect(connection_id)

        if failed:
            logger.warning("websocket_send_failed", broadcast_event=event, room=room, dropped=len(failed))

    async def _send(self, connection_id: str, message: dict) -> bool:
        websocket = self._connections.get(connection_id)
        if websocket is None:
            return False
        await websocket.send_json(message)
        return True

    async def serve(self, websocket: WebSocket) -> None:
        """
        Run one client connection until it closes.

        Client messages are JSON objects with an "action":
        - {"action": "subscribe-voting"}
        - {"action": "subscribe-blog"}
        - {"action": "join-room", "room": "<name>"}
        - {"action": "leave-room", "room": "<name>"}
        """
        connection_id = await self.connect(websocket)
        try:
            while True:
                message = await websocket.receive_json()
                await self._handle_message(connection_id, websocket, message)
        except WebSocketDisconnect:
            pass
        except ValueError:
            # Malformed JSON frame
            logger.warning("websocket_bad_frame", connection_id=connection_id)
        finally:
            self.disconnect(connection_id)

    async def _handle_message(self, connection_id: str, websocket: WebSocket, message: Any) -> None:
        if not isinstance(message, dict):
            await websocket.send_json({"event": "error", "data": {"message": "Expected a JSON object"}})
            return

        action = message.get("action")
        room = message.get("room")

        if action == "subscribe-voting":
            room = VOTING_ROOM
        elif action == "subscribe-blog":
            room = BLOG_ROOM
        elif action in ("join-room", "leave-room"):
            if not isinstance(room, str) or not room or len(room) > MAX_ROOM_NAME_LENGTH:
                await websocket.send_json({"event": "error", "data": {"message": "Invalid room"}})
                return
        else:
            await websocket.send_json({"event": "error", "data": {"message": f"Unknown action: {action}"}})
            return

        if action == "leave-room":
            self.leave(connection_id, room)
            await websocket.send_json({"event": "left", "data": {"room": room}})
        else:
            self.join(connection_id, room)
            await websocket.send_json({"event": "subscribed", "data": {"room": room}})


class Broadcaster:
    """
    Fire-and-forget publishing on a notification channel.

    Failures are logged and swallowed; they never affect the outcome of the
    operation that produced the event.
    """

    def __init__(self, channel: Optional[NotificationChannel]):
        self.channel = channel

    async def publish(self, event: str, data: Any, room: Optional[str] = None) -> bool:
        """Publish an event. Returns False if it could not be handed to the channel."""
        if self.channel is None:
            return False
        try:
            await self.channel.publish(event, data, room=room)
            return True
        except Exception as e:
            logger.error(
                "broadcast_failed",
                broadcast_event=event,
                room=room,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False
