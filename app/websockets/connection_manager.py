"""
WebSocket Connection Manager
Fans out payment session outcomes to the clients watching each session
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Set

from fastapi import WebSocket


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class ConnectionManager:
    """Manages WebSocket connections keyed by payment session id."""

    def __init__(self):
        self.subscribers: Dict[str, Set[WebSocket]] = {}

    async def connect(self, websocket: WebSocket, session_id: str):
        """Accept new WebSocket connection for one payment session."""
        await websocket.accept()
        self.subscribers.setdefault(session_id, set()).add(websocket)

        await websocket.send_json(
            {
                "type": "connection_established",
                "message": "Watching payment session",
                "session_id": session_id,
                "timestamp": _timestamp(),
            }
        )

    def disconnect(self, websocket: WebSocket):
        """Remove WebSocket connection."""
        for session_id in list(self.subscribers):
            watchers = self.subscribers[session_id]
            watchers.discard(websocket)
            if not watchers:
                del self.subscribers[session_id]

    async def broadcast(self, event_type: str, data: dict):
        """Send event to every connection watching ``data['session_id']``."""
        message = {
            "type": event_type,
            "data": data,
            "timestamp": _timestamp(),
        }

        recipients = set(self.subscribers.get(data.get("session_id", ""), set()))
        disconnected: List[WebSocket] = []
        for connection in recipients:
            try:
                await connection.send_json(message)
            except Exception:
                disconnected.append(connection)
        for connection in disconnected:
            self.disconnect(connection)

    async def send_personal(self, websocket: WebSocket, event_type: str, data: dict):
        """Send message to specific connection."""
        try:
            await websocket.send_json(
                {
                    "type": event_type,
                    "data": data,
                    "timestamp": _timestamp(),
                }
            )
        except Exception:
            self.disconnect(websocket)


manager = ConnectionManager()
