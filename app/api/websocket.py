"""
WebSocket API Endpoints
Real-time payment confirmation updates
"""
from __future__ import annotations

import json
from typing import Optional

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status

from app.core.exceptions import SessionNotFoundError
from app.core.security import token_fingerprint
from app.services.payment_session import registry
from app.websockets.connection_manager import manager

router = APIRouter()


@router.websocket("/ws/payments/{session_id}")
async def payment_session_updates(
    websocket: WebSocket,
    session_id: str,
    token: Optional[str] = Query(default=None),
):
    """
    WebSocket endpoint for one payment session.

    Browsers cannot set headers on the upgrade request, so the bearer token
    that opened the session is passed as a query parameter.

    Example:
      ws://localhost:8000/ws/payments/<session_id>?token=<access_token>
    """
    if not token:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    try:
        registry.get(session_id, token_fingerprint(token))
    except SessionNotFoundError:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await manager.connect(websocket, session_id)
    try:
        while True:
            data = await websocket.receive_text()
            try:
                message = json.loads(data)
                if message.get("type") == "ping":
                    await manager.send_personal(websocket, "pong", {"status": "alive"})
            except json.JSONDecodeError:
                continue
    except WebSocketDisconnect:
        manager.disconnect(websocket)
