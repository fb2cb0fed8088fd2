# backend/app/api/v1/websocket.py
"""
Realtime notification channel.

Protocol:
    client -> {"type": "auth", "userId": "...", "token": "..."}    (first frame)
    server -> {"type": "auth_success", "reconnect": {...}}  or error + close
    client -> {"type": "ping"}                              server -> {"type": "pong"}
    server -> {"type": "notification", "data": {...}}
"""
import asyncio
import json
import re
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_current_active_user
from app.core.config import settings
from app.core.constants import IDENTIFIER_PATTERN
from app.core.errors import AppError, AuthenticationRequired
from app.core.logging import logger
from app.core.security import JWTError, decode_token
from app.db.database import get_db
from app.db.repositories.user_repository import UserRepository

router = APIRouter()

_IDENTIFIER = re.compile(IDENTIFIER_PATTERN)


def reconnect_policy() -> Dict[str, Any]:
    """Exponential client backoff: base, 2x base, 4x base, ..."""
    attempts = settings.WS_RECONNECT_MAX_ATTEMPTS
    base = settings.WS_RECONNECT_BASE_DELAY_SECONDS
    return {
        "delays": [base * (2 ** attempt) for attempt in range(attempts)],
        "max_attempts": attempts,
    }


def _parse_frame(raw: str) -> Optional[Dict[str, Any]]:
    try:
        frame = json.loads(raw)
    except json.JSONDecodeError:
        return None
    return frame if isinstance(frame, dict) else None


def authenticate_frame(frame: Optional[Dict[str, Any]]) -> str:
    """User id from an auth frame; ValueError with the reason otherwise"""
    if frame is None or frame.get("type") != "auth":
        raise ValueError("First message must be an auth message")
    user_id = frame.get("userId")
    if not isinstance(user_id, str) or not _IDENTIFIER.match(user_id):
        raise ValueError("Invalid userId")

    token = frame.get("token")
    if not isinstance(token, str) or not token:
        raise ValueError("Missing token")
    try:
        payload = decode_token(token)
    except JWTError:
        raise ValueError("Invalid token")
    if payload.get("sub") != user_id:
        raise ValueError("Token does not match userId")
    return user_id


async def authorize_member(db: AsyncSession, user_id: str) -> None:
    """Same account checks as HTTP requests: active user, active organization"""
    user = await UserRepository(db).get(user_id)
    if user is None or not user.is_active:
        raise AuthenticationRequired("User not found or inactive")
    await get_current_active_user(user, db)


async def _reject(websocket: WebSocket, message: str) -> None:
    await websocket.send_json({"type": "error", "message": message})
    await websocket.close(code=status.WS_1008_POLICY_VIOLATION)


@router.websocket("/ws")
async def notifications_socket(websocket: WebSocket, db: AsyncSession = Depends(get_db)):
    """WebSocket endpoint for real-time notifications"""
    registry = websocket.app.state.connection_registry
    await websocket.accept()

    try:
        raw = await asyncio.wait_for(websocket.receive_text(), timeout=settings.WS_AUTH_TIMEOUT_SECONDS)
    except asyncio.TimeoutError:
        await _reject(websocket, "Authentication timed out")
        return
    except WebSocketDisconnect:
        return

    try:
        user_id = authenticate_frame(_parse_frame(raw))
        await authorize_member(db, user_id)
    except (ValueError, AppError) as e:
        logger.warning(f"Realtime authentication rejected: {e}")
        await _reject(websocket, str(e))
        return
    finally:
        # Release the connection before the long-lived receive loop
        await db.close()

    await registry.register(user_id, websocket)
    await websocket.send_json({"type": "auth_success", "reconnect": reconnect_policy()})

    try:
        while True:
            frame = _parse_frame(await websocket.receive_text())
            if frame is None:
                await websocket.send_json({"type": "error", "message": "Malformed message"})
            elif frame.get("type") == "ping":
                await websocket.send_json({"type": "pong"})
            else:
                await websocket.send_json({"type": "error", "message": f"Unknown message type: {frame.get('type')}"})
    except WebSocketDisconnect:
        pass
    finally:
        await registry.unregister(user_id, websocket)
