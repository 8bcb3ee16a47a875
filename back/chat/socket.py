"""
실시간 채팅 WebSocket 엔드포인트

클라이언트 프레임: {"event": "<이벤트명>", "data": {...}}
- authenticate {token}                  -> authenticated / auth_error
- send_message {receiver_id, text}      -> message_sent (+ 수신자에게 new_message) / message_error
- typing {receiver_id, is_typing}       -> 수신자에게 user_typing
- mark_read {message_ids}               -> 발신자들에게 messages_read / read_error
"""

import json
from typing import Optional

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from auth.security import user_id_from_token
from chat import service
from chat.manager import ConnectionManager, build_event
from config.dependencies import get_chat_manager
from config.exception import AppException
from database import get_db
from models.user import User
from schemas.message import MessageCreate, MessageResponse
from logs.logging_util import LoggerSingleton

logger = LoggerSingleton.get_logger(logger_name="chat_socket")

router = APIRouter(prefix="/chat", tags=["Chat"])


class ChatSession:
    """소켓 하나의 상태와 이벤트 처리"""

    def __init__(self, websocket: WebSocket, db: Session, manager: ConnectionManager):
        self.websocket = websocket
        self.db = db
        self.manager = manager
        self.user: Optional[User] = None

    async def reply(self, event: str, data: dict) -> None:
        await self.websocket.send_json(build_event(event, data))

    async def dispatch(self, frame: dict) -> None:
        if not isinstance(frame, dict):
            await self.reply("error", {"message": "Frame must be a JSON object"})
            return

        event = frame.get("event")
        data = frame.get("data") or {}
        if not isinstance(data, dict):
            await self.reply("error", {"message": "data must be a JSON object"})
            return

        handler = {
            "authenticate": self.on_authenticate,
            "send_message": self.on_send_message,
            "typing": self.on_typing,
            "mark_read": self.on_mark_read,
        }.get(event)

        if handler is None:
            await self.reply("error", {"message": f"Unknown event: {event}"})
            return
        await handler(data)

    async def on_authenticate(self, data: dict) -> None:
        user_id = user_id_from_token(str(data.get("token", "")))
        user = None
        if user_id is not None:
            user = self.db.query(User).filter(User.id == user_id).first()

        if user is None or not user.is_active:
            await self.reply("auth_error", {"message": "Authentication failed"})
            return

        # 재인증이면 이전 room에서 나감
        if self.user is not None:
            self.manager.leave(self.user.id, self.websocket)

        self.user = user
        self.manager.join(user.id, self.websocket)
        await self.reply("authenticated", {"user_id": user.id})
        logger.info(f"User authenticated on socket: user_id={user.id}")

    async def on_send_message(self, data: dict) -> None:
        if self.user is None:
            await self.reply("message_error", {"message": "Not authenticated"})
            return

        try:
            payload = MessageCreate.model_validate(data)
            message = service.send_message(self.db, self.user.id, payload.receiver_id, payload.text)
        except ValidationError as e:
            await self.reply("message_error", {"message": "Invalid message", "errors": e.errors(include_url=False, include_context=False)})
            return
        except AppException as e:
            await self.reply("message_error", {"message": e.message})
            return
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"Failed to store socket message: sender_id={self.user.id}")
            await self.reply("message_error", {"message": "Failed to send message"})
            return

        body = MessageResponse.model_validate(message).model_dump(mode="json")
        await self.manager.emit_to(
            payload.receiver_id,
            "new_message",
            {"message": body, "sender": {"id": self.user.id, "name": self.user.name}},
        )
        await self.reply("message_sent", {"success": True, "message_id": message.id})

    async def on_typing(self, data: dict) -> None:
        if self.user is None:
            return

        receiver_id = data.get("receiver_id")
        if not isinstance(receiver_id, int):
            return

        await self.manager.emit_to(
            receiver_id,
            "user_typing",
            {"user_id": self.user.id, "is_typing": bool(data.get("is_typing"))},
        )

    async def on_mark_read(self, data: dict) -> None:
        if self.user is None:
            await self.reply("read_error", {"message": "Not authenticated"})
            return

        message_ids = data.get("message_ids")
        if not isinstance(message_ids, list) or not all(isinstance(i, int) for i in message_ids):
            await self.reply("read_error", {"message": "message_ids must be a list of integers"})
            return

        sender_ids = service.mark_messages_read(self.db, self.user.id, message_ids)
        for sender_id in sender_ids:
            await self.manager.emit_to(
                sender_id,
                "messages_read",
                {"reader": self.user.id, "message_ids": message_ids},
            )

    def close(self) -> None:
        if self.user is not None:
            self.manager.leave(self.user.id, self.websocket)


@router.websocket("/ws")
async def chat_socket(
    websocket: WebSocket,
    db: Session = Depends(get_db),
    manager: ConnectionManager = Depends(get_chat_manager),
):
    await websocket.accept()
    logger.info("New socket connection")

    session = ChatSession(websocket, db, manager)
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                frame = json.loads(raw)
            except json.JSONDecodeError:
                await session.reply("error", {"message": "Invalid JSON frame"})
                continue
            await session.dispatch(frame)
    except WebSocketDisconnect:
        logger.info(f"Client disconnected: user_id={session.user.id if session.user else None}")
    finally:
        session.close()
