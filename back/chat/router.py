"""
채팅 REST API 라우터
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from database import get_db
from models.user import User
from schemas.message import (
    MessageCreate,
    MessageResponse,
    MessageListResponse,
    ConversationListResponse,
    MarkReadResponse,
)
from auth.dependencies import get_current_active_user
from chat import service
from chat.manager import ConnectionManager
from config.dependencies import get_chat_manager
from logs.logging_util import LoggerSingleton

logger = LoggerSingleton.get_logger(logger_name="chat")

router = APIRouter(prefix="/chat", tags=["Chat"])


@router.post("/send", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def send_message(
    data: MessageCreate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
    chat_manager: ConnectionManager = Depends(get_chat_manager),
):
    """메시지 전송 (수신자가 접속 중이면 소켓으로도 전달)"""
    logger.info(f"Sending message: sender_id={current_user.id}, receiver_id={data.receiver_id}")

    message = service.send_message(db, current_user.id, data.receiver_id, data.text)
    response = MessageResponse.model_validate(message)

    await chat_manager.emit_to(
        data.receiver_id,
        "new_message",
        {
            "message": response.model_dump(mode="json"),
            "sender": {"id": current_user.id, "name": current_user.name},
        },
    )

    logger.info(f"Message sent: id={message.id}")
    return response


@router.get("/conversations", response_model=ConversationListResponse)
def get_conversations(
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
):
    """대화 상대 목록 조회"""
    conversations = service.list_conversations(db, current_user.id)
    return ConversationListResponse(total=len(conversations), conversations=conversations)


@router.get("/{user_id}", response_model=MessageListResponse)
def get_conversation(
    user_id: int,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
):
    """특정 사용자와의 대화 조회 (상대가 보낸 메시지는 읽음 처리)"""
    logger.info(f"Fetching conversation: user_id={current_user.id}, other_id={user_id}")

    messages = service.get_conversation(db, current_user.id, user_id)
    return MessageListResponse(
        total=len(messages),
        messages=[MessageResponse.model_validate(m) for m in messages],
    )


@router.put("/{user_id}/read", response_model=MarkReadResponse)
def mark_as_read(
    user_id: int,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
):
    """특정 사용자가 보낸 메시지 모두 읽음 처리"""
    count = service.mark_conversation_read(db, current_user.id, user_id)
    logger.info(f"Marked {count} messages as read: reader_id={current_user.id}, sender_id={user_id}")
    return MarkReadResponse(count=count, message=f"{count} messages marked as read")
