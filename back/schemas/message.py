"""
채팅 메시지 스키마
"""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from models.enums import Role
from models.message import MAX_MESSAGE_LENGTH


class MessageCreate(BaseModel):
    receiver_id: int
    text: str = Field(..., max_length=MAX_MESSAGE_LENGTH)

    @field_validator("text")
    @classmethod
    def strip_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Message text is required.")
        return value


class MessageResponse(BaseModel):
    id: int
    sender_id: int
    receiver_id: int
    text: str
    read: bool
    created_at: datetime

    class Config:
        from_attributes = True


class MessageListResponse(BaseModel):
    total: int
    messages: list[MessageResponse]


class ConversationItem(BaseModel):
    """대화 상대 목록 아이템"""
    id: int
    name: str
    role: Role
    unread_count: int = 0


class ConversationListResponse(BaseModel):
    total: int
    conversations: list[ConversationItem]


class MarkReadResponse(BaseModel):
    count: int
    message: str
