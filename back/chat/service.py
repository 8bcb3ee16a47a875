"""
채팅 메시지 저장/조회 로직 (REST 라우터와 소켓에서 공용)
"""

from sqlalchemy import or_, and_, func
from sqlalchemy.orm import Session
from models.message import Message
from models.user import User
from schemas.message import ConversationItem
from config.exception import NotFound


def send_message(db: Session, sender_id: int, receiver_id: int, text: str) -> Message:
    """수신자 확인 후 메시지 저장"""
    receiver = db.query(User).filter(User.id == receiver_id).first()
    if not receiver:
        raise NotFound("Receiver not found", code="RECEIVER_NOT_FOUND")

    message = Message(sender_id=sender_id, receiver_id=receiver_id, text=text, read=False)
    db.add(message)
    db.commit()
    db.refresh(message)
    return message


def _unread_from(db: Session, sender_id: int, reader_id: int):
    return db.query(Message).filter(
        Message.sender_id == sender_id,
        Message.receiver_id == reader_id,
        Message.read.is_(False),
    )


def mark_conversation_read(db: Session, reader_id: int, sender_id: int) -> int:
    """sender가 reader에게 보낸 안 읽은 메시지를 모두 읽음 처리"""
    count = _unread_from(db, sender_id, reader_id).update({Message.read: True}, synchronize_session=False)
    db.commit()
    return count


def get_conversation(db: Session, user_id: int, other_id: int) -> list[Message]:
    """두 사용자 간 메시지 (오래된 순), 조회 후 상대방이 보낸 메시지는 읽음 처리"""
    other = db.query(User).filter(User.id == other_id).first()
    if not other:
        raise NotFound("User not found", code="USER_NOT_FOUND")

    messages = db.query(Message).filter(
        or_(
            and_(Message.sender_id == user_id, Message.receiver_id == other_id),
            and_(Message.sender_id == other_id, Message.receiver_id == user_id),
        )
    ).order_by(Message.created_at, Message.id).all()

    # 응답에는 조회 시점의 읽음 상태를 그대로 담는다
    for message in messages:
        db.expunge(message)

    mark_conversation_read(db, user_id, other_id)
    return messages


def list_conversations(db: Session, user_id: int) -> list[ConversationItem]:
    """메시지를 주고받은 상대 목록 + 상대별 안 읽은 메시지 수"""
    sent_to = db.query(Message.receiver_id).filter(Message.sender_id == user_id).distinct()
    received_from = db.query(Message.sender_id).filter(Message.receiver_id == user_id).distinct()
    partner_ids = {row[0] for row in sent_to} | {row[0] for row in received_from}
    if not partner_ids:
        return []

    unread_counts = dict(
        db.query(Message.sender_id, func.count(Message.id))
        .filter(
            Message.receiver_id == user_id,
            Message.read.is_(False),
            Message.sender_id.in_(partner_ids),
        )
        .group_by(Message.sender_id)
        .all()
    )

    partners = db.query(User).filter(User.id.in_(partner_ids)).order_by(User.name, User.id).all()
    return [
        ConversationItem(
            id=partner.id,
            name=partner.name,
            role=partner.role,
            unread_count=unread_counts.get(partner.id, 0),
        )
        for partner in partners
    ]


def mark_messages_read(db: Session, reader_id: int, message_ids: list[int]) -> list[int]:
    """reader에게 온 지정 메시지들을 읽음 처리하고, 알림을 보낼 발신자 ID 목록 반환"""
    if not message_ids:
        return []

    messages = db.query(Message).filter(
        Message.id.in_(message_ids),
        Message.receiver_id == reader_id,
    ).all()
    for message in messages:
        message.read = True
    db.commit()

    return sorted({message.sender_id for message in messages})
