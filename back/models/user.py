"""
사용자(User) 모델 - 내담자 / 상담사 / 관리자
"""

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, JSON, Enum
from sqlalchemy.sql import func
from database import Base
from models.enums import Role, enum_values


class User(Base):
    """사용자 모델"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    role = Column(
        Enum(Role, native_enum=False, values_callable=enum_values, length=20),
        nullable=False,
        default=Role.CLIENT,
        index=True,
    )

    # 프로필 정보
    bio = Column(Text, nullable=True)  # 자기소개 (주로 상담사)
    specialties = Column(JSON, nullable=False, default=list)  # 상담 분야 목록

    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
