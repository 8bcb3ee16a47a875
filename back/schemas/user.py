"""
User / 프로필 관련 Pydantic 스키마
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime
from models.enums import Role


class UserBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr


class UserCreate(UserBase):
    password: str = Field(..., min_length=8, max_length=100)
    role: Role = Field(default=Role.CLIENT, description="client 또는 counselor")

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Name is required.")
        return value

    @field_validator("role")
    @classmethod
    def reject_admin(cls, value: Role) -> Role:
        # 관리자 계정은 회원가입으로 만들 수 없음
        if value == Role.ADMIN:
            raise ValueError("Admin accounts cannot be self-registered.")
        return value


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserResponse(UserBase):
    id: int
    role: Role
    bio: Optional[str] = None
    specialties: list[str] = []
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProfileUpdate(BaseModel):
    """프로필 수정 스키마 (모든 필드 선택적)"""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    bio: Optional[str] = Field(None, max_length=1000)
    specialties: Optional[list[str]] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("Name is required.")
        return value


class CounselorResponse(BaseModel):
    """상담사 공개 프로필 (이메일 제외)"""
    id: int
    name: str
    role: Role
    bio: Optional[str] = None
    specialties: list[str] = []

    class Config:
        from_attributes = True


class CounselorListResponse(BaseModel):
    total: int
    counselors: list[CounselorResponse]


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"

