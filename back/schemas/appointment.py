"""
상담 예약(Appointment) 스키마
"""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime, timezone
from typing import Optional
from models.appointment import DEFAULT_DURATION_MINUTES, MAX_NOTES_LENGTH
from models.enums import AppointmentStatus


def to_naive_utc(value: datetime) -> datetime:
    """타임존이 있는 시각은 UTC로 변환 후 tzinfo 제거 (DB에는 naive UTC로 저장)"""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class AppointmentCreate(BaseModel):
    """예약 생성 스키마"""
    counselor_id: int = Field(..., description="상담사 ID")
    scheduled_at: datetime = Field(..., description="상담 일시")
    duration_minutes: int = Field(default=DEFAULT_DURATION_MINUTES, gt=0, description="상담 시간(분)")
    notes: Optional[str] = Field(None, max_length=MAX_NOTES_LENGTH, description="메모")

    @field_validator("scheduled_at")
    @classmethod
    def normalize_scheduled_at(cls, value: datetime) -> datetime:
        return to_naive_utc(value)


class AppointmentUpdate(BaseModel):
    """예약 수정 스키마 (상태 / 메모)"""
    status: Optional[AppointmentStatus] = None
    notes: Optional[str] = Field(None, max_length=MAX_NOTES_LENGTH)


class AppointmentResponse(BaseModel):
    """예약 응답 스키마"""
    id: int
    client_id: int
    client_name: Optional[str] = None
    counselor_id: int
    counselor_name: Optional[str] = None
    scheduled_at: datetime
    duration_minutes: int
    status: AppointmentStatus
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AppointmentListResponse(BaseModel):
    """예약 목록 응답"""
    total: int
    appointments: list[AppointmentResponse]
