"""
상담 예약(Appointment) 모델
"""

from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, Enum, Index, text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from database import Base
from models.enums import AppointmentStatus, enum_values

DEFAULT_DURATION_MINUTES = 60
MAX_NOTES_LENGTH = 500

_SCHEDULED_ONLY = text("status = 'scheduled'")


class Appointment(Base):
    """상담 예약 모델"""
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("users.id"), nullable=False)  # 예약한 내담자
    counselor_id = Column(Integer, ForeignKey("users.id"), nullable=False)  # 담당 상담사
    scheduled_at = Column(DateTime, nullable=False)  # 상담 일시 (UTC)
    duration_minutes = Column(Integer, nullable=False, default=DEFAULT_DURATION_MINUTES)
    status = Column(
        Enum(AppointmentStatus, native_enum=False, values_callable=enum_values, length=20),
        nullable=False,
        default=AppointmentStatus.SCHEDULED,
    )
    notes = Column(Text, nullable=True)  # 메모 (최대 500자)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # 관계
    client = relationship("User", foreign_keys=[client_id])
    counselor = relationship("User", foreign_keys=[counselor_id])

    __table_args__ = (
        Index("ix_appointments_client_scheduled", "client_id", "scheduled_at"),
        Index("ix_appointments_counselor_scheduled", "counselor_id", "scheduled_at"),
        # 상담사/시각 당 scheduled 예약은 하나만 (동시 예약 경쟁 방지)
        Index(
            "uq_appointments_counselor_slot_scheduled",
            "counselor_id",
            "scheduled_at",
            unique=True,
            sqlite_where=_SCHEDULED_ONLY,
            postgresql_where=_SCHEDULED_ONLY,
        ),
    )

    def __repr__(self):
        return f"<Appointment(id={self.id}, counselor_id={self.counselor_id}, scheduled_at={self.scheduled_at}, status={self.status})>"
