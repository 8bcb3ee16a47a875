"""
역할(Role) / 예약 상태(AppointmentStatus) 열거형
"""

from enum import Enum


class Role(str, Enum):
    """사용자 역할"""
    CLIENT = "client"
    COUNSELOR = "counselor"
    ADMIN = "admin"


class AppointmentStatus(str, Enum):
    """예약 상태 (최초 생성 시 항상 scheduled)"""
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"


def enum_values(enum_cls) -> list[str]:
    """SQLAlchemy Enum 컬럼에 이름 대신 값을 저장하기 위한 헬퍼"""
    return [member.value for member in enum_cls]
