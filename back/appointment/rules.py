"""
예약 가능 여부 판정 / 상태 변경 권한 판정

라우터에서 이미 조회한 데이터(상담사, 예약, 현재 시각)를 받아 허용/거부만 결정한다.
DB 쓰기나 예외 발생은 하지 않으며, 거부 사유는 Decision.reason으로 돌려준다.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy.orm import Session

from models.appointment import Appointment
from models.enums import AppointmentStatus, Role
from models.user import User


class DenyReason(str, Enum):
    """거부 사유"""
    NOT_AUTHORIZED = "notAuthorized"
    PAST_APPOINTMENT = "pastAppointment"
    PAST_DATE = "pastDate"
    CONFLICT = "conflict"
    COUNSELOR_NOT_FOUND = "counselorNotFound"


@dataclass(frozen=True)
class Decision:
    """판정 결과 (reason이 None이면 허용)"""
    reason: Optional[DenyReason] = None

    @property
    def allowed(self) -> bool:
        return self.reason is None

    @classmethod
    def allow(cls) -> "Decision":
        return cls()

    @classmethod
    def deny(cls, reason: DenyReason) -> "Decision":
        return cls(reason=reason)


# 역할별로 변경 가능한 상태 (모든 Role이 키로 있어야 함)
ALLOWED_STATUS_CHANGES: dict[Role, frozenset[AppointmentStatus]] = {
    Role.CLIENT: frozenset({AppointmentStatus.CANCELLED}),
    Role.COUNSELOR: frozenset({
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.RESCHEDULED,
    }),
    Role.ADMIN: frozenset(AppointmentStatus),
}


##### 예약 가능 여부 #####

def evaluate_booking(
    counselor: Optional[User],
    requested_time: datetime,
    slot_taken: bool,
    now: datetime,
) -> Decision:
    """이미 조회된 데이터로 예약 가능 여부를 판정

    Args:
        counselor: counselor 역할의 사용자 (없으면 None)
        requested_time: 요청한 상담 일시
        slot_taken: 같은 상담사/같은 시각에 scheduled 예약이 있는지
        now: 판정 기준 시각

    Returns:
        Decision: 허용 또는 counselorNotFound / pastDate / conflict
    """
    if counselor is None or counselor.role != Role.COUNSELOR:
        return Decision.deny(DenyReason.COUNSELOR_NOT_FOUND)

    if requested_time <= now:
        return Decision.deny(DenyReason.PAST_DATE)

    if slot_taken:
        return Decision.deny(DenyReason.CONFLICT)

    return Decision.allow()


def find_scheduled_in_slot(db: Session, counselor_id: int, requested_time: datetime) -> Optional[Appointment]:
    """같은 상담사/같은 시각의 scheduled 예약 조회"""
    return db.query(Appointment).filter(
        Appointment.counselor_id == counselor_id,
        Appointment.scheduled_at == requested_time,
        Appointment.status == AppointmentStatus.SCHEDULED,
    ).first()


def can_book(db: Session, counselor_id: int, requested_time: datetime, now: datetime) -> Decision:
    """상담사와 요청 시각으로 예약 가능 여부 판정 (조회만 수행)"""
    counselor = db.query(User).filter(
        User.id == counselor_id,
        User.role == Role.COUNSELOR,
        User.is_active.is_(True),
    ).first()

    # 상담사가 없거나 과거 시각이면 슬롯 조회는 생략
    slot_taken = False
    if counselor is not None and requested_time > now:
        slot_taken = find_scheduled_in_slot(db, counselor_id, requested_time) is not None

    return evaluate_booking(counselor, requested_time, slot_taken, now)


##### 상태 변경 / 접근 / 삭제 권한 #####

def is_participant(actor_role: Role, actor_id: int, appointment: Appointment) -> bool:
    return (
        actor_id == appointment.client_id
        or actor_id == appointment.counselor_id
        or actor_role == Role.ADMIN
    )


def authorize_access(actor_role: Role, actor_id: int, appointment: Appointment) -> Decision:
    """예약의 내담자/상담사/관리자만 허용 (조회 및 메모 수정)"""
    if not is_participant(actor_role, actor_id, appointment):
        return Decision.deny(DenyReason.NOT_AUTHORIZED)
    return Decision.allow()


def authorize_status_change(
    actor_role: Role,
    actor_id: int,
    appointment: Appointment,
    requested_status: AppointmentStatus,
) -> Decision:
    """상태 변경 권한 판정

    현재 상태에 대한 제약은 없다. 같은 상태로의 변경도 허용되고,
    completed/cancelled 이후의 변경도 막지 않는다.
    """
    access = authorize_access(actor_role, actor_id, appointment)
    if not access.allowed:
        return access

    if requested_status not in ALLOWED_STATUS_CHANGES.get(actor_role, frozenset()):
        return Decision.deny(DenyReason.NOT_AUTHORIZED)

    return Decision.allow()


def authorize_deletion(
    actor_role: Role,
    actor_id: int,
    appointment: Appointment,
    now: datetime,
) -> Decision:
    """삭제 권한 판정: 예약한 내담자 또는 관리자, 그리고 아직 지나지 않은 예약만"""
    is_owner = actor_role == Role.CLIENT and actor_id == appointment.client_id
    if not (is_owner or actor_role == Role.ADMIN):
        return Decision.deny(DenyReason.NOT_AUTHORIZED)

    if appointment.scheduled_at <= now:
        return Decision.deny(DenyReason.PAST_APPOINTMENT)

    return Decision.allow()
