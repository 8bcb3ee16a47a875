"""
상담 예약 관리 API 라우터
"""

from datetime import datetime
from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from database import get_db
from models.appointment import Appointment
from models.enums import AppointmentStatus, Role
from models.user import User
from schemas.appointment import (
    AppointmentCreate,
    AppointmentUpdate,
    AppointmentResponse,
    AppointmentListResponse,
)
from appointment.rules import (
    Decision,
    DenyReason,
    authorize_access,
    authorize_deletion,
    authorize_status_change,
    can_book,
)
from auth.dependencies import get_current_active_user, require_roles
from config.dependencies import get_now
from config.exception import AppException, BadRequest, Conflict, Forbidden, NotFound
from logs.logging_util import LoggerSingleton

logger = LoggerSingleton.get_logger(logger_name="appointment")

router = APIRouter(prefix="/appointments", tags=["Appointments"])


def _to_response(appt: Appointment) -> AppointmentResponse:
    return AppointmentResponse(
        id=appt.id,
        client_id=appt.client_id,
        client_name=appt.client.name if appt.client else None,
        counselor_id=appt.counselor_id,
        counselor_name=appt.counselor.name if appt.counselor else None,
        scheduled_at=appt.scheduled_at,
        duration_minutes=appt.duration_minutes,
        status=appt.status,
        notes=appt.notes,
        created_at=appt.created_at,
        updated_at=appt.updated_at,
    )


def denial_to_exception(decision: Decision, message: str | None = None) -> AppException:
    """거부 판정을 HTTP 응답용 예외로 변환"""
    reason = decision.reason
    details = {"reason": reason.value}

    if reason == DenyReason.COUNSELOR_NOT_FOUND:
        return NotFound(message or "Counselor not found", code="COUNSELOR_NOT_FOUND", details=details)
    if reason == DenyReason.PAST_DATE:
        return BadRequest(message or "Appointment date must be in the future", code="PAST_DATE", details=details)
    if reason == DenyReason.CONFLICT:
        return Conflict(message or "Counselor is already booked at this time", code="SLOT_CONFLICT", details=details)
    if reason == DenyReason.PAST_APPOINTMENT:
        return BadRequest(message or "Cannot delete past appointments", code="PAST_APPOINTMENT", details=details)
    return Forbidden(message or "Not authorized to access this appointment", code="NOT_AUTHORIZED", details=details)


def _get_appointment_or_404(db: Session, appointment_id: int) -> Appointment:
    appt = db.query(Appointment).filter(Appointment.id == appointment_id).first()
    if not appt:
        raise NotFound("Appointment not found", code="APPOINTMENT_NOT_FOUND")
    return appt


@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(
    data: AppointmentCreate,
    current_user: User = Depends(require_roles(Role.CLIENT)),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """새 예약 생성 (내담자 전용)"""
    logger.info(
        f"Creating appointment: counselor_id={data.counselor_id}, scheduled_at={data.scheduled_at}, client_id={current_user.id}"
    )

    decision = can_book(db, data.counselor_id, data.scheduled_at, now)
    if not decision.allowed:
        logger.info(f"Booking rejected: reason={decision.reason.value}, counselor_id={data.counselor_id}")
        raise denial_to_exception(decision)

    appt = Appointment(
        client_id=current_user.id,
        counselor_id=data.counselor_id,
        scheduled_at=data.scheduled_at,
        duration_minutes=data.duration_minutes,
        status=AppointmentStatus.SCHEDULED,
        notes=data.notes,
    )
    db.add(appt)
    try:
        db.commit()
    except IntegrityError:
        # 조회 이후 같은 슬롯에 다른 예약이 먼저 들어간 경우 (유니크 인덱스)
        db.rollback()
        logger.warning(f"Booking lost slot race: counselor_id={data.counselor_id}, scheduled_at={data.scheduled_at}")
        raise denial_to_exception(Decision.deny(DenyReason.CONFLICT))
    db.refresh(appt)

    logger.info(f"Appointment created: id={appt.id}")
    return _to_response(appt)


@router.get("", response_model=AppointmentListResponse)
def get_appointments(
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
):
    """내 예약 목록 조회 (관리자는 전체)"""
    logger.info(f"Fetching appointments: user_id={current_user.id}, role={current_user.role.value}")

    query = db.query(Appointment)
    if current_user.role == Role.CLIENT:
        query = query.filter(Appointment.client_id == current_user.id)
    elif current_user.role == Role.COUNSELOR:
        query = query.filter(Appointment.counselor_id == current_user.id)

    appts = query.order_by(Appointment.scheduled_at, Appointment.id).all()

    return AppointmentListResponse(
        total=len(appts),
        appointments=[_to_response(a) for a in appts],
    )


@router.get("/{appointment_id}", response_model=AppointmentResponse)
def get_appointment(
    appointment_id: int,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
):
    """예약 상세 조회"""
    appt = _get_appointment_or_404(db, appointment_id)

    decision = authorize_access(current_user.role, current_user.id, appt)
    if not decision.allowed:
        logger.warning(f"Unauthorized appointment access: id={appointment_id}, user_id={current_user.id}")
        raise denial_to_exception(decision)

    return _to_response(appt)


@router.put("/{appointment_id}", response_model=AppointmentResponse)
def update_appointment(
    appointment_id: int,
    data: AppointmentUpdate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
):
    """예약 상태 / 메모 수정"""
    logger.info(f"Updating appointment: id={appointment_id}, user_id={current_user.id}")

    appt = _get_appointment_or_404(db, appointment_id)

    decision = authorize_access(current_user.role, current_user.id, appt)
    if not decision.allowed:
        raise denial_to_exception(decision, "Not authorized to update this appointment")

    if data.status is not None:
        decision = authorize_status_change(current_user.role, current_user.id, appt, data.status)
        if not decision.allowed:
            logger.warning(
                f"Status change denied: id={appointment_id}, role={current_user.role.value}, status={data.status.value}"
            )
            raise denial_to_exception(decision, f"Not authorized to update status to {data.status.value}")
        appt.status = data.status

    if data.notes is not None:
        appt.notes = data.notes

    try:
        db.commit()
    except IntegrityError:
        # 다른 scheduled 예약이 이미 있는 슬롯으로 되돌리는 경우
        db.rollback()
        raise denial_to_exception(Decision.deny(DenyReason.CONFLICT))
    db.refresh(appt)

    logger.info(f"Appointment updated: id={appt.id}, status={appt.status.value}")
    return _to_response(appt)


@router.delete("/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_appointment(
    appointment_id: int,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """예약 삭제 (예약한 내담자 또는 관리자, 예정된 예약만)"""
    logger.info(f"Deleting appointment: id={appointment_id}, user_id={current_user.id}")

    appt = _get_appointment_or_404(db, appointment_id)

    decision = authorize_deletion(current_user.role, current_user.id, appt, now)
    if not decision.allowed:
        logger.warning(f"Deletion denied: id={appointment_id}, reason={decision.reason.value}")
        if decision.reason == DenyReason.NOT_AUTHORIZED:
            raise denial_to_exception(decision, "Not authorized to delete this appointment")
        raise denial_to_exception(decision)

    db.delete(appt)
    db.commit()

    logger.info(f"Appointment deleted: id={appointment_id}")
