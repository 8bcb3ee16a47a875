"""
프로필 관리 API 라우터
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from database import get_db
from models.enums import Role
from models.user import User
from schemas.user import ProfileUpdate, UserResponse, CounselorResponse, CounselorListResponse
from auth.dependencies import get_current_active_user
from config.exception import NotFound
from logs.logging_util import LoggerSingleton

logger = LoggerSingleton.get_logger(logger_name="profile")

router = APIRouter(prefix="/profile", tags=["Profile"])


@router.get("", response_model=UserResponse)
def get_profile(current_user: User = Depends(get_current_active_user)):
    """내 프로필 조회"""
    return current_user


@router.put("", response_model=UserResponse)
def update_profile(
    profile_update: ProfileUpdate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
):
    """내 프로필 수정 (이름 / 소개 / 상담 분야)"""
    logger.info(f"Updating profile: user_id={current_user.id}")

    # 업데이트할 필드만 적용
    update_data = profile_update.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in update_data.items():
        setattr(current_user, field, value)

    db.commit()
    db.refresh(current_user)

    logger.info(f"Profile updated: user_id={current_user.id}, fields={sorted(update_data)}")
    return current_user


@router.get("/counselors", response_model=CounselorListResponse)
def get_counselors(db: Session = Depends(get_db)):
    """상담사 목록 조회 (공개)"""
    counselors = db.query(User).filter(
        User.role == Role.COUNSELOR,
        User.is_active.is_(True),
    ).order_by(User.name, User.id).all()

    return CounselorListResponse(
        total=len(counselors),
        counselors=[CounselorResponse.model_validate(c) for c in counselors],
    )


@router.get("/counselors/{counselor_id}", response_model=CounselorResponse)
def get_counselor(counselor_id: int, db: Session = Depends(get_db)):
    """상담사 상세 조회 (공개)"""
    counselor = db.query(User).filter(
        User.id == counselor_id,
        User.role == Role.COUNSELOR,
        User.is_active.is_(True),
    ).first()

    if not counselor:
        logger.info(f"Counselor not found: id={counselor_id}")
        raise NotFound("Counselor not found", code="COUNSELOR_NOT_FOUND")

    return counselor
