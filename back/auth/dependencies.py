"""
인증 관련 의존성 주입
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from database import get_db
from models.enums import Role
from models.user import User
from auth.security import decode_access_token
from config.exception import Forbidden

# Bearer 토큰 스키마
security = HTTPBearer()


def _credentials_error(detail: str = "Invalid authentication credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """
    JWT 토큰에서 현재 사용자 정보 추출

    Args:
        credentials: Bearer 토큰
        db: 데이터베이스 세션

    Returns:
        User: 현재 사용자 객체

    Raises:
        HTTPException: 토큰이 유효하지 않거나 사용자를 찾을 수 없는 경우
    """
    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise _credentials_error()

    # 사용자 ID 추출 (sub는 문자열로 저장됨)
    user_id_str = payload.get("sub")
    if user_id_str is None:
        raise _credentials_error()

    try:
        user_id: int = int(user_id_str)
    except (ValueError, TypeError):
        raise _credentials_error("Invalid user ID in token")

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise _credentials_error("User not found")

    return user


def get_current_active_user(
    current_user: User = Depends(get_current_user)
) -> User:
    """현재 활성 사용자 확인"""
    if not current_user.is_active:
        raise HTTPException(status_code=400, detail="Inactive user")
    return current_user


def require_roles(*roles: Role):
    """지정한 역할의 사용자만 통과시키는 의존성 생성"""

    def checker(current_user: User = Depends(get_current_active_user)) -> User:
        if current_user.role not in roles:
            allowed = ", ".join(role.value for role in roles)
            raise Forbidden(
                f"User role {current_user.role.value} is not authorized to access this route",
                code="ROLE_NOT_ALLOWED",
                details={"allowed_roles": allowed},
            )
        return current_user

    return checker
