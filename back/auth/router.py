"""
인증 관련 API 라우터
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from database import get_db
from models.user import User
from schemas.user import UserCreate, UserLogin, UserResponse, Token
from auth.security import verify_password, get_password_hash, create_access_token
from auth.dependencies import get_current_active_user
from config.exception import BadRequest
from logs.logging_util import LoggerSingleton

# 로거 설정
logger = LoggerSingleton.get_logger(logger_name="auth")

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(user_data: UserCreate, db: Session = Depends(get_db)):
    """
    회원가입 (내담자 / 상담사)

    Args:
        user_data: 사용자 등록 정보
        db: 데이터베이스 세션

    Returns:
        UserResponse: 생성된 사용자 정보
    """
    email = user_data.email.lower()
    logger.info(f"Registration attempt: email={email}, role={user_data.role.value}")

    # 이메일 중복 체크
    existing_user = db.query(User).filter(User.email == email).first()
    if existing_user:
        logger.warning(f"Registration failed: Email already exists - {email}")
        raise BadRequest("Email already registered", code="EMAIL_ALREADY_REGISTERED")

    new_user = User(
        name=user_data.name,
        email=email,
        hashed_password=get_password_hash(user_data.password),
        role=user_data.role,
        specialties=[],
        is_active=True,
    )

    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    logger.info(f"User registered successfully: id={new_user.id}, role={new_user.role.value}")

    return new_user


@router.post("/login", response_model=Token)
def login(user_credentials: UserLogin, db: Session = Depends(get_db)):
    """
    로그인

    Args:
        user_credentials: 로그인 자격증명 (이메일 / 비밀번호)
        db: 데이터베이스 세션

    Returns:
        Token: JWT 액세스 토큰
    """
    email = user_credentials.email.lower()
    logger.info(f"Login attempt: email={email}")

    user = db.query(User).filter(User.email == email).first()

    if not user or not verify_password(user_credentials.password, user.hashed_password):
        logger.warning(f"Login failed: Invalid credentials - email={email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        logger.warning(f"Login failed: Inactive user - email={email}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Inactive user"
        )

    # JWT 토큰 생성 (sub는 문자열이어야 함)
    access_token = create_access_token(data={"sub": str(user.id), "role": user.role.value})

    logger.info(f"Login successful: user_id={user.id}")

    return {"access_token": access_token, "token_type": "bearer"}


@router.get("/me", response_model=UserResponse)
def get_current_user_info(current_user: User = Depends(get_current_active_user)):
    """현재 로그인한 사용자 정보 조회"""
    logger.info(f"User info requested: user_id={current_user.id}")
    return current_user
