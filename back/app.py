#####################################################
#                                                   #
#                앱 상태 정의 및 관리                  #
#                                                   #
#####################################################

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from logs.logging_util import LoggerSingleton, format_access_log
from contextlib import asynccontextmanager
from config.clients import initialize_clients
from config.exception import register_exception_handlers
from database import init_db
from auth.router import router as auth_router
from auth.security import user_id_from_token
from user_profile.router import router as profile_router
from appointment.router import router as appointment_router
from chat.router import router as chat_router
from chat.socket import router as chat_socket_router
import os

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        r"""
  ####    ####    ##  ##   #####    ######   ##
 ##  ##  ##  ##   ##  ##  ##        ##       ##
 ##      ##  ##   ##  ##   ####     ####     ##
 ##      ##  ##   ##  ##      ##    ##       ##
 ##  ##  ##  ##   ##  ##      ##    ##       ##
  ####    ####     ####   #####     ######   ######
                     🟢 API START 🟢
"""
    )

    init_db()
    logger.info(
        f"\n{'=' * 80}\n"
        f"| {' ' * 29} 🛢️ DATABASE INITIATED 🛢️ {' ' * 29} |\n"
        f"{'=' * 80}\n"
    )

    # 앱 상태에 공유 리소스 컨테이너 저장 (채팅 소켓 레지스트리 등)
    global client_container
    client_container = initialize_clients()
    app.state.client_container = client_container

    yield
    logger.info(
        r"""
  ####    ####    ##  ##   #####    ######   ##
 ##  ##  ##  ##   ##  ##  ##        ##       ##
 ##      ##  ##   ##  ##   ####     ####     ##
 ##      ##  ##   ##  ##      ##    ##       ##
 ##  ##  ##  ##   ##  ##      ##    ##       ##
  ####    ####     ####   #####     ######   ######
                     🛑 API SHUTDOWN 🛑
    """
    )

# FastAPI 앱 인스턴스 생성
app = FastAPI(title="Counseling Platform API", version="1.0.0", lifespan=lifespan)

# CORS (CLIENT_URL 미설정 시 전체 허용)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[os.getenv("CLIENT_URL", "*")],
    allow_methods=["*"],
    allow_headers=["*"],
)

# Prometheus FastAPI 미들웨어 설정
Instrumentator().instrument(app).expose(app)

# 전역 예외 핸들러
register_exception_handlers(app)


# 요청 / 응답 접근 로그
@app.middleware("http")
async def log_access(request: Request, call_next):
    user = "unauthenticated"
    authorization = request.headers.get("authorization", "")
    if authorization.lower().startswith("bearer "):
        user_id = user_id_from_token(authorization[7:])
        user = f"user:{user_id}" if user_id is not None else "invalid-token"

    access_logger.info(format_access_log(request.method, request.url.path, user))
    response = await call_next(request)
    access_logger.info(format_access_log(request.method, request.url.path, user, response.status_code))
    return response


@app.get("/")
def root():
    return {
        "message": "Welcome to Counseling Platform API",
        "version": app.version,
        "status": "online",
    }


# 라우터 등록
routers = [auth_router, profile_router, appointment_router, chat_socket_router, chat_router]

for router in routers:
    app.include_router(router)

# 로거 설정
logger = LoggerSingleton.get_logger(logger_name="app")
access_logger = LoggerSingleton.get_logger(logger_name="access")
