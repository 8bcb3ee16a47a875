"""
로깅 유틸리티 - 싱글톤 로거 관리
"""
import logging
import os
import sys


def default_level() -> int:
    """LOG_LEVEL 환경변수에서 기본 로그 레벨을 읽음 (없거나 잘못되면 INFO)"""
    name = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


class LoggerSingleton:
    """
    싱글톤 패턴의 로거 팩토리
    """
    _loggers = {}

    @classmethod
    def get_logger(cls, logger_name: str = "app", level: int | None = None) -> logging.Logger:
        """
        지정된 이름의 로거를 반환합니다. 이미 생성된 경우 기존 로거를 반환합니다.

        Args:
            logger_name: 로거 이름
            level: 로그 레벨 (None이면 LOG_LEVEL 환경변수, 기본값 INFO)

        Returns:
            logging.Logger: 설정된 로거 인스턴스
        """
        if logger_name in cls._loggers:
            return cls._loggers[logger_name]

        if level is None:
            level = default_level()

        logger = logging.getLogger(logger_name)
        logger.setLevel(level)

        # 핸들러가 없는 경우에만 추가 (중복 방지)
        if not logger.handlers:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(level)

            formatter = logging.Formatter(
                fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S"
            )
            console_handler.setFormatter(formatter)

            logger.addHandler(console_handler)

        cls._loggers[logger_name] = logger
        return logger


def format_access_log(method: str, path: str, user: str, status_code: int | None = None) -> str:
    """요청/응답 접근 로그 한 줄 포맷"""
    line = f"{method} {path} user={user}"
    if status_code is not None:
        line += f" status={status_code}"
    return line
