#####################################################
#                                                   #
#                의존성 주입 함수 정의                 #
#                                                   #
#####################################################

from datetime import datetime, timezone
from fastapi.requests import HTTPConnection
from chat.manager import ConnectionManager

##### 공유 리소스 의존성 주입 함수 정의 #####
# app.py lifespan 에서 초기화된 리소스를 반환
# HTTP 요청과 WebSocket 모두에서 사용할 수 있도록 HTTPConnection 사용

# chat
def get_chat_manager(connection: HTTPConnection) -> ConnectionManager:
    return connection.app.state.client_container.chat_manager


##### 현재 시각 #####
# 예약 판정은 항상 이 값을 기준으로 함 (테스트에서는 dependency_overrides로 고정)
def get_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)
