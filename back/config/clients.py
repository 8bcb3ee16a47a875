#####################################################
#                                                   #
#               공유 리소스 컨테이너 정의               #
#                                                   #
#####################################################

from chat.manager import ConnectionManager


# 앱 상태에 보관할 공유 리소스 컨테이너
class ClientContainer:
    def __init__(self):
        self.chat_manager = None


# 컨테이너를 초기화하는 함수 (app.py lifespan에서 호출)
def initialize_clients() -> ClientContainer:
    container = ClientContainer()
    # 실시간 채팅 소켓 연결 레지스트리 (사용자 ID -> 소켓 목록)
    container.chat_manager = ConnectionManager()
    return container
