"""
실시간 채팅 소켓 연결 관리

사용자 ID별로 room(소켓 집합)을 두고, 이벤트를 해당 room에 전달한다.
"""

from typing import Any

from fastapi import WebSocket, WebSocketDisconnect

from logs.logging_util import LoggerSingleton

logger = LoggerSingleton.get_logger(logger_name="chat_socket")


def build_event(event: str, data: Any) -> dict:
    """소켓으로 보내는 프레임 형태: {"event": ..., "data": ...}"""
    return {"event": event, "data": data}


class ConnectionManager:
    def __init__(self):
        self._rooms: dict[int, set[WebSocket]] = {}

    def join(self, user_id: int, websocket: WebSocket) -> None:
        self._rooms.setdefault(user_id, set()).add(websocket)
        logger.info(f"Socket joined room: user_id={user_id}, sockets={len(self._rooms[user_id])}")

    def leave(self, user_id: int, websocket: WebSocket) -> None:
        sockets = self._rooms.get(user_id)
        if not sockets:
            return
        sockets.discard(websocket)
        if not sockets:
            del self._rooms[user_id]

    async def emit_to(self, user_id: int, event: str, data: Any) -> int:
        """user_id room의 모든 소켓에 이벤트 전송, 전송한 소켓 수 반환"""
        sent = 0
        for websocket in list(self._rooms.get(user_id, ())):
            try:
                await websocket.send_json(build_event(event, data))
            except (WebSocketDisconnect, RuntimeError):
                # 이미 끊긴 소켓은 room에서 제거
                logger.warning(f"Dropping stale socket: user_id={user_id}")
                self.leave(user_id, websocket)
                continue
            sent += 1
        return sent
