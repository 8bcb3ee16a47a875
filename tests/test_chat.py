from sqlalchemy.exc import OperationalError

from chat import service
from models.enums import Role
from models.message import Message

from conftest import auth_header
from auth.security import create_access_token


def _token(user) -> str:
    return create_access_token(data={"sub": str(user.id), "role": user.role.value})


def _authenticate(ws, user) -> dict:
    ws.send_json({"event": "authenticate", "data": {"token": _token(user)}})
    return ws.receive_json()


##### REST #####

def test_send_message_and_read_conversation(client, make_user, db_session) -> None:
    patient = make_user(Role.CLIENT, name="Jung")
    counselor = make_user(Role.COUNSELOR, name="Seo")

    sent = client.post(
        "/chat/send", json={"receiver_id": counselor.id, "text": "  hello  "}, headers=auth_header(patient)
    )
    reply = client.post(
        "/chat/send", json={"receiver_id": patient.id, "text": "hi there"}, headers=auth_header(counselor)
    )

    assert sent.status_code == 201
    assert sent.json()["text"] == "hello"
    assert sent.json()["read"] is False
    assert reply.status_code == 201

    conversation = client.get(f"/chat/{patient.id}", headers=auth_header(counselor))

    assert conversation.status_code == 200
    assert [m["text"] for m in conversation.json()["messages"]] == ["hello", "hi there"]
    # 조회 시점의 읽음 상태로 응답하고, 이후 읽음 처리됨
    assert conversation.json()["messages"][0]["read"] is False
    db_session.expire_all()
    assert db_session.get(Message, sent.json()["id"]).read is True
    assert db_session.get(Message, reply.json()["id"]).read is False


def test_send_message_to_unknown_receiver(client, make_user) -> None:
    patient = make_user(Role.CLIENT)

    response = client.post("/chat/send", json={"receiver_id": 777, "text": "hello"}, headers=auth_header(patient))

    assert response.status_code == 404
    assert response.json()["code"] == "RECEIVER_NOT_FOUND"


def test_send_message_rejects_blank_and_oversized_text(client, make_user) -> None:
    patient = make_user(Role.CLIENT)
    counselor = make_user(Role.COUNSELOR)
    headers = auth_header(patient)

    blank = client.post("/chat/send", json={"receiver_id": counselor.id, "text": "   "}, headers=headers)

    assert blank.status_code == 422
    assert blank.json()["code"] == "REQUEST_VALIDATION_ERROR"
    assert client.post(
        "/chat/send", json={"receiver_id": counselor.id, "text": "x" * 2001}, headers=headers
    ).status_code == 422


def test_conversation_with_unknown_user(client, make_user) -> None:
    patient = make_user(Role.CLIENT)

    response = client.get("/chat/999", headers=auth_header(patient))

    assert response.status_code == 404
    assert response.json()["code"] == "USER_NOT_FOUND"


def test_conversations_list_unread_counts(client, make_user) -> None:
    patient = make_user(Role.CLIENT, name="Oh")
    counselor = make_user(Role.COUNSELOR, name="Kang")
    other_counselor = make_user(Role.COUNSELOR, name="Baek")

    client.post("/chat/send", json={"receiver_id": patient.id, "text": "one"}, headers=auth_header(counselor))
    client.post("/chat/send", json={"receiver_id": patient.id, "text": "two"}, headers=auth_header(counselor))
    client.post("/chat/send", json={"receiver_id": other_counselor.id, "text": "hey"}, headers=auth_header(patient))

    response = client.get("/chat/conversations", headers=auth_header(patient))

    assert response.status_code == 200
    conversations = {c["name"]: c for c in response.json()["conversations"]}
    assert response.json()["total"] == 2
    assert conversations["Kang"]["unread_count"] == 2
    assert conversations["Kang"]["role"] == "counselor"
    assert conversations["Baek"]["unread_count"] == 0


def test_mark_as_read(client, make_user) -> None:
    patient = make_user(Role.CLIENT)
    counselor = make_user(Role.COUNSELOR)
    client.post("/chat/send", json={"receiver_id": patient.id, "text": "one"}, headers=auth_header(counselor))
    client.post("/chat/send", json={"receiver_id": patient.id, "text": "two"}, headers=auth_header(counselor))

    first = client.put(f"/chat/{counselor.id}/read", headers=auth_header(patient))
    second = client.put(f"/chat/{counselor.id}/read", headers=auth_header(patient))

    assert first.json() == {"count": 2, "message": "2 messages marked as read"}
    assert second.json()["count"] == 0


##### WebSocket #####

def test_socket_authentication(client, make_user) -> None:
    patient = make_user(Role.CLIENT)

    with client.websocket_connect("/chat/ws") as ws:
        ws.send_json({"event": "authenticate", "data": {"token": "garbage"}})
        assert ws.receive_json() == {"event": "auth_error", "data": {"message": "Authentication failed"}}

        assert _authenticate(ws, patient) == {"event": "authenticated", "data": {"user_id": patient.id}}


def test_socket_requires_authentication(client) -> None:
    with client.websocket_connect("/chat/ws") as ws:
        ws.send_json({"event": "send_message", "data": {"receiver_id": 1, "text": "hi"}})
        assert ws.receive_json()["event"] == "message_error"

        ws.send_json({"event": "mark_read", "data": {"message_ids": [1]}})
        assert ws.receive_json() == {"event": "read_error", "data": {"message": "Not authenticated"}}

        ws.send_json({"event": "dance", "data": {}})
        assert ws.receive_json()["event"] == "error"

        ws.send_text("{not json")
        assert ws.receive_json() == {"event": "error", "data": {"message": "Invalid JSON frame"}}


def test_socket_message_delivery_typing_and_read_receipts(client, make_user, db_session) -> None:
    patient = make_user(Role.CLIENT, name="Lim")
    counselor = make_user(Role.COUNSELOR, name="Shin")

    with client.websocket_connect("/chat/ws") as patient_ws, client.websocket_connect("/chat/ws") as counselor_ws:
        _authenticate(patient_ws, patient)
        _authenticate(counselor_ws, counselor)

        patient_ws.send_json({"event": "typing", "data": {"receiver_id": counselor.id, "is_typing": True}})
        assert counselor_ws.receive_json() == {
            "event": "user_typing",
            "data": {"user_id": patient.id, "is_typing": True},
        }

        patient_ws.send_json({"event": "send_message", "data": {"receiver_id": counselor.id, "text": "can we talk?"}})
        delivered = counselor_ws.receive_json()
        ack = patient_ws.receive_json()

        assert delivered["event"] == "new_message"
        assert delivered["data"]["message"]["text"] == "can we talk?"
        assert delivered["data"]["sender"] == {"id": patient.id, "name": "Lim"}
        assert ack["event"] == "message_sent"
        message_id = ack["data"]["message_id"]
        assert delivered["data"]["message"]["id"] == message_id

        counselor_ws.send_json({"event": "mark_read", "data": {"message_ids": [message_id]}})
        receipt = patient_ws.receive_json()

        assert receipt == {"event": "messages_read", "data": {"reader": counselor.id, "message_ids": [message_id]}}

    db_session.expire_all()
    assert db_session.get(Message, message_id).read is True


def test_rest_send_is_pushed_to_online_receiver(client, make_user) -> None:
    patient = make_user(Role.CLIENT)
    counselor = make_user(Role.COUNSELOR)

    with client.websocket_connect("/chat/ws") as counselor_ws:
        _authenticate(counselor_ws, counselor)

        client.post("/chat/send", json={"receiver_id": counselor.id, "text": "via rest"}, headers=auth_header(patient))
        pushed = counselor_ws.receive_json()

    assert pushed["event"] == "new_message"
    assert pushed["data"]["message"]["text"] == "via rest"


def test_socket_send_to_unknown_receiver(client, make_user) -> None:
    patient = make_user(Role.CLIENT)

    with client.websocket_connect("/chat/ws") as ws:
        _authenticate(ws, patient)
        ws.send_json({"event": "send_message", "data": {"receiver_id": 555, "text": "anyone?"}})

        assert ws.receive_json() == {"event": "message_error", "data": {"message": "Receiver not found"}}


def test_socket_storage_failure_reports_message_error(client, make_user, monkeypatch) -> None:
    patient = make_user(Role.CLIENT)
    counselor = make_user(Role.COUNSELOR)

    def _fail(*args):
        raise OperationalError("INSERT INTO messages", {}, Exception("database is locked"))

    monkeypatch.setattr(service, "send_message", _fail)

    with client.websocket_connect("/chat/ws") as ws:
        _authenticate(ws, patient)
        ws.send_json({"event": "send_message", "data": {"receiver_id": counselor.id, "text": "hello"}})

        assert ws.receive_json() == {"event": "message_error", "data": {"message": "Failed to send message"}}

        # 소켓은 계속 사용 가능
        ws.send_json({"event": "mark_read", "data": {"message_ids": "nope"}})
        assert ws.receive_json()["event"] == "read_error"
