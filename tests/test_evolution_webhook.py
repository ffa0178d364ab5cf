from fastapi.testclient import TestClient

from stickerbot.adapters.evolution_webhook import build_webhook_app
from stickerbot.core.models import InboundMessage

MESSAGE_EVENT = {
    "event": "messages.upsert",
    "instance": "stickerbot",
    "data": {
        "key": {
            "id": "MSG123456789",
            "remoteJid": "6281111111111@s.whatsapp.net",
            "fromMe": False,
        },
        "messageType": "conversation",
        "message": {"conversation": ".help"},
    },
}


class Recorder:
    def __init__(self) -> None:
        self.messages: list[InboundMessage] = []
        self.updates: list[tuple[str, int | None]] = []

    async def on_message(self, message: InboundMessage) -> None:
        self.messages.append(message)

    async def on_connection_update(self, state: str, reason: int | None) -> None:
        self.updates.append((state, reason))


def _client(recorder: Recorder, token: str = "") -> TestClient:
    return TestClient(
        build_webhook_app(
            on_message=recorder.on_message,
            on_connection_update=recorder.on_connection_update,
            token=token,
        )
    )


def test_message_event_is_forwarded() -> None:
    recorder = Recorder()

    response = _client(recorder).post("/webhook/evolution", json=MESSAGE_EVENT)

    assert response.status_code == 200
    assert len(recorder.messages) == 1
    assert recorder.messages[0].message_id == "MSG123456789"
    assert recorder.messages[0].body == ".help"


def test_per_event_sub_path_and_upper_case_event() -> None:
    recorder = Recorder()
    payload = {**MESSAGE_EVENT, "event": "MESSAGES_UPSERT"}

    response = _client(recorder).post("/webhook/evolution/messages-upsert", json=payload)

    assert response.status_code == 200
    assert len(recorder.messages) == 1


def test_own_messages_are_not_forwarded() -> None:
    recorder = Recorder()
    payload = {
        **MESSAGE_EVENT,
        "data": {**MESSAGE_EVENT["data"], "key": {**MESSAGE_EVENT["data"]["key"], "fromMe": True}},
    }

    response = _client(recorder).post("/webhook/evolution", json=payload)

    assert response.status_code == 200
    assert recorder.messages == []


def test_invalid_message_payload() -> None:
    recorder = Recorder()
    payload = {"event": "messages.upsert", "data": {"key": {"id": "x"}}}

    response = _client(recorder).post("/webhook/evolution", json=payload)

    assert response.status_code == 400
    assert recorder.messages == []


def test_non_json_body() -> None:
    response = _client(Recorder()).post(
        "/webhook/evolution",
        content=b"not json",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400


def test_connection_update_is_forwarded() -> None:
    recorder = Recorder()
    payload = {
        "event": "connection.update",
        "data": {"instance": "stickerbot", "state": "close", "statusReason": 428},
    }

    response = _client(recorder).post("/webhook/evolution", json=payload)

    assert response.status_code == 200
    assert recorder.updates == [("close", 428)]


def test_other_events_are_acknowledged() -> None:
    recorder = Recorder()

    for event in ("qrcode.updated", "presence.update"):
        response = _client(recorder).post("/webhook/evolution", json={"event": event, "data": {}})
        assert response.status_code == 200

    assert recorder.messages == []
    assert recorder.updates == []


def test_token_required_when_configured() -> None:
    recorder = Recorder()
    client = _client(recorder, token="rahasia")

    assert client.post("/webhook/evolution", json=MESSAGE_EVENT).status_code == 401
    assert (
        client.post("/webhook/evolution?token=salah", json=MESSAGE_EVENT).status_code == 401
    )
    assert (
        client.post("/webhook/evolution?token=rahasia", json=MESSAGE_EVENT).status_code == 200
    )
    assert len(recorder.messages) == 1


def test_batch_with_invalid_item_enqueues_nothing() -> None:
    recorder = Recorder()
    payload = {
        "event": "messages.upsert",
        "data": [MESSAGE_EVENT["data"], {"key": {"id": "x"}}],
    }

    response = _client(recorder).post("/webhook/evolution", json=payload)

    assert response.status_code == 400
    assert recorder.messages == []


def test_valid_batch_forwards_every_message() -> None:
    recorder = Recorder()
    second = {
        **MESSAGE_EVENT["data"],
        "key": {**MESSAGE_EVENT["data"]["key"], "id": "MSG987654321"},
    }
    payload = {"event": "messages.upsert", "data": [MESSAGE_EVENT["data"], second]}

    response = _client(recorder).post("/webhook/evolution", json=payload)

    assert response.status_code == 200
    assert [message.message_id for message in recorder.messages] == [
        "MSG123456789",
        "MSG987654321",
    ]
