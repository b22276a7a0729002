import pytest
from fastapi.testclient import TestClient

from app.api import webhook as webhook_module
from app.flow.dispatcher import build_bot
from app.main import app
from conftest import USER_ID

WEBHOOK_URL = "/api/v1/webhook"


def _update(text, user_id=USER_ID):
    return {
        "update_id": 1,
        "message": {
            "message_id": 10,
            "from": {"id": user_id, "is_bot": False, "first_name": "Ann"},
            "chat": {"id": user_id, "type": "private"},
            "text": text,
        },
    }


@pytest.fixture
def client(settings, accounts, flows, telegram, lookup):
    app.state.bot = build_bot(settings, accounts, flows, telegram, lookup)
    yield TestClient(app)
    del app.state.bot


def test_text_update_is_dispatched(client, accounts, telegram):
    response = client.post(WEBHOOK_URL, json=_update("/start"))

    assert response.status_code == 200
    assert response.json() == {"ok": True}
    assert USER_ID in accounts.documents
    assert telegram.texts_to(USER_ID)


def test_non_text_update_is_acknowledged(client, telegram):
    update = _update("x")
    del update["message"]["text"]

    response = client.post(WEBHOOK_URL, json=update)

    assert response.status_code == 200
    assert telegram.sent == []


def test_garbage_payload_is_acknowledged(client):
    response = client.post(WEBHOOK_URL, content=b"not json", headers={"Content-Type": "application/json"})

    assert response.status_code == 200
    assert response.json() == {"ok": True}


def test_processing_failure_is_acknowledged(client, monkeypatch):
    async def explode(bot, message):
        raise RuntimeError("boom")

    monkeypatch.setattr(webhook_module, "dispatch_message", explode)

    response = client.post(WEBHOOK_URL, json=_update("/start"))

    assert response.status_code == 200


def test_store_failure_is_acknowledged_and_reported(client, accounts, telegram, monkeypatch):
    async def broken_find(user_id):
        raise ConnectionError("mongo down")

    monkeypatch.setattr(accounts, "find", broken_find)

    response = client.post(WEBHOOK_URL, json=_update("/start"))

    assert response.status_code == 200
    assert telegram.texts_to(USER_ID) == ["❌ Something went wrong. Please try again later."]


def test_secret_token_is_enforced(client, settings, accounts):
    settings.WEBHOOK_SECRET = "s3cret"

    rejected = client.post(WEBHOOK_URL, json=_update("/start"))
    accepted = client.post(
        WEBHOOK_URL,
        json=_update("/start"),
        headers={"X-Telegram-Bot-Api-Secret-Token": "s3cret"},
    )

    assert rejected.status_code == 403
    assert accepted.status_code == 200
    assert USER_ID in accounts.documents


def test_liveness(client):
    assert client.get("/live").json() == {"status": "alive"}
