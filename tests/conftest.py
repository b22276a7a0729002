from datetime import datetime
from typing import Dict, List, Optional, Set

import pytest

from app.core.config import Settings
from app.core.exceptions import DeliveryError, ExternalServiceError
from app.db.memory import InMemoryAccountStore, InMemoryFlowStore
from app.flow.dispatcher import build_bot, dispatch_message
from app.schemas.telegram import IncomingMessage
from app.services.lookup_service import LookupRecord

ADMIN_ID = 1
USER_ID = 500


class FakeTelegram:
    """Records outbound calls instead of talking to the Bot API."""

    def __init__(self):
        self.sent: List[dict] = []
        self.edited: List[dict] = []
        self.deleted: List[tuple] = []
        self.membership: Dict[int, str] = {}
        self.default_status = "member"
        self.membership_error = False
        self.membership_calls: List[int] = []
        self.failing_chats: Set[int] = set()
        self._next_id = 1000

    async def send_message(self, chat_id, text, options=None):
        if chat_id in self.failing_chats:
            raise DeliveryError(f"blocked by {chat_id}")
        self._next_id += 1
        self.sent.append({"chat_id": chat_id, "text": text, "options": options, "message_id": self._next_id})
        return self._next_id

    async def edit_message_text(self, chat_id, message_id, text, options=None):
        self.edited.append({"chat_id": chat_id, "message_id": message_id, "text": text})

    async def delete_message(self, chat_id, message_id):
        self.deleted.append((chat_id, message_id))

    async def get_membership(self, channel, user_id):
        self.membership_calls.append(user_id)
        if self.membership_error:
            raise ExternalServiceError("unreachable")
        return self.membership.get(user_id, self.default_status)

    async def get_bot_username(self):
        return "LookupTestBot"

    def texts_to(self, chat_id) -> List[str]:
        return [m["text"] for m in self.sent if m["chat_id"] == chat_id]

    def last_to(self, chat_id) -> dict:
        return [m for m in self.sent if m["chat_id"] == chat_id][-1]


class FakeLookup:

    def __init__(self):
        self.calls: List[str] = []
        self.records: List[LookupRecord] = []
        self.error: Optional[Exception] = None

    async def lookup(self, number):
        self.calls.append(number)
        if self.error is not None:
            raise self.error
        return list(self.records)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings():
    return Settings(
        BOT_TOKEN="test-token",
        CHANNEL_USERNAME="@testchannel",
        ADMIN_IDS=str(ADMIN_ID),
        SUPPORT_ADMIN="@helpdesk",
        INITIAL_CREDITS=2,
        REFERRAL_CREDIT=1,
        STORE_BACKEND="memory",
    )


@pytest.fixture
def telegram():
    return FakeTelegram()


@pytest.fixture
def lookup():
    return FakeLookup()


@pytest.fixture
def accounts():
    return InMemoryAccountStore()


@pytest.fixture
def flows():
    return InMemoryFlowStore()


@pytest.fixture
def bot(settings, accounts, flows, telegram, lookup):
    return build_bot(settings, accounts, flows, telegram, lookup)


def make_message(user_id: int, text: str, first_name: str = "Tester", username: Optional[str] = None) -> IncomingMessage:
    return IncomingMessage(
        user_id=user_id,
        chat_id=user_id,
        message_id=1,
        text=text,
        first_name=first_name,
        username=username,
    )


def account_document(user_id: int, credits: int = 2, searches: int = 0) -> dict:
    return {
        "_id": user_id,
        "first_name": f"user{user_id}",
        "username": None,
        "credits": credits,
        "searches": searches,
        "join_date": datetime(2024, 1, 1),
        "referrals": 0,
        "credits_earned": 0,
    }


@pytest.fixture
def send(bot):
    async def _send(user_id: int, text: str, **kwargs):
        await dispatch_message(bot, make_message(user_id, text, **kwargs))
    return _send
