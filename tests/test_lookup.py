import logging

import pytest

from app.core.exceptions import ExternalServiceError
from app.services.lookup_service import LookupRecord
from conftest import USER_ID, account_document
from utils.telegram_utils import format_address, format_record

pytestmark = pytest.mark.anyio

NUMBER = "9876543210"


def _records(count):
    return [
        LookupRecord(name=f"Person {i}", fname="Father", mobile=NUMBER, address="A!!B!C", circle="DL")
        for i in range(count)
    ]


async def test_successful_lookup_debits_and_sends_each_record(send, accounts, telegram, lookup):
    await accounts.insert(account_document(USER_ID, credits=1))
    lookup.records = _records(2)

    await send(USER_ID, NUMBER)

    assert lookup.calls == [NUMBER]
    doc = await accounts.find(USER_ID)
    assert (doc["credits"], doc["searches"]) == (0, 1)

    texts = telegram.texts_to(USER_ID)
    record_texts = [t for t in texts if t.startswith("📊 *Record")]
    assert len(record_texts) == 2
    assert "Person 0" in record_texts[0]
    assert "Person 1" in record_texts[1]
    assert texts[-1] == "💳 Credits remaining: *0*"
    assert "Found *2* record(s)" in telegram.edited[0]["text"]


async def test_failed_lookup_refunds_credit(send, accounts, telegram, lookup):
    await accounts.insert(account_document(USER_ID, credits=1, searches=3))
    lookup.error = ExternalServiceError("timeout")

    await send(USER_ID, NUMBER)

    doc = await accounts.find(USER_ID)
    assert (doc["credits"], doc["searches"]) == (1, 3)
    assert "refunded" in telegram.edited[0]["text"]
    assert telegram.texts_to(USER_ID)[-1] == "💳 Credits remaining: *1*"


async def test_unexpected_lookup_error_still_refunds(send, accounts, telegram, lookup):
    await accounts.insert(account_document(USER_ID, credits=2))
    lookup.error = RuntimeError("bug")

    await send(USER_ID, NUMBER)

    doc = await accounts.find(USER_ID)
    assert (doc["credits"], doc["searches"]) == (2, 0)
    texts = telegram.texts_to(USER_ID)
    assert "💳 Credits remaining: *2*" in texts
    assert texts[-1].startswith("❌ Something went wrong")


async def test_zero_credits_never_debits_or_calls_api(send, accounts, telegram, lookup):
    await accounts.insert(account_document(USER_ID, credits=0))

    await send(USER_ID, NUMBER)

    assert lookup.calls == []
    doc = await accounts.find(USER_ID)
    assert (doc["credits"], doc["searches"]) == (0, 0)
    assert "insufficient credits" in telegram.texts_to(USER_ID)[-1]


@pytest.mark.parametrize("text", ["12345", "98765abc10", "hello", "+919876543210", "\u0661\u0662\u0663\u0664\u0665\u0666\u0667\u0668\u0669\u0660"])
async def test_invalid_query_is_rejected_without_cost(send, accounts, telegram, lookup, text):
    await accounts.insert(account_document(USER_ID, credits=1))

    await send(USER_ID, text)

    assert lookup.calls == []
    assert (await accounts.find(USER_ID))["credits"] == 1
    assert "valid command or phone number" in telegram.texts_to(USER_ID)[-1]


async def test_unregistered_user_is_asked_to_start(send, telegram, lookup):
    await send(USER_ID, NUMBER)

    assert lookup.calls == []
    assert telegram.texts_to(USER_ID) == ["Please press /start to register."]


async def test_query_is_trimmed(send, accounts, lookup):
    await accounts.insert(account_document(USER_ID, credits=1))
    lookup.records = _records(1)

    await send(USER_ID, f"  {NUMBER}\n")

    assert lookup.calls == [NUMBER]


def test_format_address_collapses_separators():
    assert format_address("H NO 12!!MAIN ROAD!!!DELHI!") == "H NO 12, MAIN ROAD, DELHI"
    assert format_address(" A ! B ") == "A, B"
    assert format_address("!!") == "N/A"
    assert format_address(None) == "N/A"


def test_format_record_uses_placeholder_for_missing_fields():
    text = format_record(LookupRecord(name="Ravi"), 0, 3)

    assert "*Record 1 of 3*" in text
    assert "*Name:* `Ravi`" in text
    assert "*Father's Name:* `N/A`" in text
    assert "*Address:* `N/A`" in text
    assert "*Circle:* `N/A`" in text


async def test_queried_number_is_not_logged(send, accounts, lookup, caplog):
    caplog.set_level(logging.DEBUG)
    await accounts.insert(account_document(USER_ID, credits=2))
    lookup.records = _records(1)

    await send(USER_ID, NUMBER)
    lookup.error = ExternalServiceError("Lookup request failed")
    await send(USER_ID, NUMBER)

    assert lookup.calls == [NUMBER, NUMBER]
    assert NUMBER not in caplog.text
