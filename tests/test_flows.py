from datetime import datetime, timedelta

import pytest

from app.flow.dispatcher import build_bot, dispatch_message
from app.flow.states import FlowId, FlowState
from conftest import ADMIN_ID, USER_ID, account_document, make_message
from utils.constants import ADMIN_MENU, BASE_MENU, BUTTON_ACCOUNT, BUTTON_ADD_CREDIT, BUTTON_BROADCAST

pytestmark = pytest.mark.anyio

TARGET_ID = 777


@pytest.fixture
def target_account(accounts):
    accounts.documents[TARGET_ID] = account_document(TARGET_ID, credits=2)


async def _flow(flows, user_id):
    doc = await flows.get(user_id)
    return FlowState.from_document(doc) if doc else None


# ============================================================
# CREDIT-GRANT WIZARD
# ============================================================

async def test_entering_credit_grant_prompts_for_user_id(send, flows, telegram):
    await send(ADMIN_ID, BUTTON_ADD_CREDIT)

    state = await _flow(flows, ADMIN_ID)
    assert state.flow_id == FlowId.CREDIT_GRANT
    assert state.step == 0
    assert "User ID of the recipient" in telegram.texts_to(ADMIN_ID)[-1]


async def test_non_admin_cannot_enter_admin_flows(send, flows, telegram):
    await send(USER_ID, BUTTON_ADD_CREDIT)
    await send(USER_ID, BUTTON_BROADCAST)

    assert await flows.get(USER_ID) is None
    assert telegram.texts_to(USER_ID) == []


async def test_non_numeric_id_reprompts_without_advancing(send, flows, telegram):
    await send(ADMIN_ID, BUTTON_ADD_CREDIT)
    await send(ADMIN_ID, "not-a-number")

    assert (await _flow(flows, ADMIN_ID)).step == 0
    assert "Invalid ID format" in telegram.texts_to(ADMIN_ID)[-1]


async def test_unknown_id_reprompts_without_advancing(send, flows, telegram):
    await send(ADMIN_ID, BUTTON_ADD_CREDIT)
    await send(ADMIN_ID, "424242")

    assert (await _flow(flows, ADMIN_ID)).step == 0
    assert "User not found" in telegram.texts_to(ADMIN_ID)[-1]


async def test_oversized_id_reprompts_without_advancing(send, flows, telegram):
    await send(ADMIN_ID, BUTTON_ADD_CREDIT)
    await send(ADMIN_ID, "99999999999999999999")

    assert (await _flow(flows, ADMIN_ID)).step == 0
    assert "Invalid ID format" in telegram.texts_to(ADMIN_ID)[-1]


async def test_top_level_commands_are_not_recognized_mid_flow(send, flows, telegram, target_account):
    await send(ADMIN_ID, BUTTON_ADD_CREDIT)
    await send(ADMIN_ID, BUTTON_ACCOUNT)

    assert (await _flow(flows, ADMIN_ID)).step == 0
    assert "Invalid ID format" in telegram.texts_to(ADMIN_ID)[-1]


async def test_valid_id_advances_to_amount(send, flows, telegram, target_account):
    await send(ADMIN_ID, BUTTON_ADD_CREDIT)
    await send(ADMIN_ID, str(TARGET_ID))

    state = await _flow(flows, ADMIN_ID)
    assert state.step == 1
    assert state.scratch == {"target_id": TARGET_ID}
    assert f"User `{TARGET_ID}` found" in telegram.texts_to(ADMIN_ID)[-1]


@pytest.mark.parametrize("amount", ["0", "-5", "ten", "1.5", "99999999999999999999"])
async def test_invalid_amount_reprompts_without_advancing(send, flows, accounts, telegram, target_account, amount):
    await send(ADMIN_ID, BUTTON_ADD_CREDIT)
    await send(ADMIN_ID, str(TARGET_ID))
    await send(ADMIN_ID, amount)

    assert (await _flow(flows, ADMIN_ID)).step == 1
    assert "Invalid amount" in telegram.texts_to(ADMIN_ID)[-1]
    assert (await accounts.find(TARGET_ID))["credits"] == 2


async def test_completed_wizard_grants_and_notifies(send, flows, accounts, telegram, target_account):
    await send(ADMIN_ID, BUTTON_ADD_CREDIT)
    await send(ADMIN_ID, str(TARGET_ID))
    await send(ADMIN_ID, "25")

    assert (await accounts.find(TARGET_ID))["credits"] == 27
    assert await flows.get(ADMIN_ID) is None

    confirmation = telegram.last_to(ADMIN_ID)
    assert confirmation["text"] == f"✅ Success! Added 25 credits to user {TARGET_ID}."
    assert confirmation["options"].keyboard == BASE_MENU + ADMIN_MENU
    assert "*25 credits*" in telegram.texts_to(TARGET_ID)[-1]


async def test_failed_target_notification_keeps_the_grant(send, flows, accounts, telegram, target_account):
    telegram.failing_chats.add(TARGET_ID)

    await send(ADMIN_ID, BUTTON_ADD_CREDIT)
    await send(ADMIN_ID, str(TARGET_ID))
    await send(ADMIN_ID, "3")

    assert (await accounts.find(TARGET_ID))["credits"] == 5
    assert await flows.get(ADMIN_ID) is None
    assert telegram.texts_to(ADMIN_ID)[-1].startswith("✅ Success!")


async def test_target_removed_mid_flow_ends_flow(send, flows, accounts, telegram, target_account):
    await send(ADMIN_ID, BUTTON_ADD_CREDIT)
    await send(ADMIN_ID, str(TARGET_ID))
    del accounts.documents[TARGET_ID]
    await send(ADMIN_ID, "3")

    assert await flows.get(ADMIN_ID) is None
    assert "no longer exists" in telegram.texts_to(ADMIN_ID)[-1]


@pytest.mark.parametrize("steps_before_cancel", [0, 1])
async def test_cancel_clears_state_and_restores_menu(send, flows, accounts, telegram, target_account, steps_before_cancel):
    await send(ADMIN_ID, BUTTON_ADD_CREDIT)
    if steps_before_cancel:
        await send(ADMIN_ID, str(TARGET_ID))

    await send(ADMIN_ID, "/cancel")

    assert await flows.get(ADMIN_ID) is None
    reply = telegram.last_to(ADMIN_ID)
    assert reply["text"] == "🔹 Action has been cancelled."
    assert reply["options"].keyboard == BASE_MENU + ADMIN_MENU
    assert (await accounts.find(TARGET_ID))["credits"] == 2

    # Back at top level: a fresh entry starts again at step 0
    await send(ADMIN_ID, BUTTON_ADD_CREDIT)
    assert (await _flow(flows, ADMIN_ID)).step == 0


async def test_cancel_outside_a_flow(send, telegram):
    await send(ADMIN_ID, "/cancel")

    assert telegram.texts_to(ADMIN_ID) == ["🔹 There is nothing to cancel."]


async def test_flows_are_per_user(send, flows, accounts, telegram, target_account, settings):
    second_admin = 2
    settings.ADMIN_IDS = f"{ADMIN_ID},{second_admin}"

    await send(ADMIN_ID, BUTTON_ADD_CREDIT)
    await send(second_admin, BUTTON_ADD_CREDIT)
    await send(ADMIN_ID, str(TARGET_ID))
    await send(second_admin, "garbage")

    assert (await _flow(flows, ADMIN_ID)).step == 1
    assert (await _flow(flows, second_admin)).step == 0


# ============================================================
# BROADCAST
# ============================================================

async def test_broadcast_counts_successes_and_failures(send, flows, accounts, telegram):
    recipients = [10, 11, 12, 13, 14]
    for user_id in recipients:
        await accounts.insert(account_document(user_id))
    telegram.failing_chats.update({11, 13})

    await send(ADMIN_ID, BUTTON_BROADCAST)
    await send(ADMIN_ID, "Maintenance tonight")

    delivered = [m["chat_id"] for m in telegram.sent if m["text"] == "Maintenance tonight"]
    assert delivered == [10, 12, 14]
    assert await flows.get(ADMIN_ID) is None
    report = telegram.texts_to(ADMIN_ID)[-1]
    assert "Sent: 3" in report
    assert "Failed: 2" in report


async def test_broadcast_attempts_every_recipient(bot, accounts, telegram, flows):
    attempted = []
    original_send = telegram.send_message

    async def tracking_send(chat_id, text, options=None):
        if text == "hello all":
            attempted.append(chat_id)
        return await original_send(chat_id, text, options)

    telegram.send_message = tracking_send
    for user_id in (20, 21, 22):
        await accounts.insert(account_document(user_id))
    telegram.failing_chats.add(20)

    await dispatch_message(bot, make_message(ADMIN_ID, BUTTON_BROADCAST))
    await dispatch_message(bot, make_message(ADMIN_ID, "hello all"))

    assert attempted == [20, 21, 22]
    assert "Sent: 2" in telegram.texts_to(ADMIN_ID)[-1]


async def test_broadcast_can_be_cancelled(send, flows, accounts, telegram):
    await accounts.insert(account_document(10))

    await send(ADMIN_ID, BUTTON_BROADCAST)
    await send(ADMIN_ID, "/cancel")

    assert await flows.get(ADMIN_ID) is None
    assert telegram.texts_to(10) == []


# ============================================================
# EXPIRY
# ============================================================

async def test_flows_never_expire_by_default(send, flows, telegram):
    stale = FlowState(flow_id=FlowId.BROADCAST, updated_at=datetime.utcnow() - timedelta(days=30))
    await flows.save(ADMIN_ID, stale.to_document())

    await send(ADMIN_ID, "still here")

    assert await flows.get(ADMIN_ID) is None
    assert "Broadcast Complete" in telegram.texts_to(ADMIN_ID)[-1]


async def test_expired_flow_is_discarded(settings, accounts, flows, telegram, lookup):
    settings.FLOW_TIMEOUT_MINUTES = 10
    bot = build_bot(settings, accounts, flows, telegram, lookup)
    stale = FlowState(flow_id=FlowId.BROADCAST, updated_at=datetime.utcnow() - timedelta(minutes=11))
    await flows.save(ADMIN_ID, stale.to_document())

    await dispatch_message(bot, make_message(ADMIN_ID, "/cancel"))

    assert await flows.get(ADMIN_ID) is None
    texts = telegram.texts_to(ADMIN_ID)
    assert texts[0].startswith("⌛️")
    assert texts[1] == "🔹 There is nothing to cancel."


def test_flow_state_expiry():
    now = datetime(2024, 1, 1, 12, 0)
    state = FlowState(flow_id=FlowId.CREDIT_GRANT, updated_at=now - timedelta(minutes=31))

    assert state.is_expired(30, now=now)
    assert not state.is_expired(60, now=now)
    assert not state.is_expired(0, now=now)
