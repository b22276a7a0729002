"""
app/flow/dispatcher.py

Purpose: Central message dispatcher

- Receives normalized messages from the webhook
- Routes to the active flow, or through the access gate to top-level handlers
- Converts errors into chat replies so no update crashes the process
- Wires the bot context at startup
"""

from typing import Awaitable, Callable, Dict

from app.core.config import Settings
from app.core.exceptions import BotError, DeliveryError
from app.core.logging import get_logger, LogContext
from app.flow.context import BotContext, UpdateContext
from app.flow.engine import FlowEngine
from app.flow.gate import check_access
from app.flow.handlers.account import (
    handle_buy_credits,
    handle_help,
    handle_member_status,
    handle_my_account,
    handle_refer,
)
from app.flow.handlers.broadcast import BROADCAST_FLOW
from app.flow.handlers.credit_grant import CREDIT_GRANT_FLOW
from app.flow.handlers.lookup import handle_lookup
from app.flow.handlers.start import handle_start
from app.flow.states import FlowId
from app.schemas.telegram import IncomingMessage
from app.services.ledger_service import CreditLedger
from utils.constants import (
    BUTTON_ACCOUNT,
    BUTTON_ADD_CREDIT,
    BUTTON_BROADCAST,
    BUTTON_BUY,
    BUTTON_HELP,
    BUTTON_MEMBER_STATUS,
    BUTTON_REFER,
    CANCEL_COMMAND,
    FLOW_EXPIRED_MESSAGE,
    GENERIC_ERROR_MESSAGE,
    NOTHING_TO_CANCEL_MESSAGE,
    START_COMMAND,
)

logger = get_logger(__name__)

FLOWS = {
    FlowId.CREDIT_GRANT: CREDIT_GRANT_FLOW,
    FlowId.BROADCAST: BROADCAST_FLOW,
}


async def _enter_credit_grant(ctx: UpdateContext):
    if ctx.is_admin:
        await ctx.bot.engine.enter(ctx, FlowId.CREDIT_GRANT)


async def _enter_broadcast(ctx: UpdateContext):
    if ctx.is_admin:
        await ctx.bot.engine.enter(ctx, FlowId.BROADCAST)


async def _nothing_to_cancel(ctx: UpdateContext):
    await ctx.reply(NOTHING_TO_CANCEL_MESSAGE, menu=True)


# Button label -> handler
BUTTON_HANDLERS: Dict[str, Callable[[UpdateContext], Awaitable[None]]] = {
    BUTTON_ACCOUNT: handle_my_account,
    BUTTON_REFER: handle_refer,
    BUTTON_BUY: handle_buy_credits,
    BUTTON_HELP: handle_help,
    BUTTON_MEMBER_STATUS: handle_member_status,
    BUTTON_ADD_CREDIT: _enter_credit_grant,
    BUTTON_BROADCAST: _enter_broadcast,
}


def build_bot(settings: Settings, account_store, flow_store, telegram, lookup) -> BotContext:
    """
    Wires the bot context from its collaborators.
    Called once at startup (and by tests with in-memory stores).
    """
    ledger = CreditLedger(
        account_store,
        initial_credits=settings.INITIAL_CREDITS,
        referral_credit=settings.REFERRAL_CREDIT,
    )
    engine = FlowEngine(flow_store, FLOWS, timeout_minutes=settings.FLOW_TIMEOUT_MINUTES)
    return BotContext(
        settings=settings,
        ledger=ledger,
        engine=engine,
        telegram=telegram,
        lookup=lookup,
    )


async def dispatch_message(bot: BotContext, message: IncomingMessage):
    """
    Main dispatcher for incoming Telegram messages.
    
    Never raises: user-facing errors become chat replies, anything
    unexpected is logged and answered with a generic notice.
    """
    ctx = UpdateContext(bot=bot, message=message)
    
    with LogContext(user_id=message.user_id, chat_id=message.chat_id):
        command, _ = message.command()
        summary = f"/{command}" if command else f"{len(message.text)} chars"
        logger.info(f"📨 Dispatching message: {summary}")
        try:
            await route_message(ctx)
        except BotError as e:
            logger.error(f"Handler error [{e.code}]: {e.message}", exc_info=True)
            await _reply_failure(ctx)
        except Exception as e:
            logger.error(f"❌ Dispatcher error: {e}", exc_info=True)
            await _reply_failure(ctx)


async def route_message(ctx: UpdateContext):
    """
    Routes one message.
    
    Users in a flow bypass the access gate and top-level commands: every
    message goes to the flow (where /cancel aborts it).
    """
    engine = ctx.bot.engine
    
    state = await engine.active_flow(ctx.user_id)
    if state is not None and engine.is_expired(state):
        logger.info(f"Discarding expired flow {state.flow_id.value}")
        await engine.discard(ctx.user_id)
        await ctx.reply(FLOW_EXPIRED_MESSAGE)
        state = None
    
    if state is not None:
        await engine.handle(ctx, state)
        return
    
    if not await check_access(ctx):
        return
    
    await route_top_level(ctx)


async def route_top_level(ctx: UpdateContext):
    command, payload = ctx.message.command()
    
    if command == START_COMMAND:
        await handle_start(ctx, payload)
        return
    if command == CANCEL_COMMAND:
        await _nothing_to_cancel(ctx)
        return
    
    handler = BUTTON_HANDLERS.get(ctx.message.text.strip())
    if handler is not None:
        await handler(ctx)
        return
    
    await handle_lookup(ctx)


async def _reply_failure(ctx: UpdateContext):
    try:
        await ctx.reply(GENERIC_ERROR_MESSAGE)
    except DeliveryError:
        logger.warning("Could not deliver failure notice")
