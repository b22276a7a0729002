"""
app/flow/handlers/lookup.py

Handles: phone number lookups (any unrecognized top-level text)

- Validates the query before touching the ledger
- Debits one credit before calling the lookup API
- Refunds exactly once when the lookup fails
- Always finishes with the resulting credit balance
"""

from typing import List

from app.core.exceptions import DeliveryError, ExternalServiceError, InsufficientCreditsError
from app.core.logging import get_logger
from app.flow.context import UpdateContext
from app.services.ledger_service import LOOKUP_COST
from app.services.lookup_service import LookupRecord
from utils.constants import (
    BALANCE_MESSAGE,
    INSUFFICIENT_CREDITS_MESSAGE,
    INVALID_QUERY_MESSAGE,
    LOOKUP_REFUND_MESSAGE,
    LOOKUP_SUCCESS_MESSAGE,
    PROCESSING_MESSAGE,
    REGISTER_FIRST_MESSAGE,
)
from utils.telegram_utils import format_record
from utils.validation_utils import normalize_lookup_query

logger = get_logger(__name__)


async def handle_lookup(ctx: UpdateContext):
    """
    Runs one paid lookup for the sender.
    
    Flow:
    1. Reject malformed queries (no credit used)
    2. Require a registered account with at least one credit
    3. Show a processing indicator and debit one credit
    4. Call the lookup API; on failure refund and say so
    5. On success replace the indicator with a summary and send each record
    6. Report the remaining balance
    """
    query = normalize_lookup_query(ctx.message.text)
    if query is None:
        await ctx.reply(INVALID_QUERY_MESSAGE, menu=True)
        return
    
    ledger = ctx.bot.ledger
    account = await ledger.get_account(ctx.user_id)
    if account is None:
        await ctx.reply(REGISTER_FIRST_MESSAGE)
        return
    if account.credits < LOOKUP_COST:
        await ctx.reply(INSUFFICIENT_CREDITS_MESSAGE, markdown=True, menu=True)
        return
    
    indicator_id = await ctx.reply(PROCESSING_MESSAGE)
    
    try:
        try:
            await ledger.try_debit_for_lookup(ctx.user_id)
        except InsufficientCreditsError:
            # Another lookup spent the last credit since the balance check
            logger.info("Debit refused, balance already spent")
            await _replace_indicator(ctx, indicator_id, INSUFFICIENT_CREDITS_MESSAGE)
            return
        
        try:
            records = await ctx.bot.lookup.lookup(query)
        except ExternalServiceError as e:
            logger.info(f"Lookup failed ({e.message}), refunding")
            await ledger.refund_lookup(ctx.user_id)
            await _replace_indicator(ctx, indicator_id, LOOKUP_REFUND_MESSAGE)
            return
        except Exception:
            await ledger.refund_lookup(ctx.user_id)
            raise
        
        await _send_records(ctx, indicator_id, query, records)
    
    finally:
        final = await ledger.get_account(ctx.user_id)
        credits = final.credits if final else 0
        await ctx.reply(BALANCE_MESSAGE.format(credits=credits), markdown=True, menu=True)


async def _send_records(ctx: UpdateContext, indicator_id: int, query: str, records: List[LookupRecord]):
    total = len(records)
    await _replace_indicator(ctx, indicator_id, LOOKUP_SUCCESS_MESSAGE.format(count=total, number=query))
    for index, record in enumerate(records):
        await ctx.reply(format_record(record, index, total), markdown=True)


async def _replace_indicator(ctx: UpdateContext, indicator_id: int, text: str):
    """Edits the processing message in place, falling back to a new message."""
    options = ctx.options(markdown=True)
    try:
        await ctx.bot.telegram.edit_message_text(ctx.chat_id, indicator_id, text, options)
    except DeliveryError:
        await ctx.bot.telegram.send_message(ctx.chat_id, text, options)
