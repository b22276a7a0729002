"""
app/flow/handlers/credit_grant.py

Handles: Credit-grant wizard (admin only)

- Step 1: target user id (must be numeric and registered)
- Step 2: positive credit amount
- Completion: grant credits, confirm to the admin, notify the target
"""

from typing import Any, Dict

from app.core.exceptions import AccountNotFoundError
from app.core.logging import get_logger
from app.flow.context import UpdateContext
from app.flow.states import Advance, Complete, FlowDefinition, FlowId, Reject, StepResult
from app.schemas.telegram import MessageOptions, ParseMode
from utils.constants import (
    CREDIT_GRANT_ASK_AMOUNT,
    CREDIT_GRANT_INVALID_AMOUNT,
    CREDIT_GRANT_INVALID_ID,
    CREDIT_GRANT_NOTIFICATION,
    CREDIT_GRANT_PROMPT,
    CREDIT_GRANT_SUCCESS,
    CREDIT_GRANT_TARGET_GONE,
    CREDIT_GRANT_USER_NOT_FOUND,
)
from utils.validation_utils import parse_int, parse_positive_int

logger = get_logger(__name__)


async def ask_target_id(ctx: UpdateContext, text: str, scratch: Dict[str, Any]) -> StepResult:
    target_id = parse_int(text)
    if target_id is None:
        return Reject(CREDIT_GRANT_INVALID_ID)
    
    if await ctx.bot.ledger.get_account(target_id) is None:
        return Reject(CREDIT_GRANT_USER_NOT_FOUND)
    
    return Advance(
        scratch={**scratch, "target_id": target_id},
        reply=CREDIT_GRANT_ASK_AMOUNT.format(target_id=target_id)
    )


async def ask_amount(ctx: UpdateContext, text: str, scratch: Dict[str, Any]) -> StepResult:
    amount = parse_positive_int(text)
    if amount is None:
        return Reject(CREDIT_GRANT_INVALID_AMOUNT)
    
    return Complete({**scratch, "amount": amount})


async def grant_credits(ctx: UpdateContext, result: Dict[str, Any]):
    """
    Applies the grant. The target notification is best-effort and never
    undoes the grant.
    """
    target_id = result["target_id"]
    amount = result["amount"]
    
    try:
        await ctx.bot.ledger.admin_grant(target_id, amount)
    except AccountNotFoundError:
        logger.warning(f"Grant target {target_id} disappeared before completion")
        await ctx.reply(CREDIT_GRANT_TARGET_GONE.format(target_id=target_id), menu=True)
        return
    
    logger.info(f"Admin {ctx.user_id} granted {amount} credits to {target_id}")
    await ctx.reply(CREDIT_GRANT_SUCCESS.format(amount=amount, target_id=target_id), menu=True)
    
    await ctx.notify(
        target_id,
        CREDIT_GRANT_NOTIFICATION.format(amount=amount),
        MessageOptions(parse_mode=ParseMode.MARKDOWN)
    )


CREDIT_GRANT_FLOW = FlowDefinition(
    flow_id=FlowId.CREDIT_GRANT,
    entry_prompt=CREDIT_GRANT_PROMPT,
    steps=[ask_target_id, ask_amount],
    on_complete=grant_credits,
)
