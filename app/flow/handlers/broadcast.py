"""
app/flow/handlers/broadcast.py

Handles: Broadcast (admin only)

- Single step: any text is the message to send
- Recipients are snapshotted once when the broadcast starts
- Each recipient is attempted independently; failures are counted, not raised
"""

from typing import Any, Dict, Iterable, Tuple

from app.core.exceptions import DeliveryError
from app.core.logging import get_logger
from app.flow.context import UpdateContext
from app.flow.states import Complete, FlowDefinition, FlowId, StepResult
from utils.constants import BROADCAST_COMPLETE, BROADCAST_PROMPT, BROADCAST_STARTED

logger = get_logger(__name__)


async def collect_message(ctx: UpdateContext, text: str, scratch: Dict[str, Any]) -> StepResult:
    return Complete({**scratch, "text": text})


async def fan_out(telegram, recipients: Iterable[int], text: str) -> Tuple[int, int]:
    """
    Sends `text` to every recipient.
    
    Returns:
        (sent, failed) counts
    """
    sent = failed = 0
    for user_id in recipients:
        try:
            await telegram.send_message(user_id, text)
            sent += 1
        except DeliveryError:
            failed += 1
    return sent, failed


async def run_broadcast(ctx: UpdateContext, result: Dict[str, Any]):
    recipients = await ctx.bot.ledger.list_account_ids()
    logger.info(f"Broadcast started to {len(recipients)} recipients")
    await ctx.reply(BROADCAST_STARTED.format(count=len(recipients)))
    
    sent, failed = await fan_out(ctx.bot.telegram, recipients, result["text"])
    
    logger.info(f"Broadcast complete: sent={sent} failed={failed}")
    await ctx.reply(BROADCAST_COMPLETE.format(sent=sent, failed=failed), markdown=True, menu=True)


BROADCAST_FLOW = FlowDefinition(
    flow_id=FlowId.BROADCAST,
    entry_prompt=BROADCAST_PROMPT,
    steps=[collect_message],
    on_complete=run_broadcast,
)
