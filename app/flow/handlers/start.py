"""
app/flow/handlers/start.py

Handles: /start [referrer id]

- Registers the user on first contact (initial credits)
- Pays the referrer named in the deep-link payload
- Alerts admins about new members
- Sends the welcome summary with the main menu
"""

from typing import Optional

from app.core.logging import get_logger
from app.flow.context import UpdateContext
from app.models.user import Account
from app.schemas.telegram import MessageOptions, ParseMode
from utils.constants import (
    NEW_MEMBER_ALERT,
    NEW_MEMBER_WELCOME_MESSAGE,
    REFERRAL_RECEIVED_MESSAGE,
    WELCOME_MESSAGE,
)
from utils.telegram_utils import escape_markdown, format_date

logger = get_logger(__name__)

MARKDOWN = MessageOptions(parse_mode=ParseMode.MARKDOWN)


async def handle_start(ctx: UpdateContext, payload: Optional[str] = None):
    """
    Handles the /start command.
    
    Args:
        ctx: Update context
        payload: Deep-link payload, a referrer's user id when present
    """
    ledger = ctx.bot.ledger
    account, is_new, referrer = await ledger.register_with_referral(ctx.message.profile, payload)
    
    if is_new:
        logger.info(f"New member {ctx.user_id} (referrer payload: {payload})")
        if referrer is not None:
            await ctx.notify(
                referrer.id,
                REFERRAL_RECEIVED_MESSAGE.format(credits=referrer.credits),
                MARKDOWN
            )
        await _alert_admins(ctx, account)
        await ctx.reply(
            NEW_MEMBER_WELCOME_MESSAGE.format(
                name=escape_markdown(account.first_name),
                credits=account.credits
            ),
            markdown=True
        )
    
    await ctx.reply(
        WELCOME_MESSAGE.format(
            credits=account.credits,
            searches=account.searches,
            joined=format_date(account.join_date)
        ),
        markdown=True,
        menu=True
    )


async def _alert_admins(ctx: UpdateContext, account: Account):
    alert = NEW_MEMBER_ALERT.format(
        name=escape_markdown(account.first_name),
        user_id=account.id
    )
    if account.username:
        alert += f"\nUsername: @{escape_markdown(account.username)}"
    
    for admin_id in sorted(ctx.bot.settings.admin_ids):
        await ctx.notify(admin_id, alert, MARKDOWN)
