"""
app/flow/gate.py

Purpose: Channel membership access gate

- Admins always pass
- Everyone else must be a member of the configured channel
- Fails closed when membership cannot be checked
"""

from app.core.exceptions import ExternalServiceError
from app.core.logging import get_logger
from app.flow.context import UpdateContext
from utils.telegram_utils import escape_markdown
from utils.constants import (
    ACCESS_DENIED_MESSAGE,
    ALLOWED_MEMBER_STATUSES,
    MEMBERSHIP_CHECK_FAILED_MESSAGE,
)

logger = get_logger(__name__)


async def check_access(ctx: UpdateContext) -> bool:
    """
    Checks whether the sender may use the bot, replying with a denial if not.
    
    Returns:
        True if downstream handlers may run
    """
    if ctx.is_admin:
        return True
    
    channel = ctx.bot.settings.CHANNEL_USERNAME
    try:
        status = await ctx.bot.telegram.get_membership(channel, ctx.user_id)
    except ExternalServiceError:
        logger.error(f"Membership check failed for {ctx.user_id}, denying")
        await ctx.reply(MEMBERSHIP_CHECK_FAILED_MESSAGE)
        return False
    
    if status not in ALLOWED_MEMBER_STATUSES:
        logger.info(f"Access denied, membership status: {status or 'unknown'}")
        await ctx.reply(ACCESS_DENIED_MESSAGE.format(channel=escape_markdown(channel)), markdown=True)
        return False
    
    return True
