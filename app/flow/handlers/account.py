"""
app/flow/handlers/account.py

Handles: top-level menu buttons

- My Account, Refer & Earn, Buy Credits, Help
- Member Status (admin only)
"""

from app.core.logging import get_logger
from app.flow.context import UpdateContext
from utils.constants import (
    ACCOUNT_MESSAGE,
    BUY_CREDITS_MESSAGE,
    HELP_MESSAGE,
    MEMBER_STATUS_MESSAGE,
    REFER_MESSAGE,
    REGISTER_FIRST_MESSAGE,
)
from utils.telegram_utils import escape_markdown, format_date

logger = get_logger(__name__)


async def handle_my_account(ctx: UpdateContext):
    account = await ctx.bot.ledger.get_account(ctx.user_id)
    if account is None:
        await ctx.reply(REGISTER_FIRST_MESSAGE)
        return
    
    await ctx.reply(
        ACCOUNT_MESSAGE.format(
            name=escape_markdown(ctx.message.first_name),
            credits=account.credits,
            searches=account.searches,
            joined=format_date(account.join_date)
        ),
        markdown=True,
        menu=True
    )


async def handle_refer(ctx: UpdateContext):
    account = await ctx.bot.ledger.get_account(ctx.user_id)
    if account is None:
        await ctx.reply(REGISTER_FIRST_MESSAGE)
        return
    
    username = await ctx.bot.telegram.get_bot_username()
    settings = ctx.bot.settings
    await ctx.reply(
        REFER_MESSAGE.format(
            referrals=account.referrals,
            credits_earned=account.credits_earned,
            initial_credits=settings.INITIAL_CREDITS,
            referral_credit=settings.REFERRAL_CREDIT,
            link=f"https://t.me/{username}?start={ctx.user_id}"
        ),
        markdown=True,
        menu=True
    )


async def handle_buy_credits(ctx: UpdateContext):
    await ctx.reply(
        BUY_CREDITS_MESSAGE.format(support=escape_markdown(ctx.bot.settings.SUPPORT_ADMIN)),
        markdown=True,
        menu=True
    )


async def handle_help(ctx: UpdateContext):
    settings = ctx.bot.settings
    await ctx.reply(
        HELP_MESSAGE.format(
            referral_credit=settings.REFERRAL_CREDIT,
            support=escape_markdown(settings.SUPPORT_ADMIN)
        ),
        markdown=True,
        menu=True
    )


async def handle_member_status(ctx: UpdateContext):
    if not ctx.is_admin:
        return
    
    total = await ctx.bot.ledger.count_accounts()
    logger.info(f"Member status requested: {total} accounts")
    await ctx.reply(MEMBER_STATUS_MESSAGE.format(total=total), markdown=True, menu=True)
