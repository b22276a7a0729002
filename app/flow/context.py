"""
app/flow/context.py

Purpose: Explicit bot and per-update context

- BotContext: configuration and collaborators wired once at startup
- UpdateContext: one inbound message plus reply helpers
"""

from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

from app.core.config import Settings
from app.core.exceptions import DeliveryError
from app.core.logging import get_logger
from app.schemas.telegram import IncomingMessage, MessageOptions, ParseMode
from utils.telegram_utils import main_menu_keyboard

if TYPE_CHECKING:
    from app.flow.engine import FlowEngine
    from app.services.ledger_service import CreditLedger
    from app.services.lookup_service import LookupClient
    from app.services.telegram_service import TelegramService

logger = get_logger(__name__)


@dataclass
class BotContext:
    settings: Settings
    ledger: "CreditLedger"
    engine: "FlowEngine"
    telegram: "TelegramService"
    lookup: "LookupClient"
    
    def is_admin(self, user_id: int) -> bool:
        return user_id in self.settings.admin_ids


@dataclass
class UpdateContext:
    bot: BotContext
    message: IncomingMessage
    
    @property
    def user_id(self) -> int:
        return self.message.user_id
    
    @property
    def chat_id(self) -> int:
        return self.message.chat_id
    
    @property
    def is_admin(self) -> bool:
        return self.bot.is_admin(self.user_id)
    
    def options(self, markdown: bool = False, menu: bool = False) -> MessageOptions:
        """Message options; `menu` attaches the caller's main keyboard."""
        return MessageOptions(
            parse_mode=ParseMode.MARKDOWN if markdown else None,
            keyboard=main_menu_keyboard(self.is_admin) if menu else None,
        )
    
    async def reply(self, text: str, markdown: bool = False, menu: bool = False) -> int:
        return await self.bot.telegram.send_message(
            self.chat_id, text, self.options(markdown=markdown, menu=menu)
        )
    
    async def notify(
        self,
        chat_id: int,
        text: str,
        options: Optional[MessageOptions] = None
    ) -> bool:
        """
        Best-effort message to another user.
        
        Returns:
            False if delivery failed (logged, never raised)
        """
        try:
            await self.bot.telegram.send_message(chat_id, text, options)
            return True
        except DeliveryError as e:
            logger.warning(f"Best-effort notification to {chat_id} failed: {e.message}")
            return False
