"""
app/schemas/telegram.py

Purpose: Telegram webhook payload schemas and parsers

- Validates incoming updates from the Bot API
- Normalizes text messages into IncomingMessage
- Outbound message options (parse mode, reply keyboard, reply-to)
"""

from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field

from app.models.user import UserProfile


class TelegramUser(BaseModel):
    id: int
    is_bot: bool = False
    first_name: Optional[str] = None
    username: Optional[str] = None


class TelegramChat(BaseModel):
    id: int
    type: Optional[str] = None


class TelegramMessage(BaseModel):
    message_id: int
    from_user: Optional[TelegramUser] = Field(default=None, alias="from")
    chat: TelegramChat
    text: Optional[str] = None

    class Config:
        populate_by_name = True


class TelegramUpdate(BaseModel):
    update_id: int
    message: Optional[TelegramMessage] = None


class IncomingMessage(BaseModel):
    """
    Normalized inbound text message for internal processing.
    Button presses arrive as plain text carrying the button label.
    """
    user_id: int = Field(..., description="Sender's Telegram user id")
    chat_id: int = Field(..., description="Chat to reply into")
    message_id: int
    text: str
    first_name: Optional[str] = None
    username: Optional[str] = None

    @property
    def profile(self) -> UserProfile:
        return UserProfile(id=self.user_id, first_name=self.first_name, username=self.username)

    def command(self) -> Tuple[Optional[str], Optional[str]]:
        """
        Splits a bot command into (name, payload).

        "/start 123" -> ("start", "123"); "/cancel@MyBot" -> ("cancel", None);
        plain text -> (None, None).
        """
        text = self.text.strip()
        if not text.startswith("/"):
            return None, None
        head, _, rest = text.partition(" ")
        name = head[1:].split("@", 1)[0].lower()
        return name, rest.strip() or None


def parse_update(payload: dict) -> Optional[IncomingMessage]:
    """
    Parses a Telegram webhook update.

    Returns:
        IncomingMessage for text messages from users, None for anything else
        (edited messages, stickers, channel posts, bot senders).
    """
    update = TelegramUpdate.model_validate(payload)
    message = update.message
    if message is None or message.text is None or message.from_user is None:
        return None
    if message.from_user.is_bot:
        return None

    return IncomingMessage(
        user_id=message.from_user.id,
        chat_id=message.chat.id,
        message_id=message.message_id,
        text=message.text,
        first_name=message.from_user.first_name,
        username=message.from_user.username,
    )


class ParseMode(str, Enum):
    MARKDOWN = "Markdown"
    HTML = "HTML"


class MessageOptions(BaseModel):
    """Recognized options for outbound messages."""
    parse_mode: Optional[ParseMode] = None
    keyboard: Optional[List[List[str]]] = None
    reply_to_message_id: Optional[int] = None

    def to_payload(self) -> dict:
        """Bot API request fields for these options."""
        payload = {}
        if self.parse_mode:
            payload["parse_mode"] = self.parse_mode.value
        if self.keyboard:
            payload["reply_markup"] = {
                "keyboard": [[{"text": label} for label in row] for row in self.keyboard],
                "resize_keyboard": True,
            }
        if self.reply_to_message_id is not None:
            payload["reply_to_message_id"] = self.reply_to_message_id
        return payload
