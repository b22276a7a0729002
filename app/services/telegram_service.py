"""
app/services/telegram_service.py

Purpose: Telegram Bot API client

- Sends, edits and deletes chat messages
- Checks channel membership for the access gate
- Raises DeliveryError / ExternalServiceError instead of returning status dicts
"""

import httpx
from typing import Any, Dict, Optional

from app.core.exceptions import DeliveryError, ExternalServiceError
from app.core.logging import get_logger
from app.schemas.telegram import MessageOptions

logger = get_logger(__name__)


class TelegramService:
    """Thin async wrapper over the Bot API methods the bot needs."""
    
    def __init__(
        self,
        token: str,
        api_base: str = "https://api.telegram.org",
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.base_url = f"{api_base.rstrip('/')}/bot{token}"
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._username: Optional[str] = None
    
    async def close(self):
        await self._client.aclose()
    
    async def _call(self, method: str, payload: Dict[str, Any]) -> Any:
        """
        Invokes a Bot API method.
        
        Raises:
            httpx.HTTPError: transport failure
            ValueError: Telegram answered ok=false
        """
        response = await self._client.post(f"{self.base_url}/{method}", json=payload)
        body = response.json()
        if not body.get("ok"):
            raise ValueError(
                f"Telegram {method} failed: {response.status_code} {body.get('description')}"
            )
        return body.get("result")
    
    async def send_message(
        self,
        chat_id: int,
        text: str,
        options: Optional[MessageOptions] = None
    ) -> int:
        """
        Sends a text message.
        
        Returns:
            message_id of the sent message
        
        Raises:
            DeliveryError: message could not be delivered (blocked bot, network, ...)
        """
        payload = {"chat_id": chat_id, "text": text}
        if options:
            payload.update(options.to_payload())
        
        try:
            result = await self._call("sendMessage", payload)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"sendMessage to {chat_id} failed: {e}")
            raise DeliveryError(f"Could not deliver message to {chat_id}", details=str(e)) from e
        
        return result["message_id"]
    
    async def edit_message_text(
        self,
        chat_id: int,
        message_id: int,
        text: str,
        options: Optional[MessageOptions] = None
    ):
        payload = {"chat_id": chat_id, "message_id": message_id, "text": text}
        if options:
            # Edited messages only accept inline keyboards
            payload.update(options.model_copy(update={"keyboard": None}).to_payload())
        
        try:
            await self._call("editMessageText", payload)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"editMessageText {chat_id}/{message_id} failed: {e}")
            raise DeliveryError(f"Could not edit message {message_id}", details=str(e)) from e
    
    async def delete_message(self, chat_id: int, message_id: int):
        try:
            await self._call("deleteMessage", {"chat_id": chat_id, "message_id": message_id})
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"deleteMessage {chat_id}/{message_id} failed: {e}")
            raise DeliveryError(f"Could not delete message {message_id}", details=str(e)) from e
    
    async def get_membership(self, channel: str, user_id: int) -> str:
        """
        Returns the user's membership status in a channel
        ("creator", "administrator", "member", "restricted", "left", "kicked").
        
        Raises:
            ExternalServiceError: membership could not be determined
        """
        try:
            result = await self._call("getChatMember", {"chat_id": channel, "user_id": user_id})
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"getChatMember {channel}/{user_id} failed: {e}")
            raise ExternalServiceError("Membership check failed", details=str(e)) from e
        
        return result.get("status", "")
    
    async def get_bot_username(self) -> str:
        """Bot username for referral deep links, cached after the first call."""
        if self._username is None:
            try:
                result = await self._call("getMe", {})
            except (httpx.HTTPError, ValueError) as e:
                raise ExternalServiceError("Could not load bot profile", details=str(e)) from e
            self._username = result["username"]
        return self._username
    
    async def set_webhook(self, url: str, secret_token: Optional[str] = None):
        payload = {"url": url, "allowed_updates": ["message"]}
        if secret_token:
            payload["secret_token"] = secret_token
        await self._call("setWebhook", payload)
        logger.info(f"Webhook set to {url}")
