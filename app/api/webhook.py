"""
app/api/webhook.py

Purpose: Telegram webhook endpoint

- Receives updates pushed by the Bot API
- Verifies the optional secret token header
- Parses and normalizes text messages
- Passes control to the flow dispatcher
- Always acknowledges with 200 so Telegram never redelivers an update
"""

from typing import Optional

from fastapi import APIRouter, Header, HTTPException, Request

from app.core.logging import get_logger
from app.flow.dispatcher import dispatch_message
from app.schemas.response import WebhookAck
from app.schemas.telegram import parse_update

logger = get_logger(__name__)
router = APIRouter()

ACK = WebhookAck()


@router.post("/webhook", response_model=WebhookAck)
async def webhook_handler(
    request: Request,
    x_telegram_bot_api_secret_token: Optional[str] = Header(None),
):
    """
    Telegram webhook endpoint.
    
    Processing errors are logged and swallowed here; a non-200 answer would
    make Telegram retry the update and repeat its side effects.
    """
    bot = request.app.state.bot
    
    expected_secret = bot.settings.WEBHOOK_SECRET
    if expected_secret and x_telegram_bot_api_secret_token != expected_secret:
        logger.warning("Webhook called with invalid secret token")
        raise HTTPException(status_code=403, detail="Invalid secret token")
    
    try:
        payload = await request.json()
        message = parse_update(payload)
    except Exception as e:
        logger.error(f"Failed to parse webhook payload: {e}")
        return ACK
    
    if message is None:
        logger.debug("Ignoring non-text update")
        return ACK
    
    try:
        await dispatch_message(bot, message)
    except Exception as e:
        logger.error(f"Webhook error: {e}", exc_info=True)
    
    return ACK


@router.get("/webhook")
async def webhook_verification():
    """
    Webhook liveness check.
    """
    return {"status": "ok", "message": "Webhook endpoint is active"}
