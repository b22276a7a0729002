"""
Registers the bot's webhook with Telegram.

Usage:
    python scripts/set_webhook.py https://bot.example.com
"""

import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv

sys.path.insert(0, str(Path(__file__).parent.parent))

load_dotenv()

from app.core.config import settings
from app.core.logging import setup_logging, get_logger
from app.services.telegram_service import TelegramService

setup_logging()
logger = get_logger("scripts.set_webhook")


async def main(base_url: str):
    telegram = TelegramService(settings.BOT_TOKEN, api_base=settings.TELEGRAM_API_BASE)
    url = f"{base_url.rstrip('/')}{settings.API_PREFIX}/webhook"
    try:
        await telegram.set_webhook(url, secret_token=settings.WEBHOOK_SECRET)
        logger.info(f"✅ Webhook registered: {url}")
    finally:
        await telegram.close()


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("Usage: python scripts/set_webhook.py <public base url>")
        sys.exit(1)
    asyncio.run(main(sys.argv[1]))
