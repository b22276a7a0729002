"""
Posts a fake Telegram update to a running bot, for manual checks.

Usage:
    python scripts/simulate_update.py "/start" [user_id]
"""

import asyncio
import sys
import time

import httpx

URL = "http://localhost:8000/api/v1/webhook"


async def simulate(text: str, user_id: int):
    update = {
        "update_id": int(time.time()),
        "message": {
            "message_id": int(time.time()) % 100000,
            "from": {"id": user_id, "is_bot": False, "first_name": "Test", "username": "tester"},
            "chat": {"id": user_id, "type": "private"},
            "text": text,
        },
    }
    
    print(f"🧪 Posting update to {URL}: {text!r}")
    async with httpx.AsyncClient() as client:
        response = await client.post(URL, json=update, timeout=30.0)
    
    print(f"✅ Status: {response.status_code}")
    print(f"📥 Response: {response.text[:200]}")


if __name__ == "__main__":
    text = sys.argv[1] if len(sys.argv) > 1 else "/start"
    user_id = int(sys.argv[2]) if len(sys.argv) > 2 else 100001
    asyncio.run(simulate(text, user_id))
