"""
Smoke test for a running server

Simulates what Telegram sends to the webhook endpoint.
Replies go to the configured hosting bot, so use a real chat id
to see them.

Usage: python scripts/smoke_webhook.py [chat_id] [text]
"""

import asyncio
import sys
import time

import httpx


async def test_webhook(chat_id: int, text: str):
    """Post one text update to the local server"""

    url = "http://localhost:8000/api/v1/webhook"

    update = {
        "update_id": int(time.time()),
        "message": {
            "message_id": 1,
            "date": int(time.time()),
            "chat": {"id": chat_id, "type": "private"},
            "from": {"id": chat_id, "is_bot": False, "first_name": "Smoke"},
            "text": text,
        },
    }

    print(f"🧪 Testing webhook: {url}")
    print(f"📤 Sending update: {update}\n")

    try:
        async with httpx.AsyncClient() as client:
            response = await client.post(url, json=update, timeout=10.0)

            print(f"✅ Status: {response.status_code}")
            print(f"📥 Response: {response.text[:200]}")

            if response.status_code == 200:
                print("\n✅ Webhook is working!")
            else:
                print(f"\n❌ Webhook returned {response.status_code}")

    except httpx.HTTPError as e:
        print(f"❌ Error: {e}")


if __name__ == "__main__":
    chat = int(sys.argv[1]) if len(sys.argv) > 1 else 123456789
    message = sys.argv[2] if len(sys.argv) > 2 else "/start"
    asyncio.run(test_webhook(chat, message))
