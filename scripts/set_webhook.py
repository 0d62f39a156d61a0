"""
Register the hosting bot's own webhook

Points Telegram at this server's update endpoint:
    {PUBLIC_APP_URL}{API_PREFIX}/webhook

Usage:
    python scripts/set_webhook.py           # register
    python scripts/set_webhook.py --info    # show current webhook
    python scripts/set_webhook.py --delete  # remove webhook
"""

import asyncio
import json
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from app.core.config import settings
from app.services.webhook_service import BotApiClient


async def main(argv):
    token = settings.HOSTING_BOT_TOKEN
    if not token:
        print("❌ HOSTING_BOT_TOKEN not set")
        return 1

    client = BotApiClient()

    if "--info" in argv:
        result = await client.get_webhook_info(token)
    elif "--delete" in argv:
        result = await client.delete_webhook(token)
    else:
        if not settings.PUBLIC_APP_URL:
            print("❌ PUBLIC_APP_URL not set")
            return 1
        url = f"{settings.PUBLIC_APP_URL}{settings.API_PREFIX}/webhook"
        print(f"🔗 Registering webhook: {url}")
        result = await client.set_webhook(token, url)

    print(json.dumps(result.to_payload(), indent=4, ensure_ascii=False))

    if result.ok:
        print("\n✅ Done")
        return 0

    print(f"\n❌ Telegram returned an error: {result.description}")
    return 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main(sys.argv[1:])))
