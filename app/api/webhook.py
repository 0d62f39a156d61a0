"""
app/api/webhook.py

Purpose: Telegram webhook endpoint for the hosting bot

- Receives updates pushed by Telegram
- Passes control to the flow dispatcher
- Always acknowledges well-formed updates so Telegram does not redeliver them
"""

from fastapi import APIRouter

from app.core.logging import get_logger
from app.flow.dispatcher import dispatch_update
from app.schemas.response import WebhookAck
from app.schemas.webhook import TelegramUpdate

logger = get_logger(__name__)
router = APIRouter()


@router.post("/webhook", response_model=WebhookAck)
async def webhook_handler(update: TelegramUpdate) -> WebhookAck:
    """
    Webhook endpoint for hosting bot updates.

    Failures are reported to the user in chat, never to Telegram: a non-200
    status would only make Telegram retry the same update.
    """
    logger.info(f"📱 Telegram update received: {update.update_id}")

    try:
        result = await dispatch_update(update)
    except Exception as e:
        logger.error(f"Webhook error: {e}", exc_info=True)
        return WebhookAck(status="error", message="Update could not be processed")

    status = result.get("status", "success")
    if status == "ignored":
        return WebhookAck(status=status, message="Update ignored")
    return WebhookAck(status=status)


@router.get("/webhook")
async def webhook_verification():
    """
    Status check for the webhook endpoint
    """
    return {"status": "ok", "message": "Webhook endpoint is active"}
