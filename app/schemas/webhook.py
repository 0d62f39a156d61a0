"""
app/schemas/webhook.py

Purpose: Telegram webhook payload schemas and parsers

- Validates incoming Telegram updates
- Normalizes them into InboundMessage
- Ensures predictable request handling
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class TelegramUser(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    is_bot: bool = False
    first_name: Optional[str] = None
    username: Optional[str] = None


class TelegramChat(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    type: Optional[str] = None


class TelegramDocument(BaseModel):
    model_config = ConfigDict(extra="ignore")

    file_id: str
    file_unique_id: Optional[str] = None
    file_name: Optional[str] = None
    mime_type: Optional[str] = None
    file_size: Optional[int] = None


class TelegramMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message_id: Optional[int] = None
    chat: TelegramChat
    from_user: Optional[TelegramUser] = Field(default=None, alias="from")
    text: Optional[str] = None
    caption: Optional[str] = None
    document: Optional[TelegramDocument] = None


class TelegramUpdate(BaseModel):
    """
    Subset of a Telegram Update the bot reacts to.
    Other update kinds (edited messages, callbacks, ...) are accepted and ignored.
    """
    model_config = ConfigDict(extra="ignore")

    update_id: int
    message: Optional[TelegramMessage] = None


class InboundMessage(BaseModel):
    """
    Normalized message format for internal processing
    """
    user_id: int = Field(..., description="Sender's Telegram user ID")
    chat_id: int = Field(..., description="Chat to reply into")
    message_id: Optional[int] = Field(default=None, description="Message to reply to")
    text: Optional[str] = Field(default=None, description="Message text content")
    document: Optional[TelegramDocument] = Field(default=None, description="Attached document")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "user_id": 123456789,
            "chat_id": 123456789,
            "message_id": 42,
            "text": "/list"
        }
    })


def parse_telegram_update(update: TelegramUpdate) -> Optional[InboundMessage]:
    """
    Extracts the message the bot should handle from an update.

    Returns:
        InboundMessage, or None for updates without a user message
    """
    message = update.message
    if message is None or message.from_user is None:
        return None

    return InboundMessage(
        user_id=message.from_user.id,
        chat_id=message.chat.id,
        message_id=message.message_id,
        text=message.text,
        document=message.document,
    )
