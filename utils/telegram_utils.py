"""
utils/telegram_utils.py

Purpose: Telegram message builders

- HTML escaping for user-controlled text
- File listing text
- Bot API result rendering (masked JSON dump, webhook info summary)
"""

import copy
import html
import json
from typing import Any, Dict, List, Optional

from app.schemas.bot_api import ApiResult
from utils.constants import (
    API_RESPONSE_BLOCK,
    FILE_LIST_ENTRY,
    FILE_LIST_HEADER,
    NO_FILES_MESSAGE,
    WEBHOOK_INFO_MESSAGE,
)
from utils.time_utils import format_timestamp, from_epoch


def escape(text: Any) -> str:
    """Escapes text for Telegram's HTML parse mode."""
    return html.escape(str(text), quote=False)


def create_text_response(text: str) -> Dict[str, Any]:
    """
    Creates a plain reply for the dispatcher to send.
    """
    return {"message": text}


def build_file_list(files: List[Any], directory_url: str, decimals: int = 2) -> str:
    """
    Renders a user's files.

    Args:
        files: StoredFile entries
        directory_url: Public URL of the user's directory
        decimals: Precision for sizes

    Returns:
        Message text (NO_FILES_MESSAGE when the list is empty)
    """
    if not files:
        return NO_FILES_MESSAGE

    lines = [
        FILE_LIST_ENTRY.format(
            name=escape(f.name),
            size=f.display_size(decimals),
            modified=format_timestamp(f.modified_at),
        )
        for f in files
    ]
    return FILE_LIST_HEADER.format(directory=escape(directory_url)) + "\n".join(lines)


def mask_api_result(payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Returns a copy of a Bot API payload with the webhook URL masked.
    """
    masked = copy.deepcopy(payload)
    result = masked.get("result")
    if isinstance(result, dict) and isinstance(result.get("url"), str):
        result["url"] = result["url"].replace("https://", "https://[REDACTED]/")
    return masked


def format_api_result(payload: Dict[str, Any]) -> str:
    """Pretty-prints a Bot API payload."""
    return json.dumps(payload, indent=4, ensure_ascii=False)


def build_api_response(headline: str, result: ApiResult) -> Dict[str, Any]:
    """
    Builds a reply showing a Bot API result under a headline.

    The dispatcher falls back to sending `payload` as a JSON document with
    `caption` when the message is too long for one Telegram message.
    """
    payload = format_api_result(mask_api_result(result.to_payload()))
    return {
        "message": headline + API_RESPONSE_BLOCK.format(json=escape(payload)),
        "payload": payload,
        "caption": headline,
    }


def build_webhook_info(info: Optional[Dict[str, Any]]) -> str:
    """
    Summarizes a getWebhookInfo result.
    """
    info = info or {}
    url = info.get("url") or ""
    last_error_date = from_epoch(info.get("last_error_date"))

    return WEBHOOK_INFO_MESSAGE.format(
        status="Set" if url else "Not Set",
        url=escape(url) if url else "N/A",
        pending=info.get("pending_update_count", 0),
        last_error_message=escape(info.get("last_error_message") or "N/A"),
        last_error_date=format_timestamp(last_error_date),
    )
