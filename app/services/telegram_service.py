"""
app/services/telegram_service.py

Purpose: Telegram Bot API access

- Low-level Bot API calls with normalized results (BotApi)
- Outbound messages and documents from the hosting bot
- Downloading files users send to the hosting bot
"""

import asyncio

import httpx
from pathlib import Path
from typing import Any, Dict, Optional, Union

from app.core.config import settings
from app.core.exceptions import TransportError
from app.core.logging import get_logger
from app.schemas.bot_api import ApiResult

logger = get_logger(__name__)

ChatId = Union[int, str]


class BotApi:
    """
    Thin Bot API client usable with any bot token.

    Every call is one HTTP request; failures never raise, they come back as
    ApiResult(ok=False) with a description that does not contain the token.
    """

    def __init__(
        self,
        api_base: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.api_base = (api_base or settings.TELEGRAM_API_BASE).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.TELEGRAM_API_TIMEOUT
        self._transport = transport

    def client(self, timeout: Optional[float] = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=timeout if timeout is not None else self.timeout,
            transport=self._transport
        )

    def method_url(self, token: str, method: str) -> str:
        return f"{self.api_base}/bot{token}/{method}"

    def file_url(self, token: str, file_path: str) -> str:
        return f"{self.api_base}/file/bot{token}/{file_path}"

    async def call(
        self,
        token: str,
        method: str,
        data: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, Any]] = None
    ) -> ApiResult:
        """
        Calls a Bot API method.

        Args:
            token: Bot token
            method: Method name (setWebhook, sendMessage, ...)
            data: Parameters (sent as JSON, or as form fields when files are attached)
            files: Multipart file fields

        Returns:
            ApiResult
        """
        url = self.method_url(token, method)

        try:
            async with self.client() as client:
                if files:
                    response = await client.post(url, data=data or {}, files=files)
                else:
                    response = await client.post(url, json=data or {})
        except httpx.TimeoutException:
            logger.error(f"Bot API timeout calling {method}")
            return ApiResult.failure("Request timed out")
        except httpx.HTTPError as e:
            description = _scrub(str(e) or type(e).__name__, token)
            logger.error(f"Bot API connection error calling {method}: {description}")
            return ApiResult.failure(f"Connection error: {description}")

        return _parse_response(response, method, token)


def _scrub(text: str, token: str) -> str:
    if token:
        text = text.replace(token, "<token>")
    return text


def _message_id(result: ApiResult) -> Optional[int]:
    if isinstance(result.result, dict):
        return result.result.get("message_id")
    return None


def _parse_response(response: httpx.Response, method: str, token: str) -> ApiResult:
    payload = None
    try:
        payload = response.json()
    except ValueError:
        pass

    if response.status_code != 200:
        description = f"HTTP status code: {response.status_code}"
        if isinstance(payload, dict) and payload.get("description"):
            description += f" ({_scrub(str(payload['description']), token)})"
        logger.warning(f"Bot API {method} returned HTTP {response.status_code}")
        return ApiResult.failure(description, error_code=response.status_code)

    if not isinstance(payload, dict) or "ok" not in payload:
        logger.warning(f"Bot API {method} returned an unexpected body")
        return ApiResult.failure("Invalid response from Telegram API")

    return ApiResult(
        ok=bool(payload.get("ok")),
        result=payload.get("result"),
        description=payload.get("description"),
        error_code=payload.get("error_code"),
    )


class TelegramService:
    """Service for talking to users through the hosting bot"""

    def __init__(
        self,
        token: Optional[str] = None,
        api: Optional[BotApi] = None,
        download_timeout: Optional[float] = None
    ):
        self.token = token if token is not None else settings.HOSTING_BOT_TOKEN
        self.api = api or BotApi()
        self.download_timeout = download_timeout if download_timeout is not None else settings.DOWNLOAD_TIMEOUT

    def is_configured(self) -> bool:
        """Check if the hosting bot token is set"""
        return bool(self.token)

    async def send_message(
        self,
        chat_id: ChatId,
        text: str,
        reply_to_message_id: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Sends a text message (HTML parse mode).

        Returns:
            {"success": True/False, "message_id": ..., "error": "..."}
        """
        data = {
            "chat_id": chat_id,
            "text": text,
            "parse_mode": "HTML",
        }
        if reply_to_message_id is not None:
            data["reply_to_message_id"] = reply_to_message_id
            data["allow_sending_without_reply"] = True

        result = await self.api.call(self.token or "", "sendMessage", data)
        if not result.ok:
            logger.error(f"❌ sendMessage failed: {result.description}")
            return {"success": False, "error": result.description}

        return {
            "success": True,
            "message_id": _message_id(result)
        }

    async def send_document(
        self,
        chat_id: ChatId,
        file_path: Union[str, Path],
        caption: str = "",
        reply_to_message_id: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Sends a local file as a document.

        Returns:
            {"success": True/False, "message_id": ..., "error": "..."}
        """
        path = Path(file_path)
        data = {
            "chat_id": str(chat_id),
            "caption": caption,
            "parse_mode": "HTML",
        }
        if reply_to_message_id is not None:
            data["reply_to_message_id"] = str(reply_to_message_id)

        try:
            content = await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            logger.error(f"Cannot read document {path}: {e}")
            return {"success": False, "error": str(e)}

        result = await self.api.call(
            self.token or "",
            "sendDocument",
            data,
            files={"document": (path.name, content, "application/json")}
        )
        if not result.ok:
            logger.error(f"❌ sendDocument failed: {result.description}")
            return {"success": False, "error": result.description}

        return {
            "success": True,
            "message_id": _message_id(result)
        }

    async def download_file(self, file_id: str) -> bytes:
        """
        Downloads a file a user sent to the hosting bot.

        Args:
            file_id: Opaque file handle from the update

        Returns:
            File content

        Raises:
            TransportError: If the file cannot be resolved or fetched
        """
        result = await self.api.call(self.token or "", "getFile", {"file_id": file_id})
        if not result.ok or not isinstance(result.result, dict) or not result.result.get("file_path"):
            logger.error(f"getFile failed: {result.description}")
            raise TransportError("Failed to resolve the file", details={"description": result.description})

        url = self.api.file_url(self.token or "", result.result["file_path"])

        try:
            async with self.api.client(timeout=self.download_timeout) as client:
                response = await client.get(url)
        except httpx.TimeoutException:
            logger.error("File download timeout")
            raise TransportError("File download timed out")
        except httpx.HTTPError as e:
            logger.error(f"File download error: {type(e).__name__}")
            raise TransportError("Failed to download the file")

        if response.status_code != 200:
            logger.error(f"File download HTTP status code: {response.status_code}")
            raise TransportError(
                "Failed to download the file",
                details={"status_code": response.status_code}
            )

        return response.content
