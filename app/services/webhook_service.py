"""
app/services/webhook_service.py

Purpose: Webhook management for users' own bots

- Derives the public URL of an uploaded file
- Registers, queries and removes webhooks through the Bot API
- Refuses registration locally when the file does not exist
"""

from typing import Optional, Union

from app.core.config import settings
from app.core.exceptions import NotFoundError, ValidationError
from app.core.logging import get_logger
from app.schemas.bot_api import ApiResult
from app.services.file_store import FileStore
from app.services.telegram_service import BotApi
from utils.file_utils import is_valid_filename, sanitize_filename

logger = get_logger(__name__)

UserId = Union[int, str]


class BotApiClient:
    """
    Webhook calls against a user-owned bot, identified only by its token.
    """

    def __init__(self, api: Optional[BotApi] = None):
        self.api = api or BotApi()

    async def set_webhook(self, token: str, url: str) -> ApiResult:
        logger.info("Calling setWebhook")
        return await self.api.call(token, "setWebhook", {"url": url})

    async def get_webhook_info(self, token: str) -> ApiResult:
        logger.info("Calling getWebhookInfo")
        return await self.api.call(token, "getWebhookInfo")

    async def delete_webhook(self, token: str) -> ApiResult:
        logger.info("Calling deleteWebhook")
        return await self.api.call(token, "deleteWebhook")


class WebhookService:
    """
    Ties webhook registration to the user's file store.
    """

    def __init__(
        self,
        files: FileStore,
        client: Optional[BotApiClient] = None,
        public_base_url: Optional[str] = None
    ):
        self.files = files
        self.client = client or BotApiClient()
        self.public_base_url = (public_base_url or settings.PUBLIC_BASE_URL).rstrip("/")

    def derive_url(self, user_id: UserId, filename: str) -> str:
        """
        Public URL under which a user's file is served.

        Raises:
            ValidationError: If the filename sanitizes to nothing usable
        """
        safe_name = sanitize_filename(filename)
        if not is_valid_filename(safe_name):
            raise ValidationError("Invalid filename", details={"name": filename})
        return f"{self.public_base_url}/{int(user_id)}/{safe_name}"

    def require_file(self, user_id: UserId, filename: str) -> str:
        """
        Returns the sanitized filename if the user has that file.

        Raises:
            ValidationError: Empty or unusable filename
            NotFoundError: The file is not in the user's directory
        """
        safe_name = sanitize_filename(filename)
        if not is_valid_filename(safe_name):
            raise ValidationError("Invalid filename", details={"name": filename})
        if not self.files.exists(user_id, safe_name):
            raise NotFoundError(f"File {safe_name} not found", details={"name": safe_name})
        return safe_name

    async def register(self, user_id: UserId, token: str, filename: str) -> ApiResult:
        """
        Points the user's bot at one of their files.

        Raises:
            NotFoundError: Before any network call, if the file does not exist
        """
        safe_name = self.require_file(user_id, filename)
        url = self.derive_url(user_id, safe_name)
        result = await self.client.set_webhook(token, url)
        logger.info(f"setWebhook for {safe_name}: ok={result.ok}")
        return result

    async def query(self, token: str) -> ApiResult:
        return await self.client.get_webhook_info(token)

    async def unregister(self, token: str) -> ApiResult:
        return await self.client.delete_webhook(token)
