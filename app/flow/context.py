"""
app/flow/context.py

Purpose: Services available to flow handlers

- Bundles session store, file store, hosting bot client and webhook service
- Built once from settings; replaceable for tests
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import httpx

from app.core.config import Settings, settings
from app.core.exceptions import StorageError
from app.core.logging import get_logger
from app.services.file_store import FileStore, policy_from_settings
from app.services.session_service import SessionStore
from app.services.telegram_service import BotApi, TelegramService
from app.services.webhook_service import BotApiClient, WebhookService

logger = get_logger(__name__)


@dataclass
class FlowContext:
    settings: Settings
    sessions: SessionStore
    files: FileStore
    telegram: TelegramService
    webhooks: WebhookService
    temp_dir: Path

    def ensure_directories(self) -> None:
        """
        Creates the storage directories.

        Raises:
            StorageError: If any of them cannot be created
        """
        for directory in (self.files.root, self.sessions.states_dir, self.temp_dir):
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                logger.error(f"Failed to create directory {directory}: {e}")
                raise StorageError(f"Failed to create directory {directory}")


def build_context(
    config: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> FlowContext:
    """
    Builds the flow services from settings.

    Args:
        config: Settings (defaults to the global settings)
        transport: Optional httpx transport for every Bot API call
    """
    config = config or settings

    api = BotApi(
        api_base=config.TELEGRAM_API_BASE,
        timeout=config.TELEGRAM_API_TIMEOUT,
        transport=transport
    )
    files = FileStore(config.USER_FILES_DIR, policy_from_settings(config))

    return FlowContext(
        settings=config,
        sessions=SessionStore(config.STATES_DIR),
        files=files,
        telegram=TelegramService(
            token=config.HOSTING_BOT_TOKEN or "",
            api=api,
            download_timeout=config.DOWNLOAD_TIMEOUT
        ),
        webhooks=WebhookService(
            files,
            client=BotApiClient(api),
            public_base_url=config.PUBLIC_BASE_URL
        ),
        temp_dir=Path(config.TEMP_DIR),
    )


_context: Optional[FlowContext] = None


def get_context() -> FlowContext:
    """Returns the process-wide flow context, building it on first use."""
    global _context
    if _context is None:
        _context = build_context()
    return _context


def set_context(context: Optional[FlowContext]) -> None:
    global _context
    _context = context
