"""
app/flow/handlers/upload.py

Handles: document attachments

- Independent of the session state
- Checks declared size, extension and quota before downloading
- Runs the content gate when the upload policy enables it
- Saves the file (never overwriting) with owner-only permissions
"""

import asyncio
from typing import Dict, Any

from app.core.exceptions import (
    ContentRejectedError,
    HookHostError,
    NameConflictError,
    QuotaExceededError,
    StorageError,
    TooLargeError,
    TransportError,
    UnsupportedFileTypeError,
    ValidationError,
)
from app.core.logging import get_logger, LogContext
from app.flow.context import FlowContext
from app.schemas.webhook import InboundMessage
from app.services import content_gate
from utils.constants import (
    CONTENT_REJECTED_MESSAGE,
    DOWNLOAD_FAILED_MESSAGE,
    FILE_TOO_LARGE_MESSAGE,
    GENERIC_ERROR_MESSAGE,
    INVALID_FILE_TYPE_MESSAGE,
    INVALID_UPLOAD_NAME_MESSAGE,
    NAME_CONFLICT_MESSAGE,
    QUOTA_EXCEEDED_MESSAGE,
    SAVE_FAILED_MESSAGE,
    UPLOAD_SUCCESS_MESSAGE,
)
from utils.file_utils import format_bytes, is_valid_filename, sanitize_filename
from utils.telegram_utils import create_text_response, escape

logger = get_logger(__name__)


async def handle_document(ctx: FlowContext, message: InboundMessage, **kwargs) -> Dict[str, Any]:
    """
    Stores a document the user sent.

    Flow:
    1. Sanitize the filename
    2. Check declared size, extension and quota
    3. Download the content
    4. Scan it (script policy only)
    5. Save it

    Returns:
        Response dict with the outcome
    """
    document = message.document
    user_id = message.user_id
    policy = ctx.files.policy
    name = sanitize_filename(document.file_name or "")

    with LogContext(user_id=user_id, file_name=name):
        logger.info("Processing document upload")

        try:
            if not is_valid_filename(name):
                raise ValidationError("Invalid filename", details={"name": document.file_name})

            if document.file_size is not None:
                ctx.files.check_size(document.file_size)

            if not policy.allows_extension(name):
                raise UnsupportedFileTypeError(details={"name": name})

            ctx.files.check_quota(user_id)

            content = await ctx.telegram.download_file(document.file_id)

            if policy.content_gate_enabled:
                found = content_gate.scan(content)
                if found:
                    logger.warning(f"Upload rejected by content gate: {', '.join(sorted(found))}")
                    raise ContentRejectedError(details={"functions": sorted(found)})

            # Up to MAX_FILE_SIZE bytes of disk I/O, kept off the event loop
            await asyncio.to_thread(ctx.files.save, user_id, name, content)

        except HookHostError as e:
            logger.info(f"Upload refused: {e.code}")
            return create_text_response(_error_message(ctx, e, name))

        return create_text_response(UPLOAD_SUCCESS_MESSAGE.format(name=escape(name)))


def _error_message(ctx: FlowContext, error: HookHostError, name: str) -> str:
    policy = ctx.files.policy
    decimals = ctx.settings.SIZE_DECIMALS

    if isinstance(error, ValidationError):
        return INVALID_UPLOAD_NAME_MESSAGE
    if isinstance(error, TooLargeError):
        return FILE_TOO_LARGE_MESSAGE.format(max_size=format_bytes(policy.max_file_size, decimals))
    if isinstance(error, UnsupportedFileTypeError):
        return INVALID_FILE_TYPE_MESSAGE.format(
            extensions=", ".join(f".{ext}" for ext in sorted(policy.allowed_extensions))
        )
    if isinstance(error, QuotaExceededError):
        return QUOTA_EXCEEDED_MESSAGE.format(max_files=policy.max_files)
    if isinstance(error, TransportError):
        return DOWNLOAD_FAILED_MESSAGE
    if isinstance(error, ContentRejectedError):
        return CONTENT_REJECTED_MESSAGE.format(functions=", ".join(error.details["functions"]))
    if isinstance(error, NameConflictError):
        return NAME_CONFLICT_MESSAGE.format(name=escape(name))
    if isinstance(error, StorageError):
        return SAVE_FAILED_MESSAGE
    return GENERIC_ERROR_MESSAGE
