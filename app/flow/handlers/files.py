"""
app/flow/handlers/files.py

Handles: /list, /upload, /delete and the delete filename step

- Lists the user's files with size and modification time
- Explains upload limits
- Opens the delete workflow with the current file list
- Deletes the named file and returns the session to none
"""

from typing import Dict, Any

from app.core.exceptions import NotFoundError, StorageError
from app.core.logging import get_logger
from app.flow.context import FlowContext
from app.flow.states import SessionState
from app.schemas.webhook import InboundMessage
from utils.constants import (
    CMD_DELETE,
    DELETE_FAILED_MESSAGE,
    DELETE_PROMPT_MESSAGE,
    FILE_DELETED_MESSAGE,
    FILE_NOT_FOUND_MESSAGE,
    INVALID_FILENAME_MESSAGE,
    NO_FILES_MESSAGE,
    UPLOAD_GATE_HINT,
    UPLOAD_PROMPT_MESSAGE,
    UPLOAD_TYPES_HINT,
)
from utils.file_utils import format_bytes, is_valid_filename, sanitize_filename
from utils.telegram_utils import build_file_list, create_text_response, escape

logger = get_logger(__name__)


def render_file_list(ctx: FlowContext, user_id: int) -> str:
    directory_url = f"{ctx.webhooks.public_base_url}/{user_id}"
    return build_file_list(
        ctx.files.list(user_id),
        directory_url,
        decimals=ctx.settings.SIZE_DECIMALS
    )


async def handle_list(ctx: FlowContext, message: InboundMessage, **kwargs) -> Dict[str, Any]:
    logger.info("Listing files")
    return create_text_response(render_file_list(ctx, message.user_id))


async def handle_upload_prompt(ctx: FlowContext, message: InboundMessage, **kwargs) -> Dict[str, Any]:
    policy = ctx.files.policy
    text = UPLOAD_PROMPT_MESSAGE.format(
        max_size=format_bytes(policy.max_file_size, ctx.settings.SIZE_DECIMALS),
        max_files=policy.max_files,
    )
    if policy.allowed_extensions:
        text += UPLOAD_TYPES_HINT.format(
            extensions=", ".join(f".{ext}" for ext in sorted(policy.allowed_extensions))
        )
    if policy.content_gate_enabled:
        text += UPLOAD_GATE_HINT
    return create_text_response(text)


async def handle_delete_command(ctx: FlowContext, message: InboundMessage, **kwargs) -> Dict[str, Any]:
    """
    Opens the delete workflow, unless there is nothing to delete.
    """
    file_list = render_file_list(ctx, message.user_id)
    if file_list == NO_FILES_MESSAGE:
        return create_text_response(file_list)

    ctx.sessions.set(
        message.user_id,
        SessionState.AWAITING_DELETE_FILENAME,
        validate_transition=True
    )
    return create_text_response(DELETE_PROMPT_MESSAGE.format(file_list=file_list))


async def handle_delete_filename(ctx: FlowContext, message: InboundMessage, **kwargs) -> Dict[str, Any]:
    """
    Deletes the named file. The session ends whatever the outcome.
    """
    user_id = message.user_id
    name = sanitize_filename((message.text or "").strip())

    try:
        if not is_valid_filename(name):
            logger.warning("Empty filename for delete")
            return create_text_response(INVALID_FILENAME_MESSAGE.format(command=CMD_DELETE))

        try:
            ctx.files.delete(user_id, name)
        except NotFoundError:
            return create_text_response(FILE_NOT_FOUND_MESSAGE.format(name=escape(name)))
        except StorageError:
            return create_text_response(DELETE_FAILED_MESSAGE.format(name=escape(name)))

        return create_text_response(FILE_DELETED_MESSAGE.format(name=escape(name)))
    finally:
        ctx.sessions.reset(user_id, reason="delete finished")
