"""
app/flow/dispatcher.py

Purpose: Central update dispatcher

- Receives normalized messages from the webhook endpoint
- Routes text by session state: continuation of a workflow, or a command
- Routes document attachments to the upload handler
- Sends responses through the hosting bot
- Resets the session whenever handling fails
"""

import asyncio
import os
from typing import Any, Awaitable, Callable, Dict, Optional

from app.core.exceptions import HookHostError, StorageError
from app.core.logging import get_logger, LogContext
from app.flow.context import FlowContext, get_context
from app.flow.handlers.files import (
    handle_delete_command,
    handle_delete_filename,
    handle_list,
    handle_upload_prompt,
)
from app.flow.handlers.upload import handle_document
from app.flow.handlers.webhook import (
    handle_filename_input,
    handle_token_input,
    handle_webhook_command,
)
from app.flow.handlers.welcome import handle_start
from app.flow.states import SessionState
from app.schemas.webhook import InboundMessage, TelegramUpdate, parse_telegram_update
from utils.constants import (
    CMD_DELETE,
    CMD_DELETE_WEBHOOK,
    CMD_GET_WEBHOOK_INFO,
    CMD_LIST,
    CMD_START,
    CMD_UPLOAD,
    CMD_WEBHOOK,
    DIRECTORY_FAILED_MESSAGE,
    GENERIC_ERROR_MESSAGE,
    RESPONSE_TOO_LARGE_MESSAGE,
    UNKNOWN_COMMAND_MESSAGE,
)
from utils.telegram_utils import create_text_response
from utils.validation_utils import normalize_command

logger = get_logger(__name__)

Handler = Callable[..., Awaitable[Dict[str, Any]]]

# Command layer (session state is NONE)
COMMAND_HANDLERS: Dict[str, Handler] = {
    CMD_START: handle_start,
    CMD_LIST: handle_list,
    CMD_UPLOAD: handle_upload_prompt,
    CMD_DELETE: handle_delete_command,
    CMD_WEBHOOK: handle_webhook_command,
    CMD_GET_WEBHOOK_INFO: handle_webhook_command,
    CMD_DELETE_WEBHOOK: handle_webhook_command,
}

# Continuation layer (session state is not NONE)
STATE_HANDLERS: Dict[SessionState, Handler] = {
    SessionState.AWAITING_WEBHOOK_TOKEN: handle_token_input,
    SessionState.AWAITING_WEBHOOK_FILENAME: handle_filename_input,
    SessionState.AWAITING_GETINFO_TOKEN: handle_token_input,
    SessionState.AWAITING_GETINFO_FILENAME: handle_filename_input,
    SessionState.AWAITING_DELETEHOOK_TOKEN: handle_token_input,
    SessionState.AWAITING_DELETEHOOK_FILENAME: handle_filename_input,
    SessionState.AWAITING_DELETE_FILENAME: handle_delete_filename,
}

_unrouted = [s.value for s in SessionState if s != SessionState.NONE and s not in STATE_HANDLERS]
if _unrouted:
    raise RuntimeError(f"No handler for states: {', '.join(_unrouted)}")


async def dispatch_update(update: TelegramUpdate, ctx: Optional[FlowContext] = None) -> Dict[str, Any]:
    """
    Entry point for one Telegram update.

    Returns:
        Status dict for the webhook response
    """
    message = parse_telegram_update(update)
    if message is None:
        logger.info(f"Update {update.update_id} does not contain a message, ignoring")
        return {"status": "ignored"}

    return await dispatch_message(message, ctx or get_context())


async def dispatch_message(message: InboundMessage, ctx: FlowContext) -> Dict[str, Any]:
    """
    Main dispatcher for incoming messages.

    Each update runs to completion; a user's updates are serialized by the
    session lock. Failures never escape: the user gets an error message and
    any workflow in progress is reset.
    """
    user_id = message.user_id

    with LogContext(user_id=user_id, chat_id=message.chat_id):
        if message.text is None and message.document is None:
            logger.info("Message has neither text nor document, ignoring")
            return {"status": "ignored"}

        async with ctx.sessions.lock(user_id):
            try:
                ctx.files.ensure_user_dir(user_id)
            except StorageError:
                await send_response(ctx, message, create_text_response(DIRECTORY_FAILED_MESSAGE))
                return {"status": "error", "error": "directory"}

            status = "success"

            if message.text is not None:
                response = await _run_safely(ctx, message, route_text)
                if response.get("error"):
                    status = "error"
                await send_response(ctx, message, response)

            if message.document is not None:
                response = await _run_safely(ctx, message, handle_document)
                if response.get("error"):
                    status = "error"
                await send_response(ctx, message, response)

        logger.info("Processed update")
        return {"status": status}


async def _run_safely(ctx: FlowContext, message: InboundMessage, handler: Handler) -> Dict[str, Any]:
    try:
        return await handler(ctx, message)
    except Exception as e:
        if isinstance(e, HookHostError):
            logger.error(f"❌ Handler error: {e.code}: {e.message}")
        else:
            logger.error(f"❌ Handler error: {e}", exc_info=True)
        _reset_quietly(ctx, message.user_id)
        response = create_text_response(GENERIC_ERROR_MESSAGE)
        response["error"] = str(e)
        return response


def _reset_quietly(ctx: FlowContext, user_id: int) -> None:
    try:
        ctx.sessions.reset(user_id, reason="handler error")
    except HookHostError as e:
        logger.error(f"Could not reset session: {e.message}")


async def route_text(ctx: FlowContext, message: InboundMessage) -> Dict[str, Any]:
    """
    Routes a text message.

    While a workflow is in progress the text is data for that workflow and
    never a command. Otherwise it is matched against the command vocabulary.
    """
    state = ctx.sessions.get(message.user_id)

    if state != SessionState.NONE:
        handler = STATE_HANDLERS[state]
        with LogContext(user_id=message.user_id, state=state.value):
            logger.info(f"🚦 Continuing workflow with {handler.__name__}")
            return await handler(ctx, message, state=state)

    command = normalize_command(message.text)
    handler = COMMAND_HANDLERS.get(command)
    if handler is None:
        logger.info("Unknown command")
        return create_text_response(UNKNOWN_COMMAND_MESSAGE)

    with LogContext(user_id=message.user_id, command=command):
        logger.info(f"📞 Calling handler: {handler.__name__}")
        return await handler(ctx, message, command=command)


async def send_response(ctx: FlowContext, message: InboundMessage, response: Dict[str, Any]):
    """
    Sends a handler response to the chat.

    Messages over INLINE_RESPONSE_LIMIT that carry an API payload are sent as
    a JSON document instead; the temporary file is always removed. Send
    failures are logged and dropped.
    """
    text = response.get("message", "")
    if not text:
        logger.warning("⚠️ Empty response message")
        return

    try:
        if len(text) <= ctx.settings.INLINE_RESPONSE_LIMIT:
            await ctx.telegram.send_message(message.chat_id, text, message.message_id)
            return

        payload = response.get("payload")
        if payload is None:
            await ctx.telegram.send_message(message.chat_id, RESPONSE_TOO_LARGE_MESSAGE, message.message_id)
            return

        await _send_as_document(ctx, message, payload, response.get("caption", ""))
    except Exception as e:
        logger.error(f"❌ Failed to send response: {e}", exc_info=True)


async def _send_as_document(ctx: FlowContext, message: InboundMessage, payload: str, caption: str):
    temp_path = ctx.temp_dir / f"{message.chat_id}_response.json"

    try:
        ctx.temp_dir.mkdir(parents=True, exist_ok=True)
        await asyncio.to_thread(temp_path.write_text, payload, encoding="utf-8")
    except OSError as e:
        logger.error(f"Failed to save response to {temp_path}: {e}")
        await ctx.telegram.send_message(message.chat_id, RESPONSE_TOO_LARGE_MESSAGE, message.message_id)
        return

    try:
        await ctx.telegram.send_document(message.chat_id, temp_path, caption, message.message_id)
    finally:
        try:
            os.remove(temp_path)
        except FileNotFoundError:
            pass
