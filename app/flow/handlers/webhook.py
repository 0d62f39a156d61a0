"""
app/flow/handlers/webhook.py

Handles: /webhook, /getwebhookinfo, /deletewebhook

All three are two-step workflows of the same shape:
1. The command prompts for the user's bot token.
2. The token step stores the token as the pending secret and asks for a filename.
3. The filename step checks the file exists, takes the pending token, calls
   the Bot API and reports the result.

Any invalid input aborts the workflow: the pending token is discarded and the
session returns to none. The filename step always ends the session.
"""

from typing import Dict, Any

from app.core.exceptions import HookHostError, NotFoundError, ValidationError
from app.core.logging import get_logger
from app.flow.context import FlowContext
from app.flow.states import (
    COMMAND_ENTRY_STATES,
    SessionState,
    Workflow,
    get_state_metadata,
)
from app.schemas.bot_api import ApiResult
from app.schemas.webhook import InboundMessage
from utils.constants import (
    CMD_DELETE_WEBHOOK,
    CMD_GET_WEBHOOK_INFO,
    CMD_WEBHOOK,
    DELETE_WEBHOOK_FAILED,
    DELETE_WEBHOOK_PROMPT,
    DELETE_WEBHOOK_SUCCESS,
    GENERIC_ERROR_MESSAGE,
    GET_WEBHOOK_INFO_FAILED,
    GET_WEBHOOK_INFO_PROMPT,
    INVALID_FILENAME_MESSAGE,
    INVALID_TOKEN_MESSAGE,
    SET_WEBHOOK_FAILED,
    SET_WEBHOOK_PROMPT,
    SET_WEBHOOK_SUCCESS,
    TOKEN_EXPIRED_MESSAGE,
    TOKEN_RECEIVED_MESSAGE,
    WEBHOOK_FILE_NOT_FOUND_MESSAGE,
)
from utils.telegram_utils import (
    build_api_response,
    build_webhook_info,
    create_text_response,
    escape,
)
from utils.validation_utils import validate_bot_token

logger = get_logger(__name__)

WORKFLOW_PROMPTS = {
    CMD_WEBHOOK: SET_WEBHOOK_PROMPT,
    CMD_GET_WEBHOOK_INFO: GET_WEBHOOK_INFO_PROMPT,
    CMD_DELETE_WEBHOOK: DELETE_WEBHOOK_PROMPT,
}


async def handle_webhook_command(
    ctx: FlowContext,
    message: InboundMessage,
    command: str,
    **kwargs
) -> Dict[str, Any]:
    """
    Step 0: open the workflow and ask for the bot token.
    """
    entry_state = COMMAND_ENTRY_STATES[command]

    # A stale token from an abandoned run must not leak into this one
    ctx.sessions.discard_pending_secret(message.user_id)
    ctx.sessions.set(message.user_id, entry_state, validate_transition=True)

    logger.info(f"Started {command} workflow")
    return create_text_response(WORKFLOW_PROMPTS[command])


async def handle_token_input(
    ctx: FlowContext,
    message: InboundMessage,
    state: SessionState,
    **kwargs
) -> Dict[str, Any]:
    """
    Step 1: store the bot token and ask for the filename.
    """
    metadata = get_state_metadata(state)
    user_id = message.user_id
    token = (message.text or "").strip()

    if not validate_bot_token(token):
        logger.warning("Invalid bot token received")
        ctx.sessions.reset(user_id, reason="invalid token")
        return create_text_response(INVALID_TOKEN_MESSAGE.format(command=metadata.command))

    try:
        ctx.sessions.save_pending_secret(user_id, token)
        ctx.sessions.set(user_id, metadata.next_state, validate_transition=True)
    except HookHostError as e:
        logger.error(f"Could not store bot token: {e.message}")
        ctx.sessions.reset(user_id, reason="token storage failed")
        return create_text_response(GENERIC_ERROR_MESSAGE)

    return create_text_response(TOKEN_RECEIVED_MESSAGE)


async def handle_filename_input(
    ctx: FlowContext,
    message: InboundMessage,
    state: SessionState,
    **kwargs
) -> Dict[str, Any]:
    """
    Step 2: validate the file, consume the token and call the Bot API.
    The session is reset to none on every path.
    """
    metadata = get_state_metadata(state)
    user_id = message.user_id
    raw_name = (message.text or "").strip()

    try:
        try:
            name = ctx.webhooks.require_file(user_id, raw_name)
        except ValidationError:
            return create_text_response(INVALID_FILENAME_MESSAGE.format(command=metadata.command))
        except NotFoundError as e:
            logger.info("Webhook file not found, aborting workflow")
            return create_text_response(
                WEBHOOK_FILE_NOT_FOUND_MESSAGE.format(name=escape(e.details["name"]))
            )

        token = ctx.sessions.pop_pending_secret(user_id)
        if not token:
            logger.warning("No pending bot token at filename step")
            return create_text_response(TOKEN_EXPIRED_MESSAGE.format(command=metadata.command))

        if metadata.workflow == Workflow.SET_WEBHOOK:
            result = await ctx.webhooks.register(user_id, token, name)
            return _set_webhook_response(result)

        if metadata.workflow == Workflow.GET_WEBHOOK_INFO:
            result = await ctx.webhooks.query(token)
            return _webhook_info_response(result)

        if metadata.workflow == Workflow.DELETE_WEBHOOK:
            result = await ctx.webhooks.unregister(token)
            return _delete_webhook_response(result)

        raise ValueError(f"State {state.value} is not a webhook workflow")
    finally:
        ctx.sessions.reset(user_id, reason=f"{metadata.command} finished")


def _set_webhook_response(result: ApiResult) -> Dict[str, Any]:
    headline = SET_WEBHOOK_SUCCESS if result.ok else SET_WEBHOOK_FAILED
    return build_api_response(headline, result)


def _webhook_info_response(result: ApiResult) -> Dict[str, Any]:
    if result.ok:
        return create_text_response(build_webhook_info(result.result))
    return build_api_response(GET_WEBHOOK_INFO_FAILED, result)


def _delete_webhook_response(result: ApiResult) -> Dict[str, Any]:
    headline = DELETE_WEBHOOK_SUCCESS if result.ok else DELETE_WEBHOOK_FAILED
    return build_api_response(headline, result)
