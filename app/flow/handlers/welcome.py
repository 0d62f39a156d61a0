"""
app/flow/handlers/welcome.py

Handles: /start

- Sends the welcome message and command overview
- The user's directory is created by the dispatcher before any handler runs
"""

from typing import Dict, Any

from app.flow.context import FlowContext
from app.schemas.webhook import InboundMessage
from utils.constants import WELCOME_MESSAGE
from utils.telegram_utils import create_text_response
from app.core.logging import get_logger

logger = get_logger(__name__)


async def handle_start(ctx: FlowContext, message: InboundMessage, **kwargs) -> Dict[str, Any]:
    logger.info("Processing /start")
    return create_text_response(WELCOME_MESSAGE)
