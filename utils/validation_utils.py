"""
utils/validation_utils.py

Purpose: Input validation

- Bot token validation
- Command text normalization
"""

import re
from typing import Optional

# Tokens end up in a URL path segment: bot<token>/setWebhook
BOT_TOKEN_PATTERN = re.compile(r"^[A-Za-z0-9:_\-]+$")

MAX_BOT_TOKEN_LENGTH = 256


def validate_bot_token(token: Optional[str]) -> bool:
    """
    Validates a bot token supplied by the user.

    Only rejects what cannot be a token at all: empty input, whitespace and
    characters that would change the request path (/, ?, #, ...). The Bot API
    itself decides whether the token is real.

    Args:
        token: Token text as typed by the user

    Returns:
        True if the token can be sent to the Bot API, False otherwise
    """
    if not token:
        return False

    token = token.strip()
    if not token or len(token) > MAX_BOT_TOKEN_LENGTH:
        return False

    return bool(BOT_TOKEN_PATTERN.match(token))


def normalize_command(text: Optional[str]) -> str:
    """
    Normalizes command text for matching.

    Lowercases it and drops a trailing '@botname' mention, so '/List@HostBot'
    matches '/list'.

    Args:
        text: Raw message text

    Returns:
        Normalized command (empty string for empty input)
    """
    if not text:
        return ""

    command = text.strip().lower()
    if command.startswith("/") and "@" in command:
        command = command.split("@", 1)[0]

    return command
