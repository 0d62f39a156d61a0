"""
app/flow/states.py

Purpose: Defines all session states

- Enum for each step of the multi-turn workflows
- Single source of truth for flow stages
- State transition validation
- Metadata for each state (workflow, expected input, next step)
"""

from enum import Enum
from typing import Dict, List, Optional
from dataclasses import dataclass


class SessionState(str, Enum):
    """
    Defines all possible states of a user's session.
    NONE is both the initial state and the state every workflow returns to.
    """

    NONE = "none"

    # /webhook
    AWAITING_WEBHOOK_TOKEN = "awaiting_webhook_token"
    AWAITING_WEBHOOK_FILENAME = "awaiting_webhook_filename"

    # /getwebhookinfo
    AWAITING_GETINFO_TOKEN = "awaiting_getinfo_token"
    AWAITING_GETINFO_FILENAME = "awaiting_getinfo_filename"

    # /deletewebhook
    AWAITING_DELETEHOOK_TOKEN = "awaiting_deletehook_token"
    AWAITING_DELETEHOOK_FILENAME = "awaiting_deletehook_filename"

    # /delete
    AWAITING_DELETE_FILENAME = "awaiting_delete_filename"


class Workflow(str, Enum):
    """Multi-step workflows a session can be in."""

    SET_WEBHOOK = "set_webhook"
    GET_WEBHOOK_INFO = "get_webhook_info"
    DELETE_WEBHOOK = "delete_webhook"
    DELETE_FILE = "delete_file"


class ExpectedInput(str, Enum):
    """What the next text message is interpreted as."""

    COMMAND = "command"
    TOKEN = "token"
    FILENAME = "filename"


@dataclass
class StateMetadata:
    """
    Metadata associated with each session state.
    """
    name: SessionState
    display_name: str
    expects: ExpectedInput
    workflow: Optional[Workflow] = None
    command: Optional[str] = None  # Command that starts the workflow
    next_state: Optional[SessionState] = None  # Where valid input leads
    description: str = ""


STATE_METADATA: Dict[SessionState, StateMetadata] = {
    SessionState.NONE: StateMetadata(
        name=SessionState.NONE,
        display_name="Idle",
        expects=ExpectedInput.COMMAND,
        description="No workflow in progress; text is matched against commands"
    ),
    SessionState.AWAITING_WEBHOOK_TOKEN: StateMetadata(
        name=SessionState.AWAITING_WEBHOOK_TOKEN,
        display_name="Set webhook: token",
        expects=ExpectedInput.TOKEN,
        workflow=Workflow.SET_WEBHOOK,
        command="/webhook",
        next_state=SessionState.AWAITING_WEBHOOK_FILENAME,
        description="Collect the bot token of the user's bot"
    ),
    SessionState.AWAITING_WEBHOOK_FILENAME: StateMetadata(
        name=SessionState.AWAITING_WEBHOOK_FILENAME,
        display_name="Set webhook: filename",
        expects=ExpectedInput.FILENAME,
        workflow=Workflow.SET_WEBHOOK,
        command="/webhook",
        next_state=SessionState.NONE,
        description="Collect the script filename and register the webhook"
    ),
    SessionState.AWAITING_GETINFO_TOKEN: StateMetadata(
        name=SessionState.AWAITING_GETINFO_TOKEN,
        display_name="Webhook info: token",
        expects=ExpectedInput.TOKEN,
        workflow=Workflow.GET_WEBHOOK_INFO,
        command="/getwebhookinfo",
        next_state=SessionState.AWAITING_GETINFO_FILENAME,
        description="Collect the bot token of the user's bot"
    ),
    SessionState.AWAITING_GETINFO_FILENAME: StateMetadata(
        name=SessionState.AWAITING_GETINFO_FILENAME,
        display_name="Webhook info: filename",
        expects=ExpectedInput.FILENAME,
        workflow=Workflow.GET_WEBHOOK_INFO,
        command="/getwebhookinfo",
        next_state=SessionState.NONE,
        description="Collect the script filename and query the webhook"
    ),
    SessionState.AWAITING_DELETEHOOK_TOKEN: StateMetadata(
        name=SessionState.AWAITING_DELETEHOOK_TOKEN,
        display_name="Delete webhook: token",
        expects=ExpectedInput.TOKEN,
        workflow=Workflow.DELETE_WEBHOOK,
        command="/deletewebhook",
        next_state=SessionState.AWAITING_DELETEHOOK_FILENAME,
        description="Collect the bot token of the user's bot"
    ),
    SessionState.AWAITING_DELETEHOOK_FILENAME: StateMetadata(
        name=SessionState.AWAITING_DELETEHOOK_FILENAME,
        display_name="Delete webhook: filename",
        expects=ExpectedInput.FILENAME,
        workflow=Workflow.DELETE_WEBHOOK,
        command="/deletewebhook",
        next_state=SessionState.NONE,
        description="Collect the script filename and remove the webhook"
    ),
    SessionState.AWAITING_DELETE_FILENAME: StateMetadata(
        name=SessionState.AWAITING_DELETE_FILENAME,
        display_name="Delete file",
        expects=ExpectedInput.FILENAME,
        workflow=Workflow.DELETE_FILE,
        command="/delete",
        next_state=SessionState.NONE,
        description="Collect the name of the file to delete"
    ),
}


# Commands that open a workflow, and the state they open it in
COMMAND_ENTRY_STATES: Dict[str, SessionState] = {
    "/webhook": SessionState.AWAITING_WEBHOOK_TOKEN,
    "/getwebhookinfo": SessionState.AWAITING_GETINFO_TOKEN,
    "/deletewebhook": SessionState.AWAITING_DELETEHOOK_TOKEN,
    "/delete": SessionState.AWAITING_DELETE_FILENAME,
}


# Valid state transitions; every state may always fall back to NONE
STATE_TRANSITIONS: Dict[SessionState, List[SessionState]] = {
    SessionState.NONE: [
        SessionState.NONE,
        SessionState.AWAITING_WEBHOOK_TOKEN,
        SessionState.AWAITING_GETINFO_TOKEN,
        SessionState.AWAITING_DELETEHOOK_TOKEN,
        SessionState.AWAITING_DELETE_FILENAME,
    ],
    SessionState.AWAITING_WEBHOOK_TOKEN: [
        SessionState.AWAITING_WEBHOOK_FILENAME,
        SessionState.NONE,
    ],
    SessionState.AWAITING_WEBHOOK_FILENAME: [
        SessionState.NONE,
    ],
    SessionState.AWAITING_GETINFO_TOKEN: [
        SessionState.AWAITING_GETINFO_FILENAME,
        SessionState.NONE,
    ],
    SessionState.AWAITING_GETINFO_FILENAME: [
        SessionState.NONE,
    ],
    SessionState.AWAITING_DELETEHOOK_TOKEN: [
        SessionState.AWAITING_DELETEHOOK_FILENAME,
        SessionState.NONE,
    ],
    SessionState.AWAITING_DELETEHOOK_FILENAME: [
        SessionState.NONE,
    ],
    SessionState.AWAITING_DELETE_FILENAME: [
        SessionState.NONE,
    ],
}


def _check_tables_complete():
    missing = [
        state.value for state in SessionState
        if state not in STATE_METADATA or state not in STATE_TRANSITIONS
    ]
    if missing:
        raise RuntimeError(f"States missing from the transition tables: {', '.join(missing)}")


_check_tables_complete()


def is_valid_transition(from_state: SessionState, to_state: SessionState) -> bool:
    """
    Checks if a state transition is valid.

    Args:
        from_state: Current state
        to_state: Target state

    Returns:
        True if transition is allowed, False otherwise
    """
    allowed_transitions = STATE_TRANSITIONS.get(from_state, [])
    return to_state in allowed_transitions


def get_state_metadata(state: SessionState) -> StateMetadata:
    """
    Retrieves metadata for a given state.
    """
    return STATE_METADATA[state]


def parse_state(value: Optional[str]) -> Optional[SessionState]:
    """
    Parses a stored state value.

    Returns:
        The matching SessionState, or None if the value is not a known state
    """
    if not value:
        return SessionState.NONE
    try:
        return SessionState(value.strip())
    except ValueError:
        return None
