"""
app/services/session_service.py

Purpose: Session and state management

- One state record per user (states/<user_id>.txt)
- One pending bot token record per user (states/<user_id>_bot_token.txt)
- Atomic record writes (readers never see a partial value)
- Enforces valid state transitions
- Per-user lock serializing a user's updates within the process
"""

import asyncio
import os
import tempfile
import weakref
from pathlib import Path
from typing import Optional, Union

from app.core.exceptions import StorageError
from app.core.logging import get_logger, LogContext
from app.flow.states import SessionState, is_valid_transition, parse_state

logger = get_logger(__name__)

UserId = Union[int, str]


def _atomic_write(path: Path, content: str, mode: int = 0o600) -> None:
    """Writes content to a temp file in the same directory, then renames it over path."""
    fd, tmp_name = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


class SessionStore:
    """
    Durable per-user session state with an auxiliary pending-secret slot.

    Any backing honouring get/set per user id would do; this one keeps flat
    files so state survives restarts and is shared by every worker process.
    """

    def __init__(self, states_dir: Union[str, Path]):
        self.states_dir = Path(states_dir)
        # A lock lives only while some update holds or waits on it
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def ensure_dir(self) -> None:
        try:
            self.states_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to create states directory: {e}")

    def _state_path(self, user_id: UserId) -> Path:
        return self.states_dir / f"{int(user_id)}.txt"

    def _secret_path(self, user_id: UserId) -> Path:
        return self.states_dir / f"{int(user_id)}_bot_token.txt"

    def lock(self, user_id: UserId) -> asyncio.Lock:
        """
        Returns the lock guarding one user's session advance.

        Only serializes updates handled by this process; across processes the
        last write wins. Callers must keep a reference for as long as they
        use the lock (`async with store.lock(user_id):` does).
        """
        key = str(int(user_id))
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    # ------------------------------------------------------------------
    # Session state
    # ------------------------------------------------------------------

    def get(self, user_id: UserId) -> SessionState:
        """
        Returns the user's current state (NONE when no record exists).
        """
        path = self._state_path(user_id)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return SessionState.NONE

        state = parse_state(raw)
        if state is None:
            logger.warning(f"Unknown stored state {raw.strip()!r}, treating as none")
            return SessionState.NONE
        return state

    def set(
        self,
        user_id: UserId,
        new_state: SessionState,
        validate_transition: bool = False
    ) -> None:
        """
        Updates the user's session state.

        Args:
            user_id: User ID
            new_state: Target state
            validate_transition: Whether to enforce state transition rules

        Raises:
            ValueError: If transition is invalid
            StorageError: If the record cannot be written
        """
        with LogContext(user_id=user_id, state=new_state.value):
            current_state = self.get(user_id)

            if validate_transition and not is_valid_transition(current_state, new_state):
                logger.warning(
                    f"Invalid state transition attempted: {current_state.value} -> {new_state.value}"
                )
                raise ValueError(f"Invalid state transition: {current_state.value} -> {new_state.value}")

            self.ensure_dir()
            try:
                _atomic_write(self._state_path(user_id), new_state.value)
            except OSError as e:
                logger.error(f"Failed to write state record: {e}")
                raise StorageError("Failed to save session state")

            if current_state != new_state:
                logger.info(f"State updated: {current_state.value} -> {new_state.value}")

    def reset(self, user_id: UserId, reason: str = "manual") -> None:
        """
        Returns the user to NONE and drops any pending bot token.
        """
        self.discard_pending_secret(user_id)
        self.set(user_id, SessionState.NONE)
        logger.debug(f"Session reset ({reason})")

    # ------------------------------------------------------------------
    # Pending secret (bot token between the token and filename steps)
    # ------------------------------------------------------------------

    def save_pending_secret(self, user_id: UserId, secret: str) -> None:
        self.ensure_dir()
        try:
            _atomic_write(self._secret_path(user_id), secret)
        except OSError as e:
            logger.error(f"Failed to write pending token: {e}")
            raise StorageError("Failed to save bot token")

    def has_pending_secret(self, user_id: UserId) -> bool:
        return self._secret_path(user_id).exists()

    def pop_pending_secret(self, user_id: UserId) -> Optional[str]:
        """
        Reads and deletes the pending bot token.

        Returns:
            The token, or None if there was none
        """
        path = self._secret_path(user_id)
        try:
            secret = path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        finally:
            self.discard_pending_secret(user_id)

        return secret or None

    def discard_pending_secret(self, user_id: UserId) -> None:
        try:
            self._secret_path(user_id).unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error(f"Failed to delete pending token: {e}")
            raise StorageError("Failed to delete bot token")
