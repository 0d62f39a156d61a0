"""
app/services/file_store.py

Purpose: Per-user file storage

- One directory per user (user_bots/<user_id>/)
- Listing, existence checks, saving and deleting files
- Upload policy: quota, size limit, allowed extensions, content gate switch
- Uploads never overwrite; saved files are owner read/write only
"""

import os
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import FrozenSet, List, Optional, Union

from app.core.config import Settings
from app.core.exceptions import (
    NameConflictError,
    NotFoundError,
    QuotaExceededError,
    StorageError,
    TooLargeError,
    ValidationError,
)
from app.core.logging import get_logger
from utils.file_utils import format_bytes, get_extension, is_valid_filename, sanitize_filename

logger = get_logger(__name__)

UserId = Union[int, str]

FILE_MODE = 0o600
DIR_MODE = 0o755


@dataclass(frozen=True)
class UploadPolicy:
    """
    File policy regime, selected once at configuration time.

    An empty allowed_extensions set means any extension is accepted.
    """
    max_files: int = 10
    max_file_size: int = 10 * 1024 * 1024
    allowed_extensions: FrozenSet[str] = field(default_factory=frozenset)
    content_gate_enabled: bool = False

    def allows_extension(self, name: str) -> bool:
        if not self.allowed_extensions:
            return True
        return get_extension(name) in self.allowed_extensions


POLICY_PRESETS = {
    "general": {"allowed_extensions": frozenset(), "content_gate_enabled": False},
    "script": {"allowed_extensions": frozenset({"php"}), "content_gate_enabled": True},
}


def policy_from_settings(config: Settings) -> UploadPolicy:
    """
    Builds the upload policy from the UPLOAD_POLICY preset plus explicit overrides.
    """
    preset = POLICY_PRESETS[config.UPLOAD_POLICY]

    extensions = preset["allowed_extensions"]
    if config.ALLOWED_EXTENSIONS is not None:
        extensions = frozenset(config.ALLOWED_EXTENSIONS)

    gate = preset["content_gate_enabled"]
    if config.CONTENT_GATE_ENABLED is not None:
        gate = config.CONTENT_GATE_ENABLED

    return UploadPolicy(
        max_files=config.MAX_FILES_PER_USER,
        max_file_size=config.MAX_FILE_SIZE,
        allowed_extensions=extensions,
        content_gate_enabled=gate,
    )


@dataclass
class StoredFile:
    """A file in a user's directory."""
    name: str
    size: int
    modified_at: datetime

    def display_size(self, decimals: int = 2) -> str:
        return format_bytes(self.size, decimals)


class FileStore:
    """
    Per-user directory abstraction.
    """

    def __init__(self, root: Union[str, Path], policy: Optional[UploadPolicy] = None):
        self.root = Path(root)
        self.policy = policy or UploadPolicy()

    def user_dir(self, user_id: UserId) -> Path:
        return self.root / str(int(user_id))

    def ensure_user_dir(self, user_id: UserId) -> Path:
        """
        Creates the user's directory if needed.

        Raises:
            StorageError: If the directory cannot be created
        """
        directory = self.user_dir(user_id)
        try:
            directory.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Failed to create directory {directory}: {e}")
            raise StorageError("Failed to create your directory")
        return directory

    def _file_path(self, user_id: UserId, name: str) -> Path:
        """
        Resolves a filename inside the user's directory.

        Raises:
            ValidationError: If the name is empty or would leave the directory
        """
        safe_name = sanitize_filename(name)
        if not is_valid_filename(safe_name):
            raise ValidationError("Invalid filename", details={"name": name})

        directory = self.user_dir(user_id).resolve()
        path = (directory / safe_name).resolve()
        if path.parent != directory:
            raise ValidationError("Invalid filename", details={"name": name})
        return path

    def list(self, user_id: UserId) -> List[StoredFile]:
        """
        Lists the user's files, ordered by name.

        Returns:
            List of StoredFile (empty if the user has no files or no directory)
        """
        directory = self.user_dir(user_id)
        if not directory.is_dir():
            return []

        files = []
        for entry in sorted(directory.iterdir(), key=lambda p: p.name):
            if not entry.is_file():
                continue
            stat = entry.stat()
            files.append(StoredFile(
                name=entry.name,
                size=stat.st_size,
                modified_at=datetime.fromtimestamp(stat.st_mtime),
            ))
        return files

    def count(self, user_id: UserId) -> int:
        directory = self.user_dir(user_id)
        if not directory.is_dir():
            return 0
        return sum(1 for entry in directory.iterdir() if entry.is_file())

    def exists(self, user_id: UserId, name: str) -> bool:
        try:
            return self._file_path(user_id, name).is_file()
        except ValidationError:
            return False

    def check_quota(self, user_id: UserId) -> None:
        """
        Raises:
            QuotaExceededError: If the user is at or above the file limit
        """
        current = self.count(user_id)
        if current >= self.policy.max_files:
            raise QuotaExceededError(
                f"You can only have up to {self.policy.max_files} files",
                details={"count": current, "max_files": self.policy.max_files}
            )

    def check_size(self, size: int) -> None:
        """
        Raises:
            TooLargeError: If size exceeds the per-file limit
        """
        if size > self.policy.max_file_size:
            raise TooLargeError(
                f"Maximum allowed size is {format_bytes(self.policy.max_file_size)}",
                details={"size": size, "max_file_size": self.policy.max_file_size}
            )

    def save(self, user_id: UserId, name: str, content: bytes) -> StoredFile:
        """
        Persists a new file in the user's directory.

        Args:
            user_id: User ID
            name: Sanitized filename
            content: File bytes

        Returns:
            The stored file

        Raises:
            QuotaExceededError: User already holds max_files files
            TooLargeError: Content exceeds max_file_size
            NameConflictError: A file with this name already exists
            StorageError: The write failed
        """
        self.check_quota(user_id)
        self.check_size(len(content))

        self.ensure_user_dir(user_id)
        path = self._file_path(user_id, name)

        try:
            # O_EXCL: an existing file is never overwritten
            fd = os.open(str(path), os.O_WRONLY | os.O_CREAT | os.O_EXCL, FILE_MODE)
        except FileExistsError:
            raise NameConflictError(f"A file named {path.name} already exists", details={"name": path.name})
        except OSError as e:
            logger.error(f"Failed to save file {path}: {e}")
            raise StorageError("Failed to save the uploaded file")

        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(content)
            os.chmod(str(path), FILE_MODE)
        except OSError as e:
            logger.error(f"Failed to write file {path}: {e}")
            try:
                path.unlink()
            except OSError:
                pass
            raise StorageError("Failed to save the uploaded file")

        logger.info(f"Saved {path.name} ({format_bytes(len(content))})")
        stat = path.stat()
        return StoredFile(name=path.name, size=stat.st_size, modified_at=datetime.fromtimestamp(stat.st_mtime))

    def delete(self, user_id: UserId, name: str) -> None:
        """
        Removes a file from the user's directory.

        Raises:
            NotFoundError: The file does not exist
            StorageError: The file could not be removed
        """
        try:
            path = self._file_path(user_id, name)
        except ValidationError:
            raise NotFoundError(f"File {name} not found", details={"name": name})

        if not path.is_file():
            raise NotFoundError(f"File {path.name} not found", details={"name": path.name})

        try:
            path.unlink()
        except FileNotFoundError:
            raise NotFoundError(f"File {path.name} not found", details={"name": path.name})
        except OSError as e:
            logger.error(f"Failed to delete file {path}: {e}")
            raise StorageError(f"Unable to delete {path.name}")

        logger.info(f"Deleted {path.name}")
