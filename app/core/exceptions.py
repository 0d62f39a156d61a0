from typing import Optional, Any

class HookHostError(Exception):
    """
    Base exception for HookHost application.
    """
    def __init__(self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500, details: Optional[Any] = None):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)

class ValidationError(HookHostError):
    """
    Raised when user input (bot token, filename) is empty or invalid.
    """
    def __init__(self, message: str = "Validation error", details: Optional[Any] = None):
        super().__init__(message, code="VALIDATION_ERROR", status_code=422, details=details)

class NotFoundError(HookHostError):
    """
    Raised when a referenced file does not exist in the user's directory.
    """
    def __init__(self, message: str = "Resource not found", details: Optional[Any] = None):
        super().__init__(message, code="NOT_FOUND", status_code=404, details=details)

class QuotaExceededError(HookHostError):
    """
    Raised when the user already stores the maximum number of files.
    """
    def __init__(self, message: str = "File quota exceeded", details: Optional[Any] = None):
        super().__init__(message, code="QUOTA_EXCEEDED", status_code=409, details=details)

class TooLargeError(HookHostError):
    """
    Raised when a file is larger than the configured maximum size.
    """
    def __init__(self, message: str = "File too large", details: Optional[Any] = None):
        super().__init__(message, code="TOO_LARGE", status_code=413, details=details)

class NameConflictError(HookHostError):
    """
    Raised when an upload would overwrite an existing file.
    """
    def __init__(self, message: str = "File already exists", details: Optional[Any] = None):
        super().__init__(message, code="NAME_CONFLICT", status_code=409, details=details)

class UnsupportedFileTypeError(HookHostError):
    """
    Raised when the upload policy does not allow the file's extension.
    """
    def __init__(self, message: str = "File type not allowed", details: Optional[Any] = None):
        super().__init__(message, code="UNSUPPORTED_FILE_TYPE", status_code=415, details=details)

class ContentRejectedError(HookHostError):
    """
    Raised when an uploaded script contains deny-listed calls.
    """
    def __init__(self, message: str = "Content rejected", details: Optional[Any] = None):
        super().__init__(message, code="CONTENT_REJECTED", status_code=422, details=details)

class TransportError(HookHostError):
    """
    Raised when talking to the Telegram Bot API fails (network, timeout, bad status).
    """
    def __init__(self, message: str = "Transport error", details: Optional[Any] = None):
        super().__init__(message, code="TRANSPORT_ERROR", status_code=502, details=details)

class StorageError(HookHostError):
    """
    Raised when the local filesystem refuses a write or delete.
    """
    def __init__(self, message: str = "Storage error", details: Optional[Any] = None):
        super().__init__(message, code="STORAGE_ERROR", status_code=500, details=details)
