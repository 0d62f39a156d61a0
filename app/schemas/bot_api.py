"""
app/schemas/bot_api.py

Purpose: Telegram Bot API result envelope

- One shape for platform-reported failures and transport failures
"""

from pydantic import BaseModel, Field
from typing import Any, Optional


class ApiResult(BaseModel):
    """
    Normalized result of one Bot API call.

    Transport failures (connection error, timeout, non-200 status) use the
    same shape with ok=False and a human-readable description.
    """
    ok: bool = Field(..., description="Whether the call succeeded")
    result: Optional[Any] = Field(default=None, description="Result payload on success")
    description: Optional[str] = Field(default=None, description="Failure or info description")
    error_code: Optional[int] = Field(default=None, description="Platform error code or HTTP status")
    transport_error: bool = Field(default=False, description="True when the call never got a valid answer")

    @classmethod
    def failure(cls, description: str, error_code: Optional[int] = None) -> "ApiResult":
        return cls(ok=False, description=description, error_code=error_code, transport_error=True)

    def to_payload(self) -> dict:
        """The result as the Bot API would have returned it."""
        return self.model_dump(exclude_none=True, exclude={"transport_error"})
