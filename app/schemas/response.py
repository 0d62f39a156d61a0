"""
app/schemas/response.py

Purpose: HTTP response bodies

- Error envelope shared by every exception handler
- Acknowledgement returned to Telegram for each update
"""

from pydantic import BaseModel, Field
from typing import Literal, Optional, Any


class ErrorResponse(BaseModel):
    """
    Standard error response structure.
    """
    error: str
    code: str
    details: Optional[Any] = None


class WebhookAck(BaseModel):
    """
    Body of the 200 response to a Telegram update.

    Telegram only looks at the status code; the body is for logs and smoke tests.
    """
    status: Literal["success", "error", "ignored"] = Field(..., description="Outcome of the update")
    message: str = Field(default="Update processed")
