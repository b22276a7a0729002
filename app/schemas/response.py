"""
app/schemas/response.py

Purpose: HTTP response bodies

- Error envelope for the non-webhook HTTP surface
- Webhook acknowledgement
"""

from pydantic import BaseModel
from typing import Optional, Any


class ErrorResponse(BaseModel):
    """
    Standard error response structure.
    """
    error: str
    code: str
    details: Optional[Any] = None


class WebhookAck(BaseModel):
    """
    Body returned to Telegram for every accepted update, whatever happened
    while processing it.
    """
    ok: bool = True
