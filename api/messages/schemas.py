"""
Pydantic schemas for message endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class MessageIn(BaseModel):
    """
    Body of POST /messages, POST /messages/public and PUT /messages/{id}.

    Whitespace-only values count as missing.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    sender_name: str = Field(..., min_length=1, max_length=255)
    recipient_name: str = Field(..., min_length=1, max_length=255)
    body: str = Field(..., min_length=1, max_length=10_000)
