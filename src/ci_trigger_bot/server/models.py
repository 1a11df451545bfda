"""Pydantic models for the REST server."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class ChatResponse(BaseModel):
    response_type: Literal["in_channel", "ephemeral"] = "in_channel"
    text: str


class WebhookResponse(BaseModel):
    detail: str
    branch: str | None = None
    build_url: str | None = None
