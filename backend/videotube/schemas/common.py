"""Shared response shapes."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class LivenessResponse(BaseModel):
    """Rows returned by the liveness query (`GET /`)."""
    rows: List[Dict[str, Any]]


class ErrorResponse(BaseModel):
    """Body of every error response."""
    success: bool = Field(default=False)
    message: str = Field(description="Human-readable error description")
    errors: Optional[List[Any]] = Field(default=None, description="Field-level detail, when available")


class MessageResponse(BaseModel):
    success: bool = True
    message: str
