"""Response envelopes shared by all endpoints."""

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Body returned for every failed request."""

    success: bool = Field(default=False, description="Always false for errors")
    error: str = Field(description="Human-readable error message")


class SuccessResponse(BaseModel):
    """Body returned by mutations that have nothing else to report."""

    success: bool = Field(default=True, description="Always true")
    message: str | None = Field(default=None, description="Optional outcome message")
