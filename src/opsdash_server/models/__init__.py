"""Pydantic models for API request and response schemas.

This package contains all Pydantic models used for validating and
serializing API requests and responses across all endpoints.
"""

from opsdash_server.models.chat import ChatMessageIn, ChatRequest, ChatResponse
from opsdash_server.models.common import ErrorResponse, SuccessResponse
from opsdash_server.models.health import HealthResponse, ServiceStatus

__all__ = [
    "ChatMessageIn",
    "ChatRequest",
    "ChatResponse",
    "ErrorResponse",
    "HealthResponse",
    "ServiceStatus",
    "SuccessResponse",
]
