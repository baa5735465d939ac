"""Pydantic models for the persisted settings endpoints."""

from pydantic import BaseModel, Field


class SettingsResponse(BaseModel):
    success: bool = True
    settings: dict[str, str] = Field(
        default_factory=dict, description="Persisted setting rows as key/value pairs"
    )


class UpdateSettingsRequest(BaseModel):
    """Request body for POST /api/v1/settings.

    Each entry is upserted as one row; keys not mentioned are left unchanged.
    """

    settings: dict[str, str] = Field(description="Setting rows to upsert")
