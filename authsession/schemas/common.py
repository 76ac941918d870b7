"""Common Pydantic schemas used across the application."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class ErrorBody(BaseModel):
    """Body of the error envelope produced by the exception handlers."""

    code: str
    message: str
    details: Optional[list[dict[str, Any]]] = None
    request_id: Optional[str] = None


class ErrorResponse(BaseModel):
    """Standardized error response format."""

    error: ErrorBody

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "error": {
                        "code": "REFRESH_TOKEN_REUSE",
                        "message": "Refresh token reuse detected, session terminated",
                        "details": [{"reuse_detected": True}],
                        "request_id": "550e8400-e29b-41d4-a716-446655440000",
                    }
                }
            ]
        }
    )


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    database: Optional[str] = None
    redis: Optional[str] = None
