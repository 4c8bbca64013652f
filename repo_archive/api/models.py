"""Pydantic models shared by the API routers."""

from pydantic import BaseModel


class HealthCheckResponse(BaseModel):
    """Health check response."""

    status: str
    checks: dict[str, dict]


class ErrorResponse(BaseModel):
    """Body returned for archive store failures."""

    error: str
    detail: str
    retryable: bool
