"""Pydantic models for API responses.

Provider operations return the ``ProviderResponse`` envelope from
``premiumhub.providers.types`` directly; the models here cover the
responses the API adds on top (provider listing, aggregates, health, errors).
"""

from datetime import datetime, timezone
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from premiumhub.providers.types import ProviderMetadata, UnifiedCategoryData, UnifiedVideoData


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Provider Models
# =============================================================================


class ProviderListResponse(_CamelModel):
    """Response model for listing registered providers."""

    success: bool = Field(default=True)
    data: list[ProviderMetadata] = Field(..., description="Registered providers")
    total: int = Field(..., description="Number of registered providers")


class AggregateResponse(_CamelModel):
    """Merged outcome of a cross-provider request."""

    success: bool = Field(..., description="At least one provider succeeded")
    errors: dict[str, str] = Field(
        default_factory=dict,
        description="Provider id -> error message for providers that failed",
    )
    providers: list[str] = Field(default_factory=list, description="Provider ids that were asked")
    total: int = Field(0, description="Number of items across all providers")


class AggregateCategoriesResponse(AggregateResponse):
    data: dict[str, list[UnifiedCategoryData]] = Field(default_factory=dict)


class AggregateSearchResponse(AggregateResponse):
    data: dict[str, list[UnifiedVideoData]] = Field(default_factory=dict)
    query: str = Field(..., description="Search query as received")
    page: int = Field(1, description="Requested page")


# =============================================================================
# Health Models
# =============================================================================


class HealthStatus(BaseModel):
    """Individual component health status."""

    status: Literal["healthy", "unhealthy", "degraded"] = Field(
        ..., description="Component status"
    )
    latency_ms: Optional[float] = Field(None, description="Response latency in milliseconds")
    message: Optional[str] = Field(None, description="Additional status message")


class HealthCheckResponse(BaseModel):
    """Response model for health check endpoint."""

    status: Literal["healthy", "unhealthy", "degraded"] = Field(
        ..., description="Overall system status"
    )
    version: str = Field(..., description="API version")
    timestamp: datetime = Field(..., description="Check timestamp")
    services: dict[str, HealthStatus] = Field(
        default_factory=dict,
        description="Individual component statuses",
    )
    providers: list[str] = Field(default_factory=list, description="Registered provider ids")
    uptime_seconds: Optional[float] = Field(None, description="Server uptime in seconds")


# =============================================================================
# Error Models
# =============================================================================


class ErrorResponse(BaseModel):
    """Standard error response model for failures outside a provider envelope."""

    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Human-readable error message")
    detail: Optional[str] = Field(None, description="Additional error details")
    path: Optional[str] = Field(None, description="Request path that caused the error")
    timestamp: datetime = Field(default_factory=_utcnow, description="Error timestamp")


class ValidationErrorDetail(BaseModel):
    """Details for validation errors."""

    field: str = Field(..., description="Field that failed validation")
    message: str = Field(..., description="Validation error message")
    value: Optional[Any] = Field(None, description="Invalid value provided")


class ValidationErrorResponse(BaseModel):
    """Response for validation errors."""

    error: str = Field(default="validation_error", description="Error type")
    message: str = Field(default="Request validation failed", description="Error message")
    errors: list[ValidationErrorDetail] = Field(..., description="List of validation errors")
    timestamp: datetime = Field(default_factory=_utcnow, description="Error timestamp")
