"""
Pydantic models for API request/response schemas.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str = Field(
        ...,
        description="Overall service status: healthy or degraded",
    )
    timestamp: datetime = Field(
        ...,
        description="Server time of the check (UTC)",
    )
    running: bool = Field(
        ...,
        description="Whether the scheduler loop is running",
    )


class StatsResponse(BaseModel):
    """Cache snapshot plus scheduler counters."""

    total_cached_items: int = Field(..., description="Entries in the dedup cache")
    processed_count: int = Field(..., description="Entries marked processed")
    retention_seconds: int = Field(..., description="Cache retention window in seconds")
    running: bool = Field(..., description="Whether the scheduler loop is running")
    state: str = Field(..., description="Current cycle stage")
    cycles_completed: int = Field(default=0, description="Cycles run since start")
    cycles_skipped: int = Field(
        default=0,
        description="Ticks skipped because a cycle was still running",
    )
    pending_dispatches: int = Field(default=0, description="Background dispatch tasks in flight")
    last_cycle: dict[str, Any] | None = Field(
        default=None,
        description="Summary of the most recent cycle",
    )


class RuleRequest(BaseModel):
    """Request body for creating or replacing a subscriber's rule.

    Either give the criteria lists directly or a ``spec`` string in the
    ``category=.. keywords=a,b tags=..`` syntax. ``spec`` wins when both
    are present.
    """

    categories: list[str] = Field(default_factory=list, description="Categories to match")
    keywords: list[str] = Field(default_factory=list, description="Keyword substrings to match")
    tags: list[str] = Field(default_factory=list, description="Tags to match")
    enabled: bool = Field(default=True, description="Disabled rules never match")
    spec: str | None = Field(
        default=None,
        description="Rule in key=value syntax, e.g. 'category=technology keywords=bitcoin'",
        examples=["category=technology keywords=bitcoin,ethereum"],
    )


class RuleResponse(BaseModel):
    """A stored alert rule."""

    subscriber_id: str
    categories: list[str]
    keywords: list[str]
    tags: list[str]
    enabled: bool


class RulesResponse(BaseModel):
    """Response model for rule listing."""

    rules: list[RuleResponse] = Field(default_factory=list)
    total: int = Field(default=0, description="Number of stored rules")


class ErrorResponse(BaseModel):
    """Error response model."""

    detail: str = Field(..., description="Error message")
    error_type: str = Field(
        default="error",
        description="Error type for client handling",
    )
