"""Schemas for validating classifier responses."""

from pydantic import BaseModel, Field, field_validator


class CategorizedEntry(BaseModel):
    """One article's categorization as returned by the model."""

    id: str
    category: str
    tags: list[str] = Field(default_factory=list)
    sentiment: str = "neutral"
    summary: str = ""
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: object) -> object:
        return str(v) if isinstance(v, int) else v

    @field_validator("category", "sentiment")
    @classmethod
    def lower(cls, v: str) -> str:
        return v.strip().lower()


class CategorizationResponse(BaseModel):
    """Top-level JSON object returned by the model."""

    articles: list[CategorizedEntry] = Field(default_factory=list)
