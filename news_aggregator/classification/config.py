"""Configuration for the classification stage.

All settings can be overridden via CLASSIFIER_* environment variables.
The API key itself is read from the central Settings (OPENAI_API_KEY).
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClassifierConfig(BaseSettings):
    """Model selection and response filtering for the LLM classifier.

    Example:
        CLASSIFIER_MODEL=gpt-4o-mini
        CLASSIFIER_MIN_CONFIDENCE=0.5
    """

    model_config = SettingsConfigDict(
        env_prefix="CLASSIFIER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    model: str = Field(
        default="gpt-4o-mini",
        description="OpenAI chat model used for categorization",
    )
    temperature: float = Field(default=0.1, ge=0.0, le=2.0)
    max_tokens: int = Field(
        default=4000,
        ge=256,
        description="Completion budget for one batch",
    )
    timeout: float = Field(
        default=60.0,
        gt=0,
        description="Seconds before a classification request is abandoned",
    )
    min_confidence: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="Results below this confidence are dropped from the batch",
    )
    max_tags: int = Field(default=5, ge=0, le=20)
