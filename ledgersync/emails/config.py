"""Configuration for the Gmail fetcher and the transaction interpreter."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class FetcherConfig(BaseModel):
    """Configuration for the Gmail search that selects candidate alerts."""

    lookback_hours: int = Field(
        default=24, ge=1, le=24 * 30, description="Only consider mail newer than this"
    )
    max_results: int = Field(
        default=50, ge=1, le=500, description="Max messages listed per run"
    )
    unread_only: bool = Field(
        default=True, description="Restrict the search to unread mail"
    )
    subject_keywords: list[str] = Field(
        default=["debited", "credited", "transaction"],
        description="Subject terms that indicate a bank transaction alert",
    )
    sender_keywords: list[str] = Field(
        default=["alerts", "noreply"],
        description="Sender terms that indicate an automated bank sender",
    )


class LLMConfig(BaseModel):
    """Configuration for the text-generation provider."""

    enabled: bool = Field(default=True, description="Enable LLM interpretation")
    provider: Literal["gemini"] = Field(default="gemini", description="LLM provider")
    model: str = Field(default="gemini-2.5-flash-lite", description="Model name")
    api_key: str | None = Field(default=None, description="API key")
    timeout: int = Field(default=30, ge=5, le=120, description="API timeout in seconds")

    temperature: float = Field(
        default=0.1, ge=0.0, le=2.0, description="Sampling temperature for extraction"
    )
    max_output_tokens: int = Field(
        default=500, ge=100, le=2000, description="Max tokens in the model reply"
    )
    body_char_limit: int = Field(
        default=2000, ge=200, le=20000, description="Email body characters sent to the model"
    )


class EmailConfig(BaseModel):
    """Complete email module configuration."""

    fetcher: FetcherConfig = Field(default_factory=FetcherConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)

    @classmethod
    def from_settings(cls, settings) -> EmailConfig:
        """Create EmailConfig from app settings."""
        llm_config = LLMConfig(
            enabled=settings.GEMINI_API_KEY is not None,
            model=settings.GEMINI_MODEL or "gemini-2.5-flash-lite",
            api_key=settings.GEMINI_API_KEY,
        )

        return cls(llm=llm_config)
