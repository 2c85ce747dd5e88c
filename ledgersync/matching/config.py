"""Account matcher configuration."""

from pydantic import BaseModel, Field


class MatcherConfig(BaseModel):
    """Configuration for attributing an alert email to an account."""

    create_default_account: bool = Field(
        default=True,
        description=(
            "Create a zero-balance 'Default Account' when the user has no "
            "accounts, instead of skipping the message"
        ),
    )
    fallback_to_first_account: bool = Field(
        default=True,
        description="Use the first account when no bank name appears in the email",
    )
