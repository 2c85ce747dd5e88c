"""Data models for mailbox messages and interpreted transactions."""

from __future__ import annotations

import datetime as dt
import re
from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from ledgersync.core.money import to_amount

CATEGORIES = (
    "food",
    "transport",
    "shopping",
    "bills",
    "entertainment",
    "healthcare",
    "education",
    "other",
)

_DAY_MONTH_YEAR_RE = re.compile(r"(\d{1,2})[-/](\d{1,2})[-/](\d{4})", re.ASCII)

Category = Literal[
    "food",
    "transport",
    "shopping",
    "bills",
    "entertainment",
    "healthcare",
    "education",
    "other",
]


class MessagePart(BaseModel):
    """One node of a MIME tree as returned by the Gmail API."""

    mime_type: str = Field(default="", description="MIME type, e.g. text/plain")
    headers: dict[str, str] = Field(default_factory=dict, description="Part headers")
    body_data: str | None = Field(default=None, description="base64url-encoded body")
    parts: list[MessagePart] = Field(default_factory=list, description="Child parts")

    @classmethod
    def from_gmail(cls, payload: dict[str, Any]) -> MessagePart:
        """Build a part tree from a Gmail ``payload`` dict."""
        headers = {
            h.get("name", ""): h.get("value", "") for h in payload.get("headers", []) or []
        }
        return cls(
            mime_type=payload.get("mimeType", "") or "",
            headers=headers,
            body_data=(payload.get("body") or {}).get("data") or None,
            parts=[cls.from_gmail(p) for p in payload.get("parts", []) or []],
        )

    def header(self, name: str, default: str = "") -> str:
        """Case-insensitive header lookup."""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return default


class MailMessage(BaseModel):
    """A fully retrieved mailbox message."""

    message_id: str = Field(..., description="Mailbox message id")
    payload: MessagePart = Field(..., description="Root of the MIME tree")
    label_ids: list[str] = Field(default_factory=list, description="Mailbox labels")

    @property
    def subject(self) -> str:
        return self.payload.header("Subject", "No Subject")

    @property
    def sender(self) -> str:
        return self.payload.header("From", "Unknown")


class AccountRef(BaseModel):
    """Minimal account view handed to the interpreter and matcher."""

    id: int | None = None
    name: str
    bank: str = ""


class InterpretedTransaction(BaseModel):
    """Validated transaction fields extracted from an alert email."""

    date: dt.date = Field(..., description="Transaction date")
    amount: Decimal = Field(..., description="Positive magnitude in whole cents")
    direction: Literal["debit", "credit"] = Field(..., description="Debit or credit")
    merchant: str = Field(default="Unknown", description="Counterparty label")
    category: Category = Field(default="other", description="Spending category")

    @field_validator("date", mode="before")
    @classmethod
    def _parse_day_month_year(cls, value: Any) -> Any:
        if isinstance(value, dt.date):
            return value.date() if isinstance(value, dt.datetime) else value
        if not isinstance(value, str):
            raise ValueError(f"date must be a DD-MM-YYYY string, got {value!r}")

        match = _DAY_MONTH_YEAR_RE.fullmatch(value.strip())
        if match is None:
            raise ValueError(f"date is not DD-MM-YYYY: {value!r}")

        day, month, year = (int(p) for p in match.groups())
        # date() rejects impossible combinations such as 31-02
        return dt.date(year, month, day)

    @field_validator("amount", mode="before")
    @classmethod
    def _parse_amount(cls, value: Any) -> Decimal:
        return to_amount(value)

    @field_validator("direction", mode="before")
    @classmethod
    def _normalize_direction(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("merchant", mode="before")
    @classmethod
    def _normalize_merchant(cls, value: Any) -> str:
        if value is None:
            return "Unknown"
        text = str(value).strip()
        return text[:255] or "Unknown"

    @field_validator("category", mode="before")
    @classmethod
    def _normalize_category(cls, value: Any) -> str:
        text = str(value or "").strip().lower()
        return text if text in CATEGORIES else "other"


MessagePart.model_rebuild()
