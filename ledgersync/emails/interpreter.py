"""LLM-backed interpretation of bank alert emails using the Gemini API."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Sequence

import httpx
from pydantic import ValidationError

from ledgersync.core.exceptions import InvalidTransactionError, LLMRequestError
from ledgersync.emails.json_extract import parse_first_json_object
from ledgersync.emails.models import CATEGORIES, AccountRef, InterpretedTransaction

if TYPE_CHECKING:
    from ledgersync.emails.config import LLMConfig

logger = logging.getLogger(__name__)


class TransactionInterpreter:
    """Turns raw alert text into a validated transaction via one model call.

    No conversation state is kept and no call is retried: a failure surfaces
    as an InterpretationError and the caller skips the message.
    """

    GEMINI_API_URL = (
        "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
    )

    def __init__(self, config: LLMConfig):
        """Initialize interpreter.

        Args:
            config: LLM configuration
        """
        self.config = config
        if not self.config.api_key:
            raise ValueError("GEMINI_API_KEY is required")

    async def interpret(
        self, body: str, accounts: Sequence[AccountRef]
    ) -> InterpretedTransaction:
        """Extract a transaction from an email body.

        Args:
            body: Decoded email text
            accounts: The user's accounts, listed in the prompt as hints

        Returns:
            Validated transaction fields

        Raises:
            LLMRequestError: The API call failed
            NoJSONFoundError: The reply has no JSON object
            MalformedJSONError: The reply's JSON does not parse
            InvalidTransactionError: The JSON fails field validation
        """
        prompt = self.build_prompt(body, accounts)
        response = await self._call_llm(prompt)
        logger.debug(f"[INTERPRETER] Raw model reply: {response[:300]!r}")
        return self.parse_response(response)

    def build_prompt(self, body: str, accounts: Sequence[AccountRef]) -> str:
        """Build the extraction prompt, truncating the body to the char budget."""
        body = body[: self.config.body_char_limit]
        account_list = ", ".join(f"{a.name} ({a.bank})" for a in accounts) or "none"
        categories = " or ".join(f'"{c}"' for c in CATEGORIES)

        return f"""Parse this Indian bank transaction SMS/email. Extract transaction details and return ONLY valid JSON (no markdown, no code blocks):
{{
  "date": "DD-MM-YYYY",
  "amount": 1250.00,
  "type": "debit" or "credit",
  "merchant": "Merchant name",
  "category": {categories}
}}

Email content:
{body}

Available accounts: {account_list}

Match the transaction to the most likely account based on bank name in email. Return JSON only."""

    def parse_response(self, response: str) -> InterpretedTransaction:
        """Map the first JSON object in a model reply onto a transaction."""
        data = parse_first_json_object(response)

        fields: dict[str, Any] = {
            "date": data.get("date"),
            "amount": data.get("amount"),
            "direction": data.get("type", data.get("direction")),
            "merchant": data.get("merchant"),
            "category": data.get("category"),
        }
        try:
            return InterpretedTransaction(**fields)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                for err in e.errors()
            )
            raise InvalidTransactionError(f"Rejected model output: {problems}") from e

    async def _call_llm(self, prompt: str) -> str:
        """Call the Gemini generateContent endpoint.

        Args:
            prompt: Prompt text

        Returns:
            Concatenated text of the first candidate
        """
        url = self.GEMINI_API_URL.format(model=self.config.model)
        headers = {
            "x-goog-api-key": self.config.api_key or "",
            "Content-Type": "application/json",
        }
        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.config.temperature,
                "maxOutputTokens": self.config.max_output_tokens,
            },
        }

        try:
            async with httpx.AsyncClient(timeout=self.config.timeout) as client:
                response = await client.post(url, headers=headers, json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"[INTERPRETER] HTTP error from Gemini API: {e}")
            raise LLMRequestError(f"Gemini API returned {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"[INTERPRETER] Error calling Gemini API: {e}")
            raise LLMRequestError(f"Gemini API call failed: {e}") from e

        try:
            parts = data["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError) as e:
            raise LLMRequestError("Gemini API reply has no candidate text") from e

        return "".join(p.get("text", "") for p in parts).strip()
