"""Tests for body extraction, JSON recovery and model-reply interpretation."""

from __future__ import annotations

import base64
from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from ledgersync.core.exceptions import (
    InvalidTransactionError,
    LLMRequestError,
    MalformedJSONError,
    NoJSONFoundError,
)
from ledgersync.emails.body_extractor import decode_part_data, extract_body
from ledgersync.emails.config import LLMConfig
from ledgersync.emails.interpreter import TransactionInterpreter
from ledgersync.emails.json_extract import find_first_json_object, parse_first_json_object
from ledgersync.emails.models import AccountRef, InterpretedTransaction, MessagePart
from tests.fixtures.sample_emails import (
    HDFC_DEBIT_TEXT,
    alternative_payload,
    b64,
    nested_payload,
    plain_payload,
)


class TestBodyExtractor:
    """Tests for picking the text body out of a MIME tree."""

    def test_root_body(self):
        payload = MessagePart.from_gmail(plain_payload(HDFC_DEBIT_TEXT))
        assert extract_body(payload) == HDFC_DEBIT_TEXT

    def test_plain_preferred_over_html(self):
        """text/plain wins even when text/html is listed first."""
        payload = MessagePart.from_gmail(
            alternative_payload(plain="plain version", html="<p>html version</p>")
        )
        assert extract_body(payload) == "plain version"

    def test_html_used_when_no_plain(self):
        payload = MessagePart.from_gmail(
            alternative_payload(plain=None, html="<p>Rs 500 debited</p>")
        )
        assert extract_body(payload) == "<p>Rs 500 debited</p>"

    def test_nested_html(self):
        payload = MessagePart.from_gmail(nested_payload("<b>credited INR 1,200</b>"))
        assert extract_body(payload) == "<b>credited INR 1,200</b>"

    def test_nested_prefers_plain(self):
        raw = nested_payload("<b>html</b>")
        raw["parts"][0]["parts"].append({"mimeType": "text/plain", "body": {"data": b64("plain")}})
        assert extract_body(MessagePart.from_gmail(raw)) == "plain"

    def test_deeper_levels_not_searched(self):
        raw = {
            "mimeType": "multipart/mixed",
            "parts": [
                {
                    "mimeType": "multipart/related",
                    "parts": [
                        {
                            "mimeType": "multipart/alternative",
                            "parts": [{"mimeType": "text/plain", "body": {"data": b64("deep")}}],
                        }
                    ],
                }
            ],
        }
        assert extract_body(MessagePart.from_gmail(raw)) is None

    def test_attachment_only_returns_none(self):
        raw = {
            "mimeType": "multipart/mixed",
            "parts": [{"mimeType": "application/pdf", "body": {"attachmentId": "a1"}}],
        }
        assert extract_body(MessagePart.from_gmail(raw)) is None

    def test_whitespace_body_returns_none(self):
        payload = MessagePart.from_gmail(plain_payload("   \n\t "))
        assert extract_body(payload) is None

    def test_decode_restores_padding(self):
        assert decode_part_data(b64("ab")) == "ab"
        assert decode_part_data(b64("abc")) == "abc"

    def test_decode_url_safe_alphabet(self):
        text = "??>>"  # encodes to characters outside the standard alphabet
        assert decode_part_data(b64(text)) == text

    def test_charset_from_content_type(self):
        raw = {
            "mimeType": "text/plain",
            "headers": [{"name": "Content-Type", "value": 'text/plain; charset="iso-8859-1"'}],
            "body": {"data": b64("Café", charset="iso-8859-1")},
        }
        assert extract_body(MessagePart.from_gmail(raw)) == "Café"

    def test_invalid_bytes_replaced(self):
        data = base64.urlsafe_b64encode(b"ok\xff").decode().rstrip("=")
        assert decode_part_data(data) == "ok�"


class TestJsonExtraction:
    """Tests for recovering a JSON object from model prose."""

    def test_prose_wrapped(self):
        text = 'Sure! Here is the JSON: {"amount": 1200, "type": "credit"} Hope this helps.'
        assert find_first_json_object(text) == '{"amount": 1200, "type": "credit"}'

    def test_markdown_fence(self):
        text = '```json\n{"a": {"b": 1}}\n```'
        assert parse_first_json_object(text) == {"a": {"b": 1}}

    def test_braces_inside_strings(self):
        text = 'x {"merchant": "A}B{C", "note": "say \\"}\\""} y'
        assert parse_first_json_object(text) == {"merchant": "A}B{C", "note": 'say "}"'}

    def test_first_object_wins(self):
        assert parse_first_json_object('{"n": 1} {"n": 2}') == {"n": 1}

    def test_unclosed_brace_then_object(self):
        assert find_first_json_object('{ {"n": 1}') == '{"n": 1}'

    def test_no_object(self):
        assert find_first_json_object("no json here") is None
        with pytest.raises(NoJSONFoundError):
            parse_first_json_object("I could not find a transaction.")

    def test_malformed_object(self):
        with pytest.raises(MalformedJSONError):
            parse_first_json_object("{amount: 12,}")


class TestInterpretedTransaction:
    """Tests for field validation of interpreted transactions."""

    def test_day_month_year_date(self):
        tx = InterpretedTransaction(date="05-01-2024", amount="1,200.00", direction="Credit")
        assert tx.date == date(2024, 1, 5)
        assert tx.amount == Decimal("1200.00")
        assert tx.direction == "credit"
        assert tx.merchant == "Unknown"
        assert tx.category == "other"

    def test_slash_separator(self):
        tx = InterpretedTransaction(date="31/12/2023", amount=10, direction="debit")
        assert tx.date == date(2023, 12, 31)

    @pytest.mark.parametrize(
        "value",
        [
            "2024-01-05T00:00",
            "31-02-2024",
            "yesterday",
            None,
            "05-01-99999999999999999999",
            "5-1-24",
            "05-01-2024 extra",
            "123-01-2024",
        ],
    )
    def test_bad_dates(self, value):
        with pytest.raises(ValueError):
            InterpretedTransaction(date=value, amount=10, direction="debit")

    @pytest.mark.parametrize(
        "value", [0, -5, "abc", "NaN", "Infinity", True, None, "1e400", "1e16", "0.004"]
    )
    def test_bad_amounts(self, value):
        with pytest.raises(ValueError):
            InterpretedTransaction(date="01-01-2024", amount=value, direction="debit")

    @pytest.mark.parametrize(
        "value, expected",
        [("0.005", "0.01"), ("12.345", "12.35"), ("9999999999999999.99", "9999999999999999.99")],
    )
    def test_amount_rounded_to_cents(self, value, expected):
        tx = InterpretedTransaction(date="01-01-2024", amount=value, direction="debit")
        assert tx.amount == Decimal(expected)
        assert tx.amount.as_tuple().exponent == -2

    def test_bad_direction(self):
        with pytest.raises(ValueError):
            InterpretedTransaction(date="01-01-2024", amount=10, direction="refund")

    def test_unknown_category_coerced(self):
        tx = InterpretedTransaction(
            date="01-01-2024", amount=10, direction="debit", category="Groceries"
        )
        assert tx.category == "other"

    def test_known_category_normalized(self):
        tx = InterpretedTransaction(date="01-01-2024", amount=10, direction="debit", category=" Food ")
        assert tx.category == "food"


class TestTransactionInterpreter:
    """Tests for prompt building, reply parsing and the Gemini call."""

    @pytest.fixture
    def interpreter(self):
        return TransactionInterpreter(LLMConfig(api_key="test-key", body_char_limit=200))

    def test_requires_api_key(self):
        with pytest.raises(ValueError):
            TransactionInterpreter(LLMConfig(api_key=None))

    def test_prompt_truncates_body_and_lists_accounts(self, interpreter):
        accounts = [AccountRef(id=1, name="Card", bank="HDFC"), AccountRef(id=2, name="Savings", bank="SBI")]
        prompt = interpreter.build_prompt("x" * 500 + "TAIL", accounts)

        assert "x" * 200 in prompt
        assert "x" * 201 not in prompt
        assert "TAIL" not in prompt
        assert "Card (HDFC), Savings (SBI)" in prompt
        assert "DD-MM-YYYY" in prompt

    def test_parse_prose_wrapped_credit(self, interpreter):
        reply = (
            "Here you go:\n"
            '{"date": "05-01-2024", "amount": "1,200.00", "type": "credit", '
            '"merchant": "Employer", "category": "other"}\nThanks!'
        )
        tx = interpreter.parse_response(reply)

        assert tx.date == date(2024, 1, 5)
        assert tx.amount == Decimal("1200.00")
        assert tx.direction == "credit"
        assert tx.merchant == "Employer"

    def test_parse_rejects_invalid_fields(self, interpreter):
        with pytest.raises(InvalidTransactionError):
            interpreter.parse_response('{"date": "05-01-2024", "amount": -3, "type": "debit"}')

    @pytest.mark.parametrize(
        "reply",
        [
            '{"date": "05-01-2024", "amount": "1e400", "type": "debit"}',
            '{"date": "05-01-99999999999999999999", "amount": 5, "type": "debit"}',
        ],
    )
    def test_parse_rejects_out_of_range_values(self, interpreter, reply):
        with pytest.raises(InvalidTransactionError):
            interpreter.parse_response(reply)

    def test_parse_requires_json(self, interpreter):
        with pytest.raises(NoJSONFoundError):
            interpreter.parse_response("This is not a transaction email.")

    @pytest.mark.asyncio
    async def test_call_llm_joins_candidate_parts(self, interpreter):
        request = httpx.Request("POST", "https://example.test")
        reply = {"candidates": [{"content": {"parts": [{"text": '{"a": '}, {"text": "1}"}]}}]}
        mock_post = AsyncMock(return_value=httpx.Response(200, json=reply, request=request))

        with patch.object(httpx.AsyncClient, "post", mock_post):
            text = await interpreter._call_llm("prompt")

        assert text == '{"a": 1}'
        kwargs = mock_post.call_args.kwargs
        assert kwargs["headers"]["x-goog-api-key"] == "test-key"
        assert kwargs["json"]["generationConfig"]["temperature"] == 0.1

    @pytest.mark.asyncio
    async def test_call_llm_http_error(self, interpreter):
        request = httpx.Request("POST", "https://example.test")
        mock_post = AsyncMock(return_value=httpx.Response(429, json={}, request=request))

        with patch.object(httpx.AsyncClient, "post", mock_post):
            with pytest.raises(LLMRequestError):
                await interpreter._call_llm("prompt")

    @pytest.mark.asyncio
    async def test_call_llm_without_candidates(self, interpreter):
        request = httpx.Request("POST", "https://example.test")
        mock_post = AsyncMock(return_value=httpx.Response(200, json={"candidates": []}, request=request))

        with patch.object(httpx.AsyncClient, "post", mock_post):
            with pytest.raises(LLMRequestError):
                await interpreter._call_llm("prompt")

    @pytest.mark.asyncio
    async def test_interpret_end_to_end(self, interpreter):
        reply = '{"date": "05-01-2024", "amount": 500, "type": "debit", "merchant": "Swiggy", "category": "food"}'
        with patch.object(interpreter, "_call_llm", AsyncMock(return_value=reply)):
            tx = await interpreter.interpret(HDFC_DEBIT_TEXT, [])

        assert tx.amount == Decimal("500")
        assert tx.category == "food"
