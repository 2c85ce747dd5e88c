"""Pick a single readable text body out of a Gmail MIME tree."""

from __future__ import annotations

import base64
import binascii
import codecs
import logging
import re

from ledgersync.emails.models import MessagePart

logger = logging.getLogger(__name__)

_CHARSET_RE = re.compile(r"charset\s*=\s*\"?([^\";\s]+)\"?", re.IGNORECASE)

TEXT_PREFERENCE = ("text/plain", "text/html")


def _charset_of(part: MessagePart) -> str:
    match = _CHARSET_RE.search(part.header("Content-Type"))
    if match:
        charset = match.group(1).strip().lower()
        try:
            codecs.lookup(charset)
            return charset
        except LookupError:
            logger.debug(f"[EXTRACTOR] Unknown charset {charset!r}, using utf-8")
    return "utf-8"


def decode_part_data(data: str, charset: str = "utf-8") -> str:
    """Decode a base64url body as sent by the Gmail API.

    Gmail strips padding on some payloads, so it is restored before decoding.
    Bytes that are invalid in ``charset`` are replaced rather than dropped.
    """
    padded = data + "=" * (-len(data) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Body is not valid base64url: {e}") from e
    return raw.decode(charset, errors="replace")


def _decode(part: MessagePart, data: str) -> str:
    return decode_part_data(data, _charset_of(part))


def _first_of_type(parts: list[MessagePart], mime_type: str) -> MessagePart | None:
    for part in parts:
        if part.body_data and part.mime_type.lower() == mime_type:
            return part
    return None


def _preferred_text(parts: list[MessagePart]) -> MessagePart | None:
    for mime_type in TEXT_PREFERENCE:
        part = _first_of_type(parts, mime_type)
        if part is not None:
            return part
    return None


def extract_body(payload: MessagePart) -> str | None:
    """Return the decoded text body of a message, or None if there is none.

    Search order:
    1. A body attached directly to the root payload.
    2. The first ``text/plain`` child, then the first ``text/html`` child.
    3. One level deeper: for each child that has sub-parts, its first
       ``text/plain`` grandchild, then its first ``text/html`` grandchild.

    The first match wins; deeper levels are never visited. A body that is
    empty after trimming is reported as None so callers can skip it.
    """
    if payload.body_data:
        body = _decode(payload, payload.body_data)
        return body if body.strip() else None

    found = _preferred_text(payload.parts)
    if found is None:
        for child in payload.parts:
            if child.parts:
                found = _preferred_text(child.parts)
                if found is not None:
                    logger.debug(f"[EXTRACTOR] Using nested {found.mime_type} body")
                    break
    elif found.mime_type.lower() == "text/html":
        logger.debug("[EXTRACTOR] Using HTML body")

    if found is None:
        return None

    body = _decode(found, found.body_data or "")
    return body if body.strip() else None
