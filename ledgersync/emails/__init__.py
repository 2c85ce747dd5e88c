"""Email ingestion module for ledgersync.

This module handles:
- Gmail search and message retrieval
- MIME body extraction
- Tolerant JSON scraping of model replies
- LLM-assisted transaction interpretation
"""

# Lazy imports to avoid circular dependencies
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ledgersync.emails.config import EmailConfig, FetcherConfig, LLMConfig
    from ledgersync.emails.gmail_connector import GmailConnector
    from ledgersync.emails.interpreter import TransactionInterpreter

__all__ = [
    "EmailConfig",
    "FetcherConfig",
    "LLMConfig",
    "GmailConnector",
    "TransactionInterpreter",
]
