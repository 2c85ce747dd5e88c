"""Exception hierarchy shared across the ingestion pipeline."""


class LedgerSyncError(Exception):
    """Base exception for ledgersync errors."""

    pass


class ConfigurationError(LedgerSyncError):
    """Raised when required credentials or settings are missing."""

    pass


class MailboxError(LedgerSyncError):
    """Raised when the mailbox API cannot be reached or returns bad data."""

    pass


class QuoteError(LedgerSyncError):
    """Raised when a market quote cannot be fetched or understood."""

    pass


class AccountNotFoundError(LedgerSyncError):
    """Raised when a ledger write targets an account the user does not own."""

    pass


class InterpretationError(LedgerSyncError):
    """Base class for per-message failures while interpreting an email."""

    pass


class LLMRequestError(InterpretationError):
    """Raised when the text-generation API call fails."""

    pass


class NoJSONFoundError(InterpretationError):
    """Raised when a model reply contains no balanced JSON object."""

    pass


class MalformedJSONError(InterpretationError):
    """Raised when the first balanced object in a reply is not valid JSON."""

    pass


class InvalidTransactionError(InterpretationError):
    """Raised when parsed fields fail validation (bad date, amount, type)."""

    pass
