"""
Inbox sync pipeline.

One run per sync trigger:

    Triggered -> Fetching -> (Extracting -> Interpreting -> Matching -> Writing)*
    -> TriggerCleared

Messages are handled one at a time in the order the mailbox lists them.
A failure on one message is logged and counted, and the loop moves on.
The trigger row is deleted when the run ends, whatever happened.
"""

from __future__ import annotations

import asyncio
import uuid
from datetime import datetime, timezone
from typing import Callable, Literal, Optional, Protocol

import structlog
from pydantic import BaseModel

from ledgersync.core.config import Settings, get_settings
from ledgersync.core.exceptions import ConfigurationError, InterpretationError, MailboxError
from ledgersync.db.models.user import User
from ledgersync.db.unit_of_work import SessionFactory, UnitOfWork
from ledgersync.emails.body_extractor import extract_body
from ledgersync.emails.config import EmailConfig
from ledgersync.emails.gmail_connector import GmailConnector
from ledgersync.emails.interpreter import TransactionInterpreter
from ledgersync.emails.models import AccountRef, MailMessage
from ledgersync.ledger.writer import LedgerWriter
from ledgersync.matching.config import MatcherConfig
from ledgersync.matching.matcher import AccountMatcher
from ledgersync.sync.metrics import SyncMetrics

logger = structlog.get_logger("sync")

MessageOutcome = Literal["imported", "duplicate", "skipped"]


class Mailbox(Protocol):
    """The mailbox operations a sync run needs."""

    def list_candidate_ids(self) -> list[str]: ...

    def get_message(self, message_id: str) -> MailMessage: ...

    def mark_as_read(self, message_id: str) -> None: ...


MailboxFactory = Callable[[User], Mailbox]


class SyncRunResult(BaseModel):
    """Summary of one pipeline run."""

    run_id: str
    user_id: str
    status: Literal["success", "partial", "failed", "skipped"]
    reason: Optional[str] = None
    fetched: int = 0
    imported: int = 0
    duplicates: int = 0
    skipped: int = 0
    failed: int = 0


class SyncPipeline:
    """Ingests bank alert emails into a user's ledger."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        email_config: Optional[EmailConfig] = None,
        matcher_config: Optional[MatcherConfig] = None,
        session_factory: Optional[SessionFactory] = None,
        mailbox_factory: Optional[MailboxFactory] = None,
        interpreter: Optional[TransactionInterpreter] = None,
        metrics: Optional[SyncMetrics] = None,
    ):
        """
        Initialize the pipeline.

        Args:
            settings: Application settings (defaults to cached settings)
            email_config: Fetcher and LLM configuration
            matcher_config: Account matching policy
            session_factory: Database session factory (tests pass their own)
            mailbox_factory: Builds a mailbox for a user; defaults to Gmail
            interpreter: Transaction interpreter; built from config if omitted
            metrics: Shared metrics tracker
        """
        self.settings = settings or get_settings()
        self.config = email_config or EmailConfig.from_settings(self.settings)
        self._session_factory = session_factory
        self._mailbox_factory = mailbox_factory or self._gmail_mailbox
        self.interpreter = interpreter or self._create_interpreter()
        self.matcher = AccountMatcher(matcher_config, session_factory=session_factory)
        self.writer = LedgerWriter(session_factory=session_factory)
        self.metrics = metrics or SyncMetrics()

    def _create_interpreter(self) -> Optional[TransactionInterpreter]:
        if self.config.llm.enabled and self.config.llm.api_key:
            return TransactionInterpreter(self.config.llm)
        logger.warning("sync.llm_not_configured")
        return None

    def _gmail_mailbox(self, user: User) -> Mailbox:
        if not self.settings.gmail_client_configured:
            raise ConfigurationError("GMAIL_CLIENT_ID and GMAIL_CLIENT_SECRET are required")
        return GmailConnector(
            access_token=user.gmail_token or "",
            refresh_token=user.gmail_refresh_token,
            client_id=self.settings.GMAIL_CLIENT_ID or "",
            client_secret=self.settings.GMAIL_CLIENT_SECRET or "",
            config=self.config.fetcher,
        )

    async def run(self, user_id: str) -> SyncRunResult:
        """
        Execute one sync run for a user and clear their trigger.

        Configuration problems end the run early with status ``skipped``.
        Unexpected errors outside the per-message loop are re-raised after
        the trigger has been deleted.
        """
        run_id = f"sync-{datetime.now(timezone.utc).strftime('%Y%m%d-%H%M%S')}-{uuid.uuid4().hex[:6]}"
        log = logger.bind(run_id=run_id, user_id=user_id)
        self.metrics.start_run(run_id, user_id)
        log.info("sync.run_started")

        try:
            result = await self._run(user_id, run_id, log)
        except Exception as e:
            log.error("sync.run_failed", error=str(e), error_type=type(e).__name__)
            self.metrics.end_run("FAILED", error_message=str(e))
            raise
        finally:
            await self._clear_trigger(user_id, log)

        self.metrics.end_run(result.status.upper())  # type: ignore[arg-type]
        log.info("sync.run_completed", **result.model_dump(exclude={"run_id", "user_id"}))
        return result

    async def _run(self, user_id: str, run_id: str, log) -> SyncRunResult:
        async with UnitOfWork(session_factory=self._session_factory) as uow:
            user = await uow.users.get_by_id(user_id)
            account_rows = await uow.accounts.list_for_user(user_id)

        if user is None or not user.has_gmail_token:
            log.warning("sync.missing_gmail_token")
            return SyncRunResult(
                run_id=run_id, user_id=user_id, status="skipped", reason="missing_gmail_token"
            )
        interpreter = self.interpreter
        if interpreter is None:
            return SyncRunResult(
                run_id=run_id, user_id=user_id, status="skipped", reason="llm_not_configured"
            )
        try:
            mailbox = self._mailbox_factory(user)
        except ConfigurationError as e:
            log.warning("sync.configuration_error", error=str(e))
            return SyncRunResult(
                run_id=run_id, user_id=user_id, status="skipped", reason="missing_credentials"
            )

        log.info("sync.fetching")
        message_ids = await asyncio.to_thread(mailbox.list_candidate_ids)
        self.metrics.record_fetch(len(message_ids))
        result = SyncRunResult(
            run_id=run_id, user_id=user_id, status="success", fetched=len(message_ids)
        )

        if not message_ids:
            log.info("sync.no_new_messages")
            return result

        accounts = [AccountRef(id=a.id, name=a.name, bank=a.bank) for a in account_rows]
        log.info("sync.processing", messages=len(message_ids), accounts=len(accounts))

        for idx, message_id in enumerate(message_ids, 1):
            msg_log = log.bind(message_id=message_id, position=f"{idx}/{len(message_ids)}")
            try:
                outcome = await self._process_message(
                    user_id, message_id, mailbox, interpreter, accounts, msg_log
                )
            except Exception as e:
                msg_log.error(
                    "sync.message_failed", error=str(e), error_type=type(e).__name__
                )
                self.metrics.record_failed(f"{message_id}: {e}")
                result.failed += 1
                continue

            if outcome == "imported":
                self.metrics.record_imported()
                result.imported += 1
            elif outcome == "duplicate":
                self.metrics.record_duplicate()
                result.duplicates += 1
            else:
                result.skipped += 1

        if result.failed:
            result.status = "partial" if result.imported or result.duplicates else "failed"
        return result

    async def _process_message(
        self,
        user_id: str,
        message_id: str,
        mailbox: Mailbox,
        interpreter: TransactionInterpreter,
        accounts: list[AccountRef],
        log,
    ) -> MessageOutcome:
        message = await asyncio.to_thread(mailbox.get_message, message_id)
        log.debug("sync.message_fetched", sender=message.sender, subject=message.subject)

        body = extract_body(message.payload)
        if body is None:
            return self._skip(log, "no_body")

        try:
            parsed = await interpreter.interpret(body, accounts)
        except InterpretationError as e:
            log.warning("sync.uninterpretable", error=str(e), error_type=type(e).__name__)
            return self._skip(log, "uninterpretable")

        log.info(
            "sync.interpreted",
            merchant=parsed.merchant,
            amount=str(parsed.amount),
            direction=parsed.direction,
        )

        match = await self.matcher.match(user_id, body, accounts)
        if match is None or match.account.id is None:
            return self._skip(log, "no_account")

        entry = await self.writer.record(
            user_id,
            match.account.id,
            occurred_on=parsed.date,
            amount=parsed.amount,
            direction=parsed.direction,
            merchant=parsed.merchant,
            category=parsed.category,
            provenance="email-import",
            source_message_id=message_id,
        )

        try:
            await asyncio.to_thread(mailbox.mark_as_read, message_id)
            log.debug("sync.marked_read")
        except MailboxError as e:
            # The ledger write is already durable and guarded per message id
            log.error("sync.mark_read_failed", error=str(e))

        if entry.duplicate:
            return "duplicate"

        log.info(
            "sync.message_imported",
            account_id=entry.account_id,
            match_method=match.method,
            transaction_id=entry.transaction_id,
            new_balance=str(entry.new_balance),
        )
        return "imported"

    def _skip(self, log, reason: str) -> MessageOutcome:
        log.info("sync.message_skipped", reason=reason)
        self.metrics.record_skipped(reason)
        return "skipped"

    async def _clear_trigger(self, user_id: str, log) -> None:
        try:
            async with UnitOfWork(session_factory=self._session_factory) as uow:
                await uow.triggers.delete_for_user(user_id)
                await uow.commit()
            log.debug("sync.trigger_cleared")
        except Exception as e:
            log.error("sync.trigger_clear_failed", error=str(e))
