"""
Audit Logger

DESIGN DECISION: Every ledger mutation and every rejected attempt is logged.
This provides:
1. Traceability of each balance change
2. Debugging capability
3. Visibility into conflicts (overdraft attempts, bad transfers)

The audit logger:
- Writes to the structured local log only (no transaction history is kept)
- Never raises; a logging failure must not fail a committed mutation
- Supports correlation IDs to trace related events
"""

import logging
from typing import Any, Optional
from uuid import UUID, uuid4

import structlog

from envelope_ledger.errors import ErrorKind, LedgerError
from envelope_ledger.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from envelope_ledger.models.envelope import Envelope


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(log_level: str = "INFO") -> None:
    """Route structlog output through stdlib logging at ``log_level``."""
    logging.basicConfig(format="%(message)s", level=log_level.upper())
    logging.getLogger().setLevel(log_level.upper())


class AuditLogger:
    """
    Central audit logging service.

    Turns ledger outcomes into AuditEvents and writes them to the
    structured log.
    """

    def __init__(self):
        self._logger = structlog.get_logger("envelope_ledger.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns True if the event was written.
        """
        log_dict = event.to_log_dict()

        try:
            if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception as e:
            # Log failure but don't raise
            logging.getLogger(__name__).error(
                "audit logging failed for %s: %s", event.event_id, e,
            )
            return False

        return True

    async def log_ledger_loaded(
        self,
        location: str,
        envelope_count: int,
        next_id: int,
        seeded: bool,
    ) -> None:
        """Log ledger start-up."""
        event = AuditEventBuilder.ledger_loaded(
            location=location,
            envelope_count=envelope_count,
            next_id=next_id,
            seeded=seeded,
        )
        await self.log(event)

    async def log_envelope_created(
        self,
        envelope: Envelope,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.envelope_created(envelope, correlation_id)
        await self.log(event)

    async def log_envelope_updated(
        self,
        envelope: Envelope,
        changes: dict[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.envelope_updated(envelope, changes, correlation_id)
        await self.log(event)

    async def log_envelope_deleted(
        self,
        envelope_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.envelope_deleted(envelope_id, correlation_id)
        await self.log(event)

    async def log_deposit(
        self,
        envelope: Envelope,
        amount_cents: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.funds_deposited(envelope, amount_cents, correlation_id)
        await self.log(event)

    async def log_withdrawal(
        self,
        envelope: Envelope,
        amount_cents: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.funds_withdrawn(envelope, amount_cents, correlation_id)
        await self.log(event)

    async def log_transfer(
        self,
        source: Envelope,
        destination: Envelope,
        amount_cents: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.funds_transferred(
            source, destination, amount_cents, correlation_id,
        )
        await self.log(event)

    async def log_failure(
        self,
        operation: str,
        error: LedgerError,
        envelope_id: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a rejected or failed operation. Fatal errors log at ERROR."""
        if error.kind == ErrorKind.FATAL:
            event = AuditEventBuilder.persistence_failed(
                operation=operation,
                error_message=error.message,
                correlation_id=correlation_id,
            )
        else:
            event = AuditEventBuilder.operation_rejected(
                operation=operation,
                error_kind=error.kind.value,
                error_message=error.message,
                envelope_id=envelope_id,
                correlation_id=correlation_id,
            )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a caller action and pass it through.
    """
    return uuid4()
