"""
Audit Models for Envelope Ledger

Every mutation of the ledger, and every rejected attempt, produces an audit
event. This provides:
1. Traceability of what happened to each envelope
2. Debugging information when things go wrong
3. A clear record of rejected operations and why

DESIGN DECISION: Audit events go to the structured log only. The ledger does
not keep a transaction history; the snapshot file holds current balances.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from envelope_ledger.models.envelope import Envelope, utc_now


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Lifecycle
    LEDGER_LOADED = "ledger_loaded"
    LEDGER_SEEDED = "ledger_seeded"

    # Envelope management
    ENVELOPE_CREATED = "envelope_created"
    ENVELOPE_UPDATED = "envelope_updated"
    ENVELOPE_DELETED = "envelope_deleted"

    # Money movement
    FUNDS_DEPOSITED = "funds_deposited"
    FUNDS_WITHDRAWN = "funds_withdrawn"
    FUNDS_TRANSFERRED = "funds_transferred"

    # Failures
    OPERATION_REJECTED = "operation_rejected"
    PERSISTENCE_FAILED = "persistence_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant ledger action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - which envelope is this about?
    envelope_id: Optional[int] = Field(
        default=None,
        description="Envelope the event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate events from one caller action"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_kind: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "envelope_id": self.envelope_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_kind": self.error_kind,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.funds_deposited(envelope, 500, correlation_id)
        await audit_logger.log(event)
    """

    @staticmethod
    def ledger_loaded(
        location: str,
        envelope_count: int,
        next_id: int,
        seeded: bool,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_SEEDED if seeded else AuditEventType.LEDGER_LOADED,
            description=(
                f"Seeded new ledger at {location}" if seeded
                else f"Loaded ledger from {location}"
            ),
            details={
                "location": location,
                "envelope_count": envelope_count,
                "next_id": next_id,
            },
        )

    @staticmethod
    def envelope_created(
        envelope: Envelope,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENVELOPE_CREATED,
            envelope_id=envelope.id,
            correlation_id=correlation_id,
            description=f"Envelope created: {envelope.name}",
            details={
                "name": envelope.name,
                "balance_cents": envelope.balance_cents,
            },
        )

    @staticmethod
    def envelope_updated(
        envelope: Envelope,
        changes: dict[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENVELOPE_UPDATED,
            envelope_id=envelope.id,
            correlation_id=correlation_id,
            description=f"Envelope updated: {envelope.name}",
            details={
                "changes": changes,
                "balance_cents": envelope.balance_cents,
            },
        )

    @staticmethod
    def envelope_deleted(
        envelope_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENVELOPE_DELETED,
            envelope_id=envelope_id,
            correlation_id=correlation_id,
            description=f"Envelope {envelope_id} deleted",
        )

    @staticmethod
    def funds_deposited(
        envelope: Envelope,
        amount_cents: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FUNDS_DEPOSITED,
            envelope_id=envelope.id,
            correlation_id=correlation_id,
            description=f"Deposited {amount_cents} cents into {envelope.name}",
            details={
                "amount_cents": amount_cents,
                "balance_cents": envelope.balance_cents,
            },
        )

    @staticmethod
    def funds_withdrawn(
        envelope: Envelope,
        amount_cents: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FUNDS_WITHDRAWN,
            envelope_id=envelope.id,
            correlation_id=correlation_id,
            description=f"Withdrew {amount_cents} cents from {envelope.name}",
            details={
                "amount_cents": amount_cents,
                "balance_cents": envelope.balance_cents,
            },
        )

    @staticmethod
    def funds_transferred(
        source: Envelope,
        destination: Envelope,
        amount_cents: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FUNDS_TRANSFERRED,
            envelope_id=source.id,
            correlation_id=correlation_id,
            description=(
                f"Transferred {amount_cents} cents from {source.name} to {destination.name}"
            ),
            details={
                "from_id": source.id,
                "to_id": destination.id,
                "amount_cents": amount_cents,
                "from_balance_cents": source.balance_cents,
                "to_balance_cents": destination.balance_cents,
            },
        )

    @staticmethod
    def operation_rejected(
        operation: str,
        error_kind: str,
        error_message: str,
        envelope_id: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OPERATION_REJECTED,
            severity=AuditSeverity.WARNING,
            envelope_id=envelope_id,
            correlation_id=correlation_id,
            description=f"{operation} rejected: {error_message}"[:500],
            details={"operation": operation},
            error_kind=error_kind,
            error_message=error_message,
        )

    @staticmethod
    def persistence_failed(
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERSISTENCE_FAILED,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description=f"{operation} could not be saved",
            details={"operation": operation},
            error_kind="fatal",
            error_message=error_message,
        )
