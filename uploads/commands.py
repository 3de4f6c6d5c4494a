# uploads/commands.py
"""
Command layer for bulk upload operations.

Commands are the single point where upload state changes happen.
Views call commands; commands check permissions and hand off to the
BatchLifecycle, which owns the transaction and emits the audit event.

Pattern:
1. Validate permissions (require)
2. Run the lifecycle operation (one transaction, event included)
3. Return CommandResult

Pipeline errors (SchemaError, NotFoundError, InvalidStateError, ...)
propagate to the caller unchanged so the HTTP layer can map each one to
its own status code.
"""

from typing import Optional

from accounts.authz import APPROVE, REJECT, STAGE, VIEW, ActorContext, require
from uploads.lifecycle import BatchLifecycle


class CommandResult:
    """
    Wrapper for command results.

    Usage:
        result = approve_batch(actor, batch_id)
        summary = result.data
        event = result.event
    """

    def __init__(self, success: bool, data=None, event=None):
        self.success = success
        self.data = data
        self.event = event  # The emitted event, if any

    @classmethod
    def ok(cls, data=None, event=None):
        return cls(success=True, data=data, event=event)


def _lifecycle(lifecycle: Optional[BatchLifecycle]) -> BatchLifecycle:
    return lifecycle or BatchLifecycle.for_alias()


def ingest_batch(
    actor: ActorContext,
    domain_kind: str,
    file_bytes: bytes,
    filename: str = "",
    lifecycle: Optional[BatchLifecycle] = None,
) -> CommandResult:
    """
    Parse, validate and stage an uploaded workbook as a new batch.

    Args:
        actor: The actor context; its identity becomes the uploader
        domain_kind: Member, Loan, Contribution or Transaction
        file_bytes: Raw .xlsx content
        filename: Original file name, kept for display

    Returns:
        CommandResult with an IngestResult
    """
    require(actor, STAGE)
    result = _lifecycle(lifecycle).ingest(domain_kind, file_bytes, actor, filename=filename)
    return CommandResult.ok(data=result, event=result.event)


def list_pending_rows(
    actor: ActorContext,
    domain_kind: str,
    lifecycle: Optional[BatchLifecycle] = None,
) -> CommandResult:
    """Staged rows of every batch of this kind that is awaiting review."""
    require(actor, VIEW)
    return CommandResult.ok(data=_lifecycle(lifecycle).list_pending_rows(domain_kind))


def approve_batch(
    actor: ActorContext,
    batch_id,
    lifecycle: Optional[BatchLifecycle] = None,
) -> CommandResult:
    """
    Post every valid row of a staged batch to the ledger.

    Returns:
        CommandResult with an ApproveResult
    """
    require(actor, APPROVE)
    result = _lifecycle(lifecycle).approve(batch_id, actor)
    return CommandResult.ok(data=result, event=result.event)


def reject_batch(
    actor: ActorContext,
    batch_id,
    reason: str = "",
    lifecycle: Optional[BatchLifecycle] = None,
) -> CommandResult:
    """
    Discard a staged batch and all of its rows.

    Returns:
        CommandResult with a RejectResult
    """
    require(actor, REJECT)
    result = _lifecycle(lifecycle).reject(batch_id, actor, reason=reason)
    return CommandResult.ok(data=result, event=result.event)
