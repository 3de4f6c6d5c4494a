# uploads/lifecycle.py
"""
Batch lifecycle controller.

Owns the transaction boundary for every state change of an upload batch:

    Pending -> Validated | PendingValidation -> Processed | Rejected

ingest    parse + validate outside the transaction, then stage the batch
          header, all rows and the final status in one transaction.
approve   lock the batch, post every Valid row through the LedgerPoster,
          mark Processed, delete the staged rows. All or nothing.
reject    lock the batch, mark Rejected, delete every staged row.

The controller never retries; TransientError tells the caller the whole
operation can be repeated.
"""

import hashlib
import logging
from dataclasses import dataclass
from typing import Iterable, Optional
from uuid import UUID

from django.conf import settings
from django.db import transaction

from core.write_barrier import command_writes_allowed
from events.emitter import emit_event
from events.models import BusinessEvent
from events.types import EventTypes
from ledger.posting import LedgerPoster
from uploads.domains import get_domain
from uploads.event_types import (
    UploadBatchApprovedData,
    UploadBatchRejectedData,
    UploadBatchStagedData,
)
from uploads.exceptions import InvalidIdentityError, InvalidStateError, SchemaError
from uploads.models import UploadBatch
from uploads.parsers import parse_workbook
from uploads.store import BatchMeta, BatchStore, coerce_batch_id, translate_storage_errors
from uploads.validators import DEFAULT_TRANSACTION_MODES, mark_duplicate_keys

logger = logging.getLogger(__name__)

DEFAULT_REJECTION_REASON = "Rejected by administrator"
DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024


@dataclass(frozen=True)
class IngestResult:
    batch_id: UUID
    domain_kind: str
    total: int
    valid_count: int
    invalid_count: int
    status: str
    event: Optional[BusinessEvent] = None


@dataclass(frozen=True)
class ApproveResult:
    batch_id: UUID
    processed_count: int
    discarded_count: int
    status: str
    event: Optional[BusinessEvent] = None


@dataclass(frozen=True)
class RejectResult:
    batch_id: UUID
    deleted_count: int
    status: str
    event: Optional[BusinessEvent] = None


class BatchLifecycle:
    def __init__(
        self,
        store: BatchStore,
        poster: LedgerPoster,
        *,
        transaction_modes: Iterable[str] = DEFAULT_TRANSACTION_MODES,
        placeholder_identities: Iterable[str] = (),
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
    ):
        if store.using != poster.using:
            raise ValueError("BatchStore and LedgerPoster must share a database alias.")
        self.store = store
        self.poster = poster
        self.transaction_modes = tuple(transaction_modes)
        self.placeholder_identities = {i.lower() for i in placeholder_identities}
        self.max_file_size = max_file_size

    @classmethod
    def for_alias(cls, alias: Optional[str] = None) -> "BatchLifecycle":
        """Build a controller for a database alias from project settings."""
        alias = alias or getattr(settings, "UPLOADS_DATABASE_ALIAS", "default")
        return cls(
            BatchStore(using=alias),
            LedgerPoster(using=alias),
            transaction_modes=getattr(settings, "UPLOADS_TRANSACTION_MODES", DEFAULT_TRANSACTION_MODES),
            placeholder_identities=getattr(settings, "UPLOADS_PLACEHOLDER_IDENTITIES", ()),
            max_file_size=getattr(settings, "UPLOADS_MAX_FILE_SIZE", DEFAULT_MAX_FILE_SIZE),
        )

    @property
    def using(self) -> str:
        return self.store.using

    def _identity(self, actor) -> str:
        identity = (getattr(actor, "identity", None) or "").strip()
        if not identity:
            raise InvalidIdentityError("An authenticated identity is required.")
        if identity.lower() in self.placeholder_identities:
            raise InvalidIdentityError(f"'{identity}' is a placeholder, not an authenticated identity.")
        return identity

    def _guarded_batch(self, batch_id, operation: str, allowed) -> UploadBatch:
        """Lock the batch, check its status allows ``operation`` and return it."""
        status = self.store.get_batch_status(batch_id)
        if status not in allowed:
            raise InvalidStateError(coerce_batch_id(batch_id), status, operation, allowed)
        return self.store.get_batch(batch_id)

    # -------------------------------------------------------------------------
    # Ingest
    # -------------------------------------------------------------------------

    def ingest(self, domain_kind, file_bytes: bytes, actor, filename: str = "") -> IngestResult:
        """
        Parse, validate and stage an uploaded workbook.

        Row-level problems never fail the upload; they are stored on the
        staged rows and counted in the result.

        Raises:
            SchemaError: Unreadable file, oversize file or missing columns
            EmptyFileError: No data rows
            InvalidIdentityError: Blank or placeholder uploader
        """
        uploader = self._identity(actor)
        domain = get_domain(domain_kind)

        if len(file_bytes) > self.max_file_size:
            raise SchemaError(
                f"File is {len(file_bytes)} bytes; the limit is {self.max_file_size} bytes."
            )

        rows = parse_workbook(file_bytes, domain.schema)
        try:
            validated = [
                (raw, domain.validator(raw, transaction_modes=self.transaction_modes))
                for raw in rows
            ]
        finally:
            rows.close()
        validated = mark_duplicate_keys(domain.kind, validated)

        valid_count = sum(1 for _, v in validated if v.is_valid)
        invalid_count = len(validated) - valid_count
        checksum = hashlib.sha256(file_bytes).hexdigest()

        with translate_storage_errors():
            with transaction.atomic(using=self.using), command_writes_allowed():
                batch_id = self.store.create_batch(BatchMeta(
                    domain_kind=domain.kind,
                    uploaded_by=uploader,
                    original_filename=filename or "",
                    file_checksum=checksum,
                    file_size_bytes=len(file_bytes),
                ))
                self.store.stage_rows(batch_id, validated)
                status = self.store.finalize_staging(batch_id, valid_count, invalid_count)

                event = emit_event(
                    actor=actor,
                    event_type=EventTypes.UPLOAD_BATCH_STAGED,
                    aggregate_type="UploadBatch",
                    aggregate_id=batch_id,
                    idempotency_key=f"upload_batch.staged:{batch_id}",
                    data=UploadBatchStagedData(
                        batch_public_id=str(batch_id),
                        domain_kind=domain.kind.value,
                        original_filename=filename or "",
                        file_checksum=checksum,
                        total_rows=len(validated),
                        valid_rows=valid_count,
                        invalid_rows=invalid_count,
                        status=str(status),
                    ),
                    using=self.using,
                )

        logger.info(
            "Upload batch staged",
            extra={
                "batch_id": str(batch_id),
                "domain_kind": domain.kind.value,
                "total": len(validated),
                "valid": valid_count,
                "invalid": invalid_count,
                "status": str(status),
            },
        )
        return IngestResult(
            batch_id=batch_id,
            domain_kind=domain.kind.value,
            total=len(validated),
            valid_count=valid_count,
            invalid_count=invalid_count,
            status=str(status),
            event=event,
        )

    def list_pending_rows(self, domain_kind) -> list:
        with translate_storage_errors():
            return self.store.list_pending_rows(domain_kind)

    # -------------------------------------------------------------------------
    # Approve / reject
    # -------------------------------------------------------------------------

    def approve(self, batch_id, actor) -> ApproveResult:
        """
        Post every Valid row of a batch to the ledger and mark it Processed.

        Invalid rows are discarded with the batch. A batch with no Valid rows
        is still marked Processed.

        Raises:
            NotFoundError: Unknown batch id
            InvalidStateError: Batch not Validated or PendingValidation
            UnresolvedCategoryError: A referenced transaction type is missing
            DuplicateRecordError: Member or loan key already registered
            TransientError: Storage unavailable; nothing was changed
        """
        approver = self._identity(actor)

        with translate_storage_errors():
            with transaction.atomic(using=self.using), command_writes_allowed():
                batch = self._guarded_batch(batch_id, "approve", UploadBatch.REVIEWABLE_STATUSES)
                previous_status = batch.status

                valid_rows = self.store.fetch_valid_rows(batch.public_id)
                if valid_rows:
                    categories = self.poster.resolve_categories(
                        {row.record.category_name for row in valid_rows}
                    )
                    for row in valid_rows:
                        self.poster.post(
                            row.record,
                            batch_id=batch.public_id,
                            row_number=row.row_number,
                            categories=categories,
                        )
                else:
                    logger.warning(
                        "Approving batch with no valid rows",
                        extra={"batch_id": str(batch.public_id), "invalid": batch.invalid_rows},
                    )

                posted = self.store.delete_rows(batch.public_id, [row.row_id for row in valid_rows])
                discarded = self.store.delete_batch_rows(batch.public_id)
                self.store.mark_processed(batch, approver, len(valid_rows), posted + discarded)

                event = emit_event(
                    actor=actor,
                    event_type=EventTypes.UPLOAD_BATCH_APPROVED,
                    aggregate_type="UploadBatch",
                    aggregate_id=batch.public_id,
                    idempotency_key=f"upload_batch.approved:{batch.public_id}",
                    data=UploadBatchApprovedData(
                        batch_public_id=str(batch.public_id),
                        domain_kind=batch.domain_kind,
                        processed_count=len(valid_rows),
                        discarded_invalid_count=discarded,
                        approved_by=approver,
                        previous_status=previous_status,
                    ),
                    using=self.using,
                )

        logger.info(
            "Upload batch approved",
            extra={
                "batch_id": str(batch.public_id),
                "domain_kind": batch.domain_kind,
                "processed": len(valid_rows),
                "discarded": discarded,
                "approved_by": approver,
            },
        )
        return ApproveResult(
            batch_id=batch.public_id,
            processed_count=len(valid_rows),
            discarded_count=discarded,
            status=batch.status,
            event=event,
        )

    def reject(self, batch_id, actor, reason: str = "") -> RejectResult:
        """
        Mark a batch Rejected and delete all of its staged rows.

        Raises:
            NotFoundError: Unknown batch id
            InvalidStateError: Batch already Processed or Rejected
            TransientError: Storage unavailable; nothing was changed
        """
        approver = self._identity(actor)
        reason = (reason or "").strip() or DEFAULT_REJECTION_REASON

        with translate_storage_errors():
            with transaction.atomic(using=self.using), command_writes_allowed():
                batch = self._guarded_batch(batch_id, "reject", UploadBatch.REJECTABLE_STATUSES)
                previous_status = batch.status

                deleted = self.store.delete_batch_rows(batch.public_id)
                self.store.mark_rejected(batch, approver, reason, deleted)

                event = emit_event(
                    actor=actor,
                    event_type=EventTypes.UPLOAD_BATCH_REJECTED,
                    aggregate_type="UploadBatch",
                    aggregate_id=batch.public_id,
                    idempotency_key=f"upload_batch.rejected:{batch.public_id}",
                    data=UploadBatchRejectedData(
                        batch_public_id=str(batch.public_id),
                        domain_kind=batch.domain_kind,
                        deleted_count=deleted,
                        rejected_by=approver,
                        previous_status=previous_status,
                        reason=reason,
                    ),
                    using=self.using,
                )

        logger.info(
            "Upload batch rejected",
            extra={"batch_id": str(batch.public_id), "deleted": deleted, "rejected_by": approver},
        )
        return RejectResult(
            batch_id=batch.public_id,
            deleted_count=deleted,
            status=batch.status,
            event=event,
        )
