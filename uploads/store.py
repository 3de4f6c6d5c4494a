# uploads/store.py
"""
Batch store: durable staging for upload batches.

BatchStore is bound to one database alias at construction and is passed
to the lifecycle controller; nothing here is a module-level singleton.
Methods that change several rows open their own (possibly nested)
transaction so a batch's staged rows persist all together or not at all.
"""

import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from django.db import DEFAULT_DB_ALIAS, InterfaceError, OperationalError, transaction
from django.utils import timezone

from core.write_barrier import ensure_write_allowed
from uploads.domains import get_domain
from uploads.exceptions import NotFoundError, TransientError
from uploads.models import STAGING_WRITE_CONTEXTS, UploadBatch
from uploads.parsers import RawRow
from uploads.records import ValidationStatus
from uploads.validators import RowValidation

logger = logging.getLogger(__name__)

STAGE_CHUNK_SIZE = 500


@dataclass(frozen=True)
class BatchMeta:
    domain_kind: str
    uploaded_by: str
    original_filename: str = ""
    file_checksum: str = ""
    file_size_bytes: int = 0


@dataclass(frozen=True)
class ValidRow:
    """A staged row that passed validation, ready for posting."""

    row_id: int
    row_number: int
    record: Any


@contextmanager
def translate_storage_errors():
    """Re-raise database connectivity failures and lock timeouts as TransientError."""
    try:
        yield
    except (OperationalError, InterfaceError) as exc:
        logger.warning("Storage unavailable", extra={"error": str(exc)})
        raise TransientError(f"Storage unavailable, retry the operation: {exc}") from exc


def coerce_batch_id(batch_id) -> uuid.UUID:
    if isinstance(batch_id, uuid.UUID):
        return batch_id
    try:
        return uuid.UUID(str(batch_id))
    except (TypeError, ValueError, AttributeError):
        raise NotFoundError(batch_id)


class BatchStore:
    def __init__(self, using: str = DEFAULT_DB_ALIAS):
        self.using = using

    def _batches(self):
        return UploadBatch.objects.using(self.using)

    def _rows(self, batch: UploadBatch):
        return get_domain(batch.domain_kind).staged_model.objects.using(self.using).filter(batch=batch)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get_batch(self, batch_id) -> UploadBatch:
        try:
            return self._batches().get(public_id=coerce_batch_id(batch_id))
        except UploadBatch.DoesNotExist:
            raise NotFoundError(batch_id)

    def lock_batch(self, batch_id) -> UploadBatch:
        """
        Load a batch under a write-intent row lock.

        Must run inside transaction.atomic(using=self.using). Concurrent
        callers locking the same batch block until the holder commits, then
        see the committed status.
        """
        try:
            return self._batches().select_for_update().get(public_id=coerce_batch_id(batch_id))
        except UploadBatch.DoesNotExist:
            raise NotFoundError(batch_id)

    def get_batch_status(self, batch_id) -> str:
        return self.lock_batch(batch_id).status

    def fetch_valid_rows(self, batch_id) -> List[ValidRow]:
        batch = self.get_batch(batch_id)
        rows = self._rows(batch).filter(validation_status=ValidationStatus.VALID).order_by("row_number", "id")
        return [ValidRow(row_id=row.pk, row_number=row.row_number, record=row.to_record()) for row in rows]

    def list_pending_rows(self, domain_kind) -> list:
        """Staged rows of batches awaiting review, newest batch first, then sheet order."""
        model = get_domain(domain_kind).staged_model
        return list(
            model.objects.using(self.using)
            .select_related("batch")
            .filter(batch__status__in=UploadBatch.REVIEWABLE_STATUSES)
            .order_by("-batch__uploaded_at", "batch_id", "row_number", "id")
        )

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def create_batch(self, meta: BatchMeta) -> uuid.UUID:
        batch = self._batches().create(
            domain_kind=get_domain(meta.domain_kind).kind,
            status=UploadBatch.Status.PENDING,
            uploaded_by=meta.uploaded_by,
            original_filename=meta.original_filename[:255],
            file_checksum=meta.file_checksum,
            file_size_bytes=meta.file_size_bytes,
        )
        return batch.public_id

    def stage_rows(self, batch_id, rows: Iterable[Tuple[RawRow, RowValidation]]) -> int:
        """Bulk-insert staged rows for a batch; all rows persist or none do."""
        batch = self.get_batch(batch_id)
        model = get_domain(batch.domain_kind).staged_model
        ensure_write_allowed(model.__name__, STAGING_WRITE_CONTEXTS)
        field_names = model.record_field_names()

        staged = [
            model(
                batch=batch,
                row_number=raw.row_number,
                raw_payload=raw.values,
                validation_status=validation.status,
                validation_errors=list(validation.errors),
                **{name: getattr(validation.record, name) for name in field_names},
            )
            for raw, validation in rows
        ]
        with transaction.atomic(using=self.using):
            model.objects.using(self.using).bulk_create(staged, batch_size=STAGE_CHUNK_SIZE)
        return len(staged)

    def finalize_staging(self, batch_id, valid_count: int, invalid_count: int) -> str:
        batch = self.get_batch(batch_id)
        batch.valid_rows = valid_count
        batch.invalid_rows = invalid_count
        batch.total_rows = valid_count + invalid_count
        batch.status = (
            UploadBatch.Status.VALIDATED if invalid_count == 0
            else UploadBatch.Status.PENDING_VALIDATION
        )
        batch.save(
            using=self.using,
            update_fields=["valid_rows", "invalid_rows", "total_rows", "status", "updated_at"],
        )
        return batch.status

    def delete_rows(self, batch_id, row_ids: Sequence[int]) -> int:
        if not row_ids:
            return 0
        batch = self.get_batch(batch_id)
        deleted, _ = self._rows(batch).filter(pk__in=list(row_ids)).delete()
        return deleted

    def delete_batch_rows(self, batch_id) -> int:
        deleted, _ = self._rows(self.get_batch(batch_id)).delete()
        return deleted

    def mark_processed(self, batch: UploadBatch, approver: str, processed_count: int, deleted_count: int) -> UploadBatch:
        batch.status = UploadBatch.Status.PROCESSED
        batch.reviewed_by = approver
        batch.reviewed_at = timezone.now()
        batch.processed_rows = processed_count
        batch.deleted_rows = deleted_count
        batch.save(
            using=self.using,
            update_fields=["status", "reviewed_by", "reviewed_at", "processed_rows", "deleted_rows", "updated_at"],
        )
        return batch

    def mark_rejected(self, batch: UploadBatch, approver: str, reason: str, deleted_count: Optional[int]) -> UploadBatch:
        batch.status = UploadBatch.Status.REJECTED
        batch.reviewed_by = approver
        batch.reviewed_at = timezone.now()
        batch.rejection_reason = reason
        batch.deleted_rows = deleted_count
        batch.save(
            using=self.using,
            update_fields=["status", "reviewed_by", "reviewed_at", "rejection_reason", "deleted_rows", "updated_at"],
        )
        return batch
