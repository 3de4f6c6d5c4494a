# events/models.py
"""
Audit event store.

BusinessEvent rows record every batch lifecycle transition. Events are
immutable once created and are numbered per aggregate.
"""

import uuid

from django.db import models, transaction
from django.utils import timezone


class BusinessEvent(models.Model):
    """
    Immutable event record.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    event_type = models.CharField(
        max_length=100,
        db_index=True,
        help_text="Event type name (e.g., 'upload_batch.approved')",
    )

    aggregate_type = models.CharField(
        max_length=50,
        db_index=True,
        help_text="Entity type (e.g., 'UploadBatch')",
    )

    aggregate_id = models.CharField(
        max_length=64,
        db_index=True,
    )

    # Deduplication across retries
    idempotency_key = models.CharField(
        max_length=255,
        unique=True,
        editable=False,
    )

    sequence = models.PositiveIntegerField(
        default=0,
        editable=False,
        help_text="Auto-incremented per aggregate",
    )

    data = models.JSONField(
        default=dict,
        help_text="Event data payload",
    )

    metadata = models.JSONField(
        default=dict,
        blank=True,
    )

    payload_hash = models.CharField(
        max_length=64,
        blank=True,
        default="",
        help_text="SHA-256 of the canonical JSON payload",
    )

    caused_by = models.CharField(
        max_length=150,
        help_text="Identity of the authenticated principal",
    )

    recorded_at = models.DateTimeField(auto_now_add=True, db_index=True)

    occurred_at = models.DateTimeField(db_index=True, default=timezone.now)

    class Meta:
        ordering = ["recorded_at"]
        indexes = [
            models.Index(fields=["aggregate_type", "aggregate_id", "sequence"], name="event_aggregate_seq_idx"),
            models.Index(fields=["event_type", "occurred_at"], name="event_type_occurred_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["aggregate_type", "aggregate_id", "sequence"],
                name="uniq_event_aggregate_sequence",
            ),
        ]

    def __str__(self):
        return f"{self.event_type} [{self.aggregate_type}#{self.aggregate_id}] @{self.occurred_at}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Events are immutable and cannot be modified.")

        if not self.idempotency_key or not self.idempotency_key.strip():
            raise ValueError("idempotency_key is required")

        using = kwargs.get("using") or self._state.db or "default"
        with transaction.atomic(using=using):
            if self.sequence == 0:
                last_event = BusinessEvent.objects.using(using).filter(
                    aggregate_type=self.aggregate_type,
                    aggregate_id=self.aggregate_id,
                ).order_by("-sequence").first()
                self.sequence = (last_event.sequence + 1) if last_event else 1

            super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Events are immutable and cannot be deleted.")
