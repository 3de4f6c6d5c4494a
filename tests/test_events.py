# tests/test_events.py
"""
Tests for the events module.

Tests cover:
- Event immutability
- Idempotency key handling
- Per-aggregate sequencing
- Payload schema validation
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from events.emitter import emit_event
from events.models import BusinessEvent
from events.serialization import canonical_json, compute_payload_hash
from events.types import BaseEventData, EventTypes, InvalidEventPayload, validate_event_payload
from uploads.event_types import UploadBatchRejectedData, UploadBatchStagedData


def staged_data(batch_id, **overrides):
    data = dict(
        batch_public_id=str(batch_id),
        domain_kind="Contribution",
        original_filename="jan.xlsx",
        file_checksum="0" * 64,
        total_rows=3,
        valid_rows=2,
        invalid_rows=1,
        status="PendingValidation",
    )
    data.update(overrides)
    return UploadBatchStagedData(**data)


def emit_staged(actor, batch_id, key=None, **overrides):
    return emit_event(
        actor=actor,
        event_type=EventTypes.UPLOAD_BATCH_STAGED,
        aggregate_type="UploadBatch",
        aggregate_id=batch_id,
        data=staged_data(batch_id, **overrides),
        idempotency_key=key or f"test:{uuid4()}",
    )


# =============================================================================
# Event Immutability Tests
# =============================================================================

@pytest.mark.django_db
class TestEventImmutability:
    """Test that events cannot be modified after creation."""

    def test_cannot_modify_existing_event(self, uploader):
        event = emit_staged(uploader, uuid4())
        event.data["valid_rows"] = 3

        with pytest.raises(ValueError, match="immutable"):
            event.save()

    def test_cannot_delete_event(self, uploader):
        event = emit_staged(uploader, uuid4())

        with pytest.raises(ValueError, match="immutable"):
            event.delete()

    def test_idempotency_key_is_required(self, uploader):
        with pytest.raises(ValueError, match="idempotency_key"):
            emit_staged(uploader, uuid4(), key="  ")


# =============================================================================
# Idempotency Tests
# =============================================================================

@pytest.mark.django_db
class TestIdempotency:

    def test_duplicate_key_returns_existing_event(self, uploader):
        batch_id = uuid4()
        key = f"upload_batch.staged:{batch_id}"

        first = emit_staged(uploader, batch_id, key=key)
        second = emit_staged(uploader, batch_id, key=key, valid_rows=0, invalid_rows=3)

        assert first.id == second.id
        assert second.data["valid_rows"] == 2
        assert BusinessEvent.objects.filter(idempotency_key=key).count() == 1


# =============================================================================
# Sequencing Tests
# =============================================================================

@pytest.mark.django_db
class TestSequencing:

    def test_sequence_is_per_aggregate(self, uploader):
        batch_a, batch_b = uuid4(), uuid4()

        a1 = emit_staged(uploader, batch_a)
        b1 = emit_staged(uploader, batch_b)
        a2 = emit_staged(uploader, batch_a)

        assert (a1.sequence, a2.sequence, b1.sequence) == (1, 2, 1)

    def test_event_records_identity_and_hash(self, uploader):
        event = emit_staged(uploader, uuid4())

        assert event.caused_by == "clerk@coop.test"
        assert event.payload_hash == compute_payload_hash(event.data)
        assert event.aggregate_type == "UploadBatch"


# =============================================================================
# Payload Tests
# =============================================================================

class TestPayloads:

    def test_to_dict_serializes_decimals_and_dates(self):
        @dataclass
        class Sample(BaseEventData):
            amount: Decimal
            on: date

        assert Sample(Decimal("1.50"), date(2024, 1, 2)).to_dict() == {"amount": "1.50", "on": "2024-01-02"}

    def test_optional_field_may_be_omitted(self):
        data = UploadBatchRejectedData(
            batch_public_id=str(uuid4()),
            domain_kind="Loan",
            deleted_count=4,
            rejected_by="treasurer",
            previous_status="Validated",
        ).to_dict()
        data.pop("reason")

        validate_event_payload(EventTypes.UPLOAD_BATCH_REJECTED, data)

    def test_missing_and_unexpected_fields(self):
        data = staged_data(uuid4()).to_dict()
        data.pop("status")
        data["colour"] = "blue"

        with pytest.raises(InvalidEventPayload) as exc_info:
            validate_event_payload(EventTypes.UPLOAD_BATCH_STAGED, data)

        message = str(exc_info.value)
        assert "Missing required field: 'status'" in message
        assert "colour" in message

    def test_wrong_scalar_type(self):
        data = staged_data(uuid4()).to_dict()
        data["total_rows"] = "three"

        with pytest.raises(InvalidEventPayload, match="total_rows"):
            validate_event_payload(EventTypes.UPLOAD_BATCH_STAGED, data)

    def test_unregistered_event_type(self):
        with pytest.raises(ValueError, match="No schema registered"):
            validate_event_payload("upload_batch.archived", {})


class TestCanonicalSerialization:

    def test_key_order_does_not_change_the_hash(self):
        a = {"batch_public_id": "x", "counts": {"valid": 2, "invalid": 1}}
        b = {"counts": {"invalid": 1, "valid": 2}, "batch_public_id": "x"}

        assert canonical_json(a) == canonical_json(b) == '{"batch_public_id":"x","counts":{"invalid":1,"valid":2}}'
        assert compute_payload_hash(a) == compute_payload_hash(b)
        assert len(compute_payload_hash(a)) == 64

    def test_non_ascii_is_kept(self):
        assert canonical_json({"amount": "₦5,000"}) == '{"amount":"₦5,000"}'
