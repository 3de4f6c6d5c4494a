"""
Events app - audit trail for the upload pipeline.

This app provides:
- BusinessEvent: immutable event records
- emit_event: idempotent, schema-validated emission
- Event type definitions (events/types.py) with a registry that other
  apps extend with their own payload dataclasses

Usage:
    from events.emitter import emit_event
    from events.types import EventTypes

    emit_event(
        actor=actor,
        event_type=EventTypes.UPLOAD_BATCH_APPROVED,
        aggregate_type="UploadBatch",
        aggregate_id=batch.public_id,
        data=UploadBatchApprovedData(...),
        idempotency_key=f"upload_batch.approved:{batch.public_id}",
    )
"""
