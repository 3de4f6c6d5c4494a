# events/emitter.py
"""
Event emission.

All audit events go through emit_event so that every payload is validated
against its schema and emission is idempotent by key. Call it inside the
command's transaction: the event commits or rolls back with the change it
describes.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Optional, Union

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from events.models import BusinessEvent
from events.serialization import compute_payload_hash
from events.types import BaseEventData, validate_event_payload

logger = logging.getLogger(__name__)


def emit_event(
    *,
    actor,
    event_type: str,
    aggregate_type: str,
    aggregate_id: Any,
    data: Union[Dict[str, Any], BaseEventData],
    idempotency_key: str,
    metadata: Optional[Dict[str, Any]] = None,
    occurred_at: Optional[datetime] = None,
    using: str = "default",
) -> BusinessEvent:
    """
    Emit a business event.

    Args:
        actor: ActorContext of the caller; its identity is recorded
        event_type: Registered event type (see events.types.EventTypes)
        aggregate_type: Aggregate name, e.g. "UploadBatch"
        aggregate_id: Aggregate identifier
        data: Payload dict or BaseEventData instance
        idempotency_key: Unique key; re-emitting with the same key returns
            the existing event
        metadata: Optional request context
        occurred_at: Defaults to now
        using: Database alias

    Returns:
        The created (or existing, if idempotent) BusinessEvent

    Raises:
        InvalidEventPayload: If data doesn't match the schema
        ValueError: If idempotency_key is missing
    """
    if not idempotency_key or not str(idempotency_key).strip():
        raise ValueError("idempotency_key is required")

    if isinstance(data, BaseEventData):
        data = data.to_dict()

    if not getattr(settings, "DISABLE_EVENT_VALIDATION", False):
        validate_event_payload(event_type, data)

    existing = BusinessEvent.objects.using(using).filter(idempotency_key=idempotency_key).first()
    if existing:
        return existing

    for attempt in range(3):
        try:
            with transaction.atomic(using=using):
                event = BusinessEvent(
                    event_type=event_type,
                    aggregate_type=aggregate_type,
                    aggregate_id=str(aggregate_id),
                    data=data,
                    metadata=metadata or {},
                    payload_hash=compute_payload_hash(data),
                    caused_by=actor.identity,
                    occurred_at=occurred_at or timezone.now(),
                    idempotency_key=idempotency_key,
                )
                event.save(using=using)
        except IntegrityError:
            # Idempotency key or aggregate sequence collided with a concurrent writer.
            existing = BusinessEvent.objects.using(using).filter(idempotency_key=idempotency_key).first()
            if existing:
                return existing
            if attempt == 2:
                raise
        else:
            logger.debug(
                "Event emitted",
                extra={"event_type": event_type, "aggregate_id": str(aggregate_id)},
            )
            return event

    raise RuntimeError("Failed to emit event after retries")
