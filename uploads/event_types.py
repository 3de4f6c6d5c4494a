# uploads/event_types.py
"""Payload schemas for upload batch events."""

from dataclasses import dataclass
from typing import Optional

from events.types import BaseEventData, EventTypes, register_event_data


@dataclass
class UploadBatchStagedData(BaseEventData):
    """Data for upload_batch.staged event."""
    batch_public_id: str
    domain_kind: str
    original_filename: str
    file_checksum: str
    total_rows: int
    valid_rows: int
    invalid_rows: int
    status: str


@dataclass
class UploadBatchApprovedData(BaseEventData):
    """Data for upload_batch.approved event."""
    batch_public_id: str
    domain_kind: str
    processed_count: int
    discarded_invalid_count: int
    approved_by: str
    previous_status: str


@dataclass
class UploadBatchRejectedData(BaseEventData):
    """Data for upload_batch.rejected event."""
    batch_public_id: str
    domain_kind: str
    deleted_count: int
    rejected_by: str
    previous_status: str
    reason: Optional[str] = None


def register() -> None:
    register_event_data(EventTypes.UPLOAD_BATCH_STAGED, UploadBatchStagedData)
    register_event_data(EventTypes.UPLOAD_BATCH_APPROVED, UploadBatchApprovedData)
    register_event_data(EventTypes.UPLOAD_BATCH_REJECTED, UploadBatchRejectedData)
