# events/types.py
"""
Event type definitions.

The dataclasses registered in EVENT_DATA_CLASSES are the contract for
event payloads; emit_event validates every payload against them.

Naming Convention: {aggregate}.{past_tense_verb}
Examples:
- upload_batch.staged
- upload_batch.approved

Adding optional fields with defaults is safe. Removing, renaming or
retyping a field breaks consumers of stored events.
"""

from dataclasses import MISSING, dataclass, asdict, fields as dataclass_fields
from typing import Any, Dict, List, Type, Union, get_args, get_origin, get_type_hints
from decimal import Decimal
from datetime import date, datetime


class InvalidEventPayload(Exception):
    """Raised at emission time when a payload does not match its schema."""

    def __init__(self, event_type: str, errors: List[str]):
        self.event_type = event_type
        self.errors = errors
        error_list = "\n  - ".join(errors)
        super().__init__(
            f"Invalid payload for event '{event_type}':\n  - {error_list}"
        )


@dataclass
class BaseEventData:
    """Base class for all event data."""

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON storage."""
        result = {}
        for key, value in asdict(self).items():
            if isinstance(value, Decimal):
                result[key] = str(value)
            elif isinstance(value, (date, datetime)):
                result[key] = value.isoformat()
            else:
                result[key] = value
        return result


class EventTypes:
    """Event type names."""

    UPLOAD_BATCH_STAGED = "upload_batch.staged"
    UPLOAD_BATCH_APPROVED = "upload_batch.approved"
    UPLOAD_BATCH_REJECTED = "upload_batch.rejected"


# Filled in by the apps that own the payload dataclasses (see AppConfig.ready).
EVENT_DATA_CLASSES: Dict[str, Type[BaseEventData]] = {}


def register_event_data(event_type: str, data_class: Type[BaseEventData]) -> None:
    EVENT_DATA_CLASSES[event_type] = data_class


def _is_optional_type(type_hint) -> bool:
    """Check if a type hint is Optional[X] (i.e., Union[X, None])."""
    return get_origin(type_hint) is Union and type(None) in get_args(type_hint)


def _get_inner_type(type_hint):
    """Get the inner type from Optional[X]."""
    non_none_args = [a for a in get_args(type_hint) if a is not type(None)]
    if len(non_none_args) == 1:
        return non_none_args[0]
    return type_hint


_SCALAR_CHECKS = {
    str: ("a string", lambda v: isinstance(v, str)),
    int: ("an int", lambda v: isinstance(v, int) and not isinstance(v, bool)),
    bool: ("a bool", lambda v: isinstance(v, bool)),
    list: ("a list", lambda v: isinstance(v, list)),
    dict: ("a dict", lambda v: isinstance(v, dict)),
}


def validate_event_payload(event_type: str, data: Dict[str, Any]) -> None:
    """
    Validate that a data dict matches the registered schema for an event type.

    Checks that required fields are present, that no unexpected fields are
    provided, and that scalar field types match.

    Raises:
        InvalidEventPayload: If validation fails
        ValueError: If event_type has no registered schema
    """
    data_class = EVENT_DATA_CLASSES.get(event_type)
    if data_class is None:
        raise ValueError(
            f"No schema registered for event type '{event_type}'. "
            f"Add a dataclass to EVENT_DATA_CLASSES."
        )

    errors = []
    dc_fields = {f.name: f for f in dataclass_fields(data_class)}
    type_hints = get_type_hints(data_class)

    for field_name, field_info in dc_fields.items():
        required = (
            field_info.default is MISSING and
            field_info.default_factory is MISSING
        )
        if required and field_name not in data:
            errors.append(f"Missing required field: '{field_name}'")

    unexpected = set(data.keys()) - set(dc_fields.keys())
    if unexpected:
        errors.append(
            f"Unexpected fields: {sorted(unexpected)}. "
            f"Expected: {sorted(dc_fields.keys())}"
        )

    for field_name, value in data.items():
        type_hint = type_hints.get(field_name)
        if type_hint is None:
            continue

        if value is None:
            if not _is_optional_type(type_hint):
                errors.append(f"Field '{field_name}' cannot be None (type: {type_hint})")
            continue

        check_type = _get_inner_type(type_hint) if _is_optional_type(type_hint) else type_hint
        check_type = get_origin(check_type) or check_type
        check = _SCALAR_CHECKS.get(check_type)
        if check and not check[1](value):
            errors.append(
                f"Field '{field_name}' must be {check[0]}, got {type(value).__name__}"
            )

    if errors:
        raise InvalidEventPayload(event_type, errors)
