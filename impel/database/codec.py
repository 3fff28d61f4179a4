"""
Record codec for Impel storage values.

Records are stored as compact UTF-8 JSON objects with camelCase field names
and a ``kind`` tag naming the record type. Decoding validates the payload
against the record schema, so a value written for one kind never loads as
another and unknown or mistyped fields are rejected.
"""

import json
from typing import Optional, Type, TypeVar

from pydantic import ValidationError

from ..errors import DecodeError
from .models import Record

R = TypeVar("R", bound=Record)

KIND_FIELD = "kind"


def encode(record: Record) -> bytes:
    """Encode a record to its canonical storage bytes."""
    payload = record.model_dump(mode="json", by_alias=True)
    payload[KIND_FIELD] = record.record_kind
    return json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")


def decode(data: Optional[bytes], model: Type[R]) -> Optional[R]:
    """Decode storage bytes into ``model``.

    Returns None for a missing or empty value. Anything else that does not
    match the schema raises DecodeError.
    """
    if data is None or data == b"":
        return None

    try:
        payload = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise DecodeError(model.record_kind, f"malformed json: {e}") from e

    if not isinstance(payload, dict):
        raise DecodeError(model.record_kind, f"expected object, got {type(payload).__name__}")

    kind = payload.pop(KIND_FIELD, None)
    if kind != model.record_kind:
        raise DecodeError(model.record_kind, f"kind tag is {kind!r}")

    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise DecodeError(model.record_kind, str(e)) from e
