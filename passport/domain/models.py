"""
Domain models and wire serialization for passport records.

The JSON produced here is a cross-language compatibility contract: peers
running other implementations of the contract must produce byte-identical
payloads, so key order is fixed by field declaration order and the encoder
mimics Go's `encoding/json` output (compact separators, HTML-safe escapes,
raw UTF-8 for everything else).
"""
from __future__ import annotations

import json
import re
from datetime import datetime, timezone
from typing import Any, List, Optional

from pydantic import BaseModel, Field, StrictBool, TypeAdapter, ValidationError

from passport.domain.errors import SerializationFault


class Person(BaseModel):
    """
    A person/passport record as stored in the world state under `id`.
    """

    id: str = Field(..., description="Unique world-state key.")
    serial: str = Field(..., alias="passport", description="External document number.")
    name: str = Field(..., description="Given name.")
    surname: str = Field(..., description="Family name.")
    city: str = Field(..., description="City of residence.")
    address: str = Field(..., description="Street address.")
    phone: str = Field(..., description="Contact phone number.")
    married: StrictBool = Field(..., description="Marital status.")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
    }


class HistoryEntry(BaseModel):
    """
    One change of a key, synthesized from the platform's per-key change log.

    `record` is None when the change was a deletion.
    """

    transaction_id: str = Field(..., alias="tx")
    timestamp: datetime
    record: Optional[Person] = Field(None, alias="data")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
    }


_GO_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}
_GO_ESCAPE_RE = re.compile("[<>&\u2028\u2029]")

_TRUE_LITERALS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_LITERALS = frozenset({"0", "f", "F", "FALSE", "false", "False"})

_PERSON_LIST = TypeAdapter(List[Person])
_HISTORY_LIST = TypeAdapter(List[HistoryEntry])


def parse_bool(text: str) -> bool:
    """
    Parse a boolean literal with the same vocabulary as Go's strconv.ParseBool.

    Raises
    ------
    ValueError
        If `text` is not one of the accepted literals.
    """
    if text in _TRUE_LITERALS:
        return True
    if text in _FALSE_LITERALS:
        return False
    raise ValueError(f"invalid boolean literal {text!r}")


def format_bool(value: bool) -> str:
    return "true" if value else "false"


def format_timestamp(ts: datetime) -> str:
    """Render a timestamp as RFC 3339 in UTC, trimming trailing fractional zeros."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    ts = ts.astimezone(timezone.utc)
    text = ts.strftime("%Y-%m-%dT%H:%M:%S")
    if ts.microsecond:
        text += "." + f"{ts.microsecond:06d}".rstrip("0")
    return text + "Z"


def _to_payload(value: Any) -> Any:
    if isinstance(value, Person):
        return value.model_dump(by_alias=True)
    if isinstance(value, HistoryEntry):
        return {
            "tx": value.transaction_id,
            "timestamp": format_timestamp(value.timestamp),
            "data": _to_payload(value.record) if value.record is not None else None,
        }
    if isinstance(value, (list, tuple)):
        return [_to_payload(item) for item in value]
    return value


def encode(value: Any) -> bytes:
    """
    Serialize a Person, HistoryEntry, list of those, or a JSON scalar.
    """
    text = json.dumps(_to_payload(value), separators=(",", ":"), ensure_ascii=False)
    return _GO_ESCAPE_RE.sub(lambda m: _GO_ESCAPES[m.group(0)], text).encode("utf-8")


def decode_person(raw: bytes) -> Person:
    try:
        return Person.model_validate_json(raw)
    except ValidationError as exc:
        raise SerializationFault(f"malformed person payload: {exc}") from exc


def decode_persons(raw: bytes) -> List[Person]:
    """Decode a JSON array of persons; an empty or `null` payload is an empty list."""
    if raw.strip() in (b"", b"null"):
        return []
    try:
        return _PERSON_LIST.validate_json(raw)
    except ValidationError as exc:
        raise SerializationFault(f"malformed person list payload: {exc}") from exc


def decode_history(raw: bytes) -> List[HistoryEntry]:
    if raw.strip() in (b"", b"null"):
        return []
    try:
        return _HISTORY_LIST.validate_json(raw)
    except ValidationError as exc:
        raise SerializationFault(f"malformed history payload: {exc}") from exc


def decode_bool(raw: bytes) -> bool:
    text = raw.strip()
    if text == b"true":
        return True
    if text == b"false":
        return False
    raise SerializationFault(f"malformed boolean payload: {raw!r}")


__all__ = [
    "Person",
    "HistoryEntry",
    "parse_bool",
    "format_bool",
    "format_timestamp",
    "encode",
    "decode_person",
    "decode_persons",
    "decode_history",
    "decode_bool",
]
