from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from passport.domain import HistoryEntry, Person, SerializationFault
from passport.domain.models import (
    decode_bool,
    decode_history,
    decode_person,
    decode_persons,
    encode,
    format_timestamp,
    parse_bool,
)


def _person(**overrides) -> Person:
    fields = {
        "id": "person0",
        "serial": "0510 228148",
        "name": "Igor",
        "surname": "Nikolaev",
        "city": "Moscow",
        "address": "Likhachevsky proezd 2",
        "phone": "88005553535",
        "married": True,
    }
    fields.update(overrides)
    return Person(**fields)


def test_person_encodes_compact_in_declared_key_order() -> None:
    raw = encode(_person())

    assert raw == (
        b'{"id":"person0","passport":"0510 228148","name":"Igor","surname":"Nikolaev",'
        b'"city":"Moscow","address":"Likhachevsky proezd 2","phone":"88005553535","married":true}'
    )


def test_encode_escapes_html_characters_like_go() -> None:
    raw = encode(_person(address="Lenina <5> & co"))

    assert b"\\u003c5\\u003e \\u0026 co" in raw
    assert decode_person(raw).address == "Lenina <5> & co"


def test_encode_escapes_line_and_paragraph_separators() -> None:
    raw = encode(_person(name="a\u2028b\u2029c"))

    assert b"a\\u2028b\\u2029c" in raw


def test_encode_keeps_non_ascii_as_utf8() -> None:
    raw = encode(_person(city="Москва"))

    assert "Москва".encode("utf-8") in raw


def test_decode_person_accepts_alias_and_round_trips() -> None:
    person = _person(married=False)

    assert decode_person(encode(person)) == person


def test_person_married_is_strict_bool() -> None:
    with pytest.raises(ValidationError):
        _person(married="yes")


def test_decode_person_rejects_malformed_payload() -> None:
    with pytest.raises(SerializationFault):
        decode_person(b'{"id":"person0"}')
    with pytest.raises(SerializationFault):
        decode_person(b"not json")


def test_decode_persons_treats_empty_and_null_as_empty_list() -> None:
    assert decode_persons(b"") == []
    assert decode_persons(b"null") == []
    assert decode_persons(b"[]") == []


def test_decode_persons_preserves_order() -> None:
    persons = [_person(id="a"), _person(id="b")]

    assert [p.id for p in decode_persons(encode(persons))] == ["a", "b"]


def test_history_entry_wire_shape() -> None:
    ts = datetime(2024, 5, 1, 12, 30, 0, 120000, tzinfo=timezone.utc)
    entries = [
        HistoryEntry(transaction_id="tx1", timestamp=ts, record=_person()),
        HistoryEntry(transaction_id="tx2", timestamp=ts, record=None),
    ]

    payload = json.loads(encode(entries))

    assert list(payload[0]) == ["tx", "timestamp", "data"]
    assert payload[0]["timestamp"] == "2024-05-01T12:30:00.12Z"
    assert payload[0]["data"]["passport"] == "0510 228148"
    assert payload[1]["data"] is None

    decoded = decode_history(encode(entries))
    assert decoded[0].record == _person()
    assert decoded[1].record is None
    assert decoded[1].timestamp == ts


def test_decode_history_rejects_malformed_payload() -> None:
    with pytest.raises(SerializationFault):
        decode_history(b'[{"tx":1}]')


def test_format_timestamp_normalizes_to_utc() -> None:
    ts = datetime(2024, 1, 1, 3, 0, 0, tzinfo=timezone(timedelta(hours=3)))

    assert format_timestamp(ts) == "2024-01-01T00:00:00Z"


@pytest.mark.parametrize("text", ["1", "t", "T", "TRUE", "true", "True"])
def test_parse_bool_true_literals(text: str) -> None:
    assert parse_bool(text) is True


@pytest.mark.parametrize("text", ["0", "f", "F", "FALSE", "false", "False"])
def test_parse_bool_false_literals(text: str) -> None:
    assert parse_bool(text) is False


@pytest.mark.parametrize("text", ["", "yes", "tRuE", " true"])
def test_parse_bool_rejects_other_text(text: str) -> None:
    with pytest.raises(ValueError):
        parse_bool(text)


def test_decode_bool() -> None:
    assert decode_bool(b"true") is True
    assert decode_bool(b"false") is False
    with pytest.raises(SerializationFault):
        decode_bool(b"1")
