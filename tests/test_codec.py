from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from uuid import UUID

import pytest

from poi_log.codec import (
    CheckInDecodeError,
    csv_escape,
    decode_json,
    decode_legacy_json,
    encode_csv,
    encode_json,
)

RECORD_ID = UUID("3F2504E0-4F89-11D3-9A0C-0305E82C3301")


def test_csv_header_only_for_empty_input() -> None:
    assert encode_csv([]) == "date,time,name,address,latitude,longitude,category"


def test_csv_quotes_fields_with_commas(make_record) -> None:
    record = make_record(address="300 Webster St, Oakland, CA 94607")
    lines = encode_csv([record], tz=timezone.utc).split("\n")
    assert len(lines) == 2
    assert '"300 Webster St, Oakland, CA 94607"' in lines[1]


def test_csv_doubles_embedded_quotes(make_record) -> None:
    record = make_record(name='Joe\'s "Best" Pizza')
    assert '"Joe\'s ""Best"" Pizza"' in encode_csv([record], tz=timezone.utc)


def test_csv_row_layout(make_record) -> None:
    record = make_record(
        name="Blue Bottle Coffee",
        address="300 Webster St",
        latitude=37.8012,
        longitude=-122.2727,
        category=None,
        created_at=datetime(2025, 12, 27, 9, 5, 42, tzinfo=timezone.utc),
    )
    row = encode_csv([record], tz=timezone.utc).split("\n")[1]
    assert row == "2025-12-27,09:05,Blue Bottle Coffee,300 Webster St,37.801200,-122.272700,"


def test_csv_uses_local_wall_clock(make_record) -> None:
    record = make_record(created_at=datetime(2025, 1, 1, 3, 30, tzinfo=timezone.utc))
    pacific = timezone(timedelta(hours=-8))
    row = encode_csv([record], tz=pacific).split("\n")[1]
    assert row.startswith("2024-12-31,19:30,")


def test_csv_keeps_given_order(make_record) -> None:
    older = make_record(name="Older", created_at=datetime(2024, 1, 1, tzinfo=timezone.utc))
    newer = make_record(name="Newer", created_at=datetime(2025, 1, 1, tzinfo=timezone.utc))
    lines = encode_csv([older, newer], tz=timezone.utc).split("\n")
    assert ",Older," in lines[1]
    assert ",Newer," in lines[2]


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("plain", "plain"),
        ("", ""),
        ("line\nbreak", '"line\nbreak"'),
        ("a,b", '"a,b"'),
        ('say "hi"', '"say ""hi"""'),
        ("it's fine", "it's fine"),
    ],
)
def test_csv_escape(value: str, expected: str) -> None:
    assert csv_escape(value) == expected


def test_json_keys_sorted_and_category_omitted(make_record) -> None:
    record = make_record(
        category=None,
        record_id=RECORD_ID,
        created_at=datetime(2025, 12, 27, 17, 12, 5, tzinfo=timezone.utc),
    )
    encoded = encode_json([record])
    assert encoded == (
        '[{"address":"123 Main St","createdAt":"2025-12-27T17:12:05Z",'
        '"id":"3F2504E0-4F89-11D3-9A0C-0305E82C3301","latitude":37.8012,'
        '"longitude":-122.2727,"name":"Test Place"}]'
    )


def test_pretty_json_for_export(make_record) -> None:
    record = make_record(name="Test Place", category="restaurant")
    pretty = encode_json([record], pretty=True)
    assert '"name": "Test Place"' in pretty
    assert '"category": "restaurant"' in pretty
    assert pretty.startswith("[\n  {")
    assert encode_json([], pretty=True) == "[]"


def test_json_round_trip(make_record) -> None:
    records = [
        make_record(name="Café Ünïcode", category=None),
        make_record(name="Second", latitude=-33.868820, longitude=151.209296),
    ]
    assert decode_json(encode_json(records)) == records


def test_reencoding_canonical_output_is_byte_identical(make_record) -> None:
    encoded = encode_json([make_record(), make_record(name='Quote " and, comma', category=None)])
    assert encode_json(decode_json(encoded)) == encoded

    pretty = encode_json([make_record()], pretty=True)
    assert encode_json(decode_json(pretty), pretty=True) == pretty


def test_decode_accepts_offsets_fractions_and_lowercase_ids() -> None:
    payload = json.dumps(
        [
            {
                "id": str(RECORD_ID).lower(),
                "name": "Somewhere",
                "address": "",
                "latitude": 1,
                "longitude": 2.1234567,
                "createdAt": "2025-06-01T12:00:00.750+02:00",
            }
        ]
    )
    (record,) = decode_json(payload)
    assert record.id == RECORD_ID
    assert record.latitude == 1.0
    assert record.longitude == 2.123457
    assert record.category is None
    assert record.created_at == datetime(2025, 6, 1, 10, 0, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "payload",
    [
        "not json",
        '{"id": "x"}',
        "[1]",
        '[{"id": "nope", "name": "a", "address": "b", "latitude": 1, "longitude": 2, "createdAt": "2025-01-01T00:00:00Z"}]',
        '[{"id": "3F2504E0-4F89-11D3-9A0C-0305E82C3301", "name": "a", "address": "b", "latitude": "1", "longitude": 2, "createdAt": "2025-01-01T00:00:00Z"}]',
        '[{"id": "3F2504E0-4F89-11D3-9A0C-0305E82C3301", "name": "a", "address": "b", "latitude": 1, "longitude": 2, "createdAt": "yesterday"}]',
        '[{"id": "3F2504E0-4F89-11D3-9A0C-0305E82C3301", "name": "a", "latitude": 1, "longitude": 2, "createdAt": "2025-01-01T00:00:00Z"}]',
    ],
)
def test_decode_rejects_malformed_documents(payload: str) -> None:
    with pytest.raises(CheckInDecodeError):
        decode_json(payload)


def test_legacy_decode_tolerates_older_shape() -> None:
    payload = json.dumps(
        [
            {
                "id": str(RECORD_ID),
                "name": "Old Diner",
                "latitude": 40.7128,
                "longitude": -74.006,
                "createdAt": "2023-03-04T05:06:07Z",
                "notes": "dropped in a later schema",
            }
        ]
    )
    (record,) = decode_legacy_json(payload)
    assert record.id == RECORD_ID
    assert record.address == ""
    assert record.category is None
