from __future__ import annotations

import json
import math
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone, tzinfo
from typing import Any
from uuid import UUID

from .records import CheckInRecord

CSV_HEADER = ("date", "time", "name", "address", "latitude", "longitude", "category")

_CSV_SPECIAL = (",", '"', "\n")


class CheckInDecodeError(ValueError):
    """Raised when a check-in document cannot be decoded."""


def encode_json(records: Iterable[CheckInRecord], *, pretty: bool = False) -> str:
    payload = [record_to_dict(record) for record in records]
    if pretty:
        return json.dumps(payload, indent=2, sort_keys=True, ensure_ascii=False)
    return json.dumps(payload, separators=(",", ":"), sort_keys=True, ensure_ascii=False)


def decode_json(text: str) -> list[CheckInRecord]:
    return [record_from_dict(item) for item in _load_array(text)]


def decode_legacy_json(text: str) -> list[CheckInRecord]:
    """Decode the pre-migration file.

    The legacy shape predates optional fields such as ``category``; those may
    be missing and anything unrecognised is ignored.
    """
    return [record_from_dict(item, legacy=True) for item in _load_array(text)]


def record_to_dict(record: CheckInRecord) -> dict[str, Any]:
    data: dict[str, Any] = {
        "address": record.address,
        "createdAt": format_timestamp(record.created_at),
        "id": str(record.id).upper(),
        "latitude": record.latitude,
        "longitude": record.longitude,
        "name": record.name,
    }
    if record.category is not None:
        data["category"] = record.category
    return data


def record_from_dict(item: Any, *, legacy: bool = False) -> CheckInRecord:
    if not isinstance(item, Mapping):
        raise CheckInDecodeError(f"Expected a JSON object per record, got {type(item).__name__}")

    required = ["id", "name", "address", "latitude", "longitude", "createdAt"]
    if legacy:
        # Older files did not always carry an address.
        required.remove("address")
    missing = [key for key in required if key not in item]
    if missing:
        raise CheckInDecodeError(f"Record is missing required keys: {', '.join(missing)}")

    category = item.get("category")
    if category is not None and not isinstance(category, str):
        raise CheckInDecodeError(f"Invalid category {category!r}")

    return CheckInRecord(
        id=_parse_uuid(item["id"]),
        name=_require_str(item, "name"),
        address=_require_str(item, "address") if "address" in item else "",
        latitude=_require_float(item, "latitude"),
        longitude=_require_float(item, "longitude"),
        category=category,
        created_at=parse_timestamp(item["createdAt"]),
    )


def format_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_timestamp(value: Any) -> datetime:
    if not isinstance(value, str) or not value:
        raise CheckInDecodeError(f"Invalid timestamp {value!r}")
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as exc:
        raise CheckInDecodeError(f"Invalid timestamp {value!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def encode_csv(records: Iterable[CheckInRecord], *, tz: tzinfo | None = None) -> str:
    """Render records as CSV, one row per record in the order given.

    ``date`` and ``time`` are the local wall-clock time of each record; pass
    ``tz`` to pin the zone instead of using the system one.
    """
    rows = [",".join(CSV_HEADER)]
    for record in records:
        local = record.created_at.astimezone(tz)
        fields = [
            local.strftime("%Y-%m-%d"),
            local.strftime("%H:%M"),
            record.name,
            record.address,
            f"{record.latitude:.6f}",
            f"{record.longitude:.6f}",
            record.category or "",
        ]
        rows.append(",".join(csv_escape(value) for value in fields))
    return "\n".join(rows)


def csv_escape(value: str) -> str:
    if any(char in value for char in _CSV_SPECIAL):
        escaped = value.replace('"', '""')
        return f'"{escaped}"'
    return value


def _load_array(text: str) -> list[Any]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise CheckInDecodeError(f"Could not parse check-in JSON: {exc}") from exc
    if not isinstance(data, list):
        raise CheckInDecodeError("Expected a JSON array of check-ins")
    return data


def _parse_uuid(value: Any) -> UUID:
    try:
        return UUID(str(value))
    except ValueError as exc:
        raise CheckInDecodeError(f"Invalid id {value!r}") from exc


def _require_str(item: Mapping[str, Any], key: str) -> str:
    value = item[key]
    if not isinstance(value, str):
        raise CheckInDecodeError(f"Field {key!r} must be a string")
    return value


def _require_float(item: Mapping[str, Any], key: str) -> float:
    value = item[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise CheckInDecodeError(f"Field {key!r} must be a number")
    if not math.isfinite(value):
        raise CheckInDecodeError(f"Field {key!r} must be finite")
    return float(value)
