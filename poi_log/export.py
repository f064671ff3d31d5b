from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime, tzinfo
from pathlib import Path

from .codec import encode_csv, encode_json
from .fileio import atomic_write_text
from .records import CheckInRecord

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("json", "csv")


def export_filename(extension: str, now: datetime | None = None) -> str:
    moment = now or datetime.now()
    return f"poi-log-{moment.strftime('%Y-%m-%d-%H%M%S')}.{extension}"


def render_export(records: Sequence[CheckInRecord], fmt: str, *, tz: tzinfo | None = None) -> str:
    if fmt == "json":
        return encode_json(records, pretty=True)
    if fmt == "csv":
        return encode_csv(records, tz=tz)
    raise ValueError(f"Unsupported export format: {fmt}")


def write_export(
    records: Sequence[CheckInRecord],
    fmt: str,
    out_dir: Path,
    *,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> Path:
    path = out_dir / export_filename(fmt, now)
    atomic_write_text(path, render_export(records, fmt, tz=tz))
    logger.info("Exported %d check-ins to %s", len(records), path)
    return path
