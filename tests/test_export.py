from datetime import datetime, timezone
from pathlib import Path

import pytest

from poi_log.codec import decode_json
from poi_log.export import export_filename, render_export, write_export


def test_export_filename_embeds_timestamp() -> None:
    assert export_filename("json", datetime(2025, 12, 27, 9, 5, 7)) == "poi-log-2025-12-27-090507.json"


def test_write_json_export(make_record, tmp_path: Path) -> None:
    records = [make_record(name="One"), make_record(name="Two")]
    path = write_export(records, "json", tmp_path / "exports", now=datetime(2025, 1, 2, 3, 4, 5))

    assert path.name == "poi-log-2025-01-02-030405.json"
    text = path.read_text(encoding="utf-8")
    assert text.startswith("[\n  {")
    assert decode_json(text) == records


def test_write_csv_export(make_record, tmp_path: Path) -> None:
    record = make_record(name="One", created_at=datetime(2025, 3, 4, 5, 6, tzinfo=timezone.utc))
    path = write_export([record], "csv", tmp_path, now=datetime(2025, 1, 2, 3, 4, 5), tz=timezone.utc)

    lines = path.read_text(encoding="utf-8").split("\n")
    assert lines[0] == "date,time,name,address,latitude,longitude,category"
    assert lines[1] == "2025-03-04,05:06,One,123 Main St,37.801200,-122.272700,restaurant"


def test_unknown_format_rejected(make_record) -> None:
    with pytest.raises(ValueError):
        render_export([make_record()], "xml")
