from __future__ import annotations

from pathlib import Path

import pytest

from poi_log.codec import encode_json
from poi_log.migration import (
    MIGRATION_FLAG_KEY,
    STATUS_ALREADY_DONE,
    STATUS_FAILED,
    STATUS_MIGRATED,
    STATUS_NO_LEGACY_FILE,
    MigrationRunner,
)
from poi_log.settings import SettingsStore
from poi_log.store import RecordStore


@pytest.fixture
def legacy_path(tmp_path: Path) -> Path:
    return tmp_path / "checkins.json"


def test_no_legacy_file_sets_flag(store: RecordStore, settings_store: SettingsStore, legacy_path: Path) -> None:
    result = MigrationRunner(store, settings_store, legacy_path).run()

    assert result.status == STATUS_NO_LEGACY_FILE
    assert settings_store.get(MIGRATION_FLAG_KEY) is True
    assert SettingsStore(settings_store.path).get(MIGRATION_FLAG_KEY) is True


def test_migrates_and_archives_legacy_file(
    store: RecordStore, settings_store: SettingsStore, legacy_path: Path, make_record
) -> None:
    legacy = [make_record(name="One"), make_record(name="Two")]
    legacy_path.write_text(encode_json(legacy), encoding="utf-8")

    runner = MigrationRunner(store, settings_store, legacy_path)
    result = runner.run()

    assert result.status == STATUS_MIGRATED
    assert result.migrated == 2
    assert {r.id for r in RecordStore(store.path).records} == {r.id for r in legacy}
    assert not legacy_path.exists()
    assert runner.backup_path.name == "checkins.json.migrated"
    assert runner.backup_path.exists()
    assert settings_store.get(MIGRATION_FLAG_KEY) is True


def test_skips_ids_already_in_store_and_duplicates_within_file(
    store: RecordStore, settings_store: SettingsStore, legacy_path: Path, make_record
) -> None:
    existing = make_record(name="Existing")
    store.add(existing)
    fresh = make_record(name="Fresh")
    legacy_path.write_text(encode_json([existing, fresh, fresh]), encoding="utf-8")

    result = MigrationRunner(store, settings_store, legacy_path).run()

    assert result.migrated == 1
    assert result.skipped == 2
    assert sorted(r.name for r in store.records) == ["Existing", "Fresh"]


def test_rerun_before_flag_is_idempotent(
    store: RecordStore, settings_store: SettingsStore, legacy_path: Path, make_record
) -> None:
    legacy = [make_record(name="One"), make_record(name="Two")]
    payload = encode_json(legacy)
    legacy_path.write_text(payload, encoding="utf-8")
    MigrationRunner(store, settings_store, legacy_path).run()

    # Simulate a crash between persisting and setting the flag.
    settings_store.set(MIGRATION_FLAG_KEY, False)
    legacy_path.write_text(payload, encoding="utf-8")
    result = MigrationRunner(store, settings_store, legacy_path).run()

    assert result.status == STATUS_MIGRATED
    assert result.migrated == 0
    assert len(store) == 2


def test_flag_set_means_no_file_reads(
    store: RecordStore, settings_store: SettingsStore, legacy_path: Path, make_record, monkeypatch
) -> None:
    legacy_path.write_text(encode_json([make_record()]), encoding="utf-8")
    MigrationRunner(store, settings_store, legacy_path).run()
    legacy_path.write_text(encode_json([make_record()]), encoding="utf-8")

    def fail_read(*_args, **_kwargs):
        raise AssertionError("legacy file must not be read once migrated")

    monkeypatch.setattr(Path, "read_text", fail_read)

    result = MigrationRunner(store, settings_store, legacy_path).run()
    assert result.status == STATUS_ALREADY_DONE
    assert len(store) == 1
    assert legacy_path.exists()


def test_decode_failure_leaves_flag_unset(
    store: RecordStore, settings_store: SettingsStore, legacy_path: Path
) -> None:
    legacy_path.write_text("{not json", encoding="utf-8")

    result = MigrationRunner(store, settings_store, legacy_path).run()

    assert result.status == STATUS_FAILED
    assert settings_store.get(MIGRATION_FLAG_KEY) is None
    assert legacy_path.exists()
    assert len(store) == 0


def test_persist_failure_leaves_flag_unset(
    store: RecordStore, settings_store: SettingsStore, legacy_path: Path, make_record, monkeypatch
) -> None:
    legacy_path.write_text(encode_json([make_record()]), encoding="utf-8")

    def fail_write(_path: Path, _text: str) -> None:
        raise OSError("disk full")

    monkeypatch.setattr("poi_log.store.atomic_write_text", fail_write)

    result = MigrationRunner(store, settings_store, legacy_path).run()

    assert result.status == STATUS_FAILED
    assert len(store) == 0
    assert legacy_path.exists()
    assert settings_store.get(MIGRATION_FLAG_KEY) is None


def test_rename_failure_still_sets_flag(
    store: RecordStore, settings_store: SettingsStore, legacy_path: Path, make_record, monkeypatch
) -> None:
    legacy_path.write_text(encode_json([make_record()]), encoding="utf-8")

    def fail_rename(self, _target):
        raise OSError("permission denied")

    monkeypatch.setattr(Path, "rename", fail_rename)

    result = MigrationRunner(store, settings_store, legacy_path).run()

    assert result.status == STATUS_MIGRATED
    assert legacy_path.exists()
    assert settings_store.get(MIGRATION_FLAG_KEY) is True
