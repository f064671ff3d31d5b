from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from .codec import CheckInDecodeError, decode_legacy_json
from .records import CheckInRecord
from .settings import MIGRATION_FLAG_KEY, SettingsStore
from .store import RecordStore

logger = logging.getLogger(__name__)

MIGRATED_SUFFIX = ".migrated"

STATUS_ALREADY_DONE = "already_done"
STATUS_NO_LEGACY_FILE = "no_legacy_file"
STATUS_MIGRATED = "migrated"
STATUS_FAILED = "failed"


class MigrationError(RuntimeError):
    """Raised when the legacy file cannot be read, decoded or persisted."""


@dataclass(frozen=True)
class MigrationResult:
    status: str
    migrated: int = 0
    skipped: int = 0


class MigrationRunner:
    """Moves the legacy check-in file into the current store, once.

    The persisted flag is the last thing written on the success path, so a
    crash before it re-runs the migration; the id check keeps that re-run
    from duplicating anything.
    """

    def __init__(self, store: RecordStore, settings: SettingsStore, legacy_path: Path | str) -> None:
        self.store = store
        self.settings = settings
        self.legacy_path = Path(legacy_path)

    @property
    def backup_path(self) -> Path:
        return self.legacy_path.with_name(self.legacy_path.name + MIGRATED_SUFFIX)

    def run(self) -> MigrationResult:
        try:
            return self.migrate()
        except (MigrationError, OSError) as exc:
            logger.warning("Migration failed, will retry on next launch: %s", exc)
            return MigrationResult(status=STATUS_FAILED)

    def migrate(self) -> MigrationResult:
        if self.settings.get(MIGRATION_FLAG_KEY, False):
            return MigrationResult(status=STATUS_ALREADY_DONE)

        if not self.legacy_path.exists():
            self.settings.set(MIGRATION_FLAG_KEY, True)
            return MigrationResult(status=STATUS_NO_LEGACY_FILE)

        try:
            legacy_records = decode_legacy_json(self.legacy_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, CheckInDecodeError) as exc:
            raise MigrationError(f"Could not read legacy check-ins from {self.legacy_path}: {exc}") from exc

        seen = self.store.ids()
        inserted: list[CheckInRecord] = []
        for record in legacy_records:
            if record.id in seen:
                continue
            seen.add(record.id)
            inserted.append(record)

        if inserted:
            merged = sorted(
                [*inserted, *self.store.records],
                key=lambda record: record.created_at,
                reverse=True,
            )
            try:
                self.store.replace_all(merged, strict=True)
            except OSError as exc:
                raise MigrationError(f"Could not persist migrated check-ins to {self.store.path}: {exc}") from exc

        try:
            self.legacy_path.rename(self.backup_path)
        except OSError as exc:
            logger.warning("Could not archive legacy file %s: %s", self.legacy_path, exc)

        self.settings.set(MIGRATION_FLAG_KEY, True)
        skipped = len(legacy_records) - len(inserted)
        logger.info("Migrated %d legacy check-ins (%d already present)", len(inserted), skipped)
        return MigrationResult(status=STATUS_MIGRATED, migrated=len(inserted), skipped=skipped)
