from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from .codec import CheckInDecodeError, decode_json
from .records import CheckInRecord
from .store import RecordStore

logger = logging.getLogger(__name__)


class CheckInImportError(RuntimeError):
    """Raised when an import file cannot be read or decoded."""


@dataclass(frozen=True)
class ImportResult:
    imported: int
    skipped: int
    persisted: bool = True


class ImportRunner:
    def __init__(self, store: RecordStore) -> None:
        self.store = store

    def import_file(self, path: Path | str) -> ImportResult:
        """Add every record from an exported JSON file whose id is new.

        The file is read and decoded in full before the store is touched.
        """
        source = Path(path)
        try:
            incoming = decode_json(source.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as exc:
            raise CheckInImportError(f"Could not read {source}: {exc}") from exc
        except CheckInDecodeError as exc:
            raise CheckInImportError(f"{source} is not a poi-log export: {exc}") from exc

        seen = self.store.ids()
        added: list[CheckInRecord] = []
        skipped = 0
        for record in incoming:
            if record.id in seen:
                skipped += 1
                continue
            seen.add(record.id)
            added.append(record)

        persisted = True
        if added:
            merged = sorted(
                [*added, *self.store.records],
                key=lambda record: record.created_at,
                reverse=True,
            )
            persisted = self.store.replace_all(merged)

        logger.info("Imported %d check-ins from %s, skipped %d", len(added), source, skipped)
        return ImportResult(imported=len(added), skipped=skipped, persisted=persisted)
