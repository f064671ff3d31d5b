from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from pathlib import Path
from uuid import UUID

from .codec import CheckInDecodeError, decode_json, encode_json
from .fileio import atomic_write_text
from .records import CheckInRecord

logger = logging.getLogger(__name__)


class RecordStore:
    """Durable, newest-first collection of check-ins backed by one JSON file.

    Every mutation is written through before the call returns. Non-strict
    write failures are logged and reported as ``False``; the in-memory
    sequence stays authoritative for the session.
    """

    def __init__(self, path: Path | str, *, autoload: bool = True) -> None:
        self.path = Path(path)
        self._records: list[CheckInRecord] = []
        if autoload:
            self.load()

    @property
    def records(self) -> tuple[CheckInRecord, ...]:
        return tuple(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[CheckInRecord]:
        return iter(tuple(self._records))

    def ids(self) -> set[UUID]:
        return {record.id for record in self._records}

    def get(self, record_id: UUID) -> CheckInRecord | None:
        for record in self._records:
            if record.id == record_id:
                return record
        return None

    def load(self) -> None:
        if not self.path.exists():
            self._records = []
            return
        try:
            decoded = decode_json(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, CheckInDecodeError) as exc:
            logger.warning("Could not load check-ins from %s, starting empty: %s", self.path, exc)
            self._records = []
            return
        self._records = sorted(decoded, key=lambda record: record.created_at, reverse=True)

    def add(self, record: CheckInRecord) -> bool:
        self._records.insert(0, record)
        return self._save()

    def remove(self, ids: Iterable[UUID]) -> bool:
        targets = set(ids)
        kept = [record for record in self._records if record.id not in targets]
        if len(kept) == len(self._records):
            return True
        self._records = kept
        return self._save()

    def remove_at(self, positions: Iterable[int]) -> bool:
        drop = {index for index in positions if 0 <= index < len(self._records)}
        if not drop:
            return True
        self._records = [record for index, record in enumerate(self._records) if index not in drop]
        return self._save()

    def update(self, record: CheckInRecord) -> bool:
        for index, existing in enumerate(self._records):
            if existing.id == record.id:
                self._records[index] = record
                return self._save()
        return False

    def replace_all(self, records: Iterable[CheckInRecord], *, strict: bool = False) -> bool:
        previous = self._records
        self._records = list(records)
        if not strict:
            return self._save()
        try:
            self._write()
        except OSError:
            self._records = previous
            raise
        return True

    def _save(self) -> bool:
        try:
            self._write()
        except OSError as exc:
            logger.warning("Could not persist %d check-ins to %s: %s", len(self._records), self.path, exc)
            return False
        return True

    def _write(self) -> None:
        atomic_write_text(self.path, encode_json(self._records))
