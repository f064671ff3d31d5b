from datetime import datetime, timezone
from uuid import UUID, uuid4

import pytest

from poi_log.records import CheckInRecord
from poi_log.settings import SettingsStore
from poi_log.store import RecordStore


@pytest.fixture
def make_record():
    def _make(
        name: str = "Test Place",
        address: str = "123 Main St",
        latitude: float = 37.8012,
        longitude: float = -122.2727,
        category: str | None = "restaurant",
        created_at: datetime = datetime(2025, 12, 27, 17, 12, tzinfo=timezone.utc),
        record_id: UUID | None = None,
    ) -> CheckInRecord:
        return CheckInRecord(
            id=record_id or uuid4(),
            name=name,
            address=address,
            latitude=latitude,
            longitude=longitude,
            category=category,
            created_at=created_at,
        )

    return _make


@pytest.fixture
def store(tmp_path) -> RecordStore:
    return RecordStore(tmp_path / "store" / "checkins.json")


@pytest.fixture
def settings_store(tmp_path) -> SettingsStore:
    return SettingsStore(tmp_path / "settings.yaml")
