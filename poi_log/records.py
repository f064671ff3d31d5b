from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from uuid import UUID, uuid4

from .geo import GeoPoint, round_coordinate

UNKNOWN_LOCATION_NAME = "Unknown Location"

METERS_PER_MILE = 1609.34
FEET_PER_METER = 3.28084


def normalize_timestamp(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime with whole seconds.

    Naive datetimes are taken to already be in UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    return value.replace(microsecond=0)


def utc_now() -> datetime:
    return normalize_timestamp(datetime.now(timezone.utc))


@dataclass(frozen=True)
class CheckInRecord:
    name: str
    address: str
    latitude: float
    longitude: float
    category: str | None = None
    created_at: datetime = field(default_factory=utc_now)
    id: UUID = field(default_factory=uuid4)

    def __post_init__(self) -> None:
        object.__setattr__(self, "latitude", round_coordinate(float(self.latitude)))
        object.__setattr__(self, "longitude", round_coordinate(float(self.longitude)))
        object.__setattr__(self, "created_at", normalize_timestamp(self.created_at))

    @classmethod
    def from_place(cls, place: PlaceCandidate, created_at: datetime | None = None) -> CheckInRecord:
        return cls(
            name=place.name,
            address=place.address,
            latitude=place.location.latitude,
            longitude=place.location.longitude,
            category=place.category,
            created_at=created_at or utc_now(),
        )

    @classmethod
    def from_coordinates(cls, point: GeoPoint, created_at: datetime | None = None) -> CheckInRecord:
        return cls(
            name=UNKNOWN_LOCATION_NAME,
            address="",
            latitude=point.latitude,
            longitude=point.longitude,
            category=None,
            created_at=created_at or utc_now(),
        )

    @property
    def location(self) -> GeoPoint:
        return GeoPoint(self.latitude, self.longitude)

    def with_created_at(self, created_at: datetime) -> CheckInRecord:
        # The date is the only editable field; identity is preserved.
        return replace(self, created_at=created_at)


@dataclass(frozen=True)
class PlaceCandidate:
    name: str
    address: str
    location: GeoPoint
    category: str | None
    distance_m: float

    @property
    def formatted_distance(self) -> str:
        miles = self.distance_m / METERS_PER_MILE
        if miles < 0.01:
            return f"{self.distance_m * FEET_PER_METER:.0f} ft"
        return f"{miles:.2f} mi"


@dataclass(frozen=True)
class CapturePreview:
    """Copyable snippet shown before a raw-coordinate check-in."""

    date: str
    time: str
    name: str
    address: str
    latitude: float
    longitude: float

    @classmethod
    def for_location(
        cls,
        point: GeoPoint,
        *,
        name: str = UNKNOWN_LOCATION_NAME,
        address: str = "",
        at: datetime | None = None,
    ) -> CapturePreview:
        moment = at or datetime.now().astimezone()
        return cls(
            date=moment.strftime("%Y-%m-%d"),
            time=moment.strftime("%H:%M"),
            name=name,
            address=address,
            latitude=point.latitude,
            longitude=point.longitude,
        )

    @property
    def yaml_string(self) -> str:
        return "\n".join(
            [
                f"date: {self.date}",
                f"time: {self.time}",
                f"name: {self.name}",
                f"address: {self.address}",
                f"coordinates: {self.latitude:.6f}, {self.longitude:.6f}",
            ]
        )
