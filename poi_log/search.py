from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Protocol

from .config import MAX_RESULTS, MIN_SEARCH_DISTANCE_M, REFRESH_TIMEOUT_S, SEARCH_RADIUS_M, SearchConfig
from .geo import GeoPoint
from .location import LocationFeed
from .records import PlaceCandidate
from .settings import SearchSettings

logger = logging.getLogger(__name__)

REFRESH_POLL_INTERVAL_S = 0.1
UNKNOWN_ADDRESS = "Unknown"


@dataclass(frozen=True)
class ProviderPlace:
    name: str | None
    address: str | None
    location: GeoPoint | None
    category: str | None = None


class PlacesProvider(Protocol):
    async def search(
        self,
        center: GeoPoint,
        radius_m: float,
        categories: frozenset[str],
    ) -> Sequence[ProviderPlace]: ...

    def supported_categories(self) -> Iterable[str]: ...


class ProximitySearchController:
    """Decides when to ask the places provider for nearby points of interest.

    At most one search runs at a time: a trigger that arrives while
    ``is_searching`` is set is dropped rather than queued. Location updates
    are debounced by distance from the last queried point; settings changes
    and manual refreshes bypass the debounce.
    """

    def __init__(
        self,
        provider: PlacesProvider,
        settings: SearchSettings,
        *,
        radius_m: float = SEARCH_RADIUS_M,
        min_search_distance_m: float = MIN_SEARCH_DISTANCE_M,
        max_results: int | None = MAX_RESULTS,
        refresh_timeout_s: float = REFRESH_TIMEOUT_S,
    ) -> None:
        self.provider = provider
        self.settings = settings
        self.radius_m = radius_m
        self.min_search_distance_m = min_search_distance_m
        self.max_results = max_results
        self.refresh_timeout_s = refresh_timeout_s

        self.is_searching = False
        self.last_queried_location: GeoPoint | None = None
        self.current_location: GeoPoint | None = None
        self.map_center: GeoPoint | None = None
        self.results: list[PlaceCandidate] = []
        self.error: Exception | None = None

    @classmethod
    def from_config(
        cls,
        provider: PlacesProvider,
        settings: SearchSettings,
        config: SearchConfig,
    ) -> ProximitySearchController:
        return cls(
            provider,
            settings,
            radius_m=config.radius_m,
            min_search_distance_m=config.min_search_distance_m,
            max_results=config.max_results,
            refresh_timeout_s=config.refresh_timeout_s,
        )

    @property
    def selected_categories(self) -> frozenset[str]:
        return self.settings.selected_categories

    @property
    def debug_mode(self) -> bool:
        return self.settings.debug_mode

    @property
    def reference_point(self) -> GeoPoint | None:
        if self.debug_mode and self.map_center is not None:
            return self.map_center
        return self.current_location

    async def on_location_update(self, point: GeoPoint) -> bool:
        self.current_location = point
        if self.is_searching:
            logger.debug("Search in flight, ignoring update at %s", point)
            return False

        last = self.last_queried_location
        if last is not None and point.distance_to(last) < self.min_search_distance_m:
            logger.debug("Moved %.1f m since last query, skipping", point.distance_to(last))
            return False

        self.last_queried_location = point
        return await self.search(point)

    async def search(self, point: GeoPoint) -> bool:
        """Query the provider around ``point``.

        Returns ``False`` when the call was dropped because another search
        was already running.
        """
        if self.is_searching:
            return False

        categories = self.selected_categories
        if not categories:
            self.results = []
            self.error = None
            return True

        self.is_searching = True
        try:
            places = await self.provider.search(point, self.radius_m, categories)
            self.results = self._rank(point, places)
            self.error = None
        except Exception as exc:
            logger.warning("Places search around %s failed: %s", point, exc)
            self.results = []
            self.error = exc
        finally:
            self.is_searching = False
        return True

    async def set_selected_categories(self, categories: Iterable[str]) -> None:
        self.settings.set_selected_categories(categories)
        await self._search_from_reference()

    async def toggle_category(self, category: str) -> None:
        selected = set(self.selected_categories)
        if category in selected:
            selected.remove(category)
        else:
            selected.add(category)
        await self.set_selected_categories(selected)

    async def set_debug_mode(self, enabled: bool) -> None:
        self.settings.set_debug_mode(enabled)
        await self._search_from_reference()

    async def set_map_center(self, point: GeoPoint) -> None:
        self.map_center = point
        if self.debug_mode:
            await self.search(point)

    async def refresh(self, timeout: float | None = None) -> bool:
        """Manual refresh. An in-flight search is waited on, never cancelled."""
        if self.is_searching:
            return await self.wait_until_idle(self.refresh_timeout_s if timeout is None else timeout)
        point = self.reference_point
        if point is None:
            return False
        return await self.search(point)

    async def wait_until_idle(self, timeout: float) -> bool:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while self.is_searching:
            if loop.time() >= deadline:
                logger.info("Gave up waiting for in-flight search after %.1fs", timeout)
                return False
            await asyncio.sleep(REFRESH_POLL_INTERVAL_S)
        return True

    async def run(self, feed: LocationFeed) -> None:
        async for point in feed:
            await self.on_location_update(point)

    async def _search_from_reference(self) -> None:
        point = self.reference_point
        if point is None:
            return
        await self.search(point)

    def _rank(self, origin: GeoPoint, places: Iterable[ProviderPlace]) -> list[PlaceCandidate]:
        candidates: list[PlaceCandidate] = []
        for place in places:
            if not place.name or place.location is None:
                continue
            distance = origin.distance_to(place.location)
            # Providers may ignore the requested radius.
            if distance > self.radius_m:
                continue
            candidates.append(
                PlaceCandidate(
                    name=place.name,
                    address=place.address or UNKNOWN_ADDRESS,
                    location=place.location,
                    category=place.category,
                    distance_m=distance,
                )
            )
        candidates.sort(key=lambda candidate: candidate.distance_m)
        if self.max_results is not None:
            return candidates[: self.max_results]
        return candidates
