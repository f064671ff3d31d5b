from __future__ import annotations

import asyncio
import logging
from typing import cast

from .geo import GeoPoint

logger = logging.getLogger(__name__)

NOT_DETERMINED = "not_determined"
AUTHORIZED = "authorized"
DENIED = "denied"
RESTRICTED = "restricted"

AUTHORIZATION_STATES = (NOT_DETERMINED, AUTHORIZED, DENIED, RESTRICTED)

_CLOSED = object()


class LocationFeed:
    """Channel of location fixes from the platform to the search controller.

    Losing permission is a steady state, not an error: the feed closes and
    consumers simply stop receiving points.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._closed = False
        self.authorization = NOT_DETERMINED
        self.latest: GeoPoint | None = None

    @property
    def closed(self) -> bool:
        return self._closed

    def publish(self, point: GeoPoint) -> bool:
        if self._closed:
            return False
        self.latest = point
        self._queue.put_nowait(point)
        return True

    def set_authorization(self, status: str) -> None:
        if status not in AUTHORIZATION_STATES:
            raise ValueError(f"Unknown authorization status: {status}")
        self.authorization = status
        if status in (DENIED, RESTRICTED):
            logger.info("Location access %s; no further updates", status)
            self.close()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)

    def __aiter__(self) -> LocationFeed:
        return self

    async def __anext__(self) -> GeoPoint:
        item = await self._queue.get()
        if item is _CLOSED:
            # Keep the marker so later iterations also stop.
            self._queue.put_nowait(_CLOSED)
            raise StopAsyncIteration
        return cast(GeoPoint, item)
