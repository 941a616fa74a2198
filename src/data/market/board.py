"""Latest published price map."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from threading import Lock
from typing import Optional

from .models import PriceMap

logger = logging.getLogger(__name__)


class PriceBoard:
    """Holds the most recently completed PriceMap.

    Cycles may overlap; whichever finishes last is what readers see. The
    maps themselves are immutable, so readers never need the lock.
    """

    def __init__(self):
        self._lock = Lock()
        self._current: Optional[PriceMap] = None
        self._published_at: Optional[datetime] = None
        self._cycles = 0

    @property
    def current(self) -> Optional[PriceMap]:
        return self._current

    @property
    def published_at(self) -> Optional[datetime]:
        return self._published_at

    @property
    def cycles(self) -> int:
        return self._cycles

    def publish(self, price_map: PriceMap) -> None:
        """Replace the visible price map."""
        with self._lock:
            self._current = price_map
            self._published_at = datetime.now(timezone.utc)
            self._cycles += 1
        logger.debug(f"Published price map #{self._cycles}: {price_map!r}")
