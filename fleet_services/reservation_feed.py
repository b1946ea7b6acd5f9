import logging
import time
from typing import List, Optional

import httpx

from fleet_services.config import fleet_settings
from fleet_services.reservation_service import Reservation, parse_reservation_csv

logger = logging.getLogger(__name__)


class ReservationFeedClient:
    """Fetches the published reservation sheet and caches it in process"""

    def __init__(self, url: Optional[str] = None, cache_seconds: Optional[int] = None):
        self.url = url
        self.cache_seconds = cache_seconds
        self._cached: Optional[List[Reservation]] = None
        self._fetched_at = 0.0

    def _resolve_url(self) -> str:
        return self.url or fleet_settings.reservation_sheet_url

    def _resolve_ttl(self) -> int:
        if self.cache_seconds is not None:
            return self.cache_seconds
        return fleet_settings.reservation_cache_seconds

    def clear_cache(self) -> None:
        self._cached = None
        self._fetched_at = 0.0

    async def _fetch_csv(self) -> str:
        async with httpx.AsyncClient(timeout=15.0, follow_redirects=True) as client:
            url = self._resolve_url()
            logger.info(f"Fetching reservation sheet: {url}")
            response = await client.get(url)

            if not response.is_success:
                logger.error(f"Reservation sheet error: {response.status_code} - {response.text[:200]}")
                response.raise_for_status()

            return response.text

    async def get_reservations(self) -> List[Reservation]:
        """Return parsed reservations, refetching once the cache expires"""
        ttl = self._resolve_ttl()
        if self._cached is not None and time.monotonic() - self._fetched_at < ttl:
            return self._cached

        reservations = parse_reservation_csv(await self._fetch_csv())
        logger.info(f"Loaded {len(reservations)} reservations from sheet")
        self._cached = reservations
        self._fetched_at = time.monotonic()
        return reservations
