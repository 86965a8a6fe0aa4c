"""
Geocoding collaborators.

Provides:
- Geocoder: protocol every geocoder implements (forward + reverse lookup)
- MapboxGeocoder: Mapbox geocoding v5 client over httpx
- StaticGeocoder: deterministic in-memory lookups (offline use, tests)
- gather_bounded: index-stable concurrent fan-out used for per-row lookups
- get_geocoder / set_geocoder: process-wide geocoder instance

Geocoders never raise to callers: lookup errors are logged and returned as
None ("no match").
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Sequence, Tuple
from urllib.parse import quote

import httpx

from .constants import MAPBOX_GEOCODING_URL
from .errors import GeocodeLookupFailed

logger = logging.getLogger("geoviz")

Coordinates = Tuple[float, float]


class Geocoder(Protocol):
    async def forward(self, name: str) -> Optional[Coordinates]:
        """Best-match (latitude, longitude) for a place name, or None."""
        ...

    async def reverse(self, latitude: float, longitude: float) -> Optional[str]:
        """Best-match state/region name for a coordinate, or None."""
        ...


class MapboxGeocoder:
    """
    Geocoder backed by the Mapbox places API.

    Forward lookups return the center of the first feature; reverse lookups
    are restricted to region features so the answer is a state name.
    """

    def __init__(
        self,
        access_token: str,
        base_url: str = MAPBOX_GEOCODING_URL,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.access_token = access_token
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.timeout = timeout
        self.transport = transport

    async def _first_feature(self, query: str, params: Dict[str, Any]) -> Optional[Dict]:
        """Run one places query (already URL-encoded) and return its first feature."""
        url = f"{self.base_url}{query}.json"
        request_params = {"access_token": self.access_token, "limit": 1, **params}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(url, params=request_params)
                response.raise_for_status()
                features = response.json().get("features") or []
        except (httpx.HTTPError, ValueError, AttributeError) as e:
            raise GeocodeLookupFailed(f"Geocoding request for '{query}' failed: {e}") from e
        return features[0] if features else None

    async def forward(self, name: str) -> Optional[Coordinates]:
        if not name or not str(name).strip():
            return None
        try:
            feature = await self._first_feature(quote(str(name).strip(), safe=""), {})
            if not feature:
                return None
            longitude, latitude = feature["center"][:2]
            return float(latitude), float(longitude)
        except GeocodeLookupFailed as e:
            logger.warning(f"Geocoding error: {e.message}")
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Geocoding error: unexpected response for '{name}': {e}")
        return None

    async def reverse(self, latitude: float, longitude: float) -> Optional[str]:
        try:
            feature = await self._first_feature(f"{longitude},{latitude}", {"types": "region"})
            if not feature:
                return None
            return feature.get("text") or None
        except GeocodeLookupFailed as e:
            logger.warning(f"Reverse geocoding error: {e.message}")
        except (AttributeError, TypeError) as e:
            logger.warning(f"Reverse geocoding error at ({latitude}, {longitude}): {e}")
        return None


class StaticGeocoder:
    """
    Geocoder answering from in-memory tables.

    Args:
        places: place name -> (latitude, longitude); matched case-insensitively
        regions: (latitude, longitude) -> region name; coordinates are rounded
            to `precision` decimals before matching
    """

    def __init__(
        self,
        places: Optional[Dict[str, Coordinates]] = None,
        regions: Optional[Dict[Coordinates, str]] = None,
        precision: int = 4,
    ):
        self.precision = precision
        self._places = {name.strip().lower(): coords for name, coords in (places or {}).items()}
        self._regions = {self._key(lat, lon): name for (lat, lon), name in (regions or {}).items()}
        self.forward_calls = 0
        self.reverse_calls = 0

    def _key(self, latitude: float, longitude: float) -> Coordinates:
        return round(float(latitude), self.precision), round(float(longitude), self.precision)

    async def forward(self, name: str) -> Optional[Coordinates]:
        self.forward_calls += 1
        if not name:
            return None
        return self._places.get(str(name).strip().lower())

    async def reverse(self, latitude: float, longitude: float) -> Optional[str]:
        self.reverse_calls += 1
        return self._regions.get(self._key(latitude, longitude))


async def gather_bounded(
    items: Sequence[Any],
    worker: Callable[[Any], Awaitable[Any]],
    concurrency: int = 0,
    on_done: Optional[Callable[[int, int], None]] = None,
    default: Any = None,
) -> List[Any]:
    """
    Run worker over every item concurrently and return results in item order.

    concurrency <= 0 means unbounded. A worker exception only affects its own
    item, which gets `default`. on_done(done, total) fires as each item
    finishes, in completion order.
    """
    semaphore = asyncio.Semaphore(concurrency) if concurrency and concurrency > 0 else None
    total = len(items)
    done = 0

    async def run(item):
        nonlocal done
        try:
            if semaphore is None:
                result = await worker(item)
            else:
                async with semaphore:
                    result = await worker(item)
        except Exception as e:
            logger.warning(f"Lookup failed for one row: {type(e).__name__}: {e}")
            result = default
        done += 1
        if on_done:
            on_done(done, total)
        return result

    return list(await asyncio.gather(*(run(item) for item in items)))


# Process-wide geocoder (built lazily from settings)
_geocoder = None


def get_geocoder():
    """Get the geocoder, building a MapboxGeocoder from settings if needed."""
    global _geocoder
    if _geocoder is None:
        from .settings import get_mapbox_token, load_settings

        settings = load_settings()
        token = get_mapbox_token()
        if token:
            _geocoder = MapboxGeocoder(
                token,
                base_url=settings["geocoding_url"],
                timeout=float(settings["geocode_timeout"]),
            )
            logger.info("Mapbox geocoder initialized")
        else:
            logger.warning("MAPBOX_TOKEN not set - place names cannot be geocoded")
            _geocoder = StaticGeocoder()
    return _geocoder


def set_geocoder(geocoder) -> None:
    """Replace the process-wide geocoder (None resets to the settings default)."""
    global _geocoder
    _geocoder = geocoder
