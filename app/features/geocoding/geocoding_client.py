from typing import Optional, Protocol

import httpx

from app.core import config
from app.core.errors import GeocodingError
from app.features.places.entities import Location
from app.utils import get_logger

log = get_logger(__name__)


class GeocodingClient(Protocol):
    async def resolve(self, address: str) -> Location:
        """Return the coordinates of the given address, raising GeocodingError if it can't be resolved."""
        ...


class GoogleGeocodingClient(GeocodingClient):
    def __init__(
        self,
        api_key: str = config.GOOGLE_API_KEY,
        url: str = config.GEOCODING_API_URL,
        timeout: float = config.GEOCODING_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_key = api_key
        self._url = url
        self._timeout = timeout
        self._transport = transport

    async def resolve(self, address: str) -> Location:
        params = dict(address=address, key=self._api_key)
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.get(self._url, params=params)
        except httpx.TimeoutException as e:
            log.info("Geocoding timed out for %r", address)
            raise GeocodingError("Looking up the address timed out, please try again.") from e
        except httpx.HTTPError as e:
            log.warning("Geocoding request failed: %s", e)
            raise GeocodingError() from e
        if response.status_code != 200:
            log.warning("Geocoding returned status code %s", response.status_code)
            raise GeocodingError()
        return self._parse(address, response)

    def _parse(self, address: str, response: httpx.Response) -> Location:
        try:
            data = response.json()
        except ValueError as e:
            raise GeocodingError() from e
        if not data or data.get("status") != "OK" or not data.get("results"):
            log.info("Could not geocode %r (status %s)", address, data.get("status") if data else None)
            raise GeocodingError()
        try:
            coordinates = data["results"][0]["geometry"]["location"]
            return Location(latitude=coordinates["lat"], longitude=coordinates["lng"])
        except (KeyError, TypeError, ValueError) as e:
            log.warning("Unexpected geocoding response for %r", address)
            raise GeocodingError() from e
