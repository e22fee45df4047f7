"""Client for the OpenPostcodes API - UK postcode lookup and reverse geocoding.

Every request carries the account's API key as the ``api_key`` query
parameter. Docs: https://www.openpostcodes.com/
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any
from urllib.parse import quote

import httpx

from open_postcodes.callbacks import Callback, settle
from open_postcodes.errors import APIError, ConfigurationError, InvalidPayloadError

logger = logging.getLogger(__name__)

DEFAULT_HOSTNAME = "api.openpostcodes.com"
DEFAULT_HEADERS = {"Accept": "application/json"}
DEFAULT_TIMEOUT = 15.0
API_VERSION = "v1"

# Service code the API uses for "no result found"
NOT_FOUND_CODE = 4040

# Reverse lookups search this many metres around the point
LOCATION_RADIUS = 1000
LOCATION_LIMIT = 1

# Characters left unescaped when a postcode becomes a path segment
_SEGMENT_SAFE = "!'()*"


@dataclass(frozen=True)
class ClientOptions:
    """Connection settings, fixed when the client is created.

    The port follows ``secure`` unless one is given. Headers are merged over
    ``DEFAULT_HEADERS`` by case-insensitive name, the caller's value winning,
    and are exposed read-only.
    """

    secure: bool = True
    hostname: str = DEFAULT_HOSTNAME
    port: int | None = None
    headers: Mapping[str, str] | None = None

    def __post_init__(self):
        merged = httpx.Headers(DEFAULT_HEADERS)
        merged.update(self.headers or {})
        frozen = MappingProxyType(
            {key.decode(merged.encoding): value.decode(merged.encoding) for key, value in merged.raw}
        )

        object.__setattr__(self, "hostname", self.hostname or DEFAULT_HOSTNAME)
        if self.port is None:
            object.__setattr__(self, "port", 443 if self.secure else 80)
        object.__setattr__(self, "headers", frozen)

    @property
    def scheme(self) -> str:
        return "https" if self.secure else "http"

    @property
    def base_url(self) -> str:
        return f"{self.scheme}://{self.hostname}:{self.port}/{API_VERSION}"


class OpenPostcodesClient:
    """Client for looking up UK postcodes via the OpenPostcodes API."""

    def __init__(
        self,
        api_key: str,
        *,
        secure: bool = True,
        hostname: str | None = None,
        port: int | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not api_key:
            raise ConfigurationError("No API key provided")

        self._api_key = api_key
        self._options = ClientOptions(secure=secure, hostname=hostname, port=port, headers=headers)
        self._http = httpx.AsyncClient(
            headers=dict(self._options.headers),
            timeout=timeout,
            transport=transport,
        )

    @property
    def api_key(self) -> str:
        return self._api_key

    @property
    def options(self) -> ClientOptions:
        return self._options

    async def close(self):
        await self._http.aclose()

    async def __aenter__(self) -> "OpenPostcodesClient":
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    async def _request(self, method: str, path: str, params: Mapping[str, Any] | None = None) -> Any:
        """Send one request to ``/v1/<path>`` and return the payload's ``result``.

        Raises InvalidPayloadError if the body is not JSON, whatever the
        status, and APIError for a JSON body with a non-2xx status. Transport
        errors from httpx propagate unchanged.
        """
        query = {"api_key": self._api_key}
        query.update(params or {})

        logger.debug("%s %s/%s", method.upper(), self._options.base_url, path)
        response = await self._http.request(
            method.upper(),
            f"{self._options.base_url}/{path}",
            params=query,
        )

        try:
            payload = response.json()
        except ValueError:
            logger.warning("Non-JSON response from %s (HTTP %d)", path, response.status_code)
            raise InvalidPayloadError(response.status_code) from None

        if not 200 <= response.status_code < 300:
            raise APIError.from_payload(payload, response.status_code)

        if isinstance(payload, dict):
            return payload.get("result")
        return None

    async def _lookup_postcode(self, postcode: str) -> list[Any]:
        try:
            return await self._request("get", f"postcodes/{_path_segment(postcode)}")
        except APIError as exc:
            if exc._service_code == NOT_FOUND_CODE:
                logger.info("Postcode not found: %s", postcode)
                return []
            raise

    async def lookup_postcode(self, postcode: str, callback: Callback | None = None) -> list[Any] | None:
        """Look up a postcode and return the matching records.

        The postcode is sent as given; an unknown postcode yields ``[]``
        rather than an error. If ``callback`` is supplied it receives
        ``(error, result)`` once the lookup settles.
        """
        return await settle(self._lookup_postcode(postcode), callback)

    async def _postcode_for_location(self, latitude: float, longitude: float) -> dict[str, Any] | None:
        params = {
            "lonlat": f"{longitude},{latitude}",
            "radius": LOCATION_RADIUS,
            "limit": LOCATION_LIMIT,
        }
        data = await self._request("get", "postcodes", params)
        if not data:
            return None
        return data[0]

    async def postcode_for_location(
        self,
        latitude: float,
        longitude: float,
        callback: Callback | None = None,
    ) -> dict[str, Any] | None:
        """Find the postcode nearest to a coordinate, or None if there is none."""
        return await settle(self._postcode_for_location(latitude, longitude), callback)


def _path_segment(value: str) -> str:
    """Percent-escape ``value`` as a single path segment.

    Bare ``.`` and ``..`` are escaped too, so URL normalisation cannot
    collapse them into the parent path.
    """
    segment = quote(value, safe=_SEGMENT_SAFE)
    if segment in (".", ".."):
        return segment.replace(".", "%2E")
    return segment
