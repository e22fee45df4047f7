"""open-postcodes - async client for the OpenPostcodes UK postcode API."""

from open_postcodes.client import ClientOptions, OpenPostcodesClient
from open_postcodes.errors import (
    APIError,
    ConfigurationError,
    InvalidPayloadError,
    OpenPostcodesError,
)

__all__ = [
    "OpenPostcodesClient",
    "ClientOptions",
    "OpenPostcodesError",
    "ConfigurationError",
    "InvalidPayloadError",
    "APIError",
]
