"""
Facility geocoding for the CEBA Mapper (OpenStreetMap Nominatim).

Resolves a facility name and district to approximate coordinates.
Lookups are best effort: any failure is logged and reported as None so a
bad record never stops the rest of a search.

Nominatim has a usage policy (one request per second, identifying
User-Agent). Pacing between requests is enforced by the search pipeline.
"""

import logging
import re
from typing import Optional

import requests

from config import Config
from errors import GeocodeFailure
from facility_store import Coordinates

logger = logging.getLogger(__name__)

# Leading "CEBA" token in facility names, e.g. "CEBA San Martín"
FACILITY_PREFIX_PAT = re.compile(r'^CEBA\s*', re.I)


def clean_facility_name(name: str) -> str:
    """
    Strip the facility type prefix from a name.

    Examples:
        >>> clean_facility_name("CEBA Norte")
        'Norte'
        >>> clean_facility_name("ceba   José Olaya ")
        'José Olaya'
    """
    if not name or not isinstance(name, str):
        return ""
    return FACILITY_PREFIX_PAT.sub('', name.strip()).strip()


def build_query(name: str, district: str, country: Optional[str] = None) -> str:
    """Compose the free-text query sent to the geocoding service."""
    country = country or Config.DEFAULT_COUNTRY
    return f"{clean_facility_name(name)}, {district}, {country}"


class NominatimGeocoder:
    """
    Geocoder backed by the Nominatim search endpoint.

    Args:
        session: HTTP session, a new requests.Session if omitted
        base_url: Search endpoint, defaults to Config.GEOCODER_URL
        user_agent: User-Agent header, defaults to Config.GEOCODER_USER_AGENT
        country: Country appended to queries
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        base_url: Optional[str] = None,
        user_agent: Optional[str] = None,
        country: Optional[str] = None,
        timeout: Optional[float] = None
    ):
        self.session = session or requests.Session()
        self.base_url = base_url or Config.GEOCODER_URL
        self.user_agent = user_agent or Config.GEOCODER_USER_AGENT
        self.country = country or Config.DEFAULT_COUNTRY
        self.timeout = timeout or Config.HTTP_TIMEOUT

    def geocode(self, name: str, district: str) -> Optional[Coordinates]:
        """
        Locate a facility.

        Args:
            name: Facility name as found in the feed
            district: Facility district

        Returns:
            Coordinates of the first candidate, or None if nothing was found
            or the lookup failed
        """
        query = build_query(name, district, self.country)
        logger.info(f"[Step 4] Geocoding: \"{query}\"...")

        try:
            coords = self.lookup(query)
        except GeocodeFailure as e:
            logger.error(f"[Step 4] {e}")
            return None

        if coords is None:
            logger.warning(f"[Step 4] No coordinates found for: \"{name}\"")
            return None

        logger.info(f"[Step 4] Coordinates found for: \"{name}\"")
        return coords

    def lookup(self, query: str) -> Optional[Coordinates]:
        """
        Run one search request.

        Returns:
            Coordinates of the first candidate, or None for zero candidates

        Raises:
            GeocodeFailure: On transport, HTTP or response parsing errors
        """
        params = {
            'format': 'json',
            'q': query,
            'limit': 1,
        }
        headers = {'User-Agent': self.user_agent}

        try:
            response = self.session.get(
                self.base_url,
                params=params,
                headers=headers,
                timeout=self.timeout
            )
            response.raise_for_status()
            candidates = response.json()
        except requests.RequestException as e:
            raise GeocodeFailure(query, str(e)) from e
        except ValueError as e:
            raise GeocodeFailure(query, f"invalid response body: {e}") from e

        if not candidates:
            return None

        try:
            first = candidates[0]
            return Coordinates(
                latitude=float(first['lat']),
                longitude=float(first['lon'])
            )
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise GeocodeFailure(query, f"unexpected candidate format: {e}") from e
