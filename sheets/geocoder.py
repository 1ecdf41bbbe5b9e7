"""Address geocoding through Nominatim."""
import logging

import requests

from processor.models import GeocodeResult, Resolved, Unresolved
from processor.row_parser import parse_coordinates

logger = logging.getLogger(__name__)


class NominatimGeocoder:
    """Best-effort geocoder; a single attempt per address, no retries."""

    BASE_URL = "https://nominatim.openstreetmap.org/search"
    USER_AGENT = "community-event-board/1.0"

    def __init__(
        self,
        base_url: str = BASE_URL,
        country_code: str = 'it',
        country_qualifier: str = 'Italia',
        timeout: int = 30,
        session: requests.Session = None
    ):
        """
        Initialize the geocoder.

        Args:
            base_url: Search endpoint
            country_code: ISO code results are restricted to
            country_qualifier: Appended to every address query
            timeout: HTTP request timeout in seconds (default: 30)
            session: Optional requests session
        """
        self.base_url = base_url
        self.country_code = country_code
        self.country_qualifier = country_qualifier
        self.timeout = timeout
        self.session = session or requests.Session()

    def geocode(self, address: str) -> GeocodeResult:
        """
        Resolve a free-text address.

        Never raises: every failure comes back as Unresolved.

        Args:
            address: Address or place name

        Returns:
            Resolved with the best candidate, or Unresolved with a reason
        """
        query = f"{address}, {self.country_qualifier}" if self.country_qualifier else address
        params = {
            'format': 'json',
            'q': query,
            'limit': 1,
            'countrycodes': self.country_code,
        }

        try:
            response = self.session.get(
                self.base_url,
                params=params,
                headers={'User-Agent': self.USER_AGENT},
                timeout=self.timeout
            )
            response.raise_for_status()
            candidates = response.json()
        except requests.RequestException as e:
            logger.warning(f"Geocoding failed for '{address}': {e}")
            return Unresolved(reason=f"request failed: {e}")

        if not isinstance(candidates, list) or not candidates:
            logger.warning(f"No geocoding results for '{address}'")
            return Unresolved(reason='no results')

        best = candidates[0]
        if not isinstance(best, dict):
            return Unresolved(reason='malformed response')

        coordinates = parse_coordinates(best.get('lat'), best.get('lon'))
        if coordinates is None:
            logger.warning(
                f"Malformed geocoding result for '{address}': {best!r}"
            )
            return Unresolved(reason='malformed response')

        logger.info(
            f"Geocoded '{address}' to "
            f"{coordinates.latitude}, {coordinates.longitude}"
        )
        return Resolved(coordinates=coordinates)
