"""HTTP client for the Google Sheets values API."""
import logging
import time
from typing import Any, List
from urllib.parse import quote

import requests

logger = logging.getLogger(__name__)


class MalformedSheetResponse(ValueError):
    """The values API answered with a body that is not a values object."""


class SheetsClient:
    """Client reading and appending rows of one spreadsheet."""

    BASE_URL = "https://sheets.googleapis.com/v4/spreadsheets"

    def __init__(
        self,
        spreadsheet_id: str,
        api_key: str,
        base_url: str = BASE_URL,
        timeout: int = 30,
        max_retries: int = 3,
        base_delay: float = 1,
        session: requests.Session = None
    ):
        """
        Initialize the sheets client.

        Args:
            spreadsheet_id: Id of the spreadsheet holding the data
            api_key: API key sent with every request
            base_url: Values API root (default: Google Sheets v4)
            timeout: HTTP request timeout in seconds (default: 30)
            max_retries: Read attempts before giving up (default: 3)
            base_delay: First backoff delay in seconds (default: 1)
            session: Optional requests session to reuse connections
        """
        self.values_url = f"{base_url.rstrip('/')}/{spreadsheet_id}/values"
        self.api_key = api_key
        self.timeout = timeout
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.session = session or requests.Session()

    def read_range(self, cell_range: str) -> List[List[Any]]:
        """
        Read a cell range.

        Args:
            cell_range: A1 range such as ``Eventi!A:M``

        Returns:
            Row-major cell values including the header row; an empty list
            when the response carries no ``values`` field

        Raises:
            requests.RequestException: If all retry attempts fail
            MalformedSheetResponse: If the body is not a values object
        """
        url = f"{self.values_url}/{quote(cell_range, safe='!:')}"

        for attempt in range(self.max_retries):
            try:
                logger.info(
                    f"Reading {cell_range} (attempt {attempt + 1}/{self.max_retries})"
                )
                response = self.session.get(
                    url,
                    params={'key': self.api_key},
                    timeout=self.timeout
                )
                response.raise_for_status()
                payload = response.json()

            except requests.RequestException as e:
                if attempt < self.max_retries - 1:
                    # Calculate exponential backoff delay
                    delay = self.base_delay * (2 ** attempt)
                    logger.warning(
                        f"Read failed (attempt {attempt + 1}/{self.max_retries}): {e}. "
                        f"Retrying in {delay} seconds..."
                    )
                    time.sleep(delay)
                    continue
                logger.error(
                    f"All {self.max_retries} read attempts failed. Last error: {e}"
                )
                raise

            # A well-formed reply that is not a values object will not change on retry
            if not isinstance(payload, dict):
                logger.error(
                    f"Unexpected response for {cell_range}: {type(payload).__name__}"
                )
                raise MalformedSheetResponse(
                    f"Expected a JSON object for {cell_range}, "
                    f"got {type(payload).__name__}"
                )
            values = payload.get('values', [])
            if not isinstance(values, list):
                raise MalformedSheetResponse(
                    f"Expected a list of rows for {cell_range}, "
                    f"got {type(values).__name__}"
                )
            return values

    def append_rows(self, sheet_name: str, rows: List[List[Any]]) -> dict:
        """
        Append rows after the last filled row of a sheet.

        Appends are not retried since a timed out request may still land.

        Args:
            sheet_name: Tab name such as ``Eventi``
            rows: Rows in the sheet's column order

        Returns:
            Acknowledgment payload from the API

        Raises:
            requests.RequestException: On transport errors or non-2xx status
        """
        cell_range = quote(f"{sheet_name}!A:Z", safe='!:')
        url = f"{self.values_url}/{cell_range}:append"

        logger.info(f"Appending {len(rows)} rows to {sheet_name}")
        response = self.session.post(
            url,
            params={'valueInputOption': 'USER_ENTERED', 'key': self.api_key},
            json={'values': rows},
            timeout=self.timeout
        )
        response.raise_for_status()
        return response.json()
