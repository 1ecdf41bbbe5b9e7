"""Unit tests for SheetsClient."""
import json

import pytest
import responses
from requests.exceptions import RequestException, Timeout

from sheets.client import MalformedSheetResponse, SheetsClient

VALUES_URL = "https://sheets.googleapis.com/v4/spreadsheets/sheet123/values"
EVENTS_URL = f"{VALUES_URL}/Eventi!A:M"
APPEND_URL = f"{VALUES_URL}/Eventi!A:Z:append"


@pytest.fixture
def client():
    return SheetsClient('sheet123', 'test-key', timeout=30, base_delay=0)


class TestSheetsClient:
    """Test cases for SheetsClient class."""

    @responses.activate
    def test_read_range_success(self, client):
        """Test reading a range returns the values grid."""
        responses.add(
            responses.GET,
            EVENTS_URL,
            json={
                'range': 'Eventi!A1:M3',
                'majorDimension': 'ROWS',
                'values': [
                    ['ID', 'Title', 'Category'],
                    ['evt_1', 'Sagra', 'festa-paese'],
                ]
            },
            status=200
        )

        rows = client.read_range('Eventi!A:M')

        assert rows == [['ID', 'Title', 'Category'], ['evt_1', 'Sagra', 'festa-paese']]
        assert len(responses.calls) == 1
        assert 'key=test-key' in responses.calls[0].request.url

    @responses.activate
    def test_read_range_without_values(self, client):
        """Test that an empty sheet yields no rows."""
        responses.add(
            responses.GET,
            EVENTS_URL,
            json={'range': 'Eventi!A1:M1', 'majorDimension': 'ROWS'},
            status=200
        )

        assert client.read_range('Eventi!A:M') == []

    @responses.activate
    def test_read_range_with_retry_success(self, client):
        """Test retry logic succeeds after initial failures."""
        responses.add(responses.GET, EVENTS_URL, body="Server Error", status=500)
        responses.add(responses.GET, EVENTS_URL, body="Server Error", status=503)
        responses.add(responses.GET, EVENTS_URL, json={'values': [['ID']]}, status=200)

        rows = client.read_range('Eventi!A:M')

        assert rows == [['ID']]
        assert len(responses.calls) == 3

    @responses.activate
    def test_read_range_all_retries_fail(self, client):
        """Test that exception is raised when all retries fail."""
        for _ in range(3):
            responses.add(responses.GET, EVENTS_URL, body="Server Error", status=500)

        with pytest.raises(RequestException):
            client.read_range('Eventi!A:M')

        assert len(responses.calls) == 3

    @responses.activate
    def test_read_range_timeout(self, client):
        """Test timeout handling."""
        for _ in range(3):
            responses.add(responses.GET, EVENTS_URL, body=Timeout("Request timed out"))

        with pytest.raises(Timeout):
            client.read_range('Eventi!A:M')

        assert len(responses.calls) == 3

    @responses.activate
    def test_append_rows_success(self, client):
        """Test appending rows posts them in a values payload."""
        responses.add(
            responses.POST,
            APPEND_URL,
            json={'spreadsheetId': 'sheet123', 'updates': {'updatedRows': 1}},
            status=200
        )

        ack = client.append_rows('Eventi', [['evt_1', 'Sagra']])

        assert ack['updates']['updatedRows'] == 1
        request = responses.calls[0].request
        assert json.loads(request.body) == {'values': [['evt_1', 'Sagra']]}
        assert 'valueInputOption=USER_ENTERED' in request.url

    @responses.activate
    def test_append_rows_failure_is_not_retried(self, client):
        """Test that a non-2xx append fails on the first attempt."""
        responses.add(responses.POST, APPEND_URL, json={'error': {}}, status=403)

        with pytest.raises(RequestException):
            client.append_rows('Eventi', [['evt_1']])

        assert len(responses.calls) == 1

    @responses.activate
    def test_read_range_malformed_body(self, client):
        """Test that a JSON body that is not a values object is rejected once."""
        responses.add(responses.GET, EVENTS_URL, json=[['ID']], status=200)

        with pytest.raises(MalformedSheetResponse):
            client.read_range('Eventi!A:M')

        assert len(responses.calls) == 1

    @responses.activate
    def test_read_range_values_not_a_list(self, client):
        responses.add(responses.GET, EVENTS_URL, json={'values': 'ID'}, status=200)

        with pytest.raises(MalformedSheetResponse):
            client.read_range('Eventi!A:M')
