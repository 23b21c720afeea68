"""
Shared fixtures and sample payloads for the eBay client tests.
"""

import json
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest
from aiohttp import RequestInfo
from yarl import URL

from marketlens.ebay import CredentialConfig, Environment
from marketlens.ebay.session import EbaySession

# Test constants
TEST_APP_ID = "test-app-id"
TEST_CERT_ID = "test-cert-id"

# Sample responses
OAUTH_TOKEN_RESPONSE = {
    "access_token": "test_access_token",
    "token_type": "Application Access Token",
    "expires_in": 7200,
}

INVALID_CLIENT_RESPONSE = {
    "error": "invalid_client",
    "error_description": "client authentication failed",
}

BROWSE_API_RESPONSE = {
    "href": "https://api.ebay.com/buy/browse/v1/item_summary/search?q=camera",
    "total": 1234,
    "limit": 50,
    "itemSummaries": [
        {
            "itemId": "v1|123456789|0",
            "title": "Vintage Film Camera",
            "price": {"value": "89.99", "currency": "USD"},
            "image": {"imageUrl": "https://i.ebayimg.com/images/g/abc/s-l225.jpg"},
            "itemWebUrl": "https://www.ebay.com/itm/123456789",
            "itemCreationDate": "2025-05-25T12:00:00.000Z",
            "condition": "Used",
        },
        {
            "itemId": "v1|987654321|0",
            "title": "Camera Strap",
            "price": {"value": "12.50", "currency": "GBP"},
            "itemWebUrl": "https://www.ebay.com/itm/987654321",
            "itemCreationDate": "2025-05-26T08:30:00.000Z",
        },
    ],
}

FINDING_API_RESPONSE = {
    "findCompletedItemsResponse": [
        {
            "ack": ["Success"],
            "version": ["1.13.0"],
            "timestamp": ["2025-05-31T12:00:00.000Z"],
            "searchResult": [
                {
                    "@count": "2",
                    "item": [
                        {
                            "itemId": ["123456789"],
                            "title": ["Test Item 1"],
                            "galleryURL": ["https://example.com/img1.jpg"],
                            "viewItemURL": ["https://example.com/item/123456789"],
                            "sellingStatus": [
                                {
                                    "currentPrice": [{"@currencyId": "USD", "__value__": "10.99"}],
                                    "sellingState": ["EndedWithSales"],
                                }
                            ],
                            "listingInfo": [{"endTime": ["2025-05-30T18:04:11.000Z"]}],
                            "condition": [
                                {"conditionId": ["1000"], "conditionDisplayName": ["New"]}
                            ],
                        },
                        {
                            "itemId": ["987654321"],
                            "title": ["Test Item 2"],
                            "viewItemURL": ["https://example.com/item/987654321"],
                            "sellingStatus": [
                                {"currentPrice": [{"@currencyId": "EUR", "__value__": "24.99"}]}
                            ],
                        },
                    ],
                }
            ],
            "paginationOutput": [
                {
                    "pageNumber": ["1"],
                    "entriesPerPage": ["50"],
                    "totalPages": ["10"],
                    "totalEntries": ["480"],
                }
            ],
        }
    ]
}

FINDING_FAILURE_RESPONSE = {
    "findCompletedItemsResponse": [
        {
            "ack": ["Failure"],
            "errorMessage": [
                {"error": [{"errorId": ["11002"], "message": ["Invalid application ID."]}]}
            ],
        }
    ]
}


def create_mock_response(status=200, content=None, json_error=None):
    """Create a mock aiohttp response usable with ``async with``."""
    mock_response = MagicMock()
    mock_response.status = status
    mock_response.headers = {"Content-Type": "application/json"}
    mock_response.text = AsyncMock(return_value=json.dumps(content) if content is not None else "")

    if json_error is not None:
        mock_response.json = AsyncMock(side_effect=json_error)
    else:
        mock_response.json = AsyncMock(return_value=content)

    mock_response.__aenter__ = AsyncMock(return_value=mock_response)
    mock_response.__aexit__ = AsyncMock(return_value=None)

    if status >= 400:
        request_info = RequestInfo(
            url=URL("http://example.com"),
            method="GET",
            headers={},
            real_url=URL("http://example.com"),
        )
        mock_response.raise_for_status = MagicMock(
            side_effect=aiohttp.ClientResponseError(
                request_info=request_info,
                history=(),
                status=status,
                message=f"HTTP Error {status}",
            )
        )
    else:
        mock_response.raise_for_status = MagicMock()

    return mock_response


class FakeClock:
    """Manually advanced replacement for datetime.now."""

    def __init__(self, start=None):
        self.now = start or datetime(2025, 6, 1, 12, 0, 0)

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def mock_session():
    """Fixture for mock aiohttp ClientSession."""
    mock = MagicMock()
    mock.closed = False
    mock.close = AsyncMock()
    mock.post = MagicMock(return_value=create_mock_response(content=OAUTH_TOKEN_RESPONSE))
    mock.get = MagicMock(return_value=create_mock_response(content=BROWSE_API_RESPONSE))
    return mock


@pytest.fixture
def ebay_session(mock_session):
    """Session holder wrapping the mock session."""
    return EbaySession(session=mock_session)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def production_credentials():
    return CredentialConfig(
        app_id=TEST_APP_ID, cert_id=TEST_CERT_ID, environment=Environment.PRODUCTION
    )


@pytest.fixture
def sandbox_credentials():
    return CredentialConfig(
        app_id="sandbox-app-id", cert_id="sandbox-cert-id", environment=Environment.SANDBOX
    )
