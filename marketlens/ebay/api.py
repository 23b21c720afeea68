"""
eBay search client implementation.

This module searches active listings through the Browse API and sold
listings through the Finding API, and normalizes both response shapes into
the same Item model.
"""

import asyncio
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

import aiohttp
from pydantic import ValidationError

from .constants import (
    BROWSE_DEFAULT_SORT, BROWSE_SEARCH_PATH, BROWSE_SORT_FIELDS,
    DEFAULT_CURRENCY, DEFAULT_MARKETPLACE_ID, ERROR_MESSAGES,
    FINDING_ACCEPTED_ACKS, FINDING_DEFAULT_SORT, FINDING_OPERATION,
    FINDING_RESPONSE_KEY, FINDING_SERVICE_VERSION, FINDING_SORT_ORDERS,
    PAGE_SIZE, UNKNOWN_CONDITION,
    ListingStatus, SortOption, get_endpoints,
)
from .exceptions import SearchError
from .filters import flatten_legacy_filters, to_legacy_filter_list, to_search_filter_expression
from .models import CredentialConfig, FilterSet, Item, SearchResult
from .session import EbaySession

# Configure logger
logger = logging.getLogger(__name__)


def browse_sort_field(sort: Optional[SortOption]) -> str:
    """Browse API ``sort`` value; ascending price unless asked otherwise."""
    return BROWSE_SORT_FIELDS.get(sort, BROWSE_DEFAULT_SORT)


def finding_sort_order(sort: Optional[SortOption]) -> str:
    """Finding API ``sortOrder`` value; highest price unless asked otherwise."""
    return FINDING_SORT_ORDERS.get(sort, FINDING_DEFAULT_SORT)


def _first(node: Any, key: str) -> Any:
    """
    Unwrap a Finding API field.

    The Finding API wraps every value in a single-element list. A missing
    key, a non-dict node or an empty list all read as missing.
    """
    if not isinstance(node, dict):
        return None
    value = node.get(key)
    if isinstance(value, list):
        return value[0] if value else None
    return value


def _to_decimal(value: Any) -> Decimal:
    if value in (None, ""):
        return Decimal("0")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal("0")


def _build_item(status: ListingStatus, fields: Dict[str, Any]) -> Optional[Item]:
    """Construct an Item, skipping summaries that do not validate."""
    try:
        return Item(status=status, **fields)
    except ValidationError as e:
        logger.warning(f"Skipping unparseable {status.value.lower()} item {fields.get('item_id')!r}: {e}")
        return None


def normalize_browse_item(summary: Dict[str, Any]) -> Optional[Item]:
    """
    Normalize a Browse API itemSummary.

    Args:
        summary: itemSummaries entry

    Returns:
        Item with ACTIVE status, or None if it cannot be normalized
    """
    price = summary.get("price") or {}
    image = summary.get("image") or {}
    return _build_item(ListingStatus.ACTIVE, {
        "item_id": summary.get("itemId") or "",
        "title": summary.get("title") or "",
        "price": _to_decimal(price.get("value")),
        "currency": price.get("currency") or DEFAULT_CURRENCY,
        "image_url": image.get("imageUrl"),
        "listing_url": summary.get("itemWebUrl"),
        "timestamp": summary.get("itemCreationDate"),
        "condition": summary.get("condition") or UNKNOWN_CONDITION,
    })


def normalize_finding_item(item: Dict[str, Any]) -> Optional[Item]:
    """
    Normalize a Finding API searchResult item.

    Args:
        item: searchResult item entry

    Returns:
        Item with SOLD status, or None if it cannot be normalized
    """
    current_price = _first(_first(item, "sellingStatus"), "currentPrice")
    if not isinstance(current_price, dict):
        current_price = {}
    return _build_item(ListingStatus.SOLD, {
        "item_id": _first(item, "itemId") or "",
        "title": _first(item, "title") or "",
        "price": _to_decimal(current_price.get("__value__")),
        "currency": current_price.get("@currencyId") or DEFAULT_CURRENCY,
        "image_url": _first(item, "galleryURL"),
        "listing_url": _first(item, "viewItemURL"),
        "timestamp": _first(_first(item, "listingInfo"), "endTime"),
        "condition": _first(_first(item, "condition"), "conditionDisplayName") or UNKNOWN_CONDITION,
    })


def _to_total(value: Any, fallback: int) -> int:
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        return fallback


def parse_browse_response(data: Dict[str, Any]) -> SearchResult:
    """Build a SearchResult from a Browse API search response."""
    items: List[Item] = []
    for summary in data.get("itemSummaries") or []:
        item = normalize_browse_item(summary)
        if item is not None:
            items.append(item)
    return SearchResult(total=_to_total(data.get("total"), len(items)), items=items)


def parse_finding_response(data: Dict[str, Any]) -> SearchResult:
    """
    Build a SearchResult from a findCompletedItems response.

    A missing envelope or an acknowledgement other than Success/Warning
    yields an empty result; eBay's error message is logged.
    """
    body = _first(data, FINDING_RESPONSE_KEY)
    if not isinstance(body, dict):
        logger.warning("Finding API response has no findCompletedItemsResponse")
        return SearchResult.empty()

    ack = _first(body, "ack")
    if ack not in FINDING_ACCEPTED_ACKS:
        logger.warning(f"Finding API ack {ack!r}: {body.get('errorMessage')}")
        return SearchResult.empty()
    if ack == "Warning":
        logger.warning(f"Finding API warning: {body.get('errorMessage')}")

    search_result = _first(body, "searchResult")
    items: List[Item] = []
    for raw_item in (search_result or {}).get("item") or []:
        item = normalize_finding_item(raw_item)
        if item is not None:
            items.append(item)

    # Prefer the overall match count; @count is only the size of this page
    total = _first(_first(body, "paginationOutput"), "totalEntries")
    if total is None and isinstance(search_result, dict):
        total = search_result.get("@count")
    return SearchResult(total=_to_total(total, len(items)), items=items)


class EbaySearchClient:
    """Client for the Browse (active) and Finding (sold) search APIs."""

    def __init__(self, session: EbaySession, marketplace_id: str = DEFAULT_MARKETPLACE_ID):
        """
        Initialize the search client.

        Args:
            session: Shared HTTP session holder
            marketplace_id: Browse API marketplace header value
        """
        self.session = session
        self.marketplace_id = marketplace_id

    async def search_active(
        self,
        credentials: CredentialConfig,
        token: str,
        query: str,
        sort: Optional[SortOption] = None,
        filters: Optional[FilterSet] = None,
    ) -> SearchResult:
        """
        Search active listings with the Browse API.

        Args:
            credentials: Active credential configuration
            token: OAuth access token for the configured environment
            query: Search keywords
            sort: Sort preference
            filters: Generic filters

        Returns:
            SearchResult with ACTIVE items; empty when eBay answers 404

        Raises:
            ConfigurationError: If the configured environment is unknown
            SearchError: For any other failure
        """
        endpoints = get_endpoints(credentials.environment)
        params = {
            "q": query,
            "limit": str(PAGE_SIZE),
            "sort": browse_sort_field(sort),
            "filter": to_search_filter_expression(filters),
        }
        headers = {
            "Authorization": f"Bearer {token}",
            "X-EBAY-C-MARKETPLACE-ID": self.marketplace_id,
            "Accept": "application/json",
        }

        logger.info(f"Searching active listings: q='{query}', sort={params['sort']}")
        session = await self.session.get()

        try:
            async with session.get(
                f"{endpoints.browse_url}{BROWSE_SEARCH_PATH}", params=params, headers=headers
            ) as response:
                response.raise_for_status()
                data = await response.json(content_type=None)
        except aiohttp.ClientResponseError as e:
            if e.status == 404:
                logger.info("Browse API returned 404; treating as no results")
                return SearchResult.empty()
            logger.error(f"Browse API error {e.status}: {e.message}")
            raise SearchError(ERROR_MESSAGES["ACTIVE_SEARCH_FAILED"], str(e.status))
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error(f"Browse API request failed: {e}")
            raise SearchError(ERROR_MESSAGES["ACTIVE_SEARCH_FAILED"], None, {"error": str(e)})

        if not isinstance(data, dict):
            logger.error("Browse API returned a non-object body")
            raise SearchError(ERROR_MESSAGES["ACTIVE_SEARCH_FAILED"])

        result = parse_browse_response(data)
        logger.info(f"Found {len(result.items)} active items (total {result.total})")
        return result

    async def search_sold(
        self,
        credentials: CredentialConfig,
        query: str,
        sort: Optional[SortOption] = None,
        filters: Optional[FilterSet] = None,
    ) -> SearchResult:
        """
        Search sold listings with the Finding API.

        The Finding API is authorized with the app ID alone, no OAuth token.

        Args:
            credentials: Active credential configuration
            query: Search keywords
            sort: Sort preference
            filters: Generic filters

        Returns:
            SearchResult with SOLD items; empty on a non-success ack

        Raises:
            ConfigurationError: If the configured environment is unknown
            SearchError: On transport or HTTP failure
        """
        endpoints = get_endpoints(credentials.environment)
        params = {
            "OPERATION-NAME": FINDING_OPERATION,
            "SERVICE-VERSION": FINDING_SERVICE_VERSION,
            "SECURITY-APPNAME": credentials.app_id,
            "RESPONSE-DATA-FORMAT": "JSON",
            "REST-PAYLOAD": "",
            "keywords": query,
            "sortOrder": finding_sort_order(sort),
            "paginationInput.entriesPerPage": str(PAGE_SIZE),
        }
        params.update(flatten_legacy_filters(to_legacy_filter_list(filters)))

        logger.info(f"Searching sold listings: keywords='{query}', sortOrder={params['sortOrder']}")
        session = await self.session.get()

        try:
            async with session.get(endpoints.finding_url, params=params) as response:
                response.raise_for_status()
                data = await response.json(content_type=None)
        except aiohttp.ClientResponseError as e:
            logger.error(f"Finding API error {e.status}: {e.message}")
            raise SearchError(ERROR_MESSAGES["SOLD_SEARCH_FAILED"], str(e.status))
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error(f"Finding API request failed: {e}")
            raise SearchError(ERROR_MESSAGES["SOLD_SEARCH_FAILED"], None, {"error": str(e)})

        if not isinstance(data, dict):
            logger.warning("Finding API returned a non-object body")
            return SearchResult.empty()

        result = parse_finding_response(data)
        logger.info(f"Found {len(result.items)} sold items (total {result.total})")
        return result
