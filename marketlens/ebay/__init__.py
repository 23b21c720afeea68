"""
eBay search package.

Main components:
- MarketLensService: credential state plus verify/search operations
- TokenCache / CredentialVerifier: OAuth tokens and environment detection
- EbaySearchClient: Browse API (active) and Finding API (sold) searches
- Filter translation for both APIs

Usage:
    from marketlens.ebay import MarketLensService, FilterSet

    async with MarketLensService() as service:
        await service.verify_and_detect_environment(app_id, cert_id)
        result = await service.search_sold("vintage camera", filters=FilterSet(max_price=100))
"""

from .api import EbaySearchClient
from .auth import CredentialVerifier, TokenCache
from .constants import (
    Environment,
    ItemCondition,
    ListingStatus,
    SearchMode,
    SortOption,
    get_endpoints,
)
from .exceptions import (
    AuthenticationError,
    BothEnvironmentsRejectedError,
    ConfigurationError,
    EbayApiError,
    InvalidClientError,
    InvalidRequestError,
    SearchError,
    TransportError,
)
from .filters import flatten_legacy_filters, to_legacy_filter_list, to_search_filter_expression
from .models import CredentialConfig, FilterSet, Item, LegacyFilter, OAuthToken, SearchResult
from .service import MarketLensService

__all__ = [
    "MarketLensService",
    "EbaySearchClient",
    "TokenCache",
    "CredentialVerifier",
    "Environment",
    "ItemCondition",
    "ListingStatus",
    "SearchMode",
    "SortOption",
    "get_endpoints",
    "EbayApiError",
    "ConfigurationError",
    "AuthenticationError",
    "InvalidClientError",
    "BothEnvironmentsRejectedError",
    "TransportError",
    "InvalidRequestError",
    "SearchError",
    "to_search_filter_expression",
    "to_legacy_filter_list",
    "flatten_legacy_filters",
    "CredentialConfig",
    "FilterSet",
    "Item",
    "LegacyFilter",
    "OAuthToken",
    "SearchResult",
]
