"""
Constants and configuration settings for the eBay search client.

This module contains the per-environment endpoint registry, the sort and
condition vocabularies of both search APIs, and the user-facing error
messages.
"""

from enum import Enum
from typing import Dict, NamedTuple, Union

from .exceptions import ConfigurationError


class Environment(str, Enum):
    """eBay environments a key pair can belong to."""
    PRODUCTION = "PRODUCTION"
    SANDBOX = "SANDBOX"


class EnvironmentEndpoints(NamedTuple):
    """Endpoints and OAuth scope for one environment."""
    auth_url: str
    browse_url: str
    finding_url: str
    scope: str


# Both environments request the same public scope URL
OAUTH_API_SCOPE = "https://api.ebay.com/oauth/api_scope"

ENDPOINTS: Dict[Environment, EnvironmentEndpoints] = {
    Environment.PRODUCTION: EnvironmentEndpoints(
        auth_url="https://api.ebay.com/identity/v1/oauth2/token",
        browse_url="https://api.ebay.com/buy/browse/v1",
        finding_url="https://svcs.ebay.com/services/search/FindingService/v1",
        scope=OAUTH_API_SCOPE,
    ),
    Environment.SANDBOX: EnvironmentEndpoints(
        auth_url="https://api.sandbox.ebay.com/identity/v1/oauth2/token",
        browse_url="https://api.sandbox.ebay.com/buy/browse/v1",
        finding_url="https://svcs.sandbox.ebay.com/services/search/FindingService/v1",
        scope=OAUTH_API_SCOPE,
    ),
}


def get_endpoints(environment: Union[Environment, str]) -> EnvironmentEndpoints:
    """
    Look up the endpoints for an environment.

    Args:
        environment: Environment enum member or its name

    Returns:
        Endpoints for the environment

    Raises:
        ConfigurationError: If the environment is not known
    """
    try:
        return ENDPOINTS[Environment(environment)]
    except (ValueError, KeyError):
        raise ConfigurationError(
            f"Unknown eBay environment: {environment!r}",
            details={"environment": str(environment)},
        )


# Browse API paths and headers
BROWSE_SEARCH_PATH = "/item_summary/search"
DEFAULT_MARKETPLACE_ID = "EBAY_US"

# Finding API request constants
FINDING_OPERATION = "findCompletedItems"
FINDING_SERVICE_VERSION = "1.13.0"
FINDING_RESPONSE_KEY = "findCompletedItemsResponse"

# Acknowledgement values the Finding API uses for a usable response
FINDING_ACCEPTED_ACKS = frozenset({"Success", "Warning"})

# Both search modes return a single fixed-size page
PAGE_SIZE = 50

# Token is treated as expired this many seconds before its real expiry
TOKEN_EXPIRY_MARGIN_SECONDS = 60

# Request timeout
REQUEST_TIMEOUT = 30  # Seconds

# OAuth error code eBay returns for an unknown or malformed key pair
INVALID_CLIENT_ERROR = "invalid_client"

DEFAULT_CURRENCY = "USD"
UNKNOWN_CONDITION = "Unknown"


class SortOption(str, Enum):
    """Caller-facing sort preferences shared by both search modes."""
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    DATE_DESC = "date_desc"


class SearchMode(str, Enum):
    """Which search surface a request targets."""
    ACTIVE = "active"
    SOLD = "sold"


class ListingStatus(str, Enum):
    """Status stamped on every normalized item."""
    ACTIVE = "ACTIVE"
    SOLD = "SOLD"


class ItemCondition(str, Enum):
    """Generic condition vocabulary offered to callers."""
    NEW = "New"
    USED = "Used"
    REFURBISHED = "Refurbished"


# Remote condition codes per generic condition. Refurbished covers both
# manufacturer (2000) and seller (2500) refurbished listings.
CONDITION_CODES: Dict[ItemCondition, tuple] = {
    ItemCondition.NEW: ("1000",),
    ItemCondition.USED: ("3000",),
    ItemCondition.REFURBISHED: ("2000", "2500"),
}

# Browse API sort field per sort option; None means the default
BROWSE_SORT_FIELDS: Dict[SortOption, str] = {
    SortOption.PRICE_DESC: "-price",
    SortOption.DATE_DESC: "newness",
}
BROWSE_DEFAULT_SORT = "price"

# Finding API sortOrder per sort option
FINDING_SORT_ORDERS: Dict[SortOption, str] = {
    SortOption.PRICE_ASC: "CurrentPriceLowest",
    SortOption.DATE_DESC: "EndTimeSoonest",
}
FINDING_DEFAULT_SORT = "CurrentPriceHighest"


# Browse API filter clauses
BUYING_OPTIONS_CLAUSE = "buyingOptions:{FIXED_PRICE|AUCTION}"
FREE_SHIPPING_CLAUSE = "deliveryOptions:{FREE_SHIPPING}"
PRICE_WILDCARD = "*"


class LegacyFilterName(str, Enum):
    """itemFilter names used against the Finding API."""
    SOLD_ITEMS_ONLY = "SoldItemsOnly"
    MIN_PRICE = "MinPrice"
    MAX_PRICE = "MaxPrice"
    CONDITION = "Condition"
    FREE_SHIPPING_ONLY = "FreeShippingOnly"
    LOCAL_PICKUP_ONLY = "LocalPickupOnly"
    FEEDBACK_SCORE_MIN = "FeedbackScoreMin"


# Error messages
ERROR_MESSAGES = {
    # Configuration
    "NOT_CONFIGURED": "eBay credentials not configured",
    "MISSING_CREDENTIALS": "Both App ID and Cert ID are required",

    # Authentication
    "AUTH_ERROR": "Authentication failed with eBay API",
    "INVALID_CLIENT": "eBay rejected the App ID / Cert ID pair",
    "BOTH_ENVIRONMENTS_REJECTED": (
        "Keys rejected by both Production and Sandbox. "
        "Double-check your App ID and Cert ID."
    ),
    "TOKEN_PARSE_ERROR": "Unexpected response from eBay token endpoint",

    # Transport
    "CONNECTION_ERROR": "Failed to connect to eBay API",
    "TIMEOUT_ERROR": "Request timed out while connecting to eBay API",

    # Search
    "ACTIVE_SEARCH_FAILED": "Failed to search active listings.",
    "SOLD_SEARCH_FAILED": "Failed to search sold listings.",
    "EMPTY_QUERY": "A search query is required",
}
