"""
Translation of generic search filters into eBay query encodings.

The Browse API takes a single comma-separated filter expression, while the
Finding API takes an ordered list of named itemFilters that is serialized
into indexed query parameters. Both encodings are produced from the same
FilterSet.
"""

from decimal import Decimal
from typing import Dict, List, Optional

from .constants import (
    BUYING_OPTIONS_CLAUSE, CONDITION_CODES, FREE_SHIPPING_CLAUSE, PRICE_WILDCARD,
    ItemCondition, LegacyFilterName,
)
from .models import FilterSet, LegacyFilter


def _format_amount(value: Decimal) -> str:
    # Avoid exponent notation such as 1E+2 for whole amounts
    return format(value, "f")


def _condition_codes(conditions) -> List[List[str]]:
    """Remote codes per requested condition, in a fixed New/Used/Refurbished order."""
    return [list(CONDITION_CODES[c]) for c in ItemCondition if c in conditions]


def to_search_filter_expression(filters: Optional[FilterSet] = None) -> str:
    """
    Build the Browse API ``filter`` parameter.

    Clauses are emitted in a fixed order: buying options, price, condition,
    delivery options.

    Args:
        filters: Generic filter set; None means no optional filters

    Returns:
        Comma-joined filter expression
    """
    filters = filters or FilterSet()
    clauses = [BUYING_OPTIONS_CLAUSE]

    if filters.min_price is not None or filters.max_price is not None:
        low = _format_amount(filters.min_price) if filters.min_price is not None else "0"
        high = _format_amount(filters.max_price) if filters.max_price is not None else PRICE_WILDCARD
        clauses.append(f"price:[{low}..{high}]")

    codes = _condition_codes(filters.conditions)
    if codes:
        # A multi-code condition stays a single OR'd token, e.g. 2000|2500
        tokens = ["|".join(group) for group in codes]
        clauses.append("conditionIds:{%s}" % "|".join(tokens))

    if filters.free_shipping:
        clauses.append(FREE_SHIPPING_CLAUSE)

    return ",".join(clauses)


def to_legacy_filter_list(filters: Optional[FilterSet] = None) -> List[LegacyFilter]:
    """
    Build the Finding API itemFilter list.

    The list always starts with SoldItemsOnly. A condition with several
    remote codes contributes one value entry per code.

    Args:
        filters: Generic filter set; None means no optional filters

    Returns:
        Ordered list of itemFilters
    """
    filters = filters or FilterSet()
    item_filters = [LegacyFilter(name=LegacyFilterName.SOLD_ITEMS_ONLY, value="true")]

    if filters.min_price is not None:
        item_filters.append(
            LegacyFilter(name=LegacyFilterName.MIN_PRICE, value=_format_amount(filters.min_price))
        )
    if filters.max_price is not None:
        item_filters.append(
            LegacyFilter(name=LegacyFilterName.MAX_PRICE, value=_format_amount(filters.max_price))
        )

    values = [code for group in _condition_codes(filters.conditions) for code in group]
    if values:
        item_filters.append(LegacyFilter(name=LegacyFilterName.CONDITION, value=values))

    if filters.free_shipping:
        item_filters.append(LegacyFilter(name=LegacyFilterName.FREE_SHIPPING_ONLY, value="true"))

    if filters.local_pickup:
        item_filters.append(LegacyFilter(name=LegacyFilterName.LOCAL_PICKUP_ONLY, value="true"))

    if filters.min_feedback_score is not None:
        item_filters.append(
            LegacyFilter(name=LegacyFilterName.FEEDBACK_SCORE_MIN, value=str(filters.min_feedback_score))
        )

    return item_filters


def flatten_legacy_filters(item_filters: List[LegacyFilter]) -> Dict[str, str]:
    """
    Serialize itemFilters into indexed Finding API query parameters.

    A scalar value becomes ``itemFilter(i).value``; a list becomes
    ``itemFilter(i).value(j)`` for each entry.
    """
    params: Dict[str, str] = {}
    for index, item_filter in enumerate(item_filters):
        params[f"itemFilter({index}).name"] = item_filter.name.value
        if isinstance(item_filter.value, list):
            for value_index, value in enumerate(item_filter.value):
                params[f"itemFilter({index}).value({value_index})"] = value
        else:
            params[f"itemFilter({index}).value"] = item_filter.value
    return params
