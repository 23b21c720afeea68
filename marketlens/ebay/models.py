"""
Pydantic models for the eBay search client.

This module contains the credential record, the cached OAuth token, the
caller-facing filter vocabulary and the normalized item and search result
models shared by both search modes.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Set, Union

from pydantic import BaseModel, Field, field_serializer, field_validator, model_validator

from .constants import Environment, ItemCondition, LegacyFilterName, ListingStatus


class CredentialConfig(BaseModel):
    """Verified key pair and the environment that accepted it."""
    app_id: str = Field(..., min_length=1, description="eBay application ID (client id)")
    cert_id: str = Field(..., min_length=1, description="eBay certificate ID (client secret)")
    environment: Environment = Field(..., description="Environment the keys belong to")

    class Config:
        """Pydantic config for CredentialConfig model."""
        frozen = True
        str_strip_whitespace = True


class OAuthToken(BaseModel):
    """Model for an application OAuth token."""
    access_token: str = Field(..., description="OAuth access token")
    token_type: str = Field("Bearer", description="Token type (e.g., 'Bearer')")
    expires_in: int = Field(..., description="Token lifetime in seconds")
    expires_at: datetime = Field(..., description="Timestamp when token expires")
    app_id: str = Field(..., description="App ID the token was issued to")
    cert_id: str = Field(..., repr=False, exclude=True, description="Cert ID the token was issued to")
    environment: Environment = Field(..., description="Environment the token was issued by")

    class Config:
        """Pydantic config for OAuthToken model."""
        frozen = True

    def issued_for(self, credentials: CredentialConfig) -> bool:
        """True if the token was issued to exactly this key pair and environment."""
        return (
            self.app_id == credentials.app_id
            and self.cert_id == credentials.cert_id
            and self.environment == credentials.environment
        )


class FilterSet(BaseModel):
    """
    Generic search filters.

    The same filter set is translated into the Browse API filter expression
    and the Finding API itemFilter list. Accepts the camelCase keys sent by
    the web front end as well as the snake_case field names.
    """
    min_price: Optional[Decimal] = Field(None, ge=0, alias="minPrice", description="Minimum price")
    max_price: Optional[Decimal] = Field(None, ge=0, alias="maxPrice", description="Maximum price")
    conditions: Set[ItemCondition] = Field(default_factory=set, description="Accepted item conditions")
    free_shipping: bool = Field(False, alias="freeShipping", description="Only items with free shipping")
    local_pickup: bool = Field(False, alias="localPickup", description="Only items offering local pickup")
    min_feedback_score: Optional[int] = Field(
        None, ge=0, alias="minFeedbackScore", description="Minimum seller feedback score"
    )

    class Config:
        """Pydantic config for FilterSet model."""
        populate_by_name = True
        validate_assignment = True

    @field_validator("min_price", "max_price", "min_feedback_score", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        """Form inputs send empty strings for unset bounds."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("conditions", mode="before")
    @classmethod
    def coerce_conditions(cls, v):
        if v is None:
            return set()
        return v

    @model_validator(mode="after")
    def check_price_range(self):
        if (
            self.min_price is not None
            and self.max_price is not None
            and self.min_price > self.max_price
        ):
            raise ValueError("min_price cannot be greater than max_price")
        return self


class LegacyFilter(BaseModel):
    """A single Finding API itemFilter entry."""
    name: LegacyFilterName = Field(..., description="Filter name")
    value: Union[str, List[str]] = Field(..., description="Filter value or ordered list of values")


class Item(BaseModel):
    """
    Model for a normalized listing, active or sold.

    Serialized with the short keys the web front end reads (``id``,
    ``image``, ``url``, ``date``) and the price as a JSON number.
    """
    item_id: str = Field(..., min_length=1, alias="id", description="eBay item ID")
    title: str = Field("", description="Item title")
    price: Decimal = Field(..., ge=0, description="Listing or final sale price")
    currency: str = Field(..., description="Currency code (e.g., USD)")
    image_url: Optional[str] = Field(None, alias="image", description="URL to the gallery image")
    listing_url: Optional[str] = Field(None, alias="url", description="URL to view the item")
    timestamp: Optional[str] = Field(
        None,
        alias="date",
        description="Creation time for active items, end time for sold items",
    )
    condition: str = Field(..., description="Condition display name")
    status: ListingStatus = Field(..., description="ACTIVE or SOLD")

    class Config:
        """Pydantic config for Item model."""
        populate_by_name = True
        validate_assignment = True

    @field_serializer("price")
    def serialize_price(self, price: Decimal) -> float:
        return float(price)


class SearchResult(BaseModel):
    """Model for search results."""
    total: int = Field(0, ge=0, description="Total matches reported by eBay")
    items: List[Item] = Field(default_factory=list, description="Items on the first page")

    @classmethod
    def empty(cls) -> "SearchResult":
        """Result used when eBay reports nothing to return."""
        return cls(total=0, items=[])
