"""
eBay API endpoints.

This module provides the endpoints the web front end uses to check and set
the eBay key configuration and to search active or sold listings.
"""

import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, ValidationError

from marketlens.api.deps import get_service
from marketlens.ebay import (
    ConfigurationError, EbayApiError, FilterSet,
    InvalidRequestError, MarketLensService, SearchMode, SearchResult, SortOption,
)

# Configure logger
logger = logging.getLogger(__name__)

# Create API router
router = APIRouter(
    tags=["ebay"],
    responses={
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"description": "Internal server error"},
    },
)


class ConfigRequest(BaseModel):
    """Key pair submitted for verification."""
    app_id: str = Field("", alias="appId", description="eBay App ID")
    cert_id: str = Field("", alias="certId", description="eBay Cert ID")

    class Config:
        """Pydantic config for ConfigRequest model."""
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "appId": "MyApp-PRD-0123456789-abcdef01",
                "certId": "PRD-0123456789ab-cdef-0123-4567-89ab",
            }
        }


class ConfigStatus(BaseModel):
    """Whether keys are configured."""
    configured: bool = Field(..., description="True once keys are set")


class ConfigDetails(BaseModel):
    """Masked view of the active configuration."""
    configured: bool = Field(..., description="True once keys are set")
    app_id: Optional[str] = Field(None, alias="appId", description="Masked App ID")
    cert_id: Optional[str] = Field(None, alias="certId", description="Masked Cert ID")
    env: Optional[str] = Field(None, description="Detected environment")

    class Config:
        """Pydantic config for ConfigDetails model."""
        populate_by_name = True


class ConfigResult(BaseModel):
    """Outcome of a successful verification."""
    success: bool = Field(True, description="Verification succeeded")
    env: str = Field(..., description="Detected environment")


def mask_credential(credential: Optional[str]) -> str:
    """Keep the first and last four characters of a key."""
    if not credential or len(credential) < 8:
        return "****"
    return credential[:4] + "****" + credential[-4:]


def parse_filters(raw: Optional[str]) -> FilterSet:
    """
    Parse the ``filters`` query parameter.

    Malformed JSON falls back to no filters. Well-formed JSON that fails
    validation (for example min price above max price) is a client error.
    """
    if not raw:
        return FilterSet()

    try:
        data = json.loads(raw)
    except ValueError as e:
        logger.warning(f"Invalid filters JSON, using defaults: {e}")
        return FilterSet()

    if not isinstance(data, dict):
        logger.warning("Filters JSON is not an object, using defaults")
        return FilterSet()

    try:
        return FilterSet.model_validate(data)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid filters: {e.errors()[0].get('msg')}",
        )


def parse_sort(raw: Optional[str]) -> Optional[SortOption]:
    """Unknown sort values fall back to each API's default ordering."""
    try:
        return SortOption(raw) if raw else None
    except ValueError:
        return None


@router.get("/config", response_model=ConfigStatus, summary="Check whether eBay keys are configured")
async def get_config(service: MarketLensService = Depends(get_service)):
    return ConfigStatus(configured=service.is_configured)


@router.get(
    "/config/details",
    response_model=ConfigDetails,
    summary="Get masked configuration details",
)
async def get_config_details(service: MarketLensService = Depends(get_service)):
    """
    Get the active configuration with both keys masked.
    """
    config = service.get_current_configuration()
    if config is None:
        return ConfigDetails(configured=False)

    return ConfigDetails(
        configured=True,
        app_id=mask_credential(config.app_id),
        cert_id=mask_credential(config.cert_id),
        env=config.environment.value,
    )


@router.post(
    "/config",
    response_model=ConfigResult,
    summary="Verify eBay keys and detect their environment",
    responses={
        status.HTTP_400_BAD_REQUEST: {"description": "Missing App ID or Cert ID"},
        status.HTTP_401_UNAUTHORIZED: {"description": "Keys rejected"},
    },
)
async def set_config(body: ConfigRequest, service: MarketLensService = Depends(get_service)):
    """
    Verify a key pair against Production, then Sandbox, and make it active.

    The previous configuration stays active if verification fails.
    """
    if not body.app_id.strip() or not body.cert_id.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Both App ID and Cert ID are required",
        )

    try:
        env = await service.verify_and_detect_environment(body.app_id, body.cert_id)
    except ConfigurationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except EbayApiError as e:
        logger.error(f"Config verification failed: {e}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e) or "Verification failed")

    return ConfigResult(success=True, env=env.value)


@router.get(
    "/search",
    response_model=SearchResult,
    summary="Search active or sold eBay listings",
    responses={
        status.HTTP_400_BAD_REQUEST: {"description": "Missing query or invalid filters"},
        status.HTTP_503_SERVICE_UNAVAILABLE: {"description": "Keys not configured"},
    },
)
async def search(
    q: Optional[str] = Query(None, description="Search query string"),
    mode: Optional[str] = Query(SearchMode.ACTIVE.value, alias="type", description="'active' or 'sold'"),
    sort: Optional[str] = Query(None, description="price_asc, price_desc or date_desc"),
    filters: Optional[str] = Query(None, description="JSON encoded filter set"),
    service: MarketLensService = Depends(get_service),
):
    """
    Search eBay listings.

    ``type=sold`` searches completed listings through the Finding API; any
    other value searches active listings through the Browse API.
    """
    if not q or not q.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Query parameter "q" is required',
        )

    if not service.is_configured:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Server not configured. Please set API keys.",
        )

    filter_set = parse_filters(filters)
    sort_option = parse_sort(sort)

    try:
        if mode == SearchMode.SOLD.value:
            return await service.search_sold(q, sort_option, filter_set)
        return await service.search_active(q, sort_option, filter_set)
    except ConfigurationError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    except InvalidRequestError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except EbayApiError as e:
        logger.error(f"Search route error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to fetch data from eBay", "details": str(e)},
        )
