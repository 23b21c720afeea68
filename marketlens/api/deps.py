"""
Dependencies for API routes.

This module builds the MarketLens service from settings and hands the
application's single service instance to the routes.
"""

import logging
from typing import Optional

from fastapi import Request
from pydantic import ValidationError

from marketlens.core.config import Settings
from marketlens.ebay import CredentialConfig, MarketLensService

# Configure logging
logger = logging.getLogger(__name__)


def credentials_from_settings(settings: Settings) -> Optional[CredentialConfig]:
    """
    Build the startup configuration from EBAY_* settings.

    Returns None when the keys are not set or the environment name is invalid.
    """
    if not settings.EBAY_APP_ID or not settings.EBAY_CERT_ID:
        logger.info("No eBay keys in settings. Waiting for setup.")
        return None

    try:
        credentials = CredentialConfig(
            app_id=settings.EBAY_APP_ID,
            cert_id=settings.EBAY_CERT_ID,
            environment=settings.EBAY_ENV,
        )
    except ValidationError as e:
        logger.error(f"Ignoring eBay keys from settings: {e}")
        return None

    logger.info(f"Loaded configuration for environment: {credentials.environment.value}")
    return credentials


def create_service(settings: Settings) -> MarketLensService:
    """Create the service used for the lifetime of the application."""
    return MarketLensService(
        credentials=credentials_from_settings(settings),
        marketplace_id=settings.EBAY_MARKETPLACE_ID,
        timeout=settings.EBAY_REQUEST_TIMEOUT,
    )


def get_service(request: Request) -> MarketLensService:
    """
    Get the application's MarketLens service.

    Returns:
        Service stored on the application state at startup
    """
    return request.app.state.service
