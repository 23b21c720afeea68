"""
MarketLens service.

The service owns the verified credential configuration, the token cache and
the search client, and exposes the operations used by the HTTP layer:
verifying keys, searching active and sold listings, and reading the current
configuration. Several services can coexist; nothing is stored globally.
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional

from .api import EbaySearchClient
from .auth import CredentialVerifier, TokenCache
from .constants import (
    DEFAULT_MARKETPLACE_ID, ERROR_MESSAGES, REQUEST_TIMEOUT,
    Environment, SortOption, get_endpoints,
)
from .exceptions import ConfigurationError, InvalidRequestError
from .models import CredentialConfig, FilterSet, SearchResult
from .session import EbaySession

logger = logging.getLogger(__name__)


class MarketLensService:
    """Credential state plus the four downstream operations."""

    def __init__(
        self,
        credentials: Optional[CredentialConfig] = None,
        marketplace_id: str = DEFAULT_MARKETPLACE_ID,
        timeout: int = REQUEST_TIMEOUT,
        session: Optional[EbaySession] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the service.

        Args:
            credentials: Previously verified configuration, if any
            marketplace_id: Browse API marketplace
            timeout: Request timeout in seconds
            session: Session holder to share; one is created if omitted
            clock: Time source for token expiry
        """
        self.session = session or EbaySession(timeout=timeout)
        self.token_cache = TokenCache(self.session, clock=clock)
        self.verifier = CredentialVerifier(self.token_cache)
        self.search_client = EbaySearchClient(self.session, marketplace_id=marketplace_id)
        self._credentials: Optional[CredentialConfig] = None
        self._config_lock = asyncio.Lock()

        if credentials is not None:
            self.configure(credentials)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Release the HTTP session."""
        await self.session.close()

    def configure(self, credentials: CredentialConfig):
        """
        Install a configuration without verifying it.

        Used to restore a record persisted by the caller. The token cache is
        cleared so no token issued for other keys is reused.
        """
        get_endpoints(credentials.environment)
        self._credentials = credentials
        self.token_cache.invalidate()
        logger.info(f"Credentials configured for {credentials.environment.value}")

    def get_current_configuration(self) -> Optional[CredentialConfig]:
        """Return the active configuration, or None when unconfigured."""
        return self._credentials

    @property
    def is_configured(self) -> bool:
        return self._credentials is not None

    async def verify_and_detect_environment(self, app_id: str, cert_id: str) -> Environment:
        """
        Verify a key pair and make it the active configuration.

        The previous configuration is kept if verification fails.

        Args:
            app_id: eBay application ID
            cert_id: eBay certificate ID

        Returns:
            Environment that accepted the keys

        Raises:
            ConfigurationError: If either value is blank
            BothEnvironmentsRejectedError: If neither environment accepts the keys
            EbayApiError: If Production could not be probed
        """
        app_id = (app_id or "").strip()
        cert_id = (cert_id or "").strip()
        if not app_id or not cert_id:
            raise ConfigurationError(ERROR_MESSAGES["MISSING_CREDENTIALS"])

        environment = await self.verifier.verify(app_id, cert_id)
        credentials = CredentialConfig(app_id=app_id, cert_id=cert_id, environment=environment)

        async with self._config_lock:
            self.configure(credentials)

        return environment

    def _require_credentials(self, query: str) -> CredentialConfig:
        credentials = self._credentials
        if credentials is None:
            raise ConfigurationError(ERROR_MESSAGES["NOT_CONFIGURED"])
        if not query or not query.strip():
            raise InvalidRequestError(ERROR_MESSAGES["EMPTY_QUERY"])
        return credentials

    async def search_active(
        self,
        query: str,
        sort: Optional[SortOption] = None,
        filters: Optional[FilterSet] = None,
    ) -> SearchResult:
        """
        Search active listings.

        Raises:
            ConfigurationError: If no credentials are configured
            InvalidRequestError: If the query is blank
            AuthenticationError: If a token cannot be obtained
            SearchError: If the search call fails
        """
        credentials = self._require_credentials(query)
        generation = self.token_cache.generation
        token = await self.token_cache.get_valid_token(credentials, generation)
        return await self.search_client.search_active(credentials, token, query, sort, filters)

    async def search_sold(
        self,
        query: str,
        sort: Optional[SortOption] = None,
        filters: Optional[FilterSet] = None,
    ) -> SearchResult:
        """
        Search sold listings.

        Raises:
            ConfigurationError: If no credentials are configured
            InvalidRequestError: If the query is blank
            SearchError: If the search call fails
        """
        credentials = self._require_credentials(query)
        return await self.search_client.search_sold(credentials, query, sort, filters)
