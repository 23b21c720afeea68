"""
OAuth token handling and credential verification.

This module requests application tokens with the client-credentials grant,
caches the current token until shortly before it expires, and works out
which eBay environment a key pair belongs to.
"""

import asyncio
import base64
import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Optional, Union
from urllib.parse import urlencode

import aiohttp

from .constants import (
    ERROR_MESSAGES, INVALID_CLIENT_ERROR, TOKEN_EXPIRY_MARGIN_SECONDS,
    Environment, get_endpoints,
)
from .exceptions import (
    AuthenticationError, BothEnvironmentsRejectedError, EbayApiError,
    InvalidClientError, TransportError,
)
from .models import CredentialConfig, OAuthToken
from .session import EbaySession

# Configure logger
logger = logging.getLogger(__name__)


def _basic_auth_header(app_id: str, cert_id: str) -> str:
    raw = f"{app_id}:{cert_id}".encode("utf-8")
    return "Basic " + base64.b64encode(raw).decode("ascii")


def _rejection_error(status: int, payload: Any) -> AuthenticationError:
    """
    Map a rejected token request to an exception.

    The ``error`` field is compared first; a substring match on the
    description is only used when eBay leaves that field out.
    """
    if not isinstance(payload, dict):
        return AuthenticationError(
            ERROR_MESSAGES["AUTH_ERROR"], str(status), {"status": status}
        )

    error_code = payload.get("error")
    description = payload.get("error_description") or ""

    if error_code == INVALID_CLIENT_ERROR or (
        not error_code and INVALID_CLIENT_ERROR in description
    ):
        return InvalidClientError(
            ERROR_MESSAGES["INVALID_CLIENT"], INVALID_CLIENT_ERROR, payload
        )

    return AuthenticationError(
        description or error_code or ERROR_MESSAGES["AUTH_ERROR"],
        error_code or str(status),
        payload,
    )


class TokenCache:
    """Holds at most one application token and refreshes it when it expires."""

    def __init__(
        self,
        session: EbaySession,
        clock: Optional[Callable[[], datetime]] = None,
        expiry_margin: int = TOKEN_EXPIRY_MARGIN_SECONDS,
    ):
        """
        Initialize the token cache.

        Args:
            session: Shared HTTP session holder
            clock: Returns the current time; defaults to datetime.now
            expiry_margin: Seconds before expiry at which a token stops being used
        """
        self.session = session
        self.clock = clock or datetime.now
        self.expiry_margin = timedelta(seconds=expiry_margin)
        self.oauth_token: Optional[OAuthToken] = None
        self._generation = 0
        self._lock = asyncio.Lock()

    async def fetch_token(
        self, app_id: str, cert_id: str, environment: Union[Environment, str]
    ) -> OAuthToken:
        """
        Request a fresh token with the client-credentials grant.

        Nothing is cached; the verifier uses this to probe an environment.

        Args:
            app_id: eBay application ID
            cert_id: eBay certificate ID
            environment: Environment to authenticate against

        Returns:
            OAuth token

        Raises:
            ConfigurationError: If the environment is unknown
            InvalidClientError: If eBay reports invalid_client
            AuthenticationError: For any other rejection or a malformed response
            TransportError: If eBay cannot be reached
        """
        endpoints = get_endpoints(environment)
        environment = Environment(environment)

        headers = {
            "Authorization": _basic_auth_header(app_id, cert_id),
            "Content-Type": "application/x-www-form-urlencoded",
            "Accept": "application/json",
        }
        data = {
            "grant_type": "client_credentials",
            "scope": endpoints.scope,
        }

        logger.info(f"Requesting OAuth token ({environment.value})")
        session = await self.session.get()

        try:
            async with session.post(
                endpoints.auth_url, headers=headers, data=urlencode(data)
            ) as response:
                status = response.status
                try:
                    payload = await response.json(content_type=None)
                except (aiohttp.ContentTypeError, ValueError):
                    payload = None
        except asyncio.TimeoutError as e:
            logger.error(f"Timeout during authentication ({environment.value}): {e}")
            raise TransportError(ERROR_MESSAGES["TIMEOUT_ERROR"], "timeout", {"error": str(e)})
        except aiohttp.ClientError as e:
            logger.error(f"Connection error during authentication ({environment.value}): {e}")
            raise TransportError(ERROR_MESSAGES["CONNECTION_ERROR"], None, {"error": str(e)})

        if status >= 400:
            error = _rejection_error(status, payload)
            logger.warning(f"Token request rejected ({environment.value}, HTTP {status}): {error}")
            raise error

        if not isinstance(payload, dict) or not payload.get("access_token"):
            logger.error(f"Malformed token response ({environment.value})")
            raise AuthenticationError(ERROR_MESSAGES["TOKEN_PARSE_ERROR"], str(status))

        try:
            expires_in = int(payload["expires_in"])
        except (KeyError, TypeError, ValueError):
            raise AuthenticationError(ERROR_MESSAGES["TOKEN_PARSE_ERROR"], str(status), payload)

        return OAuthToken(
            access_token=payload["access_token"],
            token_type=payload.get("token_type") or "Bearer",
            expires_in=expires_in,
            expires_at=self.clock() + timedelta(seconds=expires_in),
            app_id=app_id,
            cert_id=cert_id,
            environment=environment,
        )

    @property
    def generation(self) -> int:
        """Bumped by every invalidate(); callers capture it with their credentials."""
        return self._generation

    def is_token_valid(self, credentials: Optional[CredentialConfig] = None) -> bool:
        """
        Check if the cached token can still be used.

        Args:
            credentials: When given, the token must also have been issued
                for this exact key pair and environment

        Returns:
            True if token is valid, False otherwise
        """
        token = self.oauth_token
        if token is None:
            return False

        if credentials is not None and not token.issued_for(credentials):
            return False

        return self.clock() < token.expires_at - self.expiry_margin

    async def get_valid_token(
        self, credentials: CredentialConfig, generation: Optional[int] = None
    ) -> str:
        """
        Return a usable access token, fetching a new one if needed.

        A fetched token is only cached if no invalidate() happened since
        ``generation``. A token fetched for replaced credentials is still
        returned to the caller that asked for it, but never stored.

        Args:
            credentials: Credential configuration the caller is using
            generation: Value of ``generation`` read together with
                ``credentials``; defaults to the value on entry

        Returns:
            Access token string

        Raises:
            AuthenticationError: If eBay rejects the configured keys
            TransportError: If eBay cannot be reached
        """
        if generation is None:
            generation = self._generation

        async with self._lock:
            if self.is_token_valid(credentials):
                logger.debug("Using cached OAuth token")
                return self.oauth_token.access_token

            try:
                token = await self.fetch_token(
                    credentials.app_id, credentials.cert_id, credentials.environment
                )
            except AuthenticationError as e:
                env = credentials.environment.value
                logger.error(f"Auth failed ({env}): {e}")
                raise AuthenticationError(
                    f"Failed to authenticate with eBay ({env}). Check your keys.",
                    e.error_code,
                    e.details,
                ) from e

            if generation == self._generation:
                self.oauth_token = token
                logger.info("Successfully obtained OAuth token")
            else:
                logger.info("Credentials replaced during token fetch; not caching token")
            return token.access_token

    def invalidate(self):
        """Drop the cached token."""
        self.oauth_token = None
        self._generation += 1


class CredentialVerifier:
    """Works out which environment accepts a key pair."""

    def __init__(self, token_cache: TokenCache):
        self.token_cache = token_cache

    async def verify(self, app_id: str, cert_id: str) -> Environment:
        """
        Probe Production, falling back to Sandbox on an auth-shaped failure.

        Args:
            app_id: eBay application ID
            cert_id: eBay certificate ID

        Returns:
            The environment that issued a token

        Raises:
            BothEnvironmentsRejectedError: If neither environment accepts the keys
            EbayApiError: If the Production probe fails for a non-auth reason
        """
        try:
            await self.token_cache.fetch_token(app_id, cert_id, Environment.PRODUCTION)
            logger.info("Keys verified against Production")
            return Environment.PRODUCTION
        except AuthenticationError as e:
            logger.info(f"Production rejected keys ({e.error_code}); trying Sandbox")

        try:
            await self.token_cache.fetch_token(app_id, cert_id, Environment.SANDBOX)
        except EbayApiError as e:
            logger.warning(f"Sandbox rejected keys: {e}")
            raise BothEnvironmentsRejectedError(
                ERROR_MESSAGES["BOTH_ENVIRONMENTS_REJECTED"], e.error_code, e.details
            ) from e

        logger.info("Keys verified against Sandbox")
        return Environment.SANDBOX
