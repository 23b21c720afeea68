"""
Shared aiohttp session for the eBay clients.
"""

import logging
from typing import Optional

import aiohttp

from .constants import REQUEST_TIMEOUT

logger = logging.getLogger(__name__)


class EbaySession:
    """Lazily created aiohttp session shared by the token cache and search client."""

    def __init__(self, timeout: int = REQUEST_TIMEOUT, session: Optional[aiohttp.ClientSession] = None):
        """
        Initialize the session holder.

        Args:
            timeout: Total request timeout in seconds
            session: Existing session to use instead of creating one
        """
        self.timeout = timeout
        self._session = session

    async def get(self) -> aiohttp.ClientSession:
        """Return the open session, creating it if needed."""
        if self._session is None or self._session.closed:
            logger.debug("Opening aiohttp session")
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        return self._session

    async def close(self):
        """Close the session if open."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self):
        await self.get()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
