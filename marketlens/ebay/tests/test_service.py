"""
Tests for the MarketLens service.

This module covers credential replacement, its interaction with the token
cache, and the configuration checks done before any search.
"""

import asyncio
import base64
from unittest.mock import AsyncMock

import pytest

from conftest import (
    FINDING_API_RESPONSE, INVALID_CLIENT_RESPONSE, OAUTH_TOKEN_RESPONSE,
    TEST_APP_ID, TEST_CERT_ID, create_mock_response,
)
from marketlens.ebay import (
    AuthenticationError, BothEnvironmentsRejectedError, ConfigurationError,
    CredentialConfig, Environment, InvalidRequestError, ListingStatus,
    MarketLensService,
)


def _basic(app_id, cert_id):
    return "Basic " + base64.b64encode(f"{app_id}:{cert_id}".encode()).decode()


@pytest.fixture
def service(ebay_session, clock):
    return MarketLensService(session=ebay_session, clock=clock)


class TestConfiguration:

    def test_starts_unconfigured(self, service):
        assert service.get_current_configuration() is None
        assert service.is_configured is False

    def test_initial_credentials(self, ebay_session, production_credentials):
        service = MarketLensService(credentials=production_credentials, session=ebay_session)
        assert service.get_current_configuration() == production_credentials

    @pytest.mark.asyncio
    async def test_verify_sets_configuration(self, service):
        env = await service.verify_and_detect_environment(f"  {TEST_APP_ID} ", TEST_CERT_ID)

        assert env is Environment.PRODUCTION
        config = service.get_current_configuration()
        assert config == CredentialConfig(
            app_id=TEST_APP_ID, cert_id=TEST_CERT_ID, environment=Environment.PRODUCTION
        )

    @pytest.mark.asyncio
    async def test_verify_detects_sandbox(self, service, mock_session):
        mock_session.post.side_effect = [
            create_mock_response(status=401, content=INVALID_CLIENT_RESPONSE),
            create_mock_response(content=OAUTH_TOKEN_RESPONSE),
        ]

        assert await service.verify_and_detect_environment(TEST_APP_ID, TEST_CERT_ID) is Environment.SANDBOX
        assert service.get_current_configuration().environment is Environment.SANDBOX

    @pytest.mark.asyncio
    @pytest.mark.parametrize("app_id, cert_id", [("", "cert"), ("app", "   "), (None, "cert")])
    async def test_blank_keys_rejected(self, service, mock_session, app_id, cert_id):
        with pytest.raises(ConfigurationError):
            await service.verify_and_detect_environment(app_id, cert_id)
        mock_session.post.assert_not_called()

    @pytest.mark.asyncio
    async def test_rejected_keys_keep_previous_configuration(
        self, ebay_session, mock_session, production_credentials
    ):
        service = MarketLensService(credentials=production_credentials, session=ebay_session)
        mock_session.post.side_effect = [
            create_mock_response(status=401, content=INVALID_CLIENT_RESPONSE),
            create_mock_response(status=401, content=INVALID_CLIENT_RESPONSE),
        ]

        with pytest.raises(BothEnvironmentsRejectedError):
            await service.verify_and_detect_environment("bad-app", "bad-cert")
        assert service.get_current_configuration() == production_credentials

    @pytest.mark.asyncio
    async def test_replacing_credentials_clears_token(self, service, mock_session):
        await service.verify_and_detect_environment("old-app", "old-cert")
        await service.search_active("camera")
        assert service.token_cache.oauth_token is not None

        await service.verify_and_detect_environment("new-app", "new-cert")
        assert service.token_cache.oauth_token is None

        await service.search_active("camera")
        # verify old, token old, verify new, token new
        assert mock_session.post.call_count == 4
        last_auth = mock_session.post.call_args_list[-1][1]["headers"]["Authorization"]
        assert last_auth == _basic("new-app", "new-cert")
        assert service.token_cache.oauth_token.app_id == "new-app"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("new_app_id", ["new-app", TEST_APP_ID])
    async def test_swap_during_token_fetch(self, service, mock_session, production_credentials, new_app_id):
        service.configure(production_credentials)
        release = asyncio.Event()

        held_response = create_mock_response(content={**OAUTH_TOKEN_RESPONSE, "access_token": "old_token"})

        async def held_open(*args, **kwargs):
            await release.wait()
            return held_response

        held_response.__aenter__ = AsyncMock(side_effect=held_open)
        mock_session.post.side_effect = [
            held_response,
            create_mock_response(content={**OAUTH_TOKEN_RESPONSE, "access_token": "new_token"}),
        ]

        in_flight = asyncio.create_task(service.search_active("camera"))
        while not mock_session.post.called:
            await asyncio.sleep(0)

        # Same app with a rotated cert, or different keys entirely
        service.configure(CredentialConfig(
            app_id=new_app_id, cert_id="rotated-cert", environment=Environment.PRODUCTION
        ))
        release.set()
        await in_flight

        assert service.token_cache.oauth_token is None
        assert mock_session.get.call_args[1]["headers"]["Authorization"] == "Bearer old_token"

        await service.search_active("lens")

        assert mock_session.post.call_count == 2
        last_auth = mock_session.post.call_args_list[-1][1]["headers"]["Authorization"]
        assert last_auth == _basic(new_app_id, "rotated-cert")
        assert mock_session.get.call_args[1]["headers"]["Authorization"] == "Bearer new_token"
        assert service.token_cache.oauth_token.access_token == "new_token"

    @pytest.mark.asyncio
    async def test_swap_while_waiting_for_token_lock(self, service, mock_session, production_credentials):
        service.configure(production_credentials)
        release = asyncio.Event()

        held_response = create_mock_response(content={**OAUTH_TOKEN_RESPONSE, "access_token": "first_token"})

        async def held_open(*args, **kwargs):
            await release.wait()
            return held_response

        held_response.__aenter__ = AsyncMock(side_effect=held_open)
        mock_session.post.side_effect = [
            held_response,
            create_mock_response(content={**OAUTH_TOKEN_RESPONSE, "access_token": "queued_old_token"}),
            create_mock_response(content={**OAUTH_TOKEN_RESPONSE, "access_token": "rotated_token"}),
        ]

        first = asyncio.create_task(service.search_active("camera"))
        while not mock_session.post.called:
            await asyncio.sleep(0)
        # Snapshots the old config, then waits on the lock
        queued = asyncio.create_task(service.search_active("lens"))
        await asyncio.sleep(0)

        rotated = CredentialConfig(
            app_id=TEST_APP_ID, cert_id="rotated-cert", environment=Environment.PRODUCTION
        )
        service.configure(rotated)
        release.set()
        await asyncio.gather(first, queued)

        assert service.token_cache.oauth_token is None

        await service.search_active("tripod")
        assert mock_session.post.call_count == 3
        assert mock_session.get.call_args[1]["headers"]["Authorization"] == "Bearer rotated_token"
        assert service.token_cache.oauth_token.issued_for(rotated)

    def test_configure_clears_token(self, service, production_credentials, sandbox_credentials):
        service.configure(production_credentials)
        service.token_cache.oauth_token = object()
        service.configure(sandbox_credentials)
        assert service.token_cache.oauth_token is None
        assert service.get_current_configuration() == sandbox_credentials


class TestSearch:

    @pytest.mark.asyncio
    async def test_unconfigured_search_active(self, service, mock_session):
        with pytest.raises(ConfigurationError):
            await service.search_active("camera")
        mock_session.post.assert_not_called()
        mock_session.get.assert_not_called()

    @pytest.mark.asyncio
    async def test_unconfigured_search_sold(self, service, mock_session):
        with pytest.raises(ConfigurationError):
            await service.search_sold("camera")
        mock_session.get.assert_not_called()

    @pytest.mark.asyncio
    async def test_blank_query(self, service, production_credentials):
        service.configure(production_credentials)
        with pytest.raises(InvalidRequestError):
            await service.search_active("   ")

    @pytest.mark.asyncio
    async def test_search_active_reuses_token(self, service, mock_session, production_credentials):
        service.configure(production_credentials)

        first = await service.search_active("camera")
        second = await service.search_active("lens")

        assert mock_session.post.call_count == 1
        assert mock_session.get.call_count == 2
        assert all(item.status is ListingStatus.ACTIVE for item in first.items + second.items)
        assert mock_session.get.call_args[1]["headers"]["Authorization"] == "Bearer test_access_token"

    @pytest.mark.asyncio
    async def test_search_active_auth_failure(self, service, mock_session, production_credentials):
        service.configure(production_credentials)
        mock_session.post.return_value = create_mock_response(status=401, content=INVALID_CLIENT_RESPONSE)

        with pytest.raises(AuthenticationError):
            await service.search_active("camera")
        mock_session.get.assert_not_called()

    @pytest.mark.asyncio
    async def test_search_sold_uses_app_id(self, service, mock_session, sandbox_credentials):
        service.configure(sandbox_credentials)
        mock_session.get.return_value = create_mock_response(content=FINDING_API_RESPONSE)

        result = await service.search_sold("camera")

        mock_session.post.assert_not_called()
        call_args = mock_session.get.call_args
        assert call_args[0][0] == "https://svcs.sandbox.ebay.com/services/search/FindingService/v1"
        assert call_args[1]["params"]["SECURITY-APPNAME"] == "sandbox-app-id"
        assert all(item.status is ListingStatus.SOLD for item in result.items)

    @pytest.mark.asyncio
    async def test_close(self, service, mock_session):
        await service.close()
        mock_session.close.assert_awaited_once()
