"""Tests for the OAuth2 token lifecycle."""

from datetime import timedelta

import pytest

from conftest import NOW
from googlecal_sync.auth.token_manager import NETWORK_ERROR, TokenManager
from googlecal_sync.models.token import ClientCredentials, Token
from googlecal_sync.stores.memory import InMemoryStore
from googlecal_sync.utils.exceptions import TokenExchangeError


@pytest.fixture
def manager(config_store, provider_factory, clock):
    return TokenManager(config_store, provider_factory, clock=clock)


def test_has_credentials_requires_id_and_secret(provider_factory):
    store = InMemoryStore({"auth": {"client_id": "id", "client_secret": ""}})
    manager = TokenManager(store, provider_factory)

    assert not manager.has_credentials()
    assert manager.prepare_client() is None

    store.set("auth.client_secret", "secret")
    assert manager.has_credentials()
    assert manager.prepare_client() is not None


def test_prepare_client_uses_given_credentials(manager, provider):
    client = manager.prepare_client(ClientCredentials(client_id="a", client_secret="b"))

    assert client is provider
    assert provider.credentials.client_id == "a"


def test_validate_without_credentials_is_unauthenticated(provider_factory, provider):
    manager = TokenManager(InMemoryStore(), provider_factory)

    session = manager.validate()

    assert not session.authenticated
    assert provider.calls == []


def test_valid_stored_token_authenticates_without_network(
    manager, config_store, provider, valid_token
):
    config_store.set("auth.access_token", valid_token.to_store())

    session = manager.validate()

    assert session.authenticated
    assert session.token == valid_token
    assert provider.loaded_tokens == [valid_token]
    assert provider.calls == []


def test_expired_token_is_refreshed_and_persisted(
    manager, config_store, provider, expired_token
):
    config_store.set("auth.access_token", expired_token.to_store())
    config_store.set("auth.verification_code", "code-on-file")

    session = manager.validate()

    assert session.authenticated
    assert provider.calls == [("exchange_refresh_token", "stored-refresh")]
    stored = Token.from_store(config_store.get("auth.access_token"))
    assert stored.access_token == "refreshed"
    # Refresh responses omit the refresh token, the old one is kept
    assert stored.refresh_token == "stored-refresh"
    assert config_store.saves == 1


def test_refresh_not_attempted_without_stored_token(manager, config_store, provider):
    config_store.set("auth.verification_code", "code-on-file")

    session = manager.validate()

    assert session.authenticated
    assert provider.calls_named("exchange_refresh_token") == []
    assert provider.calls == [("exchange_auth_code", "code-on-file")]


def test_no_token_and_no_code_stays_unauthenticated(manager, provider):
    session = manager.validate()

    assert not session.authenticated
    assert provider.calls == []


def test_error_token_is_never_loaded(manager, config_store, provider):
    config_store.set(
        "auth.access_token",
        {
            "access_token": "looks-fine",
            "refresh_token": "r",
            "expiry": (NOW + timedelta(hours=1)).isoformat(),
            "error": NETWORK_ERROR,
        },
    )

    session = manager.validate()

    assert not session.authenticated
    assert provider.loaded_tokens == []
    assert provider.calls_named("exchange_refresh_token") == []


def test_refresh_failure_is_recorded_not_raised(
    manager, config_store, provider, expired_token
):
    config_store.set("auth.access_token", expired_token.to_store())
    provider.refresh_result = TokenExchangeError("connection reset")

    session = manager.validate()

    assert not session.authenticated
    assert session.token.error == NETWORK_ERROR
    # The failed attempt does not overwrite the stored token
    assert Token.from_store(config_store.get("auth.access_token")) == expired_token
    assert config_store.saves == 0


def test_unexpected_exchange_exception_is_absorbed(manager, config_store, provider):
    config_store.set("auth.verification_code", "code-on-file")
    provider.code_result = TimeoutError("timed out")

    session = manager.validate()

    assert not session.authenticated
    assert session.token.error == NETWORK_ERROR


def test_provider_error_token_is_not_authenticated(
    manager, config_store, provider, expired_token
):
    config_store.set("auth.access_token", expired_token.to_store())
    provider.refresh_result = Token(error="invalid_grant")

    session = manager.validate()

    assert not session.authenticated
    assert session.token.error == "invalid_grant"
    assert config_store.saves == 0


def test_expired_token_without_refresh_token_uses_code(manager, config_store, provider):
    config_store.set(
        "auth.access_token",
        Token(access_token="old", expiry=NOW - timedelta(hours=1)).to_store(),
    )
    config_store.set("auth.verification_code", "code-on-file")

    session = manager.validate()

    assert session.authenticated
    assert provider.calls == [("exchange_auth_code", "code-on-file")]


def test_token_within_skew_counts_as_expired(manager, config_store, provider):
    config_store.set(
        "auth.access_token",
        Token(access_token="a", refresh_token="r", expiry=NOW + timedelta(seconds=10)).to_store(),
    )

    manager.validate()

    assert provider.calls == [("exchange_refresh_token", "r")]


def test_auth_url_and_exchange_without_client(provider_factory):
    manager = TokenManager(InMemoryStore(), provider_factory)

    assert manager.auth_url() == ""
    assert manager.exchange_code("abc") is None


def test_exchange_code_propagates_errors(manager, provider):
    provider.code_result = TokenExchangeError("invalid_grant")

    with pytest.raises(TokenExchangeError):
        manager.exchange_code("bad-code")


def test_client_rebuilt_when_credentials_change(config_store, clock):
    built = []

    def factory(credentials):
        built.append(credentials)
        return object()

    manager = TokenManager(config_store, factory, clock=clock)
    first = manager.client
    assert manager.client is first

    config_store.set("auth.client_secret", "rotated")
    assert manager.client is not first
    assert [c.client_secret for c in built] == ["client-secret", "rotated"]
