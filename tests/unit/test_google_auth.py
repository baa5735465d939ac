"""Unit tests for Google token storage and OAuth credential handling."""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from google.auth.exceptions import RefreshError
from google.oauth2.credentials import Credentials

from opsdash_server.errors import (
    AuthenticationRequired,
    ConfigurationError,
    UpstreamError,
)
from opsdash_server.integrations.google_auth import (
    GoogleOAuthManager,
    StoredTokens,
    TokenStore,
    service_account_credentials,
    tokens_from_credentials,
)


@pytest.fixture
def token_store(tmp_path):
    return TokenStore(tmp_path / "tokens" / ".google_tokens.json")


@pytest.fixture
def oauth(token_store):
    return GoogleOAuthManager(
        token_store,
        client_id="client-id",
        client_secret="client-secret",
        redirect_uri="http://localhost:3000/api/v1/auth/google/callback",
    )


def expired_tokens() -> StoredTokens:
    past = datetime.now(timezone.utc) - timedelta(hours=1)
    return StoredTokens(access_token="old", refresh_token="refresh", expiry=past.isoformat())


class TestTokenStore:
    def test_save_creates_parent_and_loads(self, token_store):
        token_store.save(StoredTokens(access_token="a", refresh_token="r"))

        assert token_store.path.exists()
        assert token_store.load() == StoredTokens(access_token="a", refresh_token="r")
        assert token_store.has_tokens() is True

    def test_clear(self, token_store):
        token_store.save(StoredTokens(access_token="a"))
        token_store.clear()

        assert token_store.load() is None
        # Clearing twice is harmless
        token_store.clear()

    def test_corrupt_file_reads_as_missing(self, token_store):
        token_store.path.parent.mkdir(parents=True)
        token_store.path.write_text("{not json", encoding="utf-8")

        assert token_store.load() is None


def test_tokens_from_credentials_keeps_previous_refresh_token():
    credentials = Credentials(token="new-access")
    credentials.expiry = datetime(2026, 3, 10, 16, 0)

    tokens = tokens_from_credentials(
        credentials, previous=StoredTokens(access_token="old", refresh_token="keep-me")
    )

    assert tokens.access_token == "new-access"
    assert tokens.refresh_token == "keep-me"
    assert tokens.expiry == "2026-03-10T16:00:00+00:00"


class TestGoogleOAuthManager:
    def test_credentials_without_tokens(self, oauth):
        with pytest.raises(AuthenticationRequired):
            oauth.credentials()

    def test_valid_tokens_are_not_refreshed(self, oauth, token_store):
        future = datetime.now(timezone.utc) + timedelta(hours=1)
        token_store.save(
            StoredTokens(access_token="fresh", refresh_token="r", expiry=future.isoformat())
        )

        with patch.object(Credentials, "refresh") as refresh:
            credentials = oauth.credentials()

        assert credentials.token == "fresh"
        refresh.assert_not_called()

    def test_revoked_grant_clears_tokens(self, oauth, token_store):
        token_store.save(expired_tokens())

        with patch.object(
            Credentials,
            "refresh",
            side_effect=RefreshError("invalid_grant: Token has been expired or revoked."),
        ):
            with pytest.raises(AuthenticationRequired) as exc_info:
                oauth.credentials()

        assert "sign in again" in str(exc_info.value)
        assert token_store.load() is None

    def test_other_refresh_errors_keep_tokens(self, oauth, token_store):
        token_store.save(expired_tokens())

        with patch.object(Credentials, "refresh", side_effect=RefreshError("server_error")):
            with pytest.raises(UpstreamError):
                oauth.credentials()

        assert token_store.load() is not None

    def test_handle_refresh_error(self, oauth, token_store):
        token_store.save(StoredTokens(access_token="a"))

        assert oauth.handle_refresh_error(RefreshError("temporarily_unavailable")) is None
        assert token_store.has_tokens()

        error = oauth.handle_refresh_error(RefreshError("invalid_grant"))
        assert isinstance(error, AuthenticationRequired)
        assert not token_store.has_tokens()

    def test_authorization_url_requires_client(self, token_store):
        manager = GoogleOAuthManager(token_store, None, None, "http://x/callback")

        with pytest.raises(ConfigurationError):
            manager.authorization_url()

    def test_authorization_url_requests_offline_consent(self, oauth):
        url = oauth.authorization_url()

        assert url.startswith("https://accounts.google.com/o/oauth2/auth?")
        assert "access_type=offline" in url
        assert "prompt=consent" in url
        assert "client_id=client-id" in url


def test_service_account_requires_key():
    with pytest.raises(ConfigurationError) as exc_info:
        service_account_credentials("svc@project.iam.gserviceaccount.com", None)

    assert exc_info.value.collaborator == "Google Calendar"
