"""Google OAuth token persistence and credential management.

The single OAuth token pair used for Gmail and Calendar lives in a JSON file
owned by a TokenStore. GoogleOAuthManager builds authorization URLs,
exchanges callback codes, and hands out credentials that are refreshed
transparently when expired. A revoked refresh token (invalid_grant) clears
the store so the user has to sign in again.
"""

import json
import logging
import threading
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2 import service_account
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow

from opsdash_server.errors import (
    AuthenticationRequired,
    ConfigurationError,
    UpstreamError,
)

logger = logging.getLogger(__name__)

TOKEN_URI = "https://oauth2.googleapis.com/token"
OAUTH_SCOPES = [
    "https://www.googleapis.com/auth/gmail.readonly",
    "https://www.googleapis.com/auth/gmail.send",
    "https://www.googleapis.com/auth/userinfo.email",
    "https://www.googleapis.com/auth/calendar",
]
CALENDAR_SCOPES = ["https://www.googleapis.com/auth/calendar"]


@dataclass
class StoredTokens:
    """The persisted OAuth token pair.

    Attributes:
        access_token: Short-lived bearer token.
        refresh_token: Long-lived token used to mint new access tokens.
        expiry: ISO 8601 UTC expiry of the access token, if known.
    """

    access_token: str
    refresh_token: str | None = None
    expiry: str | None = None

    @property
    def expiry_datetime(self) -> datetime | None:
        if not self.expiry:
            return None
        parsed = datetime.fromisoformat(self.expiry)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed


class TokenStore:
    """File-backed store for the OAuth token pair.

    All reads and writes go through one lock, so a refresh running in a
    worker thread and a callback exchange cannot interleave their writes.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._lock = threading.Lock()

    def load(self) -> StoredTokens | None:
        with self._lock:
            if not self.path.exists():
                return None
            try:
                data = json.loads(self.path.read_text(encoding="utf-8"))
                return StoredTokens(
                    access_token=data["access_token"],
                    refresh_token=data.get("refresh_token"),
                    expiry=data.get("expiry"),
                )
            except (OSError, ValueError, KeyError) as e:
                logger.error(f"Failed to load tokens from {self.path}: {e}")
                return None

    def save(self, tokens: StoredTokens) -> None:
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(asdict(tokens), indent=2), encoding="utf-8")
            logger.debug(f"Saved Google tokens to {self.path}")

    def clear(self) -> None:
        with self._lock:
            self.path.unlink(missing_ok=True)
            logger.info("Cleared stored Google tokens")

    def has_tokens(self) -> bool:
        return self.load() is not None


def tokens_from_credentials(
    credentials: Credentials, previous: StoredTokens | None = None
) -> StoredTokens:
    """Convert google-auth credentials into StoredTokens.

    Google omits the refresh token on refresh responses, so the previous one
    is carried over.
    """
    expiry = None
    if credentials.expiry is not None:
        # google-auth keeps expiry as naive UTC
        expiry = credentials.expiry.replace(tzinfo=timezone.utc).isoformat()
    refresh_token = credentials.refresh_token or (previous.refresh_token if previous else None)
    return StoredTokens(
        access_token=credentials.token,
        refresh_token=refresh_token,
        expiry=expiry,
    )


class GoogleOAuthManager:
    """OAuth flow and credential refresh for the dashboard's Google account."""

    def __init__(
        self,
        token_store: TokenStore,
        client_id: str | None,
        client_secret: str | None,
        redirect_uri: str,
    ) -> None:
        self.token_store = token_store
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri

    def _client_config(self) -> dict[str, dict[str, Any]]:
        if not self.client_id or not self.client_secret:
            raise ConfigurationError(
                "Google OAuth client ID and secret are not configured",
                collaborator="Google",
            )
        return {
            "web": {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "auth_uri": "https://accounts.google.com/o/oauth2/auth",
                "token_uri": TOKEN_URI,
                "redirect_uris": [self.redirect_uri],
            }
        }

    def _flow(self) -> Flow:
        return Flow.from_client_config(
            self._client_config(),
            scopes=OAUTH_SCOPES,
            redirect_uri=self.redirect_uri,
            autogenerate_code_verifier=False,
        )

    def authorization_url(self) -> str:
        url, _ = self._flow().authorization_url(access_type="offline", prompt="consent")
        return url

    def exchange_code(self, code: str) -> StoredTokens:
        """Exchange an authorization code from the callback and persist the tokens."""
        flow = self._flow()
        flow.fetch_token(code=code)
        tokens = tokens_from_credentials(flow.credentials)
        self.token_store.save(tokens)
        logger.info("Stored new Google OAuth tokens")
        return tokens

    def is_authenticated(self) -> bool:
        return self.token_store.has_tokens()

    def credentials(self) -> Credentials:
        """Return valid user credentials, refreshing them when expired.

        This call may block on the network; run it in a worker thread.

        Raises:
            AuthenticationRequired: If no tokens are stored or the refresh
                token was revoked (the store is cleared in that case).
        """
        tokens = self.token_store.load()
        if tokens is None:
            raise AuthenticationRequired()

        credentials = Credentials(
            token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            token_uri=TOKEN_URI,
            client_id=self.client_id,
            client_secret=self.client_secret,
            scopes=OAUTH_SCOPES,
        )
        expiry = tokens.expiry_datetime
        if expiry is not None:
            credentials.expiry = expiry.astimezone(timezone.utc).replace(tzinfo=None)

        if credentials.expired and credentials.refresh_token:
            try:
                credentials.refresh(Request())
            except RefreshError as e:
                logger.error(f"Failed to refresh Google token: {e}")
                if "invalid_grant" in str(e):
                    self.token_store.clear()
                    raise AuthenticationRequired(
                        "Session expired. Please sign in again."
                    ) from e
                raise UpstreamError(str(e), collaborator="Google") from e
            self.token_store.save(tokens_from_credentials(credentials, previous=tokens))
            logger.debug("Refreshed Google access token")
        return credentials

    def handle_refresh_error(self, error: RefreshError) -> AuthenticationRequired | None:
        """Clear tokens when an API call reports a revoked grant.

        Returns:
            The AuthenticationRequired error to raise, or None if the error
            is not an invalid_grant.
        """
        if "invalid_grant" in str(error):
            self.token_store.clear()
            return AuthenticationRequired("Session expired. Please sign in again.")
        return None


def service_account_credentials(
    client_email: str | None,
    private_key: str | None,
    subject: str | None = None,
    scopes: list[str] | None = None,
) -> service_account.Credentials:
    """Build service-account credentials, optionally impersonating a user.

    Raises:
        ConfigurationError: If the service-account email or key is missing.
    """
    if not client_email or not private_key:
        raise ConfigurationError(
            "Google Calendar credentials not configured in Settings",
            collaborator="Google Calendar",
        )
    credentials = service_account.Credentials.from_service_account_info(
        {
            "type": "service_account",
            "client_email": client_email,
            "private_key": private_key,
            "token_uri": TOKEN_URI,
        },
        scopes=scopes or CALENDAR_SCOPES,
    )
    if subject:
        credentials = credentials.with_subject(subject)
    return credentials
