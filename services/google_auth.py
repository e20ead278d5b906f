# reminders/services/google_auth.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from google.auth.exceptions import GoogleAuthError, RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow

from core.clock import Clock, SystemClock, utc_of
from core.errors import CredentialError, NotConfigured
from core.log import get_logger
from core.settings import GOOGLE, GoogleSettings
from datetime_utils import ensure_utc
from models.connection import Connection
from services.connection_store import ConnectionStore
from services.google_classroom import ClassroomClient


@dataclass(frozen=True)
class IssuedCredential:
    """Token material handed back by Google's token endpoint."""

    access_token: str
    refresh_token: Optional[str]
    expiry: Optional[datetime]


def build_credentials(connection: Connection, settings: GoogleSettings = GOOGLE) -> Credentials:
    return Credentials(
        token=connection.access_token,
        refresh_token=connection.refresh_token or None,
        token_uri=settings.token_uri,
        client_id=settings.client_id or None,
        client_secret=settings.client_secret or None,
        scopes=list(settings.scopes),
        # google-auth compares against naive UTC
        expiry=ensure_utc(connection.token_expiry).replace(tzinfo=None),
    )


def google_refresh(connection: Connection) -> IssuedCredential:
    """Exchange the stored refresh token for a new access token."""

    creds = build_credentials(connection)
    try:
        creds.refresh(Request())
    except (RefreshError, GoogleAuthError) as exc:
        raise CredentialError(connection.user_id, f"Token refresh failed: {exc}") from exc
    return IssuedCredential(
        access_token=creds.token,
        refresh_token=creds.refresh_token,
        expiry=ensure_utc(creds.expiry),
    )


Refresher = Callable[[Connection], IssuedCredential]
ClientFactory = Callable[[Credentials], ClassroomClient]


class CredentialManager:
    """Hands out Classroom clients, refreshing the stored credential when it has expired.

    Every call re-reads the connection row; nothing is cached between ticks,
    so a refresh that was never persisted is simply redone next time.
    """

    def __init__(
        self,
        store: Optional[ConnectionStore] = None,
        *,
        clock: Optional[Clock] = None,
        refresher: Refresher = google_refresh,
        client_factory: ClientFactory = ClassroomClient.from_credentials,
        settings: GoogleSettings = GOOGLE,
    ) -> None:
        self.store = store or ConnectionStore()
        self.clock = clock or SystemClock()
        self.refresher = refresher
        self.client_factory = client_factory
        self.settings = settings
        self.logger = get_logger("auth")

    def get_valid_client(self, user_id: str) -> ClassroomClient:
        connection = self.store.get(user_id)
        if connection is None:
            raise NotConfigured(user_id, "Google not connected")
        if not connection.has_oauth:
            raise NotConfigured(user_id)

        now = utc_of(self.clock)
        if self.needs_refresh(connection, now):
            connection = self._refresh(connection, now)
        return self.client_factory(build_credentials(connection, self.settings))

    @staticmethod
    def needs_refresh(connection: Connection, now: datetime) -> bool:
        expiry = ensure_utc(connection.token_expiry)
        return expiry is None or expiry <= now

    def _refresh(self, connection: Connection, now: datetime) -> Connection:
        if not connection.refresh_token:
            raise CredentialError(connection.user_id, "Token expired and no refresh token is stored")

        self.logger.info("Refreshing Google token for user %s", connection.user_id)
        try:
            issued = self.refresher(connection)
        except CredentialError:
            raise
        except GoogleAuthError as exc:
            raise CredentialError(connection.user_id, f"Token refresh failed: {exc}") from exc
        if not issued.access_token:
            raise CredentialError(connection.user_id, "Token endpoint returned no access token")

        expiry = issued.expiry or now + timedelta(seconds=self.settings.default_token_lifetime_sec)
        return self.store.save_credentials(
            connection.user_id,
            access_token=issued.access_token,
            refresh_token=issued.refresh_token or connection.refresh_token,
            token_expiry=expiry,
        )

    # ----- account linking helpers -----
    def _flow(self) -> Flow:
        client_config = {
            "web": {
                "client_id": self.settings.client_id,
                "client_secret": self.settings.client_secret,
                "auth_uri": self.settings.auth_uri,
                "token_uri": self.settings.token_uri,
                "redirect_uris": [self.settings.redirect_uri],
            }
        }
        return Flow.from_client_config(
            client_config,
            scopes=list(self.settings.scopes),
            redirect_uri=self.settings.redirect_uri,
            # URL and code exchange run on separate flows, so no PKCE verifier
            autogenerate_code_verifier=False,
        )

    def authorization_url(self) -> str:
        url, _state = self._flow().authorization_url(
            access_type="offline",
            prompt="consent",
            include_granted_scopes="true",
        )
        return url

    def exchange_code(self, code: str) -> IssuedCredential:
        flow = self._flow()
        try:
            flow.fetch_token(code=code)
        except Exception as exc:
            raise CredentialError("-", f"Authorization code exchange failed: {exc}") from exc
        creds = flow.credentials
        return IssuedCredential(
            access_token=creds.token,
            refresh_token=creds.refresh_token,
            expiry=ensure_utc(creds.expiry),
        )


__all__ = ["CredentialManager", "IssuedCredential", "build_credentials", "google_refresh"]
