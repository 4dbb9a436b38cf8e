"""
Google Calendar API authentication using OAuth 2.0 with a persistent token cache.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import List, Optional, Sequence

import keyring
from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from keyring.errors import KeyringError
from rich.console import Console

from ..config import CALENDAR_SCOPE, AppConfig
from ..domain.exceptions import AuthenticationError
from .google_calendar_client import GoogleCalendarClient

logger = logging.getLogger(__name__)

console = Console()


KEYRING_SERVICE_NAME = "openslots"


class GoogleAuthenticator:
    """
    Handles OAuth 2.0 authentication against the Google Calendar API.

    Consent is given once through the browser; the resulting refresh token
    is stored and reused to mint access tokens afterwards:
    1. ``authorize`` opens the consent screen and stores the tokens
    2. ``get_access_token`` loads them and refreshes when expired
    3. ``clear_cache`` forgets them
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        scopes: Sequence[str] | None = None,
        cache_file: Path | None = None
    ):
        """
        Initialize the authenticator.

        Args:
            client_id: OAuth client ID from the Google Cloud console
            client_secret: OAuth client secret
            scopes: OAuth scopes to request
            cache_file: Optional path to token cache file
        """
        self.client_id = client_id
        self.client_secret = client_secret
        self.scopes: List[str] = list(scopes or [CALENDAR_SCOPE])

        self.cache_file = cache_file or Path.home() / ".openslots_token_cache.json"
        self._key_identifier = self.client_id or "default"
        self._keyring_supported = True
        self._cache_backend = "keyring"
        self.credentials: Optional[Credentials] = self._load_credentials()

    @classmethod
    def from_config(cls, config: AppConfig) -> "GoogleAuthenticator":
        return cls(
            client_id=config.google.client_id,
            client_secret=config.google.client_secret,
            scopes=config.google.scopes,
            cache_file=config.google.token_cache_file,
        )

    @property
    def cache_backend(self) -> str:
        """Return the active cache backend (keyring or file)."""
        return self._cache_backend

    def _client_config(self) -> dict:
        return {
            "installed": {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "auth_uri": "https://accounts.google.com/o/oauth2/auth",
                "token_uri": "https://oauth2.googleapis.com/token",
                "redirect_uris": ["http://localhost"],
            }
        }

    def _load_credentials(self) -> Optional[Credentials]:
        """Load stored credentials from keyring or disk if they exist."""
        serialized = self._load_cache_from_keyring()
        if serialized is None:
            serialized = self._load_cache_from_file()

        if not serialized:
            return None

        try:
            return Credentials.from_authorized_user_info(json.loads(serialized), self.scopes)
        except ValueError as exc:
            logger.warning("Could not deserialize token cache: %s", exc)
            return None

    def _load_cache_from_keyring(self) -> Optional[str]:
        if not self._keyring_supported:
            return None

        try:
            return keyring.get_password(KEYRING_SERVICE_NAME, self._key_identifier)
        except KeyringError as exc:  # pragma: no cover - environment dependent
            self._handle_keyring_failure(f"reading credentials failed: {exc}")
            return None

    def _load_cache_from_file(self) -> Optional[str]:
        if self.cache_file.exists():
            try:
                with open(self.cache_file, "r", encoding="utf-8") as file_handle:
                    return file_handle.read()
            except OSError as exc:
                logger.warning("Could not load token cache file %s: %s", self.cache_file, exc)
        return None

    def _save_credentials(self) -> None:
        """Save credentials to the configured backend."""
        if self.credentials is None:
            return

        serialized = self.credentials.to_json()

        if self._keyring_supported and self._save_cache_to_keyring(serialized):
            return

        self._save_cache_to_file(serialized)

    def _save_cache_to_keyring(self, serialized: str) -> bool:
        try:
            keyring.set_password(KEYRING_SERVICE_NAME, self._key_identifier, serialized)
            self._cache_backend = "keyring"
            return True
        except KeyringError as exc:  # pragma: no cover - environment dependent
            self._handle_keyring_failure(f"writing credentials failed: {exc}")
            return False

    def _save_cache_to_file(self, serialized: str) -> None:
        try:
            self.cache_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.cache_file, "w", encoding="utf-8") as file_handle:
                file_handle.write(serialized)
            self.cache_file.chmod(0o600)
        except OSError as exc:
            logger.warning("Could not save token cache to %s: %s", self.cache_file, exc)

    def _handle_keyring_failure(self, reason: str) -> None:
        if self._keyring_supported:
            logger.warning(
                "Secure credential storage unavailable (%s). Falling back to plaintext cache at %s.",
                reason,
                self.cache_file,
            )
        self._keyring_supported = False
        self._cache_backend = "file"

    def get_access_token(self, force_refresh: bool = False) -> str:
        """
        Get a valid access token, refreshing the stored one when needed.

        Args:
            force_refresh: Refresh even if the cached token is still valid

        Returns:
            Access token string

        Raises:
            AuthenticationError: If no token is stored or refreshing fails
        """
        if self.credentials is None:
            raise AuthenticationError(
                "No stored Google credentials. Run 'openslots auth' first."
            )

        if force_refresh or not self.credentials.valid:
            if not self.credentials.refresh_token:
                raise AuthenticationError(
                    "Stored Google credentials cannot be refreshed. Run 'openslots auth' again."
                )
            try:
                self.credentials.refresh(Request())
            except RefreshError as exc:
                raise AuthenticationError(f"Refreshing the access token failed: {exc}") from exc
            self._save_credentials()

        return self.credentials.token

    def authorize(self) -> str:
        """
        Run the browser consent flow and store the resulting tokens.

        Returns:
            Access token

        Raises:
            AuthenticationError: If the client is not configured or consent fails
        """
        if not self.client_id or not self.client_secret:
            raise AuthenticationError(
                "google.client_id and google.client_secret must be configured."
            )

        console.print("\n[bold cyan]🔐 Google Authentication Required[/bold cyan]")
        console.print("A browser window will open to grant calendar access.\n")

        flow = InstalledAppFlow.from_client_config(self._client_config(), scopes=self.scopes)
        try:
            self.credentials = flow.run_local_server(
                port=0,
                access_type="offline",
                prompt="consent",
            )
        except Exception as exc:  # pragma: no cover - depends on browser and network
            raise AuthenticationError(f"Authentication failed: {exc}") from exc

        console.print("[bold green]✓ Authentication successful![/bold green]\n")
        self._save_credentials()

        return self.credentials.token

    def clear_cache(self) -> None:
        """Clear the stored tokens (force re-authentication next time)."""
        if self.cache_file.exists():
            self.cache_file.unlink()
        try:
            keyring.delete_password(KEYRING_SERVICE_NAME, self._key_identifier)
        except KeyringError as exc:  # pragma: no cover - environment dependent
            logger.warning("Could not remove credentials from keyring: %s", exc)
        self.credentials = None


class CalendarSession:
    """
    Configuration and credentials shared by every request of one process.

    The authenticator keeps the credentials and refreshes them only when they
    have expired; the lock keeps concurrent callers from refreshing twice.
    """

    def __init__(self, config: AppConfig, authenticator: GoogleAuthenticator | None = None):
        self.config = config
        self.authenticator = authenticator or GoogleAuthenticator.from_config(config)
        self._lock = threading.Lock()

    def access_token(self) -> str:
        with self._lock:
            return self.authenticator.get_access_token()

    def calendar_client(self) -> GoogleCalendarClient:
        """Return a client for the configured calendar with a current token."""
        return GoogleCalendarClient(access_token=self.access_token())

    @property
    def calendar_id(self) -> str:
        return self.config.calendar_id
