"""
Spotify authorization service.
Walks the user through the authorization code flow once and hands back the
refresh token the sync uses from then on.
"""

import logging
import secrets
import urllib.parse
import webbrowser
from typing import Callable, List, Optional

from config.settings import Settings
from likes_router.api.base_client import AuthenticationError
from likes_router.api.spotify_client import DEFAULT_SCOPES, SpotifyClient

logger = logging.getLogger(__name__)

def parse_callback(value: str, expected_state: str) -> str:
    """
    Extract the authorization code from a pasted redirect URL or bare code.

    Raises:
        AuthenticationError: Spotify returned an error or the state does not match
    """
    value = value.strip()
    if "?" not in value and "=" not in value:
        if not value:
            raise AuthenticationError("No authorization code provided", status=None)
        return value

    query = urllib.parse.urlparse(value).query if "?" in value else value
    params = urllib.parse.parse_qs(query)

    if "error" in params:
        raise AuthenticationError(f"Spotify error: {params['error'][0]}", status=None)

    code = params.get("code", [None])[0]
    if not code:
        raise AuthenticationError("Missing code param", status=None)

    returned_state = params.get("state", [None])[0]
    if returned_state is not None and returned_state != expected_state:
        raise AuthenticationError("State mismatch", status=None)

    return code

class SpotifyAuthService:
    """Service for obtaining a user refresh token."""

    def __init__(self, settings: Settings, prompt: Callable[[str], str] = input):
        """
        Initialize Spotify auth service.

        Args:
            settings: Application settings with client credentials
            prompt: Reads the pasted redirect URL; input() by default
        """
        self.settings = settings
        self.prompt = prompt
        self.client: Optional[SpotifyClient] = None

    async def __aenter__(self):
        self.settings.validate(require_refresh_token=False, require_targets=False)
        self.client = SpotifyClient(
            client_id=self.settings.SPOTIFY_CLIENT_ID,
            client_secret=self.settings.SPOTIFY_CLIENT_SECRET,
            redirect_uri=self.settings.SPOTIFY_REDIRECT_URI,
            base_url=self.settings.spotify.base_url,
            timeout=self.settings.spotify.timeout
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.client:
            await self.client.close()

    async def authorize(self, scopes: Optional[List[str]] = None, open_browser: bool = True) -> str:
        """
        Run the authorization code flow.

        Returns:
            The refresh token to store as SPOTIFY_REFRESH_TOKEN
        """
        state = secrets.token_hex(16)
        auth_url = self.client.get_authorization_url(scopes or DEFAULT_SCOPES, state)

        print("\nOpen this URL in your browser to authorize:\n")
        print(auth_url, "\n")
        if open_browser:
            try:
                webbrowser.open(auth_url)
            except webbrowser.Error as e:
                logger.warning(f"Could not open browser: {e}")

        pasted = self.prompt("Paste the URL you were redirected to (or just the code): ")
        code = parse_callback(pasted, state)

        token_data = await self.client.exchange_code(code)
        refresh_token = token_data.get("refresh_token")
        if not refresh_token:
            raise AuthenticationError("Spotify did not return a refresh token", status=None)

        user = await self.client.get_user_profile()
        logger.info(f"Authorized as {user.get('display_name') or user.get('id')}")
        return refresh_token
