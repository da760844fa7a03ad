"""
Interactive OAuth 1.0a authorization (3-legged, PIN-less) for the CLI.
"""

import asyncio
import webbrowser
from pathlib import Path
from typing import Callable, Dict, Optional

import requests
from requests_oauthlib import OAuth1Session

from .config import Settings
from .core.errors import AuthorizationError
from .platforms import TwitterClient
from .routes import CallbackServer
from .utils.env_file import upsert_env_vars
from .utils.logger import get_logger

logger = get_logger(__name__)


class AuthFlow:
    """Obtains access tokens for the configured consumer key and saves them to .env."""

    def __init__(self, settings: Settings, env_file: Path,
                 open_browser: Callable[[str], object] = webbrowser.open,
                 announce: Optional[Callable[[str], None]] = None):
        self.settings = settings
        self.env_file = Path(env_file)
        self.open_browser = open_browser
        self.announce = announce or logger.warning
        self.oauth_base_url = settings.X_OAUTH_BASE_URL.rstrip('/')

    @property
    def request_token_url(self) -> str:
        return f"{self.oauth_base_url}/request_token"

    @property
    def access_token_url(self) -> str:
        return f"{self.oauth_base_url}/access_token"

    def authorize_url(self, oauth_token: str) -> str:
        return f"{self.oauth_base_url}/authorize?oauth_token={oauth_token}"

    def fetch_request_token(self) -> Dict[str, str]:
        """Step 1: obtain a request token bound to the local callback URL."""
        oauth = OAuth1Session(
            callback_uri=self.settings.callback_url,
            **self.settings.consumer_credentials()
        )
        try:
            token = oauth.fetch_request_token(self.request_token_url)
        except (ValueError, requests.RequestException) as e:
            logger.error(f"Error getting request token: {str(e)}")
            raise AuthorizationError(f"Failed to get request token: {e}") from e
        if not token.get("oauth_token") or not token.get("oauth_token_secret"):
            raise AuthorizationError("Failed to parse request token response.")
        logger.debug(f"Obtained request token: {token['oauth_token'][:10]}...")
        return token

    def fetch_access_token(self, request_token: Dict[str, str], oauth_verifier: str) -> Dict[str, str]:
        """Step 3: exchange the verified request token for access tokens."""
        oauth = OAuth1Session(
            resource_owner_key=request_token["oauth_token"],
            resource_owner_secret=request_token["oauth_token_secret"],
            verifier=oauth_verifier,
            **self.settings.consumer_credentials()
        )
        try:
            token = oauth.fetch_access_token(self.access_token_url)
        except (ValueError, requests.RequestException) as e:
            logger.error(f"Error getting access token: {str(e)}")
            raise AuthorizationError(f"Failed to exchange tokens: {e}") from e
        if not token.get("oauth_token") or not token.get("oauth_token_secret"):
            raise AuthorizationError("Failed to parse access token response.")
        return token

    def save_tokens(self, access_token: Dict[str, str]) -> Path:
        return upsert_env_vars(self.env_file, {
            "X_ACCESS_TOKEN": access_token["oauth_token"],
            "X_ACCESS_TOKEN_SECRET": access_token["oauth_token_secret"],
        })

    async def login(self) -> Dict[str, object]:
        """
        Run the full flow: request token, browser authorization, callback, token exchange.

        Returns:
            Summary with the authorized screen name
        """
        self.settings.consumer_credentials()
        request_token = await asyncio.to_thread(self.fetch_request_token)

        async def on_callback(oauth_token: str, oauth_verifier: str) -> Dict[str, str]:
            if oauth_token != request_token["oauth_token"]:
                raise AuthorizationError("Callback oauth_token does not match the request token.")
            access_token = await asyncio.to_thread(self.fetch_access_token, request_token, oauth_verifier)
            self.save_tokens(access_token)
            return access_token

        server = CallbackServer(
            on_callback,
            host=self.settings.X_CALLBACK_HOST,
            port=self.settings.X_CALLBACK_PORT,
        )
        async with server:
            url = self.authorize_url(request_token["oauth_token"])
            self.announce(f"Opening browser to authorize...\n{url}")
            self.open_browser(url)
            access_token = await server.result()

        username = access_token.get("screen_name") or "unknown"
        logger.info(f"Authenticated as @{username}; tokens saved to {self.env_file}")
        return {
            "authenticated": True,
            "username": username,
            "message": f"Tokens saved to {self.env_file}",
        }


async def auth_status(client: TwitterClient) -> Dict[str, object]:
    """Verify the stored tokens by fetching the authenticated user."""
    user = await client.get_me(user_fields="public_metrics,description")
    return {
        "authenticated": True,
        "id": user.id,
        "username": user.username,
        "name": user.name,
        "public_metrics": user.public_metrics.model_dump() if user.public_metrics else None,
    }
