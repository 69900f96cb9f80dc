"""
Schwab Authentication Manager

Handles the OAuth2 refresh-token grant against the Schwab API.
"""

from datetime import datetime, timedelta

import requests

from src.gex.errors import UpstreamError
from src.utils import get_logger

logger = get_logger(__name__)

TOKEN_URL = "https://api.schwabapi.com/v1/oauth/token"

# Refresh this many seconds before the provider's expiry
EXPIRY_BUFFER_SECONDS = 60


class SchwabAuth:
    """Manage Schwab API access tokens"""

    def __init__(self, app_key: str, secret: str, refresh_token: str,
                 token_url: str = TOKEN_URL, session: requests.Session = None):
        """
        Initialize auth manager

        Args:
            app_key: Schwab application key
            secret: Schwab application secret
            refresh_token: Refresh token for obtaining access tokens
            token_url: OAuth token endpoint
            session: Optional requests session
        """
        if not app_key or not secret or not refresh_token:
            logger.critical("Missing required authentication credentials!")
            raise ValueError("App key, secret and refresh token are required")

        self.app_key = app_key
        self.secret = secret
        self.refresh_token = refresh_token
        self.token_url = token_url
        self.session = session or requests.Session()

        self.access_token = None
        self.token_expiry = None

    def get_access_token(self) -> str:
        """
        Get valid access token, refreshing if necessary

        Returns:
            Valid access token
        """
        if self.access_token and self.token_expiry and datetime.now() < self.token_expiry:
            logger.debug("Using cached access token")
            return self.access_token

        logger.info("No valid cached token, obtaining new access token...")
        return self._refresh_access_token()

    def _refresh_access_token(self) -> str:
        payload = {
            'grant_type': 'refresh_token',
            'refresh_token': self.refresh_token
        }

        try:
            response = self.session.post(self.token_url, data=payload,
                                         auth=(self.app_key, self.secret), timeout=10)
        except requests.exceptions.RequestException as e:
            logger.error(f"Token refresh request failed: {e}")
            raise UpstreamError(f"Token refresh failed: {e}") from e

        if response.status_code != 200:
            logger.error(f"Token refresh failed with status {response.status_code}")
            logger.debug(f"Response: {response.text}")
            raise UpstreamError(f"Token refresh failed: {response.status_code} - {response.text}")

        data = response.json()
        if 'access_token' not in data:
            raise UpstreamError("Unexpected token response format, missing access_token")

        self.access_token = data['access_token']
        expires_in = int(data.get('expires_in', 1800))
        self.token_expiry = datetime.now() + timedelta(seconds=expires_in - EXPIRY_BUFFER_SECONDS)

        logger.info(f"✅ Access token refreshed successfully (expires in {expires_in}s)")
        return self.access_token

    def get_headers(self) -> dict:
        """Authorization headers for API requests"""
        return {'Authorization': f'Bearer {self.get_access_token()}'}
