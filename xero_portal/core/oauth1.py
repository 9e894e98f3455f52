from abc import ABC, abstractmethod
from typing import Dict, Optional
from urllib.parse import urlencode
from oauthlib.common import urldecode
from oauthlib.oauth1 import SIGNATURE_HMAC, SIGNATURE_RSA
from requests_oauthlib import OAuth1Session
from requests_oauthlib.oauth1_session import TokenRequestDenied, TokenMissing
from starlette.concurrency import run_in_threadpool
import requests
from ..config import XeroAppConfig
from ..exceptions import OAuthFlowError
from ..utils.logger import get_logger

logger = get_logger(__name__)

REQUEST_TOKEN_URL = "https://api.xero.com/oauth/RequestToken"
AUTHORIZE_URL = "https://api.xero.com/oauth/Authorize"
ACCESS_TOKEN_URL = "https://api.xero.com/oauth/AccessToken"


class OAuth1Base(ABC):
    """Base class for OAuth 1.0a three-legged flows."""

    def __init__(self, consumer_key: str, consumer_secret: str, callback_url: Optional[str] = None):
        self.consumer_key = consumer_key
        self._consumer_secret = consumer_secret
        self.callback_url = callback_url

    @abstractmethod
    async def get_request_token(self) -> Dict:
        """Fetch a temporary request token."""
        pass

    @abstractmethod
    def build_authorise_url(self, request_token: Dict) -> str:
        """Build the URL the user is sent to for authorisation."""
        pass

    @abstractmethod
    async def swap_request_token_for_access_token(self, request_token: Dict, oauth_verifier: str) -> Dict:
        """Exchange an authorised request token for an access token."""
        pass

    @abstractmethod
    async def refresh_access_token(self, access_token: Dict) -> Dict:
        """Renew an expired access token."""
        pass


class XeroOAuth1Client(OAuth1Base):
    """
    Xero OAuth 1.0a handshake.

    Public apps sign with HMAC-SHA1. Partner and private apps sign with
    RSA-SHA1; private apps skip the handshake and use the consumer key as
    their access token.
    """

    def __init__(self, config: XeroAppConfig):
        super().__init__(config.consumer_key, config.consumer_secret, config.callback_url)
        self.config = config
        self.signature_method = SIGNATURE_RSA if config.uses_rsa else SIGNATURE_HMAC
        self.rsa_key = config.read_private_key() if config.uses_rsa else None

    def _session(self, resource_owner_key: Optional[str] = None,
                 resource_owner_secret: Optional[str] = None,
                 verifier: Optional[str] = None,
                 with_callback: bool = False) -> OAuth1Session:
        return OAuth1Session(
            self.consumer_key,
            client_secret=None if self.config.uses_rsa else self._consumer_secret,
            resource_owner_key=resource_owner_key,
            resource_owner_secret=resource_owner_secret,
            callback_uri=self.callback_url if with_callback else None,
            verifier=verifier,
            signature_method=self.signature_method,
            rsa_key=self.rsa_key,
        )

    async def get_request_token(self) -> Dict:
        """Fetch a request token bound to the configured callback URL."""
        if self.config.is_private:
            raise OAuthFlowError("Private applications do not use request tokens")

        session = self._session(with_callback=True)
        try:
            token = await run_in_threadpool(session.fetch_request_token, REQUEST_TOKEN_URL)
        except (TokenRequestDenied, TokenMissing, ValueError, requests.RequestException) as e:
            logger.error(f"Error fetching request token: {str(e)}")
            raise OAuthFlowError(f"Failed to get request token: {str(e)}") from e

        logger.debug("Request token obtained")
        return {
            'oauth_token': token['oauth_token'],
            'oauth_token_secret': token['oauth_token_secret'],
        }

    def build_authorise_url(self, request_token: Dict) -> str:
        return f"{AUTHORIZE_URL}?{urlencode({'oauth_token': request_token['oauth_token']})}"

    async def swap_request_token_for_access_token(self, request_token: Dict, oauth_verifier: str) -> Dict:
        """Exchange the saved request token and verifier for an access token."""
        if not request_token or not oauth_verifier:
            raise OAuthFlowError("Request token and oauth_verifier are required")

        session = self._session(
            resource_owner_key=request_token['oauth_token'],
            resource_owner_secret=request_token['oauth_token_secret'],
            verifier=oauth_verifier,
        )
        try:
            token = await run_in_threadpool(session.fetch_access_token, ACCESS_TOKEN_URL)
        except (TokenRequestDenied, TokenMissing, ValueError, requests.RequestException) as e:
            logger.error(f"Error exchanging request token: {str(e)}")
            raise OAuthFlowError(f"Failed to get access token: {str(e)}") from e

        logger.debug(f"Access token obtained, keys: {list(token.keys())}")
        return self._access_token_from_response(token)

    async def refresh_access_token(self, access_token: Dict) -> Dict:
        """Renew a partner application access token using its session handle."""
        if self.config.app_type != "partner":
            raise OAuthFlowError(f"{self.config.app_type} applications cannot refresh access tokens")

        session_handle = access_token.get('oauth_session_handle')
        if not session_handle:
            raise OAuthFlowError("Access token has no oauth_session_handle")

        session = self._session(
            resource_owner_key=access_token['oauth_token'],
            resource_owner_secret=access_token.get('oauth_token_secret'),
        )
        try:
            response = await run_in_threadpool(
                session.post, ACCESS_TOKEN_URL, data={'oauth_session_handle': session_handle}
            )
        except requests.RequestException as e:
            logger.error(f"Error refreshing access token: {str(e)}")
            raise OAuthFlowError(f"Failed to refresh access token: {str(e)}") from e

        if response.status_code != 200:
            logger.error(f"Token refresh failed with status {response.status_code}: {response.text}")
            raise OAuthFlowError(f"Failed to refresh access token: {response.text}")

        token = dict(urldecode(response.text))
        if 'oauth_token' not in token:
            raise OAuthFlowError("Refresh response did not contain an oauth_token")

        logger.debug("Access token refreshed")
        return self._access_token_from_response(token)

    def private_access_token(self) -> Dict:
        """Private applications act as themselves."""
        return {
            'oauth_token': self.consumer_key,
            'oauth_token_secret': self._consumer_secret,
        }

    @staticmethod
    def _access_token_from_response(token: Dict) -> Dict:
        access_token = {
            'oauth_token': token['oauth_token'],
            'oauth_token_secret': token.get('oauth_token_secret'),
        }
        for key in ('oauth_session_handle', 'oauth_expires_in', 'oauth_authorization_expires_in'):
            if token.get(key):
                access_token[key] = token[key]
        return access_token
