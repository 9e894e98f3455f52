from typing import Awaitable, Callable, Dict, Optional
from urllib.parse import urlencode
from fastapi import Depends, Request
from fastapi.responses import RedirectResponse, Response
from ..config import XeroAppConfig, load_xero_config
from ..core import session as session_store
from ..core.oauth1 import XeroOAuth1Client
from ..exceptions import OAuthFlowError, XeroApiError
from ..platforms.xero import AccountingAPIClient
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Problems that mean the stored access token is no longer usable
REAUTHORIZE_PROBLEMS = ("token_rejected", "token_expired")

ClientFactory = Callable[..., AccountingAPIClient]
Operation = Callable[[AccountingAPIClient], Awaitable[Response]]
FailureHandler = Callable[[Exception], Response]


def get_xero_config() -> XeroAppConfig:
    """Dependency returning the Xero application config."""
    return load_xero_config()


def get_client_factory() -> ClientFactory:
    """Dependency returning the callable that builds accounting clients."""
    return AccountingAPIClient


def error_redirect(message: str) -> RedirectResponse:
    return RedirectResponse(url=f"/error?{urlencode({'error': message})}", status_code=302)


class AuthorizedSession:
    """Runs accounting operations for the current browser session.

    Without an access token the user is sent through the Xero authorisation
    redirect and brought back to ``return_to`` afterwards.
    """

    def __init__(self, request: Request, config: XeroAppConfig, client_factory: ClientFactory):
        self.request = request
        self.config = config
        self.client_factory = client_factory
        self._oauth1_client = None

    @property
    def session(self):
        return self.request.session

    @property
    def oauth1_client(self) -> XeroOAuth1Client:
        """Handshake client, built once per request."""
        if self._oauth1_client is None:
            self._oauth1_client = self.client_factory(self.config).oauth1_client
        return self._oauth1_client

    def client(self, access_token: Optional[Dict] = None) -> AccountingAPIClient:
        return self.client_factory(self.config, access_token, oauth1_client=self.oauth1_client)

    async def authorize_redirect(self, return_to: str) -> RedirectResponse:
        oauth1_client = self.oauth1_client
        request_token = await oauth1_client.get_request_token()
        authorise_url = oauth1_client.build_authorise_url(request_token)

        session_store.save_request_token(self.session, request_token)
        session_store.set_return_to(self.session, return_to)

        logger.info(f"Redirecting to Xero for authorisation, returning to {return_to}")
        return RedirectResponse(url=authorise_url, status_code=302)

    def _access_token(self) -> Optional[Dict]:
        if self.config.is_private:
            return self.oauth1_client.private_access_token()
        return session_store.get_access_token(self.session)

    async def run(self, return_to: str, operation: Operation,
                  on_failure: Optional[FailureHandler] = None) -> Response:
        """Run ``operation`` with an authorised client, or start authorisation."""
        access_token = self._access_token()
        if not access_token:
            return await self.authorize_redirect(return_to)

        try:
            return await operation(self.client(access_token))
        except XeroApiError as err:
            if err.oauth_problem == "token_expired" and access_token.get("oauth_session_handle"):
                refreshed = await self._refresh(access_token)
                if refreshed:
                    try:
                        return await operation(self.client(refreshed))
                    except XeroApiError as retry_err:
                        return await self.handle_err(retry_err, return_to, on_failure)
            return await self.handle_err(err, return_to, on_failure)

    async def _refresh(self, access_token: Dict) -> Optional[Dict]:
        try:
            refreshed = await self.oauth1_client.refresh_access_token(access_token)
        except OAuthFlowError as e:
            logger.warning(f"Could not refresh access token: {str(e)}")
            return None
        session_store.save_access_token(self.session, refreshed)
        logger.info("Access token refreshed")
        return refreshed

    async def handle_err(self, err: Exception, return_to: str,
                         on_failure: Optional[FailureHandler] = None) -> Response:
        """Re-authorise on a rejected token, otherwise report the error."""
        logger.error(f"Accounting API error for {return_to}: {err!r}")
        if isinstance(err, XeroApiError):
            logger.error(f"Error data: {err.data}")
            if err.oauth_problem in REAUTHORIZE_PROBLEMS and not self.config.is_private:
                session_store.clear_access_token(self.session)
                return await self.authorize_redirect(return_to)

        if on_failure is not None:
            return on_failure(err)
        return error_redirect(str(err))


def get_authorized_session(
    request: Request,
    config: XeroAppConfig = Depends(get_xero_config),
    client_factory: ClientFactory = Depends(get_client_factory),
) -> AuthorizedSession:
    return AuthorizedSession(request, config, client_factory)
