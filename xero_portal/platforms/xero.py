from typing import Any, Dict, Optional, Tuple
from urllib.parse import quote, urlencode
from oauthlib.oauth1 import Client as OAuth1Signer
from yarl import URL
import aiohttp
import json
from ..config import XeroAppConfig
from ..core.oauth1 import XeroOAuth1Client
from ..exceptions import OAuthFlowError, XeroApiError
from ..utils.rate_limiter import get_rate_limiter
from ..utils.logger import get_logger

logger = get_logger(__name__)

API_BASE_URL = "https://api.xero.com/api.xro/2.0"


class AccountingEndpoint:
    """One Xero accounting resource, e.g. Contacts or Invoices."""

    def __init__(self, client: "AccountingAPIClient", resource: str, id_field: str):
        self.client = client
        self.resource = resource
        self.id_field = id_field

    async def get(self, args: Optional[Dict[str, Any]] = None) -> Dict:
        """
        Fetch records.

        Args:
            args: Optional filters. The resource ID key (e.g. ``InvoiceID``)
                selects a single record; everything else (``Statuses``,
                ``ContactIDs``, ``Where``, ``page``...) is sent as a query
                parameter. List values are joined with commas.

        Returns:
            Decoded JSON response, e.g. ``{"Invoices": [...]}``
        """
        params = dict(args or {})
        path = self.resource
        record_id = params.pop(self.id_field, None)
        if record_id:
            path = f"{path}/{quote(str(record_id), safe='')}"

        query = {}
        for key, value in params.items():
            if value is None or value == "" or value == []:
                continue
            if isinstance(value, (list, tuple)):
                value = ",".join(str(item) for item in value)
            query[key] = value

        return await self.client.request("GET", path, params=query)

    async def create(self, body: Dict) -> Dict:
        """Create a record. Xero uses PUT for creates."""
        return await self.client.request("PUT", self.resource, body=body)


class AccountingAPIClient:
    """
    Signed client for the Xero accounting API.

    Requests are signed with OAuth 1.0a using the session's access token
    and sent with aiohttp.
    """

    def __init__(self, config: XeroAppConfig, access_token: Optional[Dict] = None,
                 oauth1_client: Optional[XeroOAuth1Client] = None):
        self.config = config
        self.oauth1_client = oauth1_client or XeroOAuth1Client(config)
        self.access_token = access_token
        self.rate_limiter = get_rate_limiter(config.consumer_key)

        self.contacts = AccountingEndpoint(self, "Contacts", "ContactID")
        self.invoices = AccountingEndpoint(self, "Invoices", "InvoiceID")

    def _sign(self, method: str, url: str, body: Optional[str] = None) -> Dict[str, str]:
        if not self.access_token:
            raise OAuthFlowError("An access token is required for API calls")

        signer = OAuth1Signer(
            self.config.consumer_key,
            client_secret=None if self.config.uses_rsa else self.config.consumer_secret,
            resource_owner_key=self.access_token['oauth_token'],
            resource_owner_secret=self.access_token.get('oauth_token_secret'),
            signature_method=self.oauth1_client.signature_method,
            rsa_key=self.oauth1_client.rsa_key,
        )
        headers = {"Content-Type": "application/json"} if body is not None else {}
        _, signed_headers, _ = signer.sign(url, http_method=method, body=body, headers=headers)
        return dict(signed_headers)

    async def _send(self, method: str, url: str, headers: Dict[str, str],
                    body: Optional[str] = None) -> Tuple[int, str]:
        # The URL is already percent-encoded and signed, so stop yarl re-encoding it
        async with aiohttp.ClientSession() as session:
            async with session.request(method, URL(url, encoded=True), headers=headers, data=body) as response:
                return response.status, await response.text()

    async def request(self, method: str, path: str, params: Optional[Dict] = None,
                      body: Optional[Dict] = None) -> Dict:
        url = f"{API_BASE_URL}/{path}"
        if params:
            url = f"{url}?{urlencode(params, quote_via=quote)}"

        payload = json.dumps(body) if body is not None else None

        # The OAuth timestamp must be taken after the wait
        await self.rate_limiter.wait(path.split("/")[0])

        headers = self._sign(method, url, payload)
        headers["Accept"] = "application/json"
        headers["User-Agent"] = self.config.user_agent

        logger.debug(f"{method} {url}")
        try:
            status, text = await self._send(method, url, headers, payload)
        except aiohttp.ClientError as e:
            logger.error(f"Error calling Xero {method} {path}: {str(e)}")
            raise XeroApiError(502, None, f"Could not reach Xero: {str(e)}") from e
        logger.debug(f"{method} {path} -> {status}")

        if not 200 <= status < 300:
            raise XeroApiError.from_response(status, text)

        if not text:
            return {}
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise XeroApiError(status, {"Message": text}, f"Unexpected response from Xero: {str(e)}") from e
