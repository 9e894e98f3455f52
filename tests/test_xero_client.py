import json
from unittest.mock import AsyncMock, patch

import aiohttp
import pytest

from xero_portal.exceptions import OAuthFlowError, XeroApiError
from xero_portal.platforms import AccountingAPIClient

from conftest import ACCESS_TOKEN

API = "https://api.xero.com/api.xro/2.0"


@pytest.fixture
def xero_client(public_config):
    client = AccountingAPIClient(public_config, dict(ACCESS_TOKEN))
    client.rate_limiter = AsyncMock()
    return client


def sent(send_mock):
    method, url, headers, body = send_mock.await_args.args
    return method, url, headers, body


@pytest.mark.asyncio
async def test_get_contacts(xero_client):
    with patch.object(xero_client, "_send", AsyncMock(return_value=(200, '{"Contacts": [{"Name": "Jem The Cat"}]}'))) as send:
        result = await xero_client.contacts.get()

    assert result == {"Contacts": [{"Name": "Jem The Cat"}]}
    method, url, headers, body = sent(send)
    assert method == "GET"
    assert url == f"{API}/Contacts"
    assert body is None
    assert headers["Accept"] == "application/json"
    assert headers["User-Agent"] == "xero-portal"
    xero_client.rate_limiter.wait.assert_awaited_once_with("Contacts")


@pytest.mark.asyncio
async def test_requests_are_signed_with_access_token(xero_client):
    with patch.object(xero_client, "_send", AsyncMock(return_value=(200, '{}'))) as send:
        await xero_client.contacts.get()

    _, _, headers, _ = sent(send)
    authorization = headers["Authorization"]
    assert authorization.startswith("OAuth ")
    assert 'oauth_consumer_key="test_key"' in authorization
    assert 'oauth_token="test_access_token"' in authorization
    assert 'oauth_signature_method="HMAC-SHA1"' in authorization
    assert "oauth_signature=" in authorization


@pytest.mark.asyncio
async def test_get_with_id_and_filters(xero_client):
    with patch.object(xero_client, "_send", AsyncMock(return_value=(200, '{"Invoices": []}'))) as send:
        await xero_client.invoices.get({
            "InvoiceID": "inv-1",
            "Statuses": ["AUTHORISED", "PAID"],
            "Where": None
        })

    _, url, _, _ = sent(send)
    assert url == f"{API}/Invoices/inv-1?Statuses=AUTHORISED%2CPAID"


@pytest.mark.asyncio
async def test_where_clause_is_percent_encoded(xero_client):
    with patch.object(xero_client, "_send", AsyncMock(return_value=(200, '{"Invoices": []}'))) as send:
        await xero_client.invoices.get({"Where": 'Status=="DRAFT"'})

    _, url, _, _ = sent(send)
    assert url == f"{API}/Invoices?Where=Status%3D%3D%22DRAFT%22"


@pytest.mark.asyncio
async def test_create_uses_put_with_json_body(xero_client):
    payload = {"Name": "New Co"}
    with patch.object(xero_client, "_send", AsyncMock(return_value=(200, '{"Contacts": [{"Name": "New Co"}]}'))) as send:
        result = await xero_client.contacts.create(payload)

    assert result["Contacts"][0]["Name"] == "New Co"
    method, url, headers, body = sent(send)
    assert method == "PUT"
    assert url == f"{API}/Contacts"
    assert json.loads(body) == payload
    assert headers["Content-Type"] == "application/json"


@pytest.mark.asyncio
async def test_rejected_token_raises_with_oauth_problem(xero_client):
    body = "oauth_problem=token_rejected&oauth_problem_advice=Token%20has%20been%20revoked"
    with patch.object(xero_client, "_send", AsyncMock(return_value=(401, body))):
        with pytest.raises(XeroApiError) as exc_info:
            await xero_client.invoices.get()

    assert exc_info.value.status_code == 401
    assert exc_info.value.oauth_problem == "token_rejected"
    assert str(exc_info.value) == "401: Token has been revoked"


@pytest.mark.asyncio
async def test_validation_error_message(xero_client):
    body = json.dumps({
        "ErrorNumber": 10,
        "Type": "ValidationException",
        "Message": "A validation exception occurred",
        "Elements": [{"ValidationErrors": [{"Message": "Account code '999' is not a valid code"}]}]
    })
    with patch.object(xero_client, "_send", AsyncMock(return_value=(400, body))):
        with pytest.raises(XeroApiError) as exc_info:
            await xero_client.invoices.create({"Type": "ACCREC"})

    assert exc_info.value.oauth_problem is None
    assert str(exc_info.value) == "400: Account code '999' is not a valid code"


@pytest.mark.asyncio
async def test_call_without_access_token(public_config):
    client = AccountingAPIClient(public_config)

    with pytest.raises(OAuthFlowError):
        await client.contacts.get()


def test_error_from_plain_text_body():
    error = XeroApiError.from_response(503, "Service Unavailable")

    assert error.data == {"Message": "Service Unavailable"}
    assert error.oauth_problem is None
    assert str(error) == "503: Service Unavailable"


def test_error_from_empty_body():
    error = XeroApiError.from_response(500, "")

    assert error.data == {}
    assert "500" in str(error)


@pytest.mark.asyncio
async def test_connection_error_raises_api_error(xero_client):
    failure = aiohttp.ClientConnectionError("Cannot connect to host api.xero.com")
    with patch.object(xero_client, "_send", AsyncMock(side_effect=failure)):
        with pytest.raises(XeroApiError) as exc_info:
            await xero_client.invoices.get()

    assert exc_info.value.status_code == 502
    assert "Could not reach Xero" in str(exc_info.value)


@pytest.mark.asyncio
async def test_request_is_signed_after_rate_limit_wait(xero_client):
    calls = []
    xero_client.rate_limiter.wait.side_effect = lambda endpoint: calls.append("wait")
    sign = xero_client._sign

    def record_sign(*args):
        calls.append("sign")
        return sign(*args)

    with patch.object(xero_client, "_sign", side_effect=record_sign), \
            patch.object(xero_client, "_send", AsyncMock(return_value=(200, '{"Invoices": []}'))):
        await xero_client.invoices.get()

    assert calls == ["wait", "sign"]


def test_shared_handshake_client(public_config):
    shared = AccountingAPIClient(public_config).oauth1_client

    with patch("xero_portal.platforms.xero.XeroOAuth1Client") as oauth1_client_cls:
        client = AccountingAPIClient(public_config, dict(ACCESS_TOKEN), oauth1_client=shared)

    assert client.oauth1_client is shared
    oauth1_client_cls.assert_not_called()
