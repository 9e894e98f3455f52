import os
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from cryptography.fernet import Fernet

# Settings are cached on first use, so the environment is fixed before any import
os.environ['ENVIRONMENT'] = 'testing'
os.environ['ENCRYPTION_KEY'] = Fernet.generate_key().decode()
os.environ['XERO_CONFIG_PATH'] = 'tests/missing-config.json'

from fastapi.testclient import TestClient

from xero_portal.config import XeroAppConfig
from xero_portal.routes.dependencies import get_client_factory, get_xero_config

AUTHORIZE_URL = "https://api.xero.com/oauth/Authorize"

REQUEST_TOKEN = {
    'oauth_token': 'test_request_token',
    'oauth_token_secret': 'test_request_secret'
}

ACCESS_TOKEN = {
    'oauth_token': 'test_access_token',
    'oauth_token_secret': 'test_access_secret'
}

CONTACTS = [
    {'ContactID': 'c1d2e3f4', 'Name': 'Jem The Cat', 'EmailAddress': 'jem@example.com', 'ContactStatus': 'ACTIVE'},
    {'ContactID': 'a1b2c3d4', 'Name': 'Boom FM', 'ContactStatus': 'ACTIVE'},
]

INVOICES = [
    {
        'InvoiceID': 'inv-1',
        'InvoiceNumber': 'INV-001',
        'Type': 'ACCREC',
        'Status': 'AUTHORISED',
        'Contact': {'ContactID': 'c1d2e3f4', 'Name': 'Jem The Cat'},
        'DateString': '2018-09-01T00:00:00',
        'DueDateString': '2018-09-02T00:00:00',
        'Total': 1000.0,
        'AmountDue': 1000.0,
        'CurrencyCode': 'NZD'
    }
]


class FakeXero:
    """Stands in for AccountingAPIClient and records the tokens it was built with."""

    def __init__(self):
        self.access_tokens = []
        self.shared_oauth1_clients = []

        self.oauth1_client = MagicMock()
        self.oauth1_client.get_request_token = AsyncMock(return_value=dict(REQUEST_TOKEN))
        self.oauth1_client.build_authorise_url = MagicMock(
            side_effect=lambda token: f"{AUTHORIZE_URL}?oauth_token={token['oauth_token']}"
        )
        self.oauth1_client.swap_request_token_for_access_token = AsyncMock(return_value=dict(ACCESS_TOKEN))
        self.oauth1_client.refresh_access_token = AsyncMock()
        self.oauth1_client.private_access_token = MagicMock(
            return_value={'oauth_token': 'test_key', 'oauth_token_secret': 'test_secret'}
        )

        self.contacts = MagicMock()
        self.contacts.get = AsyncMock(return_value={'Contacts': CONTACTS})
        self.contacts.create = AsyncMock(return_value={'Contacts': CONTACTS[:1]})

        self.invoices = MagicMock()
        self.invoices.get = AsyncMock(return_value={'Invoices': INVOICES})
        self.invoices.create = AsyncMock(return_value={'Invoices': INVOICES})

    def __call__(self, config, access_token=None, oauth1_client=None):
        self.access_tokens.append(access_token)
        self.shared_oauth1_clients.append(oauth1_client)
        return SimpleNamespace(
            config=config,
            access_token=access_token,
            oauth1_client=self.oauth1_client,
            contacts=self.contacts,
            invoices=self.invoices,
        )


@pytest.fixture
def public_config():
    return XeroAppConfig(
        appType="public",
        callbackUrl="http://localhost:3200/access",
        consumerKey="test_key",
        consumerSecret="test_secret"
    )


@pytest.fixture
def fake_xero():
    return FakeXero()


@pytest.fixture
def xero_config(public_config):
    """Config returned to the routes; tests may swap the holder's value."""
    return {'config': public_config}


@pytest.fixture
def app(fake_xero, xero_config):
    from xero_portal.main import app

    app.dependency_overrides[get_xero_config] = lambda: xero_config['config']
    app.dependency_overrides[get_client_factory] = lambda: fake_xero

    yield app

    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app, follow_redirects=False)


@pytest.fixture
def authorized_client(client, fake_xero):
    """Client that has been through the Xero authorisation redirect."""
    client.get("/contacts")
    response = client.get("/access", params={'oauth_verifier': 'test_verifier'})
    assert response.status_code == 302

    fake_xero.contacts.get.reset_mock()
    fake_xero.oauth1_client.get_request_token.reset_mock()
    fake_xero.access_tokens.clear()
    fake_xero.shared_oauth1_clients.clear()
    return client
