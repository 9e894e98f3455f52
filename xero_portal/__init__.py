"""
Xero Portal
-----------
Server-rendered Xero contacts and invoices over OAuth 1.0a.
"""

# Use lazy imports so importing the package does not load settings
__version__ = "1.0.0"

def get_app():
    from .main import app
    return app

def get_client_class():
    from .platforms import AccountingAPIClient
    return AccountingAPIClient

__all__ = [
    'get_app',
    'get_client_class',
]
