"""
Accounting platform clients.
"""

from .xero import AccountingAPIClient, AccountingEndpoint

__all__ = [
    'AccountingAPIClient',
    'AccountingEndpoint'
]
