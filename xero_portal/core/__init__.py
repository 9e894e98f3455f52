"""
Core OAuth 1.0a functionality.
"""

from .oauth1 import OAuth1Base, XeroOAuth1Client

__all__ = ['OAuth1Base', 'XeroOAuth1Client']
