"""
HTTP routes.
"""

from .auth_routes import router as auth_router
from .accounting_routes import router as accounting_router

__all__ = ['auth_router', 'accounting_router']
