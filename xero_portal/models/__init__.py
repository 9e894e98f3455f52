"""
Data models for form validation.
"""

from .accounting import (
    ContactForm,
    InvoiceForm,
    InvoiceFilterForm,
    SAMPLE_INVOICE
)

__all__ = [
    'ContactForm',
    'InvoiceForm',
    'InvoiceFilterForm',
    'SAMPLE_INVOICE'
]
