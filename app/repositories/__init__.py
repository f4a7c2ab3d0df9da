"""
Package repositories.
Espone i Repository per l'accesso ai dati.
"""

from .base import SqlAlchemyRepository
from .invoice_repo import InvoiceRepository

__all__ = [
    "SqlAlchemyRepository",
    "InvoiceRepository",
]
