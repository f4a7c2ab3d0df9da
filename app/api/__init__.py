"""
Pacchetto per le API JSON usate dal frontend.

Contiene:
- api_invoices_bp -> registro fatture (creazione, elenchi, pagamento, contabili)
"""

from .api_invoices import api_invoices_bp

__all__ = [
    "api_invoices_bp",
]
