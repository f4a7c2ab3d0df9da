"""
Pacchetto per le route non-API (download delle contabili).
"""

from .routes_payments import payments_bp

__all__ = [
    "payments_bp",
]
