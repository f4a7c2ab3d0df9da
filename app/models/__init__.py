"""
Pacchetto per i modelli SQLAlchemy.

Qui vengono esportate le classi modello principali.
"""

from .invoice import Invoice

__all__ = [
    "Invoice",
]
