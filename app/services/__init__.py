"""
Pacchetto per i servizi (logica di business) dell'applicazione.

I servizi orchestrano:
- repository (accesso al DB) tramite UnitOfWork
- file delle contabili di pagamento
- retention delle contabili scadute
- logging strutturato
"""

from .invoice_service import (
    create_invoice,
    get_invoice,
    list_unpaid,
    list_history,
    update_flag,
    mark_paid,
    attach_payment_file,
)
from .retention_service import sweep, SweepResult
from .exceptions import (
    InvoiceError,
    InvoiceValidationError,
    InvoiceNotFoundError,
    InvoiceAlreadyPaidError,
)

__all__ = [
    # Registro fatture
    "create_invoice",
    "get_invoice",
    "list_unpaid",
    "list_history",
    "update_flag",
    "mark_paid",
    "attach_payment_file",
    # Retention
    "sweep",
    "SweepResult",
    # Errori
    "InvoiceError",
    "InvoiceValidationError",
    "InvoiceNotFoundError",
    "InvoiceAlreadyPaidError",
]
