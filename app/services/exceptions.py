"""
Eccezioni di dominio del registro fatture.

Le route API le traducono in codici HTTP distinti (400, 404, 409).
"""


class InvoiceError(Exception):
    """Errore generico del registro fatture."""


class InvoiceValidationError(InvoiceError):
    """Dati mancanti o non validi (campi obbligatori, file non PDF)."""


class InvoiceNotFoundError(InvoiceError):
    """Nessuna fattura con l'id richiesto."""

    def __init__(self, invoice_id: int):
        super().__init__(f"Fattura {invoice_id} non trovata")
        self.invoice_id = invoice_id


class InvoiceAlreadyPaidError(InvoiceError):
    """Pagamento ripetuto su una fattura già pagata, con ALLOW_REPEAT_PAYMENT disattivo."""

    def __init__(self, invoice_id: int):
        super().__init__(f"Fattura {invoice_id} già pagata")
        self.invoice_id = invoice_id
