"""
Unit of Work Pattern.
Gestisce la transazione del database atomica e l'accesso ai repository.
"""
from typing import Optional

from app.extensions import db
from app.repositories.invoice_repo import InvoiceRepository


class UnitOfWork:
    def __init__(self):
        self.session = db.session
        self._invoices: Optional[InvoiceRepository] = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            self.rollback()
            return False
        # Flask-SQLAlchemy chiude la sessione al teardown dell'app context

    @property
    def invoices(self) -> InvoiceRepository:
        if self._invoices is None:
            self._invoices = InvoiceRepository(self.session)
        return self._invoices

    def commit(self):
        try:
            self.session.commit()
        except Exception:
            self.rollback()
            raise

    def rollback(self):
        self.session.rollback()
