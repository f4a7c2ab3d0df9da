"""
Repository specifico per Invoice.
Eredita le funzioni base (add, get, update_by_id) da SqlAlchemyRepository.
"""
from datetime import datetime
from typing import List

from app.models import Invoice
from app.repositories.base import SqlAlchemyRepository


class InvoiceRepository(SqlAlchemyRepository[Invoice]):
    def __init__(self, session):
        super().__init__(session, Invoice)

    def list_unpaid(self) -> List[Invoice]:
        """Fatture non pagate, dalla più recente (id decrescente)."""
        return (
            self.session.query(Invoice)
            .filter(Invoice.paid.is_(False))
            .order_by(Invoice.id.desc())
            .all()
        )

    def list_paid_since(self, since: datetime) -> List[Invoice]:
        """Fatture pagate da `since` in poi, ordinate per data pagamento decrescente."""
        return (
            self.session.query(Invoice)
            .filter(
                Invoice.paid.is_(True),
                Invoice.paid_at.isnot(None),
                Invoice.paid_at >= since,
            )
            .order_by(Invoice.paid_at.desc(), Invoice.id.desc())
            .all()
        )

    def list_with_payment_file(self) -> List[Invoice]:
        """
        Fatture con contabile allegata e data di pagamento valorizzata.

        Usato dalla retention per individuare i file da eliminare.
        """
        return (
            self.session.query(Invoice)
            .filter(
                Invoice.payment_file.isnot(None),
                Invoice.paid_at.isnot(None),
            )
            .order_by(Invoice.id.asc())
            .all()
        )

    def clear_payment_file(self, invoice_id: int, expected_reference: str) -> int:
        """
        Azzera payment_file solo se punta ancora al riferimento atteso.

        Un nuovo upload concorrente (riferimento diverso) non viene toccato.
        paid e paid_at restano invariati.
        """
        return self.update_by_id(
            invoice_id,
            {"payment_file": None},
            Invoice.payment_file == expected_reference,
        )
