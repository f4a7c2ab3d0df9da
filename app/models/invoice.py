"""
Modello Invoice (tabella: invoices).

Rappresenta una fattura fornitore nel suo ciclo di vita:
creata (non pagata) -> pagata (con o senza contabile PDF).
La contabile allegata può essere rimossa dalla retention senza
toccare lo stato di pagamento.
"""

from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

from app.extensions import db


def utcnow() -> datetime:
    """Istante corrente in UTC, naive, come salvato nelle colonne DateTime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """ISO 8601 UTC con millisecondi e suffisso Z (es. 2026-10-18T09:30:00.123Z)."""
    if value is None:
        return None
    return value.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


class Invoice(db.Model):
    __tablename__ = "invoices"
    # Gli id non vengono mai riutilizzati, anche su SQLite
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)

    # Dati inseriti dal richiedente
    supplier = db.Column(db.Text, nullable=False)
    organization_type = db.Column(db.Text, nullable=False)
    amount = db.Column(db.Numeric(15, 2), nullable=False)
    arrival_date = db.Column(db.Date, nullable=True)

    need_new_request = db.Column(db.Boolean, nullable=False, default=False)

    # Stato pagamento
    paid = db.Column(db.Boolean, nullable=False, default=False)
    paid_at = db.Column(db.DateTime, nullable=True)
    # Riferimento pubblico della contabile, es. /payments/invoice_1_1760779800123.pdf
    payment_file = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        arrival: Optional[date] = self.arrival_date
        return {
            "id": self.id,
            "supplier": self.supplier,
            "organization_type": self.organization_type,
            "amount": float(self.amount) if self.amount is not None else None,
            "created_at": format_timestamp(self.created_at),
            "arrival_date": arrival.isoformat() if arrival else None,
            "need_new_request": bool(self.need_new_request),
            "paid": bool(self.paid),
            "payment_file": self.payment_file,
            "paid_at": format_timestamp(self.paid_at),
        }

    def __repr__(self) -> str:
        return (
            f"<Invoice id={self.id} supplier={self.supplier!r} "
            f"paid={self.paid} payment_file={self.payment_file!r}>"
        )
