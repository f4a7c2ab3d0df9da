"""
Servizi per il registro fatture fornitori (creazione, elenchi, pagamento).
Rifattorizzato con Pattern Unit of Work.

Ogni modifica a una singola fattura è un UPDATE atomico per id: niente
lettura-modifica-scrittura lato applicazione.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional, Tuple

from app.models import Invoice
from app.models.invoice import format_timestamp, utcnow
from app.services import payment_file_service, retention_service, settings_service
from app.services.exceptions import (
    InvoiceAlreadyPaidError,
    InvoiceNotFoundError,
    InvoiceValidationError,
)
from app.services.logging import log_structured_event
from app.services.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"

_TRUE_STRINGS = {"1", "true", "yes", "on"}


def coerce_flag(value: Any) -> bool:
    """
    Converte l'input di un flag booleano.

    Stringhe: solo 1/true/yes/on (case-insensitive) valgono True, così che
    "false" o "0" inviati da un form non vengano letti come veri.
    """
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


def is_pdf_mime_type(mime_type: Optional[str]) -> bool:
    """True se il media type dichiarato è application/pdf (parametri ignorati)."""
    if not mime_type:
        return False
    return mime_type.split(";", 1)[0].strip().lower() == PDF_MIME_TYPE


def _require_text(value: Any, field: str) -> str:
    text = str(value).strip() if value is not None else ""
    if not text:
        raise InvoiceValidationError(f"Campo obbligatorio mancante: {field}")
    return text


def _parse_amount(value: Any) -> Decimal:
    if value is None or isinstance(value, bool):
        raise InvoiceValidationError("Campo obbligatorio mancante: amount")
    if isinstance(value, str):
        value = value.strip().replace(",", ".")
        if not value:
            raise InvoiceValidationError("Campo obbligatorio mancante: amount")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise InvoiceValidationError(f"Importo non valido: {value!r}") from exc
    if not amount.is_finite():
        raise InvoiceValidationError(f"Importo non valido: {value!r}")
    return amount


def _parse_arrival_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value).strip(), "%Y-%m-%d").date()
    except ValueError as exc:
        raise InvoiceValidationError(f"Data di arrivo non valida: {value!r} (atteso YYYY-MM-DD)") from exc


def _repeat_payment_criteria() -> tuple:
    if settings_service.allow_repeat_payment():
        return ()
    return (Invoice.paid.is_(False),)


def create_invoice(
    supplier: Any,
    organization_type: Any,
    amount: Any,
    need_new_request: Any = False,
    arrival_date: Any = None,
) -> int:
    """
    Registra una nuova fattura non pagata e ne restituisce l'id.

    supplier, organization_type e amount sono obbligatori; arrival_date
    (YYYY-MM-DD) è opzionale e di default coincide con la data di creazione.
    """
    supplier_name = _require_text(supplier, "supplier")
    org_type = _require_text(organization_type, "organization_type")
    parsed_amount = _parse_amount(amount)
    arrival = _parse_arrival_date(arrival_date)

    now = utcnow()
    with UnitOfWork() as uow:
        invoice = Invoice(
            supplier=supplier_name,
            organization_type=org_type,
            amount=parsed_amount,
            created_at=now,
            arrival_date=arrival or now.date(),
            need_new_request=coerce_flag(need_new_request),
            paid=False,
            paid_at=None,
            payment_file=None,
        )
        uow.invoices.add(invoice)
        # Flush per avere l'id assegnato dal database
        uow.session.flush()
        invoice_id = invoice.id
        uow.commit()

    log_structured_event(
        "invoice_created",
        message=f"Fattura {invoice_id} creata",
        invoice_id=invoice_id,
        supplier=supplier_name,
        amount=str(parsed_amount),
    )
    return invoice_id


def get_invoice(invoice_id: int) -> Invoice:
    with UnitOfWork() as uow:
        invoice = uow.invoices.get_by_id(invoice_id)
        if invoice is None:
            raise InvoiceNotFoundError(invoice_id)
        return invoice


def list_unpaid() -> List[Invoice]:
    """Fatture in attesa di pagamento, dalla più recente."""
    with UnitOfWork() as uow:
        return uow.invoices.list_unpaid()


def list_history(retention_days: Optional[int] = None) -> List[Invoice]:
    """
    Storico dei pagamenti degli ultimi `retention_days` giorni.

    Esegue prima lo sweep della retention, poi restituisce le fatture pagate
    nella finestra, dalla più recentemente pagata. Le fatture più vecchie
    restano nel database ma non compaiono qui.
    """
    if retention_days is None:
        retention_days = settings_service.get_retention_days()

    retention_service.sweep(retention_days)

    since = utcnow() - timedelta(days=retention_days)
    with UnitOfWork() as uow:
        return uow.invoices.list_paid_since(since)


def update_flag(invoice_id: int, need_new_request: Any) -> None:
    """Aggiorna il flag need_new_request; idempotente."""
    flag = coerce_flag(need_new_request)
    with UnitOfWork() as uow:
        updated = uow.invoices.update_by_id(invoice_id, {"need_new_request": flag})
        if not updated:
            raise InvoiceNotFoundError(invoice_id)
        uow.commit()

    logger.info("Fattura %s: need_new_request=%s", invoice_id, flag)


def _raise_for_missed_payment_update(uow: UnitOfWork, invoice_id: int) -> None:
    # UPDATE senza righe: id inesistente oppure fattura già pagata con ripetizione vietata
    if uow.invoices.get_by_id(invoice_id) is None:
        raise InvoiceNotFoundError(invoice_id)
    raise InvoiceAlreadyPaidError(invoice_id)


def mark_paid(invoice_id: int) -> datetime:
    """
    Segna la fattura come pagata senza contabile e restituisce paid_at.

    payment_file non viene toccato. Con ALLOW_REPEAT_PAYMENT attivo una
    seconda chiamata sposta in avanti paid_at (ultima scrittura vince).
    """
    paid_at = utcnow()
    with UnitOfWork() as uow:
        updated = uow.invoices.update_by_id(
            invoice_id,
            {"paid": True, "paid_at": paid_at},
            *_repeat_payment_criteria(),
        )
        if not updated:
            _raise_for_missed_payment_update(uow, invoice_id)
        uow.commit()

    log_structured_event(
        "invoice_paid",
        message=f"Fattura {invoice_id} pagata",
        invoice_id=invoice_id,
        paid_at=format_timestamp(paid_at),
    )
    return paid_at


def attach_payment_file(invoice_id: int, content: bytes, mime_type: Optional[str]) -> Tuple[datetime, str]:
    """
    Allega la contabile PDF e segna la fattura come pagata.

    Restituisce (paid_at, payment_file). Un file non PDF o vuoto viene
    rifiutato senza modifiche. Se l'aggiornamento del database fallisce
    il file appena scritto viene rimosso.
    """
    if not is_pdf_mime_type(mime_type):
        raise InvoiceValidationError("Solo PDF consentito")
    if not content:
        raise InvoiceValidationError("File vuoto")

    with UnitOfWork() as uow:
        invoice = uow.invoices.get_by_id(invoice_id)
        if invoice is None:
            raise InvoiceNotFoundError(invoice_id)
        if invoice.paid and not settings_service.allow_repeat_payment():
            raise InvoiceAlreadyPaidError(invoice_id)
        previous_reference = invoice.payment_file

        paid_at = utcnow()
        full_path, reference = payment_file_service.store_payment_file(invoice_id, content, paid_at)
        try:
            updated = uow.invoices.update_by_id(
                invoice_id,
                {"paid": True, "paid_at": paid_at, "payment_file": reference},
                *_repeat_payment_criteria(),
            )
            if not updated:
                _raise_for_missed_payment_update(uow, invoice_id)
            uow.commit()
        except Exception:
            payment_file_service.discard_stored_file(full_path)
            raise

    if previous_reference and previous_reference != reference:
        _discard_replaced_file(invoice_id, previous_reference)

    log_structured_event(
        "payment_file_attached",
        message=f"Contabile allegata alla fattura {invoice_id}",
        invoice_id=invoice_id,
        paid_at=format_timestamp(paid_at),
        payment_file=reference,
    )
    return paid_at, reference


def _discard_replaced_file(invoice_id: int, reference: str) -> None:
    """La contabile sostituita da un nuovo upload non è più referenziata: si elimina."""
    try:
        payment_file_service.delete_payment_file(reference)
    except OSError:
        logger.warning(
            "Fattura %s: impossibile eliminare la contabile sostituita %s",
            invoice_id,
            reference,
            exc_info=True,
        )
