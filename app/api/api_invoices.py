"""
API JSON per le fatture fornitori.

Endpoint principali (prefisso /api/invoice):

POST /create                 crea una fattura (JSON o form)
GET  /list                   fatture non pagate
GET  /history                storico pagamenti (esegue la retention)
GET  /<invoice_id>           dettaglio fattura
POST /update/<invoice_id>    aggiorna il flag need_new_request
POST /mark-paid/<invoice_id> segna come pagata senza contabile
POST /upload-payment/<invoice_id>
    multipart, campo "payment": contabile PDF, segna come pagata
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from flask import Blueprint, jsonify, request
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import RequestEntityTooLarge

from app.models.invoice import format_timestamp
from app.services import (
    attach_payment_file,
    create_invoice,
    get_invoice,
    list_history,
    list_unpaid,
    mark_paid,
    update_flag,
)
from app.services.exceptions import (
    InvoiceAlreadyPaidError,
    InvoiceNotFoundError,
    InvoiceValidationError,
)
from app.services.invoice_service import is_pdf_mime_type

logger = logging.getLogger(__name__)

api_invoices_bp = Blueprint("api_invoices", __name__)

PAYMENT_FIELD = "payment"


def _error(message: str, status: int):
    return jsonify({"success": False, "message": message}), status


def _request_data() -> Dict[str, Any]:
    """Body JSON se presente, altrimenti i campi del form."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


@api_invoices_bp.errorhandler(InvoiceValidationError)
def _handle_validation_error(exc: InvoiceValidationError):
    return _error(str(exc), 400)


@api_invoices_bp.errorhandler(InvoiceNotFoundError)
def _handle_not_found(exc: InvoiceNotFoundError):
    return _error(str(exc), 404)


@api_invoices_bp.errorhandler(InvoiceAlreadyPaidError)
def _handle_already_paid(exc: InvoiceAlreadyPaidError):
    return _error(str(exc), 409)


@api_invoices_bp.errorhandler(RequestEntityTooLarge)
def _handle_too_large(exc: RequestEntityTooLarge):
    return _error("File troppo grande.", 413)


@api_invoices_bp.errorhandler(SQLAlchemyError)
@api_invoices_bp.errorhandler(OSError)
def _handle_storage_error(exc: Exception):
    logger.error("Errore di storage: %s", exc, exc_info=exc)
    return _error("Errore interno di salvataggio.", 500)


@api_invoices_bp.route("/create", methods=["POST"])
def api_create_invoice():
    """
    Crea una fattura non pagata.

    Body atteso:
    {
      "supplier": "Acme",
      "organization_type": "LLC",
      "amount": 150.00,
      "need_new_request": false,        (opzionale)
      "arrival_date": "YYYY-MM-DD"      (opzionale)
    }
    """
    data = _request_data()
    invoice_id = create_invoice(
        supplier=data.get("supplier"),
        organization_type=data.get("organization_type"),
        amount=data.get("amount"),
        need_new_request=data.get("need_new_request", False),
        arrival_date=data.get("arrival_date"),
    )
    return jsonify({"success": True, "id": invoice_id}), 201


@api_invoices_bp.route("/list", methods=["GET"])
def api_list_unpaid():
    return jsonify([invoice.to_dict() for invoice in list_unpaid()])


@api_invoices_bp.route("/history", methods=["GET"])
def api_list_history():
    return jsonify([invoice.to_dict() for invoice in list_history()])


@api_invoices_bp.route("/<int:invoice_id>", methods=["GET"])
def api_get_invoice(invoice_id: int):
    return jsonify(get_invoice(invoice_id).to_dict())


@api_invoices_bp.route("/update/<int:invoice_id>", methods=["POST"])
def api_update_flag(invoice_id: int):
    data = _request_data()
    update_flag(invoice_id, data.get("need_new_request", False))
    return jsonify({"success": True})


@api_invoices_bp.route("/mark-paid/<int:invoice_id>", methods=["POST"])
def api_mark_paid(invoice_id: int):
    paid_at = mark_paid(invoice_id)
    return jsonify({"success": True, "paid_at": format_timestamp(paid_at)})


@api_invoices_bp.route("/upload-payment/<int:invoice_id>", methods=["POST"])
def api_upload_payment(invoice_id: int):
    """Carica la contabile PDF (un solo file, campo "payment") e segna la fattura come pagata."""
    files = [f for f in request.files.getlist(PAYMENT_FIELD) if f and f.filename]
    if len(files) != 1:
        return _error(f"Carica esattamente un file PDF nel campo '{PAYMENT_FIELD}'.", 400)

    upload = files[0]
    if not is_pdf_mime_type(upload.mimetype):
        return _error("Solo PDF consentito.", 400)

    paid_at, payment_file = attach_payment_file(invoice_id, upload.read(), upload.mimetype)
    return jsonify(
        {
            "success": True,
            "paid_at": format_timestamp(paid_at),
            "payment_file": payment_file,
        }
    )
