"""
Route per il download delle contabili di pagamento.

GET /payments/<filename> serve il PDF salvato da attach_payment_file.
Se la retention ha già eliminato il file (o il riferimento è rimasto
orfano dopo un crash) la risposta è 404, mai un errore 500.
"""
from __future__ import annotations

from flask import Blueprint, abort, send_file

from app.services.payment_file_service import resolve_payment_file

payments_bp = Blueprint("payments", __name__)


@payments_bp.route("/payments/<path:filename>", methods=["GET"])
def download_payment_file(filename: str):
    full_path = resolve_payment_file(filename)
    if full_path is None:
        abort(404)
    return send_file(full_path, mimetype="application/pdf", as_attachment=False)
