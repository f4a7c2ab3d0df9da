"""
Servizi per la gestione delle impostazioni applicative.
"""

import os

from flask import current_app


def _resolve_path(config_value: str | None, default_parts: list[str]) -> str:
    if config_value:
        target_path = os.path.abspath(config_value)
    else:
        base_dir = current_app.config.get("DATA_DIR") or os.getcwd()
        target_path = os.path.join(base_dir, *default_parts)
    os.makedirs(target_path, exist_ok=True)
    return target_path


def get_payments_storage_path() -> str:
    """Restituisce il percorso assoluto della cartella delle contabili PDF (creata se assente)."""
    configured_path = current_app.config.get("PAYMENTS_DIR")
    return _resolve_path(configured_path, ["payments"])


def get_retention_days() -> int:
    """Giorni di conservazione delle contabili dopo il pagamento (default 10)."""
    raw = current_app.config.get("RETENTION_DAYS", 10)
    try:
        days = int(raw)
    except (TypeError, ValueError):
        return 10
    return days if days >= 0 else 10


def allow_repeat_payment() -> bool:
    """True se un nuovo pagamento può sovrascrivere paid_at di una fattura già pagata."""
    return bool(current_app.config.get("ALLOW_REPEAT_PAYMENT", True))
