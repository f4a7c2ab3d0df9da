"""
Servizio per la gestione dei file fisici delle contabili di pagamento.

Convenzione dei nomi (contratto esterno, da non cambiare):
    invoice_<id>_<epoch_ms>.pdf, referenziato nel DB come /payments/<nome>.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from typing import Optional, Tuple

from app.services import settings_service

logger = logging.getLogger(__name__)

PAYMENTS_URL_PREFIX = "/payments/"


def epoch_millis(moment: datetime) -> int:
    """Millisecondi dall'epoch per un datetime naive UTC."""
    aware = moment.replace(tzinfo=timezone.utc)
    return int(aware.timestamp() * 1000)


def build_payment_filename(invoice_id: int, millis: int) -> str:
    return f"invoice_{invoice_id}_{millis}.pdf"


def build_payment_reference(filename: str) -> str:
    """Riferimento salvato in payment_file e servito dalla route statica."""
    return PAYMENTS_URL_PREFIX + filename


def _filename_from_reference(reference: str) -> str:
    # Solo il nome: un riferimento manipolato non può uscire dalla cartella
    return os.path.basename(reference.replace("\\", "/"))


def store_payment_file(invoice_id: int, content: bytes, paid_at: datetime) -> Tuple[str, str]:
    """
    Salva la contabile con create esclusivo e restituisce (percorso assoluto, riferimento).

    Il timestamp nel nome deriva da paid_at; in caso di collisione (due upload
    nello stesso millisecondo) il contatore viene incrementato.
    """
    base_path = settings_service.get_payments_storage_path()
    millis = epoch_millis(paid_at)

    while True:
        filename = build_payment_filename(invoice_id, millis)
        full_path = os.path.join(base_path, filename)
        try:
            handle = open(full_path, "xb")
        except FileExistsError:
            millis += 1
            continue
        break

    try:
        with handle:
            handle.write(content)
    except OSError:
        discard_stored_file(full_path)
        raise

    logger.debug("Contabile salvata: %s (%d byte)", full_path, len(content))
    return full_path, build_payment_reference(filename)


def delete_payment_file(reference: str) -> bool:
    """
    Elimina il file indicato dal riferimento.

    Restituisce False se il file era già assente (non è un errore).
    Altri OSError vengono propagati al chiamante.
    """
    filename = _filename_from_reference(reference)
    if not filename:
        return False
    full_path = os.path.join(settings_service.get_payments_storage_path(), filename)
    try:
        os.remove(full_path)
    except FileNotFoundError:
        return False
    return True


def discard_stored_file(full_path: str) -> None:
    """Rimuove un file appena scritto quando la transazione non va a buon fine."""
    try:
        os.remove(full_path)
    except FileNotFoundError:
        pass
    except OSError:
        logger.warning("Impossibile rimuovere il file orfano %s", full_path, exc_info=True)


def resolve_payment_file(filename: str) -> Optional[str]:
    """
    Percorso assoluto di una contabile esistente, oppure None.

    Restituisce None per nomi non sicuri (separatori, componenti relativi)
    o per file rimossi dalla retention.
    """
    if not filename or _filename_from_reference(filename) != filename or filename in {".", ".."}:
        return None
    full_path = os.path.join(settings_service.get_payments_storage_path(), filename)
    if not os.path.isfile(full_path):
        return None
    return full_path
