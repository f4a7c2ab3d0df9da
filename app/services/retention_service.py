"""
Retention delle contabili di pagamento.

Le fatture pagate conservano il PDF allegato per RETENTION_DAYS giorni
(default 10). Lo sweep elimina i file scaduti e azzera payment_file;
paid e paid_at non vengono mai toccati e nessuna fattura viene cancellata.

Lo sweep gira all'avvio dell'app e a ogni richiesta dello storico,
non su timer.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import timedelta
from typing import List, Optional, Tuple

from app.models.invoice import utcnow
from app.services import payment_file_service, settings_service
from app.services.logging import log_structured_event
from app.services.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    examined: int = 0
    expired: int = 0
    cleared: int = 0
    failed: int = 0


def _collect_expired(retention_days: int) -> Tuple[int, List[Tuple[int, str]]]:
    """Restituisce (fatture esaminate, [(id, payment_file)] oltre la finestra)."""
    now = utcnow()
    window = timedelta(days=retention_days)
    with UnitOfWork() as uow:
        candidates = uow.invoices.list_with_payment_file()
        expired = [
            (invoice.id, invoice.payment_file)
            for invoice in candidates
            if now - invoice.paid_at > window
        ]
        # Chiude la transazione di sola lettura prima di toccare i file
        uow.rollback()
    return len(candidates), expired


def sweep(retention_days: Optional[int] = None) -> SweepResult:
    """
    Elimina le contabili più vecchie della finestra di retention.

    Per ogni fattura scaduta: cancella il file (se già assente non è un
    errore), poi azzera payment_file con un UPDATE condizionato al
    riferimento letto. Un errore di cancellazione diverso da "file assente"
    viene loggato e la fattura viene ritentata al prossimo sweep.
    """
    if retention_days is None:
        retention_days = settings_service.get_retention_days()

    result = SweepResult()
    result.examined, expired = _collect_expired(retention_days)
    result.expired = len(expired)

    for invoice_id, reference in expired:
        try:
            removed = payment_file_service.delete_payment_file(reference)
        except OSError:
            result.failed += 1
            logger.error(
                "Retention: impossibile eliminare %s (fattura %s), riprovo al prossimo sweep",
                reference,
                invoice_id,
                exc_info=True,
            )
            continue

        if not removed:
            logger.info("Retention: %s già assente (fattura %s)", reference, invoice_id)

        with UnitOfWork() as uow:
            if uow.invoices.clear_payment_file(invoice_id, reference):
                result.cleared += 1
            uow.commit()

    if result.expired or result.failed:
        log_structured_event(
            "retention_sweep",
            message="Sweep retention contabili completato",
            retention_days=retention_days,
            **asdict(result),
        )
    else:
        logger.debug("Retention: nessuna contabile scaduta (%d esaminate)", result.examined)

    return result
