"""Helper per logging strutturato JSON nei servizi applicativi."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional


def log_structured_event(
    action: str,
    *,
    message: Optional[str] = None,
    level: str = "info",
    logger: Optional[logging.Logger] = None,
    **fields: Any,
) -> None:
    """Registra un evento di business (fattura creata, pagata, sweep) come record JSON.

    Il formatter JSON è configurato sul root logger da ``app.extensions``; i campi
    passati qui finiscono sotto ``extra`` insieme ad ``action``. Un errore di
    serializzazione non deve interrompere l'operazione che sta loggando.
    """

    target = logger or logging.getLogger("app.events")
    log_method = getattr(target, level.lower(), target.info)

    payload: Dict[str, Any] = {"action": action}
    payload.update(fields)

    try:
        log_method(message or action, extra=payload)
    except Exception:
        target.debug("Logging strutturato fallito", exc_info=True)
