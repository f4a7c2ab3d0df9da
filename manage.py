#!/usr/bin/env python3
"""
Script di gestione per il registro fatture fornitori.

Uso:
    python manage.py runserver   # Avvia il server di sviluppo
    python manage.py create-db   # Applica le migrazioni di schema
    python manage.py sweep       # Esegue la retention delle contabili
"""

import argparse
import logging
import os
import sys

from sqlalchemy.exc import OperationalError

from app import create_app
from config import DevConfig, ProdConfig

# ---------------------------------------------------------------------
# Logger CLI (fuori dal contesto Flask)
# ---------------------------------------------------------------------
cli_logger = logging.getLogger("manage_cli")
cli_logger.setLevel(logging.INFO)


# ---------------------------------------------------------------------
# Comandi
# ---------------------------------------------------------------------
def create_db(app) -> int:
    """
    Applica le migrazioni mancanti e stampa le versioni presenti.

    create_app() le applica già all'avvio: qui il comando serve soprattutto
    a verificare lo stato dello schema.
    """
    from app.migrations import applied_versions, apply_migrations

    with app.app_context():
        newly_applied = apply_migrations()
        if newly_applied:
            cli_logger.info("Migrazioni applicate: %s", newly_applied)
        else:
            cli_logger.info("Schema già aggiornato.")
        cli_logger.info("Versioni presenti: %s", applied_versions())
    return 0


def run_sweep(app, retention_days=None) -> int:
    """Esegue uno sweep della retention e riporta i contatori."""
    from app.services import retention_service

    with app.app_context():
        result = retention_service.sweep(retention_days)

    cli_logger.info(
        "Sweep completato: esaminate=%d scadute=%d azzerate=%d errori=%d",
        result.examined,
        result.expired,
        result.cleared,
        result.failed,
    )
    return 1 if result.failed else 0


def run_server(app) -> int:
    """Avvia il server di sviluppo Flask (LAN-ready)."""
    host = os.environ.get("FLASK_RUN_HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", os.environ.get("FLASK_RUN_PORT", "3000")))
    debug = app.config.get("DEBUG", False)

    app.logger.info("Avvio del server su http://%s:%s", host, port)
    app.run(host=host, port=port, debug=debug)
    return 0


# ---------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------
def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Gestione del registro fatture fornitori."
    )
    parser.add_argument(
        "command",
        choices=["runserver", "create-db", "sweep"],
        help="Comando da eseguire.",
    )
    parser.add_argument(
        "--prod",
        action="store_true",
        help="Usa la configurazione di produzione.",
    )
    parser.add_argument(
        "--days",
        type=int,
        default=None,
        help="Finestra di retention per 'sweep' (default: RETENTION_DAYS).",
    )

    args = parser.parse_args(argv)

    config_class = ProdConfig if args.prod else DevConfig
    # Lo sweep all'avvio è superfluo quando il comando stesso è uno sweep
    try:
        app = create_app(config_class, SWEEP_ON_STARTUP=args.command == "runserver")
    except OperationalError as e:
        cli_logger.error("Errore di connessione al database: %s", e)
        cli_logger.info(
            "Verifica DATABASE_URL (attuale: %s).",
            config_class.SQLALCHEMY_DATABASE_URI,
        )
        return 1

    if args.command == "runserver":
        return run_server(app)
    if args.command == "create-db":
        return create_db(app)
    return run_sweep(app, args.days)


if __name__ == "__main__":
    sys.exit(main())
