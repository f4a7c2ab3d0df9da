"""
Migrazioni di schema gestite con Alembic.

Le revisioni in versions/ sono applicate all'avvio (create_app) o da
`python manage.py create-db`. Alembic registra la revisione corrente in
alembic_version nella stessa transazione del cambiamento di schema.

Per aggiungere una migrazione: nuova revisione in versions/ con
down_revision uguale all'ultima. Le revisioni già rilasciate non si modificano.
"""

from __future__ import annotations

import logging
import os
from typing import List, Optional

from alembic import command
from alembic.config import Config as AlembicConfig
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy.engine import Connection, Engine

from app.extensions import db

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = os.path.dirname(os.path.abspath(__file__))


def _alembic_config(connection: Optional[Connection] = None) -> AlembicConfig:
    config = AlembicConfig()
    config.set_main_option("script_location", MIGRATIONS_DIR)
    if connection is not None:
        # Letta da env.py: le migrazioni girano sulla connessione dell'app
        config.attributes["connection"] = connection
    return config


def revision_history() -> List[str]:
    """Tutte le revisioni, dalla prima alla head."""
    script = ScriptDirectory.from_config(_alembic_config())
    return [revision.revision for revision in reversed(list(script.walk_revisions()))]


def current_revision(engine: Optional[Engine] = None) -> Optional[str]:
    engine = engine or db.engine
    with engine.connect() as conn:
        return MigrationContext.configure(conn).get_current_revision()


def applied_versions(engine: Optional[Engine] = None) -> List[str]:
    """Revisioni già applicate al database, in ordine."""
    current = current_revision(engine)
    if current is None:
        return []
    history = revision_history()
    return history[: history.index(current) + 1]


def apply_migrations(engine: Optional[Engine] = None) -> List[str]:
    """
    Porta lo schema alla head.

    Restituisce le revisioni applicate in questa chiamata (vuota se lo
    schema era già aggiornato).
    """
    engine = engine or db.engine
    already_applied = applied_versions(engine)
    pending = revision_history()[len(already_applied):]
    if not pending:
        return []

    with engine.begin() as conn:
        command.upgrade(_alembic_config(conn), "head")

    for revision in pending:
        logger.info(
            "Migrazione %s applicata",
            revision,
            extra={"component": "migrations", "revision": revision},
        )
    return pending
