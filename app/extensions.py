"""
Modulo che contiene le estensioni Flask condivise (db, logging).
"""

import json
import logging
import os
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Any, Dict

from flask import Flask
from flask_sqlalchemy import SQLAlchemy

# Istanza globale di SQLAlchemy, inizializzata in create_app()
db = SQLAlchemy()

_STANDARD_LOG_ATTRS = {
    "name", "msg", "args", "levelname", "levelno", "pathname", "filename",
    "module", "exc_info", "exc_text", "stack_info", "lineno", "funcName",
    "created", "msecs", "relativeCreated", "thread", "threadName",
    "processName", "process", "taskName", "message", "asctime",
}


class JsonFormatter(logging.Formatter):
    """
    Formatter che produce una riga JSON per ogni record.

    Campi: timestamp (ISO 8601 UTC), level, logger, module, message,
    più eventuali campi passati con extra={...} raccolti sotto "extra".
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        log_record: Dict[str, Any] = {
            "timestamp": timestamp.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)

        extra_fields = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _STANDARD_LOG_ATTRS
        }
        if extra_fields:
            log_record["extra"] = extra_fields

        return json.dumps(log_record, ensure_ascii=False, default=str)


def init_extensions(app: Flask) -> None:
    """
    Inizializza le estensioni collegate all'app Flask.

    Chiamata da create_app(): prima il logging, poi il database, così che
    eventuali errori di connessione finiscano già nel log JSON.
    """
    _init_logging(app)
    _ensure_sqlite_directory(app)
    db.init_app(app)


def _ensure_sqlite_directory(app: Flask) -> None:
    """Crea la cartella del file SQLite se l'URI punta a un file locale."""
    uri = app.config.get("SQLALCHEMY_DATABASE_URI", "")
    prefix = "sqlite:///"
    if not uri.startswith(prefix):
        return
    db_path = uri[len(prefix):]
    directory = os.path.dirname(db_path)
    if directory:
        os.makedirs(directory, exist_ok=True)


def _init_logging(app: Flask) -> None:
    """
    Configura il logging applicativo:

    - handler su file con RotatingFileHandler
    - handler su console (stream)
    - formatter JSON strutturato, condiviso da entrambi

    I servizi (registro fatture, retention) scrivono eventi strutturati
    tramite app.services.logging.log_structured_event.
    """
    log_dir = app.config.get("LOG_DIR")
    log_file_name = app.config.get("LOG_FILE_NAME", "app.log")
    log_level_name = app.config.get("LOG_LEVEL", "INFO")

    os.makedirs(log_dir, exist_ok=True)
    log_path = os.path.join(log_dir, log_file_name)

    log_level = getattr(logging, log_level_name.upper(), logging.INFO)
    json_formatter = JsonFormatter()

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # create_app può essere chiamata più volte (test): gli handler si installano una volta sola
    if not getattr(root_logger, "_json_logging_configured", False):
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)

        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=5 * 1024 * 1024,  # 5 MB
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setFormatter(json_formatter)

        console_handler = logging.StreamHandler()
        console_handler.setFormatter(json_formatter)

        root_logger.addHandler(file_handler)
        root_logger.addHandler(console_handler)
        root_logger._json_logging_configured = True  # type: ignore[attr-defined]

    for handler in root_logger.handlers:
        handler.setLevel(log_level)

    app.logger.setLevel(log_level)

    # SQL generato da SQLAlchemy solo in debug esplicito
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    app.logger.info(
        "Logging JSON inizializzato.",
        extra={
            "component": "logging",
            "log_path": log_path,
            "level": log_level_name,
        },
    )
