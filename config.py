"""
Modulo di configurazione per l'applicazione Flask.
"""

import os
from pathlib import Path


BASE_DIR = Path(__file__).resolve().parent


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    """Configurazione base, comune a tutti gli ambienti."""

    # Chiave segreta: in produzione deve essere sovrascritta da variabile d'ambiente
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # Cartella dati: database SQLite e contabili di pagamento vivono qui
    DATA_DIR = os.environ.get("DATA_DIR", str(BASE_DIR / "data"))

    # --- CONFIGURAZIONE DATABASE ----------------------------------------------
    DEFAULT_DB_URL = f"sqlite:///{Path(DATA_DIR) / 'app.sqlite'}"

    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", DEFAULT_DB_URL)
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # --- CONTABILI DI PAGAMENTO (UPLOAD & RETENTION) --------------------------
    PAYMENTS_DIR = os.environ.get("PAYMENTS_DIR", str(Path(DATA_DIR) / "payments"))

    # Giorni dopo i quali il PDF di una fattura pagata viene eliminato
    RETENTION_DAYS = int(os.environ.get("RETENTION_DAYS", "10"))

    # Pulizia delle contabili scadute all'avvio dell'app
    SWEEP_ON_STARTUP = _env_bool("SWEEP_ON_STARTUP", True)

    # Se False, un secondo pagamento sulla stessa fattura risponde 409
    ALLOW_REPEAT_PAYMENT = _env_bool("ALLOW_REPEAT_PAYMENT", True)

    # Limite massimo dimensione file upload (es. 16 MB)
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024

    # --- LOGGING -------------------------------------------------------------
    LOG_DIR = os.environ.get("LOG_DIR", str(BASE_DIR / "logs"))
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    LOG_FILE_NAME = os.environ.get("LOG_FILE_NAME", "app.log")


class DevConfig(Config):
    """Configurazione per ambiente di sviluppo."""
    DEBUG = True
    ENV = "development"
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "DEBUG")


class ProdConfig(Config):
    """Configurazione per ambiente di produzione."""
    DEBUG = False
    ENV = "production"
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


class TestConfig(Config):
    """Configurazione per la suite pytest: i percorsi vengono sovrascritti dalle fixture."""
    TESTING = True
    DEBUG = False
    ENV = "testing"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SWEEP_ON_STARTUP = False
    LOG_LEVEL = "WARNING"
