"""
Pacchetto principale dell'applicazione Flask.
"""

from flask import Flask, jsonify

from config import DevConfig
from .extensions import init_extensions


def create_app(config_class=DevConfig, **overrides) -> Flask:
    """
    Factory dell'applicazione.

    All'avvio: logging, database, migrazioni di schema, cartella delle
    contabili e un primo sweep della retention (se SWEEP_ON_STARTUP).
    `overrides` sovrascrive singole chiavi di configurazione (usato dai test).
    """
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_class)
    app.config.update(overrides)
    init_extensions(app)

    _register_blueprints(app)
    _prepare_storage(app)

    app.logger.info("Applicazione Flask inizializzata.")

    @app.route("/health")
    def healthcheck():
        return jsonify({"status": "ok"}), 200

    return app


def _register_blueprints(app: Flask) -> None:
    # Download contabili
    from .web import payments_bp

    app.register_blueprint(payments_bp)

    # API
    from .api import api_invoices_bp

    app.register_blueprint(api_invoices_bp, url_prefix="/api/invoice")


def _prepare_storage(app: Flask) -> None:
    from .migrations import apply_migrations
    from .services import retention_service, settings_service

    with app.app_context():
        applied = apply_migrations()
        if applied:
            app.logger.info(
                "Schema database aggiornato.",
                extra={"component": "migrations", "versions": applied},
            )

        payments_dir = settings_service.get_payments_storage_path()
        app.logger.info(
            "Cartella contabili pronta.",
            extra={"component": "storage", "payments_dir": payments_dir},
        )

        if app.config.get("SWEEP_ON_STARTUP", True):
            retention_service.sweep()
