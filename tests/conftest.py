"""
Fixture pytest condivise.

Ogni test ha il proprio file SQLite e la propria cartella contabili sotto
tmp_path, con un app context attivo per chiamare direttamente i servizi.
"""
from datetime import timedelta
from pathlib import Path

import pytest

from app import create_app
from app.extensions import db
from app.models import Invoice
from app.models.invoice import utcnow
from config import TestConfig

PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\ntrailer\n<< /Root 1 0 R >>\n%%EOF\n"


def make_app(tmp_path: Path, **overrides):
    settings = {
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'test.sqlite'}",
        "DATA_DIR": str(tmp_path),
        "PAYMENTS_DIR": str(tmp_path / "payments"),
        "LOG_DIR": str(tmp_path / "logs"),
    }
    settings.update(overrides)
    return create_app(TestConfig, **settings)


@pytest.fixture
def app(tmp_path):
    app = make_app(tmp_path)
    with app.app_context():
        yield app
        db.session.remove()
        db.engine.dispose()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def payments_dir(app) -> Path:
    return Path(app.config["PAYMENTS_DIR"])


@pytest.fixture
def pdf_bytes() -> bytes:
    return PDF_BYTES


@pytest.fixture
def age_payment(app):
    """Sposta indietro paid_at di una fattura di `days` giorni."""

    def _age(invoice_id: int, days: float) -> None:
        db.session.query(Invoice).filter(Invoice.id == invoice_id).update(
            {"paid_at": utcnow() - timedelta(days=days)},
            synchronize_session=False,
        )
        db.session.commit()

    return _age


@pytest.fixture
def reload_invoice(app):
    """Rilegge una fattura dal database scartando lo stato in sessione."""

    def _reload(invoice_id: int) -> Invoice:
        db.session.expire_all()
        return db.session.get(Invoice, invoice_id)

    return _reload


@pytest.fixture
def app_factory(tmp_path):
    """Crea un'altra app sullo stesso database e cartella dei test."""

    def _factory(**overrides):
        return make_app(tmp_path, **overrides)

    return _factory
