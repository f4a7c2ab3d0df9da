"""
Test della retention delle contabili di pagamento.
"""
import pytest

from app.extensions import db
from app.models import Invoice
from app.services import invoice_service, payment_file_service, retention_service
from app.repositories.invoice_repo import InvoiceRepository


def _paid_with_file(pdf_bytes, supplier="Acme"):
    invoice_id = invoice_service.create_invoice(supplier, "LLC", 150)
    _, reference = invoice_service.attach_payment_file(invoice_id, pdf_bytes, "application/pdf")
    return invoice_id, reference


def _file_for(payments_dir, reference):
    return payments_dir / reference.rsplit("/", 1)[1]


def test_expired_file_is_deleted_and_reference_cleared(app, payments_dir, pdf_bytes, age_payment, reload_invoice):
    invoice_id, reference = _paid_with_file(pdf_bytes)
    age_payment(invoice_id, 11)
    paid_at_before = reload_invoice(invoice_id).paid_at

    result = retention_service.sweep(10)

    assert result.expired == 1
    assert result.cleared == 1
    assert not _file_for(payments_dir, reference).exists()
    invoice = reload_invoice(invoice_id)
    assert invoice.payment_file is None
    assert invoice.paid is True
    assert invoice.paid_at == paid_at_before


def test_file_within_window_is_untouched(app, payments_dir, pdf_bytes, age_payment, reload_invoice):
    invoice_id, reference = _paid_with_file(pdf_bytes)
    age_payment(invoice_id, 9)

    result = retention_service.sweep(10)

    assert result.examined == 1
    assert result.expired == 0
    assert _file_for(payments_dir, reference).exists()
    assert reload_invoice(invoice_id).payment_file == reference


def test_paid_without_file_is_ignored(app, age_payment):
    invoice_id = invoice_service.create_invoice("Acme", "LLC", 10)
    invoice_service.mark_paid(invoice_id)
    age_payment(invoice_id, 30)

    result = retention_service.sweep(10)

    assert result.examined == 0
    assert db.session.get(Invoice, invoice_id).paid is True


def test_already_missing_file_still_clears_reference(app, payments_dir, pdf_bytes, age_payment, reload_invoice):
    invoice_id, reference = _paid_with_file(pdf_bytes)
    _file_for(payments_dir, reference).unlink()
    age_payment(invoice_id, 11)

    result = retention_service.sweep(10)

    assert result.failed == 0
    assert result.cleared == 1
    assert reload_invoice(invoice_id).payment_file is None


def test_deletion_error_skips_only_that_invoice(app, payments_dir, pdf_bytes, age_payment, reload_invoice, monkeypatch):
    stuck_id, stuck_ref = _paid_with_file(pdf_bytes, supplier="Stuck")
    ok_id, ok_ref = _paid_with_file(pdf_bytes, supplier="Ok")
    age_payment(stuck_id, 11)
    age_payment(ok_id, 11)

    real_delete = payment_file_service.delete_payment_file

    def _delete(reference):
        if reference == stuck_ref:
            raise PermissionError("permission denied")
        return real_delete(reference)

    monkeypatch.setattr(payment_file_service, "delete_payment_file", _delete)

    result = retention_service.sweep(10)

    assert result.failed == 1
    assert result.cleared == 1
    assert reload_invoice(stuck_id).payment_file == stuck_ref
    assert reload_invoice(ok_id).payment_file is None

    # Al giro successivo, con il filesystem di nuovo disponibile, la fattura viene pulita
    monkeypatch.undo()
    retry = retention_service.sweep(10)
    assert retry.cleared == 1
    assert reload_invoice(stuck_id).payment_file is None
    assert not _file_for(payments_dir, stuck_ref).exists()


def test_second_sweep_is_a_noop(app, pdf_bytes, age_payment):
    invoice_id, _ = _paid_with_file(pdf_bytes)
    age_payment(invoice_id, 11)

    retention_service.sweep(10)
    second = retention_service.sweep(10)

    assert second.examined == 0
    assert second.failed == 0


def test_clear_does_not_touch_a_newer_upload(app, pdf_bytes, reload_invoice):
    invoice_id, reference = _paid_with_file(pdf_bytes)
    repo = InvoiceRepository(db.session)

    assert repo.clear_payment_file(invoice_id, "/payments/invoice_1_0.pdf") == 0
    db.session.commit()
    assert reload_invoice(invoice_id).payment_file == reference


def test_history_triggers_sweep(app, payments_dir, pdf_bytes, age_payment, reload_invoice):
    invoice_id, reference = _paid_with_file(pdf_bytes)
    age_payment(invoice_id, 11)

    assert invoice_service.list_history() == []
    assert reload_invoice(invoice_id).payment_file is None
    assert not _file_for(payments_dir, reference).exists()


def test_sweep_runs_at_startup(app, app_factory, payments_dir, pdf_bytes, age_payment, reload_invoice):
    invoice_id, reference = _paid_with_file(pdf_bytes)
    age_payment(invoice_id, 11)

    app_factory(SWEEP_ON_STARTUP=True)

    assert reload_invoice(invoice_id).payment_file is None
    assert not _file_for(payments_dir, reference).exists()


@pytest.mark.parametrize("reference", ["/payments/../test.sqlite", "..\\test.sqlite"])
def test_delete_never_leaves_payments_directory(app, tmp_path, reference):
    database = tmp_path / "test.sqlite"
    assert database.exists()

    assert payment_file_service.delete_payment_file(reference) is False
    assert database.exists()
