"""
Test delle API JSON /api/invoice e del download /payments/<file>.
"""
import io
import re

import pytest

from app.extensions import db
from app.models import Invoice


def _create(client, **overrides):
    body = {"supplier": "Acme", "organization_type": "LLC", "amount": 150.00}
    body.update(overrides)
    return client.post("/api/invoice/create", json=body)


def _upload(client, invoice_id, content, filename="receipt.pdf", mimetype="application/pdf"):
    return client.post(
        f"/api/invoice/upload-payment/{invoice_id}",
        data={"payment": (io.BytesIO(content), filename, mimetype)},
        content_type="multipart/form-data",
    )


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.get_json() == {"status": "ok"}


def test_full_payment_scenario(client, pdf_bytes):
    response = _create(client)
    assert response.status_code == 201
    assert response.get_json() == {"success": True, "id": 1}

    unpaid = client.get("/api/invoice/list").get_json()
    assert [(row["id"], row["paid"]) for row in unpaid] == [(1, False)]
    assert unpaid[0]["paid_at"] is None
    assert unpaid[0]["payment_file"] is None

    response = _upload(client, 1, pdf_bytes)
    assert response.status_code == 200
    body = response.get_json()
    assert body["success"] is True
    assert re.fullmatch(r"/payments/invoice_1_\d+\.pdf", body["payment_file"])
    paid_at = body["paid_at"]

    assert client.get("/api/invoice/list").get_json() == []

    history = client.get("/api/invoice/history").get_json()
    assert len(history) == 1
    assert history[0]["id"] == 1
    assert history[0]["paid"] is True
    assert history[0]["paid_at"] == paid_at
    assert history[0]["payment_file"] == body["payment_file"]

    download = client.get(body["payment_file"])
    assert download.status_code == 200
    assert download.data == pdf_bytes
    assert download.mimetype == "application/pdf"


def test_create_accepts_form_data(client):
    response = client.post(
        "/api/invoice/create",
        data={
            "supplier": "Acme",
            "organization_type": "LLC",
            "amount": "12,30",
            "need_new_request": "on",
            "arrival_date": "2026-10-01",
        },
    )
    assert response.status_code == 201

    invoice = client.get(f"/api/invoice/{response.get_json()['id']}").get_json()
    assert invoice["amount"] == 12.3
    assert invoice["need_new_request"] is True
    assert invoice["arrival_date"] == "2026-10-01"


@pytest.mark.parametrize("missing", ["supplier", "organization_type", "amount"])
def test_create_missing_field_is_400(client, missing):
    body = {"supplier": "Acme", "organization_type": "LLC", "amount": 1}
    body.pop(missing)

    response = client.post("/api/invoice/create", json=body)

    assert response.status_code == 400
    assert response.get_json()["success"] is False
    assert db.session.query(Invoice).count() == 0


def test_get_unknown_invoice_is_404(client):
    assert client.get("/api/invoice/5").status_code == 404


def test_update_flag(client):
    _create(client)

    response = client.post("/api/invoice/update/1", json={"need_new_request": True})

    assert response.status_code == 200
    assert response.get_json() == {"success": True}
    assert client.get("/api/invoice/1").get_json()["need_new_request"] is True


def test_update_unknown_invoice_is_404_and_creates_nothing(client):
    response = client.post("/api/invoice/update/999", json={"need_new_request": True})

    assert response.status_code == 404
    assert response.get_json()["success"] is False
    assert client.get("/api/invoice/list").get_json() == []


def test_mark_paid(client):
    _create(client)

    response = client.post("/api/invoice/mark-paid/1")

    assert response.status_code == 200
    body = response.get_json()
    assert body["success"] is True
    history = client.get("/api/invoice/history").get_json()
    assert [(row["id"], row["paid_at"], row["payment_file"]) for row in history] == [(1, body["paid_at"], None)]


def test_mark_paid_unknown_is_404(client):
    assert client.post("/api/invoice/mark-paid/3").status_code == 404


def test_repeat_payment_is_409_when_disabled(app, client):
    app.config["ALLOW_REPEAT_PAYMENT"] = False
    _create(client)
    client.post("/api/invoice/mark-paid/1")

    assert client.post("/api/invoice/mark-paid/1").status_code == 409


def test_non_pdf_upload_is_rejected(client, payments_dir):
    _create(client)

    response = _upload(client, 1, b"\x89PNG\r\n", filename="receipt.png", mimetype="image/png")

    assert response.status_code == 400
    assert response.get_json()["success"] is False
    invoice = client.get("/api/invoice/1").get_json()
    assert invoice["paid"] is False
    assert invoice["payment_file"] is None
    assert list(payments_dir.iterdir()) == []


def test_upload_without_file_is_rejected(client):
    _create(client)

    response = client.post("/api/invoice/upload-payment/1", data={}, content_type="multipart/form-data")

    assert response.status_code == 400


def test_upload_with_two_files_is_rejected(client, pdf_bytes):
    _create(client)

    response = client.post(
        "/api/invoice/upload-payment/1",
        data={
            "payment": [
                (io.BytesIO(pdf_bytes), "a.pdf", "application/pdf"),
                (io.BytesIO(pdf_bytes), "b.pdf", "application/pdf"),
            ]
        },
        content_type="multipart/form-data",
    )

    assert response.status_code == 400
    assert client.get("/api/invoice/1").get_json()["paid"] is False


def test_upload_unknown_invoice_is_404(client, pdf_bytes, payments_dir):
    response = _upload(client, 12, pdf_bytes)

    assert response.status_code == 404
    assert list(payments_dir.iterdir()) == []


def test_upload_too_large_is_413(app, client):
    app.config["MAX_CONTENT_LENGTH"] = 64
    _create(client)

    response = _upload(client, 1, b"%PDF-" + b"x" * 1024)

    assert response.status_code == 413


def test_download_after_retention_is_404(client, pdf_bytes, age_payment):
    _create(client)
    reference = _upload(client, 1, pdf_bytes).get_json()["payment_file"]
    age_payment(1, 11)

    client.get("/api/invoice/history")

    assert client.get(reference).status_code == 404
    invoice = client.get("/api/invoice/1").get_json()
    assert invoice["paid"] is True
    assert invoice["payment_file"] is None


def test_download_dangling_reference_is_404(client, pdf_bytes, payments_dir):
    _create(client)
    reference = _upload(client, 1, pdf_bytes).get_json()["payment_file"]
    (payments_dir / reference.rsplit("/", 1)[1]).unlink()

    assert client.get(reference).status_code == 404


@pytest.mark.parametrize("path", ["/payments/../test.sqlite", "/payments/..%2Ftest.sqlite", "/payments/missing.pdf"])
def test_download_outside_or_missing_is_404(client, path):
    assert client.get(path).status_code == 404
