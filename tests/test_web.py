"""Tests for web/app.py: the upload endpoint and static client."""

import io

import pytest
from fastapi.testclient import TestClient
from openpyxl import load_workbook

import web.app as web_app
from balpivot.export import XLSX_MEDIA_TYPE


@pytest.fixture
def client():
    return TestClient(web_app.app)


@pytest.fixture
def upload_files(ledger_bytes, accounts_bytes, entities_bytes, index_bytes):
    return {
        "balhist": ("BALHIST.TXT", ledger_bytes, "text/plain"),
        "cuentas": ("CUENTAS.TXT", accounts_bytes, "text/plain"),
        "nomina": ("NOMINA.TXT", entities_bytes, "text/plain"),
        "indices": ("Indices.xlsx", index_bytes, XLSX_MEDIA_TYPE),
    }


def _form(**overrides) -> dict[str, str]:
    form = {
        "entidad": "7",
        "balhistDesde": "2023-11",
        "balhistHasta": "2024-02",
        "indicesDesde": "2023-01",
        "indicesHasta": "2024-12",
    }
    form.update(overrides)
    return form


class TestUpload:
    def test_returns_workbook_attachment(self, client, upload_files):
        resp = client.post("/upload", data=_form(), files=upload_files)
        assert resp.status_code == 200, resp.text
        assert resp.headers["content-type"] == XLSX_MEDIA_TYPE
        assert (
            resp.headers["content-disposition"]
            == 'attachment; filename="Reporte_Pivoteado_Entidad_7.xlsx"'
        )
        wb = load_workbook(io.BytesIO(resp.content))
        rows = list(wb.active.iter_rows(values_only=True))
        assert [r[2] for r in rows[1:]] == [1050, 1100, 2100]

    def test_indices_part_is_optional(self, client, upload_files):
        del upload_files["indices"]
        resp = client.post("/upload", data=_form(), files=upload_files)
        assert resp.status_code == 200, resp.text

    def test_no_matching_records_is_404(self, client, upload_files):
        resp = client.post("/upload", data=_form(entidad="555"), files=upload_files)
        assert resp.status_code == 404
        assert "No se encontraron registros" in resp.text

    def test_inverted_range_is_404(self, client, upload_files):
        resp = client.post(
            "/upload",
            data=_form(balhistDesde="2024-02", balhistHasta="2023-11"),
            files=upload_files,
        )
        assert resp.status_code == 404

    def test_malformed_filter_is_400(self, client, upload_files):
        resp = client.post("/upload", data=_form(entidad="abc"), files=upload_files)
        assert resp.status_code == 400
        assert "entidad" in resp.text

    def test_missing_file_part_is_rejected(self, client, upload_files):
        del upload_files["nomina"]
        resp = client.post("/upload", data=_form(), files=upload_files)
        assert resp.status_code == 422

    def test_internal_failure_is_500_without_detail(
        self, client, upload_files, monkeypatch
    ):
        def boom(*args, **kwargs):
            raise RuntimeError("secret internals")

        monkeypatch.setattr(web_app, "generate_report", boom)
        resp = client.post("/upload", data=_form(), files=upload_files)
        assert resp.status_code == 500
        assert resp.text == web_app.INTERNAL_FAILURE_MESSAGE
        assert "secret" not in resp.text


class TestIndicesPreview:
    def test_returns_rows(self, client, index_bytes):
        resp = client.post(
            "/api/indices",
            data={"indicesDesde": "2023-12", "indicesHasta": "2024-01"},
            files={"indices": ("Indices.xlsx", index_bytes, XLSX_MEDIA_TYPE)},
        )
        assert resp.status_code == 200
        assert resp.json() == {
            "status": "ok",
            "rows": [
                {"period": "12-2023", "cpi_index": 3.5},
                {"period": "01-2024", "cpi_index": 4.25},
            ],
        }

    def test_unreadable_workbook_status(self, client):
        resp = client.post(
            "/api/indices",
            data={"indicesDesde": "2023-01", "indicesHasta": "2023-12"},
            files={"indices": ("Indices.xlsx", b"nope", XLSX_MEDIA_TYPE)},
        )
        assert resp.status_code == 200
        assert resp.json() == {"status": "unreadable", "rows": []}

    def test_bad_month_is_400(self, client, index_bytes):
        resp = client.post(
            "/api/indices",
            data={"indicesDesde": "12-2023", "indicesHasta": "2024-01"},
            files={"indices": ("Indices.xlsx", index_bytes, XLSX_MEDIA_TYPE)},
        )
        assert resp.status_code == 400


class TestStatic:
    def test_index_page(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        assert 'id="uploadForm"' in resp.text

    def test_client_script(self, client):
        resp = client.get("/static/scripts.js")
        assert resp.status_code == 200
        assert "balhistDesde" in resp.text
