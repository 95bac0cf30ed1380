"""Shared fixtures and helpers for the balpivot test suite."""

import io
import zipfile
from datetime import datetime
from typing import Any

import pytest
from openpyxl import Workbook

from balpivot.records import ReportFilters


def _tsv(rows: list[list[Any]], quote: bool = False, eol: str = "\n") -> bytes:
    """Encode rows as a latin-1 tab-separated export."""
    lines = []
    for row in rows:
        fields = [str(v) for v in row]
        if quote:
            fields = [f'"{f}"' for f in fields]
        lines.append("\t".join(fields))
    return eol.join(lines).encode("latin-1")


def _index_workbook(rows: list[tuple[Any, ...]]) -> bytes:
    """Build an .xlsx workbook whose first sheet holds ``rows``."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Indices"
    for row in rows:
        ws.append(list(row))
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def _replace_member(data: bytes, name: str, content: bytes) -> bytes:
    """Return a copy of the zip archive ``data`` with member ``name`` replaced."""
    buf = io.BytesIO()
    with zipfile.ZipFile(io.BytesIO(data)) as src, zipfile.ZipFile(buf, "w") as dst:
        for item in src.infolist():
            body = content if item.filename == name else src.read(item)
            dst.writestr(item, body)
    return buf.getvalue()


def _filters(**kwargs) -> ReportFilters:
    """Helper to create ReportFilters with defaults."""
    defaults = {
        "entity_id": 7,
        "balance_from": "2023-11",
        "balance_to": "2024-02",
    }
    defaults.update(kwargs)
    return ReportFilters(**defaults)


# Entity 7 has three accounts over Nov 2023 - Jan 2024; entity 9 is noise.
LEDGER_ROWS = [
    ['"7"', '"202311"', '"1100"', "1500"],
    ['"7"', '"202312"', '"1100"', "1600"],
    ['"7"', '"202311"', '"2100"', "-300"],
    ['"9"', '"202311"', '"1100"', "999"],
    ['"7"', '"202401"', '"1050"', "42"],
    ['"9"', '"202401"', '"2100"', "111"],
]

ACCOUNT_ROWS = [
    ['"1050"', '"Caja chica"', "/  /"],
    ['"1100"', '"Bancos"', "/  /"],
    ['"2100"', '"Proveedores"', "31/12/2022"],
]

ENTITY_ROWS = [
    ['"7"', '"Banco de Prueba S.A."', '"PRUEBA"'],
    ['"9"', '"Otra Entidad S.A."', '"OTRA"'],
]

INDEX_ROWS = [
    (datetime(2023, 11, 1), "3,14"),
    (datetime(2023, 12, 1), "3,50"),
    (datetime(2024, 1, 1), 4.25),
]


@pytest.fixture
def ledger_bytes() -> bytes:
    return _tsv(LEDGER_ROWS)


@pytest.fixture
def accounts_bytes() -> bytes:
    return _tsv(ACCOUNT_ROWS)


@pytest.fixture
def entities_bytes() -> bytes:
    return _tsv(ENTITY_ROWS)


@pytest.fixture
def index_bytes() -> bytes:
    return _index_workbook(INDEX_ROWS)


@pytest.fixture
def filters() -> ReportFilters:
    return _filters()
