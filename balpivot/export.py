"""Report serializer: render pivoted rows as an ``.xlsx`` workbook."""

from __future__ import annotations

import io
from collections.abc import Iterable

from openpyxl import Workbook

from .config import DEFAULT_SHEET_TITLE
from .records import ReportRow

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

REPORT_HEADERS = ("Entidad", "Nombre Entidad", "Cuenta", "Descripción Cuenta")


def report_filename(entity_id: int) -> str:
    """Suggested download name for an entity's report."""
    return f"Reporte_Pivoteado_Entidad_{entity_id}.xlsx"


def serialize_report(
    rows: Iterable[ReportRow],
    months: list[str],
    sheet_title: str = DEFAULT_SHEET_TITLE,
) -> bytes:
    """Write rows to a single-sheet workbook and return its bytes.

    Columns are the four identity headers followed by one column per month,
    in the order given. Blank entity cells are left empty.
    """
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_title
    ws.append([*REPORT_HEADERS, *months])
    for row in rows:
        ws.append(row.values(months))

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()
