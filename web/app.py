"""Balance pivot web interface: upload the four exports, download the report.

Usage:
    uvicorn web.app:app --reload
    # or: python -m web.app
"""

import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, PlainTextResponse, Response
from fastapi.staticfiles import StaticFiles
from starlette.concurrency import run_in_threadpool

# Ensure project root is on path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))
load_dotenv(PROJECT_ROOT / ".env")

from balpivot.config import Settings
from balpivot.export import XLSX_MEDIA_TYPE
from balpivot.ingest import parse_index
from balpivot.periods import is_month
from balpivot.pipeline import ReportFiles, generate_report
from balpivot.records import FilterError, NoMatchingRecords, ReportFilters

log = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent / "static"

INTERNAL_FAILURE_MESSAGE = "Falló el proceso de la aplicación."

settings = Settings.from_env()

# --- App ---

app = FastAPI(title="Balance Pivot", docs_url=None, redoc_url=None)
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_methods=["*"],
    allow_headers=["*"],
)
app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")


@app.get("/", response_class=HTMLResponse)
async def index():
    return (STATIC_DIR / "index.html").read_text(encoding="utf-8")


@app.post("/upload")
async def upload(
    balhist: UploadFile = File(...),
    cuentas: UploadFile = File(...),
    nomina: UploadFile = File(...),
    indices: UploadFile | None = File(default=None),
    entidad: str = Form(...),
    balhist_desde: str = Form(..., alias="balhistDesde"),
    balhist_hasta: str = Form(..., alias="balhistHasta"),
    indices_desde: str = Form(default="", alias="indicesDesde"),
    indices_hasta: str = Form(default="", alias="indicesHasta"),
):
    """Build the pivoted balance report for one entity.

    Uploads are read into memory for the lifetime of the request only.
    Returns the workbook as an attachment, 400 for malformed filters, 404
    when no balance row matches and 500 for anything else.
    """
    form = {
        "entidad": entidad,
        "balhistDesde": balhist_desde,
        "balhistHasta": balhist_hasta,
        "indicesDesde": indices_desde,
        "indicesHasta": indices_hasta,
    }
    log.info("Filters received: %s", form)
    try:
        filters = ReportFilters.from_form(form)
    except FilterError as e:
        return PlainTextResponse(str(e), status_code=400)

    try:
        files = ReportFiles(
            balhist=await balhist.read(),
            cuentas=await cuentas.read(),
            nomina=await nomina.read(),
            indices=await indices.read() if indices and indices.filename else None,
        )
        outcome = await run_in_threadpool(generate_report, files, filters, settings)
    except Exception:
        log.exception("Report generation failed for entity %d", filters.entity_id)
        return PlainTextResponse(INTERNAL_FAILURE_MESSAGE, status_code=500)

    if isinstance(outcome, NoMatchingRecords):
        return PlainTextResponse(outcome.message, status_code=404)

    return Response(
        content=outcome.content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{outcome.filename}"'},
    )


@app.post("/api/indices")
async def indices_preview(
    indices: UploadFile = File(...),
    indices_desde: str = Form(..., alias="indicesDesde"),
    indices_hasta: str = Form(..., alias="indicesHasta"),
):
    """Parse a price-index workbook and return its rows in range."""
    months = {"indicesDesde": indices_desde, "indicesHasta": indices_hasta}
    for name, value in months.items():
        if not is_month(value):
            raise HTTPException(400, f"{name} must be a month in YYYY-MM form")

    result = await run_in_threadpool(
        parse_index, await indices.read(), indices_desde.strip(), indices_hasta.strip()
    )
    return {
        "status": result.status,
        "rows": [{"period": r.period, "cpi_index": r.cpi_index} for r in result],
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("web.app:app", host=settings.host, port=settings.port, reload=True)
