"""CLI entry point for balance pivot reports.

Usage:
    # Build a report from local exports
    balpivot report --balhist BALHIST.TXT --cuentas CUENTAS.TXT \\
        --nomina NOMINA.TXT --entidad 7 --desde 2023-11 --hasta 2024-02

    # Inspect a price-index workbook
    balpivot indices Indices.xlsx --desde 2023-01 --hasta 2023-12

    # Serve the upload form
    balpivot serve
"""

import logging
import sys
from pathlib import Path

import click
from dotenv import find_dotenv, load_dotenv

# Load .env by walking upward from the CWD.
_dotenv_path = find_dotenv(usecwd=True)
if _dotenv_path:
    load_dotenv(_dotenv_path)

from balpivot.config import Settings
from balpivot.ingest import parse_index
from balpivot.periods import is_month
from balpivot.pipeline import ReportFiles, generate_report
from balpivot.records import FilterError, NoMatchingRecords, ReportFilters

log = logging.getLogger(__name__)


def _configure_logging(quiet: bool) -> None:
    level = logging.WARNING if quiet else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )


def _load_settings() -> Settings:
    try:
        return Settings.from_env()
    except ValueError as e:
        raise click.ClickException(str(e))


def _month_option(ctx: click.Context, param: click.Parameter, value: str | None):
    if value is not None and not is_month(value):
        raise click.BadParameter(f"expected YYYY-MM, got {value!r}")
    return value


_input_file = click.Path(exists=True, dir_okay=False, path_type=Path)


def _month_range_options(fn):
    """Attach the required --desde / --hasta month options."""
    fn = click.option(
        "--hasta", required=True, callback=_month_option, help="Last month (YYYY-MM)"
    )(fn)
    return click.option(
        "--desde", required=True, callback=_month_option, help="First month (YYYY-MM)"
    )(fn)


@click.group()
def main():
    """Balance pivot: month-by-account balance reports."""


@main.command()
@click.option(
    "--balhist", required=True, type=_input_file, help="Balance history export"
)
@click.option(
    "--cuentas", required=True, type=_input_file, help="Account catalog export"
)
@click.option("--nomina", required=True, type=_input_file, help="Entity roster export")
@click.option("--indices", type=_input_file, default=None, help="Price-index workbook")
@click.option("--entidad", required=True, type=click.IntRange(min=0), help="Entity id")
@_month_range_options
@click.option(
    "--indices-desde", callback=_month_option, help="First index month (YYYY-MM)"
)
@click.option(
    "--indices-hasta", callback=_month_option, help="Last index month (YYYY-MM)"
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Output .xlsx path (default: Reporte_Pivoteado_Entidad_<id>.xlsx)",
)
@click.option(
    "--force", "-f", is_flag=True, help="Overwrite output file without prompting"
)
@click.option("--quiet", "-q", is_flag=True, help="Suppress verbose output")
def report(
    balhist: Path,
    cuentas: Path,
    nomina: Path,
    indices: Path | None,
    entidad: int,
    desde: str,
    hasta: str,
    indices_desde: str | None,
    indices_hasta: str | None,
    output: Path | None,
    force: bool,
    quiet: bool,
):
    """Build the pivoted balance report for one entity."""
    _configure_logging(quiet)
    settings = _load_settings()

    try:
        filters = ReportFilters.from_form(
            {
                "entidad": entidad,
                "balhistDesde": desde,
                "balhistHasta": hasta,
                "indicesDesde": indices_desde,
                "indicesHasta": indices_hasta,
            }
        )
    except FilterError as e:
        raise click.ClickException(str(e))

    files = ReportFiles(
        balhist=balhist.read_bytes(),
        cuentas=cuentas.read_bytes(),
        nomina=nomina.read_bytes(),
        indices=indices.read_bytes() if indices else None,
    )
    try:
        outcome = generate_report(files, filters, settings)
    except Exception as e:
        log.exception("Report generation failed for entity %d", filters.entity_id)
        raise click.ClickException(f"Report generation failed: {e}")
    if isinstance(outcome, NoMatchingRecords):
        raise click.ClickException(outcome.message)

    if output is None:
        output = Path(outcome.filename)
    if output.suffix.lower() != ".xlsx":
        output = output.with_suffix(".xlsx")
        log.warning("Output path adjusted to %s (added .xlsx suffix)", output)

    if output.exists() and not force:
        click.confirm(
            f"{output} already exists and will be overwritten. Continue?",
            abort=True,
        )

    output.write_bytes(outcome.content)
    log.info(
        "Saved to: %s (%d accounts, %d months)",
        output,
        len(outcome.report.rows),
        len(outcome.report.months),
    )


@main.command()
@click.argument("workbook", type=_input_file)
@_month_range_options
def indices(workbook: Path, desde: str, hasta: str):
    """Print the price-index rows of WORKBOOK within a month range."""
    _configure_logging(quiet=True)
    result = parse_index(workbook.read_bytes(), desde, hasta)
    if result.status == "unreadable":
        raise click.ClickException(f"Could not read workbook: {workbook}")

    click.echo(f"{'Period':<10} {'Index':>12}")
    click.echo("-" * 23)
    for record in result:
        click.echo(f"{record.period:<10} {record.cpi_index:>12.4f}")
    click.echo(f"\n{len(result)} row(s), {result.skipped} skipped ({result.status})")


@main.command()
@click.option("--host", default=None, help="Bind address (default: BALPIVOT_HOST)")
@click.option("--port", type=int, default=None, help="Port (default: BALPIVOT_PORT)")
@click.option("--reload", is_flag=True, help="Reload on code changes")
def serve(host: str | None, port: int | None, reload: bool):
    """Serve the upload form and report endpoint."""
    import uvicorn

    _configure_logging(quiet=False)
    settings = _load_settings()
    uvicorn.run(
        "web.app:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


if __name__ == "__main__":
    main()
