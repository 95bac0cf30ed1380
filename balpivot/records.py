"""Record types shared by the parsers, the join and the pivot.

Every source row is decoded into one of the frozen dataclasses below.
Parsers return a :class:`ParseResult` instead of a bare list so that
"no rows matched", "range was inverted" and "workbook was unreadable" stay
distinguishable for the caller.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, Literal, TypeVar

from .periods import is_month

NOT_FOUND = "No encontrada"

R = TypeVar("R")

ParseStatus = Literal["ok", "invalid_range", "unreadable"]


class FilterError(ValueError):
    """Raised when report filters cannot be parsed."""


@dataclass(frozen=True)
class BalanceRecord:
    entity_id: int
    account_number: int
    period: str  # MM-YYYY
    balance: int


@dataclass(frozen=True)
class AccountRecord:
    account_number: int
    description: str
    closed_date: str | None = None


@dataclass(frozen=True)
class EntityRecord:
    entity_id: int
    full_name: str
    short_name: str


@dataclass(frozen=True)
class IndexRecord:
    period: str  # MM-YYYY
    cpi_index: float


@dataclass(frozen=True)
class CombinedRecord:
    """A balance row with its account description and entity name resolved."""

    entity_id: int
    entity_name: str
    account_number: int
    account_description: str
    period: str
    balance: int


@dataclass(frozen=True)
class ParseResult(Generic[R]):
    """Records decoded from one source plus how the decode went.

    ``skipped`` counts rows dropped for being malformed or outside the
    filters. ``status`` is ``"ok"`` unless the whole source was rejected.
    """

    records: tuple[R, ...] = ()
    status: ParseStatus = "ok"
    skipped: int = 0

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    def __iter__(self) -> Iterator[R]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)


@dataclass(frozen=True)
class ReportRow:
    """One account line of the pivoted report.

    ``entity_id`` and ``entity_name`` are only set on the first row of a
    report; they are ``None`` (a blank cell) everywhere else.
    """

    entity_id: int | None
    entity_name: str | None
    account_number: int
    account_description: str
    balances: dict[str, int] = field(default_factory=dict)

    def values(self, months: list[str]) -> list[Any]:
        """Cell values in report column order."""
        return [
            self.entity_id,
            self.entity_name,
            self.account_number,
            self.account_description,
            *(self.balances.get(m, 0) for m in months),
        ]


@dataclass(frozen=True)
class Report:
    entity_id: int
    months: list[str]
    rows: list[ReportRow]


@dataclass(frozen=True)
class ReportFile:
    filename: str
    content: bytes
    report: Report


@dataclass(frozen=True)
class NoMatchingRecords:
    """Terminal outcome when no balance row survives the filters."""

    reason: Literal["invalid_range", "no_rows"]
    message: str = (
        "No se encontraron registros de balance con los filtros seleccionados."
    )


def _parse_month(value: Any, field_name: str) -> str:
    text = str(value or "").strip()
    if not is_month(text):
        raise FilterError(f"{field_name} must be a month in YYYY-MM form, got {text!r}")
    return text


def _optional_month(value: Any, field_name: str) -> str | None:
    if value is None or not str(value).strip():
        return None
    return _parse_month(value, field_name)


@dataclass(frozen=True)
class ReportFilters:
    """Entity and month ranges (``YYYY-MM``) selecting what to report.

    An inverted range (``balance_from > balance_to``) is accepted here; the
    ledger parser turns it into an empty ``invalid_range`` result.
    """

    entity_id: int
    balance_from: str
    balance_to: str
    index_from: str | None = None
    index_to: str | None = None

    @classmethod
    def from_form(cls, form: Mapping[str, Any]) -> "ReportFilters":
        """Build filters from the upload form fields.

        Expects ``entidad``, ``balhistDesde`` and ``balhistHasta``;
        ``indicesDesde`` / ``indicesHasta`` are optional.
        """
        raw_entity = str(form.get("entidad") or "").strip()
        try:
            entity_id = int(raw_entity)
        except ValueError:
            raise FilterError(
                f"entidad must be an integer, got {raw_entity!r}"
            ) from None
        if entity_id < 0:
            raise FilterError(f"entidad must be non-negative, got {entity_id}")
        return cls(
            entity_id=entity_id,
            balance_from=_parse_month(form.get("balhistDesde"), "balhistDesde"),
            balance_to=_parse_month(form.get("balhistHasta"), "balhistHasta"),
            index_from=_optional_month(form.get("indicesDesde"), "indicesDesde"),
            index_to=_optional_month(form.get("indicesHasta"), "indicesHasta"),
        )

    @property
    def index_range(self) -> tuple[str, str]:
        """Month range for the price index, defaulting to the balance range."""
        return (
            self.index_from or self.balance_from,
            self.index_to or self.balance_to,
        )
