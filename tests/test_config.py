import pytest

from balpivot.config import DEFAULT_ENCODING, DEFAULT_PORT, Settings
from balpivot.records import FilterError, ReportFilters


class TestSettings:
    def test_defaults(self):
        settings = Settings.from_env({})
        assert settings == Settings()
        assert settings.encoding == DEFAULT_ENCODING
        assert settings.port == DEFAULT_PORT
        assert settings.cors_origins == ("*",)

    def test_overrides(self):
        settings = Settings.from_env(
            {
                "BALPIVOT_ENCODING": "cp1252",
                "BALPIVOT_HOST": "0.0.0.0",
                "BALPIVOT_PORT": "8080",
                "BALPIVOT_CORS_ORIGINS": "https://a.example, https://b.example",
                "BALPIVOT_SHEET_TITLE": "Saldos",
            }
        )
        assert settings.encoding == "cp1252"
        assert settings.host == "0.0.0.0"
        assert settings.port == 8080
        assert settings.cors_origins == ("https://a.example", "https://b.example")
        assert settings.sheet_title == "Saldos"

    def test_blank_values_keep_defaults(self):
        assert Settings.from_env({"BALPIVOT_PORT": "  "}).port == DEFAULT_PORT

    @pytest.mark.parametrize("port", ["abc", "0", "70000"])
    def test_invalid_port(self, port):
        with pytest.raises(ValueError, match="BALPIVOT_PORT"):
            Settings.from_env({"BALPIVOT_PORT": port})

    @pytest.mark.parametrize(
        "title", ["x" * 32, "Saldos/2024", "Saldos: 2024", "[Saldos]"]
    )
    def test_invalid_sheet_title(self, title):
        with pytest.raises(ValueError, match="BALPIVOT_SHEET_TITLE"):
            Settings.from_env({"BALPIVOT_SHEET_TITLE": title})

    def test_sheet_title_at_length_limit(self):
        title = "x" * 31
        assert Settings.from_env({"BALPIVOT_SHEET_TITLE": title}).sheet_title == title

    def test_reads_os_environ(self, monkeypatch):
        monkeypatch.setenv("BALPIVOT_PORT", "4000")
        assert Settings.from_env().port == 4000


class TestReportFiltersFromForm:
    def test_parses_form(self):
        filters = ReportFilters.from_form(
            {
                "entidad": " 7 ",
                "balhistDesde": "2023-11",
                "balhistHasta": "2024-02",
                "indicesDesde": "2023-01",
                "indicesHasta": "",
            }
        )
        assert filters == ReportFilters(7, "2023-11", "2024-02", "2023-01", None)

    def test_index_range_defaults_to_balance_range(self):
        filters = ReportFilters(7, "2023-11", "2024-02")
        assert filters.index_range == ("2023-11", "2024-02")

    def test_inverted_range_is_accepted(self):
        filters = ReportFilters.from_form(
            {"entidad": "1", "balhistDesde": "2024-02", "balhistHasta": "2023-11"}
        )
        assert filters.balance_from > filters.balance_to

    @pytest.mark.parametrize("entity", ["", "abc", "1.5", "-3", None])
    def test_bad_entity(self, entity):
        with pytest.raises(FilterError, match="entidad"):
            ReportFilters.from_form(
                {
                    "entidad": entity,
                    "balhistDesde": "2024-01",
                    "balhistHasta": "2024-02",
                }
            )

    @pytest.mark.parametrize("month", ["", "2024-13", "01-2024", "202401"])
    def test_bad_month(self, month):
        with pytest.raises(FilterError, match="balhistDesde"):
            ReportFilters.from_form(
                {"entidad": "1", "balhistDesde": month, "balhistHasta": "2024-02"}
            )
