"""
Tests for Spanish date parsing.
"""
from datetime import date

import pytest

from app.core.spanish_dates import normalize_db_date, parse_spanish_date, to_date


class TestParseSpanishDate:

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("11/febrero/2025", "2025-02-11"),
            ("11-febrero-2025", "2025-02-11"),
            ("8 de diciembre de 2025", "2025-12-08"),
            ("diciembre/2025", "2025-12-01"),
            ("2025-02-11", "2025-02-11"),
            ("02/02/2006", "2006-02-02"),
            ('{11/Febrero/2025}', "2025-02-11"),
            ('"3 de Marzo de 2024"', "2024-03-03"),
        ],
    )
    def test_known_formats(self, raw, expected):
        assert parse_spanish_date(raw) == expected

    def test_accented_month_name(self):
        assert parse_spanish_date("5/Séptiembre/2024") == "2024-09-05"

    def test_unknown_month_name(self):
        assert parse_spanish_date("11/brumario/2025") is None

    def test_numeric_month_out_of_range(self):
        assert parse_spanish_date("11/13/2025") is None

    @pytest.mark.parametrize("raw", [None, "", "   ", "{}", "mañana"])
    def test_unparseable(self, raw):
        assert parse_spanish_date(raw) is None


class TestNormalizeDbDate:

    def test_iso_passes_through(self):
        assert normalize_db_date("2025-02-11") == "2025-02-11"

    def test_spanish_text(self):
        assert normalize_db_date("11/febrero/2025") == "2025-02-11"

    def test_empty_is_today(self):
        assert normalize_db_date("") == date.today().isoformat()
        assert normalize_db_date(None) == date.today().isoformat()

    def test_iso_datetime_fallback(self):
        assert normalize_db_date("2025-02-11T10:30:00") == "2025-02-11"

    def test_garbage_falls_back_to_raw(self):
        assert normalize_db_date("a fin de mes") == "a fin de mes"
        assert normalize_db_date("11/brumario/2025") == "11/brumario/2025"


def test_to_date():
    assert to_date("11/febrero/2025") == date(2025, 2, 11)
    assert to_date("nunca") is None
