"""Tests for the spreadsheet export."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from openpyxl import load_workbook

from coincard.export import (
    HEADERS,
    ExportError,
    build_export_rows,
    export_filename,
    format_currency,
    format_date,
    prepare_export_data,
    write_workbook,
)

from tests.conftest import make_record

NOW = datetime(2024, 3, 2, 9, 15, 30, 123000, tzinfo=timezone.utc)


@pytest.fixture
def data():
    records = [
        make_record(1, "Nguyen Van A", "500000", hashtags=["food", "market"]),
        make_record(2, "Tran Thi B", "1234567", minutes=90),
    ]
    return prepare_export_data(records, now=NOW, tz=timezone.utc)


class TestFormatting:
    """Tests for the vi-VN formatting helpers."""

    @pytest.mark.parametrize("amount, expected", [
        (Decimal(500000), "500.000 ₫"),
        (Decimal(0), "0 ₫"),
        (Decimal(1234567), "1.234.567 ₫"),
        (Decimal("999.5"), "1.000 ₫"),
    ])
    def test_format_currency(self, amount, expected):
        """Test dot grouping and the đồng sign."""
        assert format_currency(amount) == expected

    def test_format_date(self):
        """Test the day-first layout."""
        assert format_date(NOW, timezone.utc) == "02/03/2024 09:15:30"

    def test_format_date_from_iso_string(self):
        """Test a stored ISO timestamp."""
        assert format_date("2024-03-01T08:30:00.000Z", timezone.utc) == "01/03/2024 08:30:00"

    def test_export_filename(self):
        """Test the timestamped file name."""
        assert export_filename(NOW) == "CoinCard_Export_2024-03-02T09-15-30-123Z.xlsx"


class TestExportData:
    """Tests for the export aggregate and rows."""

    def test_prepare_export_data(self, data):
        """Test the totals."""
        assert data.record_count == 2
        assert data.total_amount == Decimal(1734567)
        assert data.export_date == "02/03/2024 09:15:30"

    def test_rows_layout(self, data):
        """Test the summary block and header."""
        rows = build_export_rows(data, tz=timezone.utc)
        assert rows[0] == ["Báo cáo dữ liệu CoinCard"]
        assert rows[1] == ["Ngày xuất:", "02/03/2024 09:15:30"]
        assert rows[2] == ["Tổng số bản ghi:", 2]
        assert rows[3] == ["Tổng số tiền:", "1.734.567 ₫"]
        assert rows[4] == []
        assert rows[5] == HEADERS

    def test_record_rows(self, data):
        """Test one row per record."""
        rows = build_export_rows(data, tz=timezone.utc)
        assert rows[6] == [1, "Nguyen Van A", 500000, "500.000 ₫", "01/03/2024 08:30:00", "food, market"]
        assert rows[7] == [2, "Tran Thi B", 1234567, "1.234.567 ₫", "01/03/2024 10:00:00", ""]

    def test_empty_export(self):
        """Test exporting nothing."""
        data = prepare_export_data([], now=NOW, tz=timezone.utc)
        rows = build_export_rows(data)
        assert data.total_amount == 0
        assert len(rows) == 6


class TestWriteWorkbook:
    """Tests for the .xlsx writer."""

    def test_writes_workbook(self, data, tmp_path):
        """Test the written file contents."""
        path = write_workbook(data, tmp_path, now=NOW, tz=timezone.utc)
        assert path.name == "CoinCard_Export_2024-03-02T09-15-30-123Z.xlsx"

        workbook = load_workbook(path)
        sheet = workbook["CoinCard Records"]
        assert sheet["A1"].value == "Báo cáo dữ liệu CoinCard"
        assert "A1:F1" in {str(r) for r in sheet.merged_cells.ranges}
        assert [c.value for c in sheet[6]] == HEADERS
        assert sheet["B7"].value == "Nguyen Van A"
        assert sheet["C8"].value == 1234567
        assert sheet.column_dimensions["F"].width == 30

    def test_unwritable_directory(self, data, tmp_path):
        """Test that an OSError becomes ExportError."""
        blocker = tmp_path / "blocker"
        blocker.write_text("x")
        with pytest.raises(ExportError):
            write_workbook(data, blocker / "out", now=NOW)
