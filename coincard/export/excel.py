"""
Spreadsheet Export

Builds the report the user shares from the list screen: a short summary
header followed by one row per record.

    Báo cáo dữ liệu CoinCard
    Ngày xuất:          <export date>
    Tổng số bản ghi:    <count>
    Tổng số tiền:       <formatted total>

    STT | Người nhận | Số tiền | Số tiền (định dạng) | Ngày tạo | Hashtags

Handing the file to the platform share sheet is not our concern; we return
the path of the written workbook.
"""

from datetime import datetime, timezone, tzinfo
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import Iterable, Optional, Union

from openpyxl import Workbook
from openpyxl.styles import Font

from coincard.models.record import ExportData, TransactionRecord, utc_now

REPORT_TITLE = "Báo cáo dữ liệu CoinCard"
SHEET_TITLE = "CoinCard Records"

HEADERS = [
    "STT",
    "Người nhận",
    "Số tiền",
    "Số tiền (định dạng)",
    "Ngày tạo",
    "Hashtags",
]
COLUMN_WIDTHS = [5, 20, 15, 20, 20, 30]


class ExportError(Exception):
    """The workbook could not be written."""
    pass


def format_currency(amount: Decimal) -> str:
    """VND the vi-VN way: dot thousands separator, no decimals, "₫" suffix."""
    whole = int(Decimal(amount).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    return f"{whole:,}".replace(",", ".") + " ₫"


def format_date(value: Union[datetime, str], tz: Optional[tzinfo] = None) -> str:
    """
    dd/mm/yyyy HH:MM:SS in tz (the local zone when tz is None).

    Accepts ISO-8601 strings as stored by older app versions.
    """
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(tz).strftime("%d/%m/%Y %H:%M:%S")


def prepare_export_data(
    records: Iterable[TransactionRecord],
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> ExportData:
    """Aggregate the records being exported (usually the current view)."""
    records = list(records)
    return ExportData(
        records=records,
        total_amount=sum((record.amount for record in records), Decimal(0)),
        export_date=format_date(now or utc_now(), tz),
        record_count=len(records),
    )


def _cell_amount(amount: Decimal) -> Union[int, float]:
    if amount == amount.to_integral_value():
        return int(amount)
    return float(amount)


def build_export_rows(data: ExportData, tz: Optional[tzinfo] = None) -> list[list]:
    """Summary block, blank row, header row, then one row per record."""
    rows = [
        [REPORT_TITLE],
        ["Ngày xuất:", data.export_date],
        ["Tổng số bản ghi:", data.record_count],
        ["Tổng số tiền:", format_currency(data.total_amount)],
        [],
        list(HEADERS),
    ]

    for index, record in enumerate(data.records, start=1):
        rows.append([
            index,
            record.recipient,
            _cell_amount(record.amount),
            format_currency(record.amount),
            format_date(record.created_at, tz),
            ", ".join(record.hashtags),
        ])

    return rows


def export_filename(now: Optional[datetime] = None) -> str:
    """CoinCard_Export_<UTC timestamp>.xlsx, safe for any filesystem."""
    moment = (now or utc_now()).astimezone(timezone.utc)
    stamp = moment.strftime("%Y-%m-%dT%H-%M-%S-") + f"{moment.microsecond // 1000:03d}Z"
    return f"CoinCard_Export_{stamp}.xlsx"


def write_workbook(
    data: ExportData,
    directory: Union[str, Path],
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> Path:
    """
    Write the report as an .xlsx file.

    Returns:
        Path of the written workbook

    Raises:
        ExportError: If the file cannot be written
    """
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = SHEET_TITLE

    for row in build_export_rows(data, tz):
        sheet.append(row)

    for column, width in zip("ABCDEF", COLUMN_WIDTHS):
        sheet.column_dimensions[column].width = width

    sheet.merge_cells(start_row=1, start_column=1, end_row=1, end_column=len(HEADERS))
    sheet["A1"].font = Font(bold=True, size=14)

    header_row = 6
    for cell in sheet[header_row]:
        cell.font = Font(bold=True)

    target_dir = Path(directory)
    path = target_dir / export_filename(now)
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        workbook.save(path)
    except OSError as e:
        raise ExportError(f"Failed to write {path}: {e}") from e

    return path
