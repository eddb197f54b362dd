"""Spreadsheet export package."""

from coincard.export.excel import (
    HEADERS,
    ExportError,
    build_export_rows,
    export_filename,
    format_currency,
    format_date,
    prepare_export_data,
    write_workbook,
)

__all__ = [
    "HEADERS",
    "ExportError",
    "build_export_rows",
    "export_filename",
    "format_currency",
    "format_date",
    "prepare_export_data",
    "write_workbook",
]
