"""Spreadsheet and CSV export utilities."""

from __future__ import annotations

import csv
import io
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Iterable, Sequence, Union

from flask import Response, stream_with_context
from openpyxl import Workbook


XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

ColumnSource = Union[str, Callable[[object], object]]


def _cell_value(row, source: ColumnSource):
    if callable(source):
        return source(row)
    if isinstance(row, dict):
        return row.get(source)
    return getattr(row, source, None)


def _serialize_value(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return format(value, "f")
    return str(value)


def build_table(
    rows: Iterable[object],
    columns: Sequence[tuple[ColumnSource, str]],
) -> list[list[object]]:
    """Header row followed by one row per input row, in input order."""

    table: list[list[object]] = [[header for _, header in columns]]
    for row in rows:
        table.append([_cell_value(row, source) for source, _ in columns])
    return table


def build_workbook(
    rows: Iterable[object],
    columns: Sequence[tuple[ColumnSource, str]],
    sheet_name: str,
) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = sheet_name[:31]
    for values in build_table(rows, columns):
        sheet.append(["" if value is None else value for value in values])

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def export_rows_to_xlsx(
    rows: Iterable[object],
    columns: Sequence[tuple[ColumnSource, str]],
    filename: str,
    sheet_name: str,
) -> Response:
    payload = build_workbook(rows, columns, sheet_name)
    response = Response(payload, mimetype=XLSX_MIMETYPE)
    response.headers["Content-Disposition"] = f"attachment; filename={filename}"
    return response


def export_rows_to_csv(
    rows: Iterable[object],
    columns: Sequence[tuple[ColumnSource, str]],
    filename: str,
) -> Response:
    rows = list(rows)

    def generate():
        output = io.StringIO()
        writer = csv.writer(output)
        for values in build_table(rows, columns):
            writer.writerow([_serialize_value(value) for value in values])
            yield output.getvalue()
            output.seek(0)
            output.truncate(0)

    response = Response(stream_with_context(generate()), mimetype="text/csv")
    response.headers["Content-Disposition"] = f"attachment; filename={filename}"
    return response
