from __future__ import annotations

import csv
import io
from typing import Any, Iterable, List

from openpyxl import Workbook

from .timeutils import TzLike, from_minutes

EXPORT_HEADERS = ["ID", "Category", "Subcategory", "Start Time", "Duration", "End Time"]


def export_rows(entries: Iterable[Any], tz: TzLike = None) -> List[List[Any]]:
    rows: List[List[Any]] = []
    for entry in entries:
        # Running entries have no end yet.
        if entry.duration is None:
            continue
        rows.append(
            [
                entry.id,
                entry.category,
                entry.subcategory,
                from_minutes(entry.start_time, tz).isoformat(),
                entry.duration,
                from_minutes(entry.start_time + entry.duration, tz).isoformat(),
            ]
        )
    return rows


def export_csv(entries: Iterable[Any], tz: TzLike = None) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(EXPORT_HEADERS)
    writer.writerows(export_rows(entries, tz))
    return buffer.getvalue()


def export_xlsx(entries: Iterable[Any], tz: TzLike = None) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Time entries"
    ws.append(EXPORT_HEADERS)
    for row in export_rows(entries, tz):
        ws.append(row)
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()
