from __future__ import annotations

import csv
import io
from types import SimpleNamespace

from openpyxl import load_workbook

from timebudget.export import EXPORT_HEADERS, export_csv, export_xlsx


def _entries():
    return [
        SimpleNamespace(id=1, category="Work", subcategory="Coding", start_time=0, duration=90),
        SimpleNamespace(id=2, category="Work", subcategory="Meetings", start_time=90, duration=None),
    ]


def test_csv_export_skips_running_entries():
    rows = list(csv.reader(io.StringIO(export_csv(_entries(), "UTC"))))
    assert rows[0] == EXPORT_HEADERS
    assert rows[1:] == [
        ["1", "Work", "Coding", "1970-01-01T00:00:00+00:00", "90", "1970-01-01T01:30:00+00:00"],
    ]


def test_xlsx_export_matches_csv_rows():
    workbook = load_workbook(io.BytesIO(export_xlsx(_entries(), "UTC")))
    sheet = workbook.active
    values = [list(row) for row in sheet.iter_rows(values_only=True)]
    assert values[0] == EXPORT_HEADERS
    assert len(values) == 2
    assert values[1][1:3] == ["Work", "Coding"]
