"""Tabular export of a marking session (CSV and XLSX)."""
import csv
import datetime
import os
from typing import List, Optional

import openpyxl
from openpyxl.styles import Font

from models import Session, Statistics, compute_total


def format_statistic(value: Optional[float], decimals: int = 0,
                     empty: str = "—") -> str:
    """Render a statistic; None ("no data") is shown as *empty*."""
    if value is None:
        return empty
    return f"{value:.{decimals}f}"


def header_row(session: Session) -> List[str]:
    return ["Name"] + [sec.header_label() for sec in session.sections] + ["Total"]


def build_rows(session: Session) -> List[list]:
    """Header plus one row per student, in session order.

    Unset marks are written as 0 here, unlike the live grid which shows them
    at full marks.  The Total column always uses effective marks.
    """
    rows = [header_row(session)]
    for student in session.students:
        rows.append(
            [student.name]
            + [student.marks.get(sec.id, 0) for sec in session.sections]
            + [compute_total(student, session.sections)]
        )
    return rows


def default_filename(extension: str, date: Optional[datetime.date] = None) -> str:
    date = date or datetime.date.today()
    return f"oral_test_marks_{date.isoformat()}.{extension}"


def export_csv(session: Session, path: str) -> str:
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerows(build_rows(session))
    return path


def export_xlsx(session: Session, path: str,
                stats: Optional[Statistics] = None) -> str:
    """Write the marks table to *path*; *stats* adds a summary block below it."""
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Marks"
    rows = build_rows(session)
    for row in rows:
        ws.append(row)
    bold = Font(bold=True)
    for cell in ws[1]:
        cell.font = bold
    if stats is not None:
        ws.append([])
        ws.append(["Students", stats.count])
        ws.append(["Average", stats.average])
        ws.append(["Highest", stats.high])
        ws.append(["Lowest", stats.low])
        ws.append(["Max possible", stats.max_possible])
    ws.column_dimensions["A"].width = max(
        12, max((len(str(r[0])) for r in rows), default=0) + 2
    )
    wb.save(path)
    return path
