"""Render a read-only PDF report of a marking session with PyMuPDF.

Layout notes
------------
Pages are US Letter in portrait (612 x 792 pt) with a 0.4 in margin.  The
first page carries the decorative header (title, date, average badge); every
page repeats the table header row and carries the footer.  All text is placed
with ``page.insert_text`` at a baseline rather than ``insert_textbox`` so that
an over-long name is truncated instead of silently dropped.

The report shows each student's *effective* mark (unset -> section maximum),
matching the live grid.  The grid's action column is never part of it.
"""
import datetime
import logging
import re
from typing import List, Optional, Tuple

import fitz

from exporters import format_statistic
from models import (
    DEFAULT_TITLE,
    Session,
    Statistics,
    compute_statistics,
    compute_total,
    effective_mark,
)

logger = logging.getLogger(__name__)

# ── Page geometry ─────────────────────────────────────────────────────────────
_PAGE_W, _PAGE_H = 612, 792
_MARGIN = 28.8            # 0.4 in
_ROW_H = 20
_HEADER_ROW_H = 24
_FOOTER_H = 30
_NAME_COL_SHARE = 0.34    # fraction of the table width given to the Name column


# ── Colour constants ──────────────────────────────────────────────────────────

def _rgb(hex_code: str) -> Tuple[float, float, float]:
    hex_code = hex_code.lstrip("#")
    return tuple(int(hex_code[i:i + 2], 16) / 255 for i in (0, 2, 4))


_TITLE     = _rgb("#1e3a8a")
_RULE      = _rgb("#3b82f6")
_MUTED     = _rgb("#64748b")
_BADGE_BG  = _rgb("#eff6ff")
_BADGE_FG  = _rgb("#1e40af")
_HEAD_BG   = _rgb("#1e293b")   # table header row
_CELL_FG   = _rgb("#334155")
_GRID      = _rgb("#e2e8f0")
_ZEBRA     = _rgb("#f8fafc")
_TOTAL_BG  = _rgb("#f0f9ff")
_FOOTER_FG = _rgb("#94a3b8")
_WHITE     = (1, 1, 1)

_FONT = "helv"
_FONT_BOLD = "hebo"

# The base-14 fonts only cover WinAnsi; no em-dash or bullet.
_NO_DATA = "n/a"
_SEP = "|"


def report_filename(title: str) -> str:
    """``"Oral Test: 3B"`` -> ``"oral_test__3b_report.pdf"``."""
    stem = re.sub(r"[^a-z0-9]", "_", title or DEFAULT_TITLE, flags=re.IGNORECASE)
    return f"{stem.lower()}_report.pdf"


def export_report(session: Session, path: str,
                  stats: Optional[Statistics] = None,
                  date: Optional[datetime.date] = None) -> str:
    """Write the session report to *path* and return it."""
    stats = stats or compute_statistics(session.students, session.sections)
    date_text = (date or datetime.date.today()).isoformat()
    title = session.title.strip() or DEFAULT_TITLE

    header = (["Name"] + [sec.header_label() for sec in session.sections]
              + ["Total"])
    rows = [
        [student.name]
        + [str(effective_mark(student, sec)) for sec in session.sections]
        + [str(compute_total(student, session.sections))]
        for student in session.students
    ]
    col_widths = _column_widths(len(header))

    doc = fitz.open()
    try:
        page = _new_page(doc, date_text)
        y = _draw_title_block(page, title, date_text, stats)
        y = _draw_table_header(page, header, col_widths, y)
        for i, row in enumerate(rows):
            if y + _ROW_H > _PAGE_H - _MARGIN - _FOOTER_H:
                page = _new_page(doc, date_text)
                y = _draw_table_header(page, header, col_widths, _MARGIN)
            _draw_row(page, row, col_widths, y, zebra=(i % 2 == 0))
            y += _ROW_H
        if y + 2 * _ROW_H > _PAGE_H - _MARGIN - _FOOTER_H:
            page = _new_page(doc, date_text)
            y = _MARGIN
        _draw_summary(page, stats, y + _ROW_H)
        doc.save(path, garbage=0, deflate=True)
        logger.info("Report written to %s (%d page(s), %d student(s))",
                    path, doc.page_count, len(rows))
    finally:
        doc.close()
    return path


# ── Drawing helpers ───────────────────────────────────────────────────────────

def _column_widths(count: int) -> List[float]:
    table_w = _PAGE_W - 2 * _MARGIN
    if count <= 1:
        return [table_w]
    name_w = table_w * _NAME_COL_SHARE
    other = (table_w - name_w) / (count - 1)
    return [name_w] + [other] * (count - 1)


def _fit(text: str, width: float, fontname: str, fontsize: float) -> str:
    """Truncate *text* with '...' so it fits in *width* points."""
    if fitz.get_text_length(text, fontname=fontname, fontsize=fontsize) <= width:
        return text
    while text and fitz.get_text_length(text + "...", fontname=fontname,
                                        fontsize=fontsize) > width:
        text = text[:-1]
    return text + "..."


def _stat(value: Optional[float], decimals: int = 0) -> str:
    return format_statistic(value, decimals, empty=_NO_DATA)


def _new_page(doc, date_text: str):
    page = doc.new_page(width=_PAGE_W, height=_PAGE_H)
    footer = (f"Generated by Oral Test Marker {_SEP} {date_text} {_SEP} "
              f"Page {doc.page_count}")
    fontsize = 8
    w = fitz.get_text_length(footer, fontname=_FONT, fontsize=fontsize)
    line_y = _PAGE_H - _MARGIN - _FOOTER_H + 10
    page.draw_line((_MARGIN, line_y), (_PAGE_W - _MARGIN, line_y),
                   color=_GRID, width=1)
    page.insert_text(((_PAGE_W - w) / 2, line_y + 16), footer,
                     fontsize=fontsize, fontname=_FONT, color=_FOOTER_FG)
    return page


def _draw_title_block(page, title: str, date_text: str, stats: Statistics) -> float:
    """Title, date and the average badge; returns the y where the table starts."""
    x, top = _MARGIN, _MARGIN
    badge_w, badge_h = 130, 46
    title_w = _PAGE_W - 2 * _MARGIN - badge_w - 12
    page.insert_text((x, top + 22), _fit(title, title_w, _FONT_BOLD, 22),
                     fontsize=22, fontname=_FONT_BOLD, color=_TITLE)
    page.insert_text((x, top + 42), f"Date: {date_text}",
                     fontsize=11, fontname=_FONT, color=_MUTED)

    badge = fitz.Rect(_PAGE_W - _MARGIN - badge_w, top, _PAGE_W - _MARGIN,
                      top + badge_h)
    page.draw_rect(badge, color=None, fill=_BADGE_BG, width=0)
    page.insert_text((badge.x0 + 10, badge.y0 + 15), "AVERAGE SCORE",
                     fontsize=8, fontname=_FONT_BOLD, color=_RULE)
    page.insert_text((badge.x0 + 10, badge.y0 + 38),
                     _stat(stats.average, 1),
                     fontsize=20, fontname=_FONT_BOLD, color=_BADGE_FG)

    rule_y = top + badge_h + 10
    page.draw_line((_MARGIN, rule_y), (_PAGE_W - _MARGIN, rule_y),
                   color=_RULE, width=3)
    return rule_y + 16


def _draw_table_header(page, header: List[str], widths: List[float],
                       y: float) -> float:
    x = _MARGIN
    full = fitz.Rect(_MARGIN, y, _MARGIN + sum(widths), y + _HEADER_ROW_H)
    page.draw_rect(full, color=_HEAD_BG, fill=_HEAD_BG, width=1)
    for label, w in zip(header, widths):
        text = _fit(label.upper(), w - 12, _FONT_BOLD, 8)
        page.insert_text((x + 6, y + 15), text, fontsize=8,
                         fontname=_FONT_BOLD, color=_WHITE)
        x += w
    return y + _HEADER_ROW_H


def _draw_row(page, cells: List[str], widths: List[float], y: float,
              zebra: bool) -> None:
    x = _MARGIN
    last = len(cells) - 1
    for i, (text, w) in enumerate(zip(cells, widths)):
        rect = fitz.Rect(x, y, x + w, y + _ROW_H)
        if i == last:
            fill = _TOTAL_BG
        else:
            fill = _ZEBRA if zebra else _WHITE
        page.draw_rect(rect, color=_GRID, fill=fill, width=0.75)
        if i == last:
            page.insert_text((x + 6, y + 14), _fit(text, w - 12, _FONT_BOLD, 11),
                             fontsize=11, fontname=_FONT_BOLD, color=_BADGE_FG)
        else:
            page.insert_text((x + 6, y + 14), _fit(text, w - 12, _FONT, 10),
                             fontsize=10, fontname=_FONT, color=_CELL_FG)
        x += w


def _draw_summary(page, stats: Statistics, y: float) -> None:
    parts = [
        f"Students: {stats.count}",
        f"Average: {_stat(stats.average, 1)}",
        f"Highest: {_stat(stats.high)}",
        f"Lowest: {_stat(stats.low)}",
        f"Max possible: {stats.max_possible}",
    ]
    page.insert_text((_MARGIN, y), "   ·   ".join(parts),
                     fontsize=10, fontname=_FONT, color=_MUTED)
