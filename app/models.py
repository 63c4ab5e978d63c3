"""Data models for the oral test marker."""
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union


@dataclass
class Section:
    id: int
    name: str
    max_marks: int   # ceiling for every student's mark in this section

    def header_label(self) -> str:
        return f"{self.name} ({self.max_marks})"


@dataclass
class HotkeyBinding:
    key: str         # single lowercase character; may be blank while being edited
    deduction: int
    label: str = ""


@dataclass
class Student:
    id: int
    name: str = ""
    # section id -> mark; a missing section counts as full marks
    marks: Dict[int, int] = field(default_factory=dict)

    def is_named(self) -> bool:
        return bool(self.name.strip())


@dataclass
class Session:
    title: str = ""
    sections: List[Section] = field(default_factory=list)
    hotkeys: List[HotkeyBinding] = field(default_factory=list)
    students: List[Student] = field(default_factory=list)

    def section_by_id(self, section_id: int) -> Optional[Section]:
        return next((s for s in self.sections if s.id == section_id), None)

    def student_by_id(self, student_id: int) -> Optional[Student]:
        return next((s for s in self.students if s.id == student_id), None)

    def index_of_student(self, student_id: int) -> int:
        """Return the row index of *student_id*, or -1 if it is not in the session."""
        return next(
            (i for i, s in enumerate(self.students) if s.id == student_id), -1
        )


@dataclass
class Statistics:
    max_possible: int
    count: int
    average: Optional[float] = None   # None = no named students yet
    high: Optional[int] = None
    low: Optional[int] = None

    @property
    def has_data(self) -> bool:
        return self.count > 0


_APP_HOME_ENV = "ORAL_TEST_MARKER_HOME"


def app_home() -> str:
    """Directory holding settings.json and the default data/export dirs."""
    return os.environ.get(_APP_HOME_ENV) or os.path.join(
        os.path.expanduser("~"), ".oral_test_marker"
    )


@dataclass
class AppSettings:
    data_dir: str = field(default_factory=lambda: os.path.join(app_home(), "data"))
    export_dir: str = field(default_factory=lambda: os.path.join(app_home(), "export"))
    debug_mode: bool = False   # DEBUG-level logging


DEFAULT_TITLE = "Oral Test Results"


def default_sections() -> List[Section]:
    return [
        Section(id=1, name="Reading", max_marks=20),
        Section(id=2, name="Listening", max_marks=20),
        Section(id=3, name="Speaking", max_marks=60),
    ]


def default_hotkeys() -> List[HotkeyBinding]:
    return [
        HotkeyBinding(key="q", deduction=2, label="Minor Error"),
        HotkeyBinding(key="w", deduction=5, label="Major Error"),
    ]


# ── Mark arithmetic ───────────────────────────────────────────────────────────

def parse_int(raw: Union[str, int, float, None]) -> Optional[int]:
    """Parse the leading integer of *raw* ("12", " 7.5 " -> 7, "-3x" -> -3).

    Returns None when no integer can be read.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if raw == raw and abs(raw) != float("inf") else None
    text = str(raw).strip()
    end = 1 if text[:1] in ("+", "-") else 0
    while end < len(text) and text[end].isdigit():
        end += 1
    digits = text[:end]
    if not digits.lstrip("+-"):
        return None
    return int(digits)


def clamp_mark(raw: Union[str, int, float, None], max_marks: int) -> int:
    """Parse *raw* and clamp it to ``[0, max_marks]``; unreadable input is 0."""
    value = parse_int(raw)
    if value is None:
        return 0
    return max(0, min(value, max_marks))


def apply_deduction(value: int, deduction: int) -> int:
    return max(0, value - deduction)


def effective_mark(student: Student, section: Section) -> int:
    """The mark used for display and totals: the stored value, else full marks."""
    return student.marks.get(section.id, section.max_marks)


def compute_total(student: Student, sections: List[Section]) -> int:
    """Sum of effective marks over *sections*.

    This is the single authoritative total used by the marking grid, the
    statistics bar, and both exporters.
    """
    return sum(effective_mark(student, sec) for sec in sections)


def max_possible(sections: List[Section]) -> int:
    return sum(sec.max_marks for sec in sections)


def compute_statistics(students: List[Student], sections: List[Section]) -> Statistics:
    """Aggregate totals over named students only.

    Blank-named rows (reserved for candidates not yet entered) are skipped.
    With no named students, average/high/low stay None so that a real score
    of zero can be told apart from "no data".
    """
    named = [s for s in students if s.is_named()]
    stats = Statistics(max_possible=max_possible(sections), count=len(named))
    if not named:
        return stats
    totals = [compute_total(s, sections) for s in named]
    stats.average = sum(totals) / len(totals)
    stats.high = max(totals)
    stats.low = min(totals)
    return stats


def find_hotkey(hotkeys: List[HotkeyBinding], key: str) -> Optional[HotkeyBinding]:
    """Return the first binding for *key* in configured order (case-insensitive)."""
    if not key:
        return None
    key = key.lower()
    return next((hk for hk in hotkeys if hk.key and hk.key.lower() == key), None)
