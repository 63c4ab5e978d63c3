"""Session controller: the only writer of the marking Session.

Every mutation is applied to the in-memory Session first and then saved
through the PersistenceGateway.  A failed save is logged by the gateway and
otherwise ignored; in-session state stays correct.
"""
import logging
import time
from typing import Callable, Optional

import grid_navigation as nav
from data_store import PersistenceGateway, dbg
from models import (
    HotkeyBinding,
    Section,
    Session,
    Statistics,
    Student,
    apply_deduction,
    clamp_mark,
    compute_statistics,
    compute_total,
    default_hotkeys,
    default_sections,
    effective_mark,
    parse_int,
)

logger = logging.getLogger(__name__)

Confirm = Callable[[str], bool]

DELETE_STUDENT_PROMPT = "Delete this student?"
RESET_SESSION_PROMPT = (
    "End this session and return to configuration? Student data will be cleared."
)


class ConfigurationIncomplete(Exception):
    """Raised when marking mode is requested with no sections configured."""


class SessionController:
    def __init__(self, gateway: PersistenceGateway, session: Optional[Session] = None):
        self._gateway = gateway
        self._session = session if session is not None else Session()
        self._marking = False

    # ── Read-only views ───────────────────────────────────────────────────────

    @property
    def session(self) -> Session:
        return self._session

    @property
    def marking(self) -> bool:
        return self._marking

    def statistics(self) -> Statistics:
        return compute_statistics(self._session.students, self._session.sections)

    def total(self, student: Student) -> int:
        return compute_total(student, self._session.sections)

    def grid_shape(self) -> nav.GridShape:
        return nav.GridShape(
            row_count=len(self._session.students),
            section_count=len(self._session.sections),
            hotkeys=list(self._session.hotkeys),
        )

    def clamp_focus(self, focus: nav.Focus) -> Optional[nav.Focus]:
        """Pull a stale focus (e.g. after a row delete) back inside the grid."""
        rows = len(self._session.students)
        if rows == 0:
            return None
        row = min(max(focus.row, 0), rows - 1)
        column = min(max(focus.column, nav.NAME_COLUMN),
                     len(self._session.sections) - 1)
        return nav.Focus(row, column)

    def focus_on_student(self, student_id: Optional[int], column: int,
                         fallback_row: int) -> Optional[nav.Focus]:
        """Focus *column* on the row now holding *student_id*.

        If that student is gone, the name cell at *fallback_row* (clamped)
        gets the focus instead.
        """
        row = -1 if student_id is None else self._session.index_of_student(student_id)
        if row >= 0:
            return self.clamp_focus(nav.Focus(row, column))
        return self.clamp_focus(nav.Focus(fallback_row, nav.NAME_COLUMN))

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def start(self) -> bool:
        """Load saved state (or seed defaults) and restore marking mode.

        Returns True if the previous run was left in marking mode.
        """
        loaded = self._gateway.load()
        if loaded is None:
            dbg("No saved session, seeding default sections and hotkeys")
            loaded = Session(sections=default_sections(), hotkeys=default_hotkeys())
            self._session = loaded
            self._save()
        else:
            self._session = loaded
        if self._gateway.get_mode():
            if self._session.sections:
                self._marking = True
                if not self._session.students:
                    self.add_student()
            else:
                dbg("Saved marking mode has no sections, back to configuration")
                self._gateway.set_mode(False)
        return self._marking

    def enter_marking_mode(self) -> None:
        if not self._session.sections:
            raise ConfigurationIncomplete("Please add at least one section.")
        self._marking = True
        self._gateway.set_mode(True)
        self._save()
        if not self._session.students:
            self.add_student()
        logger.info("Marking mode started: %d section(s), %d student(s)",
                    len(self._session.sections), len(self._session.students))

    def reset_session(self, confirm: Confirm) -> bool:
        """Clear all students and leave marking mode; sections and hotkeys stay."""
        if not confirm(RESET_SESSION_PROMPT):
            return False
        self._session.students = []
        self._marking = False
        self._gateway.set_mode(False)
        self._gateway.clear_students()
        logger.info("Session reset")
        return True

    # ── Rows ──────────────────────────────────────────────────────────────────

    def _fresh_id(self, existing) -> int:
        now_ms = int(time.time() * 1000)
        return max([now_ms] + [i + 1 for i in existing])

    def add_student(self) -> int:
        """Append a blank row at full marks; return its row index."""
        student = Student(
            id=self._fresh_id(s.id for s in self._session.students),
            marks={sec.id: sec.max_marks for sec in self._session.sections},
        )
        self._session.students.append(student)
        self._save()
        dbg(f"Added student row id={student.id}")
        return len(self._session.students) - 1

    def delete_student(self, student_id: int, confirm: Confirm) -> bool:
        index = self._session.index_of_student(student_id)
        if index < 0:
            return False
        if not confirm(DELETE_STUDENT_PROMPT):
            return False
        del self._session.students[index]
        self._save()
        dbg(f"Deleted student id={student_id}")
        return True

    def set_student_name(self, student_id: int, name: str) -> None:
        student = self._require_student(student_id)
        student.name = name
        self._save()

    # ── Marks ─────────────────────────────────────────────────────────────────

    def set_mark(self, student_id: int, section_id: int, raw) -> int:
        """Store a typed value for one cell, clamped to the section's range."""
        student = self._require_student(student_id)
        section = self._require_section(section_id)
        value = clamp_mark(raw, section.max_marks)
        student.marks[section.id] = value
        self._save()
        return value

    def deduct(self, student_id: int, section_id: int, amount: int) -> int:
        student = self._require_student(student_id)
        section = self._require_section(section_id)
        value = apply_deduction(effective_mark(student, section), amount)
        student.marks[section.id] = value
        self._save()
        dbg(f"Deducted {amount} from student id={student_id} "
            f"section {section.name!r}: now {value}")
        return value

    # ── Keyboard ──────────────────────────────────────────────────────────────

    def handle_key(self, key: str, focus: nav.Focus) -> Optional[nav.Focus]:
        """Apply the navigation decision for *key*; return the next focus.

        Returns None when the key is ordinary input for the cell editor.
        """
        focus = self.clamp_focus(focus)
        if focus is None:
            return None
        decision = nav.decide(self.grid_shape(), key, focus)
        if decision is None:
            return None
        if isinstance(decision, nav.MoveFocus):
            return decision.focus
        if isinstance(decision, nav.ApplyDeduction):
            student = self._session.students[decision.row]
            section = self._session.sections[decision.column]
            self.deduct(student.id, section.id, decision.amount)
            return focus
        if isinstance(decision, nav.AppendStudent):
            return nav.Focus(self.add_student(), nav.NAME_COLUMN)
        return focus

    # ── Configuration edits ───────────────────────────────────────────────────

    def set_title(self, title: str) -> None:
        self._session.title = title
        self._save()

    def add_section(self, name: str = "", max_marks: int = 10) -> Section:
        section = Section(
            id=self._fresh_id(s.id for s in self._session.sections),
            name=name,
            max_marks=max(0, max_marks),
        )
        self._session.sections.append(section)
        self._save()
        return section

    def update_section(self, index: int, name: Optional[str] = None,
                       max_marks=None) -> Section:
        section = self._session.sections[index]
        if name is not None:
            section.name = name
        if max_marks is not None:
            section.max_marks = max(0, parse_int(max_marks) or 0)
            for student in self._session.students:
                if section.id in student.marks:
                    student.marks[section.id] = clamp_mark(
                        student.marks[section.id], section.max_marks)
        self._save()
        return section

    def remove_section(self, index: int) -> Section:
        # Marks already stored under this section id are left in place.
        section = self._session.sections.pop(index)
        self._save()
        return section

    def add_hotkey(self, key: str = "", deduction: int = 1,
                   label: str = "") -> HotkeyBinding:
        binding = HotkeyBinding(key=key[:1].lower(), deduction=max(0, deduction),
                                label=label)
        self._session.hotkeys.append(binding)
        self._save()
        return binding

    def update_hotkey(self, index: int, key: Optional[str] = None,
                      deduction=None, label: Optional[str] = None) -> HotkeyBinding:
        binding = self._session.hotkeys[index]
        if key is not None:
            binding.key = key.strip()[:1].lower()
        if deduction is not None:
            binding.deduction = max(0, parse_int(deduction) or 0)
        if label is not None:
            binding.label = label
        self._save()
        return binding

    def remove_hotkey(self, index: int) -> HotkeyBinding:
        binding = self._session.hotkeys.pop(index)
        self._save()
        return binding

    # ── Internal ──────────────────────────────────────────────────────────────

    def _require_student(self, student_id: int) -> Student:
        student = self._session.student_by_id(student_id)
        if student is None:
            raise KeyError(f"No student with id {student_id}")
        return student

    def _require_section(self, section_id: int) -> Section:
        section = self._session.section_by_id(section_id)
        if section is None:
            raise KeyError(f"No section with id {section_id}")
        return section

    def _save(self) -> None:
        if not self._gateway.save(self._session):
            dbg("Session kept in memory only; last save failed")
