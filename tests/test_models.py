import pytest

from models import (
    HotkeyBinding,
    Section,
    Student,
    apply_deduction,
    clamp_mark,
    compute_statistics,
    compute_total,
    effective_mark,
    find_hotkey,
    max_possible,
    parse_int,
)


# ── effective marks and totals ───────────────────────────────────────────────

def test_unset_mark_counts_as_full_marks(sections):
    student = Student(id=1, name="Ann")
    assert [effective_mark(student, s) for s in sections] == [20, 20, 60]
    assert compute_total(student, sections) == 100


def test_total_mixes_set_and_unset_marks(sections):
    student = Student(id=1, name="Ann", marks={1: 16, 3: 0})
    assert compute_total(student, sections) == 16 + 20 + 0


def test_stale_marks_of_removed_sections_are_ignored(sections):
    student = Student(id=1, name="Ann", marks={99: 500})
    assert compute_total(student, sections) == 100


def test_max_possible(sections):
    assert max_possible(sections) == 100
    assert max_possible([]) == 0


# ── clamping ─────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("raw, expected", [
    ("12", 12),
    (" 7 ", 7),
    ("7.5", 7),
    ("abc", 0),
    ("", 0),
    (None, 0),
    ("-3", 0),
    ("25", 20),
    (999, 20),
    (-1, 0),
    (12.9, 12),
    ("15abc", 15),
])
def test_clamp_mark(raw, expected):
    assert clamp_mark(raw, 20) == expected


def test_clamp_mark_zero_max():
    assert clamp_mark("5", 0) == 0


def test_parse_int_rejects_sign_only_text():
    assert parse_int("-") is None
    assert parse_int("+") is None
    assert parse_int("+4") == 4


# ── deductions ───────────────────────────────────────────────────────────────

def test_deductions_accumulate_and_floor_at_zero():
    value = apply_deduction(20, 2)
    value = apply_deduction(value, 2)
    assert value == 16
    assert apply_deduction(3, 5) == 0
    assert apply_deduction(apply_deduction(10, 4), 7) == max(0, 10 - 4 - 7)


# ── statistics ───────────────────────────────────────────────────────────────

def test_statistics_skip_blank_names(sections):
    students = [
        Student(id=1, name="Ann", marks={1: 10}),
        Student(id=2, name="   "),
    ]
    stats = compute_statistics(students, sections)
    assert stats.count == 1
    assert stats.average == 90
    assert stats.high == 90
    assert stats.low == 90
    assert stats.max_possible == 100


def test_statistics_without_named_students_report_no_data(sections):
    stats = compute_statistics([Student(id=1, name="")], sections)
    assert stats.count == 0
    assert stats.average is None
    assert stats.high is None
    assert stats.low is None
    assert not stats.has_data
    assert stats.max_possible == 100


def test_statistics_zero_score_is_data(sections):
    student = Student(id=1, name="Zed", marks={1: 0, 2: 0, 3: 0})
    stats = compute_statistics([student], sections)
    assert stats.low == 0
    assert stats.average == 0


def test_statistics_average_high_low(sections):
    students = [
        Student(id=1, name="A", marks={3: 40}),   # 80
        Student(id=2, name="B"),                  # 100
        Student(id=3, name="C", marks={1: 0}),    # 80
    ]
    stats = compute_statistics(students, sections)
    assert stats.count == 3
    assert stats.average == pytest.approx(260 / 3)
    assert stats.high == 100
    assert stats.low == 80


# ── hotkey lookup ────────────────────────────────────────────────────────────

def test_find_hotkey_is_case_insensitive():
    hotkeys = [HotkeyBinding("q", 2, "Minor Error")]
    assert find_hotkey(hotkeys, "Q").deduction == 2


def test_find_hotkey_first_match_wins():
    hotkeys = [HotkeyBinding("q", 2, "first"), HotkeyBinding("q", 9, "second")]
    assert find_hotkey(hotkeys, "q").label == "first"


def test_find_hotkey_ignores_blank_bindings():
    hotkeys = [HotkeyBinding("", 3, "unset")]
    assert find_hotkey(hotkeys, "") is None
    assert find_hotkey(hotkeys, "x") is None


def test_section_header_label():
    assert Section(id=1, name="Reading", max_marks=20).header_label() == "Reading (20)"
