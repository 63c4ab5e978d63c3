import pytest

import grid_navigation as nav
from grid_navigation import (
    NAME_COLUMN,
    AppendStudent,
    ApplyDeduction,
    Focus,
    GridShape,
    MoveFocus,
    Stay,
    decide,
)
from models import HotkeyBinding, default_hotkeys

# 3 students x 3 sections
SHAPE = GridShape(row_count=3, section_count=3, hotkeys=default_hotkeys())


# ── arrows ───────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("key, start, expected", [
    (nav.UP, Focus(1, 0), MoveFocus(0, 0)),
    (nav.DOWN, Focus(1, 2), MoveFocus(2, 2)),
    (nav.LEFT, Focus(1, 1), MoveFocus(1, 0)),
    (nav.RIGHT, Focus(1, 1), MoveFocus(1, 2)),
    (nav.LEFT, Focus(1, 0), MoveFocus(1, NAME_COLUMN)),
    (nav.UP, Focus(2, NAME_COLUMN), MoveFocus(1, NAME_COLUMN)),
    (nav.DOWN, Focus(0, NAME_COLUMN), MoveFocus(1, NAME_COLUMN)),
])
def test_arrow_moves_to_adjacent_cell(key, start, expected):
    assert decide(SHAPE, key, start) == expected


@pytest.mark.parametrize("key, start", [
    (nav.UP, Focus(0, 1)),
    (nav.DOWN, Focus(2, 1)),
    (nav.RIGHT, Focus(1, 2)),
])
def test_arrow_at_edge_does_not_wrap(key, start):
    assert decide(SHAPE, key, start) == Stay()


# ── name cell ────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("key", [nav.ENTER, nav.TAB, nav.RIGHT])
def test_forward_from_name_goes_to_first_section(key):
    assert decide(SHAPE, key, Focus(1, NAME_COLUMN)) == MoveFocus(1, 0)


def test_forward_from_name_without_sections_stays():
    shape = GridShape(row_count=1, section_count=0, hotkeys=[])
    assert decide(shape, nav.ENTER, Focus(0, NAME_COLUMN)) == Stay()


def test_left_in_name_cell_moves_the_text_cursor():
    assert decide(SHAPE, nav.LEFT, Focus(1, NAME_COLUMN)) is None


def test_hotkey_letters_type_into_the_name_cell():
    assert decide(SHAPE, "q", Focus(0, NAME_COLUMN)) is None


# ── hotkeys ──────────────────────────────────────────────────────────────────

def test_hotkey_on_section_cell_deducts_without_moving():
    assert decide(SHAPE, "q", Focus(1, 2)) == ApplyDeduction(1, 2, 2)
    assert decide(SHAPE, "W", Focus(0, 0)) == ApplyDeduction(0, 0, 5)


def test_first_binding_wins_for_duplicate_keys():
    shape = GridShape(row_count=1, section_count=1, hotkeys=[
        HotkeyBinding("e", 1, "first"),
        HotkeyBinding("e", 10, "second"),
    ])
    assert decide(shape, "e", Focus(0, 0)) == ApplyDeduction(0, 0, 1)


def test_plain_digits_are_left_to_the_editor():
    assert decide(SHAPE, "7", Focus(0, 0)) is None
    assert decide(SHAPE, "z", Focus(0, 0)) is None


# ── advance ──────────────────────────────────────────────────────────────────

def test_advance_moves_to_next_section():
    assert decide(SHAPE, nav.ENTER, Focus(0, 0)) == MoveFocus(0, 1)


def test_advance_from_last_section_goes_to_next_row_name():
    assert decide(SHAPE, nav.ENTER, Focus(0, 2)) == MoveFocus(1, NAME_COLUMN)


def test_advance_from_last_cell_of_last_row_appends():
    assert decide(SHAPE, nav.TAB, Focus(2, 2)) == AppendStudent()


# ── focus outside the grid ───────────────────────────────────────────────────

def test_focus_outside_grid_is_ignored():
    assert decide(SHAPE, nav.DOWN, Focus(5, 0)) is None
    assert decide(SHAPE, nav.DOWN, Focus(0, 3)) is None


def test_move_focus_selects_section_values_only():
    assert MoveFocus(0, 0).select_all
    assert not MoveFocus(0, NAME_COLUMN).select_all
    assert MoveFocus(2, 1).focus == Focus(2, 1)
