"""Keyboard navigation over the marking grid.

The grid has one row per student (session order) and one column per section,
plus the name cell at column ``NAME_COLUMN`` (-1).  ``decide()`` maps a key and
the current focus to a decision; it never touches the session.  The
SessionController applies whatever it returns.

Keys are normalised strings: ``"up"``, ``"down"``, ``"left"``, ``"right"``,
``"enter"``/``"tab"`` (advance), or a single typed character.
"""
from dataclasses import dataclass
from typing import List, Optional, Union

from models import HotkeyBinding, find_hotkey

NAME_COLUMN = -1

UP, DOWN, LEFT, RIGHT = "up", "down", "left", "right"
ENTER, TAB = "enter", "tab"
ADVANCE_KEYS = (ENTER, TAB)
DIRECTION_KEYS = (UP, DOWN, LEFT, RIGHT)


@dataclass(frozen=True)
class Focus:
    row: int
    column: int = NAME_COLUMN

    @property
    def on_name(self) -> bool:
        return self.column == NAME_COLUMN


@dataclass(frozen=True)
class MoveFocus:
    row: int
    column: int

    @property
    def focus(self) -> Focus:
        return Focus(self.row, self.column)

    @property
    def select_all(self) -> bool:
        # Section cells get their value selected so typing replaces it.
        return self.column != NAME_COLUMN


@dataclass(frozen=True)
class ApplyDeduction:
    row: int
    column: int
    amount: int


@dataclass(frozen=True)
class AppendStudent:
    """Advance past the last section of the last row: add a row, focus its name."""


@dataclass(frozen=True)
class Stay:
    """Key consumed, focus unchanged (e.g. an arrow at the grid edge)."""


Decision = Union[MoveFocus, ApplyDeduction, AppendStudent, Stay]


@dataclass(frozen=True)
class GridShape:
    row_count: int
    section_count: int
    hotkeys: List[HotkeyBinding]

    def contains(self, focus: Focus) -> bool:
        return (0 <= focus.row < self.row_count
                and NAME_COLUMN <= focus.column < self.section_count)


def _move(shape: GridShape, row: int, column: int) -> Decision:
    target = Focus(row, column)
    if not shape.contains(target):
        return Stay()
    return MoveFocus(row, column)


def _direction(shape: GridShape, key: str, focus: Focus) -> Decision:
    if key == UP:
        return _move(shape, focus.row - 1, focus.column)
    if key == DOWN:
        return _move(shape, focus.row + 1, focus.column)
    if key == LEFT:
        return _move(shape, focus.row, focus.column - 1)
    return _move(shape, focus.row, focus.column + 1)


def _advance(shape: GridShape, focus: Focus) -> Decision:
    if focus.on_name:
        return _move(shape, focus.row, 0)
    if focus.column < shape.section_count - 1:
        return MoveFocus(focus.row, focus.column + 1)
    if focus.row >= shape.row_count - 1:
        return AppendStudent()
    return MoveFocus(focus.row + 1, NAME_COLUMN)


def decide(shape: GridShape, key: str, focus: Focus) -> Optional[Decision]:
    """Return the decision for *key* pressed at *focus*.

    None means the key is ordinary input (a digit, a letter of a name) and
    the cell editor should handle it.  Hotkeys only act on section cells;
    on the name cell they are just letters.
    """
    if not shape.contains(focus):
        return None
    if focus.on_name and key == LEFT:
        # Moves the text cursor inside the name.
        return None
    if key in DIRECTION_KEYS:
        return _direction(shape, key, focus)
    if key in ADVANCE_KEYS:
        return _advance(shape, focus)
    if focus.on_name or len(key) != 1:
        return None
    binding = find_hotkey(shape.hotkeys, key)
    if binding is None:
        return None
    # Focus stays put so repeated presses keep tallying in the same cell.
    return ApplyDeduction(focus.row, focus.column, binding.deduction)
