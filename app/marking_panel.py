"""Marking view: keyboard-driven grid, hotkey legend, live statistics."""
from typing import Dict, List, Optional

from PySide6.QtCore import QEvent, QObject, Qt, QTimer, Signal
from PySide6.QtGui import QColor, QFont, QKeyEvent
from PySide6.QtWidgets import (
    QAbstractItemView,
    QHBoxLayout,
    QHeaderView,
    QLabel,
    QLineEdit,
    QMessageBox,
    QPushButton,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
    QWidget,
)

import grid_navigation as nav
from exporters import format_statistic
from models import effective_mark, max_possible
from session_controller import SessionController

_TOTAL_BG = QColor(240, 249, 255)
_TOTAL_FG = QColor(30, 64, 175)
_LEGEND_STYLE = (
    "QLabel { background: #f1f5f9; border: 1px solid #cbd5e1; "
    "border-radius: 4px; padding: 2px 6px; }"
)

_QT_KEYS = {
    Qt.Key.Key_Up: nav.UP,
    Qt.Key.Key_Down: nav.DOWN,
    Qt.Key.Key_Left: nav.LEFT,
    Qt.Key.Key_Right: nav.RIGHT,
    Qt.Key.Key_Return: nav.ENTER,
    Qt.Key.Key_Enter: nav.ENTER,
    Qt.Key.Key_Tab: nav.TAB,
}


def _key_name(event: QKeyEvent) -> Optional[str]:
    """Translate a Qt key press into the navigation engine's key names."""
    mods = event.modifiers() & ~Qt.KeyboardModifier.KeypadModifier
    if mods & (Qt.KeyboardModifier.ControlModifier
               | Qt.KeyboardModifier.AltModifier
               | Qt.KeyboardModifier.MetaModifier):
        return None
    name = _QT_KEYS.get(event.key())
    if name is not None:
        return name
    text = event.text()
    if len(text) == 1 and text.isprintable():
        return text
    return None


def ask_confirmation(parent: QWidget, title: str):
    def ask(message: str) -> bool:
        answer = QMessageBox.question(
            parent, title, message,
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            QMessageBox.StandardButton.No,
        )
        return answer == QMessageBox.StandardButton.Yes
    return ask


class MarkingPanel(QWidget):
    export_requested = Signal(str)        # "csv", "xlsx" or "pdf"
    end_session_requested = Signal()

    def __init__(self, controller: SessionController, parent=None):
        super().__init__(parent)
        self._controller = controller
        self._editors: Dict[QLineEdit, nav.Focus] = {}
        self._rows: List[List[QLineEdit]] = []   # [name, section editors…] per row
        self._focus: Optional[nav.Focus] = None

        layout = QVBoxLayout(self)
        layout.setContentsMargins(8, 8, 8, 8)

        # ── Session header ────────────────────────────────────────────────────
        header = QHBoxLayout()
        self._title_label = QLabel()
        title_font = QFont()
        title_font.setPointSize(16)
        title_font.setBold(True)
        self._title_label.setFont(title_font)
        header.addWidget(self._title_label)
        self._info_label = QLabel()
        self._info_label.setStyleSheet("color: #64748b;")
        header.addWidget(self._info_label)
        header.addStretch()

        for label, kind in (("Export CSV", "csv"), ("Export XLSX", "xlsx"),
                            ("Export PDF", "pdf")):
            btn = QPushButton(label)
            btn.setFocusPolicy(Qt.FocusPolicy.NoFocus)
            btn.clicked.connect(lambda _=False, k=kind: self.export_requested.emit(k))
            header.addWidget(btn)
        end_btn = QPushButton("End Session")
        end_btn.setFocusPolicy(Qt.FocusPolicy.NoFocus)
        end_btn.clicked.connect(self.end_session_requested.emit)
        header.addWidget(end_btn)
        layout.addLayout(header)

        # ── Statistics bar ────────────────────────────────────────────────────
        stats = QHBoxLayout()
        self._stat_labels: Dict[str, QLabel] = {}
        for key, caption in (("count", "Students"), ("avg", "Average"),
                             ("high", "Highest"), ("low", "Lowest"),
                             ("max", "Max possible")):
            stats.addWidget(QLabel(f"{caption}:"))
            value = QLabel("—")
            value.setStyleSheet("font-weight: bold; margin-right: 14px;")
            stats.addWidget(value)
            self._stat_labels[key] = value
        stats.addStretch()
        layout.addLayout(stats)

        # ── Hotkey legend ─────────────────────────────────────────────────────
        self._legend = QHBoxLayout()
        layout.addLayout(self._legend)

        self._table = QTableWidget()
        self._table.setSelectionMode(QAbstractItemView.SelectionMode.NoSelection)
        self._table.setEditTriggers(QAbstractItemView.EditTrigger.NoEditTriggers)
        self._table.setFocusPolicy(Qt.FocusPolicy.NoFocus)
        self._table.verticalHeader().setVisible(False)
        self._table.horizontalHeader().setSectionResizeMode(
            QHeaderView.ResizeMode.ResizeToContents)
        self._table.horizontalHeader().setStretchLastSection(False)
        layout.addWidget(self._table)

        add_btn = QPushButton("+ Add Student")
        add_btn.setFocusPolicy(Qt.FocusPolicy.NoFocus)
        add_btn.clicked.connect(self._on_add_clicked)
        layout.addWidget(add_btn, alignment=Qt.AlignmentFlag.AlignLeft)

    # ── Public API ────────────────────────────────────────────────────────────

    def rebuild(self, focus: Optional[nav.Focus] = None):
        """Redraw everything from the session and optionally focus a cell."""
        session = self._controller.session
        self._title_label.setText(session.title or "Marking Session")
        n = len(session.sections)
        self._info_label.setText(
            f"{n} section{'s' if n != 1 else ''} · "
            f"{max_possible(session.sections)} marks total"
        )
        self._rebuild_legend()
        self._rebuild_table()
        self._refresh_stats()
        if focus is not None:
            self.focus_cell(focus)

    def focus_cell(self, focus: nav.Focus):
        focus = self._controller.clamp_focus(focus)
        if focus is None:
            return
        editor = self._rows[focus.row][focus.column + 1]
        self._focus = focus
        editor.setFocus(Qt.FocusReason.OtherFocusReason)
        if not focus.on_name:
            editor.selectAll()
        total_item = self._table.item(
            focus.row, len(self._controller.session.sections) + 1)
        if total_item is not None:
            self._table.scrollToItem(total_item)

    # ── Internal: building ────────────────────────────────────────────────────

    def _rebuild_legend(self):
        while self._legend.count():
            item = self._legend.takeAt(0)
            if item.widget() is not None:
                item.widget().deleteLater()
        for hk in self._controller.session.hotkeys:
            if not hk.key:
                continue
            lbl = QLabel(f"<b>{hk.key.upper()}</b> -{hk.deduction} ({hk.label})")
            lbl.setStyleSheet(_LEGEND_STYLE)
            self._legend.addWidget(lbl)
        self._legend.addStretch()

    def _rebuild_table(self):
        session = self._controller.session
        sections = session.sections
        self._editors.clear()
        self._rows = []
        self._table.setRowCount(0)
        self._table.clear()
        self._table.setColumnCount(len(sections) + 3)
        self._table.setHorizontalHeaderLabels(
            ["Name"] + [sec.header_label() for sec in sections] + ["Total", ""]
        )
        self._table.setRowCount(len(session.students))
        total_col = len(sections) + 1

        for r, student in enumerate(session.students):
            name_edit = QLineEdit(student.name)
            name_edit.setPlaceholderText("Student name")
            name_edit.textEdited.connect(
                lambda text, sid=student.id: self._on_name_edited(sid, text))
            self._install(name_edit, nav.Focus(r, nav.NAME_COLUMN))
            self._table.setCellWidget(r, 0, name_edit)
            row_editors = [name_edit]

            for c, sec in enumerate(sections):
                edit = QLineEdit(str(effective_mark(student, sec)))
                edit.setAlignment(Qt.AlignmentFlag.AlignCenter)
                edit.setMaximumWidth(90)
                edit.textEdited.connect(
                    lambda text, e=edit, sid=student.id, sec_id=sec.id:
                        self._on_mark_edited(e, sid, sec_id, text))
                self._install(edit, nav.Focus(r, c))
                self._table.setCellWidget(r, c + 1, edit)
                row_editors.append(edit)

            total_item = QTableWidgetItem(str(self._controller.total(student)))
            total_item.setFlags(Qt.ItemFlag.ItemIsEnabled)
            total_item.setTextAlignment(Qt.AlignmentFlag.AlignCenter)
            total_item.setBackground(_TOTAL_BG)
            total_item.setForeground(_TOTAL_FG)
            bold = total_item.font()
            bold.setBold(True)
            total_item.setFont(bold)
            self._table.setItem(r, total_col, total_item)

            del_btn = QPushButton("×")
            del_btn.setToolTip("Delete this student")
            del_btn.setFocusPolicy(Qt.FocusPolicy.NoFocus)
            del_btn.setFixedWidth(28)
            del_btn.clicked.connect(
                lambda _=False, sid=student.id: self._on_delete_clicked(sid))
            self._table.setCellWidget(r, total_col + 1, del_btn)

            self._rows.append(row_editors)

    def _install(self, editor: QLineEdit, focus: nav.Focus):
        self._editors[editor] = focus
        editor.installEventFilter(self)

    # ── Internal: refresh ─────────────────────────────────────────────────────

    def _refresh_row(self, row: int):
        """Re-read one row's marks and total from the session."""
        session = self._controller.session
        student = session.students[row]
        editors = self._rows[row]
        for c, sec in enumerate(session.sections):
            text = str(effective_mark(student, sec))
            if editors[c + 1].text() != text:
                editors[c + 1].setText(text)
        item = self._table.item(row, len(session.sections) + 1)
        if item is not None:
            item.setText(str(self._controller.total(student)))

    def _refresh_stats(self):
        stats = self._controller.statistics()
        self._stat_labels["count"].setText(str(stats.count))
        self._stat_labels["avg"].setText(format_statistic(stats.average, 1))
        self._stat_labels["high"].setText(format_statistic(stats.high))
        self._stat_labels["low"].setText(format_statistic(stats.low))
        self._stat_labels["max"].setText(str(stats.max_possible))

    # ── Slots ─────────────────────────────────────────────────────────────────

    def _on_name_edited(self, student_id: int, text: str):
        self._controller.set_student_name(student_id, text)
        self._refresh_stats()

    def _on_mark_edited(self, editor: QLineEdit, student_id: int,
                        section_id: int, text: str):
        value = self._controller.set_mark(student_id, section_id, text)
        # Out-of-range or non-numeric input is corrected in place.
        if text.strip() and editor.text() != str(value):
            editor.setText(str(value))
        row = self._controller.session.index_of_student(student_id)
        if row >= 0:
            item = self._table.item(row, len(self._controller.session.sections) + 1)
            if item is not None:
                item.setText(str(self._controller.total(
                    self._controller.session.students[row])))
        self._refresh_stats()

    def _on_add_clicked(self):
        row = self._controller.add_student()
        self.rebuild(nav.Focus(row, nav.NAME_COLUMN))

    def _on_delete_clicked(self, student_id: int):
        students = self._controller.session.students
        deleted_row = self._controller.session.index_of_student(student_id)
        focused_id, column = None, nav.NAME_COLUMN
        if self._focus is not None and 0 <= self._focus.row < len(students):
            focused_id, column = students[self._focus.row].id, self._focus.column
        confirm = ask_confirmation(self, "Delete Student")
        if not self._controller.delete_student(student_id, confirm):
            return
        self._focus = self._controller.focus_on_student(focused_id, column,
                                                        deleted_row)
        self.rebuild(self._focus)

    # ── Keyboard ──────────────────────────────────────────────────────────────

    def eventFilter(self, obj: QObject, event: QEvent) -> bool:
        focus = self._editors.get(obj)
        if focus is None:
            return super().eventFilter(obj, event)

        if event.type() == QEvent.Type.FocusIn:
            self._focus = focus
            if not focus.on_name:
                # Deferred so a mouse click does not immediately clear it.
                QTimer.singleShot(0, obj.selectAll)
            return False

        if event.type() != QEvent.Type.KeyPress:
            return False

        key = _key_name(event)
        if key is None:
            return False
        rows_before = len(self._controller.session.students)
        next_focus = self._controller.handle_key(key, focus)
        if next_focus is None:
            return False

        if len(self._controller.session.students) != rows_before:
            # The key press belongs to an editor that the rebuild replaces.
            QTimer.singleShot(0, lambda: self.rebuild(next_focus))
            return True
        if next_focus == focus:
            self._refresh_row(focus.row)
            self._refresh_stats()
            return True
        self.focus_cell(next_focus)
        return True
