"""Configuration view: session title, sections and hotkey bindings."""
from PySide6.QtCore import Signal
from PySide6.QtWidgets import (
    QFormLayout,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPushButton,
    QSpinBox,
    QVBoxLayout,
    QWidget,
)

from session_controller import SessionController

_MAX_SPIN = 10_000   # upper bound for max-marks / deduction spin boxes


class SetupPanel(QWidget):
    start_requested = Signal()

    def __init__(self, controller: SessionController, parent=None):
        super().__init__(parent)
        self._controller = controller

        layout = QVBoxLayout(self)
        layout.setContentsMargins(12, 12, 12, 12)

        layout.addWidget(QLabel(
            "<b>Oral Test Marker</b><br>"
            "Configure the sections and deduction hotkeys, then start marking.<br>"
            "While marking, press a hotkey in a mark cell to deduct from it; "
            "Enter moves to the next cell."
        ))

        form = QFormLayout()
        self._title_edit = QLineEdit()
        self._title_edit.setPlaceholderText("e.g. Oral Test — Class 3B")
        self._title_edit.textEdited.connect(self._controller.set_title)
        form.addRow("Session title:", self._title_edit)
        layout.addLayout(form)

        # ── Sections ──────────────────────────────────────────────────────────
        sec_box = QGroupBox("Sections")
        sec_layout = QVBoxLayout(sec_box)
        self._sections_rows = QVBoxLayout()
        sec_layout.addLayout(self._sections_rows)
        add_sec = QPushButton("+ Add Section")
        add_sec.clicked.connect(self._on_add_section)
        sec_layout.addWidget(add_sec)
        layout.addWidget(sec_box)

        # ── Hotkeys ───────────────────────────────────────────────────────────
        hk_box = QGroupBox("Deduction hotkeys")
        hk_layout = QVBoxLayout(hk_box)
        self._hotkey_rows = QVBoxLayout()
        hk_layout.addLayout(self._hotkey_rows)
        add_hk = QPushButton("+ Add Hotkey")
        add_hk.clicked.connect(self._on_add_hotkey)
        hk_layout.addWidget(add_hk)
        layout.addWidget(hk_box)

        layout.addStretch()
        start_btn = QPushButton("Start Marking")
        start_btn.setDefault(True)
        start_btn.clicked.connect(self.start_requested.emit)
        layout.addWidget(start_btn)

    # ── Public API ────────────────────────────────────────────────────────────

    def rebuild(self):
        session = self._controller.session
        self._title_edit.setText(session.title)
        _clear_layout(self._sections_rows)
        for index, sec in enumerate(session.sections):
            self._sections_rows.addLayout(self._section_row(index, sec.name, sec.max_marks))
        _clear_layout(self._hotkey_rows)
        for index, hk in enumerate(session.hotkeys):
            self._hotkey_rows.addLayout(
                self._hotkey_row(index, hk.key, hk.deduction, hk.label))

    # ── Row builders ──────────────────────────────────────────────────────────

    def _section_row(self, index: int, name: str, max_marks: int) -> QHBoxLayout:
        row = QHBoxLayout()
        name_edit = QLineEdit(name)
        name_edit.setPlaceholderText("Section Name")
        name_edit.textEdited.connect(
            lambda text: self._controller.update_section(index, name=text))
        row.addWidget(name_edit)

        max_spin = QSpinBox()
        max_spin.setRange(0, _MAX_SPIN)
        max_spin.setValue(max_marks)
        max_spin.setToolTip("Max Marks")
        max_spin.valueChanged.connect(
            lambda value: self._controller.update_section(index, max_marks=value))
        row.addWidget(max_spin)

        remove = QPushButton("×")
        remove.setFixedWidth(28)
        remove.setToolTip("Remove section")
        remove.clicked.connect(lambda: self._on_remove_section(index))
        row.addWidget(remove)
        return row

    def _hotkey_row(self, index: int, key: str, deduction: int,
                    label: str) -> QHBoxLayout:
        row = QHBoxLayout()
        key_edit = QLineEdit(key)
        key_edit.setMaxLength(1)
        key_edit.setFixedWidth(40)
        key_edit.setPlaceholderText("Key")
        key_edit.textEdited.connect(
            lambda text: self._on_hotkey_key_edited(index, key_edit, text))
        row.addWidget(key_edit)

        spin = QSpinBox()
        spin.setRange(0, _MAX_SPIN)
        spin.setValue(deduction)
        spin.setToolTip("Deduction")
        spin.valueChanged.connect(
            lambda value: self._controller.update_hotkey(index, deduction=value))
        row.addWidget(spin)

        label_edit = QLineEdit(label)
        label_edit.setPlaceholderText("Label")
        label_edit.textEdited.connect(
            lambda text: self._controller.update_hotkey(index, label=text))
        row.addWidget(label_edit)

        remove = QPushButton("×")
        remove.setFixedWidth(28)
        remove.setToolTip("Remove hotkey")
        remove.clicked.connect(lambda: self._on_remove_hotkey(index))
        row.addWidget(remove)
        return row

    # ── Slots ─────────────────────────────────────────────────────────────────

    def _on_add_section(self):
        self._controller.add_section()
        self.rebuild()

    def _on_remove_section(self, index: int):
        self._controller.remove_section(index)
        self.rebuild()

    def _on_add_hotkey(self):
        self._controller.add_hotkey()
        self.rebuild()

    def _on_remove_hotkey(self, index: int):
        self._controller.remove_hotkey(index)
        self.rebuild()

    def _on_hotkey_key_edited(self, index: int, editor: QLineEdit, text: str):
        binding = self._controller.update_hotkey(index, key=text)
        if editor.text() != binding.key:
            editor.setText(binding.key)


def _clear_layout(layout):
    while layout.count():
        item = layout.takeAt(0)
        if item.widget() is not None:
            item.widget().deleteLater()
        elif item.layout() is not None:
            _clear_layout(item.layout())
            item.layout().deleteLater()
