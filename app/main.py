"""Main entry point for the Oral Test Marker desktop app."""
import logging
import os
import subprocess
import sys

from PySide6.QtGui import QAction
from PySide6.QtWidgets import (
    QApplication,
    QFileDialog,
    QMainWindow,
    QMessageBox,
    QStackedWidget,
)

import data_store
import exporters
import grid_navigation as nav
import pdf_exporter
from data_store import FileStore, PersistenceGateway
from marking_panel import MarkingPanel, ask_confirmation
from session_controller import ConfigurationIncomplete, SessionController
from setup_panel import SetupPanel

logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    def __init__(self):
        super().__init__()
        self.setWindowTitle("Oral Test Marker")
        self.resize(1100, 720)

        self._settings = data_store.load_app_settings()
        data_store.set_debug(self._settings.debug_mode)
        gateway = PersistenceGateway(FileStore(self._settings.data_dir))
        self._controller = SessionController(gateway)

        self._setup_ui()
        self._load_session()

    def _setup_ui(self):
        file_menu = self.menuBar().addMenu("File")
        file_menu.addAction("Export Marks as CSV…").triggered.connect(
            lambda: self._export("csv"))
        file_menu.addAction("Export Marks as XLSX…").triggered.connect(
            lambda: self._export("xlsx"))
        file_menu.addAction("Export PDF Report…").triggered.connect(
            lambda: self._export("pdf"))
        file_menu.addSeparator()
        quit_action = file_menu.addAction("Quit")
        quit_action.triggered.connect(self.close)

        options_menu = self.menuBar().addMenu("Options")
        self._debug_action = QAction("Debug logging", self, checkable=True)
        self._debug_action.setChecked(self._settings.debug_mode)
        self._debug_action.toggled.connect(self._on_debug_toggled)
        options_menu.addAction(self._debug_action)

        self._stack = QStackedWidget()
        self.setCentralWidget(self._stack)

        self._setup_panel = SetupPanel(self._controller)
        self._setup_panel.start_requested.connect(self._start_marking)
        self._stack.addWidget(self._setup_panel)

        self._marking_panel = MarkingPanel(self._controller)
        self._marking_panel.export_requested.connect(self._export)
        self._marking_panel.end_session_requested.connect(self._end_session)
        self._stack.addWidget(self._marking_panel)

    def _load_session(self):
        data_store.dbg(f"Loading session from {self._settings.data_dir}")
        if self._controller.start():
            self._show_marking()
        else:
            self._show_setup()

    # ── Mode switching ────────────────────────────────────────────────────────

    def _show_setup(self):
        self._setup_panel.rebuild()
        self._stack.setCurrentWidget(self._setup_panel)

    def _show_marking(self):
        last_row = len(self._controller.session.students) - 1
        self._marking_panel.rebuild(nav.Focus(max(last_row, 0), nav.NAME_COLUMN))
        self._stack.setCurrentWidget(self._marking_panel)

    def _start_marking(self):
        try:
            self._controller.enter_marking_mode()
        except ConfigurationIncomplete as exc:
            QMessageBox.warning(self, "Start Marking", str(exc))
            return
        self._show_marking()

    def _end_session(self):
        if self._controller.reset_session(ask_confirmation(self, "End Session")):
            self._show_setup()

    # ── Export ────────────────────────────────────────────────────────────────

    def _export(self, kind: str):
        session = self._controller.session
        if kind == "pdf":
            filename = pdf_exporter.report_filename(session.title)
        else:
            filename = exporters.default_filename(kind)
        os.makedirs(self._settings.export_dir, exist_ok=True)
        path, _ = QFileDialog.getSaveFileName(
            self, "Export", os.path.join(self._settings.export_dir, filename))
        if not path:
            return
        stats = self._controller.statistics()
        try:
            if kind == "csv":
                exporters.export_csv(session, path)
            elif kind == "xlsx":
                exporters.export_xlsx(session, path, stats)
            else:
                pdf_exporter.export_report(session, path, stats)
        except OSError as exc:
            logger.warning("Export to %s failed: %s", path, exc)
            QMessageBox.warning(self, "Export Error", f"Could not export:\n{exc}")
            return
        dlg = QMessageBox(QMessageBox.Icon.Information, "Export",
                          f"Marks exported to:\n{path}", parent=self)
        open_btn = dlg.addButton("Open File", QMessageBox.ButtonRole.ActionRole)
        dlg.addButton(QMessageBox.StandardButton.Ok)
        dlg.exec()
        if dlg.clickedButton() is open_btn:
            _open_path(path)

    # ── Settings ──────────────────────────────────────────────────────────────

    def _on_debug_toggled(self, checked: bool):
        self._settings.debug_mode = checked
        data_store.set_debug(checked)
        try:
            data_store.save_app_settings(self._settings)
        except OSError as exc:
            logger.warning("Could not save settings: %s", exc)


def _open_path(path: str) -> None:
    """Open *path* with the platform's default handler."""
    if not os.path.exists(path):
        return
    try:
        if sys.platform == "darwin":
            subprocess.Popen(["open", path])
        elif sys.platform == "win32":
            os.startfile(path)  # type: ignore[attr-defined]
        else:
            subprocess.Popen(["xdg-open", path])
    except OSError as exc:
        logger.warning("Could not open %s: %s", path, exc)


def main():
    app = QApplication(sys.argv)
    app.setApplicationName("Oral Test Marker")
    window = MainWindow()
    window.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
