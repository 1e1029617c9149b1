"""
PySide6 desktop GUI for anki_md_sync.

Launch:
    python -m anki_md_sync --gui
    python -m anki_md_sync.gui
"""

import os
import sys
import traceback
from pathlib import Path

# Work around Wayland protocol errors on WSL2 (Qt6 defaults to Wayland
# via WSLg, which triggers buffer-size mismatches with the compositor).
if "microsoft" in os.uname().release.lower():
    os.environ.setdefault("QT_QPA_PLATFORM", "xcb")

try:
    from PySide6.QtCore import Qt, QThread, Signal, QObject, QTimer
    from PySide6.QtGui import QFont, QTextCursor, QColor, QBrush
    from PySide6.QtWidgets import (
        QApplication,
        QCheckBox,
        QFileDialog,
        QGroupBox,
        QHBoxLayout,
        QHeaderView,
        QLabel,
        QLineEdit,
        QMainWindow,
        QProgressBar,
        QPushButton,
        QSplitter,
        QTableWidget,
        QTableWidgetItem,
        QTextEdit,
        QVBoxLayout,
        QWidget,
    )
except ImportError:
    print(
        "PySide6 is required for the GUI.\n"
        "Install it with:  pip install 'anki-md-sync[gui]'"
    )
    sys.exit(1)

from . import __version__
from . import config
from .ankiconnect import AnkiConnectClient, AnkiConnectError
from .sync import SyncOutcome, sync_files

RESULT_COLUMNS = ["File", "Deck", "Synced", "Failed", "Status"]

ROW_COLOR_SUCCESS = QColor("#E8F5E9")
ROW_COLOR_ERROR   = QColor("#FFEBEE")
ROW_COLOR_NEUTRAL = QColor("#F5F5F5")


def outcome_status(outcome: SyncOutcome) -> tuple[str, QColor]:
    """Status text and row colour for one file's outcome."""
    if outcome.parse_error is not None:
        return "✗ Parse error", ROW_COLOR_ERROR
    if outcome.failed:
        return f"✗ {len(outcome.failed)} failed", ROW_COLOR_ERROR
    if outcome.succeeded == 0:
        return "— No cards", ROW_COLOR_NEUTRAL
    return "✓ Synced", ROW_COLOR_SUCCESS


# ---------------------------------------------------------------------------
# stdout capture → Qt signal
# ---------------------------------------------------------------------------

class StdoutRedirector(QObject):
    """Captures writes to sys.stdout and emits them as a Qt signal."""

    text_written = Signal(str)

    def write(self, text: str):
        if text:
            self.text_written.emit(text)

    def flush(self):
        pass


# ---------------------------------------------------------------------------
# Sync worker thread
# ---------------------------------------------------------------------------

class SyncWorker(QThread):
    """Runs sync_files() off the main thread."""

    files_found  = Signal(int)                 # total
    file_done    = Signal(object)              # SyncOutcome
    finished_ok  = Signal()
    finished_err = Signal(str)

    def __init__(self, path: str, url: str, deck: str, dry_run: bool, recursive: bool, batch: bool):
        super().__init__()
        self.path = path
        self.url = url
        self.deck = deck
        self.dry_run = dry_run
        self.recursive = recursive
        self.batch = batch

    def run(self):
        try:
            target = Path(self.path).resolve()
            if not target.exists():
                self.finished_err.emit(f"'{self.path}' is not a valid file or folder.")
                return

            client = AnkiConnectClient(self.url)
            if not self.dry_run and not client.ping():
                self.finished_err.emit(
                    f"Cannot reach AnkiConnect at {self.url}. "
                    "Is Anki running with AnkiConnect installed?"
                )
                return

            files = config.expand_inputs([target], recursive=self.recursive)
            self.files_found.emit(len(files))
            if not files:
                print(f"[batch] No .md files found in: {target}")

            sync_files(
                files, client, self.deck,
                batch=self.batch,
                dry_run=self.dry_run,
                on_file=self.file_done.emit,
            )
            self.finished_ok.emit()
        except Exception as e:
            print(f"[error] {traceback.format_exc()}")
            self.finished_err.emit(f"{type(e).__name__}: {e}")


# ---------------------------------------------------------------------------
# Main window
# ---------------------------------------------------------------------------

class MainWindow(QMainWindow):
    def __init__(self):
        super().__init__()
        self.setWindowTitle(f"Markdown → Anki v{__version__}")
        self.resize(860, 640)

        self._worker: SyncWorker | None = None
        self._stdout_backup = sys.stdout
        self._log_sink = StdoutRedirector()
        self._log_sink.text_written.connect(self._append_log)

        try:
            cfg = config.load()
            config_problem = ""
        except config.ConfigError as e:
            cfg = {}
            config_problem = str(e)
        root = QWidget()
        self.setCentralWidget(root)
        layout = QVBoxLayout(root)
        layout.addWidget(self._build_source_box())
        layout.addWidget(self._build_anki_box(cfg))
        layout.addLayout(self._build_options_row())

        self.sync_btn = QPushButton("Sync")
        self.sync_btn.setMinimumHeight(36)
        self.sync_btn.clicked.connect(self._start_sync)
        layout.addWidget(self.sync_btn)

        self.summary_label = QLabel()
        layout.addWidget(self.summary_label)
        self.file_progress = QProgressBar()
        self.file_progress.setFormat("%v / %m files")
        self.file_progress.setVisible(False)
        layout.addWidget(self.file_progress)

        splitter = QSplitter(Qt.Orientation.Vertical)
        splitter.addWidget(self._build_results_table())
        splitter.addWidget(self._build_log_view())
        splitter.setSizes([400, 160])
        layout.addWidget(splitter, 1)

        self.log_toggle = QCheckBox("Show log")
        self.log_toggle.setChecked(True)
        self.log_toggle.toggled.connect(self.log_view.setVisible)
        layout.addWidget(self.log_toggle)

        if config_problem:
            self._show_summary(f"✗ {config_problem}", "#F44336")

        QTimer.singleShot(100, self._refresh_connection)

    # -- layout builders ----------------------------------------------------

    def _build_source_box(self) -> QGroupBox:
        box = QGroupBox("Markdown source")
        row = QHBoxLayout(box)
        self.path_edit = QLineEdit()
        self.path_edit.setPlaceholderText("A .md file or a folder of notes")
        row.addWidget(self.path_edit, 1)
        for label, handler in (("File…", self._pick_file), ("Folder…", self._pick_folder)):
            btn = QPushButton(label)
            btn.clicked.connect(handler)
            row.addWidget(btn)
        return box

    def _build_anki_box(self, cfg: dict) -> QGroupBox:
        box = QGroupBox("AnkiConnect")
        row = QHBoxLayout(box)
        self.url_edit = QLineEdit(cfg.get("ankiconnect_url", config.DEFAULT_ANKICONNECT_URL))
        self.url_edit.editingFinished.connect(self._refresh_connection)
        self.deck_edit = QLineEdit(cfg.get("default_deck", config.DEFAULT_DECK))
        self.deck_edit.setToolTip("Used for files without a 'deck:' metadata entry")
        self.conn_label = QLabel()
        row.addWidget(QLabel("URL"))
        row.addWidget(self.url_edit, 2)
        row.addWidget(QLabel("Default deck"))
        row.addWidget(self.deck_edit, 1)
        row.addWidget(self.conn_label)
        return box

    def _build_options_row(self) -> QHBoxLayout:
        row = QHBoxLayout()
        self.dry_run_box = QCheckBox("Dry run")
        self.recursive_box = QCheckBox("Include subfolders")
        self.batch_box = QCheckBox("One request per file")
        for box in (self.dry_run_box, self.recursive_box, self.batch_box):
            row.addWidget(box)
        row.addStretch()
        return row

    def _build_results_table(self) -> QTableWidget:
        self.results_table = QTableWidget(0, len(RESULT_COLUMNS))
        self.results_table.setHorizontalHeaderLabels(RESULT_COLUMNS)
        self.results_table.setEditTriggers(QTableWidget.EditTrigger.NoEditTriggers)
        self.results_table.verticalHeader().setVisible(False)
        header = self.results_table.horizontalHeader()
        header.setSectionResizeMode(QHeaderView.ResizeMode.ResizeToContents)
        header.setSectionResizeMode(0, QHeaderView.ResizeMode.Stretch)
        return self.results_table

    def _build_log_view(self) -> QTextEdit:
        self.log_view = QTextEdit()
        self.log_view.setReadOnly(True)
        self.log_view.setFont(QFont("Consolas", 9))
        return self.log_view

    # -- connection ---------------------------------------------------------

    def _current_url(self) -> str:
        return self.url_edit.text().strip() or config.DEFAULT_ANKICONNECT_URL

    def _refresh_connection(self):
        client = AnkiConnectClient(self._current_url(), timeout=3)
        try:
            version = client.version()
        except AnkiConnectError:
            self.conn_label.setText("✗ Not connected")
            self.conn_label.setStyleSheet("color: #F44336;")
            return
        self.conn_label.setText(f"✓ API v{version}")
        self.conn_label.setStyleSheet("color: #4CAF50;")

    # -- pickers ------------------------------------------------------------

    def _pick_file(self):
        path, _ = QFileDialog.getOpenFileName(
            self, "Choose a markdown file", "", "Markdown (*.md);;All Files (*)"
        )
        if path:
            self.path_edit.setText(path)

    def _pick_folder(self):
        path = QFileDialog.getExistingDirectory(self, "Choose a notes folder")
        if path:
            self.path_edit.setText(path)

    # -- sync ---------------------------------------------------------------

    def _remember_settings(self, url: str, deck: str):
        cfg = config.load()
        if (cfg.get("ankiconnect_url"), cfg.get("default_deck")) != (url, deck):
            cfg.update(ankiconnect_url=url, default_deck=deck)
            config.save(cfg)

    def _start_sync(self):
        source = self.path_edit.text().strip()
        if not source:
            self._show_summary("✗ Choose a file or folder first.", "#F44336")
            return

        url = self._current_url()
        deck = self.deck_edit.text().strip() or config.DEFAULT_DECK
        try:
            self._remember_settings(url, deck)
        except config.ConfigError as e:
            self._show_summary(f"✗ {e}", "#F44336")
            return

        self.results_table.setRowCount(0)
        self.log_view.clear()
        self.file_progress.setVisible(False)
        self._show_summary("Syncing…", "")
        self.sync_btn.setEnabled(False)

        self._stdout_backup = sys.stdout
        sys.stdout = self._log_sink

        self._worker = SyncWorker(
            source, url, deck,
            dry_run=self.dry_run_box.isChecked(),
            recursive=self.recursive_box.isChecked(),
            batch=self.batch_box.isChecked(),
        )
        self._worker.files_found.connect(self._on_files_found)
        self._worker.file_done.connect(self._add_outcome_row)
        self._worker.finished_ok.connect(self._on_finished)
        self._worker.finished_err.connect(self._on_failed)
        self._worker.start()

    def _on_files_found(self, total: int):
        self.file_progress.setRange(0, max(total, 1))
        self.file_progress.setValue(0)
        self.file_progress.setVisible(True)

    def _add_outcome_row(self, outcome: SyncOutcome):
        status, color = outcome_status(outcome)
        cells = (
            Path(outcome.file).name,
            outcome.deck,
            str(outcome.succeeded),
            str(len(outcome.failed)),
            status,
        )
        tooltip = str(outcome.parse_error) if outcome.parse_error else "\n".join(
            f"card {idx}: {err}" for idx, err in outcome.failed
        )
        row = self.results_table.rowCount()
        self.results_table.insertRow(row)
        for col, text in enumerate(cells):
            item = QTableWidgetItem(text)
            item.setBackground(QBrush(color))
            item.setToolTip(tooltip)
            self.results_table.setItem(row, col, item)
        self.file_progress.setValue(row + 1)

    def _on_finished(self):
        sys.stdout = self._stdout_backup
        total = self.results_table.rowCount()
        if total == 0:
            self._show_summary("No .md files found", "")
        else:
            failed = sum(
                1 for r in range(total)
                if self.results_table.item(r, len(RESULT_COLUMNS) - 1).text().startswith("✗")
            )
            color = "#F44336" if failed else "#4CAF50"
            self._show_summary(f"Done: {total - failed}/{total} files clean", color)
        self.sync_btn.setEnabled(True)

    def _on_failed(self, msg: str):
        sys.stdout = self._stdout_backup
        self._show_summary(f"✗ {msg}", "#F44336")
        self.log_toggle.setChecked(True)
        self.sync_btn.setEnabled(True)

    # -- helpers ------------------------------------------------------------

    def _show_summary(self, text: str, color: str):
        style = "font-weight: bold;"
        if color:
            style += f" color: {color};"
        self.summary_label.setStyleSheet(style)
        self.summary_label.setText(text)

    def _append_log(self, text: str):
        cursor = self.log_view.textCursor()
        cursor.movePosition(QTextCursor.MoveOperation.End)
        cursor.insertText(text)
        self.log_view.setTextCursor(cursor)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main():
    app = QApplication(sys.argv)
    window = MainWindow()
    window.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
