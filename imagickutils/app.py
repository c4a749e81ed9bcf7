from __future__ import annotations

from pathlib import Path
from typing import Iterable

from PySide6.QtCore import QObject, Qt, QThread, Signal, QSettings
from PySide6.QtGui import QAction
from PySide6.QtWidgets import (
    QApplication,
    QCheckBox,
    QComboBox,
    QFileDialog,
    QFormLayout,
    QFrame,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QPlainTextEdit,
    QProgressBar,
    QPushButton,
    QSlider,
    QVBoxLayout,
    QWidget,
)

from . import config
from .convert import downsize_file, resolve_tool, validate_downsize_options
from .errors import OptionsError, ToolNotFoundError
from .models import BatchResult, DownsizeOptions, ItemResult

NO_DOWNSIZE_LABEL = "Don't downsize"


def collect_dropped_files(paths: Iterable[Path], suffixes: frozenset[str] = config.IMAGE_SUFFIXES) -> list[Path]:
    files: list[Path] = []
    for path in paths:
        if path.is_dir():
            for item in sorted(path.rglob("*")):
                if item.is_file() and item.suffix.lower() in suffixes:
                    files.append(item)
        elif path.is_file() and path.suffix.lower() in suffixes:
            files.append(path)
    return list(dict.fromkeys(files))


def downsize_label(value: str) -> str:
    return f"{value}p" if value else NO_DOWNSIZE_LABEL


def downsize_value(label: str) -> str:
    if label == NO_DOWNSIZE_LABEL:
        return ""
    return label.rstrip("p")


class DownsizeWorker(QObject):
    progress = Signal(int, ItemResult)
    finished = Signal(BatchResult)

    def __init__(self, files: list[Path], options: DownsizeOptions, tool: str) -> None:
        super().__init__()
        self.files = files
        self.options = options
        self.tool = tool

    def run(self) -> None:
        results = []
        total = len(self.files)
        for index, path in enumerate(self.files, start=1):
            result = downsize_file(path, self.options, self.tool)
            results.append(result)
            self.progress.emit(int(index * 100 / total), result)
        self.finished.emit(BatchResult.from_items(results))


class DropArea(QFrame):
    dropped = Signal(list)

    def __init__(self) -> None:
        super().__init__()
        self.setAcceptDrops(True)
        self.setFrameShape(QFrame.NoFrame)
        self.setMinimumHeight(110)
        self.setStyleSheet(
            "QFrame { border: 1px solid #d0d0d0; border-radius: 8px; background: #fafafa; }"
        )
        layout = QVBoxLayout()
        label = QLabel("Drop images or folders here to downsize them (output next to the originals)")
        label.setAlignment(Qt.AlignCenter)
        layout.addWidget(label)
        self.setLayout(layout)

    def dragEnterEvent(self, event) -> None:
        if event.mimeData().hasUrls():
            event.acceptProposedAction()
        else:
            event.ignore()

    def dropEvent(self, event) -> None:
        urls = event.mimeData().urls()
        paths = [Path(url.toLocalFile()) for url in urls if url.toLocalFile()]
        if paths:
            self.dropped.emit(paths)


class MainWindow(QMainWindow):

    def __init__(self) -> None:
        super().__init__()
        self.setWindowTitle("Downsize Image")
        self.resize(760, 560)
        self.thread: QThread | None = None
        self.worker: DownsizeWorker | None = None
        self.settings = QSettings(config.SETTINGS_ORGANIZATION, config.SETTINGS_APPLICATION)
        self.drop_area = DropArea()
        self.quality_slider = QSlider(Qt.Horizontal)
        self.quality_value = QLabel()
        self.downsize_combo = QComboBox()
        self.skip_whatsapp_checkbox = QCheckBox("Skip WhatsApp images")
        self.skip_downsized_checkbox = QCheckBox("Skip previously downsized images")
        self.delete_checkbox = QCheckBox("Delete originals")
        self.trash_checkbox = QCheckBox("Trash originals")
        self.dry_run_checkbox = QCheckBox("Dry run")
        self.pick_button = QPushButton("Choose images...")
        self.progress_bar = QProgressBar()
        self.log_area = QPlainTextEdit()
        self.setup_ui()

    def setup_ui(self) -> None:
        central = QWidget()
        layout = QVBoxLayout()
        layout.addWidget(self.drop_area)
        layout.addWidget(self.build_options_group())
        layout.addWidget(self.pick_button)
        layout.addWidget(self.progress_bar)
        layout.addWidget(self.log_area)
        central.setLayout(layout)
        self.setCentralWidget(central)
        self.log_area.setReadOnly(True)
        self.progress_bar.setValue(0)
        self.quality_slider.setRange(0, 100)
        self.downsize_combo.addItems([downsize_label(value) for value in config.DOWNSIZE_CHOICES])
        self.load_settings()
        self.quality_slider.valueChanged.connect(self.on_quality_changed)
        self.delete_checkbox.toggled.connect(self.on_delete_toggled)
        self.trash_checkbox.toggled.connect(self.on_trash_toggled)
        self.pick_button.clicked.connect(self.pick_input_files)
        self.drop_area.dropped.connect(self.on_drop_paths)
        exit_action = QAction("Quit", self)
        exit_action.triggered.connect(self.close)
        self.menuBar().addAction(exit_action)

    def build_options_group(self) -> QGroupBox:
        group = QGroupBox("Options")
        layout = QFormLayout()
        quality_layout = QHBoxLayout()
        quality_layout.addWidget(self.quality_slider)
        quality_layout.addWidget(self.quality_value)
        skip_layout = QHBoxLayout()
        skip_layout.addWidget(self.skip_whatsapp_checkbox)
        skip_layout.addWidget(self.skip_downsized_checkbox)
        cleanup_layout = QHBoxLayout()
        cleanup_layout.addWidget(self.delete_checkbox)
        cleanup_layout.addWidget(self.trash_checkbox)
        cleanup_layout.addWidget(self.dry_run_checkbox)
        layout.addRow("JPEG quality", quality_layout)
        layout.addRow("Downsize to", self.downsize_combo)
        layout.addRow(skip_layout)
        layout.addRow(cleanup_layout)
        group.setLayout(layout)
        return group

    def pick_input_files(self) -> None:
        files, _ = QFileDialog.getOpenFileNames(
            self,
            "Choose images",
            "",
            "Images ({})".format(" ".join(f"*{suffix}" for suffix in sorted(config.IMAGE_SUFFIXES))),
        )
        if files:
            self.start_downsizing([Path(file) for file in files])

    def on_drop_paths(self, paths: list[Path]) -> None:
        if self.thread is not None:
            return
        files = collect_dropped_files(paths)
        if not files:
            self.append_log("No images found")
            return
        self.start_downsizing(files)

    def on_quality_changed(self, value: int) -> None:
        self.quality_value.setText(str(value))

    def on_delete_toggled(self, checked: bool) -> None:
        if checked:
            self.trash_checkbox.setChecked(False)

    def on_trash_toggled(self, checked: bool) -> None:
        if checked:
            self.delete_checkbox.setChecked(False)

    def current_options(self) -> DownsizeOptions:
        return DownsizeOptions(
            quality=self.quality_slider.value(),
            downsize_to=downsize_value(self.downsize_combo.currentText()),
            skip_whatsapp=self.skip_whatsapp_checkbox.isChecked(),
            skip_downsized=self.skip_downsized_checkbox.isChecked(),
            delete_original=self.delete_checkbox.isChecked(),
            trash_original=self.trash_checkbox.isChecked(),
            dry_run=self.dry_run_checkbox.isChecked(),
        )

    def start_downsizing(self, files: list[Path]) -> None:
        if self.thread is not None:
            return
        options = self.current_options()
        try:
            validate_downsize_options(options)
            tool = resolve_tool(options.convert_path, options.dry_run)
        except (OptionsError, ToolNotFoundError) as exc:
            self.append_log(str(exc))
            return
        self.save_settings()
        self.pick_button.setEnabled(False)
        self.progress_bar.setValue(0)
        self.log_area.clear()
        self.append_log(f"Using {tool}")
        self.append_log(f"Downsizing {len(files)} image(s)")
        self.thread = QThread()
        self.worker = DownsizeWorker(files, options, tool)
        self.worker.moveToThread(self.thread)
        self.thread.started.connect(self.worker.run)
        self.worker.progress.connect(self.on_progress)
        self.worker.finished.connect(self.on_finished)
        self.worker.finished.connect(self.thread.quit)
        self.thread.finished.connect(self.on_thread_finished)
        self.thread.start()

    def on_progress(self, percent: int, result: ItemResult) -> None:
        self.progress_bar.setValue(percent)
        name = Path(result.item_id).name
        if result.output is not None and result.success:
            self.append_log(f"{name} -> {result.output.name}: {result.message}")
        else:
            self.append_log(f"{name}: {result.message}")

    def on_finished(self, result: BatchResult) -> None:
        self.append_log(f"Done: {result.success_count} of {len(result.items)} succeeded ({result.message})")
        self.progress_bar.setValue(100)

    def on_thread_finished(self) -> None:
        self.pick_button.setEnabled(True)
        self.thread = None
        self.worker = None

    def append_log(self, text: str) -> None:
        self.log_area.appendPlainText(text)

    def load_settings(self) -> None:
        quality = int(self.settings.value("quality", config.DEFAULT_DOWNSIZE_QUALITY))
        self.quality_slider.setValue(quality)
        self.quality_value.setText(str(quality))
        downsize_to = str(self.settings.value("downsize_to", config.DEFAULT_DOWNSIZE_TO))
        if downsize_to not in config.DOWNSIZE_CHOICES:
            downsize_to = config.DEFAULT_DOWNSIZE_TO
        self.downsize_combo.setCurrentText(downsize_label(downsize_to))
        self.skip_whatsapp_checkbox.setChecked(self.settings.value("skip_whatsapp", True, type=bool))
        self.skip_downsized_checkbox.setChecked(self.settings.value("skip_downsized", True, type=bool))

    def save_settings(self) -> None:
        self.settings.setValue("quality", self.quality_slider.value())
        self.settings.setValue("downsize_to", downsize_value(self.downsize_combo.currentText()))
        self.settings.setValue("skip_whatsapp", self.skip_whatsapp_checkbox.isChecked())
        self.settings.setValue("skip_downsized", self.skip_downsized_checkbox.isChecked())


def main() -> None:
    app = QApplication([])
    window = MainWindow()
    window.show()
    app.exec()
