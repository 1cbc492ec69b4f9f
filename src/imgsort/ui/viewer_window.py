import logging
import os
from typing import Dict, List, Optional, Tuple

from PIL import Image
from PIL.ImageQt import ImageQt
from PyQt6.QtCore import Qt, QThread, QTimer
from PyQt6.QtGui import QAction, QKeyEvent, QPixmap
from PyQt6.QtWidgets import (
    QFileDialog,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QSizePolicy,
    QVBoxLayout,
    QWidget,
)

from imgsort.core import app_settings
from imgsort.core.frame_snapshot import EntryView, FrameSnapshot
from imgsort.core.session import SessionContext
from imgsort.ui.controllers.navigation_controller import NavigationController
from imgsort.workers.directory_scan_worker import DirectoryScanWorker

logger = logging.getLogger(__name__)

KEY_DIRECTIONS = {
    Qt.Key.Key_Left: "left",
    Qt.Key.Key_H: "left",
    Qt.Key.Key_Right: "right",
    Qt.Key.Key_L: "right",
    Qt.Key.Key_Home: "home",
    Qt.Key.Key_End: "end",
}


def pil_to_qpixmap(img: Image.Image) -> QPixmap:
    return QPixmap.fromImage(ImageQt(img))


class ViewerWindow(QMainWindow):
    """
    Shows the current image and a thumbnail strip.

    Nothing is pushed to the window: a QTimer polls the session for a
    snapshot once per frame and redraws only what changed.
    """

    def __init__(self, session: SessionContext, initial_folder: Optional[str] = None):
        super().__init__()
        self.session = session
        self.navigation_controller = NavigationController(self)
        self.setWindowTitle("imgsort")
        self.resize(1280, 900)

        self._scan_thread: Optional[QThread] = None
        self._scan_worker: Optional[DirectoryScanWorker] = None
        # Stopped scans still running in the background until their thread ends
        self._retired_scans: List[Tuple[QThread, DirectoryScanWorker]] = []
        # label -> (path, state, image id, highlight, label size) last drawn
        self._drawn: Dict[int, Tuple] = {}

        self._build_ui()
        self._build_menu()

        self.frame_timer = QTimer(self)
        self.frame_timer.setInterval(app_settings.FRAME_INTERVAL_MS)
        self.frame_timer.timeout.connect(self.poll_frame)
        self.frame_timer.start()

        if initial_folder:
            QTimer.singleShot(0, lambda: self.open_folder(initial_folder))

    # --- Layout ---
    def _build_ui(self):
        central = QWidget(self)
        layout = QVBoxLayout(central)

        self.banner_label = QLabel(central)
        self.banner_label.setObjectName("errorBanner")
        self.banner_label.setStyleSheet(
            "background-color: #702020; color: white; padding: 6px;"
        )
        self.banner_label.hide()
        layout.addWidget(self.banner_label)

        self.thumbnail_row = QHBoxLayout()
        self.thumbnail_labels: List[QLabel] = []
        for _ in range(2 * self.session.config.thumbnail_strip_radius + 1):
            label = QLabel(central)
            label.setFixedSize(
                app_settings.THUMBNAIL_DISPLAY_SIZE, app_settings.THUMBNAIL_DISPLAY_SIZE
            )
            label.setAlignment(Qt.AlignmentFlag.AlignCenter)
            self.thumbnail_labels.append(label)
            self.thumbnail_row.addWidget(label)
        layout.addLayout(self.thumbnail_row)

        self.image_label = QLabel(central)
        self.image_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.image_label.setMinimumSize(320, 240)
        self.image_label.setSizePolicy(
            QSizePolicy.Policy.Ignored, QSizePolicy.Policy.Ignored
        )
        layout.addWidget(self.image_label, stretch=1)

        self.setCentralWidget(central)
        self.position_label = QLabel(self)
        self.statusBar().addPermanentWidget(self.position_label)

    def _build_menu(self):
        file_menu = self.menuBar().addMenu("&File")
        open_action = QAction("&Open Folder...", self)
        open_action.setShortcut("Ctrl+O")
        open_action.triggered.connect(self._choose_folder)
        file_menu.addAction(open_action)

    def _choose_folder(self):
        folder = QFileDialog.getExistingDirectory(self, "Open Folder")
        if folder:
            self.open_folder(folder)

    # --- NavigationContext ---
    def get_session(self) -> Optional[SessionContext]:
        return self.session

    def status_message(self, msg: str, timeout: int = 3000) -> None:
        self.statusBar().showMessage(msg, timeout)

    # --- Folder loading ---
    def open_folder(self, folder: str):
        """Scans `folder` on a background thread, then adopts the catalog."""
        self.stop_scan()
        self.hide_banner()
        self.status_message(f"Scanning {folder}...", 0)

        thread = QThread()
        worker = DirectoryScanWorker(folder)
        worker.moveToThread(thread)
        worker.finished.connect(self._on_scan_finished)
        worker.error.connect(self._on_scan_error)
        worker.finished.connect(thread.quit)
        worker.error.connect(thread.quit)
        thread.started.connect(worker.run)
        thread.finished.connect(
            lambda t=thread, w=worker: self._cleanup_scan_refs(t, w)
        )
        self._scan_thread = thread
        self._scan_worker = worker
        thread.start()
        logger.info(f"Directory scan thread started for {folder}")

    def _on_scan_finished(self, catalog):
        if self.sender() is not self._scan_worker:
            logger.debug("Dropping result of a superseded directory scan")
            return
        self.session.adopt_catalog(catalog)
        self._drawn.clear()
        app_settings.add_recent_folder(catalog.directory)
        if len(catalog) == 0:
            self.status_message("No images found in this folder", 5000)
        else:
            self.status_message(f"Found {len(catalog)} images", 3000)

    def _on_scan_error(self, message: str):
        if self.sender() is not self._scan_worker:
            return
        self.show_banner(message)
        self.status_message("")

    def _cleanup_scan_refs(self, thread: QThread, worker: DirectoryScanWorker):
        # A newer scan may already own the refs when a stopped one finishes.
        if self._scan_worker is worker:
            self._scan_worker = None
        if self._scan_thread is thread:
            self._scan_thread = None
        if (thread, worker) in self._retired_scans:
            self._retired_scans.remove((thread, worker))
        worker.deleteLater()
        thread.deleteLater()
        logger.debug("Directory scan thread and worker cleaned up.")

    def stop_scan(self):
        """Asks the running scan to drop its result. Does not wait for it."""
        thread, worker = self._scan_thread, self._scan_worker
        if thread is None or not thread.isRunning():
            return
        if worker:
            worker.stop()
        thread.quit()
        self._retired_scans.append((thread, worker))
        self._scan_thread = None
        self._scan_worker = None

    def _wait_for_retired_scans(self):
        for thread, _ in list(self._retired_scans):
            if not thread.wait(5000):
                logger.warning("Directory scan thread did not quit in time.")

    def show_banner(self, message: str):
        self.banner_label.setText(message)
        self.banner_label.show()

    def hide_banner(self):
        self.banner_label.clear()
        self.banner_label.hide()

    # --- Frame rendering ---
    def poll_frame(self):
        self.render_frame(self.session.snapshot())

    def render_frame(self, snapshot: FrameSnapshot):
        self.position_label.setText(
            f"{snapshot.position_text}    {snapshot.status_text}".strip()
        )
        if snapshot.is_empty:
            self.image_label.clear()
            self.image_label.setText("No images")
            for label in self.thumbnail_labels:
                label.clear()
            self._drawn.clear()
            return

        box = self.session.config.display_max_size
        self._draw(self.image_label, snapshot.current, box)
        if snapshot.current.error:
            self.image_label.setToolTip(
                f"{snapshot.current.basename}: {snapshot.current.error}"
            )
        else:
            self.image_label.setToolTip(snapshot.current.path)

        # Centre the strip on the current image; unused cells stay empty.
        radius = self.session.config.thumbnail_strip_radius
        by_offset = {
            view.index - snapshot.current.index: view for view in snapshot.thumbnails
        }
        thumb_box = self.session.config.thumbnail_max_size
        for cell, label in enumerate(self.thumbnail_labels):
            view = by_offset.get(cell - radius)
            if view is None:
                label.clear()
                self._drawn.pop(id(label), None)
                continue
            self._draw(label, view, thumb_box, highlight=view.index == snapshot.current.index)

    def _draw(self, label: QLabel, view: EntryView, box, highlight: bool = False):
        key = (view.path, view.state, id(view.image), highlight, label.width(), label.height())
        if self._drawn.get(id(label)) == key:
            return
        self._drawn[id(label)] = key
        pixmap = pil_to_qpixmap(view.render(box))
        if pixmap.width() > label.width() or pixmap.height() > label.height():
            pixmap = pixmap.scaled(
                label.size(),
                Qt.AspectRatioMode.KeepAspectRatio,
                Qt.TransformationMode.SmoothTransformation,
            )
        if label is not self.image_label:
            label.setStyleSheet("border: 2px solid #3d8ee6;" if highlight else "")
            label.setToolTip(os.path.basename(view.path))
        label.setPixmap(pixmap)

    # --- Input ---
    def keyPressEvent(self, event: QKeyEvent):
        direction = KEY_DIRECTIONS.get(event.key())
        if direction is not None:
            self.navigation_controller.navigate(direction)
            event.accept()
            return
        if event.key() == Qt.Key.Key_R:
            self.navigation_controller.retry_current()
            event.accept()
            return
        super().keyPressEvent(event)

    def closeEvent(self, event):
        self.frame_timer.stop()
        self.stop_scan()
        self._wait_for_retired_scans()
        self.session.close()
        super().closeEvent(event)
