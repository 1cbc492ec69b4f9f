"""
Directory Scan Worker
Background worker for building a PathCatalog without blocking the UI.
"""

import logging
from PyQt6.QtCore import QObject, pyqtSignal

from imgsort.core.path_catalog import PathCatalog

logger = logging.getLogger(__name__)


class DirectoryScanWorker(QObject):
    """Worker for scanning a directory in a background thread."""

    # Signals
    finished = pyqtSignal(object)  # PathCatalog
    error = pyqtSignal(str)

    def __init__(self, directory: str, parent=None):
        super().__init__(parent)
        self.directory = directory
        self._is_running = True

    def stop(self):
        """Signal the worker to drop its result."""
        self._is_running = False
        logger.info("Directory scan worker stop requested")

    def run(self):
        try:
            catalog = PathCatalog.scan(self.directory)
        except OSError as e:
            error_msg = f"Cannot read folder '{self.directory}': {e.strerror or e}"
            logger.error(error_msg)
            if self._is_running:
                self.error.emit(error_msg)
            return
        except Exception as e:
            error_msg = f"Error during scan: {e}"
            logger.error(error_msg, exc_info=True)
            if self._is_running:
                self.error.emit(error_msg)
            return

        if self._is_running:
            self.finished.emit(catalog)
        else:
            logger.info("Directory scan finished after stop request; result dropped")
