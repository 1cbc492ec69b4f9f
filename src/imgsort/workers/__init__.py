from .directory_scan_worker import DirectoryScanWorker

__all__ = ["DirectoryScanWorker"]
