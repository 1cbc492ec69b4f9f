"""
Path catalog: the ordered list of image files in a directory together with
the load state of each one.
"""

import os
import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from .image_processing.image_decoder import is_supported_extension

logger = logging.getLogger(__name__)


class LoadState(Enum):
    NOT_LOADED = "not_loaded"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


@dataclass
class ImageEntry:
    """
    One discovered image file.

    `path` is the identity key. `state`, `error` and `dimensions` are only
    written by the prefetch scheduler while holding the catalog lock.
    """

    path: str
    state: LoadState = LoadState.NOT_LOADED
    error: Optional[str] = None  # failure reason, set only when FAILED
    dimensions: Optional[Tuple[int, int]] = None

    @property
    def basename(self) -> str:
        return os.path.basename(self.path)


class PathCatalog:
    """Ordered, deduplicated image entries. Order is fixed once scanned."""

    def __init__(self, directory: Optional[str] = None):
        self.directory = directory
        self._entries: List[ImageEntry] = []
        self._index_by_path: Dict[str, int] = {}
        self.lock = threading.RLock()

    @classmethod
    def scan(cls, directory: str) -> "PathCatalog":
        """
        Lists the supported image files directly inside `directory`.

        An empty directory yields an empty catalog.

        Raises:
            OSError: if the directory does not exist or cannot be read.
        """
        start_time = time.perf_counter()
        directory = os.path.normpath(directory)
        logger.info(f"Starting file scan in: {directory}")

        names = os.listdir(directory)  # propagates OSError for unreadable dirs
        catalog = cls(directory)
        for filename in sorted(names, key=lambda n: (n.lower(), n)):
            if not is_supported_extension(filename):
                continue
            full_path = os.path.join(directory, filename)
            # Files can vanish between listdir and here
            if not os.path.isfile(full_path):
                logger.debug(f"Skipping non-file entry during scan: {full_path}")
                continue
            catalog.append(full_path)

        logger.info(
            f"File scan complete. Found {len(catalog)} images in {time.perf_counter() - start_time:.4f}s."
        )
        return catalog

    def append(self, path: str) -> Optional[ImageEntry]:
        """Adds a path at the end. Returns None if it was already present."""
        normalized_path = os.path.normpath(path)
        with self.lock:
            if normalized_path in self._index_by_path:
                logger.debug(f"Ignoring duplicate path: {normalized_path}")
                return None
            entry = ImageEntry(path=normalized_path)
            self._index_by_path[normalized_path] = len(self._entries)
            self._entries.append(entry)
            return entry

    def get(self, index: int) -> ImageEntry:
        """Returns the entry at `index`. Raises IndexError when out of range."""
        if not 0 <= index < len(self._entries):
            raise IndexError(
                f"Catalog index {index} out of range (size {len(self._entries)})"
            )
        return self._entries[index]

    def index_of(self, path: str) -> Optional[int]:
        return self._index_by_path.get(os.path.normpath(path))

    def paths(self) -> List[str]:
        return [entry.path for entry in self._entries]

    def counts(self) -> Dict[LoadState, int]:
        """Number of entries per load state."""
        result = {state: 0 for state in LoadState}
        with self.lock:
            for entry in self._entries:
                result[entry.state] += 1
        return result

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ImageEntry]:
        return iter(self._entries)

    def __repr__(self) -> str:
        return f"PathCatalog(directory={self.directory!r}, entries={len(self._entries)})"
