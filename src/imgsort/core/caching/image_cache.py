import os
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional
from PIL import Image

logger = logging.getLogger(__name__)

IndexLookup = Callable[[str], Optional[int]]


class CacheMiss(KeyError):
    """Raised by ImageCache.get when no complete entry exists for a path."""


@dataclass(frozen=True)
class CachedImage:
    """A complete cache entry. Entries are replaced whole, never modified."""

    full: Image.Image
    thumb: Image.Image


class ImageCache:
    """
    In-memory store of decoded display images and thumbnails keyed by path.

    All reads, writes and evictions go through one lock, and each entry is
    an immutable CachedImage, so a reader sees either the whole entry or a
    miss. The pinned path (the image on display) is never evicted.
    """

    def __init__(self, index_of: Optional[IndexLookup] = None):
        self._entries: Dict[str, CachedImage] = {}
        self._lock = threading.Lock()
        self._index_of = index_of
        self._pinned: Optional[str] = None

    def get(self, path: str) -> CachedImage:
        with self._lock:
            try:
                return self._entries[path]
            except KeyError:
                raise CacheMiss(path) from None

    def peek(self, path: str) -> Optional[CachedImage]:
        """Like get, but returns None on a miss."""
        with self._lock:
            return self._entries.get(path)

    def put(self, path: str, full: Image.Image, thumb: Image.Image) -> None:
        if full is None or thumb is None:
            raise ValueError("Both full and thumbnail images are required")
        entry = CachedImage(full=full, thumb=thumb)
        with self._lock:
            self._entries[path] = entry

    def pin(self, path: Optional[str]) -> None:
        """Protects `path` from eviction until another path is pinned."""
        with self._lock:
            self._pinned = path

    def unpin(self) -> None:
        self.pin(None)

    @property
    def pinned(self) -> Optional[str]:
        return self._pinned

    def evict_outside_window(self, cursor_index: int, radius: int) -> List[str]:
        """
        Drops entries whose catalog index is outside
        [cursor_index - radius, cursor_index + radius].

        Returns the evicted paths.
        """
        evicted: List[str] = []
        with self._lock:
            if self._index_of is None:
                return evicted
            low, high = cursor_index - radius, cursor_index + radius
            for path in list(self._entries):
                if path == self._pinned:
                    continue
                index = self._index_of(path)
                if index is None or not low <= index <= high:
                    del self._entries[path]
                    evicted.append(path)
        if evicted:
            logger.debug(
                f"Evicted {len(evicted)} entries outside window {cursor_index}±{radius}: "
                f"{[os.path.basename(p) for p in evicted]}"
            )
        return evicted

    def clear(self) -> None:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            self._pinned = None
        logger.info(f"Cleared {count} items from image cache.")

    def paths(self) -> List[str]:
        with self._lock:
            return list(self._entries)

    def __contains__(self, path: str) -> bool:
        with self._lock:
            return path in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
