import os
import heapq
import logging
import threading
import time
import concurrent.futures
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from PIL import Image

from .app_settings import PrefetchConfig
from .caching.image_cache import ImageCache
from .caching.disk_image_cache import DiskImageCache, KIND_FULL, KIND_THUMBNAIL
from .image_processing.image_decoder import DecodedImage, DecodeError, ImageDecoder
from .path_catalog import ImageEntry, LoadState, PathCatalog

logger = logging.getLogger(__name__)

# PIL info key used to keep the source size alongside a disk-cached display image
SOURCE_SIZE_INFO_KEY = "imgsort_source_size"


def window_priority(offset: int) -> Tuple[int, int]:
    """
    Sort key for an entry `offset` positions away from the cursor.

    The cursor itself sorts first, then entries by distance, forward before
    backward at equal distance.
    """
    return (abs(offset), 0 if offset >= 0 else 1)


@dataclass(order=True)
class WorkItem:
    priority: Tuple[int, int]
    index: int = field(compare=False)
    path: str = field(compare=False)


@dataclass
class _InFlight:
    index: int
    cancel: threading.Event = field(default_factory=threading.Event)


class PrefetchScheduler:
    """
    Keeps the entries around the cursor decoded and in the ImageCache.

    At most `config.worker_count` loads run at once. Pending work is a heap
    ordered by distance from the cursor, rebuilt on every cursor move, so
    the most recent cursor position always wins. Cancellation is advisory:
    a worker checks its flag before decoding and leaves the entry NOT_LOADED
    if it was cancelled. A load already decoding runs to completion, and the
    next window-maintenance pass evicts it if it is out of range.
    """

    def __init__(
        self,
        catalog: PathCatalog,
        cache: ImageCache,
        config: PrefetchConfig,
        decoder=ImageDecoder,
        disk_cache: Optional[DiskImageCache] = None,
    ):
        self._catalog = catalog
        self._cache = cache
        self._config = config
        self._decoder = decoder
        self._disk_cache = disk_cache

        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)
        self._queue: List[WorkItem] = []
        self._in_flight: Dict[str, _InFlight] = {}
        self._cursor: Optional[int] = None
        self._shutdown = False

        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=config.worker_count, thread_name_prefix="imgsort-prefetch"
        )
        logger.info(
            f"PrefetchScheduler initialized (workers: {config.worker_count}, radius: {config.window_radius})"
        )

    @property
    def config(self) -> PrefetchConfig:
        return self._config

    @property
    def cursor(self) -> Optional[int]:
        return self._cursor

    def in_window(self, index: int) -> bool:
        cursor = self._cursor
        if cursor is None:
            return False
        return abs(index - cursor) <= self._config.window_radius

    def set_priority_index(self, index: int) -> None:
        """
        Re-centres preloading on `index`. Never waits on decoding.
        Calling it repeatedly with the same index has no further effect.
        """
        if not 0 <= index < len(self._catalog):
            raise IndexError(f"Priority index {index} out of range")
        with self._lock:
            if self._shutdown:
                return
            self._cursor = index
            self._update_cancellations_locked()
            self._rebuild_queue_locked()
            self._dispatch_locked()
        logger.debug(f"Priority index set to {index}")

    def maintain_window(self) -> List[str]:
        """
        Evicts cached entries outside the current window and returns their
        state to NOT_LOADED.
        """
        cursor = self._cursor
        if cursor is None:
            return []
        with self._catalog.lock:
            evicted = self._cache.evict_outside_window(
                cursor, self._config.window_radius
            )
            for path in evicted:
                index = self._catalog.index_of(path)
                if index is None:
                    continue
                entry = self._catalog.get(index)
                if entry.state == LoadState.LOADED:
                    entry.state = LoadState.NOT_LOADED
        return evicted

    def retry(self, index: int) -> bool:
        """Manually re-queues a FAILED entry. Returns False if it wasn't failed."""
        entry = self._catalog.get(index)
        with self._lock:
            if self._shutdown:
                return False
            with self._catalog.lock:
                if entry.state != LoadState.FAILED:
                    return False
                entry.state = LoadState.NOT_LOADED
                entry.error = None
            logger.info(f"Retrying load of {entry.basename}")
            self._rebuild_queue_locked()
            self._dispatch_locked()
        return True

    def wait_until_idle(self, timeout: Optional[float] = None) -> bool:
        """Blocks until nothing is queued or in flight. Not for the UI thread."""
        with self._idle:
            return self._idle.wait_for(
                lambda: self._shutdown or (not self._queue and not self._in_flight),
                timeout=timeout,
            )

    def in_flight_count(self) -> int:
        with self._lock:
            return len(self._in_flight)

    def queued_count(self) -> int:
        with self._lock:
            return len(self._queue)

    def status_text(self) -> str:
        counts = self._catalog.counts()
        total = len(self._catalog)
        text = f"Loaded: {counts[LoadState.LOADED]}/{total}"
        if counts[LoadState.FAILED]:
            text += f", Failed: {counts[LoadState.FAILED]}"
        if counts[LoadState.LOADING]:
            text += f", Loading: {counts[LoadState.LOADING]}"
        queued = self.queued_count()
        if queued:
            text += f", Queued: {queued}"
        return text

    def shutdown(self, wait: bool = True) -> None:
        """Stops scheduling. Running loads see their cancel flag and bail out."""
        with self._lock:
            if self._shutdown:
                return
            self._shutdown = True
            self._queue.clear()
            for flight in self._in_flight.values():
                flight.cancel.set()
            self._idle.notify_all()
        logger.info("PrefetchScheduler shutting down...")
        self._executor.shutdown(wait=wait)

    # --- internals, called with self._lock held ---

    def _update_cancellations_locked(self) -> None:
        for path, flight in self._in_flight.items():
            if self.in_window(flight.index):
                flight.cancel.clear()
            elif not flight.cancel.is_set():
                flight.cancel.set()
                logger.debug(f"Cancel requested for {os.path.basename(path)}")

    def _rebuild_queue_locked(self) -> None:
        cursor = self._cursor
        self._queue = []
        if cursor is None:
            return
        radius = self._config.window_radius
        size = len(self._catalog)
        with self._catalog.lock:
            for offset in range(-radius, radius + 1):
                index = cursor + offset
                if not 0 <= index < size:
                    continue
                entry = self._catalog.get(index)
                if entry.state != LoadState.NOT_LOADED or entry.path in self._in_flight:
                    continue
                self._queue.append(WorkItem(window_priority(offset), index, entry.path))
        heapq.heapify(self._queue)

    def _dispatch_locked(self) -> None:
        while self._queue and len(self._in_flight) < self._config.worker_count:
            item = heapq.heappop(self._queue)
            entry = self._catalog.get(item.index)
            with self._catalog.lock:
                if entry.state != LoadState.NOT_LOADED or entry.path in self._in_flight:
                    continue
                entry.state = LoadState.LOADING
            flight = _InFlight(index=item.index)
            self._in_flight[entry.path] = flight
            logger.debug(f"Dispatching {entry.basename} (index {item.index})")
            self._executor.submit(self._load, entry, flight.cancel)

    # --- worker side ---

    def _load(self, entry: ImageEntry, cancel: threading.Event) -> None:
        start_time = time.perf_counter()
        try:
            if cancel.is_set():
                with self._catalog.lock:
                    entry.state = LoadState.NOT_LOADED
                logger.debug(f"Skipped cancelled load of {entry.basename}")
                return
            decoded = self._decode(entry.path)
        except DecodeError as e:
            self._mark_failed(entry, e.reason)
            logger.warning(f"Failed to load {entry.basename}: {e.reason}")
        except Exception as e:
            self._mark_failed(entry, str(e) or type(e).__name__)
            logger.error(f"Error during preload of {entry.basename}", exc_info=True)
        else:
            with self._catalog.lock:
                self._cache.put(entry.path, decoded.full, decoded.thumb)
                entry.dimensions = decoded.dimensions
                entry.error = None
                entry.state = LoadState.LOADED
            logger.debug(
                f"Loaded {entry.basename} in {time.perf_counter() - start_time:.3f}s"
            )
        finally:
            self._finish(entry)

    def _finish(self, entry: ImageEntry) -> None:
        with self._lock:
            flight = self._in_flight.pop(entry.path, None)
            if not self._shutdown:
                if flight is not None and not self.in_window(flight.index):
                    # Finished after the cursor moved away; drop it now.
                    self.maintain_window()
                self._rebuild_queue_locked()
                self._dispatch_locked()
            self._idle.notify_all()

    def _mark_failed(self, entry: ImageEntry, reason: str) -> None:
        with self._catalog.lock:
            entry.state = LoadState.FAILED
            entry.error = reason

    def _decode(self, path: str) -> DecodedImage:
        display_size = self._config.display_max_size
        thumb_size = self._config.thumbnail_max_size
        disk = self._disk_cache

        if disk is not None:
            full = disk.get(path, KIND_FULL, display_size)
            if full is not None:
                thumb = disk.get(path, KIND_THUMBNAIL, thumb_size)
                if thumb is None:
                    thumb = ImageDecoder.make_thumbnail(full, thumb_size)
                    disk.set(path, KIND_THUMBNAIL, thumb_size, thumb)
                dimensions = full.info.get(SOURCE_SIZE_INFO_KEY, full.size)
                logger.debug(f"Disk cache HIT for {os.path.basename(path)}")
                return DecodedImage(full=full, thumb=thumb, dimensions=tuple(dimensions))

        decoded = self._decoder.decode(path, display_size, thumb_size)
        if disk is not None and isinstance(decoded.full, Image.Image):
            decoded.full.info[SOURCE_SIZE_INFO_KEY] = tuple(decoded.dimensions)
            disk.set(path, KIND_FULL, display_size, decoded.full)
            disk.set(path, KIND_THUMBNAIL, thumb_size, decoded.thumb)
        return decoded
