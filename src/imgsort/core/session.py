from typing import List, Optional
import logging
import os
import time

from .app_settings import PrefetchConfig
from .caching.image_cache import ImageCache
from .caching.disk_image_cache import DiskImageCache
from .frame_snapshot import EMPTY_FRAME, EntryView, FrameSnapshot
from .image_processing.image_decoder import ImageDecoder
from .navigation_cursor import NavigationCursor
from .path_catalog import LoadState, PathCatalog
from .prefetch_scheduler import PrefetchScheduler

logger = logging.getLogger(__name__)


class SessionContext:
    """
    Holds the state of one browsing session: the directory's catalog, the
    cursor, the image cache and the prefetch scheduler.

    Created once at startup and passed to whatever needs it. `open_directory`
    (re)initializes it, `close` tears it down.
    """

    def __init__(
        self,
        config: Optional[PrefetchConfig] = None,
        disk_cache: Optional[DiskImageCache] = None,
        decoder=ImageDecoder,
    ):
        self.config = config or PrefetchConfig()
        self.disk_cache = disk_cache
        self.decoder = decoder
        self.cache = ImageCache()

        self.current_folder_path: Optional[str] = None
        self.catalog: PathCatalog = PathCatalog()
        self.cursor: NavigationCursor = NavigationCursor(self.catalog)
        self.scheduler: Optional[PrefetchScheduler] = None

    def open_directory(self, directory: str) -> PathCatalog:
        """
        Scans `directory` and starts preloading around its first image.

        Raises:
            OSError: if the directory can't be read. The session is left
                empty in that case.
        """
        start_time = time.perf_counter()
        self._stop_scheduler()
        self.cache.clear()
        self.current_folder_path = None
        self.catalog = PathCatalog()
        self.cursor = NavigationCursor(self.catalog)

        catalog = PathCatalog.scan(directory)
        return self.adopt_catalog(catalog, start_time=start_time)

    def adopt_catalog(
        self, catalog: PathCatalog, start_time: Optional[float] = None
    ) -> PathCatalog:
        """Installs an already scanned catalog (e.g. from a background scan)."""
        start_time = start_time or time.perf_counter()
        self._stop_scheduler()
        # A fresh cache per catalog: late writes from the old workers land in
        # the discarded one.
        self.cache.clear()
        self.cache = ImageCache(catalog.index_of)
        self.catalog = catalog
        self.current_folder_path = catalog.directory
        self.cursor = NavigationCursor(catalog)
        if len(catalog):
            self.scheduler = PrefetchScheduler(
                catalog,
                self.cache,
                self.config,
                decoder=self.decoder,
                disk_cache=self.disk_cache,
            )
            self.cursor.attach_scheduler(self.scheduler)
        logger.info(
            f"Opened {catalog.directory} with {len(catalog)} images in {time.perf_counter() - start_time:.4f}s"
        )
        return catalog

    # --- Navigation ---
    def next(self) -> bool:
        return self.cursor.next()

    def prev(self) -> bool:
        return self.cursor.prev()

    def move_to(self, index: int) -> None:
        self.cursor.move_to(index)

    def first(self) -> bool:
        return self.cursor.first()

    def last(self) -> bool:
        return self.cursor.last()

    def retry_current(self) -> bool:
        """Re-queues the current image if its load failed."""
        index = self.cursor.index
        if index is None or self.scheduler is None:
            return False
        return self.scheduler.retry(index)

    # --- Frame snapshot ---
    def snapshot(self) -> FrameSnapshot:
        """
        Read-only view for one UI frame. Never waits on image loading.
        The current image is pinned in the cache while it is on display.
        """
        index = self.cursor.index
        if index is None:
            return EMPTY_FRAME

        current_path = self.catalog.get(index).path
        self.cache.pin(current_path)

        strip_radius = self.config.thumbnail_strip_radius
        low = max(0, index - strip_radius)
        high = min(len(self.catalog) - 1, index + strip_radius)

        thumbnails: List[EntryView] = []
        current_view: Optional[EntryView] = None
        with self.catalog.lock:
            for i in range(low, high + 1):
                entry = self.catalog.get(i)
                cached = (
                    self.cache.peek(entry.path)
                    if entry.state == LoadState.LOADED
                    else None
                )
                thumbnails.append(
                    EntryView(
                        index=i,
                        path=entry.path,
                        state=entry.state,
                        error=entry.error,
                        dimensions=entry.dimensions,
                        image=cached.thumb if cached else None,
                    )
                )
                if i == index:
                    current_view = EntryView(
                        index=i,
                        path=entry.path,
                        state=entry.state,
                        error=entry.error,
                        dimensions=entry.dimensions,
                        image=cached.full if cached else None,
                    )

        position_text = f"Image {index + 1}/{len(self.catalog)}: {os.path.basename(current_path)}"
        status_text = self.scheduler.status_text() if self.scheduler else ""
        return FrameSnapshot(
            current=current_view,
            thumbnails=tuple(thumbnails),
            position_text=position_text,
            status_text=status_text,
        )

    def wait_until_idle(self, timeout: Optional[float] = None) -> bool:
        if self.scheduler is None:
            return True
        return self.scheduler.wait_until_idle(timeout)

    # --- Teardown ---
    def _stop_scheduler(self) -> None:
        if self.scheduler is not None:
            self.scheduler.shutdown(wait=False)
            self.scheduler = None

    def close(self) -> None:
        """Stops background loading and drops all cached images."""
        logger.info("Closing session...")
        if self.scheduler is not None:
            self.scheduler.shutdown(wait=True)
            self.scheduler = None
        self.cache.clear()
        if self.disk_cache is not None:
            self.disk_cache.close()
