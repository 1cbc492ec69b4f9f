import diskcache
import os
import logging
import time
from PIL import Image
from typing import Optional, Tuple
from ..app_settings import (
    DEFAULT_THUMBNAIL_DISK_CACHE_SIZE_MB,
    THUMBNAIL_MIN_FILE_SIZE,
)

logger = logging.getLogger(__name__)

# Default path for the decoded image cache
DEFAULT_DISK_IMAGE_CACHE_DIR = os.path.join(
    os.path.expanduser("~"), ".cache", "imgsort_images"
)

KIND_FULL = "full"
KIND_THUMBNAIL = "thumbnail"

DiskCacheKey = Tuple[str, int, int, str, Tuple[int, int]]


class DiskImageCache:
    """
    Manages a disk-based cache for decoded images (PIL.Image objects).

    Display images and thumbnails are stored separately under a key made of
    the normalized path, the file's mtime and size, the kind and the bounding
    box, so an edited file never hits an outdated entry.
    """

    def __init__(
        self,
        cache_dir: str = DEFAULT_DISK_IMAGE_CACHE_DIR,
        size_limit: int = DEFAULT_THUMBNAIL_DISK_CACHE_SIZE_MB * 1024 * 1024,
    ):
        """
        Initializes the image cache.

        Args:
            cache_dir (str): The directory where the cache will be stored.
            size_limit (int): The maximum size of the cache in bytes.
        """
        init_start_time = time.perf_counter()
        logger.info(
            f"Initializing disk image cache: {cache_dir} (Size Limit: {size_limit / (1024 * 1024):.2f} MB)"
        )
        os.makedirs(cache_dir, exist_ok=True)
        self._cache_dir = cache_dir
        self._cache = diskcache.Cache(
            directory=cache_dir,
            size_limit=size_limit,
            disk_min_file_size=THUMBNAIL_MIN_FILE_SIZE,
        )
        logger.debug(
            f"Initialization complete in {time.perf_counter() - init_start_time:.4f}s"
        )

    @staticmethod
    def key_for(
        file_path: str, kind: str, max_size: Tuple[int, int]
    ) -> Optional[DiskCacheKey]:
        """Builds the cache key for a file, or None if the file can't be stat'ed."""
        normalized_path = os.path.normpath(file_path)
        try:
            st = os.stat(normalized_path)
        except OSError:
            return None
        return (normalized_path, st.st_mtime_ns, st.st_size, kind, tuple(max_size))

    def get(
        self, file_path: str, kind: str, max_size: Tuple[int, int]
    ) -> Optional[Image.Image]:
        """
        Retrieves a cached image.

        Returns:
            Optional[Image.Image]: The cached PIL Image, or None if not found or not an Image.
        """
        key = self.key_for(file_path, kind, max_size)
        if key is None:
            return None
        try:
            cached_item = self._cache.get(key)
            if isinstance(cached_item, Image.Image):
                return cached_item
            elif cached_item is not None:
                logger.warning(
                    f"Invalid item type in disk image cache for key '{key}': {type(cached_item)}"
                )
            return None
        except Exception as e:
            logger.error(
                f"Error reading from disk image cache for key '{key}': {e}",
                exc_info=True,
            )
            return None

    def set(
        self, file_path: str, kind: str, max_size: Tuple[int, int], value: Image.Image
    ) -> None:
        """Adds or updates a cached image."""
        if not isinstance(value, Image.Image):
            logger.error(
                f"Attempted to cache non-Image object for '{file_path}'. Type: {type(value)}"
            )
            return
        key = self.key_for(file_path, kind, max_size)
        if key is None:
            return
        try:
            self._cache.set(key, value)
        except Exception as e:
            logger.error(
                f"Error writing to disk image cache for key '{key}': {e}", exc_info=True
            )

    def delete_all_for_path(self, file_path: str) -> None:
        """Deletes all cache entries for a specific file path."""
        normalized_path = os.path.normpath(file_path)
        try:
            keys_to_delete = [
                key
                for key in self._cache
                if isinstance(key, tuple) and key and key[0] == normalized_path
            ]
            for key in keys_to_delete:
                del self._cache[key]
            if keys_to_delete:
                logger.info(
                    f"Deleted {len(keys_to_delete)} disk cache entries for {os.path.basename(file_path)}"
                )
        except Exception as e:
            logger.error(
                f"Error deleting disk cache entries for path '{file_path}': {e}",
                exc_info=True,
            )

    def clear(self) -> None:
        """Clears all items from the cache."""
        try:
            count = len(self._cache)
            self._cache.clear()
            logger.info(f"Cleared {count} items from disk image cache.")
        except Exception as e:
            logger.error(f"Error clearing disk image cache: {e}", exc_info=True)

    def volume(self) -> int:
        """Returns the current disk usage of the cache in bytes."""
        try:
            return self._cache.volume()
        except Exception as e:
            logger.error(f"Error getting disk image cache volume: {e}", exc_info=True)
            return 0

    def close(self) -> None:
        try:
            self._cache.close()
            logger.debug("Disk image cache closed.")
        except Exception:
            logger.error("Error closing disk image cache.", exc_info=True)

    def __len__(self) -> int:
        return len(self._cache)
