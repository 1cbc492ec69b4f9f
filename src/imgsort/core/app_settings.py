"""
Application Settings Module
Manages persistent application settings using QSettings.
"""

import os
from dataclasses import dataclass
from typing import Tuple
from PyQt6.QtCore import QSettings

# --- Settings Constants ---

# Settings organization and application name
SETTINGS_ORGANIZATION = "imgsort"
SETTINGS_APPLICATION = "imgsort"

# Settings keys
WINDOW_RADIUS_KEY = "Preload/WindowRadius"  # Entries preloaded on each side of the cursor
WORKER_COUNT_KEY = "Preload/WorkerCount"  # Concurrent decode workers
DISPLAY_MAX_WIDTH_KEY = "Display/MaxWidth"
DISPLAY_MAX_HEIGHT_KEY = "Display/MaxHeight"
THUMBNAIL_SIZE_KEY = "Thumbnails/Size"  # Longest edge of a thumbnail, in pixels
THUMBNAIL_STRIP_RADIUS_KEY = "Thumbnails/StripRadius"  # Thumbnails shown on each side
THUMBNAIL_DISK_CACHE_SIZE_MB_KEY = "Cache/ThumbnailDiskCacheSizeMB"
RECENT_FOLDERS_KEY = "UI/RecentFolders"  # Key for recent folders list

# Default values
DEFAULT_WINDOW_RADIUS = 5
DEFAULT_WORKER_COUNT = 4
DEFAULT_DISPLAY_MAX_RESOLUTION: Tuple[int, int] = (1920, 1200)
DEFAULT_THUMBNAIL_SIZE = 256
DEFAULT_THUMBNAIL_STRIP_RADIUS = 3
DEFAULT_THUMBNAIL_DISK_CACHE_SIZE_MB = 1024  # 1 GiB
MAX_RECENT_FOLDERS = 10  # Max number of recent folders to store

# --- UI Constants ---
FRAME_INTERVAL_MS = 60  # Snapshot polling interval of the viewer
THUMBNAIL_DISPLAY_SIZE = 96  # Thumbnail strip cell size in the viewer

# --- Cache Constants ---
THUMBNAIL_MIN_FILE_SIZE = 1024 * 1024  # 1 MB minimum file size for disk caching


@dataclass(frozen=True)
class PrefetchConfig:
    """Injected constants for the preload pipeline."""

    window_radius: int = DEFAULT_WINDOW_RADIUS
    worker_count: int = DEFAULT_WORKER_COUNT
    display_max_size: Tuple[int, int] = DEFAULT_DISPLAY_MAX_RESOLUTION
    thumbnail_max_size: Tuple[int, int] = (
        DEFAULT_THUMBNAIL_SIZE,
        DEFAULT_THUMBNAIL_SIZE,
    )
    thumbnail_strip_radius: int = DEFAULT_THUMBNAIL_STRIP_RADIUS

    def __post_init__(self):
        if self.window_radius < 0:
            raise ValueError(f"window_radius must be >= 0, got {self.window_radius}")
        if self.worker_count < 1:
            raise ValueError(f"worker_count must be >= 1, got {self.worker_count}")
        if self.thumbnail_strip_radius < 0:
            raise ValueError(
                f"thumbnail_strip_radius must be >= 0, got {self.thumbnail_strip_radius}"
            )
        # Strip cells outside the preload window would never load
        if self.thumbnail_strip_radius > self.window_radius:
            object.__setattr__(self, "thumbnail_strip_radius", self.window_radius)


def _get_settings() -> QSettings:
    """Get a QSettings instance with the application's organization and name."""
    return QSettings(SETTINGS_ORGANIZATION, SETTINGS_APPLICATION)


# --- Preload Window ---
def get_window_radius() -> int:
    """Gets the number of entries preloaded on each side of the cursor."""
    settings = _get_settings()
    return settings.value(WINDOW_RADIUS_KEY, DEFAULT_WINDOW_RADIUS, type=int)


def set_window_radius(radius: int):
    """Sets the preload window radius. Must be non-negative."""
    if radius < 0:
        raise ValueError(f"Window radius must be >= 0, got {radius}")
    settings = _get_settings()
    settings.setValue(WINDOW_RADIUS_KEY, radius)


# --- Worker Pool ---
def get_worker_count() -> int:
    """Gets the configured number of decode workers."""
    settings = _get_settings()
    return settings.value(WORKER_COUNT_KEY, DEFAULT_WORKER_COUNT, type=int)


def set_worker_count(count: int):
    """Sets the worker count. Must be between 1 and system CPU count."""
    max_threads = os.cpu_count() or 4
    if not (1 <= count <= max_threads):
        raise ValueError(
            f"Worker count must be between 1 and {max_threads}, got {count}"
        )
    settings = _get_settings()
    settings.setValue(WORKER_COUNT_KEY, count)


# --- Display / Thumbnail Sizes ---
def get_display_max_resolution() -> Tuple[int, int]:
    """Gets the bounding box full images are scaled down to."""
    settings = _get_settings()
    width = settings.value(
        DISPLAY_MAX_WIDTH_KEY, DEFAULT_DISPLAY_MAX_RESOLUTION[0], type=int
    )
    height = settings.value(
        DISPLAY_MAX_HEIGHT_KEY, DEFAULT_DISPLAY_MAX_RESOLUTION[1], type=int
    )
    return (width, height)


def set_display_max_resolution(width: int, height: int):
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid display resolution {width}x{height}")
    settings = _get_settings()
    settings.setValue(DISPLAY_MAX_WIDTH_KEY, width)
    settings.setValue(DISPLAY_MAX_HEIGHT_KEY, height)


def get_thumbnail_size() -> int:
    """Gets the longest thumbnail edge in pixels."""
    settings = _get_settings()
    return settings.value(THUMBNAIL_SIZE_KEY, DEFAULT_THUMBNAIL_SIZE, type=int)


def set_thumbnail_size(size: int):
    if size <= 0:
        raise ValueError(f"Thumbnail size must be positive, got {size}")
    settings = _get_settings()
    settings.setValue(THUMBNAIL_SIZE_KEY, size)


def get_thumbnail_strip_radius() -> int:
    """Gets how many thumbnails are shown on each side of the current image."""
    settings = _get_settings()
    return settings.value(
        THUMBNAIL_STRIP_RADIUS_KEY, DEFAULT_THUMBNAIL_STRIP_RADIUS, type=int
    )


def set_thumbnail_strip_radius(radius: int):
    if radius < 0:
        raise ValueError(f"Thumbnail strip radius must be >= 0, got {radius}")
    settings = _get_settings()
    settings.setValue(THUMBNAIL_STRIP_RADIUS_KEY, radius)


# --- Thumbnail Disk Cache Size ---
def get_thumbnail_disk_cache_size_mb() -> int:
    """Gets the configured thumbnail disk cache size in MB from settings."""
    settings = _get_settings()
    return settings.value(
        THUMBNAIL_DISK_CACHE_SIZE_MB_KEY, DEFAULT_THUMBNAIL_DISK_CACHE_SIZE_MB, type=int
    )


def set_thumbnail_disk_cache_size_mb(size_mb: int):
    """Sets the thumbnail disk cache size in MB in settings."""
    settings = _get_settings()
    settings.setValue(THUMBNAIL_DISK_CACHE_SIZE_MB_KEY, size_mb)


def get_thumbnail_disk_cache_size_bytes() -> int:
    """Gets the configured thumbnail disk cache size in bytes."""
    return get_thumbnail_disk_cache_size_mb() * 1024 * 1024


# --- Recent Folders ---
def get_recent_folders() -> list[str]:
    """Gets the list of recent folders from settings."""
    settings = _get_settings()
    recent_folders = settings.value(RECENT_FOLDERS_KEY, [], type=list)
    # Filter out folders that no longer exist
    return [folder for folder in recent_folders if os.path.isdir(folder)]


def add_recent_folder(path: str):
    """Adds a folder to the top of the recent folders list."""
    if not path or not os.path.isdir(path):
        return

    settings = _get_settings()
    recent_folders = get_recent_folders()

    normalized_path = os.path.normpath(path)

    # Remove if already exists (case-insensitive on Windows)
    recent_folders = [
        p
        for p in recent_folders
        if os.path.normpath(p).lower() != normalized_path.lower()
    ]

    recent_folders.insert(0, normalized_path)

    if len(recent_folders) > MAX_RECENT_FOLDERS:
        recent_folders = recent_folders[:MAX_RECENT_FOLDERS]

    settings.setValue(RECENT_FOLDERS_KEY, recent_folders)


def load_prefetch_config() -> PrefetchConfig:
    """Builds the preload configuration from persisted settings."""
    thumb = get_thumbnail_size()
    return PrefetchConfig(
        window_radius=max(0, get_window_radius()),
        worker_count=max(1, get_worker_count()),
        display_max_size=get_display_max_resolution(),
        thumbnail_max_size=(thumb, thumb),
        thumbnail_strip_radius=max(0, get_thumbnail_strip_radius()),
    )
