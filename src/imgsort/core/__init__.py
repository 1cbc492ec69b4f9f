# Core logic package

from .app_settings import (
    PrefetchConfig,
    load_prefetch_config,
    SETTINGS_ORGANIZATION,
    SETTINGS_APPLICATION,
)

from .path_catalog import PathCatalog, ImageEntry, LoadState
from .navigation_cursor import NavigationCursor
from .prefetch_scheduler import PrefetchScheduler, WorkItem, window_priority

from .image_processing.image_decoder import (
    ImageDecoder,
    DecodedImage,
    DecodeError,
    SUPPORTED_EXTENSIONS,
)

from .caching.image_cache import ImageCache, CachedImage, CacheMiss
from .caching.disk_image_cache import DiskImageCache

from .frame_snapshot import FrameSnapshot, EntryView
from .session import SessionContext

__all__ = [
    # app_settings
    "PrefetchConfig",
    "load_prefetch_config",
    "SETTINGS_ORGANIZATION",
    "SETTINGS_APPLICATION",
    # catalog / navigation / scheduling
    "PathCatalog",
    "ImageEntry",
    "LoadState",
    "NavigationCursor",
    "PrefetchScheduler",
    "WorkItem",
    "window_priority",
    # image_processing
    "ImageDecoder",
    "DecodedImage",
    "DecodeError",
    "SUPPORTED_EXTENSIONS",
    # caching
    "ImageCache",
    "CachedImage",
    "CacheMiss",
    "DiskImageCache",
    # session
    "FrameSnapshot",
    "EntryView",
    "SessionContext",
]
