# This file makes Python treat the directory 'caching' as a package.
from .image_cache import ImageCache, CachedImage, CacheMiss
from .disk_image_cache import DiskImageCache, KIND_FULL, KIND_THUMBNAIL

__all__ = [
    "ImageCache",
    "CachedImage",
    "CacheMiss",
    "DiskImageCache",
    "KIND_FULL",
    "KIND_THUMBNAIL",
]
