from PIL import Image, ImageOps, UnidentifiedImageError
import os
from dataclasses import dataclass
from typing import Tuple
import logging

logger = logging.getLogger(__name__)

THUMBNAIL_MAX_SIZE = (256, 256)
DISPLAY_MAX_RESOLUTION = (1920, 1200)

# Image extensions the decoder will handle
SUPPORTED_EXTENSIONS = {
    ".jpg",
    ".jpeg",
    ".png",
    ".bmp",
    ".gif",
    ".tif",
    ".tiff",
    ".webp",
    ".heic",  # needs pillow-heif's opener registered
    ".heif",
}


class DecodeError(Exception):
    """Raised when an image file cannot be read or decoded."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"{os.path.basename(path)}: {reason}")
        self.path = path
        self.reason = reason


@dataclass(frozen=True)
class DecodedImage:
    full: Image.Image
    thumb: Image.Image
    dimensions: Tuple[int, int]  # source size, after EXIF orientation


def is_supported_extension(filename: str) -> bool:
    """Checks if the file name has a supported image extension."""
    return os.path.splitext(filename)[1].lower() in SUPPORTED_EXTENSIONS


def fit_within(img: Image.Image, max_size: Tuple[int, int]) -> Image.Image:
    """
    Scales img down in place to fit max_size, keeping the aspect ratio.

    Two-pass resampling: fast initial downsize, then high-quality final pass.
    This is faster when images are much larger than the target size.
    """
    if img.width > max_size[0] * 2 or img.height > max_size[1] * 2:
        intermediate_size = (max_size[0] * 2, max_size[1] * 2)
        img.thumbnail(intermediate_size, Image.Resampling.BILINEAR)
    img.thumbnail(max_size, Image.Resampling.LANCZOS)
    return img


class ImageDecoder:
    """Loads image files into display-sized and thumbnail-sized RGBA images."""

    @staticmethod
    def load_oriented(image_path: str) -> Image.Image:
        """
        Opens and fully decodes an image with EXIF orientation applied.

        Raises:
            DecodeError: if the file is missing, unreadable, corrupt or of an
                unsupported format.
        """
        normalized_path = os.path.normpath(image_path)
        try:
            with Image.open(normalized_path) as opened:
                img = ImageOps.exif_transpose(opened)
                # exif_transpose returns the same object when no rotation is
                # needed; force the decode before the file handle closes.
                img.load()
                if img is opened:
                    img = img.copy()
            return img
        except UnidentifiedImageError:
            raise DecodeError(normalized_path, "unsupported or unrecognized image format")
        except FileNotFoundError:
            raise DecodeError(normalized_path, "file not found")
        except PermissionError:
            raise DecodeError(normalized_path, "permission denied")
        except Exception as e:
            raise DecodeError(normalized_path, f"corrupt image data ({e})") from e

    @staticmethod
    def decode(
        image_path: str,
        display_max_size: Tuple[int, int] = DISPLAY_MAX_RESOLUTION,
        thumbnail_max_size: Tuple[int, int] = THUMBNAIL_MAX_SIZE,
    ) -> DecodedImage:
        """
        Decodes one image into a display image and a thumbnail.
        Both are RGBA, which Qt needs for conversion.
        """
        img = ImageDecoder.load_oriented(image_path)
        dimensions = img.size
        try:
            full = fit_within(img, display_max_size).convert("RGBA")
            thumb = fit_within(full.copy(), thumbnail_max_size)
        except Exception as e:
            raise DecodeError(image_path, f"failed to scale image ({e})") from e
        logger.debug(
            f"Decoded {os.path.basename(image_path)} {dimensions} -> full {full.size}, thumb {thumb.size}"
        )
        return DecodedImage(full=full, thumb=thumb, dimensions=dimensions)

    @staticmethod
    def make_thumbnail(
        image: Image.Image, thumbnail_max_size: Tuple[int, int] = THUMBNAIL_MAX_SIZE
    ) -> Image.Image:
        """Returns a thumbnail copy of an already decoded image."""
        return fit_within(image.copy(), thumbnail_max_size).convert("RGBA")
