"""Fixed-size stand-ins for images that are not (or cannot be) in the cache."""

from functools import lru_cache
from typing import Optional, Tuple

from PIL import Image, ImageDraw

PLACEHOLDER_INFO_KEY = "placeholder"
PLACEHOLDER_LOADING = "loading"
PLACEHOLDER_FAILED = "failed"

LOADING_FILL = (48, 48, 48, 255)
LOADING_OUTLINE = (96, 96, 96, 255)
FAILED_FILL = (72, 16, 16, 255)
FAILED_MARK = (220, 60, 60, 255)


def placeholder_size(
    dimensions: Optional[Tuple[int, int]], box: Tuple[int, int]
) -> Tuple[int, int]:
    """
    Size the image will have once fitted (never enlarged) into `box`.
    Unknown dimensions take the whole box.
    """
    if not dimensions or dimensions[0] <= 0 or dimensions[1] <= 0:
        return (max(1, box[0]), max(1, box[1]))
    width, height = dimensions
    scale = min(box[0] / width, box[1] / height, 1.0)
    return (max(1, round(width * scale)), max(1, round(height * scale)))


@lru_cache(maxsize=64)
def loading_placeholder(size: Tuple[int, int]) -> Image.Image:
    img = Image.new("RGBA", size, LOADING_FILL)
    draw = ImageDraw.Draw(img)
    draw.rectangle([0, 0, size[0] - 1, size[1] - 1], outline=LOADING_OUTLINE)
    img.info[PLACEHOLDER_INFO_KEY] = PLACEHOLDER_LOADING
    return img


@lru_cache(maxsize=64)
def failed_placeholder(size: Tuple[int, int]) -> Image.Image:
    img = Image.new("RGBA", size, FAILED_FILL)
    draw = ImageDraw.Draw(img)
    width = max(1, min(size) // 24)
    draw.line([(0, 0), (size[0] - 1, size[1] - 1)], fill=FAILED_MARK, width=width)
    draw.line([(0, size[1] - 1), (size[0] - 1, 0)], fill=FAILED_MARK, width=width)
    img.info[PLACEHOLDER_INFO_KEY] = PLACEHOLDER_FAILED
    return img
