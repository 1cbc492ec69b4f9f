import os
from dataclasses import dataclass
from typing import Optional, Tuple

from PIL import Image

from .path_catalog import LoadState
from .placeholders import failed_placeholder, loading_placeholder, placeholder_size


@dataclass(frozen=True)
class EntryView:
    """Read-only view of one catalog entry, as of the frame it was taken in."""

    index: int
    path: str
    state: LoadState
    error: Optional[str]
    dimensions: Optional[Tuple[int, int]]
    image: Optional[Image.Image]  # None until the entry is in the cache

    @property
    def basename(self) -> str:
        return os.path.basename(self.path)

    def render(self, box: Tuple[int, int]) -> Image.Image:
        """The cached image, or a placeholder of the size it will have."""
        if self.image is not None:
            return self.image
        size = placeholder_size(self.dimensions, box)
        if self.state == LoadState.FAILED:
            return failed_placeholder(size)
        return loading_placeholder(size)


@dataclass(frozen=True)
class FrameSnapshot:
    current: Optional[EntryView]
    thumbnails: Tuple[EntryView, ...]
    position_text: str
    status_text: str

    @property
    def is_empty(self) -> bool:
        return self.current is None


EMPTY_FRAME = FrameSnapshot(
    current=None, thumbnails=(), position_text="No images", status_text=""
)
