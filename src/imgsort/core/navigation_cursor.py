import logging
from typing import Optional, Protocol

from .path_catalog import ImageEntry, PathCatalog

logger = logging.getLogger(__name__)


class WindowScheduler(Protocol):
    def set_priority_index(self, index: int) -> None: ...
    def maintain_window(self): ...


class NavigationCursor:
    """
    Current position in a PathCatalog.

    Only user navigation moves it. `next`/`prev` clamp at the ends and never
    raise; `move_to` rejects out-of-range indices with IndexError. Every
    successful move re-centres the scheduler and then evicts what fell out of
    the window.
    """

    def __init__(
        self, catalog: PathCatalog, scheduler: Optional[WindowScheduler] = None
    ):
        self._catalog = catalog
        self._scheduler = scheduler
        self._index: Optional[int] = 0 if len(catalog) else None

    @property
    def index(self) -> Optional[int]:
        return self._index

    def current(self) -> Optional[ImageEntry]:
        if self._index is None:
            return None
        return self._catalog.get(self._index)

    def attach_scheduler(self, scheduler: WindowScheduler) -> None:
        self._scheduler = scheduler
        if self._index is not None:
            self._notify()

    def move_to(self, index: int) -> None:
        if not 0 <= index < len(self._catalog):
            raise IndexError(
                f"Cannot move to index {index}: catalog has {len(self._catalog)} entries"
            )
        self._set(index)

    def next(self) -> bool:
        """Steps forward. Returns False (and does nothing) at the last entry."""
        if self._index is None or self._index + 1 >= len(self._catalog):
            return False
        self._set(self._index + 1)
        return True

    def prev(self) -> bool:
        """Steps back. Returns False (and does nothing) at the first entry."""
        if self._index is None or self._index == 0:
            return False
        self._set(self._index - 1)
        return True

    def first(self) -> bool:
        if self._index is None or self._index == 0:
            return False
        self._set(0)
        return True

    def last(self) -> bool:
        if self._index is None or self._index == len(self._catalog) - 1:
            return False
        self._set(len(self._catalog) - 1)
        return True

    def has_next(self) -> bool:
        return self._index is not None and self._index + 1 < len(self._catalog)

    def has_prev(self) -> bool:
        return self._index is not None and self._index > 0

    def _set(self, index: int) -> None:
        self._index = index
        logger.debug(f"Cursor moved to {index}")
        self._notify()

    def _notify(self) -> None:
        if self._scheduler is None:
            return
        self._scheduler.set_priority_index(self._index)
        self._scheduler.maintain_window()
