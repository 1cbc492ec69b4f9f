from __future__ import annotations
import logging
from typing import Optional, Protocol

from imgsort.core.session import SessionContext

logger = logging.getLogger(__name__)

FORWARD_DIRECTIONS = ("right", "down", "next")
BACKWARD_DIRECTIONS = ("left", "up", "prev")


class NavigationContext(Protocol):
    def get_session(self) -> Optional[SessionContext]: ...
    def status_message(self, msg: str, timeout: int = 3000) -> None: ...


class NavigationController:
    """Turns navigation requests from the view into cursor moves."""

    def __init__(self, ctx: NavigationContext):
        self.ctx = ctx

    def navigate(self, direction: str) -> bool:
        session = self.ctx.get_session()
        if session is None or session.cursor.index is None:
            return False
        if direction in FORWARD_DIRECTIONS:
            moved = session.next()
            if not moved:
                self.ctx.status_message("Already at the last image")
        elif direction in BACKWARD_DIRECTIONS:
            moved = session.prev()
            if not moved:
                self.ctx.status_message("Already at the first image")
        elif direction == "home":
            moved = session.first()
        elif direction == "end":
            moved = session.last()
        else:
            logger.warning(f"Unknown navigation direction: {direction}")
            return False
        return moved

    def retry_current(self) -> bool:
        session = self.ctx.get_session()
        if session is None:
            return False
        if session.retry_current():
            self.ctx.status_message("Retrying image load...")
            return True
        return False
