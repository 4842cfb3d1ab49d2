# ABOUTME: Tracks which location is in view and keeps it in range across collection changes.
# ABOUTME: Appends scroll to the new last page after a short render delay; deletes reclamp the index.

import asyncio
import logging
from collections.abc import Callable

from weather_tracker import config

logger = logging.getLogger(__name__)

IndexListener = Callable[[int], None]


class PaginationController:
    def __init__(self, length: int, scroll_delay: float = config.SCROLL_TO_END_DELAY_SECONDS):
        if length < 1:
            raise ValueError("PaginationController needs a non-empty collection")
        self._length = length
        self._scroll_delay = scroll_delay
        self._active_index = 0
        self._pending_scroll: asyncio.TimerHandle | None = None
        self._listeners: list[IndexListener] = []
        self.pending_target: int | None = None

    @property
    def active_index(self) -> int:
        return self._active_index

    @property
    def length(self) -> int:
        return self._length

    def subscribe(self, listener: IndexListener) -> None:
        self._listeners.append(listener)

    def on_append(self, new_length: int) -> int:
        """Record an append and schedule the scroll to the new last position.

        Returns the target index. Without a running event loop the move is immediate.
        """
        self._length = new_length
        target = new_length - 1
        self._cancel_scroll()
        self.pending_target = target
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._apply_scroll()
            return target
        self._pending_scroll = loop.call_later(self._scroll_delay, self._apply_scroll)
        return target

    def on_delete(self, removed_index: int, new_length: int) -> None:
        self._length = new_length
        if removed_index <= self._active_index:
            self._set(self._active_index - 1)
        else:
            self._set(self._active_index)
        if self.pending_target is not None and removed_index <= self.pending_target:
            self.pending_target -= 1

    def on_view_changed(self, index: int) -> None:
        """The view reports `index` as the most visible page."""
        self._cancel_scroll()
        self._set(index)

    def jump_to(self, index: int) -> None:
        self._cancel_scroll()
        self._set(index)

    def near_visible(self, radius: int = 1) -> list[int]:
        """Indices of the active page and its neighbours within `radius`."""
        start = max(0, self._active_index - radius)
        stop = min(self._length, self._active_index + radius + 1)
        return list(range(start, stop))

    def _apply_scroll(self) -> None:
        target = self.pending_target
        self._pending_scroll = None
        self.pending_target = None
        if target is not None:
            self._set(target)

    def _cancel_scroll(self) -> None:
        if self._pending_scroll is not None:
            self._pending_scroll.cancel()
        self._pending_scroll = None
        self.pending_target = None

    def _set(self, index: int) -> None:
        clamped = min(max(index, 0), self._length - 1)
        changed = clamped != self._active_index
        self._active_index = clamped
        if changed:
            logger.debug("Active index -> %d", clamped)
            for listener in list(self._listeners):
                listener(clamped)
