"""List virtualization: the visible slice of a long list for a scroll offset."""

import logging
import math
from typing import Generic, List, Optional, Sequence, Tuple, TypeVar

from stream_engine.core.config import settings
from stream_engine.core.exceptions import ConfigurationError
from stream_engine.models.geometry import VirtualWindow
from stream_engine.models.sample import Sample

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _check_extents(item_extent: float, container_extent: float, overscan: int) -> None:
    if item_extent <= 0:
        raise ConfigurationError(f"item_extent must be positive, got {item_extent}")
    if container_extent < 0:
        raise ConfigurationError(
            f"container_extent must be non-negative, got {container_extent}")
    if overscan < 0:
        raise ConfigurationError(f"overscan must be non-negative, got {overscan}")


def max_scroll_offset(length: int, item_extent: float, container_extent: float) -> float:
    """Largest scroll offset that still shows a full container."""
    return max(0.0, length * item_extent - container_extent)


def compute_window(
    sequence: Sequence,
    scroll_offset: float,
    item_extent: float,
    container_extent: float,
    overscan: int = 5,
) -> VirtualWindow:
    """
    Visible index range and layout offsets for a scroll position.

    Args:
        sequence: Items in display order.
        scroll_offset: Current scroll position in pixels; clamped into range.
        item_extent: Height of one item in pixels.
        container_extent: Height of the scroll container in pixels.
        overscan: Extra items rendered on each side to hide pop-in.

    Returns:
        Virtual window. An empty sequence yields visible_end = -1.
    """
    _check_extents(item_extent, container_extent, overscan)

    length = len(sequence)
    offset = min(max(0.0, scroll_offset), max_scroll_offset(length, item_extent, container_extent))

    visible_end = min(length - 1, math.ceil((offset + container_extent) / item_extent) + overscan)
    visible_start = max(0, math.floor(offset / item_extent) - overscan)
    visible_start = min(visible_start, max(0, visible_end))

    return VirtualWindow(
        visible_start=visible_start,
        visible_end=visible_end,
        total_extent=length * item_extent,
        leading_offset=visible_start * item_extent,
    )


def sort_for_display(sequence: Sequence[Sample]) -> Tuple[Sample, ...]:
    """Newest-first ordering used by the data table."""
    return tuple(sorted(sequence, key=lambda sample: sample.timestamp, reverse=True))


class VirtualList(Generic[T]):
    """Scroll state over a list, with the window recomputed on demand."""

    def __init__(
        self,
        items: Sequence[T] = (),
        item_extent: Optional[float] = None,
        container_extent: Optional[float] = None,
        overscan: Optional[int] = None,
    ) -> None:
        """
        Initialize the virtual list.

        Args:
            items: Items in display order.
            item_extent: Height of one item, from settings when omitted.
            container_extent: Height of the container, from settings when omitted.
            overscan: Overscan rows, from settings when omitted.
        """
        self.item_extent = settings.item_extent if item_extent is None else item_extent
        self.container_extent = (
            settings.container_extent if container_extent is None else container_extent)
        self.overscan = settings.overscan if overscan is None else overscan
        _check_extents(self.item_extent, self.container_extent, self.overscan)
        self.items: Sequence[T] = items
        self.scroll_offset = 0.0

    def set_items(self, items: Sequence[T]) -> None:
        """Replace the items, keeping the scroll offset in range."""
        self.items = items
        self.scroll_offset = min(self.scroll_offset, self._max_offset())

    def on_scroll(self, offset: float) -> VirtualWindow:
        """Record a scroll event and return the new window."""
        self.scroll_offset = min(max(0.0, offset), self._max_offset())
        return self.window()

    def scroll_to_item(self, index: int) -> VirtualWindow:
        """Scroll so that item index sits at the top of the container."""
        return self.on_scroll(index * self.item_extent)

    def scroll_to_top(self) -> VirtualWindow:
        return self.scroll_to_item(0)

    def scroll_to_bottom(self) -> VirtualWindow:
        return self.scroll_to_item(len(self.items) - 1)

    def window(self) -> VirtualWindow:
        return compute_window(
            self.items,
            self.scroll_offset,
            self.item_extent,
            self.container_extent,
            self.overscan,
        )

    def visible_items(self) -> List[Tuple[int, T]]:
        """(index, item) pairs inside the current window."""
        window = self.window()
        return [
            (index, self.items[index])
            for index in range(window.visible_start, window.visible_end + 1)
        ]

    def _max_offset(self) -> float:
        return max_scroll_offset(len(self.items), self.item_extent, self.container_extent)
