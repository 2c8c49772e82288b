"""Two-click range selection driven by the playback position."""

import logging
from enum import Enum
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)

TimeRange = Tuple[float, float]
PreviewListener = Callable[[Optional[TimeRange]], None]


class AnchorState(Enum):
    IDLE = "idle"
    RECORDING = "recording"


class AnchorLogic:
    """
    Twin-trigger selector: the first click sets a pivot, the second confirms.

    Between the clicks the preview range follows the cursor. Every preview
    change (including clearing it) is published to subscribers.
    """

    def __init__(self):
        self._pivot_time: Optional[float] = None
        self._preview_range: Optional[TimeRange] = None
        self._listeners: List[PreviewListener] = []

    @property
    def state(self) -> AnchorState:
        return AnchorState.IDLE if self._pivot_time is None else AnchorState.RECORDING

    @property
    def is_recording(self) -> bool:
        return self._pivot_time is not None

    @property
    def pivot_time(self) -> Optional[float]:
        return self._pivot_time

    @property
    def preview_range(self) -> Optional[TimeRange]:
        return self._preview_range

    def subscribe(self, listener: PreviewListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener) if listener in self._listeners else None

    def _publish(self, preview: Optional[TimeRange]) -> None:
        self._preview_range = preview
        for listener in list(self._listeners):
            listener(preview)

    def set_pivot(self, current_time: float) -> Optional[TimeRange]:
        """
        Handles an anchor click.

        Returns:
            None on the first click; on the second click the confirmed range
            (the call is routed to `confirm`).
        """
        if self._pivot_time is not None:
            return self.confirm(current_time)
        self._pivot_time = current_time
        logger.debug(f"Anchor pivot set at {current_time:.3f}")
        self._publish((current_time, current_time))
        return None

    def calculate_preview_range(self, current_time: float) -> TimeRange:
        """Recomputes the live preview without changing state."""
        if self._pivot_time is None:
            return current_time, current_time
        preview = (min(self._pivot_time, current_time), max(self._pivot_time, current_time))
        self._publish(preview)
        return preview

    def confirm(self, current_time: float) -> TimeRange:
        """Returns the selected range and goes back to idle; (t, t) if no pivot was set."""
        if self._pivot_time is None:
            return current_time, current_time
        pivot = self._pivot_time
        self._pivot_time = None
        self._publish(None)
        selected = (min(pivot, current_time), max(pivot, current_time))
        logger.debug(f"Anchor range confirmed: {selected[0]:.3f} -> {selected[1]:.3f}")
        return selected

    def cancel(self) -> None:
        """Drops the pivot from any state."""
        was_recording = self._pivot_time is not None
        self._pivot_time = None
        if was_recording:
            self._publish(None)
