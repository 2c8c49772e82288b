"""Owns the segment partition of the loaded video and notifies observers of changes."""

import functools
import logging
import queue
import threading
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .exceptions import InvariantViolationError
from .models import SegmentState, VideoSegment

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 0.001 # 1 ms


class SegmentEvent(Enum):
    ADDED = "added"
    REMOVED = "removed"
    UPDATED = "updated"


SegmentListener = Callable[[SegmentEvent, VideoSegment], None]
Dispatcher = Callable[[Callable[[], None]], None]


def validate_partition(segments: List[VideoSegment]) -> None:
    """
    Checks that segments are sorted, non-empty and non-overlapping.

    Raises:
        InvariantViolationError: On the first violation found.
    """
    previous = None
    seen_ids = set()
    for segment in segments:
        if segment.id in seen_ids:
            raise InvariantViolationError(f"Duplicate segment id {segment.id}")
        seen_ids.add(segment.id)
        if not segment.start_time < segment.end_time:
            raise InvariantViolationError(
                f"Segment {segment.id} has no length ({segment.start_time} -> {segment.end_time})")
        if segment.speed_rate <= 0:
            raise InvariantViolationError(f"Segment {segment.id} has speed rate {segment.speed_rate}")
        if previous is not None and segment.start_time < previous.end_time:
            raise InvariantViolationError(
                f"Segment {segment.id} ({segment.start_time}) overlaps segment {previous.id} ({previous.end_time})")
        previous = segment


class SegmentTransaction:
    """
    A private working copy of a partition.

    The executor edits a transaction; nothing is visible to observers until
    `VideoSegmentManager.commit` validates and publishes it.
    """

    def __init__(self, tolerance: float = DEFAULT_TOLERANCE):
        self.tolerance = tolerance
        self.segments: List[VideoSegment] = []
        self._next_id = 1

    def allocate_id(self) -> int:
        segment_id = self._next_id
        self._next_id += 1
        return segment_id

    def snapshot(self) -> Tuple[List[VideoSegment], int]:
        return [s.copy() for s in self.segments], self._next_id

    def restore(self, snapshot: Tuple[List[VideoSegment], int]) -> None:
        segments, next_id = snapshot
        self.segments = [s.copy() for s in segments]
        self._next_id = next_id

    def reset(self, video_file_path: str, duration: float) -> VideoSegment:
        """Replaces the partition with a single segment [0, duration)."""
        if duration <= 0:
            raise InvariantViolationError(f"Media duration must be positive, got {duration}")
        self.segments = []
        self._next_id = 1
        segment = VideoSegment(id=self.allocate_id(), start_time=0.0, end_time=float(duration),
                               video_file_path=video_file_path)
        self.segments.append(segment)
        return segment

    def get(self, segment_id: int) -> Optional[VideoSegment]:
        return next((s for s in self.segments if s.id == segment_id), None)

    def intersecting(self, start: float, end: float) -> List[VideoSegment]:
        return [s for s in self.segments if s.start_time < end and s.end_time > start]

    def segment_strictly_containing(self, time: float, margin: float = 0.0) -> Optional[VideoSegment]:
        """The segment with start + margin < time < end - margin."""
        for segment in self.segments:
            if segment.start_time + margin < time < segment.end_time - margin:
                return segment
        return None

    def _split(self, segment: VideoSegment, time: float, state: SegmentState) -> Tuple[VideoSegment, VideoSegment]:
        left = segment.copy()
        left.id, left.end_time, left.state = self.allocate_id(), time, state
        right = segment.copy()
        right.id, right.start_time, right.state = self.allocate_id(), time, state
        index = self.segments.index(segment)
        self.segments[index:index + 1] = [left, right]
        return left, right

    def split_at(self, time: float) -> Optional[Tuple[VideoSegment, VideoSegment]]:
        """
        CUT: splits the segment containing `time` into two new Stopped segments.

        A time within half the tolerance of a boundary counts as on the
        boundary and is not split. Visibility is inherited.

        Returns:
            (left, right), or None if `time` is not strictly inside any segment.
        """
        segment = self.segment_strictly_containing(time, self.tolerance / 2)
        if segment is None:
            return None
        return self._split(segment, time, SegmentState.STOPPED)

    def isolate(self, start: float, end: float) -> List[VideoSegment]:
        """
        Splits segments crossing `start` or `end`; returns the segments inside [start, end].

        The pieces of a split segment keep its visibility and state.
        """
        for time in (start, end):
            segment = self.segment_strictly_containing(time)
            if segment is not None:
                self._split(segment, time, segment.state)
        return self.intersecting(start, end)

    def remove(self, segment_ids: Iterable[int]) -> None:
        doomed = set(segment_ids)
        self.segments = [s for s in self.segments if s.id not in doomed]

    def replace(self, old: List[VideoSegment], new: VideoSegment) -> None:
        """Replaces a run of consecutive segments with one segment."""
        index = self.segments.index(old[0])
        self.segments[index:index + len(old)] = [new]

    def validate(self) -> None:
        validate_partition(self.segments)


class VideoSegmentManager:
    """
    Holds the committed partition and emits Added/Removed/Updated notifications.

    Notifications are handed to `dispatcher` as zero-argument callables so a
    host can deliver them on a single thread (see SerialDispatcher). Without a
    dispatcher they run inline.
    """

    def __init__(self, dispatcher: Optional[Dispatcher] = None, tolerance: float = DEFAULT_TOLERANCE):
        self._segments: List[VideoSegment] = []
        self._next_id = 1
        self._listeners: List[SegmentListener] = []
        self._dispatch = dispatcher or (lambda fn: fn())
        self._lock = threading.RLock()
        self.tolerance = tolerance

    # --- Queries ---

    @property
    def segments(self) -> List[VideoSegment]:
        """Copies of the committed segments, sorted by start time."""
        with self._lock:
            return [s.copy() for s in self._segments]

    def get_segment_by_id(self, segment_id: int) -> Optional[VideoSegment]:
        with self._lock:
            segment = next((s for s in self._segments if s.id == segment_id), None)
            return segment.copy() if segment else None

    def get_segments_by_time_range(self, start_time: float, end_time: float) -> List[VideoSegment]:
        with self._lock:
            return [s.copy() for s in self._segments if s.start_time < end_time and s.end_time > start_time]

    def get_segment_at_time(self, time: float) -> Optional[VideoSegment]:
        with self._lock:
            segment = next((s for s in self._segments if s.contains_time(time)), None)
            return segment.copy() if segment else None

    # --- Observers ---

    def subscribe(self, listener: SegmentListener) -> Callable[[], None]:
        """Registers a listener; returns a function that unregisters it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)
        return unsubscribe

    def _notify(self, event: SegmentEvent, segment: VideoSegment) -> None:
        for listener in list(self._listeners):
            self._dispatch(functools.partial(self._deliver, listener, event, segment.copy()))

    @staticmethod
    def _deliver(listener: SegmentListener, event: SegmentEvent, segment: VideoSegment) -> None:
        try:
            listener(event, segment)
        except Exception:
            logger.exception(f"Segment listener failed on {event.value} of segment {segment.id}")

    # --- Single-segment edits ---

    def add_segment(self, segment: VideoSegment) -> VideoSegment:
        """Adds a segment, assigning an id if it has none (id 0)."""
        with self._lock:
            segment = segment.copy()
            if segment.id == 0:
                segment.id = self._next_id
            self._next_id = max(self._next_id, segment.id + 1)
            candidate = sorted(self._segments + [segment], key=lambda s: s.start_time)
            validate_partition(candidate)
            self._segments = candidate
            logger.debug(f"Segment {segment.id} added ({segment.start_time:.3f} -> {segment.end_time:.3f})")
            self._notify(SegmentEvent.ADDED, segment)
            return segment.copy()

    def remove_segment(self, segment_id: int) -> bool:
        with self._lock:
            segment = next((s for s in self._segments if s.id == segment_id), None)
            if segment is None:
                return False
            self._segments.remove(segment)
            self._notify(SegmentEvent.REMOVED, segment)
            return True

    def update_segment(self, segment: VideoSegment) -> bool:
        with self._lock:
            index = next((i for i, s in enumerate(self._segments) if s.id == segment.id), None)
            if index is None:
                return False
            candidate = list(self._segments)
            candidate[index] = segment.copy()
            candidate.sort(key=lambda s: s.start_time)
            validate_partition(candidate)
            self._segments = candidate
            self._notify(SegmentEvent.UPDATED, segment)
            return True

    def set_segment_state(self, segment_id: int, state: SegmentState) -> bool:
        """Changes only the playback state of a segment (used by the playback layer)."""
        with self._lock:
            segment = next((s for s in self._segments if s.id == segment_id), None)
            if segment is None:
                return False
            if segment.state is state:
                return True
            segment.state = state
            self._notify(SegmentEvent.UPDATED, segment)
            return True

    def clear(self) -> None:
        with self._lock:
            removed, self._segments = self._segments, []
            self._next_id = 1
            for segment in removed:
                self._notify(SegmentEvent.REMOVED, segment)

    # --- Whole-partition rebuilds ---

    def begin_transaction(self) -> SegmentTransaction:
        """Starts an empty working partition; scripts are always replayed from scratch."""
        return SegmentTransaction(tolerance=self.tolerance)

    def commit(self, transaction: SegmentTransaction, cancel_event: Optional[threading.Event] = None) -> bool:
        """
        Validates the transaction and makes it the committed partition.

        Segments are matched by id: ids that disappear are reported as
        Removed, new ids as Added, and ids whose fields changed as Updated.

        Returns:
            False if `cancel_event` was set before the swap (nothing changes).

        Raises:
            InvariantViolationError: If the staged partition is invalid.
        """
        staged = sorted((s.copy() for s in transaction.segments), key=lambda s: s.start_time)
        validate_partition(staged)
        with self._lock:
            if cancel_event is not None and cancel_event.is_set():
                logger.debug("Commit skipped: request was superseded")
                return False
            old: Dict[int, VideoSegment] = {s.id: s for s in self._segments}
            new: Dict[int, VideoSegment] = {s.id: s for s in staged}
            removed = [s for s in self._segments if s.id not in new]
            updated = [s for s in staged if s.id in old and old[s.id] != s]
            added = [s for s in staged if s.id not in old]

            self._segments = staged
            self._next_id = max([s.id for s in staged], default=0) + 1

            for segment in removed:
                self._notify(SegmentEvent.REMOVED, segment)
            for segment in updated:
                self._notify(SegmentEvent.UPDATED, segment)
            for segment in added:
                self._notify(SegmentEvent.ADDED, segment)
            logger.debug(f"Partition committed: {len(staged)} segments "
                         f"(+{len(added)} -{len(removed)} ~{len(updated)})")
            return True


class SerialDispatcher:
    """Runs notifications one at a time, in order, on a single worker thread."""

    def __init__(self, name: str = "segment-notifications"):
        self._queue: "queue.Queue[Optional[Callable[[], None]]]" = queue.Queue()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()

    def __call__(self, fn: Callable[[], None]) -> None:
        self._queue.put(fn)

    @property
    def thread(self) -> threading.Thread:
        return self._thread

    def _run(self) -> None:
        while True:
            fn = self._queue.get()
            try:
                if fn is None:
                    return
                fn()
            except Exception:
                logger.exception("Notification callback failed")
            finally:
                self._queue.task_done()

    def drain(self) -> None:
        """Blocks until every queued notification has run."""
        self._queue.join()

    def close(self, timeout: Optional[float] = None) -> None:
        self._queue.put(None)
        self._thread.join(timeout)
