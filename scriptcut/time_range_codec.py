"""Encodes and decodes the `[MM:SS-MM:SS]` / `[H:MM:SS-H:MM:SS]` scene time ranges."""

import logging
import math
import re
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

_HMS = r"(\d{1,2}):(\d{2}):(\d{2})-(\d{1,2}):(\d{2}):(\d{2})"
_MS = r"(\d{1,2}):(\d{2})-(\d{1,2}):(\d{2})"

# Groups 1-6: hour form, groups 7-10: minute form
SCENE_DELIMITER_PATTERN = re.compile(rf"\[{_HMS}\]|\[{_MS}\]")
_BARE_PATTERN = re.compile(rf"{_HMS}|{_MS}")

TimeRange = Tuple[float, float]


def _whole_seconds(seconds: float) -> int:
    """Rounds half up to whole seconds; the bracket form has no sub-second part."""
    return int(math.floor(max(seconds, 0.0) + 0.5))


def _split_hms(total: int) -> Tuple[int, int, int]:
    return total // 3600, (total % 3600) // 60, total % 60


def format_time_range(start: float, end: float) -> str:
    """
    Formats a range as MM:SS-MM:SS, or HH:MM:SS-HH:MM:SS once either end
    reaches one hour.

    Args:
        start: Range start in seconds.
        end: Range end in seconds.

    Returns:
        The range text without brackets.
    """
    start_s, end_s = _whole_seconds(start), _whole_seconds(end)
    sh, sm, ss = _split_hms(start_s)
    eh, em, es = _split_hms(end_s)
    if start_s < 3600 and end_s < 3600:
        return f"{sm:02d}:{ss:02d}-{em:02d}:{es:02d}"
    return f"{sh:02d}:{sm:02d}:{ss:02d}-{eh:02d}:{em:02d}:{es:02d}"


def format_scene_delimiter(start: float, end: float) -> str:
    """The scene delimiter line for a range, e.g. '[00:05-00:10]'."""
    return f"[{format_time_range(start, end)}]"


def _range_from_match(match: "re.Match") -> Optional[TimeRange]:
    groups = match.groups()
    if groups[0] is not None:
        sh, sm, ss, eh, em, es = (int(g) for g in groups[:6])
        if sm >= 60 or ss >= 60 or em >= 60 or es >= 60:
            return None
        start = sh * 3600 + sm * 60 + ss
        end = eh * 3600 + em * 60 + es
    else:
        sm, ss, em, es = (int(g) for g in groups[6:10])
        if ss >= 60 or es >= 60:
            return None
        start = sm * 60 + ss
        end = em * 60 + es
    if start >= end:
        return None
    return float(start), float(end)


def match_scene_delimiter(line: str) -> Optional[TimeRange]:
    """
    Finds a bracketed time range in a line.

    Returns:
        (start, end) in seconds, or None when the line has no bracket range
        or its components are out of range (minutes/seconds >= 60, or
        start not before end).
    """
    match = SCENE_DELIMITER_PATTERN.search(line)
    if not match:
        return None
    time_range = _range_from_match(match)
    if time_range is None:
        logger.debug(f"Ignoring malformed scene delimiter: {line.strip()!r}")
    return time_range


def parse_time_range(text: str) -> Optional[TimeRange]:
    """
    Parses a range produced by `format_time_range` or `format_scene_delimiter`.

    Bracketed text is matched the way the scene parser matches delimiter
    lines; a bare 'MM:SS-MM:SS' token must make up the whole (stripped) text.
    """
    if "[" in text:
        return match_scene_delimiter(text)
    match = _BARE_PATTERN.fullmatch(text.strip())
    if not match:
        return None
    return _range_from_match(match)
