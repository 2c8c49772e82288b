"""Helpers that write commands and scene delimiters back into script text."""

from .models import EditCommand
from .time_range_codec import format_scene_delimiter
from .utils import split_lines


def insert_line(text: str, line: str, line_index: int) -> str:
    """
    Inserts a line before the 0-based `line_index` (clamped to the text).

    Line endings of the result are '\\n'.
    """
    if not text:
        return line
    lines = split_lines(text)
    line_index = max(0, min(line_index, len(lines)))
    lines.insert(line_index, line)
    return "\n".join(lines)


def append_command(text: str, command: EditCommand) -> str:
    """Appends the canonical form of a command as the last line of the script."""
    line = str(command)
    if not text:
        return line
    if text.endswith("\n"):
        return f"{text}{line}"
    return f"{text}\n{line}"


def insert_scene_delimiter(text: str, start: float, end: float, line_index: int = 0) -> str:
    """Inserts a '[MM:SS-MM:SS]' delimiter for the range before `line_index`."""
    return insert_line(text, format_scene_delimiter(start, end), line_index)
