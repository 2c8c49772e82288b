"""Builds scene blocks from the bracketed time ranges of a script."""

import logging
import uuid
from typing import List, Optional, Tuple

from .command_parser import looks_like_command, parse_line
from .exceptions import CommandSyntaxError
from .models import CommandType, FreeTextItem, SceneBlock
from .time_range_codec import match_scene_delimiter
from .utils import split_lines

logger = logging.getLogger(__name__)

HEADING_PREFIX = "# "
SUBTITLE_PREFIX = "> "


def is_scene_delimiter(line: str) -> bool:
    """True if the line carries a valid [MM:SS-MM:SS] or [H:MM:SS-H:MM:SS] range."""
    return bool(line.strip()) and match_scene_delimiter(line.strip()) is not None


def extract_decorations(content: str, first_line: int = 0) -> Tuple[Optional[str], Optional[str], List[FreeTextItem]]:
    """
    Splits scene content into its heading, subtitle and free text items.

    '# ' lines give the heading (the first one; later ones are free text),
    '> ' lines are joined into the subtitle, command lines are skipped, and
    any other runs of non-blank lines separated by blank lines become free
    text items stacked down the screen.

    Args:
        content: The trimmed content text of one scene.
        first_line: Script line number of the first content line.

    Returns:
        (heading, subtitle, free_text_items)
    """
    heading = None
    subtitle = None
    items: List[FreeTextItem] = []
    buffer: List[str] = []
    buffer_start = -1

    def flush():
        nonlocal buffer_start
        if buffer:
            items.append(FreeTextItem(text="\n".join(buffer).strip(), line_number=first_line + buffer_start))
            buffer.clear()
        buffer_start = -1

    for index, line in enumerate(split_lines(content) if content else []):
        stripped = line.lstrip()
        if not stripped.strip():
            flush()
            continue
        if stripped.startswith(HEADING_PREFIX) and heading is None:
            flush()
            heading = stripped[len(HEADING_PREFIX):].strip()
            continue
        if stripped.startswith(SUBTITLE_PREFIX):
            flush()
            text = stripped[len(SUBTITLE_PREFIX):].strip()
            subtitle = text if subtitle is None else f"{subtitle}\n{text}"
            continue
        if looks_like_command(stripped):
            flush()
            continue
        if buffer_start < 0:
            buffer_start = index
        buffer.append(stripped.rstrip())
    flush()

    for position, item in enumerate(items):
        item.y = 0.3 + position * 0.15
    return heading, subtitle, items


def _load_path(line: str) -> Optional[str]:
    try:
        command = parse_line(line, 0)
    except CommandSyntaxError:
        return None
    if command is not None and command.type is CommandType.LOAD:
        return command.file_path
    return None


def _finalize(block: SceneBlock, buffer: List[str]) -> SceneBlock:
    content = "\n".join(buffer).strip()
    # The first non-blank buffered line is where the trimmed content starts
    offset = next((i for i, line in enumerate(buffer) if line.strip()), 0)
    heading, subtitle, items = extract_decorations(content, block.line_number + 1 + offset)
    metadata = dict(block.metadata)
    if heading is not None:
        metadata["heading"] = heading
    return block.with_changes(
        title=content,
        content_text=content,
        subtitle=subtitle,
        free_text_items=tuple(items),
        metadata=metadata,
    )


def parse_scenes(text: str) -> List[SceneBlock]:
    """
    Parses the full script into scene blocks.

    Every delimiter line opens a new block; the lines up to the next
    delimiter (or the end of the text) become its content. Lines before the
    first delimiter are not part of any block. Each block remembers the
    media path of the last LOAD line seen before its delimiter.

    Args:
        text: The full script text.

    Returns:
        Scene blocks in script order (a new list on every call).
    """
    if not text or not text.strip():
        return []

    scenes: List[SceneBlock] = []
    current: Optional[SceneBlock] = None
    buffer: List[str] = []
    media_path: Optional[str] = None

    for index, line in enumerate(split_lines(text)):
        stripped = line.strip()
        time_range = match_scene_delimiter(stripped) if stripped else None
        if time_range is not None:
            if current is not None:
                scenes.append(_finalize(current, buffer))
            buffer = []
            current = SceneBlock(
                id=str(uuid.uuid4()),
                start_time=time_range[0],
                end_time=time_range[1],
                title="",
                line_number=index + 1,
                media_file_path=media_path,
            )
            continue

        path = _load_path(line)
        if path is not None:
            media_path = path
        if current is not None:
            buffer.append(line)

    if current is not None:
        scenes.append(_finalize(current, buffer))

    logger.debug(f"Parsed {len(scenes)} scene blocks")
    return scenes
