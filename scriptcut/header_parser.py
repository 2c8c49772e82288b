"""Parses the optional project header at the top of a script."""

import logging
import re
from typing import Tuple

from .models import ProjectConfig
from .utils import split_lines

logger = logging.getLogger(__name__)

_PROJECT = re.compile(r'^\s*PROJECT\s+"(.+)"\s*$', re.IGNORECASE)
_RESOLUTION = re.compile(r'^\s*RESOLUTION\s+(\d+)x(\d+)\s*$', re.IGNORECASE)
_FRAME_RATE = re.compile(r'^\s*FRAMERATE\s+(\d+)\s*$', re.IGNORECASE)
_DEFAULT_FONT = re.compile(r'^\s*DEFAULT_FONT\s+"(.+)"\s*$', re.IGNORECASE)
_DEFAULT_FONT_SIZE = re.compile(r'^\s*DEFAULT_FONT_SIZE\s+(\d+)\s*$', re.IGNORECASE)
_TITLE_COLOR = re.compile(r'^\s*DEFAULT_TITLE_COLOR\s+#([0-9A-Fa-f]{6})\s*$', re.IGNORECASE)
_SUBTITLE_COLOR = re.compile(r'^\s*DEFAULT_SUBTITLE_COLOR\s+#([0-9A-Fa-f]{6})\s*$', re.IGNORECASE)
_BACKGROUND_ALPHA = re.compile(r'^\s*DEFAULT_BACKGROUND_ALPHA\s+(0?\.\d+|1\.0|0|1)\s*$', re.IGNORECASE)

# A line of three or more '=' or three or more '-' ends the header
_SEPARATOR = re.compile(r'^\s*(={3,}|-{3,})\s*$')


def parse_header(text: str) -> Tuple[ProjectConfig, int]:
    """
    Reads project settings from the lines before the header separator.

    Args:
        text: The full script text.

    Returns:
        (config, body_start_line) where body_start_line is the 0-based index
        of the first line after the separator. Without a separator the whole
        text is body, the config keeps its defaults and body_start_line is 0.
    """
    config = ProjectConfig()
    if not text:
        return config, 0

    lines = split_lines(text)
    separator_index = next((i for i, line in enumerate(lines) if _SEPARATOR.match(line)), None)
    if separator_index is None:
        return config, 0

    for line in lines[:separator_index]:
        _apply_header_line(line, config)

    body_start_line = separator_index + 1
    logger.debug(f"Header parsed: project={config.project_name!r}, resolution={config.resolution}, "
                 f"framerate={config.frame_rate}, body starts at line {body_start_line}")
    return config, body_start_line


def _apply_header_line(line: str, config: ProjectConfig) -> None:
    stripped = line.strip()
    if not stripped or stripped.startswith("#"):
        return

    match = _PROJECT.match(line)
    if match:
        config.project_name = match.group(1)
        return
    match = _RESOLUTION.match(line)
    if match:
        width, height = int(match.group(1)), int(match.group(2))
        if width > 0 and height > 0:
            config.resolution_width, config.resolution_height = width, height
        return
    match = _FRAME_RATE.match(line)
    if match:
        if int(match.group(1)) > 0:
            config.frame_rate = int(match.group(1))
        return
    match = _DEFAULT_FONT.match(line)
    if match:
        config.default_font = match.group(1)
        return
    match = _DEFAULT_FONT_SIZE.match(line)
    if match:
        if int(match.group(1)) > 0:
            config.default_font_size = int(match.group(1))
        return
    match = _TITLE_COLOR.match(line)
    if match:
        config.default_title_color = "#" + match.group(1).upper()
        return
    match = _SUBTITLE_COLOR.match(line)
    if match:
        config.default_subtitle_color = "#" + match.group(1).upper()
        return
    match = _BACKGROUND_ALPHA.match(line)
    if match:
        config.default_background_alpha = float(match.group(1))
        return
    logger.debug(f"Unrecognized header line ignored: {stripped!r}")


def generate_header_text(config: ProjectConfig) -> str:
    """Renders a config as a header block ending with the '===' separator."""
    lines = [
        f'PROJECT "{config.project_name}"',
        f"RESOLUTION {config.resolution_width}x{config.resolution_height}",
        f"FRAMERATE {config.frame_rate}",
        f'DEFAULT_FONT "{config.default_font}"',
        f"DEFAULT_FONT_SIZE {config.default_font_size}",
        f"DEFAULT_TITLE_COLOR {config.default_title_color}",
        f"DEFAULT_SUBTITLE_COLOR {config.default_subtitle_color}",
        f"DEFAULT_BACKGROUND_ALPHA {config.default_background_alpha:.1f}",
        "===",
    ]
    return "\n".join(lines) + "\n"
