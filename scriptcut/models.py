"""Data models for ScriptCut."""

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from .utils import format_command_time

LINE_PREFIX = "行"

def line_tag(line_number: int) -> str:
    """Prefix used by the error panel, e.g. '行12: '."""
    return f"{LINE_PREFIX}{line_number}: "


class CommandType(Enum):
    LOAD = "LOAD"
    CUT = "CUT"
    HIDE = "HIDE"
    SHOW = "SHOW"
    DELETE = "DELETE"
    MERGE = "MERGE"
    SPEED = "SPEED"

    @property
    def is_range(self) -> bool:
        return self in RANGE_COMMANDS


RANGE_COMMANDS = frozenset({
    CommandType.HIDE, CommandType.SHOW, CommandType.DELETE,
    CommandType.MERGE, CommandType.SPEED,
})


def format_rate(rate: float) -> str:
    """Shortest decimal form of a speed rate ('2', '1.5', '0.25')."""
    text = f"{rate:.6f}".rstrip('0').rstrip('.')
    return text or "0"


@dataclass
class EditCommand:
    """One edit command parsed from a script line. Only fields relevant to `type` are set."""
    type: CommandType
    time: Optional[float] = None
    start_time: Optional[float] = None
    end_time: Optional[float] = None
    file_path: Optional[str] = None
    speed_rate: Optional[float] = None
    line_number: int = 0

    def __str__(self) -> str:
        if self.type is CommandType.LOAD:
            path = self.file_path or ""
            if any(ch.isspace() for ch in path):
                path = f'"{path}"'
            return f"LOAD {path}"
        if self.type is CommandType.CUT:
            return f"CUT {format_command_time(self.time or 0.0)}"
        span = f"{format_command_time(self.start_time or 0.0)} {format_command_time(self.end_time or 0.0)}"
        if self.type is CommandType.SPEED:
            return f"SPEED {format_rate(self.speed_rate or 0.0)}x {span}"
        return f"{self.type.value} {span}"


@dataclass(frozen=True)
class ParseError:
    """A line that starts with a command keyword but has invalid fields."""
    line_number: int
    line: str
    message: str

    def __str__(self) -> str:
        return f"{line_tag(self.line_number)}{self.message}"


@dataclass
class FreeTextItem:
    """Free-floating caption placed on top of a scene (x/y are 0..1 screen ratios)."""
    text: str
    x: float = 0.1
    y: float = 0.5
    font_size: Optional[int] = None
    text_color: Optional[str] = None
    background_color: Optional[str] = None
    max_width: Optional[float] = None
    line_number: int = 0


@dataclass(frozen=True)
class SceneBlock:
    """
    Time-addressed content region parsed from the script.

    Blocks are never patched in place; the parser replaces the whole list
    on every run and `with_changes` builds modified copies.
    """
    id: str
    start_time: float
    end_time: float
    title: Optional[str] = None
    subtitle: Optional[str] = None
    content_text: Optional[str] = None
    line_number: int = 0
    media_file_path: Optional[str] = None
    scene_type: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)
    free_text_items: tuple = ()

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    def contains_time(self, time: float) -> bool:
        return self.start_time <= time <= self.end_time

    def overlaps_with(self, other: "SceneBlock") -> bool:
        return self.start_time < other.end_time and self.end_time > other.start_time

    def with_changes(self, **changes) -> "SceneBlock":
        return dataclasses.replace(self, **changes)


class SegmentState(Enum):
    STOPPED = "Stopped"
    PLAYING = "Playing"
    HIDDEN = "Hidden"


@dataclass
class VideoSegment:
    """A contiguous range of the source media with its own visibility, state and speed."""
    id: int
    start_time: float
    end_time: float
    video_file_path: str = ""
    visible: bool = True
    state: SegmentState = SegmentState.STOPPED
    speed_rate: float = 1.0
    title: Optional[str] = None
    subtitle: Optional[str] = None
    free_text_items: List[FreeTextItem] = field(default_factory=list)

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    @property
    def effective_duration(self) -> float:
        """Playback length once speed_rate is applied."""
        return self.duration / self.speed_rate

    def contains_time(self, time: float) -> bool:
        return self.start_time <= time <= self.end_time

    def overlaps_with(self, other: "VideoSegment") -> bool:
        return self.start_time < other.end_time and self.end_time > other.start_time

    def is_adjacent_to(self, other: "VideoSegment", tolerance: float = 0.001) -> bool:
        return (abs(self.end_time - other.start_time) < tolerance or
                abs(other.end_time - self.start_time) < tolerance)

    def copy(self) -> "VideoSegment":
        return dataclasses.replace(self, free_text_items=list(self.free_text_items))

    def signature(self) -> tuple:
        """The fields compared by the idempotence contract (ids excluded)."""
        return (self.start_time, self.end_time, self.visible, self.state, self.speed_rate)


@dataclass
class CommandResult:
    """Outcome of one executed command."""
    success: bool
    command: Optional[EditCommand] = None
    error_message: Optional[str] = None
    affected_segment_ids: List[int] = field(default_factory=list)

    @classmethod
    def ok(cls, command: EditCommand, *affected_ids: int) -> "CommandResult":
        return cls(success=True, command=command, affected_segment_ids=list(affected_ids))

    @classmethod
    def fail(cls, command: EditCommand, error_message: str) -> "CommandResult":
        return cls(success=False, command=command, error_message=error_message)


@dataclass
class CommandExecutionReport:
    """Aggregated results of one `CommandExecutor.apply` run."""
    results: List[CommandResult] = field(default_factory=list)
    cancelled: bool = False

    @property
    def total_commands(self) -> int:
        return len(self.results)

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failure_count(self) -> int:
        return sum(1 for r in self.results if not r.success)

    @property
    def all_succeeded(self) -> bool:
        return self.failure_count == 0

    @property
    def error_messages(self) -> List[str]:
        messages = []
        for result in self.results:
            if not result.success and result.error_message:
                prefix = line_tag(result.command.line_number) if result.command is not None else ""
                messages.append(f"{prefix}{result.error_message}")
        return messages


@dataclass
class ProjectConfig:
    """Project-wide settings read from the script header."""
    project_name: str = "Untitled Project"
    resolution_width: int = 1920
    resolution_height: int = 1080
    frame_rate: int = 30
    default_font: str = "Meiryo"
    default_font_size: int = 24
    default_title_color: str = "#FFFFFF"
    default_subtitle_color: str = "#FFFFFF"
    default_background_alpha: float = 0.8

    @property
    def resolution(self) -> str:
        return f"{self.resolution_width}x{self.resolution_height}"
