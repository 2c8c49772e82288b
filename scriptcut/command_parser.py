"""Parses edit command lines (LOAD, CUT, HIDE, SHOW, DELETE, MERGE, SPEED) out of a script."""

import logging
import re
from typing import List, Optional, Tuple

from .exceptions import CommandSyntaxError
from .models import CommandType, EditCommand, ParseError
from .utils import split_lines

logger = logging.getLogger(__name__)

_KEYWORD_LINE = re.compile(r"^\s*([A-Za-z]+)(?:\s+(.*?))?\s*$")
_TIME_TOKEN = re.compile(r"^(\d{2,}):(\d{2}):(\d{2})\.(\d{3})$")
_RATE_TOKEN = re.compile(r"^(\d+(?:\.\d{1,6})?)[xX]$")
_PATH_HINT = re.compile(r"^\S*[./\\]\S*$")

KEYWORDS = {t.value: t for t in CommandType}


def parse_time_token(token: str) -> float:
    """
    Converts an HH:MM:SS.fff token to seconds.

    Raises:
        CommandSyntaxError: If the token is not a valid time.
    """
    match = _TIME_TOKEN.match(token)
    if not match:
        raise CommandSyntaxError(f"invalid time '{token}' (expected HH:MM:SS.fff)")
    hours, minutes, seconds, millis = (int(g) for g in match.groups())
    if minutes >= 60 or seconds >= 60:
        raise CommandSyntaxError(f"invalid time '{token}' (minutes and seconds must be below 60)")
    return hours * 3600 + minutes * 60 + seconds + millis / 1000.0


def _split_keyword(line: str) -> Tuple[Optional[str], str]:
    match = _KEYWORD_LINE.match(line)
    if not match:
        return None, ""
    return match.group(1), match.group(2) or ""


def _is_candidate(keyword: str, command_type: CommandType, args: str) -> bool:
    # An upper-case keyword is always a command; otherwise the operand has to
    # look like one, so prose such as "Cut to black" stays prose.
    if keyword.isupper() or not args:
        return keyword.isupper()
    if command_type is CommandType.LOAD:
        return args.startswith('"') or bool(_PATH_HINT.match(args))
    return args[0].isdigit()


def looks_like_command(line: str) -> bool:
    """True when a line would be read as a command (valid or not) rather than prose."""
    keyword, args = _split_keyword(line)
    if keyword is None or keyword.upper() not in KEYWORDS:
        return False
    return _is_candidate(keyword, KEYWORDS[keyword.upper()], args)


def _parse_load(args: str, line_number: int) -> EditCommand:
    if not args:
        raise CommandSyntaxError("LOAD requires a file path")
    if args.startswith('"'):
        if len(args) < 3 or not args.endswith('"'):
            raise CommandSyntaxError("unterminated or empty quoted path")
        path = args[1:-1]
    else:
        path = args
    return EditCommand(type=CommandType.LOAD, file_path=path, line_number=line_number)


def _parse_span(tokens: List[str], command_type: CommandType) -> Tuple[float, float]:
    start, end = parse_time_token(tokens[0]), parse_time_token(tokens[1])
    if start >= end:
        raise CommandSyntaxError(f"{command_type.value} start {tokens[0]} must be before end {tokens[1]}")
    return start, end


def parse_line(line: str, line_number: int) -> Optional[EditCommand]:
    """
    Parses a single script line.

    Args:
        line: The raw line text.
        line_number: 1-based line number stored on the command.

    Returns:
        The command, or None when the line is prose.

    Raises:
        CommandSyntaxError: If the line starts with a command keyword but its
                            fields are invalid.
    """
    keyword, args = _split_keyword(line)
    if keyword is None or keyword.upper() not in KEYWORDS:
        return None
    command_type = KEYWORDS[keyword.upper()]
    if not _is_candidate(keyword, command_type, args):
        return None

    if command_type is CommandType.LOAD:
        return _parse_load(args, line_number)

    tokens = args.split()
    if command_type is CommandType.CUT:
        if len(tokens) != 1:
            raise CommandSyntaxError("CUT takes exactly one time (CUT HH:MM:SS.fff)")
        return EditCommand(type=command_type, time=parse_time_token(tokens[0]), line_number=line_number)

    if command_type is CommandType.SPEED:
        if len(tokens) != 3:
            raise CommandSyntaxError("SPEED takes a rate and two times (SPEED <rate>x HH:MM:SS.fff HH:MM:SS.fff)")
        rate_match = _RATE_TOKEN.match(tokens[0])
        if not rate_match:
            raise CommandSyntaxError(f"invalid speed rate '{tokens[0]}' (expected e.g. 1.5x, at most 6 decimals)")
        rate = float(rate_match.group(1))
        if rate <= 0:
            raise CommandSyntaxError("speed rate must be greater than 0")
        start, end = _parse_span(tokens[1:], command_type)
        return EditCommand(type=command_type, start_time=start, end_time=end,
                           speed_rate=rate, line_number=line_number)

    if len(tokens) != 2:
        raise CommandSyntaxError(f"{command_type.value} takes two times ({command_type.value} HH:MM:SS.fff HH:MM:SS.fff)")
    start, end = _parse_span(tokens, command_type)
    return EditCommand(type=command_type, start_time=start, end_time=end, line_number=line_number)


def parse_commands(text: str) -> Tuple[List[EditCommand], List[ParseError]]:
    """
    Parses every line of a script.

    Lines that match no grammar are treated as prose and skipped. Lines that
    start like a command but carry invalid fields are dropped and reported.

    Args:
        text: The full script text.

    Returns:
        (commands in script order, parse errors in script order)
    """
    commands: List[EditCommand] = []
    errors: List[ParseError] = []
    if not text:
        return commands, errors

    for index, line in enumerate(split_lines(text)):
        line_number = index + 1
        try:
            command = parse_line(line, line_number)
        except CommandSyntaxError as e:
            logger.debug(f"Line {line_number} rejected: {e}")
            errors.append(ParseError(line_number=line_number, line=line, message=str(e)))
            continue
        if command is not None:
            commands.append(command)

    logger.debug(f"Parsed {len(commands)} commands ({len(errors)} invalid lines)")
    return commands, errors


def make_range_command(
    command_type: CommandType,
    start: float,
    end: float,
    speed_rate: Optional[float] = None,
    line_number: int = 0
) -> EditCommand:
    """
    Builds a range command, typically from an AnchorLogic selection.

    Raises:
        ValueError: If the type is not a range command, the range is empty,
                    or a SPEED command has no positive rate.
    """
    if not command_type.is_range:
        raise ValueError(f"{command_type.value} is not a range command")
    if start >= end:
        raise ValueError(f"Empty range: start {start} must be before end {end}")
    if command_type is CommandType.SPEED:
        if speed_rate is None or speed_rate <= 0:
            raise ValueError("SPEED requires a speed rate greater than 0")
    else:
        speed_rate = None
    return EditCommand(type=command_type, start_time=start, end_time=end,
                       speed_rate=speed_rate, line_number=line_number)
