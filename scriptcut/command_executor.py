"""Applies parsed edit commands to the segment partition."""

import logging
import threading
from typing import Iterable, Optional

from .exceptions import InvariantViolationError, MediaProbeError
from .media_probe import MediaProbe
from .models import CommandExecutionReport, CommandResult, CommandType, EditCommand, SegmentState, VideoSegment
from .segment_manager import SegmentTransaction, VideoSegmentManager
from .utils import format_command_time

logger = logging.getLogger(__name__)

DEFAULT_MEDIA_DURATION = 100.0


class CommandExecutor:
    """
    Replays a script's command list against the segment manager.

    Every `apply` starts from an empty working partition, runs the commands
    in script order and commits the result in one step. A failing command is
    recorded in the report and the batch carries on.
    """

    def __init__(
        self,
        segment_manager: VideoSegmentManager,
        media_probe: MediaProbe,
        default_duration: float = DEFAULT_MEDIA_DURATION
    ):
        """
        Initializes the CommandExecutor.

        Args:
            segment_manager: Receives the committed partition.
            media_probe: Supplies media durations for LOAD.
            default_duration: Duration used when the probe fails.
        """
        if segment_manager is None or media_probe is None:
            raise ValueError("segment_manager and media_probe are required")
        self.segment_manager = segment_manager
        self.media_probe = media_probe
        self.default_duration = default_duration
        self._handlers = {
            CommandType.LOAD: self._execute_load,
            CommandType.CUT: self._execute_cut,
            CommandType.HIDE: self._execute_hide,
            CommandType.SHOW: self._execute_show,
            CommandType.DELETE: self._execute_delete,
            CommandType.MERGE: self._execute_merge,
            CommandType.SPEED: self._execute_speed,
        }

    def apply(self, commands: Iterable[EditCommand], cancel_event: Optional[threading.Event] = None) -> CommandExecutionReport:
        """
        Executes commands in order and commits the resulting partition.

        Args:
            commands: Commands in script order.
            cancel_event: When set, execution stops and nothing is committed.

        Returns:
            The per-command report. `cancelled` is True if the run was
            abandoned; the committed partition is then unchanged.
        """
        report = CommandExecutionReport()
        transaction = self.segment_manager.begin_transaction()

        for command in commands:
            if cancel_event is not None and cancel_event.is_set():
                logger.debug("Command batch cancelled before completion")
                report.cancelled = True
                return report
            report.results.append(self._execute(transaction, command))

        try:
            committed = self.segment_manager.commit(transaction, cancel_event)
        except InvariantViolationError as e:
            # Per-command checks should make this unreachable
            logger.error(f"Rejected invalid partition: {e}")
            report.results.append(CommandResult(success=False, error_message=f"partition rejected: {e}"))
            return report
        if not committed:
            report.cancelled = True
            return report

        logger.info(f"Applied {report.total_commands} commands: "
                    f"{report.success_count} succeeded, {report.failure_count} failed")
        return report

    def _execute(self, transaction: SegmentTransaction, command: EditCommand) -> CommandResult:
        snapshot = transaction.snapshot()
        try:
            result = self._handlers[command.type](transaction, command)
            if result.success:
                transaction.validate()
        except InvariantViolationError as e:
            transaction.restore(snapshot)
            result = CommandResult.fail(command, f"rejected: {e}")
        if not result.success:
            logger.warning(f"Line {command.line_number}: {command} failed: {result.error_message}")
        return result

    # --- Handlers ---

    def _execute_load(self, transaction: SegmentTransaction, command: EditCommand) -> CommandResult:
        if not command.file_path:
            return CommandResult.fail(command, "LOAD requires a file path")
        try:
            duration = self.media_probe.get_duration(command.file_path)
        except MediaProbeError as e:
            logger.warning(f"Could not read duration of {command.file_path} ({e}); "
                           f"using default of {self.default_duration}s")
            duration = self.default_duration
        segment = transaction.reset(command.file_path, duration)
        return CommandResult.ok(command, segment.id)

    def _execute_cut(self, transaction: SegmentTransaction, command: EditCommand) -> CommandResult:
        if command.time is None:
            return CommandResult.fail(command, "CUT requires a time")
        if not transaction.segments:
            return CommandResult.fail(command, "no video loaded")
        pieces = transaction.split_at(command.time)
        if pieces is None:
            return CommandResult.fail(command, f"position outside segment ({format_command_time(command.time)})")
        return CommandResult.ok(command, *(s.id for s in pieces))

    def _covered(self, transaction: SegmentTransaction, command: EditCommand):
        """Splits at the command's range and returns (covered segments, failure)."""
        if command.start_time is None or command.end_time is None:
            return None, CommandResult.fail(command, f"{command.type.value} requires a start and end time")
        if command.start_time >= command.end_time:
            return None, CommandResult.fail(command, "start time must be before end time")
        if not transaction.intersecting(command.start_time, command.end_time):
            return None, CommandResult.fail(
                command,
                f"no segment in range {format_command_time(command.start_time)}-{format_command_time(command.end_time)}")
        return transaction.isolate(command.start_time, command.end_time), None

    def _set_visibility(self, transaction: SegmentTransaction, command: EditCommand, visible: bool) -> CommandResult:
        covered, failure = self._covered(transaction, command)
        if failure:
            return failure
        for segment in covered:
            segment.visible = visible
            segment.state = SegmentState.STOPPED if visible else SegmentState.HIDDEN
        return CommandResult.ok(command, *(s.id for s in covered))

    def _execute_hide(self, transaction: SegmentTransaction, command: EditCommand) -> CommandResult:
        return self._set_visibility(transaction, command, visible=False)

    def _execute_show(self, transaction: SegmentTransaction, command: EditCommand) -> CommandResult:
        return self._set_visibility(transaction, command, visible=True)

    def _execute_delete(self, transaction: SegmentTransaction, command: EditCommand) -> CommandResult:
        covered, failure = self._covered(transaction, command)
        if failure:
            return failure
        # Surviving segments keep their source offsets; the deleted range becomes a gap
        removed_ids = [s.id for s in covered]
        transaction.remove(removed_ids)
        return CommandResult.ok(command, *removed_ids)

    def _execute_speed(self, transaction: SegmentTransaction, command: EditCommand) -> CommandResult:
        if command.speed_rate is None or command.speed_rate <= 0:
            return CommandResult.fail(command, "speed rate must be greater than 0")
        covered, failure = self._covered(transaction, command)
        if failure:
            return failure
        for segment in covered:
            segment.speed_rate = command.speed_rate
        return CommandResult.ok(command, *(s.id for s in covered))

    def _execute_merge(self, transaction: SegmentTransaction, command: EditCommand) -> CommandResult:
        if command.start_time is None or command.end_time is None:
            return CommandResult.fail(command, "MERGE requires a start and end time")
        if command.start_time >= command.end_time:
            return CommandResult.fail(command, "start time must be before end time")
        members = transaction.intersecting(command.start_time, command.end_time)
        if not members:
            return CommandResult.fail(command, "no segment in merge range")
        for previous, following in zip(members, members[1:]):
            if following.start_time - previous.end_time >= transaction.tolerance:
                return CommandResult.fail(command, "non-contiguous merge range")
        first = members[0]
        if len(members) == 1:
            return CommandResult.ok(command, first.id)

        merged: VideoSegment = first.copy()
        merged.end_time = members[-1].end_time
        transaction.replace(members, merged)
        return CommandResult.ok(command, merged.id)
