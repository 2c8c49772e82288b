"""Runs the full text-to-timeline pipeline and debounces repeated edits."""

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from .command_executor import CommandExecutor
from .command_parser import parse_commands
from .header_parser import parse_header
from .models import CommandExecutionReport, EditCommand, ParseError, ProjectConfig, SceneBlock, line_tag
from .scene_parser import parse_scenes

logger = logging.getLogger(__name__)


@dataclass
class ScriptResult:
    """Everything derived from one script snapshot."""
    config: ProjectConfig
    body_start_line: int
    scene_blocks: List[SceneBlock] = field(default_factory=list)
    commands: List[EditCommand] = field(default_factory=list)
    parse_errors: List[ParseError] = field(default_factory=list)
    report: CommandExecutionReport = field(default_factory=CommandExecutionReport)

    @property
    def error_messages(self) -> List[str]:
        """Parse errors and execution failures as '行N: message', ordered by line."""
        tagged = [(e.line_number, str(e)) for e in self.parse_errors]
        for result in self.report.results:
            if result.success or not result.error_message:
                continue
            if result.command is None:
                tagged.append((float("inf"), result.error_message))
            else:
                line_number = result.command.line_number
                tagged.append((line_number, f"{line_tag(line_number)}{result.error_message}"))
        tagged.sort(key=lambda item: item[0])
        return [message for _, message in tagged]


class ScriptProcessor:
    """Parses a script snapshot and applies its commands."""

    def __init__(self, executor: CommandExecutor):
        self.executor = executor

    def process(self, text: str, cancel_event: Optional[threading.Event] = None) -> ScriptResult:
        """
        Runs header, scene and command parsing, then applies the commands.

        Args:
            text: The full script text.
            cancel_event: Cancels the apply step (nothing is committed).

        Returns:
            A ScriptResult; problems in the script are reported in it, never raised.
        """
        text = text or ""
        config, body_start_line = parse_header(text)
        scene_blocks = parse_scenes(text)
        commands, parse_errors = parse_commands(text)
        report = self.executor.apply(commands, cancel_event)
        logger.info(f"Script processed: {len(scene_blocks)} scenes, {len(commands)} commands, "
                    f"{len(parse_errors)} invalid lines, {report.failure_count} failed commands")
        return ScriptResult(
            config=config,
            body_start_line=body_start_line,
            scene_blocks=scene_blocks,
            commands=commands,
            parse_errors=parse_errors,
            report=report,
        )


class ScriptReprocessor:
    """
    Debounced, single-writer reprocessing of a script being edited.

    Each `submit` supersedes whatever request came before it: a pending
    request is dropped and an in-flight one is cancelled so that only the
    newest snapshot is ever committed.
    """

    def __init__(
        self,
        processor: ScriptProcessor,
        debounce_seconds: float = 0.5,
        on_result: Optional[Callable[[ScriptResult], None]] = None
    ):
        self.processor = processor
        self.debounce_seconds = debounce_seconds
        self.on_result = on_result
        self._lock = threading.Lock()
        self._generation = 0
        self._cancel_event: Optional[threading.Event] = None
        self._timers: List[threading.Timer] = []
        self._latest_text: Optional[str] = None
        self._latest_result: Optional[ScriptResult] = None
        self._closed = False

    @classmethod
    def from_config(cls, processor: ScriptProcessor, config: dict,
                    on_result: Optional[Callable[[ScriptResult], None]] = None) -> "ScriptReprocessor":
        """Builds a reprocessor using the 'debounce_ms' setting."""
        return cls(processor, debounce_seconds=config['debounce_ms'] / 1000.0, on_result=on_result)

    @property
    def latest_result(self) -> Optional[ScriptResult]:
        with self._lock:
            return self._latest_result

    def _supersede(self, text: str):
        # Caller holds self._lock
        self._generation += 1
        for timer in self._timers:
            timer.cancel()
        if self._cancel_event is not None:
            self._cancel_event.set()
        self._cancel_event = threading.Event()
        self._latest_text = text
        return self._generation, self._cancel_event

    def submit(self, text: str) -> bool:
        """
        Schedules a reprocess after the debounce window.

        Returns:
            False if the text equals the latest submitted snapshot (nothing scheduled).
        """
        with self._lock:
            if self._closed:
                raise RuntimeError("ScriptReprocessor is closed")
            if text == self._latest_text:
                return False
            generation, cancel_event = self._supersede(text)
            timer = threading.Timer(self.debounce_seconds, self._run, args=(generation, text, cancel_event))
            timer.daemon = True
            self._timers = [t for t in self._timers if t.is_alive()] + [timer]
            timer.start()
        logger.debug(f"Reprocess #{generation} scheduled in {self.debounce_seconds:.3f}s")
        return True

    def process_now(self, text: str) -> Optional[ScriptResult]:
        """Processes a snapshot synchronously, superseding anything pending."""
        with self._lock:
            if self._closed:
                raise RuntimeError("ScriptReprocessor is closed")
            generation, cancel_event = self._supersede(text)
        return self._run(generation, text, cancel_event)

    def _run(self, generation: int, text: str, cancel_event: threading.Event) -> Optional[ScriptResult]:
        if cancel_event.is_set():
            return None
        result = self.processor.process(text, cancel_event)
        with self._lock:
            if generation != self._generation or result.report.cancelled:
                logger.debug(f"Reprocess #{generation} superseded; result discarded")
                return None
            self._latest_result = result
        if self.on_result is not None:
            try:
                self.on_result(result)
            except Exception:
                logger.exception("Result callback failed")
        return result

    def wait_idle(self, timeout: Optional[float] = None) -> None:
        """Waits for scheduled and running reprocesses to finish."""
        with self._lock:
            timers = list(self._timers)
        for timer in timers:
            timer.join(timeout)

    def close(self) -> None:
        """Cancels pending work and waits for running work to stop."""
        with self._lock:
            self._closed = True
            for timer in self._timers:
                timer.cancel()
            if self._cancel_event is not None:
                self._cancel_event.set()
            timers = list(self._timers)
        for timer in timers:
            timer.join()
