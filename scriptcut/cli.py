"""Command-Line Interface handler for ScriptCut."""

import argparse
import json
import logging
import os
import sys
from typing import List, Optional

from .command_executor import CommandExecutor
from .config_loader import ConfigLoader
from .exceptions import ScriptCutError, ConfigurationError
from .log_setup import setup_logging
from .media_probe import FFprobeMediaProbe, FixedDurationProbe
from .script_processor import ScriptProcessor, ScriptResult
from .segment_manager import VideoSegmentManager
from .time_range_codec import format_time_range
from .utils import format_command_time

logger = logging.getLogger(__name__) # Get logger for this module

DEFAULT_CONFIG_PATH = "config.yaml"

class CLIHandler:
    """Parses arguments and runs a script through the timeline engine."""

    def __init__(self):
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """Creates the argument parser for the CLI."""
        parser = argparse.ArgumentParser(
            description="ScriptCut: apply a text edit script to a video timeline and report the result.",
            formatter_class=argparse.ArgumentDefaultsHelpFormatter # Show defaults in help
        )
        parser.add_argument(
            "-s", "--script",
            required=True,
            help="Path to the edit script (UTF-8 text)."
        )
        parser.add_argument(
            "-c", "--config",
            default=None,
            help=f"Path to the configuration YAML file (uses {DEFAULT_CONFIG_PATH} if present)."
        )
        parser.add_argument(
            "--duration",
            type=float,
            default=None,
            help="Use this media duration in seconds for every LOAD instead of probing with ffprobe."
        )
        parser.add_argument(
            "--ffprobe-path",
            default=None, # Default taken from config
            help="Override the ffprobe executable specified in the config file."
        )
        parser.add_argument(
            "--log-level",
            default="WARNING",
            choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            help="Set the logging level for console and file output."
        )
        parser.add_argument(
            "--json",
            action="store_true",
            help="Print the result as a single JSON document."
        )
        return parser

    def _load_config(self, config_path: Optional[str]) -> dict:
        loader = ConfigLoader()
        if config_path is None:
            if not os.path.isfile(DEFAULT_CONFIG_PATH):
                logger.info("No configuration file given; using defaults.")
                return loader.with_defaults({})
            config_path = DEFAULT_CONFIG_PATH
        return loader.load_config(config_path)

    def run(self, argv: Optional[List[str]] = None) -> None:
        """Parses arguments, sets up logging, loads config, and processes the script."""
        args = self.parser.parse_args(argv)

        log_level = getattr(logging, args.log_level.upper(), logging.WARNING)
        log_stream = sys.stderr if args.json else sys.stdout

        # --- Load Configuration ---
        try:
            config = self._load_config(args.config)
        except ConfigurationError as e:
            setup_logging(log_level=log_level, stream=log_stream)
            logger.critical(f"Failed to load configuration from {args.config}: {e}", exc_info=True)
            sys.exit(1)
        except FileNotFoundError:
            setup_logging(log_level=log_level, stream=log_stream)
            logger.critical(f"Configuration file not found: {args.config}")
            sys.exit(1)

        setup_logging(log_level=log_level, log_dir=config['log_dir'], log_file=config['log_file'], stream=log_stream)

        # --- Apply CLI Overrides ---
        if args.ffprobe_path:
            logger.info(f"Overriding ffprobe_path from config with CLI argument: {args.ffprobe_path}")
            config['ffprobe_path'] = args.ffprobe_path

        if not os.path.isfile(args.script):
            logger.critical(f"Script file not found or is not a file: {args.script}")
            sys.exit(1)

        try:
            with open(args.script, 'r', encoding='utf-8') as f:
                text = f.read()

            if args.duration is not None:
                media_probe = FixedDurationProbe(args.duration)
            else:
                media_probe = FFprobeMediaProbe(ffprobe_path=config['ffprobe_path'])
            segment_manager = VideoSegmentManager(tolerance=config['boundary_tolerance'])
            executor = CommandExecutor(
                segment_manager,
                media_probe,
                default_duration=config['default_media_duration']
            )
            result = ScriptProcessor(executor).process(text)

            if args.json:
                print(json.dumps(self._to_json(result, segment_manager), ensure_ascii=False, indent=2))
            else:
                self._print_result(result, segment_manager)
            sys.exit(0)

        except ScriptCutError as e:
            logger.error(f"A ScriptCut error occurred: {e}")
            sys.exit(1)
        except (OSError, UnicodeDecodeError, ValueError) as e:
            logger.error(f"Could not process {args.script}: {e}")
            sys.exit(1)
        except KeyboardInterrupt:
            logger.warning("Process interrupted by user (Ctrl+C). Exiting.")
            sys.exit(1)
        except Exception as e:
            logger.critical(f"An unexpected critical error occurred at the top level: {e}", exc_info=True)
            sys.exit(2) # Use a different exit code for unexpected crashes

    @staticmethod
    def _print_result(result: ScriptResult, segment_manager: VideoSegmentManager) -> None:
        print(f"Project: {result.config.project_name} ({result.config.resolution}, {result.config.frame_rate} fps)")
        print(f"\nScenes ({len(result.scene_blocks)}):")
        for scene in result.scene_blocks:
            title = scene.title.splitlines()[0] if scene.title else ""
            print(f"  [{format_time_range(scene.start_time, scene.end_time)}] line {scene.line_number}: {title}")

        segments = segment_manager.segments
        print(f"\nSegments ({len(segments)}):")
        for segment in segments:
            print(f"  #{segment.id:<3} {format_command_time(segment.start_time)} - "
                  f"{format_command_time(segment.end_time)}  {segment.state.value:<7} "
                  f"x{segment.speed_rate:g}  {segment.video_file_path}")

        report = result.report
        print(f"\nCommands: {report.total_commands} run, {report.success_count} ok, {report.failure_count} failed")
        errors = result.error_messages
        if errors:
            print(f"\nErrors ({len(errors)}):")
            for message in errors:
                print(f"  {message}")

    @staticmethod
    def _to_json(result: ScriptResult, segment_manager: VideoSegmentManager) -> dict:
        return {
            "project": {
                "name": result.config.project_name,
                "resolution": result.config.resolution,
                "frame_rate": result.config.frame_rate,
            },
            "scenes": [
                {
                    "start_time": s.start_time,
                    "end_time": s.end_time,
                    "title": s.title,
                    "subtitle": s.subtitle,
                    "line_number": s.line_number,
                    "media_file_path": s.media_file_path,
                }
                for s in result.scene_blocks
            ],
            "segments": [
                {
                    "id": s.id,
                    "start_time": s.start_time,
                    "end_time": s.end_time,
                    "visible": s.visible,
                    "state": s.state.value,
                    "speed_rate": s.speed_rate,
                    "video_file_path": s.video_file_path,
                }
                for s in segment_manager.segments
            ],
            "commands": {
                "total": result.report.total_commands,
                "succeeded": result.report.success_count,
                "failed": result.report.failure_count,
            },
            "errors": result.error_messages,
        }


def main() -> None:
    """Console-script entry point."""
    CLIHandler().run()
