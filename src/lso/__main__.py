"""Command line entry point.

Usage:
    python -m lso run --source pkg.module:factory       # live tracking
    python -m lso run --source lso.telemetry.scenario:demo_source
    python -m lso file recording.zip.acmi               # re-grade a recording
    python -m lso -v file recording.acmi --out-dir out  # ... and store the results
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from omegaconf.errors import OmegaConfBaseException
from pydantic import ValidationError

from lso.core.config import LsoConfig
from lso.core.errors import AcmiParseError
from lso.notify import LogNotificationSink
from lso.recording.config import RecordingConfig
from lso.recording.extract import extract_recoveries
from lso.recording.storage import ResultStorage
from lso.tasks.config import RetryConfig, TelemetryConfig
from lso.tasks.run import RecoveryService, load_source_factory, run_with_retry
from lso.tasks.shutdown import Shutdown
from lso.tracking.attempt import AttemptParams
from lso.tracking.track import TrackParams
from lso.utils.logging import level_from_verbosity, setup_logging


def _fail(message: str) -> int:
    print(f"Error: {message}", file=sys.stderr)
    return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lso", description="Carrier recovery tracking and LSO grading")
    parser.add_argument("-c", "--config", default="config/default.yaml", help="Configuration YAML (default: %(default)s)")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="-v logs at DEBUG")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Log level, wins over -v")
    parser.add_argument("--log-file", help="Also log to this file")
    parser.add_argument("--log-json", action="store_true", help="Log JSON lines")
    parser.add_argument("--validate-config", action="store_true", help="Check the configuration schema first")

    commands = parser.add_subparsers(dest="command", required=True)

    run = commands.add_parser("run", help="Watch a running mission and grade every recovery")
    run.add_argument("--source", help="Telemetry source factory as module:factory")
    run.add_argument("--uri", help="Telemetry server URI handed to the factory")
    run.add_argument("--ki", action="store_true", default=None, help="Grade AI planes too")
    run.add_argument("--out-dir", help="Where recordings and results go")

    grade = commands.add_parser("file", help="Grade the recoveries in an ACMI recording")
    grade.add_argument("input", help=".acmi or .zip.acmi recording")
    grade.add_argument(
        "--auto-touchdown",
        action="store_true",
        help="Take touchdown from the hook height, for recordings without land events",
    )
    grade.add_argument("--out-dir", help="Store the results here")
    return parser


def _apply_overrides(config: LsoConfig, args: argparse.Namespace) -> None:
    if args.command == "run":
        for key, value in (("source", args.source), ("uri", args.uri), ("include_ki", args.ki)):
            if value is not None:
                config.override(f"lso.telemetry.{key}", value)
    if args.out_dir is not None:
        config.override("lso.recording.out_dir", args.out_dir)


def _configure_logging(config: LsoConfig, args: argparse.Namespace) -> None:
    system = config.section("system") or {}
    if args.log_level:
        level = args.log_level
    elif args.verbose:
        level = level_from_verbosity(args.verbose)
    else:
        level = system.get("log_level", "INFO")
    setup_logging(
        level,
        log_file=args.log_file or system.get("log_file"),
        log_json=args.log_json or system.get("log_json", False),
    )


async def _run(config: LsoConfig) -> int:
    telemetry = TelemetryConfig.from_omegaconf(config.section("telemetry"))
    if telemetry.source is None:
        return _fail("no telemetry source configured (lso.telemetry.source)")
    try:
        factory = load_source_factory(telemetry.source)
    except (ImportError, ValueError) as e:
        return _fail(str(e))

    shutdown = Shutdown()
    shutdown.install_signal_handlers()
    service = RecoveryService.from_config(
        config.cfg, lambda: factory(telemetry), shutdown, sink=LogNotificationSink()
    )
    await run_with_retry(service.run_once, RetryConfig.from_omegaconf(config.section("retry")), shutdown)
    return 0


def _file(config: LsoConfig, args: argparse.Namespace) -> int:
    recording = RecordingConfig.from_omegaconf(config.section("recording"), config.section("results"))
    source = Path(args.input)
    try:
        results = extract_recoveries(
            source,
            detection=AttemptParams.from_omegaconf(config.section("detection")),
            tracking=TrackParams.from_omegaconf(config.section("tracking"), auto_touchdown=args.auto_touchdown),
            landed_grace_s=recording.landed_grace_s,
        )
    except FileNotFoundError:
        return _fail(f"Recording not found: {source}")
    except AcmiParseError as e:
        return _fail(f"Failed to parse {source}: {e}")

    if not results:
        print("No recovery attempts found")
        return 0
    for result in results:
        print(
            f"{result.pilot_name}: {result.grading.summary()} "
            f"(DCS LSO: {result.dcs_grading or '-'}, {len(result.datums)} datums)"
        )

    if args.out_dir is not None:
        # carrier-quals.zip.acmi -> <out-dir>/carrier-quals.lso
        target = Path(args.out_dir) / f"{source.name.split('.')[0]}.lso"
        written = ResultStorage.save(
            results, target, fmt=recording.results_format, compression=recording.results_compression
        )
        print(f"Results written to {written}")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    config = LsoConfig(args.config)
    try:
        config.load(validate=args.validate_config)
    except FileNotFoundError:
        return _fail(f"Config file not found: {args.config}")
    except (ValidationError, OmegaConfBaseException) as e:
        return _fail(f"Config validation failed:\n{e}")

    _apply_overrides(config, args)
    _configure_logging(config, args)

    if args.command == "run":
        return asyncio.run(_run(config))
    return _file(config, args)


if __name__ == "__main__":
    sys.exit(main())
