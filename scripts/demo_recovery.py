"""LSO recovery demo.

Flies a scripted approach against the simulated telemetry source, records
and grades it live, then re-grades the written ACMI file and compares.

Run:
    python scripts/demo_recovery.py
    python scripts/demo_recovery.py --bolter --out-dir data/recordings
    python scripts/demo_recovery.py --heading 270 --plane F-14B
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import tempfile
import time
from pathlib import Path

from lso.core.types import GradingKind
from lso.recording.config import RecordingConfig
from lso.recording.extract import extract_recoveries
from lso.recording.recorder import record_recovery
from lso.tasks.params import TaskParams
from lso.tasks.shutdown import Shutdown
from lso.telemetry.scenario import ApproachScenario, populate
from lso.telemetry.simulated import SimulatedTelemetrySource
from lso.tracking.track import TrackResult
from lso.utils.logging import setup_logging

DIVIDER = "=" * 70

CARRIER = "CVN-71 Theodore Roosevelt"
PLANE = "Hornet 1-1"


def print_result(result: TrackResult) -> None:
    print(f"  Pilot:        {result.pilot_name}")
    print(f"  Grading:      {result.grading.summary()}")
    if result.grading.kind is GradingKind.RECOVERED:
        print(f"  Estimated:    #{result.grading.cable_estimated or result.grading.cable}")
    print(f"  DCS LSO:      {result.dcs_grading or '-'}")
    print(f"  Datums:       {len(result.datums)}")
    if result.datums:
        first, last = result.datums[0], result.datums[-1]
        print(f"  First datum:  x={first.x:8.1f} m  y={first.y:6.1f} m  alt={first.alt:6.1f} m")
        print(f"  Last datum:   x={last.x:8.1f} m  y={last.y:6.1f} m  alt={last.alt:6.1f} m")


# ---------------------------------------------------------------------------
# Stages
# ---------------------------------------------------------------------------


async def stage_record(scenario: ApproachScenario, out_dir: Path, dcs_grading: str | None) -> TrackResult:
    print(f"\n{DIVIDER}")
    print(f"STAGE 1: LIVE RECORDING  ({scenario.plane_type} on {scenario.carrier_type})")
    print(DIVIDER)

    source = SimulatedTelemetrySource()
    samples = populate(source, scenario, carrier_name=CARRIER, plane_name=PLANE, dcs_grading=dcs_grading)
    print(f"  Samples:      {len(samples.plane)} (touchdown at #{samples.touchdown})")

    params = TaskParams(
        source=source,
        shutdown=Shutdown(),
        carrier_name=CARRIER,
        plane_name=PLANE,
        pilot_name="Maverick",
        carrier_info=scenario.carrier_info,
        plane_info=scenario.plane_info,
        recording=RecordingConfig(interval_s=0.005, landed_grace_s=0.5, out_dir=str(out_dir)),
    )
    t0 = time.perf_counter()
    result = await record_recovery(params)
    wall = time.perf_counter() - t0
    if result is None:
        print("  Recording abandoned")
        sys.exit(1)

    print_result(result)
    print(f"  Wall-clock:   {wall:.2f}s")
    return result


def stage_replay(out_dir: Path, live: TrackResult) -> None:
    print(f"\n{DIVIDER}")
    print("STAGE 2: REPLAY FROM ACMI")
    print(DIVIDER)

    for path in sorted(out_dir.glob("*.acmi")):
        print(f"  File:         {path} ({path.stat().st_size / 1024:.1f} KB)")
        for result in extract_recoveries(path):
            print_result(result)
            match = "yes" if result.grading == live.grading else "NO"
            print(f"  Same grading as live: {match}")


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def main():
    parser = argparse.ArgumentParser(description="LSO Recovery Demo")
    parser.add_argument("--carrier", default="CVN_71", help="Carrier unit type")
    parser.add_argument("--plane", default="FA-18C_hornet", help="Airplane unit type")
    parser.add_argument("--heading", type=float, default=0.0, help="Carrier heading (degrees)")
    parser.add_argument("--distance", type=float, default=2219.0, help="Start distance (meters)")
    parser.add_argument("--bolter", action="store_true", help="Fly a bolter instead of a trap")
    parser.add_argument("--dcs-grading", default="LSO: GRADE:OK  : WIRE# 3", help="Built-in LSO comment")
    parser.add_argument("--out-dir", default=None, help="Keep the recording here")
    parser.add_argument("--verbose", action="store_true", help="Show debug logging")
    args = parser.parse_args()

    setup_logging("DEBUG" if args.verbose else "WARNING")

    scenario = ApproachScenario(
        carrier_type=args.carrier,
        plane_type=args.plane,
        carrier_heading=args.heading,
        start_distance_m=args.distance,
        bolter=args.bolter,
    )

    print(DIVIDER)
    print("LSO - Carrier Recovery Demo")
    print(DIVIDER)
    print(f"  Carrier:     {args.carrier} heading {args.heading:.0f}")
    print(f"  Plane:       {args.plane}")
    print(f"  Start:       {args.distance:.0f} m")
    print(f"  Outcome:     {'bolter' if args.bolter else 'trap'}")

    dcs_grading = None if args.bolter else args.dcs_grading
    if args.out_dir is not None:
        out_dir = Path(args.out_dir)
        live = asyncio.run(stage_record(scenario, out_dir, dcs_grading))
        stage_replay(out_dir, live)
    else:
        with tempfile.TemporaryDirectory() as tmp:
            live = asyncio.run(stage_record(scenario, Path(tmp), dcs_grading))
            stage_replay(Path(tmp), live)

    print(f"\n{DIVIDER}")
    print("DEMO COMPLETE")
    print(DIVIDER)


if __name__ == "__main__":
    main()
