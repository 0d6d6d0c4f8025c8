from __future__ import annotations

import argparse
import asyncio
import os

from biscuit_sim.config import Config
from biscuit_sim.line import BiscuitLine
from biscuit_sim.log import configure_logging


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--config", type=str, default="example_config.yaml")
    ap.add_argument("--revolutions", type=int, default=6, help="Active pulse cycles before the stop request.")
    ap.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Override both timing intervals (seconds). Use 0 for an instant run.",
    )
    ap.add_argument(
        "--no-drain",
        action="store_true",
        help="Pause after the last revolution instead of draining the belt.",
    )
    ap.add_argument("--log-level", type=str, default=None)
    ap.add_argument(
        "--viz",
        type=str,
        default="none",
        choices=["none", "mpl"],
        help="Replay the recorded run with matplotlib afterwards.",
    )
    ap.add_argument("--interval-ms", type=int, default=400)
    args = ap.parse_args()

    cfg = Config.from_yaml(args.config) if os.path.exists(args.config) else Config()
    if args.interval is not None:
        cfg.timing.pulse_interval = args.interval
        cfg.timing.settle_interval = args.interval
    configure_logging(cfg.logging, level=args.log_level)

    line = BiscuitLine(cfg)
    snap = asyncio.run(line.run(args.revolutions, drain=not args.no_drain))

    print("\n=== DONE ===")
    print(f"state={snap.state} revolutions={snap.revolution} ticks={snap.tick}")
    print(f"on conveyor: {snap.slots}")
    print(f"ready biscuits={len(snap.ready)}: {snap.ready[:20]}")
    if snap.alarms:
        print("\n".join(snap.alarms))

    if args.viz == "mpl":
        # Import lazily so headless runs don't need matplotlib.
        from biscuit_sim.viz import run_visualization

        run_visualization(line.frames, interval_ms=args.interval_ms, mark=cfg.payload.stamp)


if __name__ == "__main__":
    main()
