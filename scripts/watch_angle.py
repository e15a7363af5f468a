#!/usr/bin/env python3
"""Print the simulated rotary angle as it changes.

Stands in for a presentation layer: it owns one sink session and
renders ``angle`` as text on every update.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import time
from pathlib import Path

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyrotary import OverflowPolicy, SensorConfig, SinkStatus, build_pipeline  # noqa: E402
from pyrotary.exceptions import RotaryConfigError  # noqa: E402

_LOG = logging.getLogger("watch_angle")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--duration", type=float, default=5.0, help="Seconds to watch (0 = until Ctrl-C)")
    parser.add_argument("--interval", type=float, default=None, help="Override emission interval in seconds")
    parser.add_argument("--buffer-size", type=int, default=None, help="Override subscription buffer size")
    parser.add_argument(
        "--overflow",
        choices=[policy.value for policy in OverflowPolicy],
        default=None,
        help="Override buffer overflow policy",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


async def _watch(config: SensorConfig, duration: float) -> int:
    deadline = time.monotonic() + duration if duration > 0 else None
    async with build_pipeline(config) as sink:
        while deadline is None or time.monotonic() < deadline:
            remaining = 1.0 if deadline is None else max(deadline - time.monotonic(), 0.0)
            updated = await sink.wait_for_update(min(remaining, 1.0))
            if sink.state.is_terminal:
                break
            if not updated:
                continue
            print(sink.angle, flush=True)

    if sink.status == SinkStatus.FAILED:
        _LOG.error("Sensor failed: %s", sink.state.error)
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    overrides: dict[str, object] = {}
    if args.interval is not None:
        overrides["interval"] = args.interval
    if args.buffer_size is not None:
        overrides["buffer_size"] = args.buffer_size
    if args.overflow is not None:
        overrides["overflow"] = args.overflow

    try:
        config = SensorConfig.from_env(**overrides)
    except RotaryConfigError as exc:
        _LOG.error("%s", exc)
        return 2

    try:
        return asyncio.run(_watch(config, args.duration))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
