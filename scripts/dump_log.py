#!/usr/bin/env python3
"""Inspect a WPILib DataLog file through the pynt4 topic store.

Loads the file exactly like ``Nt4LogClient.load_log_file`` does and prints
the topic list, the time range and optionally the value of one topic at a
given time.

Usage
-----
::

    python scripts/dump_log.py robot.wpilog
    python scripts/dump_log.py robot.wpilog --topic /RealOutputs/Drive/pose --at 1500000
    python scripts/dump_log.py robot.wpilog --json

Options::

    --topic NAME      Print the value of NAME (at --at, default: latest)
    --at MICROS       Replay cursor in microseconds (0 = latest)
    --json            Output as machine-readable JSON
    -v, --verbose     Enable DEBUG logging
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pynt4 import DataLogError, Nt4LogClient  # noqa: E402


def _jsonable(value: Any) -> Any:
    if isinstance(value, bytes):
        return value.hex()
    return value


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Inspect a .wpilog file")
    parser.add_argument("path", type=Path, help="DataLog file to load")
    parser.add_argument("--topic", help="Topic whose value should be printed")
    parser.add_argument("--at", type=int, default=0, help="Replay cursor in microseconds (0 = latest)")
    parser.add_argument("--json", action="store_true", help="Output JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable DEBUG logging")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    client = Nt4LogClient()
    try:
        count = client.load_log_file(args.path)
    except (DataLogError, OSError) as exc:
        print(f"Failed to load {args.path}: {exc}", file=sys.stderr)
        return 1

    client.set_replay_cursor(args.at)
    report: dict[str, Any] = {
        "file": str(args.path),
        "topics": count,
        "start": client.get_log_start_time(),
        "end": client.get_last_timestamp(),
        "types": {info.name: info.type for info in client.get_topic_info()},
    }
    if args.topic:
        report["value"] = _jsonable(client.get_value(args.topic))

    if args.json:
        print(json.dumps(report, indent=2, default=str))
        return 0

    print(f"{report['file']}: {count} topics, {report['start']} .. {report['end']} us")
    for name, type_str in report["types"].items():
        print(f"  {name}  [{type_str}]")
    if args.topic:
        print(f"\n{args.topic} @ {args.at or 'latest'}: {report['value']!r}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
