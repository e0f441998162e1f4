# dxcluster/cli/args.py
from __future__ import annotations

import argparse
from pathlib import Path
from typing import Optional

from dxcluster.core.defaults import DEFAULTS


def port_number(value: str) -> int:
    try:
        port = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid port '{value}'") from None
    if not 0 < port < 65536:
        raise argparse.ArgumentTypeError(f"Port out of range: {port}")
    return port


def positive_float(value: str) -> float:
    try:
        f = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid number '{value}'") from None
    if f <= 0:
        raise argparse.ArgumentTypeError(f"Must be > 0: {value}")
    return f


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dxcluster", description="DX cluster spot listener")
    sub = parser.add_subparsers(dest="cmd", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--record", type=Path, default=None, help="Append spots as JSON lines to this file.")
    common.add_argument("--log-file", type=Path, default=None, help="Also write logs to this file.")
    common.add_argument("-v", "--verbose", action="count", default=0, help="-v info, -vv debug.")

    p_listen = sub.add_parser("listen", parents=[common], help="Listen to one cluster server.")
    p_listen.add_argument("host")
    p_listen.add_argument("port", type=port_number)
    p_listen.add_argument("callsign")
    p_listen.add_argument(
        "--connect-timeout",
        type=positive_float,
        default=DEFAULTS.connect_timeout_s,
        help=f"TCP connect deadline in seconds (default: {DEFAULTS.connect_timeout_s}).",
    )
    p_listen.add_argument(
        "--poll-interval",
        type=positive_float,
        default=DEFAULTS.poll_interval_s,
        help=f"Read tick in seconds; bounds stop latency (default: {DEFAULTS.poll_interval_s}).",
    )

    p_watch = sub.add_parser("watch", parents=[common], help="Listen to every server of a YAML config.")
    p_watch.add_argument("--config", type=Path, required=True, help="Cluster catalog (YAML).")

    return parser


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)
