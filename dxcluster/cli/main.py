# dxcluster/cli/main.py
from __future__ import annotations

from typing import Optional

from dxcluster.core.errors import ClusterError

from dxcluster.cli.args import parse_args
from dxcluster.cli.commands import cmd_listen, cmd_watch, configure_logging


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(verbose=args.verbose, log_file=args.log_file)

    try:
        if args.cmd == "listen":
            return cmd_listen(args)
        if args.cmd == "watch":
            return cmd_watch(args)
        return 2
    except ClusterError as e:
        print(f"ERROR: {e.message}")
        if e.hint:
            print(f"Hint: {e.hint}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
