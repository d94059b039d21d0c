"""
CLI entry point for boardgen (board configuration compiler).

Usage:
    python3 -m tools.boardgen boards/corne.yaml -o gen/board_init.rs
"""

import argparse
import os
import sys

from .diagnostics import format_error
from .errors import ConfigError
from .generator import generate
from .log import setup_logger
from .schema import parse_board_yaml


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="keyboard board configuration compiler"
    )
    parser.add_argument("yaml", help="Input board .yaml file")
    parser.add_argument("-o", "--output", help="Output .rs file (default: stdout)")
    parser.add_argument("--log-level", default="WARNING",
                        help="Log level (DEBUG, INFO, WARNING, ERROR)")
    args = parser.parse_args(argv)

    setup_logger("tools.boardgen", args.log_level)

    with open(args.yaml) as f:
        yaml_str = f.read()

    source_path = os.path.basename(args.yaml)
    try:
        unit = generate(parse_board_yaml(yaml_str), source_path=source_path)
    except ConfigError as e:
        print(f"{args.yaml}: {format_error(e)}", file=sys.stderr)
        return 1

    code = unit.render()
    if args.output:
        os.makedirs(os.path.dirname(args.output) or ".", exist_ok=True)
        with open(args.output, "w") as f:
            f.write(code)
        print(f"  wrote {args.output}")
        print(f"\nGenerated {len(unit.bindings)} bindings for board '{unit.board_name}'")
    else:
        sys.stdout.write(code)
    return 0


if __name__ == "__main__":
    sys.exit(main())
