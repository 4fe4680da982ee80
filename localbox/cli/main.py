"""Command line entry point for the ``localbox`` console script.

Each subcommand lives in its own module exposing ``add_parser``, which
registers the subcommand and sets ``func`` to its handler.
"""

import argparse
from collections.abc import Sequence

from . import classify, server

SUBCOMMANDS = [
    server,
    classify,
]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="localbox",
        description="Self hosted file storage that sorts uploads into categories",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    for module in SUBCOMMANDS:
        module.add_parser(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if getattr(args, "func", None) is None:
        parser.error("a command is required: serve or classify")
    args.func(args)


if __name__ == "__main__":
    main()
