#!/usr/bin/env python3
"""
Dalaran: CLI

Builds and maintains a spellbook of your most-used zsh commands over time,
and a working history file that puts them behind your live history.

Usage:
    python dalaran_cli.py                    # Archive, rebuild spellbook, write working history
    python dalaran_cli.py --top=20           # Show the top 20 spells
    python dalaran_cli.py --silence=ls,pwd   # Never put these in the spellbook again
    python dalaran_cli.py --dry-run          # Show what would be done
    DRY_RUN=true python dalaran_cli.py       # Same, from the environment
"""
import argparse
import os
import sys

SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, SCRIPT_DIR)

from dalaran.__version__ import __version__
from dalaran.core.errors import DalaranError
from dalaran.core.pipeline import Dalaran
from dalaran.utils import logging as lib_log
from dalaran.utils.config import DEFAULT_MAX_COUNT, DalaranConfig

DEFAULT_TOP = "10"

EPILOG = f"""\
environment variables:
  DRY_RUN=true          Enable dry run mode
  TOP_N_COMMANDS=N      Number of top spells to keep (default: {DEFAULT_MAX_COUNT})
  HISTFILE=path         Path to zsh history file (default: ~/.zsh_history)
  DALARAN_DIR=path      Where archives and the spellbook live (default: ~/.dalaran)

To use the working history afterwards:
  export HISTFILE="$DALARAN_DIR/active_history"
  fc -R
"""


class DalaranArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that reports bad options and exits 1 instead of 2."""

    def error(self, message):
        if message.startswith("unrecognized arguments:"):
            message = "Unknown option: " + message.partition(":")[2].strip()
        lib_log.print_error(message)
        self.print_usage(sys.stderr)
        sys.exit(1)


def build_parser() -> argparse.ArgumentParser:
    parser = DalaranArgumentParser(
        prog="dalaran",
        allow_abbrev=False,
        description="Builds and maintains a collection of the most-used commands over time.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    action = parser.add_mutually_exclusive_group()
    action.add_argument(
        "--top", metavar="N", nargs="?", const=DEFAULT_TOP,
        help=f"Show the top N most used spells (default: {DEFAULT_TOP})",
    )
    action.add_argument(
        "--silence", metavar="LIST",
        help="Comma-separated spells to keep out of the spellbook",
    )
    parser.add_argument(
        "--dry-run", action="store_true",
        help="Show what would be done without making changes",
    )
    parser.add_argument(
        "--env-file", default=".env", metavar="PATH",
        help="Optional .env file to load settings from (default: .env)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        # --help / --version exit 0, bad options exit 1
        return e.code if isinstance(e.code, int) else 1

    try:
        config = DalaranConfig.from_env(args.env_file)
        if args.dry_run:
            config.dry_run = True
        dalaran = Dalaran(config)

        if args.silence is not None:
            dalaran.silence(args.silence)
        elif args.top is not None:
            dalaran.show_top(args.top)
        else:
            dalaran.run()
    except DalaranError as e:
        lib_log.print_error(str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
