"""
Dalaran: Working History Composer

active_history = library_history ++ live history, verbatim.
No deduplication, no reordering. The output always has exactly as many
lines as its two inputs together.
"""
from pathlib import Path

from ..core.effects import Effects, count_lines, read_source
from ..utils import logging as lib_log


def join_logs(first: str, second: str) -> str:
    """Concatenate two logs without gluing a trailing partial line onto the next log."""
    if first and not first.endswith("\n") and second:
        first += "\n"
    return first + second


def compose(library_history: Path, live_history: Path, destination: Path, effects: Effects) -> int:
    """
    Overwrite destination with library_history followed by live_history.

    Returns:
        Line count of the working history

    Raises:
        SourceNotFound: either input is missing or unreadable
    """
    library_text = read_source(effects, library_history)
    live_text = read_source(effects, live_history)

    effects.write_text(destination, join_logs(library_text, live_text))
    total = count_lines(library_text) + count_lines(live_text)
    lib_log.print_step(
        f"Created working history: {Path(destination).name} with {total} total commands"
    )
    return total
