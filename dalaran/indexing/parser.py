"""
Dalaran: History Parser

Turns raw shell history lines into command strings.

Two line shapes are understood:
    : 1700000000:0;git status     zsh extended history (EXTENDED_HISTORY)
    git status                    plain history

Anything else that is not blank is kept verbatim as the command. The
parser never fails; the worst case is an odd line becoming a literal
command. Multi-line commands (embedded newlines) come out as several
separate commands.
"""
import re
from typing import Iterable, Iterator, Optional

from ..core.types import EntryFormat, HistoryEntry

TIMESTAMPED_LINE = re.compile(r"^:\s*(\d+)\s*:\s*(\d+)\s*;(.*)$", re.DOTALL)


def parse_entry(line: str) -> Optional[HistoryEntry]:
    """Parse one line into a HistoryEntry. Blank lines give None."""
    raw = line.rstrip("\r\n")
    if not raw.strip():
        return None

    match = TIMESTAMPED_LINE.match(raw)
    if match:
        return HistoryEntry(
            raw=raw,
            command=match.group(3),
            format=EntryFormat.TIMESTAMPED,
            timestamp=int(match.group(1)),
            duration=int(match.group(2)),
        )
    return HistoryEntry(raw=raw, command=raw)


def parse_line(line: str) -> Optional[str]:
    """Parse one line into its command text, or None for blank lines."""
    entry = parse_entry(line)
    if entry is None:
        return None
    return entry.command


def parse_history(lines: Iterable[str]) -> Iterator[str]:
    """Yield the command of every non-blank line in a history log."""
    for line in lines:
        command = parse_line(line)
        # A timestamped line with nothing after ';' is a blank command too
        if command is not None and command.strip():
            yield command
