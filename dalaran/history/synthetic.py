"""
Dalaran: Library History

Turns the flat spellbook back into zsh extended-history lines so a shell
can load it. Entries are spread evenly over the past year, most-used
first, so the most-used spells carry the oldest timestamps and the live
session's own entries always come after them.

    : 1668000000:0;git status
    : 1668210240:0;ls -la
"""
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional

from ..core.effects import Effects, read_source, split_lines
from ..utils import logging as lib_log

YEAR_SECONDS = 365 * 24 * 60 * 60


def is_spell_line(line: str) -> bool:
    """Blank lines and '#' comments in a spellbook are not spells."""
    stripped = line.strip()
    return bool(stripped) and not stripped.startswith("#")


def format_entry(timestamp: int, command: str, duration: int = 0) -> str:
    return f": {timestamp}:{duration};{command}"


def synthesize(commands: Iterable[str], now: Optional[datetime] = None) -> List[str]:
    """
    Build timestamped history lines for a ranked command list.

    Args:
        commands: Spellbook entries, most-used first
        now: Reference time (defaults to the current time)

    Returns:
        One ': <ts>:0;<command>' line per spell, in rank order
    """
    spells = [c for c in commands if is_spell_line(c)]
    now = now or datetime.now()
    base = int(now.timestamp()) - YEAR_SECONDS
    increment = YEAR_SECONDS // len(spells) if spells else YEAR_SECONDS
    return [format_entry(base + i * increment, command) for i, command in enumerate(spells)]


def create_synthetic_history(
    spellbook_file: Path,
    destination: Path,
    effects: Effects,
    now: Optional[datetime] = None,
) -> List[str]:
    """Write the library history for spellbook_file. Returns the lines written."""
    spellbook_text = read_source(effects, spellbook_file)
    lines = synthesize(split_lines(spellbook_text), now=now)
    effects.write_text(destination, "".join(line + "\n" for line in lines))
    lib_log.print_step(
        f"Created zsh history format: {Path(destination).name} with {len(lines)} spells"
    )
    return lines
