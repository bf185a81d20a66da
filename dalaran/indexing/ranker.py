"""
Dalaran: Frequency Ranker

Counts commands by exact string equality and ranks them:
count descending, ties broken by ascending command text.

The same ranking is used twice: once per archive (over raw history) and
once for the spellbook (over the concatenated per-archive lists).
"""
from collections import Counter
from pathlib import Path
from typing import Iterable, List, Tuple

from ..core.effects import Effects, read_source, split_lines
from ..core.errors import ConfigError
from ..core.types import FrequencyRecord
from ..utils import logging as lib_log
from .parser import parse_history


def validate_max_count(max_count) -> int:
    """Return max_count if it is a positive integer, else raise ConfigError."""
    if isinstance(max_count, bool) or not isinstance(max_count, int) or max_count <= 0:
        raise ConfigError.invalid_max_count(max_count)
    return max_count


def count_commands(commands: Iterable[str]) -> List[FrequencyRecord]:
    """Count every distinct command, ranked. Not truncated."""
    counts = Counter(commands)
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [FrequencyRecord(command=command, count=count) for command, count in ranked]


def rank_commands(commands: Iterable[str], max_count: int) -> List[str]:
    """
    Rank commands by frequency and keep the first max_count.

    Args:
        commands: Command strings, repeats included
        max_count: Upper bound on the result length (positive integer)

    Returns:
        Ordered command list; counts are dropped after this point
    """
    validate_max_count(max_count)
    return [record.command for record in count_commands(commands)[:max_count]]


def format_ranked_list(commands: List[str]) -> str:
    """Serialize a ranked list: one command per line, newline-terminated."""
    if not commands:
        return ""
    return "\n".join(commands) + "\n"


def read_ranked_list(text: str) -> List[str]:
    """Inverse of format_ranked_list. Blank lines are dropped."""
    return [line for line in split_lines(text) if line.strip()]


def extract_top_commands(
    source: Path,
    destination: Path,
    max_count: int,
    effects: Effects,
    silence=None,
) -> Tuple[List[str], int]:
    """
    Extract the top commands of a history log and write them to destination.

    Args:
        source: History log to read
        destination: Where the ranked list is written (atomically)
        max_count: How many commands to keep before silencing
        effects: Filesystem backend
        silence: Optional SilenceStore applied after ranking

    Returns:
        (ranked commands as written, number removed by the silence list)

    Raises:
        SourceNotFound: source is missing or unreadable
        ConfigError: max_count is not a positive integer
    """
    validate_max_count(max_count)
    text = read_source(effects, source)
    ranked = rank_commands(parse_history(split_lines(text)), max_count)

    removed = 0
    if silence is not None:
        ranked, removed = silence.apply(ranked)
        if removed:
            lib_log.print_step(f"Silenced {removed} spell(s) from spellbook")

    effects.write_text(destination, format_ranked_list(ranked))
    lib_log.print_step(f"Extracted {len(ranked)} top spells to: {Path(destination).name}")
    return ranked, removed
