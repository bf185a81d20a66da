"""
Dalaran: Spellbook (Corpus Combiner)

Rebuilds the cumulative ranked command list from every archive.

Each archive only keeps its own truncated top-N list, not raw counts.
The spellbook concatenates those lists and ranks again, so a command
appearing in k archives counts k times. A command that is always just
below an archive's cutoff never shows up here, even if it is used
constantly. That undercount is how the spellbook is defined; it is not
reconstructed from the raw history copies.

The silence list is applied again to the merged result, so a command
silenced after older archives were written still stays out.
"""
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from ..core.effects import Effects
from ..core.types import Archive
from ..indexing.ranker import format_ranked_list, rank_commands, validate_max_count
from ..utils import logging as lib_log
from .archive_store import ArchiveStore
from .silence import SilenceStore


def merge_ranked_lists(ranked_lists: Iterable[List[str]], max_count: int) -> List[str]:
    """Concatenate ranked lists (every appearance counts once) and re-rank."""
    validate_max_count(max_count)
    pooled: List[str] = []
    for ranked in ranked_lists:
        pooled.extend(ranked)
    return rank_commands(pooled, max_count)


def combine(
    archives_dir: Path,
    max_count: int,
    effects: Effects,
    silence: Optional[SilenceStore] = None,
    archives: Optional[List[Archive]] = None,
) -> List[str]:
    """
    Spellbook for every archive under archives_dir. No archives -> [].

    Args:
        archives_dir: Root holding one directory per archive
        max_count: Top-N bound for the merged list
        effects: Filesystem backend
        silence: Optional silence list applied to the merged list
        archives: Archives already listed from archives_dir, if the caller has them
    """
    if archives is None:
        archives = ArchiveStore(archives_dir, effects).list_archives()
    spells = merge_ranked_lists((a.commands for a in archives), max_count)
    if silence is not None:
        spells, removed = silence.apply(spells)
        if removed:
            lib_log.print_step(f"Silenced {removed} spell(s) from spellbook")
    return spells


def update_spellbook(
    archives_dir: Path,
    spellbook_file: Path,
    max_count: int,
    effects: Effects,
    silence: Optional[SilenceStore] = None,
) -> Tuple[List[str], List[Archive]]:
    """
    Rebuild spellbook_file from all archives under archives_dir.

    No archives is not an error: the spellbook is written empty.

    Returns:
        (spellbook commands, archives that contributed)
    """
    validate_max_count(max_count)
    archives = ArchiveStore(archives_dir, effects).list_archives()
    lib_log.print_step(f"Found {len(archives)} archive spellbook files")

    for archive in archives:
        lib_log.print_step(f"Added {archive.archive_id}: {len(archive.commands)} spells")

    spells = combine(archives_dir, max_count, effects, silence=silence, archives=archives)
    total = sum(len(archive.commands) for archive in archives)

    effects.write_text(spellbook_file, format_ranked_list(spells))
    lib_log.print_step(
        f"Updated spellbook with {len(spells)} unique spells "
        f"({total} total spells from {len(archives)} archives)"
    )
    return spells, archives
