"""
Dalaran: Archive Store

Each run snapshots the live history log into archives/<archive_id>/:

    archives/20240101_120000/
        .zsh_history        verbatim copy of the log at capture time
        spellbook.txt       that copy's own top-N ranked commands

Archives are write-once. Nothing here modifies or deletes an existing
archive, and there is no pruning.

Archive ids come from the clock at one-second resolution. When a second
run lands in the same second, the id gets a monotonic suffix
(20240101_120000-1, -2, ...) instead of overwriting the earlier archive.
"""
import re
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from ..core.effects import Effects, count_lines, read_source
from ..core.types import Archive
from ..indexing.ranker import extract_top_commands, read_ranked_list, validate_max_count
from ..utils import logging as lib_log
from .silence import SilenceStore

ARCHIVE_ID_FORMAT = "%Y%m%d_%H%M%S"
ARCHIVE_SPELLBOOK_NAME = "spellbook.txt"
ARCHIVE_ID_PATTERN = re.compile(r"^(?P<stamp>\d{8}_\d{6})(?:-(?P<seq>\d+))?$")


class ArchiveStore:
    """Creates and enumerates archives under one directory."""

    def __init__(
        self,
        archives_dir: Path,
        effects: Effects,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.archives_dir = Path(archives_dir)
        self.effects = effects
        self.clock = clock

    # ─── Create ───────────────────────────────────────────────────────────

    def next_archive_id(self) -> str:
        """Timestamp id for a new archive, suffixed if that second is taken."""
        stamp = self.clock().strftime(ARCHIVE_ID_FORMAT)
        taken = {p.name for p in self.effects.list_dir(self.archives_dir)}
        if stamp not in taken:
            return stamp
        seq = 1
        while f"{stamp}-{seq}" in taken:
            seq += 1
        return f"{stamp}-{seq}"

    def create_archive(
        self,
        source_log: Path,
        max_count: int,
        silence: Optional[SilenceStore] = None,
    ) -> Archive:
        """
        Snapshot source_log and extract its ranked list.

        Args:
            source_log: Live history log to capture
            max_count: Top-N bound for the archive's ranked list
            silence: Optional silence list applied to the ranked list

        Returns:
            The new Archive

        Raises:
            SourceNotFound: source_log is missing or unreadable
            StorageError: the archive directory or its files can't be written
        """
        validate_max_count(max_count)
        source_log = Path(source_log)
        source_text = read_source(self.effects, source_log)

        archive_id = self.next_archive_id()
        archive_dir = self.archives_dir / archive_id
        history_copy = archive_dir / self._copy_name(source_log)
        spellbook_file = archive_dir / ARCHIVE_SPELLBOOK_NAME

        self.effects.make_dirs(archive_dir)
        self.effects.copy_file(source_log, history_copy)
        line_count = count_lines(source_text)
        lib_log.print_step(f"Created archive: {archive_id} ({line_count} commands)")

        # Extraction reads the copy, not the live log, so the archive is self-consistent
        commands, removed = extract_top_commands(
            history_copy, spellbook_file, max_count, self.effects, silence=silence
        )

        return Archive(
            archive_id=archive_id,
            path=archive_dir,
            history_copy=history_copy,
            spellbook_file=spellbook_file,
            commands=commands,
            source_line_count=line_count,
            silenced_count=removed,
        )

    @staticmethod
    def _copy_name(source_log: Path) -> str:
        name = source_log.name or "history"
        if name == ARCHIVE_SPELLBOOK_NAME:
            name += ".history"
        return name

    # ─── Read ─────────────────────────────────────────────────────────────

    def list_archives(self) -> List[Archive]:
        """
        Every archive directory that holds a spellbook.txt, oldest first.
        Stray files at the archives root are ignored.
        """
        archives = []
        for child in self.effects.list_dir(self.archives_dir):
            if not self.effects.is_dir(child):
                continue
            spellbook_file = child / ARCHIVE_SPELLBOOK_NAME
            if not self.effects.exists(spellbook_file):
                continue
            history_copy = next(
                (p for p in self.effects.list_dir(child)
                 if p.name != ARCHIVE_SPELLBOOK_NAME and not self.effects.is_dir(p)),
                None,
            )
            archives.append(Archive(
                archive_id=child.name,
                path=child,
                history_copy=history_copy,
                spellbook_file=spellbook_file,
                commands=read_ranked_list(self.effects.read_text(spellbook_file)),
            ))
        archives.sort(key=lambda a: _archive_sort_key(a.archive_id))
        return archives


def _archive_sort_key(archive_id: str):
    """Order by timestamp, then suffix; ids that don't look like timestamps sort by name."""
    match = ARCHIVE_ID_PATTERN.match(archive_id)
    if not match:
        return (archive_id, 0)
    return (match.group("stamp"), int(match.group("seq") or 0))
