"""
Dalaran: Pipeline API

One run turns the live shell history into a working history seeded with
your most-used commands:

    1. Archive      copy the live log into archives/<id>/ and rank it
    2. Spellbook    re-rank every archive's list into spellbook.txt
    3. Library      synthesize zsh history lines for the spellbook
    4. Working      library_history ++ live log -> active_history

Usage:

    from dalaran.core.pipeline import Dalaran
    from dalaran.utils.config import DalaranConfig

    dalaran = Dalaran(DalaranConfig.from_env())
    summary = dalaran.run()

    dalaran.show_top(20)
    dalaran.silence("ls,pwd")

Dry-run swaps the Effects backend and nothing else: every stage runs the
same code, reads its predecessors' pending output from memory, and
reports what it would have written.
"""
from datetime import datetime
from typing import Callable, List, Optional

from .effects import DryRunEffects, Effects, RealEffects, read_source
from .errors import ConfigError, CorpusNotFound, SourceNotFound
from .types import Notice, RunSummary, SilenceResult
from ..history.composer import compose
from ..history.synthetic import create_synthetic_history
from ..indexing.ranker import read_ranked_list
from ..storage.archive_store import ArchiveStore
from ..storage.silence import SilenceStore, parse_silence_argument
from ..storage.spellbook import update_spellbook
from ..utils import logging as lib_log
from ..utils.config import DalaranConfig


class Dalaran:
    """
    Dalaran: shell history archival and spellbook builder.

    Holds one configuration and one Effects backend for its lifetime.
    Every stage propagates its errors; nothing after a failed stage runs.
    """

    def __init__(
        self,
        config: Optional[DalaranConfig] = None,
        effects: Optional[Effects] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.config = config or DalaranConfig()
        self.warnings = self.config.validate()

        if effects is None:
            effects = (
                DryRunEffects(on_operation=lib_log.print_planned)
                if self.config.dry_run else RealEffects()
            )
        self.effects = effects
        self.clock = clock or datetime.now

        self.archives = ArchiveStore(self.config.archives_dir, self.effects, clock=self.clock)
        self.silenced = SilenceStore(self.config.silence_file, self.effects)

    @property
    def dry_run(self) -> bool:
        return self.effects.dry_run

    # ─── Full Run ─────────────────────────────────────────────────────────

    def run(self) -> RunSummary:
        """
        Archive, rebuild the spellbook, and write the working history.

        Returns:
            RunSummary with the counts from every stage

        Raises:
            SourceNotFound: the history file is missing or unreadable (outside dry-run)
            StorageError: an artifact could not be written
        """
        config = self.config
        summary = RunSummary(dry_run=self.dry_run)

        lib_log.print_banner(self.dry_run)
        for warning in self.warnings:
            lib_log.print_warning(warning)

        # Nothing is created until the live log is known to be readable
        try:
            read_source(self.effects, config.history_file)
        except SourceNotFound as exc:
            if not self.dry_run:
                raise
            summary.notices.append(Notice.SOURCE_MISSING_DRY_RUN)
            lib_log.print_step(str(exc))
            lib_log.print_summary(summary)
            return summary

        self.effects.make_dirs(config.dalaran_dir)
        self.effects.make_dirs(config.archives_dir)

        archive = self.archives.create_archive(
            config.history_file, config.max_count, silence=self.silenced
        )
        spells, archives = update_spellbook(
            config.archives_dir,
            config.spellbook_file,
            config.max_count,
            self.effects,
            silence=self.silenced,
        )
        library = create_synthetic_history(
            config.spellbook_file, config.library_history_file, self.effects, now=self.clock()
        )
        total = compose(
            config.library_history_file,
            config.history_file,
            config.working_history_file,
            self.effects,
        )

        summary.archive = archive
        summary.archives_found = len(archives)
        summary.silenced_count = archive.silenced_count
        summary.corpus_size = len(spells)
        summary.synthetic_size = len(library)
        summary.working_history_size = total
        summary.working_history_file = config.working_history_file
        summary.operations = list(self.effects.operations)
        if not spells:
            summary.notices.append(Notice.EMPTY_CORPUS)

        lib_log.print_summary(summary)
        return summary

    # ─── Queries ──────────────────────────────────────────────────────────

    def show_top(self, count) -> List[str]:
        """
        Print and return the first `count` spellbook entries.

        Raises:
            ConfigError: count is not a positive integer
            CorpusNotFound: no spellbook has been built yet
        """
        count = _parse_count(count)
        spellbook_file = self.config.spellbook_file
        if not self.effects.exists(spellbook_file):
            raise CorpusNotFound.at(spellbook_file)

        spells = read_ranked_list(read_source(self.effects, spellbook_file))[:count]
        lib_log.print_top_commands(spells, count)
        if not spells:
            lib_log.print_notice(Notice.EMPTY_CORPUS)
        return spells

    # ─── Silence ──────────────────────────────────────────────────────────

    def silence(self, argument: str) -> SilenceResult:
        """
        Add a comma-separated list of commands to the silence list.
        Applies from the next run on. Archives already written are left as they are;
        the spellbook is filtered again when it is rebuilt.
        """
        commands = parse_silence_argument(argument)
        result = self.silenced.add(commands)
        lib_log.print_silence_result(result.added, result.already_silenced, dry_run=self.dry_run)
        for notice in result.notices:
            lib_log.print_notice(notice)
        return result


def _parse_count(value) -> int:
    """Positive integer from an int or a decimal string ('10', ' 10 ')."""
    if isinstance(value, bool):
        raise ConfigError.invalid_top(value)
    if isinstance(value, int):
        count = value
    else:
        text = str(value).strip()
        if not (text.isascii() and text.isdigit()):
            raise ConfigError.invalid_top(value)
        count = int(text)
    if count <= 0:
        raise ConfigError.invalid_top(value)
    return count
