"""
Dalaran: Core Data Types
Shared dataclasses and enums used by every stage of the pipeline.
"""
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional


# ─── Enums ───────────────────────────────────────────────────────────────────

class EntryFormat(Enum):
    TIMESTAMPED = "timestamped"   # ": 1700000000:0;git status"
    PLAIN = "plain"               # "git status"


class Notice(Enum):
    """Informational outcomes. Reported to the user, never raised."""
    EMPTY_CORPUS = "empty_corpus"
    ALREADY_SILENCED = "already_silenced"
    SOURCE_MISSING_DRY_RUN = "source_missing_dry_run"


# ─── History ─────────────────────────────────────────────────────────────────

@dataclass
class HistoryEntry:
    """A single non-blank line of a shell history log."""
    raw: str
    command: str
    format: EntryFormat = EntryFormat.PLAIN
    timestamp: Optional[int] = None
    duration: Optional[int] = None

    @property
    def is_timestamped(self) -> bool:
        return self.format is EntryFormat.TIMESTAMPED


@dataclass(frozen=True)
class FrequencyRecord:
    """A command and how often it appeared. Only lives inside one ranking pass."""
    command: str
    count: int


# ─── Persisted Artifacts ─────────────────────────────────────────────────────

@dataclass
class Archive:
    """
    An immutable snapshot of the history log.
    Written once under archives/<archive_id>/ and never modified afterwards.
    """
    archive_id: str
    path: Path
    history_copy: Optional[Path]
    spellbook_file: Path
    commands: List[str] = field(default_factory=list)
    source_line_count: int = 0
    silenced_count: int = 0


@dataclass
class SilenceResult:
    """Outcome of adding commands to the silence list."""
    added: List[str] = field(default_factory=list)
    already_silenced: List[str] = field(default_factory=list)

    @property
    def notices(self) -> List[Notice]:
        return [Notice.ALREADY_SILENCED] if self.already_silenced else []


@dataclass
class RunSummary:
    """End-of-run counts shown to the user."""
    dry_run: bool = False
    archive: Optional[Archive] = None
    archives_found: int = 0
    silenced_count: int = 0
    corpus_size: int = 0
    synthetic_size: int = 0
    working_history_size: int = 0
    working_history_file: Optional[Path] = None
    operations: List[str] = field(default_factory=list)
    notices: List[Notice] = field(default_factory=list)
