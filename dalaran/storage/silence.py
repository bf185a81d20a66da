"""
Dalaran: Silence List

Commands the user never wants to see in the spellbook. Stored as plain
text, one command per line, at <dalaran_dir>/silenced.txt. Membership is
exact string equality. The file is only created the first time something
is silenced.
"""
from pathlib import Path
from typing import Iterable, List, Set, Tuple

from ..core.effects import Effects, split_lines
from ..core.errors import ConfigError
from ..core.types import SilenceResult
from ..indexing.ranker import format_ranked_list


def parse_silence_argument(argument: str) -> List[str]:
    """
    Split a --silence value on commas, trimming whitespace and dropping empties.

    Raises:
        ConfigError: nothing is left after trimming
    """
    commands = [part.strip() for part in (argument or "").split(",")]
    commands = [c for c in commands if c]
    if not commands:
        raise ConfigError.empty_silence()
    return commands


class SilenceStore:
    """Reads and extends the silence list through an Effects backend."""

    def __init__(self, path: Path, effects: Effects):
        self.path = Path(path)
        self.effects = effects

    def exists(self) -> bool:
        return self.effects.exists(self.path)

    def load(self) -> Set[str]:
        """Current silenced commands. Missing file -> empty set."""
        return set(self._load_ordered())

    def _load_ordered(self) -> List[str]:
        if not self.effects.exists(self.path):
            return []
        text = self.effects.read_text(self.path)
        return [line for line in split_lines(text) if line.strip()]

    # ─── Write ────────────────────────────────────────────────────────────

    def add(self, commands: Iterable[str]) -> SilenceResult:
        """
        Add commands to the silence list.

        Whitespace is trimmed and empty entries skipped. A command that is
        already present (in the file, or earlier in this same call) is
        reported as already silenced and not written twice.
        """
        existing = self._load_ordered()
        seen = set(existing)
        result = SilenceResult()

        for raw in commands:
            command = raw.strip()
            if not command:
                continue
            if command in seen:
                result.already_silenced.append(command)
                continue
            seen.add(command)
            result.added.append(command)

        if result.added:
            self.effects.make_dirs(self.path.parent)
            self.effects.write_text(self.path, format_ranked_list(existing + result.added))
        return result

    # ─── Filter ───────────────────────────────────────────────────────────

    def apply(self, ranked: List[str]) -> Tuple[List[str], int]:
        """
        Drop silenced commands from a ranked list, keeping survivor order.

        Returns:
            (filtered list, number of entries removed)
        """
        silenced = self.load()
        if not silenced:
            return list(ranked), 0
        kept = [command for command in ranked if command not in silenced]
        return kept, len(ranked) - len(kept)
