"""
Dalaran: Configuration
Loads settings from environment variables / .env file.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from ..core.errors import ConfigError, ErrorCode
from ..indexing.ranker import validate_max_count

DEFAULT_HISTORY_FILE = "~/.zsh_history"
DEFAULT_DALARAN_DIR = "~/.dalaran"
DEFAULT_MAX_COUNT = 1000

SILENCE_FILE_NAME = "silenced.txt"
SPELLBOOK_FILE_NAME = "spellbook.txt"
LIBRARY_HISTORY_NAME = "library_history"
WORKING_HISTORY_NAME = "active_history"
ARCHIVES_DIR_NAME = "archives"

TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"", "0", "false", "no", "off"}


@dataclass
class DalaranConfig:
    """All configuration for one Dalaran run."""
    history_file: Path = field(default_factory=lambda: Path(DEFAULT_HISTORY_FILE).expanduser())
    dalaran_dir: Path = field(default_factory=lambda: Path(DEFAULT_DALARAN_DIR).expanduser())
    max_count: int = DEFAULT_MAX_COUNT             # Top-N bound for archives and spellbook
    dry_run: bool = False
    silence_file: Optional[Path] = None            # Defaults to <dalaran_dir>/silenced.txt

    def __post_init__(self):
        self.history_file = Path(self.history_file).expanduser()
        self.dalaran_dir = Path(self.dalaran_dir).expanduser()
        if self.silence_file is None:
            self.silence_file = self.dalaran_dir / SILENCE_FILE_NAME
        else:
            self.silence_file = Path(self.silence_file).expanduser()

    @classmethod
    def from_env(cls, env_path: str = ".env") -> "DalaranConfig":
        """Load configuration from environment variables."""
        # Try loading .env file if it exists
        env_file = Path(env_path)
        if env_file.exists():
            _load_dotenv(env_file)
        return cls(
            history_file=os.getenv("HISTFILE") or DEFAULT_HISTORY_FILE,
            dalaran_dir=os.getenv("DALARAN_DIR") or DEFAULT_DALARAN_DIR,
            max_count=_env_int("TOP_N_COMMANDS", DEFAULT_MAX_COUNT),
            dry_run=_env_bool("DRY_RUN", False),
            silence_file=os.getenv("DALARAN_SILENCE_FILE") or None,
        )

    def validate(self) -> List[str]:
        """
        Raise ConfigError for settings no run can proceed with.
        Return list of warnings (non-fatal). Empty if fully configured.
        """
        validate_max_count(self.max_count)
        warnings = []
        if self.history_file.is_file() and self.history_file.stat().st_size == 0:
            warnings.append(f"History file is empty: {self.history_file}")
        if self.dalaran_dir.exists() and not self.dalaran_dir.is_dir():
            warnings.append(f"DALARAN_DIR is not a directory: {self.dalaran_dir}")
        return warnings

    # ─── Layout ───────────────────────────────────────────────────────────

    @property
    def archives_dir(self) -> Path:
        return self.dalaran_dir / ARCHIVES_DIR_NAME

    @property
    def spellbook_file(self) -> Path:
        return self.dalaran_dir / SPELLBOOK_FILE_NAME

    @property
    def library_history_file(self) -> Path:
        """Synthetic zsh history built from the spellbook."""
        return self.dalaran_dir / LIBRARY_HISTORY_NAME

    @property
    def working_history_file(self) -> Path:
        """Library history followed by the live history; what HISTFILE points at."""
        return self.dalaran_dir / WORKING_HISTORY_NAME


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError as e:
        raise ConfigError.invalid_env(name, raw) from e


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in TRUE_VALUES:
        return True
    if value in FALSE_VALUES:
        return False
    raise ConfigError.invalid_env(name, raw)


def _load_dotenv(path: Path):
    """Minimal .env loader. Values already set in the environment win."""
    try:
        with open(path, encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, _, value = line.partition("=")
                key = key.strip()
                if key.startswith("export "):
                    key = key[len("export "):].strip()
                value = value.strip().strip("'\"")
                if key and not os.environ.get(key):
                    os.environ[key] = value
    except OSError as e:
        raise ConfigError(ErrorCode.CONFIG_INVALID_ENV, f"Cannot read env file {path}: {e}", cause=e) from e
