"""
Dalaran: Filesystem Effects

Defines everything the pipeline is allowed to do to the filesystem.
Uses structural typing (Protocol); any object with these methods works.

Two backends:
- RealEffects: touches disk. Every write lands in a temp file next to the
  destination and is moved into place with os.replace, so readers never
  see a half-written artifact.
- DryRunEffects: never touches disk. Records each intended operation and
  keeps pending writes in memory so later stages can read what earlier
  stages "wrote" and report accurately.

The backend is picked once, at the top of a run. Stages never branch on
dry-run themselves.
"""
import os
import shutil
import tempfile
from pathlib import Path
from typing import Callable, Dict, List, Optional, Protocol, Set, Union, runtime_checkable

from .errors import SourceNotFound, StorageError

PathLike = Union[str, Path]

# History logs can hold arbitrary bytes (zsh metafies non-ASCII).
# surrogateescape round-trips them unchanged; newline="" keeps line endings verbatim.
ENCODING = "utf-8"
ERRORS = "surrogateescape"


def _key(path: PathLike) -> Path:
    return Path(os.path.abspath(os.fspath(path)))


@runtime_checkable
class Effects(Protocol):
    """Filesystem capability threaded through every stage."""

    dry_run: bool
    operations: List[str]

    def exists(self, path: PathLike) -> bool:
        ...

    def is_dir(self, path: PathLike) -> bool:
        ...

    def list_dir(self, path: PathLike) -> List[Path]:
        """Children of a directory, sorted by name. Missing directory -> []."""
        ...

    def read_text(self, path: PathLike) -> str:
        """Raises OSError (FileNotFoundError, PermissionError, ...) on failure."""
        ...

    def make_dirs(self, path: PathLike) -> None:
        ...

    def write_text(self, path: PathLike, text: str) -> None:
        """Atomically replace path with text."""
        ...

    def copy_file(self, source: PathLike, destination: PathLike) -> None:
        """Atomically copy source to destination, byte for byte."""
        ...


def read_source(effects: Effects, path: PathLike) -> str:
    """Read a required input, mapping OS failures to SourceNotFound."""
    try:
        return effects.read_text(path)
    except FileNotFoundError as exc:
        raise SourceNotFound.missing(path, cause=exc) from exc
    except OSError as exc:
        raise SourceNotFound.unreadable(path, cause=exc) from exc


def split_lines(text: str) -> List[str]:
    """Split on '\\n' only. A final unterminated line still counts as a line."""
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def count_lines(text: str) -> int:
    return len(split_lines(text))


# ─── Real Backend ────────────────────────────────────────────────────────────

class RealEffects:
    """Writes to disk with temp-file-then-replace semantics."""

    dry_run = False

    def __init__(self):
        self.operations: List[str] = []

    def exists(self, path: PathLike) -> bool:
        return Path(path).exists()

    def is_dir(self, path: PathLike) -> bool:
        return Path(path).is_dir()

    def list_dir(self, path: PathLike) -> List[Path]:
        directory = Path(path)
        if not directory.is_dir():
            return []
        return sorted(directory.iterdir(), key=lambda p: p.name)

    def read_text(self, path: PathLike) -> str:
        with open(path, "r", encoding=ENCODING, errors=ERRORS, newline="") as f:
            return f.read()

    def make_dirs(self, path: PathLike) -> None:
        directory = Path(path)
        if directory.is_dir():
            return
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError.mkdir_failed(directory, cause=exc) from exc
        self.operations.append(f"Created directory {directory}")

    def write_text(self, path: PathLike, text: str) -> None:
        destination = Path(path)
        tmp_path = self._temp_path(destination)
        try:
            with open(tmp_path, "w", encoding=ENCODING, errors=ERRORS, newline="") as tmp_file:
                tmp_file.write(text)
            os.replace(tmp_path, destination)
        except OSError as exc:
            self._discard(tmp_path)
            raise StorageError.write_failed(destination, cause=exc) from exc
        self.operations.append(f"Wrote {destination}")

    def copy_file(self, source: PathLike, destination: PathLike) -> None:
        source = Path(source)
        destination = Path(destination)
        if not source.is_file():
            raise SourceNotFound.missing(source)
        tmp_path = self._temp_path(destination)
        try:
            shutil.copyfile(source, tmp_path)
            os.replace(tmp_path, destination)
        except OSError as exc:
            self._discard(tmp_path)
            raise StorageError.copy_failed(source, destination, cause=exc) from exc
        self.operations.append(f"Copied {source} to {destination}")

    @staticmethod
    def _temp_path(destination: Path) -> Path:
        """Reserve a temp file in the destination's directory so os.replace stays atomic."""
        try:
            fd, name = tempfile.mkstemp(
                prefix=f".{destination.name}.", suffix=".tmp", dir=destination.parent
            )
        except OSError as exc:
            raise StorageError.write_failed(destination, cause=exc) from exc
        os.close(fd)
        return Path(name)

    @staticmethod
    def _discard(tmp_path: Path) -> None:
        # Original destination is untouched either way
        try:
            tmp_path.unlink(missing_ok=True)
        except OSError:
            pass


# ─── Dry-Run Backend ─────────────────────────────────────────────────────────

class DryRunEffects:
    """
    Report-only backend. Nothing on disk is created, modified, or removed.

    Pending writes are kept in memory so a later read (e.g. the spellbook
    combiner reading the archive just "created") sees them.
    """

    dry_run = True

    def __init__(self, on_operation: Optional[Callable[[str], None]] = None):
        self.operations: List[str] = []
        self._files: Dict[Path, str] = {}
        self._dirs: Set[Path] = set()
        self._on_operation = on_operation

    def _record(self, description: str) -> None:
        self.operations.append(description)
        if self._on_operation:
            self._on_operation(description)

    def exists(self, path: PathLike) -> bool:
        key = _key(path)
        return key in self._files or key in self._dirs or key.exists()

    def is_dir(self, path: PathLike) -> bool:
        key = _key(path)
        return key in self._dirs or key.is_dir()

    def list_dir(self, path: PathLike) -> List[Path]:
        key = _key(path)
        children: Dict[str, Path] = {}
        if key.is_dir():
            for child in key.iterdir():
                children[child.name] = child
        for pending in list(self._files) + list(self._dirs):
            if pending.parent == key:
                children.setdefault(pending.name, pending)
        return [children[name] for name in sorted(children)]

    def read_text(self, path: PathLike) -> str:
        key = _key(path)
        if key in self._files:
            return self._files[key]
        with open(key, "r", encoding=ENCODING, errors=ERRORS, newline="") as f:
            return f.read()

    def make_dirs(self, path: PathLike) -> None:
        key = _key(path)
        if self.is_dir(key):
            return
        # Register every missing ancestor so list_dir can see the new tree.
        for parent in [key] + list(key.parents):
            if parent.is_dir() or parent in self._dirs:
                break
            self._dirs.add(parent)
        self._record(f"Would create directory {key}")

    def write_text(self, path: PathLike, text: str) -> None:
        key = _key(path)
        self._files[key] = text
        self._record(f"Would write {key} ({count_lines(text)} lines)")

    def copy_file(self, source: PathLike, destination: PathLike) -> None:
        source_key = _key(source)
        if source_key not in self._files and not source_key.is_file():
            raise SourceNotFound.missing(source_key)
        self._files[_key(destination)] = self.read_text(source_key)
        self._record(f"Would copy {source_key} to {_key(destination)}")
