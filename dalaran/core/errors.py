"""
Dalaran: Error Types

Every failure the pipeline can raise. Each error carries an ErrorCode so
the CLI (and tests) can tell them apart without matching on messages.

Informational outcomes (empty corpus, already-silenced commands) are not
errors; see Notice in core.types.
"""
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Union


class ErrorCode(Enum):
    """
    Codes are grouped by concern:
    - 1xx: configuration / validation
    - 2xx: input
    - 3xx: storage
    """
    CONFIG_INVALID_MAX_COUNT = 101
    CONFIG_INVALID_TOP = 102
    CONFIG_EMPTY_SILENCE = 103
    CONFIG_INVALID_ENV = 104

    SOURCE_NOT_FOUND = 201
    SOURCE_UNREADABLE = 202
    CORPUS_NOT_FOUND = 203

    STORAGE_MKDIR_FAILED = 301
    STORAGE_WRITE_FAILED = 302
    STORAGE_COPY_FAILED = 303


class DalaranError(Exception):
    """Base class for all Dalaran errors."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        cause: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.cause = cause
        self.context = context or {}

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.name}, message={self.message!r})"


class ConfigError(DalaranError):
    """Invalid user input or configuration. Raised before any stage runs."""

    @classmethod
    def invalid_max_count(cls, value: Any) -> "ConfigError":
        return cls(
            ErrorCode.CONFIG_INVALID_MAX_COUNT,
            f"max_count must be a positive integer, got {value!r}",
            context={"value": value},
        )

    @classmethod
    def invalid_top(cls, value: Any) -> "ConfigError":
        return cls(
            ErrorCode.CONFIG_INVALID_TOP,
            f"--top value must be a positive integer, got {value!r}",
            context={"value": value},
        )

    @classmethod
    def empty_silence(cls) -> "ConfigError":
        return cls(
            ErrorCode.CONFIG_EMPTY_SILENCE,
            "--silence requires a comma-separated list of commands",
        )

    @classmethod
    def invalid_env(cls, name: str, value: str) -> "ConfigError":
        return cls(
            ErrorCode.CONFIG_INVALID_ENV,
            f"Environment variable {name} has an invalid value: {value!r}",
            context={"name": name, "value": value},
        )


class SourceNotFound(DalaranError):
    """A required input log is missing or unreadable."""

    @classmethod
    def missing(cls, path: Union[str, Path], cause: Optional[BaseException] = None) -> "SourceNotFound":
        return cls(
            ErrorCode.SOURCE_NOT_FOUND,
            f"History file not found: {path}",
            cause=cause,
            context={"path": path},
        )

    @classmethod
    def unreadable(cls, path: Union[str, Path], cause: Optional[BaseException] = None) -> "SourceNotFound":
        return cls(
            ErrorCode.SOURCE_UNREADABLE,
            f"Cannot read {path}: {cause}" if cause else f"Cannot read {path}",
            cause=cause,
            context={"path": path},
        )


class CorpusNotFound(DalaranError):
    """--top was requested before any spellbook was built."""

    @classmethod
    def at(cls, path: Union[str, Path]) -> "CorpusNotFound":
        return cls(
            ErrorCode.CORPUS_NOT_FOUND,
            "No corpus found. Run dalaran first to build one.",
            context={"path": path},
        )


class StorageError(DalaranError):
    """Directory or file creation failed. Aborts every later stage."""

    @classmethod
    def mkdir_failed(cls, path: Union[str, Path], cause: Optional[BaseException] = None) -> "StorageError":
        return cls(
            ErrorCode.STORAGE_MKDIR_FAILED,
            f"Failed to create directory: {path} ({cause})",
            cause=cause,
            context={"path": path},
        )

    @classmethod
    def write_failed(cls, path: Union[str, Path], cause: Optional[BaseException] = None) -> "StorageError":
        return cls(
            ErrorCode.STORAGE_WRITE_FAILED,
            f"Failed to write {path}: {cause}",
            cause=cause,
            context={"path": path},
        )

    @classmethod
    def copy_failed(
        cls,
        source: Union[str, Path],
        destination: Union[str, Path],
        cause: Optional[BaseException] = None,
    ) -> "StorageError":
        return cls(
            ErrorCode.STORAGE_COPY_FAILED,
            f"Failed to copy {source} to {destination}: {cause}",
            cause=cause,
            context={"source": source, "destination": destination},
        )
