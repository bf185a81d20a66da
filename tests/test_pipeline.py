"""
Dalaran: Pipeline Tests

End-to-end runs against a temp DALARAN_DIR: archive, spellbook, library
history and working history, then --top / --silence style operations.
Dry-run must leave the filesystem exactly as it found it.
"""
import os
import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from dalaran.core.effects import count_lines
from dalaran.core.errors import ConfigError, CorpusNotFound, SourceNotFound
from dalaran.core.pipeline import Dalaran
from dalaran.core.types import Notice
from dalaran.utils.config import DalaranConfig

START = datetime(2024, 1, 1, 12, 0, 0)

LIVE = (
    ": 1700000000:0;git status\n"
    ": 1700000001:0;ls -la\n"
    ": 1700000002:0;git status\n"
    ": 1700000003:0;cd /tmp\n"
    ": 1700000004:0;git status\n"
)


# ─── Helpers ──────────────────────────────────────────────────────────────────

class StepClock:
    """Clock that advances one second per call."""

    def __init__(self, start=START):
        self.now = start

    def __call__(self):
        current = self.now
        self.now += timedelta(seconds=1)
        return current


def make_config(tmp_path, live=LIVE, **overrides) -> DalaranConfig:
    history = tmp_path / ".zsh_history"
    if live is not None:
        history.write_text(live)
    return DalaranConfig(history_file=history, dalaran_dir=tmp_path / ".dalaran", **overrides)


def snapshot(root: Path):
    return {
        str(p.relative_to(root)): (None if p.is_dir() else p.read_bytes())
        for p in sorted(root.rglob("*"))
    }


# ─── Full Run ─────────────────────────────────────────────────────────────────

def test_run_builds_every_artifact(tmp_path):
    config = make_config(tmp_path)

    summary = Dalaran(config, clock=StepClock()).run()

    root = config.dalaran_dir
    assert summary.archive.archive_id == "20240101_120000"
    assert (root / "archives" / "20240101_120000" / ".zsh_history").read_text() == LIVE
    assert (root / "archives" / "20240101_120000" / "spellbook.txt").read_text() == \
        "git status\ncd /tmp\nls -la\n"
    # One archive: every spell appears once, so the re-rank is alphabetical
    assert config.spellbook_file.read_text() == "cd /tmp\ngit status\nls -la\n"

    library = config.library_history_file.read_text()
    assert count_lines(library) == 3
    assert library.splitlines()[0].endswith(";cd /tmp")

    working = config.working_history_file.read_text()
    assert working == library + LIVE
    assert summary.working_history_size == count_lines(library) + count_lines(LIVE) == 8

    assert summary.archives_found == 1
    assert summary.corpus_size == 3
    assert summary.synthetic_size == 3
    assert summary.notices == []
    assert not summary.dry_run


def test_second_run_accumulates_archives(tmp_path):
    config = make_config(tmp_path)
    dalaran = Dalaran(config, clock=StepClock())
    dalaran.run()

    config.history_file.write_text(LIVE + ": 1700000005:0;pwd\n: 1700000006:0;pwd\n")
    summary = dalaran.run()

    assert summary.archives_found == 2
    assert len(list(config.archives_dir.iterdir())) == 2
    # cd /tmp, git status and ls -la are in both archives (2 each), pwd only in
    # the second; equal counts fall back to alphabetical order
    spells = config.spellbook_file.read_text().splitlines()
    assert spells == ["cd /tmp", "git status", "ls -la", "pwd"]
    assert spells[0] == "cd /tmp"


def test_same_second_runs_do_not_overwrite(tmp_path):
    config = make_config(tmp_path)
    dalaran = Dalaran(config, clock=lambda: START)

    dalaran.run()
    dalaran.run()

    ids = sorted(p.name for p in config.archives_dir.iterdir())
    assert ids == ["20240101_120000", "20240101_120000-1"]


def test_silenced_commands_stay_out_of_new_archives(tmp_path):
    config = make_config(tmp_path)
    dalaran = Dalaran(config, clock=StepClock())
    dalaran.silence("ls -la")

    summary = dalaran.run()

    assert summary.silenced_count == 1
    assert config.spellbook_file.read_text() == "cd /tmp\ngit status\n"


def test_empty_history_reports_empty_corpus(tmp_path):
    config = make_config(tmp_path, live="")

    summary = Dalaran(config, clock=StepClock()).run()

    assert summary.corpus_size == 0
    assert Notice.EMPTY_CORPUS in summary.notices
    assert config.working_history_file.read_text() == ""


def test_missing_history_fails_before_touching_disk(tmp_path):
    config = make_config(tmp_path, live=None)

    with pytest.raises(SourceNotFound):
        Dalaran(config, clock=StepClock()).run()

    assert not config.dalaran_dir.exists()


def test_unreadable_history_fails_before_touching_disk(tmp_path):
    config = make_config(tmp_path, live=None)
    config.history_file.mkdir()

    with pytest.raises(SourceNotFound) as exc_info:
        Dalaran(config, clock=StepClock()).run()

    assert "Cannot read" in str(exc_info.value)
    assert not config.dalaran_dir.exists()


def test_invalid_max_count_rejected_up_front(tmp_path):
    with pytest.raises(ConfigError):
        Dalaran(make_config(tmp_path, max_count=0))


# ─── Dry Run ──────────────────────────────────────────────────────────────────

def test_dry_run_changes_nothing_on_disk(tmp_path):
    config = make_config(tmp_path, dry_run=True)
    before = snapshot(tmp_path)

    summary = Dalaran(config, clock=StepClock()).run()

    assert snapshot(tmp_path) == before
    assert summary.dry_run
    assert summary.corpus_size == 3
    assert summary.working_history_size == 8
    assert any(op.startswith("Would write") for op in summary.operations)
    assert any(op.startswith("Would copy") for op in summary.operations)


def test_dry_run_over_existing_state_changes_nothing(tmp_path):
    config = make_config(tmp_path)
    Dalaran(config, clock=StepClock()).run()
    before = snapshot(tmp_path)

    config.dry_run = True
    summary = Dalaran(config, clock=StepClock(START + timedelta(days=1))).run()

    assert snapshot(tmp_path) == before
    assert summary.archives_found == 2


def test_dry_run_with_missing_history_succeeds(tmp_path, capsys):
    config = make_config(tmp_path, live=None, dry_run=True)

    summary = Dalaran(config, clock=StepClock()).run()

    assert summary.notices == [Notice.SOURCE_MISSING_DRY_RUN]
    assert summary.archive is None
    assert not config.dalaran_dir.exists()
    assert "History file not found" in capsys.readouterr().out


def test_dry_run_with_unreadable_history_succeeds(tmp_path, capsys):
    config = make_config(tmp_path, live=None, dry_run=True)
    config.history_file.mkdir()

    summary = Dalaran(config, clock=StepClock()).run()

    assert summary.notices == [Notice.SOURCE_MISSING_DRY_RUN]
    assert summary.archive is None
    assert summary.operations == []
    assert not config.dalaran_dir.exists()
    out = capsys.readouterr().out
    assert "Cannot read" in out
    assert "missing or unreadable" in out


def test_dry_run_prints_planned_operations(tmp_path, capsys):
    config = make_config(tmp_path, dry_run=True)
    Dalaran(config, clock=StepClock()).run()

    out = capsys.readouterr().out
    assert "DRY RUN MODE" in out
    assert "Would create directory" in out
    assert "Would write" in out


# ─── Top / Silence ────────────────────────────────────────────────────────────

def test_show_top_returns_first_entries(tmp_path, capsys):
    config = make_config(tmp_path)
    dalaran = Dalaran(config, clock=StepClock())
    dalaran.run()
    capsys.readouterr()

    assert dalaran.show_top(2) == ["cd /tmp", "git status"]
    assert dalaran.show_top("10") == ["cd /tmp", "git status", "ls -la"]

    out = capsys.readouterr().out
    assert "Top 2 most used spells from dalaran spellbook:" in out
    assert "git status" in out


@pytest.mark.parametrize("bad", [0, -3, "0", "abc", "", "1.5", True])
def test_show_top_rejects_bad_counts(tmp_path, bad):
    with pytest.raises(ConfigError) as exc_info:
        Dalaran(make_config(tmp_path)).show_top(bad)
    assert "--top value must be a positive integer" in str(exc_info.value)


def test_show_top_without_corpus(tmp_path):
    with pytest.raises(CorpusNotFound) as exc_info:
        Dalaran(make_config(tmp_path)).show_top(5)
    assert "No corpus found" in str(exc_info.value)


def test_silence_reports_duplicates(tmp_path, capsys):
    config = make_config(tmp_path)
    dalaran = Dalaran(config)

    first = dalaran.silence("ls -la, pwd")
    second = dalaran.silence("pwd,date")

    assert first.added == ["ls -la", "pwd"]
    assert second.added == ["date"]
    assert second.already_silenced == ["pwd"]
    assert config.silence_file.read_text() == "ls -la\npwd\ndate\n"

    out = capsys.readouterr().out
    assert "Silenced spell: pwd" in out
    assert "Already silenced: pwd" in out
    assert "Silenced spells updated" in out


def test_silence_dry_run_writes_nothing(tmp_path, capsys):
    config = make_config(tmp_path, dry_run=True)

    result = Dalaran(config).silence("ls,pwd")

    assert result.added == ["ls", "pwd"]
    assert not config.silence_file.exists()
    assert "Would silence: ls" in capsys.readouterr().out


def test_silence_prints_already_silenced_notice(tmp_path, capsys):
    dalaran = Dalaran(make_config(tmp_path))
    dalaran.silence("pwd")
    capsys.readouterr()

    result = dalaran.silence("pwd")

    assert result.notices == [Notice.ALREADY_SILENCED]
    assert "Some spells were already silenced." in capsys.readouterr().out


def test_silence_after_run_clears_spellbook_on_next_run(tmp_path, capsys):
    config = make_config(tmp_path)
    dalaran = Dalaran(config, clock=StepClock())
    dalaran.run()
    assert "ls -la" in config.spellbook_file.read_text().splitlines()

    dalaran.silence("ls -la")
    summary = dalaran.run()

    assert summary.silenced_count == 1
    assert config.spellbook_file.read_text() == "cd /tmp\ngit status\n"
    assert "ls -la" not in config.library_history_file.read_text()
    # The first archive still lists it
    first = config.archives_dir / "20240101_120000" / "spellbook.txt"
    assert "ls -la" in first.read_text().splitlines()

    capsys.readouterr()
    assert "ls -la" not in dalaran.show_top(10)
