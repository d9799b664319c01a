# tests/test_history.py
"""Tests for the command history store."""
import pytest

from commandgpt.errors import HistoryError
from commandgpt.history import HistoryManager, truncate_output


def test_record_and_last_entry(history_manager):
    assert history_manager.get_last_entry() is None

    entry_id = history_manager.record_command("ls -la", "file.txt\n", "", 0, 12)

    last = history_manager.get_last_entry()
    assert last.id == entry_id
    assert last.command == "ls -la"
    assert last.stdout == "file.txt\n"
    assert last.duration_ms == 12
    assert history_manager.get_entry(entry_id) == last


def test_recent_entries_newest_first(history_manager):
    for i in range(5):
        history_manager.record_command(f"echo {i}", f"{i}\n", "", 0, 1)

    recent = history_manager.get_recent_entries(3)
    assert [e.command for e in recent] == ["echo 4", "echo 3", "echo 2"]
    assert history_manager.get_recent_entries(0) == []


def test_output_truncated(history_manager):
    history_manager.record_command("yes", "y" * 5000, "e" * 10, 0, 1)

    entry = history_manager.get_last_entry()
    assert entry.stdout == "y" * 1024 + "... (truncated)"
    assert entry.stderr == "e" * 10


def test_truncate_output_boundary():
    assert truncate_output("abc", 3) == "abc"
    assert truncate_output("abcd", 3) == "abc... (truncated)"


def test_max_entries_trimmed(tmp_path):
    history = HistoryManager(path=tmp_path / "history.json", max_entries=3)
    for i in range(5):
        history.record_command(f"echo {i}", "", "", 0, 1)

    assert len(history) == 3
    assert [e.command for e in history.get_recent_entries(10)] == ["echo 4", "echo 3", "echo 2"]


def test_search_case_insensitive(history_manager):
    history_manager.record_command("git status", "", "", 0, 1)
    history_manager.record_command("ls", "", "", 0, 1)
    history_manager.record_command("GIT log", "", "", 0, 1)

    results = history_manager.search("git")
    assert [e.command for e in results] == ["GIT log", "git status"]


def test_delete_and_clear(history_manager):
    first = history_manager.record_command("echo 1", "", "", 0, 1)
    history_manager.record_command("echo 2", "", "", 0, 1)

    assert history_manager.delete_entry(first) is True
    assert history_manager.delete_entry(first) is False
    assert len(history_manager) == 1

    history_manager.clear()
    assert len(history_manager) == 0
    assert history_manager.get_last_entry() is None


def test_stats(history_manager):
    assert history_manager.get_stats().total_commands == 0

    history_manager.record_command("true", "", "", 0, 10)
    history_manager.record_command("false", "", "", 1, 30)

    stats = history_manager.get_stats()
    assert stats.total_commands == 2
    assert stats.successful_commands == 1
    assert stats.success_rate == 0.5
    assert stats.average_duration_ms == 20
    assert stats.oldest_entry <= stats.newest_entry


def test_persists_across_instances(tmp_path):
    path = tmp_path / "history.json"
    HistoryManager(path=path).record_command("echo saved", "saved\n", "", 0, 5)

    reloaded = HistoryManager(path=path)
    assert reloaded.get_last_entry().command == "echo saved"
    assert reloaded.record_command("echo next", "", "", 0, 1) == 2


def test_corrupt_file_raises(tmp_path):
    path = tmp_path / "history.json"
    path.write_text("{not json")

    with pytest.raises(HistoryError):
        HistoryManager(path=path)
