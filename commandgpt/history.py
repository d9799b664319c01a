# commandgpt/history.py
"""
Command history for CommandGPT.

Executed commands are kept in a JSON file under the configuration directory,
newest last. The orchestrator hands each execution over through
``record_command``; nothing in the safety or execution core writes here.
"""
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError

from commandgpt.constants import HISTORY_FILE, HISTORY_MAX_ENTRIES, HISTORY_MAX_OUTPUT_CHARS
from commandgpt.errors import HistoryError
from commandgpt.utils.logging import get_logger

logger = get_logger(__name__)


class HistoryEntry(BaseModel):
    """Record of a command execution."""
    id: int
    command: str
    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    duration_ms: int = 0


class HistoryStats(BaseModel):
    """Aggregate figures over the whole history."""
    total_commands: int = 0
    successful_commands: int = 0
    success_rate: float = 0.0
    average_duration_ms: int = 0
    oldest_entry: Optional[datetime] = None
    newest_entry: Optional[datetime] = None


def truncate_output(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "... (truncated)"


class HistoryManager:
    """Manager for the command history file."""

    def __init__(
        self,
        path: Path = HISTORY_FILE,
        max_entries: int = HISTORY_MAX_ENTRIES,
        max_output_chars: int = HISTORY_MAX_OUTPUT_CHARS,
    ):
        self._path = Path(path)
        self._max_entries = max_entries
        self._max_output_chars = max_output_chars
        self._entries: List[HistoryEntry] = self._load()

    def _load(self) -> List[HistoryEntry]:
        if not self._path.exists():
            logger.debug("No history file found")
            return []
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
            entries = [HistoryEntry.model_validate(item) for item in data]
        except (OSError, json.JSONDecodeError, ValidationError, TypeError) as e:
            raise HistoryError(f"Could not read history file {self._path}: {e}") from e
        logger.debug(f"Loaded {len(entries)} history items")
        return entries

    def _save(self) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._path, "w", encoding="utf-8") as f:
                json.dump([entry.model_dump(mode="json") for entry in self._entries], f, indent=2)
        except OSError as e:
            raise HistoryError(f"Could not write history file {self._path}: {e}") from e

    def _next_id(self) -> int:
        return self._entries[-1].id + 1 if self._entries else 1

    def record_command(
        self,
        command: str,
        stdout: str,
        stderr: str,
        exit_code: int,
        duration_ms: int,
    ) -> int:
        """
        Append an executed command to the history.

        Returns:
            The id assigned to the new entry.
        """
        entry = HistoryEntry(
            id=self._next_id(),
            command=command,
            stdout=truncate_output(stdout, self._max_output_chars),
            stderr=truncate_output(stderr, self._max_output_chars),
            exit_code=exit_code,
            duration_ms=duration_ms,
        )
        self._entries.append(entry)
        if len(self._entries) > self._max_entries:
            self._entries = self._entries[-self._max_entries:]
        self._save()
        logger.debug(f"Recorded command {entry.id} in history")
        return entry.id

    def get_last_entry(self) -> Optional[HistoryEntry]:
        return self._entries[-1] if self._entries else None

    def get_entry(self, entry_id: int) -> Optional[HistoryEntry]:
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        return None

    def get_recent_entries(self, count: int) -> List[HistoryEntry]:
        """Most recent entries first."""
        if count <= 0:
            return []
        return list(reversed(self._entries[-count:]))

    def search(self, query: str) -> List[HistoryEntry]:
        """Case-insensitive substring search over commands, newest first."""
        query_lower = query.lower()
        matches = [e for e in self._entries if query_lower in e.command.lower()]
        return list(reversed(matches))

    def delete_entry(self, entry_id: int) -> bool:
        remaining = [e for e in self._entries if e.id != entry_id]
        if len(remaining) == len(self._entries):
            return False
        self._entries = remaining
        self._save()
        return True

    def clear(self) -> None:
        self._entries = []
        self._save()

    def get_stats(self) -> HistoryStats:
        if not self._entries:
            return HistoryStats()

        total = len(self._entries)
        successful = sum(1 for e in self._entries if e.exit_code == 0)
        timestamps = [e.timestamp for e in self._entries]
        return HistoryStats(
            total_commands=total,
            successful_commands=successful,
            success_rate=successful / total,
            average_duration_ms=sum(e.duration_ms for e in self._entries) // total,
            oldest_entry=min(timestamps),
            newest_entry=max(timestamps),
        )

    def __len__(self) -> int:
        return len(self._entries)
