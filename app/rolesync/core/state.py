"""State management for run history.

This module provides the StateManager class for persisting and querying
history entries in a JSONL file, and the helper that records a finished
reconciliation run.
"""

import json
import logging
from pathlib import Path
from typing import Any

from rolesync.core.paths import get_state_dir
from rolesync.models.action import ReconciliationResult
from rolesync.models.history import HistoryEntry, HistoryItem, create_history_entry

logger = logging.getLogger(__name__)


class StateManager:
    """Manages history state in a JSONL file.

    Storage location: ~/.local/state/rolesync/history.jsonl

    Each line is a complete JSON object representing one HistoryEntry,
    which keeps writes append-only.
    """

    HISTORY_FILENAME = "history.jsonl"

    def __init__(self, state_dir: Path | None = None) -> None:
        """Initialize StateManager.

        Args:
            state_dir: Optional override for state directory.
                      Default: ~/.local/state/rolesync
        """
        self._state_dir = state_dir if state_dir is not None else get_state_dir()

    @property
    def history_path(self) -> Path:
        """Path to history.jsonl file."""
        return self._state_dir / self.HISTORY_FILENAME

    def record_run(self, entry: HistoryEntry) -> None:
        """Append an entry to the history file.

        Creates the file and parent directories if they don't exist.

        Raises:
            OSError: If the directory or file cannot be written.
        """
        self._state_dir.mkdir(parents=True, exist_ok=True)

        with self.history_path.open(mode="a", encoding="utf-8") as f:
            f.write(entry.to_json_line() + "\n")
            f.flush()

    def get_history(self, limit: int | None = None) -> list[HistoryEntry]:
        """Read history entries, newest first.

        Corrupt lines are logged and skipped.

        Args:
            limit: Maximum number of entries to return. If None, returns all.

        Returns:
            List of HistoryEntry, newest first; empty if the file doesn't exist.
        """
        if not self.history_path.exists():
            return []

        entries: list[HistoryEntry] = []

        with self.history_path.open(encoding="utf-8") as f:
            for line_num, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue

                try:
                    entries.append(HistoryEntry.from_json_line(line))
                except (json.JSONDecodeError, KeyError, ValueError) as e:
                    logger.warning("Skipping corrupt history line %d: %s", line_num, str(e))

        entries.reverse()

        if limit is not None:
            return entries[:limit]
        return entries

    def get_entry_by_id(self, entry_id: str) -> HistoryEntry | None:
        """Find an entry by its full ID or a unique prefix of it."""
        matches = [entry for entry in self.get_history() if entry.id.startswith(entry_id)]
        if len(matches) == 1:
            return matches[0]
        return None


def record_result_to_history(
    result: ReconciliationResult,
    metadata: dict[str, Any] | None = None,
    state: StateManager | None = None,
) -> HistoryEntry | None:
    """Record a finished, non-simulated run in the history file.

    Simulated runs and runs that changed nothing on any host are not
    recorded. Errors while writing are logged and do not interrupt the
    caller.

    Args:
        result: The run to record.
        metadata: Additional context stored with the entry.
        state: StateManager to write through. Defaults to the standard location.

    Returns:
        The recorded entry, or None when nothing was recorded.
    """
    if result.simulate or not result.actions:
        return None

    entry = create_history_entry(
        source=result.source,
        items=[HistoryItem.from_action(record) for record in result.actions],
        failed_hosts=result.failed_hosts,
        metadata=metadata,
    )

    try:
        (state or StateManager()).record_run(entry)
    except OSError as e:
        logger.warning("Failed to record run to history: %s", e)
        return None

    logger.debug("Recorded %d change(s) to history as %s", len(entry.items), entry.id)
    return entry
