"""
Run history.

Every command gopick runs is appended to a JSON-lines file so the last run can
be repeated, or an earlier one picked and replayed, from any directory.
"""

from __future__ import annotations

import json
import logging
import os
import subprocess
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Union

from gopick.exceptions import HistoryError
from gopick.runner import GoCommand, RunOutcome, execute, execute_interactive

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


@dataclass
class HistoryEntry:
    """A command that was run, where, and whether it passed."""

    args: List[str]
    cwd: str
    passed: bool = False
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @classmethod
    def from_command(cls, command: GoCommand, passed: bool) -> "HistoryEntry":
        return cls(args=list(command.args), cwd=str(Path(command.cwd).resolve()), passed=passed)

    def to_command(self) -> GoCommand:
        return GoCommand(args=list(self.args), cwd=self.cwd)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HistoryEntry":
        try:
            return cls(
                args=list(data["args"]),
                cwd=data["cwd"],
                passed=bool(data.get("passed", False)),
                timestamp=data.get("timestamp", ""),
            )
        except (KeyError, TypeError) as e:
            raise HistoryError(f"Invalid history entry: {e}") from e

    def __str__(self) -> str:
        status = "PASS" if self.passed else "FAIL"
        return f"[{status}] {' '.join(self.args)} @ {self.cwd}"


def append_entry(path: PathLike, entry: HistoryEntry) -> None:
    """Append one entry to the history file, creating it if needed."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "a", encoding="utf-8") as f:
        f.write(json.dumps(entry.to_dict()) + "\n")


def load_entries(path: PathLike) -> List[HistoryEntry]:
    """All entries, oldest first. A missing file is an empty history.

    Raises:
        HistoryError: If a line is not a valid entry
    """
    path = Path(path)
    if not path.exists():
        return []

    entries = []
    with open(path, encoding="utf-8") as f:
        for number, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                data = json.loads(line)
            except json.JSONDecodeError as e:
                raise HistoryError(f"{path}:{number}: {e}") from e
            entries.append(HistoryEntry.from_dict(data))
    return entries


def last_entry(path: PathLike) -> HistoryEntry:
    """Most recent entry.

    Raises:
        HistoryError: If the history is empty
    """
    entries = load_entries(path)
    if not entries:
        raise HistoryError("No commands in history")
    return entries[-1]


def rerun(entry: HistoryEntry, colorize_output: bool = False) -> RunOutcome:
    """Run a history entry again in its original directory.

    Debugger sessions are replayed attached to the terminal.
    """
    if not Path(entry.cwd).is_dir():
        raise HistoryError(f"Directory {entry.cwd} no longer exists")
    command = entry.to_command()
    try:
        if command.args and command.args[0] == "dlv":
            return execute_interactive(command)
        return execute(command, colorize_output=colorize_output)
    except subprocess.SubprocessError as e:
        raise HistoryError(f"Could not rerun {entry}: {e}") from e
