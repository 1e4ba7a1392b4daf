"""Outcome history — append-only log of how routed tasks turned out.

Records are appended by the caller after a task has run and are only read
by the learner. Persistence goes through the HistoryStore interface; the
JSONL store keeps one JSON object per line and the in-memory store backs
tests and short-lived sessions.

Task fingerprints are FNV-1a 64-bit hashes over a normalized token string
(lowercased, punctuation stripped, short words dropped, words sorted).
They group near-identical phrasings of the same task. They are a
similarity heuristic with a real collision risk, not unique identifiers.
"""

from __future__ import annotations

import json
import logging
import re
import threading
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from pathlib import Path

from pydantic import ValidationError

from tiergate.schemas.learning import HistoricalRecord, Outcome

logger = logging.getLogger(__name__)

_FNV64_OFFSET = 0xCBF29CE484222325
_FNV64_PRIME = 0x100000001B3
_FNV64_MASK = 0xFFFFFFFFFFFFFFFF

_NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")

# Words this short carry no task identity ("a", "to", "in")
_MIN_WORD_LEN = 3


def normalize_task(description: str) -> str:
    """Reduce a description to its sorted set of meaningful lowercase words."""
    cleaned = _NON_ALNUM_RE.sub("", description.lower())
    words = [w for w in cleaned.split() if len(w) >= _MIN_WORD_LEN]
    return " ".join(sorted(words))


def fingerprint(description: str) -> str:
    """FNV-1a 64-bit hash of the normalized description, as 16 hex digits."""
    value = _FNV64_OFFSET
    for byte in normalize_task(description).encode("utf-8"):
        value ^= byte
        value = (value * _FNV64_PRIME) & _FNV64_MASK
    return f"{value:016x}"


def build_record(
    description: str,
    task_type: str,
    level_used: int,
    outcome: Outcome | str,
    quality_signal: float | None = None,
) -> HistoricalRecord:
    """Build a HistoricalRecord stamped with a fingerprint and the current UTC time."""
    return HistoricalRecord(
        task_fingerprint=fingerprint(description),
        task_type=task_type,
        level_used=level_used,
        outcome=Outcome(outcome),
        quality_signal=quality_signal,
        timestamp=datetime.now(UTC).isoformat(),
    )


class HistoryStore(ABC):
    """Append-only store of HistoricalRecords."""

    @abstractmethod
    def append(self, record: HistoricalRecord) -> None:
        """Append one record. Failures are logged, never raised."""

    @abstractmethod
    def load(self) -> list[HistoricalRecord]:
        """Return every readable record in append order."""


class InMemoryHistoryStore(HistoryStore):
    """History kept in a list; nothing is persisted."""

    def __init__(self, records: list[HistoricalRecord] | None = None) -> None:
        self._records: list[HistoricalRecord] = list(records or [])
        self._lock = threading.Lock()

    def append(self, record: HistoricalRecord) -> None:
        with self._lock:
            self._records.append(record)

    def load(self) -> list[HistoricalRecord]:
        with self._lock:
            return list(self._records)


class JsonlHistoryStore(HistoryStore):
    """History persisted as one JSON object per line.

    Appends are serialized within the process; writers in other
    processes rely on the single-write append semantics of the OS.
    Unparseable lines are skipped on load.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path).expanduser()
        self._lock = threading.Lock()

    def append(self, record: HistoricalRecord) -> None:
        line = record.model_dump_json() + "\n"
        try:
            with self._lock:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with open(self.path, "a", encoding="utf-8") as f:
                    f.write(line)
        except OSError as e:
            logger.warning("Could not append to history %s: %s", self.path, e)

    def load(self) -> list[HistoricalRecord]:
        if not self.path.exists():
            return []

        try:
            data = self.path.read_bytes()
        except OSError as e:
            logger.warning("Could not read history %s: %s", self.path, e)
            return []

        records: list[HistoricalRecord] = []
        skipped = 0
        for raw in data.splitlines():
            if not raw.strip():
                continue
            try:
                line = raw.decode("utf-8")
                records.append(HistoricalRecord.model_validate(json.loads(line)))
            except (UnicodeDecodeError, json.JSONDecodeError, ValidationError):
                skipped += 1

        if skipped:
            logger.warning("Skipped %d unreadable history line(s) in %s", skipped, self.path)
        return records
