"""Key/value stores that carry metric baselines between integration runs."""

from __future__ import annotations

import contextlib
import math
import os
import tempfile
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Dict, Iterator, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, ValidationError

from .clock import Clock, system_clock, to_epoch
from .errors import StoreError, StoreLoadCorrupt, StoreSaveFailed
from .logging_setup import get_logger

DEFAULT_TTL = timedelta(days=1)
DEFAULT_DIRECTORY = "nr-integrations"

logger = get_logger(__name__)


@dataclass(slots=True, frozen=True)
class StoredEntry:
    value: float
    timestamp: float


@runtime_checkable
class Storer(Protocol):
    """Persistence contract used by metric sets to compute rates and deltas."""

    def get(self, key: str) -> Optional[StoredEntry]:
        """Return the entry stored under ``key`` or ``None`` when missing."""
        ...

    def set(self, key: str, value: float) -> float:
        """Replace the entry under ``key`` and return the timestamp recorded."""
        ...

    def delete(self, key: str) -> None:
        ...

    def save(self) -> None:
        """Persist the current state. Raises ``StoreSaveFailed`` on I/O errors."""
        ...


def default_path(integration_name: str) -> Path:
    """Return the store file used by ``integration_name`` when none is configured."""

    return Path(tempfile.gettempdir()) / DEFAULT_DIRECTORY / f"{integration_name}.json"


class InMemoryStore:
    """Process-local store; its content is lost when the process exits."""

    def __init__(self, clock: Clock = system_clock) -> None:
        self.clock = clock
        self._entries: Dict[str, StoredEntry] = {}

    def get(self, key: str) -> Optional[StoredEntry]:
        return self._entries.get(key)

    def set(self, key: str, value: float) -> float:
        if not math.isfinite(value):
            raise StoreError(f"non-finite value {value!r} for key {key}")
        timestamp = to_epoch(self.clock())
        self._entries[key] = StoredEntry(value=value, timestamp=timestamp)
        return timestamp

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def save(self) -> None:
        return None

    def keys(self) -> list[str]:
        return sorted(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())


class _EntryDocument(BaseModel):
    value: float
    timestamp: float


class _StoreDocument(BaseModel):
    timestamp: float
    entries: Dict[str, _EntryDocument]


class FileStore(InMemoryStore):
    """Store backed by a single JSON file, loaded on creation and written by ``save``.

    A file whose recorded save time is older than ``ttl`` is ignored, so a
    collector that was stopped for a long time does not compute rates against
    a stale baseline. An unreadable or malformed file only loses the stored
    baselines: the store starts empty and the problem is logged.
    """

    def __init__(
        self,
        path: Path | str,
        clock: Clock = system_clock,
        ttl: timedelta = DEFAULT_TTL,
        log=None,
    ) -> None:
        super().__init__(clock=clock)
        self.path = Path(path)
        self.ttl = ttl
        self._log = log or logger
        try:
            self._entries = self._load()
        except StoreLoadCorrupt as exc:
            self._log.warning("store.load.corrupt", path=str(self.path), error=str(exc))
            self._entries = {}

    def _load(self) -> Dict[str, StoredEntry]:
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            self._log.debug("store.load.missing", path=str(self.path))
            return {}
        except OSError as exc:
            raise StoreLoadCorrupt(f"cannot read store file {self.path}: {exc}") from exc

        try:
            document = _StoreDocument.model_validate_json(raw)
        except ValidationError as exc:
            raise StoreLoadCorrupt(f"invalid store file {self.path}") from exc

        age = to_epoch(self.clock()) - document.timestamp
        if age > self.ttl.total_seconds():
            self._log.debug("store.load.expired", path=str(self.path), age_seconds=age)
            return {}

        self._log.debug("store.load.ok", path=str(self.path), entries=len(document.entries))
        return {
            key: StoredEntry(value=entry.value, timestamp=entry.timestamp)
            for key, entry in document.entries.items()
        }

    def save(self) -> None:
        document = _StoreDocument(
            timestamp=to_epoch(self.clock()),
            entries={
                key: _EntryDocument(value=entry.value, timestamp=entry.timestamp)
                for key, entry in self._entries.items()
            },
        )
        payload = document.model_dump_json()

        temp_path: Optional[str] = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(temp_path, self.path)
        except OSError as exc:
            if temp_path is not None:
                with contextlib.suppress(OSError):
                    os.unlink(temp_path)
            raise StoreSaveFailed(f"cannot save store file {self.path}: {exc}") from exc

        self._log.debug("store.save", path=str(self.path), entries=len(self._entries))


__all__ = [
    "DEFAULT_TTL",
    "FileStore",
    "InMemoryStore",
    "StoredEntry",
    "Storer",
    "default_path",
]
