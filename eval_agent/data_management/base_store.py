"""Shared in-memory store with optional JSON persistence.

Follows the same patterns across every entity store:
- Records keyed by id, held as Pydantic models
- Thread-safe operations with asyncio locks
- Copies handed out so callers never mutate stored state outside the lock
- Optional JSON persistence (one file per store)

For production this layer would be replaced with a database backend; the
conditional-update methods on subclasses map to ``UPDATE ... WHERE status=?``.
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Callable, Generic, Optional, TypeVar

import structlog
from pydantic import BaseModel

from eval_agent.errors import UpstreamFailureError

M = TypeVar("M", bound=BaseModel)


class ModelStore(Generic[M]):
    """Id-keyed storage for one Pydantic model type.

    Data structure:
    {
        record_id: Model,
        ...
    }
    """

    model_cls: type[M]

    def __init__(self, persistence_path: Optional[str] = None) -> None:
        """Initialize store.

        Args:
            persistence_path: Optional path to JSON file for persistence.
                            If None, storage is memory-only.
        """
        self._records: dict[str, M] = {}
        self._lock = asyncio.Lock()
        self._persistence_path = Path(persistence_path) if persistence_path else None
        self._logger = structlog.get_logger().bind(component=type(self).__name__)

        if self._persistence_path and self._persistence_path.exists():
            self._load_from_file()

    async def get(self, record_id: str) -> Optional[M]:
        """Get a record by id, or None."""
        async with self._lock:
            record = self._records.get(record_id)
            return record.model_copy(deep=True) if record is not None else None

    async def save(self, record: M) -> M:
        """Insert or replace a record by id."""
        async with self._lock:
            self._commit(record.model_copy(deep=True))
            return record

    async def list_all(self) -> list[M]:
        """All records in insertion order."""
        async with self._lock:
            return [r.model_copy(deep=True) for r in self._records.values()]

    async def count(self) -> int:
        async with self._lock:
            return len(self._records)

    def _recent(
        self,
        key: Callable[[M], Any],
        limit: int,
        predicate: Optional[Callable[[M], bool]] = None,
    ) -> list[M]:
        """Most recent records first. Caller must hold the lock."""
        records = [r for r in self._records.values() if predicate is None or predicate(r)]
        records.sort(key=key, reverse=True)
        return [r.model_copy(deep=True) for r in records[: max(limit, 0)]]

    def _commit(self, record: M) -> M:
        """Persist the record set with ``record`` swapped in, then update memory.

        Caller must hold the lock and pass a record it owns (a copy, never the
        stored instance). If persistence fails, the in-memory state is untouched.

        Returns:
            A copy of the committed record.
        """
        records = {**self._records, record.id: record}
        self._persist(records)
        self._records = records
        return record.model_copy(deep=True)

    def _persist(self, records: Optional[dict[str, M]] = None) -> None:
        """Save to JSON file (synchronous). Caller must hold the lock."""
        if not self._persistence_path:
            return
        records = self._records if records is None else records
        try:
            self._persistence_path.parent.mkdir(parents=True, exist_ok=True)
            data = {rid: record.model_dump(mode="json") for rid, record in records.items()}
            with open(self._persistence_path, "w") as f:
                json.dump(data, f, indent=2, default=str)
        except OSError as e:
            self._logger.error("persistence_failed", path=str(self._persistence_path), error=str(e))
            raise UpstreamFailureError(
                f"Failed to persist {type(self).__name__}: {e}"
            ) from e

    def _load_from_file(self) -> None:
        """Load records from the JSON file."""
        with open(self._persistence_path) as f:
            data = json.load(f)
        self._records = {rid: self.model_cls.model_validate(raw) for rid, raw in data.items()}
        self._logger.info("store_loaded", path=str(self._persistence_path), records=len(self._records))
