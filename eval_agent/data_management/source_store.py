"""Source registry: lookup of trusted sources with trust weight and category.

Read-only to the pipeline. Operators edit entries through ``upsert`` and
``deactivate``; the rules checker and judge only call ``get_active_sources``.

Usage:
    from eval_agent.data_management.source_store import SourceStore

    registry = SourceStore.with_defaults()
    sources = await registry.get_active_sources()
"""

from datetime import datetime, timezone
from typing import Optional

from eval_agent.config.source_registry import DEFAULT_SOURCES
from eval_agent.data_management.base_store import ModelStore
from eval_agent.data_management.schemas import Source, SourceCategory
from eval_agent.errors import NotFoundError


class SourceStore(ModelStore[Source]):
    """Trusted source registry."""

    model_cls = Source

    @classmethod
    def with_defaults(cls, persistence_path: Optional[str] = None) -> "SourceStore":
        """Create a registry seeded with the default sources when empty."""
        store = cls(persistence_path)
        if not store._records:
            for raw in DEFAULT_SOURCES:
                source = Source(**raw)
                store._records[source.id] = source
        return store

    async def get_active_sources(
        self,
        category: Optional[SourceCategory] = None,
    ) -> list[Source]:
        """Active sources, ranked by trust desc then category precedence."""
        async with self._lock:
            sources = [
                s.model_copy()
                for s in self._records.values()
                if s.active and (category is None or s.category == category)
            ]
        return sorted(sources, key=Source.rank_key)

    async def upsert(self, source: Source) -> Source:
        """Create or replace a registry entry."""
        source.updated_at = datetime.now(timezone.utc)
        await self.save(source)
        self._logger.info("source_upserted", source_id=source.id, name=source.name)
        return source

    async def deactivate(self, source_id: str) -> Source:
        """Hide a source from the pipeline without deleting it."""
        async with self._lock:
            stored = self._records.get(source_id)
            if stored is None:
                raise NotFoundError(f"Source not found: {source_id}")
            source = stored.model_copy(
                update={"active": False, "updated_at": datetime.now(timezone.utc)}, deep=True
            )
            return self._commit(source)
