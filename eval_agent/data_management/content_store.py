"""Document and insight storage - the stores fixes are written back to.

Upserts are keyed by content hash (insights hash their identity fields,
insight projections hash ``insight|<id>``), so re-projecting an insight
updates its document in place.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from eval_agent.data_management.base_store import ModelStore
from eval_agent.data_management.schemas import Document, Insight
from eval_agent.errors import NotFoundError


class DocumentStore(ModelStore[Document]):
    """Narrative documents (site, news, insight projections)."""

    model_cls = Document

    async def update(self, document_id: str, **fields: Any) -> Document:
        """Set fields on an existing document and bump ``last_updated``."""
        async with self._lock:
            stored = self._records.get(document_id)
            if stored is None:
                raise NotFoundError(f"Document not found: {document_id}")
            doc = stored.model_copy(update=fields, deep=True)
            doc.last_updated = datetime.now(timezone.utc)
            return self._commit(doc)

    async def upsert_by_hash(self, document: Document) -> str:
        """Insert, or overwrite the document sharing ``content_hash``.

        Returns:
            Id of the stored document.
        """
        async with self._lock:
            existing = next(
                (
                    d
                    for d in self._records.values()
                    if document.content_hash and d.content_hash == document.content_hash
                ),
                None,
            )
            if existing is not None:
                document.id = existing.id
                document.created_at = existing.created_at
            document.last_updated = datetime.now(timezone.utc)
            self._commit(document.model_copy(deep=True))
            return document.id

    async def upsert_from_insight(self, insight: Insight) -> str:
        """Re-derive and upsert the document projection of an insight."""
        doc_id = await self.upsert_by_hash(insight.to_document())
        self._logger.debug("insight_projected", insight_id=insight.id, document_id=doc_id)
        return doc_id

    async def list_recent(
        self,
        limit: int = 10,
        since: Optional[datetime] = None,
        ids: Optional[list[str]] = None,
    ) -> list[Document]:
        """Most recently updated documents, optionally restricted."""

        def wanted(doc: Document) -> bool:
            if ids is not None and doc.id not in ids:
                return False
            return since is None or doc.last_updated >= since

        async with self._lock:
            return self._recent(lambda d: d.last_updated, limit, predicate=wanted)


class InsightStore(ModelStore[Insight]):
    """Derived insight units."""

    model_cls = Insight

    async def update(self, insight_id: str, **fields: Any) -> Insight:
        """Set fields on an existing insight and bump ``updated_at``."""
        async with self._lock:
            stored = self._records.get(insight_id)
            if stored is None:
                raise NotFoundError(f"Insight not found: {insight_id}")
            insight = stored.model_copy(update=fields, deep=True)
            insight.updated_at = datetime.now(timezone.utc)
            return self._commit(insight)

    async def upsert_insight_unit(self, insight: Insight) -> str:
        """Insert an insight, reusing the id of an identical existing one.

        Returns:
            Id of the stored insight.
        """
        insight.content_hash = insight.compute_content_hash()
        async with self._lock:
            existing = next(
                (i for i in self._records.values() if i.content_hash == insight.content_hash),
                None,
            )
            if existing is not None:
                insight.id = existing.id
                insight.created_at = existing.created_at
            insight.updated_at = datetime.now(timezone.utc)
            self._commit(insight.model_copy(deep=True))
            self._logger.info("insight_upserted", insight_id=insight.id, topic=insight.topic)
            return insight.id

    async def list_recent(
        self,
        limit: int = 10,
        since: Optional[datetime] = None,
    ) -> list[Insight]:
        """Most recently updated insights first."""
        async with self._lock:
            return self._recent(
                lambda i: i.updated_at,
                limit,
                predicate=(lambda i: i.updated_at >= since) if since else None,
            )
