"""Content-scope provider: resolves a run scope into the content to audit.

The pipeline never reads stores directly. It asks a provider for a
``ContentSnapshot`` of pages (structured data), documents and insights, so
tests can hand in fixed snapshots and deployments can swap in a live export.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Protocol, runtime_checkable

from eval_agent.config.settings import settings
from eval_agent.data_management.content_store import DocumentStore, InsightStore
from eval_agent.data_management.schemas import Document, Insight, RunScope
from eval_agent.errors import UpstreamFailureError


@dataclass
class ContentSnapshot:
    """Content selected for one run.

    Attributes:
        pages: Page name -> structured page data.
        documents: Documents, most recently updated first.
        insights: Insights, most recently updated first.
    """

    pages: dict[str, Any] = field(default_factory=dict)
    documents: list[Document] = field(default_factory=list)
    insights: list[Insight] = field(default_factory=list)


@runtime_checkable
class ContentScopeProvider(Protocol):
    async def fetch(self, scope: RunScope) -> ContentSnapshot:
        ...


class StoreContentProvider:
    """Reads pages from a snapshot (dict or JSON file) and the content stores.

    Attributes:
        documents_limit: Recent documents/insights returned when the scope
            does not name documents.
    """

    def __init__(
        self,
        document_store: DocumentStore,
        insight_store: InsightStore,
        pages: Optional[dict[str, Any]] = None,
        pages_snapshot_path: Optional[str] = None,
        documents_limit: Optional[int] = None,
    ) -> None:
        self.document_store = document_store
        self.insight_store = insight_store
        self._pages = pages
        self._pages_snapshot_path = Path(pages_snapshot_path) if pages_snapshot_path else None
        self.documents_limit = documents_limit or settings.recent_documents_limit

    def _load_pages(self) -> dict[str, Any]:
        if self._pages is not None:
            return self._pages
        if self._pages_snapshot_path is None:
            return {}
        try:
            with open(self._pages_snapshot_path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise UpstreamFailureError(
                f"Failed to read pages snapshot {self._pages_snapshot_path}: {e}"
            ) from e
        # Site exports wrap pages as {"pages": {...}}
        if isinstance(data, dict) and isinstance(data.get("pages"), dict):
            data = data["pages"]
        if not isinstance(data, dict):
            raise UpstreamFailureError("Pages snapshot must be a JSON object")
        return data

    async def fetch(self, scope: RunScope) -> ContentSnapshot:
        pages = self._load_pages()
        if scope.pages is not None:
            pages = {name: data for name, data in pages.items() if name in scope.pages}

        if scope.documents is not None:
            documents = await self.document_store.list_recent(
                limit=len(scope.documents), since=scope.since, ids=scope.documents
            )
        else:
            documents = await self.document_store.list_recent(
                limit=self.documents_limit, since=scope.since
            )
        insights = await self.insight_store.list_recent(
            limit=self.documents_limit, since=scope.since
        )
        return ContentSnapshot(pages=pages, documents=documents, insights=insights)
