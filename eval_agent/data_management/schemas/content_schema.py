"""Audited content schemas: documents and insights.

Documents are narrative records (site exports, news, projections of insights).
Insights are short derived claims with a rationale. Both are upserted by
content hash so re-applying the same projection does not duplicate rows.
"""

import hashlib
import json
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field


def sha256(text: str) -> str:
    """Hex digest used for content hashes."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class Document(BaseModel):
    """Narrative document in the knowledge store.

    Attributes:
        source: Origin of the document (site, news, insight, ...).
        content: Full text. Fix application rewrites this field.
        summary: Optional short summary, patched alongside content.
        as_of: Effective date of the information, if known.
        content_hash: Upsert key.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    source: str = "site"
    title: Optional[str] = None
    content: str = ""
    summary: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    as_of: Optional[str] = None
    content_hash: str = ""
    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_news(self) -> bool:
        return self.source == "news"


class Insight(BaseModel):
    """Derived claim with rationale, projected into the document store."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    topic: str
    sector: Optional[str] = None
    claim: str
    rationale: str = ""
    evidence_ids: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    confidence: float = Field(default=0.6, ge=0.0, le=1.0)
    as_of: Optional[str] = None
    content_hash: str = ""
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def compute_content_hash(self) -> str:
        """Hash of the fields that define an insight's identity."""
        return sha256(
            "|".join(
                [
                    self.topic,
                    self.sector or "",
                    self.claim,
                    self.rationale,
                    json.dumps(self.evidence_ids),
                ]
            )
        )

    def to_document(self) -> Document:
        """Project this insight into a document (re-derived on every update)."""
        return Document(
            source="insight",
            title=self.topic,
            content=f"Claim: {self.claim}\n\nRationale: {self.rationale}",
            summary=self.claim,
            tags=list(self.tags),
            metadata={"insight_id": self.id, "confidence": self.confidence},
            as_of=self.as_of,
            content_hash=sha256("insight|" + self.id),
        )
