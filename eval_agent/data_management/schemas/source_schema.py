"""Trusted source registry schema.

Sources are reference data edited by operators. The pipeline only reads them:
the rules checker ranks them per claim and the judge lists them in prompts.

Category precedence (used to break trust_level ties):
1. official          - government portals and ministries
2. international-org - IMF, World Bank, OECD
3. regulator         - central bank, free-zone and financial regulators
4. reputable-media   - established news outlets
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class SourceCategory(str, Enum):
    """Category of a trusted source."""

    OFFICIAL = "official"
    INTERNATIONAL_ORG = "international-org"
    REGULATOR = "regulator"
    REPUTABLE_MEDIA = "reputable-media"


# Lower rank wins when trust levels tie
CATEGORY_PRIORITY: dict[SourceCategory, int] = {
    SourceCategory.OFFICIAL: 0,
    SourceCategory.INTERNATIONAL_ORG: 1,
    SourceCategory.REGULATOR: 2,
    SourceCategory.REPUTABLE_MEDIA: 3,
}


class Source(BaseModel):
    """A trusted source the judge may cite.

    Attributes:
        id: Stable identifier.
        name: Display name (e.g. "Federal Tax Authority").
        category: SourceCategory.
        base_url: Canonical URL of the source.
        trust_level: Operator-assigned trust from 1 (low) to 5 (high).
        active: Inactive sources are ignored by the pipeline.
        notes: Free-form operator notes.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str = Field(..., min_length=1)
    category: SourceCategory
    base_url: str = Field(..., min_length=1)
    trust_level: int = Field(..., ge=1, le=5)
    active: bool = True
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def rank_key(self) -> tuple[int, int, str]:
        """Sort key: trust desc, category precedence, then name."""
        return (-self.trust_level, CATEGORY_PRIORITY[self.category], self.name)

    def to_reference(self) -> dict[str, str]:
        """Render as an issue reference entry."""
        return {"url": self.base_url, "source": self.name}

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Federal Tax Authority",
                    "category": "regulator",
                    "base_url": "https://tax.gov.ae",
                    "trust_level": 5,
                    "active": True,
                }
            ]
        }
    }
