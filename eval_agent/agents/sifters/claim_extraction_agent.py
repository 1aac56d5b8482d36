"""Claim extraction from audited content.

Two extraction paths produce the same Claim objects:
- extract_from_object: deterministic walk of structured page data. Every leaf
  that looks like a factual assertion (numbers with units, dates, named
  policies, comparisons) becomes a claim whose locator is the dotted key path.
- extract_from_text: narrative text is sent to the reasoning capability with a
  JSON contract; malformed items are dropped and duplicates collapsed.

Neither path has side effects. A reasoning failure degrades to an empty list
for that unit of content.
"""

import re
from typing import Any, Optional

from pydantic import ValidationError

from eval_agent.agents.sifters.base_sifter import BaseSifter
from eval_agent.config.prompts import (
    CLAIM_EXTRACTION_SYSTEM_PROMPT,
    CLAIM_EXTRACTION_USER_PROMPT,
)
from eval_agent.config.settings import settings
from eval_agent.data_management.schemas import Claim, ClaimType
from eval_agent.utils.json_extraction import extract_json_array

# Numbers followed by a unit, or preceded by a currency
UNIT_PATTERN = re.compile(
    r"(\d[\d,.]*\s*(%|percent\b|per cent\b|aed\b|usd\b|dhs?\b|million\b|billion\b|"
    r"trillion\b|bn\b|mn\b|km\b|sq\b|years?\b|months?\b|days?\b|hours?\b))"
    r"|((aed|usd|\$|€|£)\s*\d)",
    re.IGNORECASE,
)
YEAR_PATTERN = re.compile(r"\b(19|20)\d{2}\b")
DATE_PATTERN = re.compile(
    r"\b\d{4}-\d{2}(-\d{2})?\b"
    r"|\b(jan|feb|mar|apr|may|jun|jul|aug|sep|sept|oct|nov|dec)[a-z]*\.?\s+\d{4}\b",
    re.IGNORECASE,
)
POLICY_PATTERN = re.compile(
    r"\b(law|decree|visa|tax|vat|excise|regulation|act|policy|licen[cs]e|"
    r"residency|permit|scheme|programme|program)\b",
    re.IGNORECASE,
)
COMPARISON_PATTERN = re.compile(
    r"\b(than|compared|versus|vs\.?|largest|highest|lowest|smallest|ranked|ranks?)\b",
    re.IGNORECASE,
)
DEFINITION_PATTERN = re.compile(r"\b(is defined as|refers to|means|is a|are)\b", re.IGNORECASE)
DIGIT_PATTERN = re.compile(r"\d")

# Keys whose values are presentation or identifiers, never claims
IGNORED_KEYS = frozenset(
    {"id", "url", "href", "link", "image", "icon", "slug", "color", "colour", "key"}
)


def _is_index(segment: str) -> bool:
    return segment.isdigit()


class ClaimExtractor(BaseSifter):
    """
    Extracts atomic factual claims from structured objects and narrative text.

    Attributes:
        max_depth: Maximum nesting depth walked in structured content.
        max_leaf_chars: Longer string leaves are treated as narrative and skipped.
        max_text_chars: Text budget for the reasoning path.
        reasoning: Injected reasoning capability (or lazily created Gemini client).
    """

    MAX_DEPTH = 12
    MAX_LEAF_CHARS = 500

    def __init__(
        self,
        reasoning: Optional[Any] = None,
        max_depth: int = MAX_DEPTH,
        max_leaf_chars: int = MAX_LEAF_CHARS,
        max_text_chars: Optional[int] = None,
    ):
        super().__init__(
            name="ClaimExtractor",
            description="Extracts verifiable claims from page data and text",
        )
        self.max_depth = max_depth
        self.max_leaf_chars = max_leaf_chars
        self.max_text_chars = max_text_chars or settings.max_text_chars
        self._reasoning = reasoning

    @property
    def reasoning(self):
        """Lazy-load the reasoning capability on first access."""
        if self._reasoning is None:
            self._reasoning = self._get_reasoning_client()
        return self._reasoning

    def _get_reasoning_client(self):
        """Initialize the Gemini client from settings."""
        from eval_agent.llm.gemini_client import GeminiClient

        try:
            return GeminiClient()
        except ValueError as e:
            self.logger.warning(f"Reasoning capability unavailable: {e}")
            return None

    # ── Structured content ────────────────────────────────────────────

    def extract_from_object(self, content: Any, locator_prefix: str) -> list[Claim]:
        """
        Walk nested page data and emit one claim per assertion-like leaf.

        Args:
            content: Nested dict/list structure (page data).
            locator_prefix: First locator segment, usually the page name.

        Returns:
            Claims in walk order. Identical input yields identical output.
        """
        claims: list[Claim] = []
        prefix = [locator_prefix] if locator_prefix else []
        self._walk(content, prefix, set(), claims)
        self.logger.debug(
            f"Extracted {len(claims)} claims from object",
            locator_prefix=locator_prefix,
        )
        return claims

    def _walk(
        self,
        node: Any,
        path: list[str],
        ancestors: set[int],
        claims: list[Claim],
    ) -> None:
        if isinstance(node, (dict, list, tuple)):
            if id(node) in ancestors:
                self.logger.warning(f"Cycle detected at {'.'.join(path)}, truncating")
                return
            if len(path) > self.max_depth:
                self.logger.warning(f"Max depth reached at {'.'.join(path)}, truncating")
                return

            ancestors.add(id(node))
            try:
                if isinstance(node, dict):
                    labelled = self._labelled_pair(node, path)
                    if labelled is not None:
                        claims.append(labelled)
                        return
                    for key, value in node.items():
                        if str(key).lower() in IGNORED_KEYS:
                            continue
                        self._walk(value, path + [str(key)], ancestors, claims)
                else:
                    for index, value in enumerate(node):
                        self._walk(value, path + [str(index)], ancestors, claims)
            finally:
                ancestors.discard(id(node))
            return

        claim = self._leaf_claim(node, path)
        if claim is not None:
            claims.append(claim)

    def _labelled_pair(self, node: dict, path: list[str]) -> Optional[Claim]:
        """Collapse ``{"label": ..., "value": ...}`` rows into one claim."""
        label = node.get("label")
        value = node.get("value")
        if not isinstance(label, str) or not label.strip():
            return None
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            return None
        current_text = str(value).strip()
        if not current_text:
            return None
        claim_type = self._classify(current_text, label, numeric=not isinstance(value, str))
        if claim_type is None:
            return None
        return Claim(
            text=f"{label.strip()}: {current_text}",
            claim_type=claim_type,
            locator=".".join(path + ["value"]),
            current_text=current_text,
        )

    def _leaf_claim(self, value: Any, path: list[str]) -> Optional[Claim]:
        if value is None or isinstance(value, bool) or not path:
            return None

        if isinstance(value, (int, float)):
            current_text = str(value)
            claim_type: Optional[ClaimType] = ClaimType.NUMERIC
        elif isinstance(value, str):
            current_text = value.strip()
            if not current_text or len(current_text) > self.max_leaf_chars:
                return None
            if current_text.startswith(("http://", "https://", "/", "#")):
                return None
            claim_type = self._classify(current_text, self._label(path))
        else:
            return None

        if claim_type is None:
            return None
        return Claim(
            text=f"{self._label(path)}: {current_text}",
            claim_type=claim_type,
            locator=".".join(path),
            current_text=current_text,
        )

    @staticmethod
    def _classify(text: str, label: str, numeric: bool = False) -> Optional[ClaimType]:
        """Decide whether a leaf is an assertion and of which kind."""
        if numeric:
            return ClaimType.NUMERIC
        has_digit = bool(DIGIT_PATTERN.search(text))
        if has_digit and COMPARISON_PATTERN.search(text):
            return ClaimType.COMPARISON
        if UNIT_PATTERN.search(text):
            return ClaimType.NUMERIC
        if DATE_PATTERN.search(text) or (YEAR_PATTERN.search(text) and len(text) > 4):
            return ClaimType.TIMELINE
        if POLICY_PATTERN.search(text) or (has_digit and POLICY_PATTERN.search(label)):
            return ClaimType.POLICY
        if COMPARISON_PATTERN.search(text):
            return ClaimType.COMPARISON
        if YEAR_PATTERN.fullmatch(text):
            return ClaimType.TIMELINE
        if DEFINITION_PATTERN.search(text) and len(text.split()) >= 4:
            return ClaimType.DEFINITION
        return None

    @staticmethod
    def _label(path: list[str]) -> str:
        """Human-readable label: last two non-index path segments."""
        named = [segment for segment in path if not _is_index(segment)]
        return " ".join(named[-2:]) if named else ".".join(path)

    # ── Narrative text ────────────────────────────────────────────────

    async def extract_from_text(
        self,
        text: str,
        context: Optional[dict[str, Any]] = None,
    ) -> list[Claim]:
        """
        Extract claims from narrative text via the reasoning capability.

        Args:
            text: Narrative content. Truncated to max_text_chars.
            context: Where the text lives. The first of ``page``, ``document``
                or ``insight`` becomes the locator prefix; remaining keys are
                passed to the model as context.

        Returns:
            Validated, de-duplicated claims. Empty on any reasoning failure.
        """
        context = context or {}
        if not text or not text.strip():
            return []

        location = self._location(context)
        truncated = text[: self.max_text_chars]
        if len(text) > self.max_text_chars:
            self.logger.debug(f"Truncated text from {len(text)} to {self.max_text_chars} chars")

        client = self.reasoning
        if client is None:
            return []

        user_message = CLAIM_EXTRACTION_USER_PROMPT.format(
            location=location,
            context=", ".join(f"{k}={v}" for k, v in context.items()) or "none",
            text=truncated,
        )
        try:
            response_text = await client.complete(CLAIM_EXTRACTION_SYSTEM_PROMPT, user_message)
        except Exception as e:
            self.logger.warning(f"Claim extraction failed for {location}: {e}")
            return []

        raw_items = extract_json_array(response_text)
        if raw_items is None:
            self.logger.warning(f"No JSON array in extraction response for {location}")
            return []

        claims = self._parse_items(raw_items, location)
        self.logger.info(f"Extracted {len(claims)} claims from text", location=location)
        return claims

    @staticmethod
    def _location(context: dict[str, Any]) -> str:
        for key in ("page", "document", "insight"):
            value = context.get(key)
            if value:
                return str(value)
        return "content"

    def _parse_items(self, raw_items: list, location: str) -> list[Claim]:
        claims: list[Claim] = []
        seen: set[tuple[str, str]] = set()

        for item in raw_items:
            if not isinstance(item, dict):
                continue
            text = item.get("claim")
            claim_type = item.get("claim_type")
            locator = item.get("object_locator")
            current_text = item.get("current_text")
            if not all(
                isinstance(v, str) and v.strip()
                for v in (text, claim_type, locator, current_text)
            ):
                continue

            locator = locator.strip()
            if locator != location and not locator.startswith(f"{location}."):
                locator = f"{location}.{locator}"

            try:
                claim = Claim(
                    text=text,
                    claim_type=ClaimType(claim_type.strip().lower()),
                    locator=locator,
                    current_text=current_text,
                )
            except (ValueError, ValidationError):
                continue

            key = (claim.locator, claim.text)
            if key in seen:
                continue
            seen.add(key)
            claims.append(claim)

        return claims

    # ── Sifter interface ──────────────────────────────────────────────

    async def sift(self, content: dict) -> list[dict]:
        """
        Extract claims from one unit of content.

        Args:
            content: Either {'object': ..., 'locator_prefix': str} for
                structured data or {'text': str, 'context': dict}.

        Returns:
            List of claim dicts.
        """
        if "object" in content:
            claims = self.extract_from_object(
                content["object"], content.get("locator_prefix", "")
            )
        else:
            claims = await self.extract_from_text(
                content.get("text", ""), content.get("context")
            )
        return [c.model_dump(mode="json") for c in claims]

    def get_capabilities(self) -> list[str]:
        return ["claim_extraction", "structured_walk", "text_extraction"]
