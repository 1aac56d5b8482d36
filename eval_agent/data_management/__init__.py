"""Data management package for the eval agent.

Storage adapters (in-memory with optional JSON persistence):
- SourceStore: trusted source registry (read-only to the pipeline)
- RunStore: eval runs with single terminal transition
- IssueStore: eval issues with conditional status transitions
- DocumentStore / InsightStore: audited content that fixes are written to
"""

from eval_agent.data_management.content_store import DocumentStore, InsightStore
from eval_agent.data_management.issue_store import IssueStore
from eval_agent.data_management.run_store import RunStore
from eval_agent.data_management.source_store import SourceStore

__all__ = [
    "SourceStore",
    "RunStore",
    "IssueStore",
    "DocumentStore",
    "InsightStore",
]
