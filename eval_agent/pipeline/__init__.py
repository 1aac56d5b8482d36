"""Pipeline orchestration for the eval agent.

Provides:
- EvalPipeline: runs daily_rules / weekly_factcheck / on_demand evaluations
- IssueReviewService: approve/dismiss with conditional status writes
- StoreContentProvider: resolves a run scope into pages, documents, insights

Usage:
    from eval_agent.pipeline import EvalPipeline, IssueReviewService

    pipeline = EvalPipeline(run_store, issue_store, source_store, provider)
    result = await pipeline.run(RunType.WEEKLY_FACTCHECK)
"""

from eval_agent.pipeline.content_scope import (
    ContentScopeProvider,
    ContentSnapshot,
    StoreContentProvider,
)
from eval_agent.pipeline.eval_pipeline import EvalPipeline
from eval_agent.pipeline.issue_review import IssueReviewService, ReviewAction

__all__ = [
    "ContentScopeProvider",
    "ContentSnapshot",
    "EvalPipeline",
    "IssueReviewService",
    "ReviewAction",
    "StoreContentProvider",
]
