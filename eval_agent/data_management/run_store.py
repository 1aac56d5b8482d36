"""Eval run storage.

Runs are created RUNNING and finalized exactly once. ``finish`` is a
conditional write: it succeeds only while the run is still RUNNING, so a run
can never be finalized twice or flip between DONE and FAILED.
"""

from datetime import datetime, timezone
from typing import Optional

from eval_agent.data_management.base_store import ModelStore
from eval_agent.data_management.schemas import EvalRun, RunStatus, RunSummary
from eval_agent.errors import ConflictError, NotFoundError


class RunStore(ModelStore[EvalRun]):
    """Storage for eval runs, ordered by start time."""

    model_cls = EvalRun

    async def create(self, run: EvalRun) -> EvalRun:
        """Persist a new run (must be RUNNING)."""
        if run.status is not RunStatus.RUNNING:
            raise ConflictError(f"New runs must start running, got {run.status.value}")
        await self.save(run)
        self._logger.info("run_created", run_id=run.id, run_type=run.run_type.value)
        return run

    async def append_logs(self, run_id: str, lines: list[str]) -> None:
        """Append log lines to a run that is still in progress."""
        if not lines:
            return
        async with self._lock:
            stored = self._records.get(run_id)
            if stored is None:
                raise NotFoundError(f"Run not found: {run_id}")
            existing = [stored.logs] if stored.logs else []
            self._commit(stored.model_copy(update={"logs": "\n".join(existing + lines)}, deep=True))

    async def finish(
        self,
        run_id: str,
        status: RunStatus,
        summary: Optional[RunSummary] = None,
        logs: Optional[str] = None,
    ) -> EvalRun:
        """Move a run from RUNNING to a terminal status.

        Args:
            run_id: Run to finalize.
            status: DONE or FAILED.
            summary: Aggregated counts (kept as-is when None).
            logs: Extra log text appended to existing logs.

        Raises:
            NotFoundError: Unknown run.
            ConflictError: Run is already terminal or status is not terminal.
        """
        if not status.is_terminal:
            raise ConflictError("Runs can only be finished as done or failed")

        async with self._lock:
            run = self._records.get(run_id)
            if run is None:
                raise NotFoundError(f"Run not found: {run_id}")
            if run.status is not RunStatus.RUNNING:
                raise ConflictError(
                    f"Run {run_id} already {run.status.value}",
                    details={"run_id": run_id, "status": run.status.value},
                )

            run = run.model_copy(deep=True)
            run.status = status
            run.finished_at = datetime.now(timezone.utc)
            if summary is not None:
                run.summary = summary.model_copy(deep=True)
            if logs:
                run.logs = f"{run.logs}\n{logs}" if run.logs else logs
            finished = self._commit(run)

            self._logger.info("run_finished", run_id=run_id, status=status.value)
            return finished

    async def list_recent(self, limit: int = 10) -> list[EvalRun]:
        """Most recently started runs first."""
        async with self._lock:
            return self._recent(lambda r: r.started_at, limit)
