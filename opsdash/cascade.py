from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Protocol

logger = logging.getLogger(__name__)


class JobUpdater(Protocol):
    def update_job(self, job_id: str, changes: dict) -> Any: ...


@dataclass
class CascadeResult:
    cleared: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


def jobs_pointing_at(jobs: Iterable[Mapping[str, Any]], task_id: str) -> List[Mapping[str, Any]]:
    return [job for job in jobs if task_id and job.get("nextTaskId") == task_id]


def clear_next_task_references(
    client: JobUpdater,
    jobs: Iterable[Mapping[str, Any]],
    task_id: str,
) -> CascadeResult:
    """Clear `nextTaskId` on every job that designates `task_id` as its next task.

    Best effort: each job is updated independently, a failure is logged and
    recorded but does not stop the remaining updates and is not retried.
    """
    result = CascadeResult()
    for job in jobs_pointing_at(jobs, task_id):
        job_id = str(job.get("id"))
        try:
            outcome = client.update_job(job_id, {"nextTaskId": None})
        except Exception:  # noqa: BLE001 - any failure counts as a failed clear
            logger.exception("clearing next task on job %s failed", job_id)
            result.failed.append(job_id)
            continue
        if getattr(outcome, "success", False):
            result.cleared.append(job_id)
        else:
            logger.warning(
                "clearing next task on job %s failed: %s", job_id, getattr(outcome, "error", outcome)
            )
            result.failed.append(job_id)
    return result
