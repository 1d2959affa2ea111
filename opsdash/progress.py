from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping


@dataclass(frozen=True)
class JobProgress:
    completed: int
    total: int

    @property
    def percentage(self) -> int:
        """Completed share as a whole percent, rounded half up; 0 for a job without tasks."""
        if self.total == 0:
            return 0
        return int(math.floor(self.completed / self.total * 100 + 0.5))

    def to_dict(self) -> Dict[str, int]:
        return {"completed": self.completed, "total": self.total}


def job_progress(tasks: Iterable[Mapping[str, Any]], job_id: str) -> JobProgress:
    completed = 0
    total = 0
    for task in tasks:
        if task.get("jobId") != job_id:
            continue
        total += 1
        if task.get("completed"):
            completed += 1
    return JobProgress(completed=completed, total=total)


def progress_by_job(tasks: Iterable[Mapping[str, Any]], job_ids: Iterable[str]) -> Dict[str, JobProgress]:
    tasks = list(tasks)
    return {job_id: job_progress(tasks, job_id) for job_id in job_ids}
