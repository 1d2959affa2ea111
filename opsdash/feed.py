"""Next-task feed: load chain, lookup maps and view state.

The feed keeps one canonical task list. The filtered view is derived from it
on every read, so a mutation only has to patch the canonical list and the view
can never keep a record the active filters would now exclude.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

from opsdash.cascade import CascadeResult, clear_next_task_references
from opsdash.client import ApiClient, unwrap_list
from opsdash.filters import active_filters, filter_tasks

logger = logging.getLogger(__name__)

CASCADE_FAILED_MESSAGE = "Some jobs could not be updated. Please refresh and try again."


def build_lookup(records: Iterable[Mapping[str, Any]], *, key: str = "id", label: str = "name") -> Dict[str, str]:
    """Flat id -> display name table; records without either field are skipped."""
    lookup: Dict[str, str] = {}
    for record in records:
        rid = record.get(key)
        name = record.get(label)
        if rid and name:
            lookup[str(rid)] = str(name)
    return lookup


def owner_names_by_task(tasks: Iterable[Mapping[str, Any]], owner_map: Mapping[str, str]) -> Dict[str, str]:
    """Task id -> owner display name, for cards that show who holds a job's next task."""
    names: Dict[str, str] = {}
    for task in tasks:
        owner = task.get("owner")
        if task.get("id") and owner in owner_map:
            names[str(task["id"])] = owner_map[owner]
    return names


@dataclass
class FeedOutcome:
    ok: bool
    message: str
    cascade: Optional[CascadeResult] = None

    @property
    def cascade_failed(self) -> bool:
        return self.cascade is not None and not self.cascade.ok


@dataclass
class TaskFeed:
    tasks: List[Dict[str, Any]] = field(default_factory=list)
    jobs: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    owners: List[Dict[str, Any]] = field(default_factory=list)
    business_functions: List[Dict[str, Any]] = field(default_factory=list)
    filters: Dict[str, Any] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)

    @property
    def owner_map(self) -> Dict[str, str]:
        return build_lookup(self.owners)

    @property
    def business_function_map(self) -> Dict[str, str]:
        return build_lookup(self.business_functions)

    def visible(self) -> List[Dict[str, Any]]:
        return filter_tasks(self.tasks, self.filters, self.jobs)

    def set_filters(self, filters: Optional[Mapping[str, Any]]) -> None:
        self.filters = active_filters(filters)

    def find(self, task_id: str) -> Optional[Dict[str, Any]]:
        for task in self.tasks:
            if task.get("id") == task_id:
                return task
        return None

    def job_for(self, task: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        job_id = task.get("jobId")
        return self.jobs.get(job_id) if job_id else None

    # ---------------- mutations ----------------

    def _replace(self, task_id: str, changes: Mapping[str, Any]) -> None:
        self.tasks = [{**t, **changes} if t.get("id") == task_id else t for t in self.tasks]

    def _drop(self, task_id: str) -> None:
        self.tasks = [t for t in self.tasks if t.get("id") != task_id]

    def _cascade(self, client: ApiClient, task_id: str) -> CascadeResult:
        result = clear_next_task_references(client, list(self.jobs.values()), task_id)
        for job_id in result.cleared:
            if job_id in self.jobs:
                self.jobs[job_id] = {**self.jobs[job_id], "nextTaskId": None}
        return result

    def complete(self, client: ApiClient, task_id: str) -> FeedOutcome:
        result = client.update_task(task_id, {"completed": True})
        if not result.success:
            logger.error("completing task %s failed: %s", task_id, result.error)
            return FeedOutcome(False, "Failed to complete task")

        # A completed task is nobody's next step any more, so it leaves the feed.
        self._replace(task_id, {"completed": True})
        cascade = self._cascade(client, task_id)
        self._drop(task_id)
        return FeedOutcome(True, "Task completed. Great job!", cascade)

    def reopen(self, client: ApiClient, task_id: str) -> FeedOutcome:
        result = client.update_task(task_id, {"completed": False})
        if not result.success:
            logger.error("reopening task %s failed: %s", task_id, result.error)
            return FeedOutcome(False, "Failed to reopen task")
        self._replace(task_id, {"completed": False})
        return FeedOutcome(True, "Task has been reopened")

    def edit(self, client: ApiClient, task_id: str, changes: Mapping[str, Any]) -> FeedOutcome:
        result = client.update_task(task_id, dict(changes))
        if not result.success:
            logger.error("updating task %s failed: %s", task_id, result.error)
            return FeedOutcome(False, "Failed to update task")
        self._replace(task_id, changes)
        return FeedOutcome(True, "Task updated successfully")

    def delete(self, client: ApiClient, task_id: str) -> FeedOutcome:
        result = client.delete_task(task_id)
        if not result.success:
            logger.error("deleting task %s failed: %s", task_id, result.error)
            return FeedOutcome(False, "Failed to delete task")
        self._drop(task_id)
        cascade = self._cascade(client, task_id)
        return FeedOutcome(True, "Task deleted successfully", cascade)


def load_feed(client: ApiClient, filters: Optional[Mapping[str, Any]] = None) -> TaskFeed:
    """Jobs, then their next tasks one at a time, then business functions and owners."""
    feed = TaskFeed()
    feed.set_filters(filters)

    jobs_result = client.list_jobs()
    if not jobs_result.success or not isinstance(jobs_result.data, list):
        logger.error("loading jobs failed: %s", jobs_result.error)
        feed.errors.append("Failed to load tasks")
        return feed

    next_task_ids: List[str] = []
    business_function_ids: List[str] = []
    for job in jobs_result.data:
        if job.get("id"):
            feed.jobs[job["id"]] = job
        next_id = job.get("nextTaskId")
        if next_id and next_id not in next_task_ids:
            next_task_ids.append(next_id)
        bf_id = job.get("businessFunctionId")
        if bf_id and bf_id not in business_function_ids:
            business_function_ids.append(bf_id)

    if business_function_ids:
        bf_result = client.list_business_functions()
        if bf_result.success:
            feed.business_functions = unwrap_list(bf_result)
        else:
            logger.error("loading business functions failed: %s", bf_result.error)

    for task_id in next_task_ids:
        task_result = client.get_task(task_id)
        if task_result.success and task_result.data:
            feed.tasks.append(task_result.data)
        else:
            logger.warning("next task %s could not be loaded: %s", task_id, task_result.error)

    owners_result = client.list_owners()
    if owners_result.success:
        feed.owners = unwrap_list(owners_result)
    else:
        logger.error("loading owners failed: %s", owners_result.error)

    logger.debug("feed loaded: %d jobs, %d next tasks", len(feed.jobs), len(feed.tasks))
    return feed
