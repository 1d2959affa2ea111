"""Task filter engine.

Each recognised filter key maps to a predicate over (task, parent job, value);
a task is kept when every active predicate holds. Values of None, "" or "any"
mean the filter is inactive. Unknown keys are ignored.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

Record = Mapping[str, Any]
Predicate = Callable[[Record, Optional[Record], Any], bool]

INACTIVE_VALUES = (None, "", "any")


def parse_date(value: Any) -> Optional[date]:
    """Day-granularity date from a date, datetime or ISO string; None when unparseable."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        return None


def _as_float(value: Any) -> Optional[float]:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _field_equals(field: str) -> Predicate:
    def predicate(task: Record, _job: Optional[Record], value: Any) -> bool:
        return task.get(field) == value

    return predicate


def _min_hours(task: Record, _job: Optional[Record], value: Any) -> bool:
    hours = _as_float(task.get("requiredHours"))
    bound = _as_float(value)
    return hours is not None and bound is not None and hours >= bound


def _max_hours(task: Record, _job: Optional[Record], value: Any) -> bool:
    hours = _as_float(task.get("requiredHours"))
    bound = _as_float(value)
    return hours is not None and bound is not None and hours <= bound


def _due_by(task: Record, _job: Optional[Record], value: Any) -> bool:
    task_date = parse_date(task.get("date"))
    limit = parse_date(value)
    return task_date is not None and limit is not None and task_date <= limit


def _business_function(_task: Record, job: Optional[Record], value: Any) -> bool:
    return job is not None and job.get("businessFunctionId") == value


PREDICATES: Dict[str, Predicate] = {
    "focusLevel": _field_equals("focusLevel"),
    "joyLevel": _field_equals("joyLevel"),
    "owner": _field_equals("owner"),
    "minHours": _min_hours,
    "maxHours": _max_hours,
    "dueDate": _due_by,
    "businessFunctionId": _business_function,
}


def active_filters(filters: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Recognised keys whose value actually constrains the result."""
    return {
        key: value
        for key, value in (filters or {}).items()
        if key in PREDICATES and value not in INACTIVE_VALUES
    }


def filter_tasks(
    tasks: Sequence[Record],
    filters: Optional[Mapping[str, Any]],
    jobs: Optional[Mapping[str, Record]] = None,
) -> List[Record]:
    """Return the tasks matching every active filter, in input order.

    `jobs` maps job id to job record and resolves each task's parent through
    its `jobId`. The input sequence and its records are never modified.
    """
    checks = active_filters(filters)
    if not checks:
        return list(tasks)

    jobs = jobs or {}
    matched: List[Record] = []
    for task in tasks:
        job_id = task.get("jobId")
        job = jobs.get(job_id) if job_id else None
        if all(PREDICATES[key](task, job, value) for key, value in checks.items()):
            matched.append(task)
    return matched
