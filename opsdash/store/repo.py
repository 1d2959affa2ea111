"""Repository functions for the dashboard store.

Every function takes the database URL first so the API can be pointed at any
SQLAlchemy backend (and tests at a throwaway SQLite file). Records leave this
module as plain dicts in the camelCase wire format produced by `to_dict()`.

Update functions accept a dict of snake_case column names; keys that are
present are applied (including None, which clears the column), keys that are
absent are left alone.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy import or_, select

from opsdash.store.db import get_engine, session_scope
from opsdash.store.models import (
    QBO,
    Base,
    BusinessFunction,
    BusinessInfo,
    ChatHistory,
    Job,
    Owner,
    Task,
)

DEFAULT_OWNERS = ["Founder", "Operations Lead", "Sales Lead"]
DEFAULT_BUSINESS_FUNCTIONS = [
    "Product",
    "Design",
    "Engineering",
    "Marketing",
    "Sales",
    "Operations",
    "Finance",
]

_JOB_FIELDS = ("title", "owner", "business_function_id", "due_date", "next_task_id")
_TASK_FIELDS = (
    "title",
    "job_id",
    "owner",
    "completed",
    "focus_level",
    "joy_level",
    "required_hours",
    "date",
    "tags",
    "notes",
)
_QBO_FIELDS = (
    "name",
    "unit",
    "beginning_value",
    "current_value",
    "target_value",
    "deadline",
    "points",
    "notes",
)


def init_db(database_url: str) -> None:
    """Create all tables if they don't exist. Safe to call multiple times."""
    engine = get_engine(database_url)
    Base.metadata.create_all(engine)


def ensure_seed_data(
    database_url: str,
    *,
    owners: Sequence[str] = DEFAULT_OWNERS,
    business_functions: Sequence[str] = DEFAULT_BUSINESS_FUNCTIONS,
) -> None:
    """Insert default owners / business functions when their tables are empty."""
    with session_scope(database_url) as s:
        if s.execute(select(Owner.id).limit(1)).first() is None:
            s.add_all(Owner(name=n) for n in owners)
        if s.execute(select(BusinessFunction.id).limit(1)).first() is None:
            s.add_all(BusinessFunction(name=n) for n in business_functions)
        s.commit()


def _apply(record: Any, fields: Iterable[str], changes: Dict[str, Any]) -> None:
    for name in fields:
        if name not in changes:
            continue
        value = changes[name]
        if name == "tags":
            value = json.dumps(list(value or []), ensure_ascii=False)
        setattr(record, name, value)


# ---------------- Jobs ----------------


def list_jobs(database_url: str) -> List[Dict[str, Any]]:
    with session_scope(database_url) as s:
        jobs = s.execute(select(Job).order_by(Job.created_at.asc())).scalars().all()
        return [j.to_dict() for j in jobs]


def get_job(database_url: str, job_id: str) -> Optional[Dict[str, Any]]:
    with session_scope(database_url) as s:
        j = s.get(Job, job_id)
        return j.to_dict() if j else None


def create_job(database_url: str, fields: Dict[str, Any]) -> Dict[str, Any]:
    with session_scope(database_url) as s:
        j = Job(title=fields.get("title") or "Untitled")
        _apply(j, _JOB_FIELDS[1:], fields)
        s.add(j)
        s.commit()
        return j.to_dict()


def update_job(database_url: str, job_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    with session_scope(database_url) as s:
        j = s.get(Job, job_id)
        if not j:
            return None
        _apply(j, _JOB_FIELDS, changes)
        s.commit()
        return j.to_dict()


def delete_job(database_url: str, job_id: str) -> bool:
    """Delete a job. Its tasks stay in place with a dangling jobId."""
    with session_scope(database_url) as s:
        j = s.get(Job, job_id)
        if not j:
            return False
        s.delete(j)
        s.commit()
        return True


# ---------------- Tasks ----------------


def list_tasks(database_url: str, *, job_ids: Optional[Sequence[str]] = None) -> List[Dict[str, Any]]:
    with session_scope(database_url) as s:
        q = select(Task).order_by(Task.created_at.asc())
        if job_ids is not None:
            q = q.where(Task.job_id.in_(list(job_ids)))
        tasks = s.execute(q).scalars().all()
        return [t.to_dict() for t in tasks]


def get_task(database_url: str, task_id: str) -> Optional[Dict[str, Any]]:
    with session_scope(database_url) as s:
        t = s.get(Task, task_id)
        return t.to_dict() if t else None


def create_task(database_url: str, fields: Dict[str, Any]) -> Dict[str, Any]:
    with session_scope(database_url) as s:
        t = Task(title=fields.get("title") or "Untitled", completed=bool(fields.get("completed", False)))
        _apply(t, [f for f in _TASK_FIELDS if f not in ("title", "completed")], fields)
        s.add(t)
        s.commit()
        return t.to_dict()


def update_task(database_url: str, task_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    with session_scope(database_url) as s:
        t = s.get(Task, task_id)
        if not t:
            return None
        _apply(t, _TASK_FIELDS, changes)
        s.commit()
        return t.to_dict()


def delete_task(database_url: str, task_id: str) -> bool:
    with session_scope(database_url) as s:
        t = s.get(Task, task_id)
        if not t:
            return False
        s.delete(t)
        s.commit()
        return True


# ---------------- Owners / business functions (read-only) ----------------


def list_owners(database_url: str) -> List[Dict[str, Any]]:
    with session_scope(database_url) as s:
        rows = s.execute(select(Owner).order_by(Owner.name.asc())).scalars().all()
        return [o.to_dict() for o in rows]


def list_business_functions(database_url: str) -> List[Dict[str, Any]]:
    with session_scope(database_url) as s:
        rows = s.execute(select(BusinessFunction).order_by(BusinessFunction.name.asc())).scalars().all()
        return [bf.to_dict() for bf in rows]


# ---------------- QBOs ----------------


def list_qbos(database_url: str, user_id: str) -> List[Dict[str, Any]]:
    with session_scope(database_url) as s:
        q = select(QBO).where(QBO.user_id == user_id).order_by(QBO.created_at.asc())
        return [r.to_dict() for r in s.execute(q).scalars().all()]


def create_qbo(database_url: str, user_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
    with session_scope(database_url) as s:
        r = QBO(user_id=user_id, name=fields.get("name") or "Untitled")
        _apply(r, _QBO_FIELDS[1:], fields)
        s.add(r)
        s.commit()
        return r.to_dict()


def update_qbo(database_url: str, user_id: str, qbo_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    with session_scope(database_url) as s:
        r = s.get(QBO, qbo_id)
        if not r or r.user_id != user_id:
            return None
        _apply(r, _QBO_FIELDS, changes)
        s.commit()
        return r.to_dict()


def delete_qbo(database_url: str, user_id: str, qbo_id: str) -> bool:
    with session_scope(database_url) as s:
        r = s.get(QBO, qbo_id)
        if not r or r.user_id != user_id:
            return False
        s.delete(r)
        s.commit()
        return True


# ---------------- Onboarding ----------------


def upsert_business_info(database_url: str, user_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
    with session_scope(database_url) as s:
        r = s.execute(select(BusinessInfo).where(BusinessInfo.user_id == user_id)).scalars().first()
        if r is None:
            r = BusinessInfo(user_id=user_id)
            s.add(r)
        r.name = fields.get("name") or r.name or "Untitled"
        r.industry = fields.get("industry", r.industry)
        r.mission_statement = fields.get("mission_statement", r.mission_statement)
        r.months_in_business = int(fields.get("months_in_business") or 0)
        r.annual_revenue = float(fields.get("annual_revenue") or 0.0)
        r.growth_stage = fields.get("growth_stage", r.growth_stage)
        r.updated_at = datetime.utcnow()
        s.commit()
        return r.to_dict()


def create_chat_history(
    database_url: str,
    user_id: str,
    *,
    messages: List[Dict[str, str]],
    title: Optional[str] = None,
    chat_id: Optional[str] = None,
) -> Dict[str, Any]:
    with session_scope(database_url) as s:
        r = ChatHistory(user_id=user_id, title=title, messages=json.dumps(messages, ensure_ascii=False))
        if chat_id:
            r.id = chat_id
        s.add(r)
        s.commit()
        return r.to_dict()


def get_chat_history(database_url: str, user_id: str, chat_id: str) -> Optional[Dict[str, Any]]:
    with session_scope(database_url) as s:
        r = s.get(ChatHistory, chat_id)
        if not r or r.user_id != user_id:
            return None
        return r.to_dict()


# ---------------- Search ----------------


def _like_pattern(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _task_matches(task: Dict[str, Any], needle: str) -> bool:
    if needle in (task.get("title") or "").casefold() or needle in (task.get("notes") or "").casefold():
        return True
    return any(needle in str(tag).casefold() for tag in task.get("tags") or [])


def search(database_url: str, query: str, *, limit: int = 50) -> List[Dict[str, Any]]:
    """Case-insensitive substring match over job titles and task title/notes/tags.

    Tags are matched value by value, never against their stored JSON text; the
    SQL clause on the tags column only narrows the candidate rows.
    """
    text = query.strip()
    pattern = _like_pattern(text)
    needle = text.casefold()
    results: List[Dict[str, Any]] = []
    with session_scope(database_url) as s:
        jobs = (
            s.execute(
                select(Job)
                .where(Job.title.ilike(pattern, escape="\\"))
                .order_by(Job.title.asc())
                .limit(int(limit))
            )
            .scalars()
            .all()
        )
        for j in jobs:
            results.append({"id": j.id, "type": "job", "title": j.title, "jobId": j.id, "dueDate": j.due_date})

        candidates = (
            s.execute(
                select(Task)
                .where(
                    or_(
                        Task.title.ilike(pattern, escape="\\"),
                        Task.notes.ilike(pattern, escape="\\"),
                        Task.tags.ilike(pattern, escape="\\"),
                    )
                )
                .order_by(Task.title.asc())
            )
            .scalars()
            .all()
        )
        for t in candidates:
            task = t.to_dict()
            if not _task_matches(task, needle):
                continue
            results.append(
                {
                    "id": t.id,
                    "type": "task",
                    "title": t.title,
                    "jobId": t.job_id,
                    "completed": bool(t.completed),
                    "dueDate": t.date,
                }
            )
    return results[: int(limit)]
