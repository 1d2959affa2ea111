"""Store models.

Dates the user picks (due dates, deadlines) are kept as ISO date strings;
bookkeeping timestamps are real DateTime columns. List-like fields (tags,
chat messages) are stored as JSON text to keep the schema portable.
"""

from __future__ import annotations

import json
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import Boolean, Column, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _generate_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.utcnow()


def _iso(ts: Optional[datetime]) -> Optional[str]:
    return ts.isoformat() + "Z" if ts else None


def _json_list(raw: Optional[str]) -> List[Any]:
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except ValueError:
        return []
    return value if isinstance(value, list) else []


class Job(Base):
    __tablename__ = "jobs"

    id = Column(String(36), primary_key=True, default=_generate_id)
    title = Column(String(512), nullable=False)
    owner = Column(String(128), nullable=True)
    business_function_id = Column(String(36), nullable=True, index=True)
    due_date = Column(String(32), nullable=True)
    # Weak reference: no FK, cleared after the task completes or is deleted.
    next_task_id = Column(String(36), nullable=True, index=True)

    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "owner": self.owner,
            "businessFunctionId": self.business_function_id,
            "dueDate": self.due_date,
            "nextTaskId": self.next_task_id,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


class Task(Base):
    __tablename__ = "tasks"

    id = Column(String(36), primary_key=True, default=_generate_id)
    title = Column(String(512), nullable=False)
    job_id = Column(String(36), nullable=True, index=True)
    owner = Column(String(36), nullable=True, index=True)
    completed = Column(Boolean, default=False, nullable=False)
    focus_level = Column(String(32), nullable=True)
    joy_level = Column(String(32), nullable=True)
    required_hours = Column(Float, nullable=True)
    date = Column(String(32), nullable=True)
    tags = Column(Text, default="[]")  # JSON list
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "jobId": self.job_id,
            "owner": self.owner,
            "completed": bool(self.completed),
            "focusLevel": self.focus_level,
            "joyLevel": self.joy_level,
            "requiredHours": self.required_hours,
            "date": self.date,
            "tags": _json_list(self.tags),
            "notes": self.notes,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


class Owner(Base):
    __tablename__ = "owners"

    id = Column(String(36), primary_key=True, default=_generate_id)
    name = Column(String(128), nullable=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name}


class BusinessFunction(Base):
    __tablename__ = "business_functions"

    id = Column(String(36), primary_key=True, default=_generate_id)
    name = Column(String(128), nullable=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name}


class QBO(Base):
    """Quantified business objective owned by a single user."""

    __tablename__ = "qbos"

    id = Column(String(36), primary_key=True, default=_generate_id)
    user_id = Column(String(128), nullable=False, index=True)
    name = Column(String(256), nullable=False)
    unit = Column(String(64), nullable=True)
    beginning_value = Column(Float, default=0.0, nullable=False)
    current_value = Column(Float, default=0.0, nullable=False)
    target_value = Column(Float, default=0.0, nullable=False)
    deadline = Column(String(32), nullable=True)
    points = Column(Integer, default=0, nullable=False)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "name": self.name,
            "unit": self.unit,
            "beginningValue": self.beginning_value,
            "currentValue": self.current_value,
            "targetValue": self.target_value,
            "deadline": self.deadline,
            "points": int(self.points or 0),
            "notes": self.notes,
        }


class BusinessInfo(Base):
    __tablename__ = "business_info"

    id = Column(String(36), primary_key=True, default=_generate_id)
    user_id = Column(String(128), nullable=False, unique=True)
    name = Column(String(256), nullable=False)
    industry = Column(String(256), nullable=True)
    mission_statement = Column(Text, nullable=True)
    months_in_business = Column(Integer, default=0, nullable=False)
    annual_revenue = Column(Float, default=0.0, nullable=False)
    growth_stage = Column(String(64), nullable=True)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "name": self.name,
            "industry": self.industry,
            "missionStatement": self.mission_statement,
            "monthsInBusiness": int(self.months_in_business or 0),
            "annualRevenue": self.annual_revenue,
            "growthStage": self.growth_stage,
            "updatedAt": _iso(self.updated_at),
        }


class ChatHistory(Base):
    __tablename__ = "chat_histories"

    id = Column(String(36), primary_key=True, default=_generate_id)
    user_id = Column(String(128), nullable=False, index=True)
    title = Column(String(256), nullable=True)
    messages = Column(Text, default="[]")  # JSON list of {role, content}
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "title": self.title,
            "messages": _json_list(self.messages),
            "createdAt": _iso(self.created_at),
        }
