"""Request bodies for the REST service.

Fields are snake_case in Python and camelCase on the wire. Update models leave
every field optional; only fields the caller actually sent are applied, so an
explicit null clears a value while an omitted key leaves it alone.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Wire(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def changes(self) -> Dict[str, Any]:
        """Snake_case dict of the fields the caller set."""
        return self.model_dump(exclude_unset=True)


class JobIn(_Wire):
    title: str = Field(min_length=1)
    owner: Optional[str] = None
    business_function_id: Optional[str] = None
    due_date: Optional[str] = None
    next_task_id: Optional[str] = None


class JobUpdate(_Wire):
    title: Optional[str] = None
    owner: Optional[str] = None
    business_function_id: Optional[str] = None
    due_date: Optional[str] = None
    next_task_id: Optional[str] = None


class TaskIn(_Wire):
    title: str = Field(min_length=1)
    job_id: Optional[str] = None
    owner: Optional[str] = None
    completed: bool = False
    focus_level: Optional[str] = None
    joy_level: Optional[str] = None
    required_hours: Optional[float] = Field(default=None, ge=0)
    date: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    notes: Optional[str] = None


class TaskUpdate(_Wire):
    title: Optional[str] = None
    job_id: Optional[str] = None
    owner: Optional[str] = None
    completed: Optional[bool] = None
    focus_level: Optional[str] = None
    joy_level: Optional[str] = None
    required_hours: Optional[float] = Field(default=None, ge=0)
    date: Optional[str] = None
    tags: Optional[List[str]] = None
    notes: Optional[str] = None


class QBOIn(_Wire):
    name: str = Field(min_length=1)
    unit: Optional[str] = None
    beginning_value: float = 0.0
    current_value: float = 0.0
    target_value: float
    deadline: Optional[str] = None
    points: int = 0
    notes: Optional[str] = None


class QBOUpdate(_Wire):
    name: Optional[str] = None
    unit: Optional[str] = None
    beginning_value: Optional[float] = None
    current_value: Optional[float] = None
    target_value: Optional[float] = None
    deadline: Optional[str] = None
    points: Optional[int] = None
    notes: Optional[str] = None


class ProgressCountsRequest(_Wire):
    job_id: str


class BusinessInfoIn(_Wire):
    name: str = Field(min_length=1)
    industry: Optional[str] = None
    mission_statement: Optional[str] = None
    months_in_business: int = Field(default=0, ge=0)
    annual_revenue: float = Field(default=0.0, ge=0)
    growth_stage: Optional[str] = None


class OnboardingRequest(_Wire):
    business_name: str = Field(min_length=1)
    business_industry: str = Field(min_length=1)
    business_description: str = Field(min_length=1)
    months_in_business: int = 0
    annual_revenue: float = 0.0
    growth_stage: Optional[str] = None

    def intake(self) -> Dict[str, Any]:
        """camelCase view used by the prompt builders."""
        return self.model_dump(by_alias=True)
