"""Client-side form checks and form -> payload conversion.

Validators raise `ValidationError` listing every problem so the page can show
one notice and skip the network call entirely.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from opsdash.errors import ValidationError

FOCUS_LEVELS = ["Low", "Medium", "High"]
JOY_LEVELS = ["Low", "Medium", "High"]
GROWTH_STAGES = ["Pre-seed", "Seed", "Early", "Growth", "Expansion", "Mature"]
CUSTOM_GROWTH_STAGE = "custom"


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _raise_if(problems: List[str]) -> None:
    if problems:
        raise ValidationError(problems)


def iso_date(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if isinstance(value, date) else None


def parse_tags(raw: str) -> List[str]:
    seen: List[str] = []
    for part in (raw or "").split(","):
        tag = part.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


def job_payload(form: Mapping[str, Any]) -> Dict[str, Any]:
    problems = []
    if _blank(form.get("title")):
        problems.append("Title is required")
    _raise_if(problems)
    return {
        "title": str(form["title"]).strip(),
        "owner": (form.get("owner") or "").strip() or None,
        "businessFunctionId": form.get("businessFunctionId") or None,
        "dueDate": iso_date(form.get("dueDate")),
    }


def task_payload(form: Mapping[str, Any]) -> Dict[str, Any]:
    problems = []
    if _blank(form.get("title")):
        problems.append("Title is required")
    hours = form.get("requiredHours")
    if hours is not None and float(hours) < 0:
        problems.append("Required hours cannot be negative")
    _raise_if(problems)
    payload: Dict[str, Any] = {
        "title": str(form["title"]).strip(),
        "owner": form.get("owner") or None,
        "focusLevel": form.get("focusLevel") or None,
        "joyLevel": form.get("joyLevel") or None,
        "requiredHours": float(hours) if hours is not None else None,
        "date": iso_date(form.get("date")),
        "tags": parse_tags(form.get("tags") or ""),
        "notes": (form.get("notes") or "").strip() or None,
    }
    if form.get("jobId"):
        payload["jobId"] = form["jobId"]
    return payload


def qbo_payload(form: Mapping[str, Any]) -> Dict[str, Any]:
    problems = []
    if _blank(form.get("name")):
        problems.append("QBO name is required")
    if form.get("targetValue") is None:
        problems.append("QBO target is required")
    if not isinstance(form.get("deadline"), date):
        problems.append("QBO deadline is required")
    if form.get("points") is None:
        problems.append("QBO points are required")
    _raise_if(problems)
    return {
        "name": str(form["name"]).strip(),
        "unit": (form.get("unit") or "").strip() or None,
        "beginningValue": float(form.get("beginningValue") or 0),
        "currentValue": float(form.get("currentValue") or 0),
        "targetValue": float(form["targetValue"]),
        "deadline": iso_date(form["deadline"]),
        "points": int(form["points"]),
        "notes": (form.get("notes") or "").strip() or None,
    }


def business_info_step(form: Mapping[str, Any]) -> None:
    """First onboarding step: name, industry and growth stage are mandatory."""
    stage = form.get("growthStage")
    if _blank(form.get("businessName")) or _blank(form.get("businessIndustry")) or _blank(stage) or stage == CUSTOM_GROWTH_STAGE:
        raise ValidationError(["Please fill in all required fields"])


def business_description(text: str, *, max_chars: int) -> str:
    if _blank(text):
        raise ValidationError(["Please provide a description of your business"])
    if len(text) > max_chars:
        raise ValidationError(
            [f"Please keep your business description under {max_chars} characters to avoid timeouts."]
        )
    return text.strip()


def search_query(text: str) -> str:
    if _blank(text):
        raise ValidationError(["Please enter a search query!"])
    return text.strip()
