from datetime import date

import pytest

from opsdash.errors import ValidationError
from opsdash.forms import (
    CUSTOM_GROWTH_STAGE,
    business_description,
    business_info_step,
    job_payload,
    parse_tags,
    qbo_payload,
    search_query,
    task_payload,
)


def test_job_payload_requires_title():
    with pytest.raises(ValidationError) as exc:
        job_payload({"title": "  "})
    assert exc.value.problems == ["Title is required"]
    payload = job_payload({"title": " Launch ", "dueDate": date(2026, 4, 1)})
    assert payload == {"title": "Launch", "owner": None, "businessFunctionId": None, "dueDate": "2026-04-01"}


def test_task_payload_normalises_fields():
    payload = task_payload(
        {"title": "Call", "jobId": "j1", "requiredHours": 0, "tags": "a, b,a,,", "notes": "  ", "focusLevel": ""}
    )
    assert payload["requiredHours"] == 0.0
    assert payload["tags"] == ["a", "b"]
    assert payload["notes"] is None
    assert payload["focusLevel"] is None
    assert payload["jobId"] == "j1"
    with pytest.raises(ValidationError):
        task_payload({"title": "x", "requiredHours": -1})


def test_qbo_payload_lists_every_missing_field():
    with pytest.raises(ValidationError) as exc:
        qbo_payload({"name": ""})
    assert len(exc.value.problems) == 4
    ok = qbo_payload({"name": "MRR", "targetValue": 10, "deadline": date(2026, 6, 30), "points": 40})
    assert ok["deadline"] == "2026-06-30"
    assert ok["beginningValue"] == 0.0


def test_business_info_step():
    good = {"businessName": "Acme", "businessIndustry": "Retail", "growthStage": "Seed"}
    business_info_step(good)
    for broken in ({**good, "businessName": ""}, {**good, "growthStage": CUSTOM_GROWTH_STAGE}, {**good, "growthStage": None}):
        with pytest.raises(ValidationError) as exc:
            business_info_step(broken)
        assert exc.value.problems == ["Please fill in all required fields"]


def test_business_description_limits():
    assert business_description(" ok ", max_chars=3000) == "ok"
    with pytest.raises(ValidationError):
        business_description("", max_chars=3000)
    with pytest.raises(ValidationError) as exc:
        business_description("x" * 3001, max_chars=3000)
    assert "3000" in exc.value.problems[0]


def test_search_query_blocks_empty_input():
    with pytest.raises(ValidationError) as exc:
        search_query("   ")
    assert exc.value.problems == ["Please enter a search query!"]
    assert search_query(" anvil ") == "anvil"


def test_parse_tags_handles_none():
    assert parse_tags(None) == []
