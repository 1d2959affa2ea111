from datetime import date

from opsdash.filters import active_filters, filter_tasks, parse_date

JOBS = {
    "j1": {"id": "j1", "businessFunctionId": "bf-sales"},
    "j2": {"id": "j2", "businessFunctionId": "bf-ops"},
}

TASKS = [
    {"id": "t1", "jobId": "j1", "owner": "o1", "focusLevel": "High", "joyLevel": "Low", "requiredHours": 2, "date": "2026-03-01"},
    {"id": "t2", "jobId": "j2", "owner": "o2", "focusLevel": "Low", "joyLevel": "High", "requiredHours": 5, "date": "2026-03-10"},
    {"id": "t3", "jobId": "j1", "owner": "o1", "focusLevel": "High", "joyLevel": "High"},
    {"id": "t4", "jobId": "missing", "owner": "o2", "focusLevel": "Medium", "requiredHours": 0, "date": "2026-02-01T09:30:00Z"},
]


def _ids(tasks):
    return [t["id"] for t in tasks]


def test_empty_filters_are_identity_but_new_list():
    out = filter_tasks(TASKS, {})
    assert out == TASKS
    assert out is not TASKS
    assert _ids(filter_tasks(TASKS, None)) == _ids(TASKS)


def test_inactive_and_unknown_values_are_ignored():
    filters = {"focusLevel": "any", "owner": "", "joyLevel": None, "colour": "blue"}
    assert active_filters(filters) == {}
    assert _ids(filter_tasks(TASKS, filters)) == ["t1", "t2", "t3", "t4"]


def test_exact_match_filters_combine_by_conjunction():
    assert _ids(filter_tasks(TASKS, {"focusLevel": "High"})) == ["t1", "t3"]
    assert _ids(filter_tasks(TASKS, {"focusLevel": "High", "joyLevel": "High"})) == ["t3"]
    assert _ids(filter_tasks(TASKS, {"owner": "o2"})) == ["t2", "t4"]


def test_hour_bounds_are_inclusive_and_missing_hours_fail():
    assert _ids(filter_tasks(TASKS, {"minHours": 2})) == ["t1", "t2"]
    assert _ids(filter_tasks(TASKS, {"maxHours": 2})) == ["t1", "t4"]
    assert _ids(filter_tasks(TASKS, {"minHours": "2", "maxHours": "5"})) == ["t1", "t2"]
    assert "t3" not in _ids(filter_tasks(TASKS, {"maxHours": 100}))


def test_due_date_is_on_or_before_and_missing_date_fails():
    assert _ids(filter_tasks(TASKS, {"dueDate": "2026-03-01"})) == ["t1", "t4"]
    assert _ids(filter_tasks(TASKS, {"dueDate": date(2026, 3, 10)})) == ["t1", "t2", "t4"]


def test_business_function_uses_parent_job():
    assert _ids(filter_tasks(TASKS, {"businessFunctionId": "bf-sales"}, JOBS)) == ["t1", "t3"]
    # t4 has no resolvable job, so it never matches a business function.
    assert _ids(filter_tasks(TASKS, {"businessFunctionId": "bf-ops"}, JOBS)) == ["t2"]
    assert filter_tasks(TASKS, {"businessFunctionId": "bf-sales"}) == []


def test_filtering_is_idempotent_and_does_not_mutate():
    snapshot = [dict(t) for t in TASKS]
    filters = {"focusLevel": "High", "maxHours": 3}
    once = filter_tasks(TASKS, filters, JOBS)
    twice = filter_tasks(once, filters, JOBS)
    assert once == twice
    assert TASKS == snapshot


def test_parse_date_variants():
    assert parse_date("2026-01-05") == date(2026, 1, 5)
    assert parse_date("2026-01-05T23:59:00Z") == date(2026, 1, 5)
    assert parse_date(date(2026, 1, 5)) == date(2026, 1, 5)
    assert parse_date("") is None
    assert parse_date("not a date") is None
