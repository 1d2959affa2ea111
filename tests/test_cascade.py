from opsdash.cascade import clear_next_task_references, jobs_pointing_at
from opsdash.client import ApiResult


class FakeJobClient:
    def __init__(self, fail=(), explode=()):
        self.calls = []
        self.fail = set(fail)
        self.explode = set(explode)

    def update_job(self, job_id, changes):
        self.calls.append((job_id, changes))
        if job_id in self.explode:
            raise RuntimeError("connection reset")
        if job_id in self.fail:
            return ApiResult.fail("Internal Server Error")
        return ApiResult.ok({"id": job_id, **changes})


JOBS = [
    {"id": "j1", "nextTaskId": "t1"},
    {"id": "j2", "nextTaskId": "t2"},
    {"id": "j3", "nextTaskId": "t1"},
    {"id": "j4", "nextTaskId": None},
]


def test_only_jobs_pointing_at_task_are_updated():
    client = FakeJobClient()
    result = clear_next_task_references(client, JOBS, "t1")
    assert client.calls == [("j1", {"nextTaskId": None}), ("j3", {"nextTaskId": None})]
    assert result.cleared == ["j1", "j3"]
    assert result.ok


def test_unreferenced_task_makes_no_calls():
    client = FakeJobClient()
    result = clear_next_task_references(client, JOBS, "t9")
    assert client.calls == []
    assert result.ok and result.cleared == []


def test_failures_do_not_block_other_jobs_and_are_not_retried():
    client = FakeJobClient(fail={"j1"}, explode={"j3"})
    jobs = JOBS + [{"id": "j5", "nextTaskId": "t1"}]
    result = clear_next_task_references(client, jobs, "t1")
    assert [c[0] for c in client.calls] == ["j1", "j3", "j5"]
    assert result.failed == ["j1", "j3"]
    assert result.cleared == ["j5"]
    assert not result.ok


def test_jobs_pointing_at_ignores_empty_id():
    assert jobs_pointing_at(JOBS, "") == []
    assert [j["id"] for j in jobs_pointing_at(JOBS, "t2")] == ["j2"]
