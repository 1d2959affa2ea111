from fastapi.testclient import TestClient

from opsdash.api import create_app
from conftest import make_config

ALICE = {"X-User-Id": "alice"}
BOB = {"X-User-Id": "bob"}


def test_healthz_needs_no_identity(http):
    assert http.get("/healthz").json() == {"ok": True}


def test_missing_identity_is_401(http):
    r = http.get("/api/jobs")
    assert r.status_code == 401
    assert r.json() == {"success": False, "error": "Unauthorized"}


def test_job_crud_round_trip(http):
    created = http.post("/api/jobs", json={"title": "Launch site", "dueDate": "2026-05-01"}, headers=ALICE).json()
    assert created["success"] is True
    job = created["data"]
    assert job["title"] == "Launch site"
    assert job["nextTaskId"] is None

    listed = http.get("/api/jobs", headers=ALICE).json()["data"]
    assert [j["id"] for j in listed] == [job["id"]]

    updated = http.put(f"/api/jobs/{job['id']}", json={"owner": "Dana"}, headers=ALICE).json()["data"]
    assert updated["owner"] == "Dana"
    assert updated["dueDate"] == "2026-05-01"

    assert http.delete(f"/api/jobs/{job['id']}", headers=ALICE).json()["success"] is True
    r = http.get(f"/api/jobs/{job['id']}", headers=ALICE)
    assert r.status_code == 404
    assert r.json() == {"success": False, "error": "Job not found"}


def test_explicit_null_clears_next_task(http):
    task = http.post("/api/tasks", json={"title": "Call"}, headers=ALICE).json()["data"]
    job = http.post("/api/jobs", json={"title": "J", "nextTaskId": task["id"]}, headers=ALICE).json()["data"]
    assert job["nextTaskId"] == task["id"]
    cleared = http.put(f"/api/jobs/{job['id']}", json={"nextTaskId": None}, headers=ALICE).json()["data"]
    assert cleared["nextTaskId"] is None
    assert cleared["title"] == "J"


def test_unknown_task_and_qbo_are_404(http):
    assert http.put("/api/tasks/nope", json={"completed": True}, headers=ALICE).status_code == 404
    assert http.delete("/api/tasks/nope", headers=ALICE).status_code == 404
    assert http.put("/api/qbos/nope", json={"name": "x"}, headers=ALICE).status_code == 404


def test_invalid_body_uses_error_envelope(http):
    r = http.post("/api/jobs", json={}, headers=ALICE)
    assert r.status_code == 422
    assert r.json()["success"] is False


def test_task_list_filters_by_job(http):
    job = http.post("/api/jobs", json={"title": "J"}, headers=ALICE).json()["data"]
    http.post("/api/tasks", json={"title": "in", "jobId": job["id"], "tags": ["a"]}, headers=ALICE)
    http.post("/api/tasks", json={"title": "out"}, headers=ALICE)
    scoped = http.get("/api/tasks", params={"jobId": job["id"]}, headers=ALICE).json()["data"]
    assert [t["title"] for t in scoped] == ["in"]
    assert scoped[0]["tags"] == ["a"]
    assert len(http.get("/api/tasks", headers=ALICE).json()["data"]) == 2


def test_progress_endpoints(http):
    job = http.post("/api/jobs", json={"title": "J"}, headers=ALICE).json()["data"]
    empty = http.post("/api/jobs", json={"title": "E"}, headers=ALICE).json()["data"]
    for done in (True, False, False):
        http.post("/api/tasks", json={"title": "t", "jobId": job["id"], "completed": done}, headers=ALICE)

    pct = http.get("/api/jobs/progress", params={"ids": f"{job['id']},{empty['id']}"}, headers=ALICE).json()["data"]
    assert pct == {job["id"]: 33, empty["id"]: 0}

    counts = http.post("/api/jobs/progress", json={"jobId": job["id"]}, headers=ALICE).json()["data"]
    assert counts == {"completed": 1, "total": 3}


def test_owners_and_business_functions_are_seeded(http):
    owners = http.get("/api/owners", headers=ALICE).json()["data"]
    functions = http.get("/api/business-functions", headers=ALICE).json()["data"]
    assert {o["name"] for o in owners} >= {"Founder"}
    assert "Sales" in {f["name"] for f in functions}
    assert all(set(o) == {"id", "name"} for o in owners)


def test_qbos_are_scoped_to_caller(http):
    qbo = http.post(
        "/api/qbos",
        json={"name": "Revenue", "targetValue": 100, "beginningValue": 0, "currentValue": 40, "points": 50},
        headers=ALICE,
    ).json()["data"]
    assert qbo["userId"] == "alice"

    assert http.get("/api/qbos", headers=BOB).json()["data"] == []
    assert http.put(f"/api/qbos/{qbo['id']}", json={"currentValue": 90}, headers=BOB).status_code == 404
    assert http.delete(f"/api/qbos/{qbo['id']}", headers=BOB).status_code == 404

    updated = http.put(f"/api/qbos/{qbo['id']}", json={"currentValue": 90}, headers=ALICE).json()["data"]
    assert updated["currentValue"] == 90
    assert updated["targetValue"] == 100


def test_search_matches_titles_notes_and_tags(http):
    http.post("/api/jobs", json={"title": "Hire designer"}, headers=ALICE)
    http.post("/api/tasks", json={"title": "Write brief", "notes": "for the DESIGNER role"}, headers=ALICE)
    http.post("/api/tasks", json={"title": "Post ad", "tags": ["design"]}, headers=ALICE)
    http.post("/api/tasks", json={"title": "Unrelated"}, headers=ALICE)

    hits = http.get("/api/search", params={"query": "design"}, headers=ALICE).json()["data"]
    assert {(h["type"], h["title"]) for h in hits} == {
        ("job", "Hire designer"),
        ("task", "Write brief"),
        ("task", "Post ad"),
    }
    assert http.get("/api/search", params={"query": "  "}, headers=ALICE).json()["data"] == []


def _search_titles(http, query):
    hits = http.get("/api/search", params={"query": query}, headers=ALICE).json()["data"]
    return sorted(h["title"] for h in hits)


def test_search_treats_wildcard_characters_literally(http):
    for title in ["Grow revenue 50%", "Call supplier", "a_b", "axb"]:
        http.post("/api/tasks", json={"title": title}, headers=ALICE)
    http.post("/api/jobs", json={"title": "Q3 100% done"}, headers=ALICE)
    http.post("/api/jobs", json={"title": "Q3 review"}, headers=ALICE)

    assert _search_titles(http, "%") == ["Grow revenue 50%", "Q3 100% done"]
    assert _search_titles(http, "a_b") == ["a_b"]
    assert _search_titles(http, "_") == ["a_b"]
    assert _search_titles(http, "\\") == []


def test_search_matches_tag_values_not_their_encoding(http):
    http.post("/api/tasks", json={"title": "Bakery", "tags": ["café"]}, headers=ALICE)
    http.post("/api/tasks", json={"title": "Plain", "tags": ["x", "y"]}, headers=ALICE)
    http.post("/api/tasks", json={"title": "Untagged"}, headers=ALICE)

    assert _search_titles(http, "café") == ["Bakery"]
    assert _search_titles(http, "caf") == ["Bakery"]
    for punctuation in ['"', "[", "]", ",", '", "']:
        assert _search_titles(http, punctuation) == []


def test_business_info_upsert_is_per_user(http):
    body = {"name": "Acme", "industry": "Retail", "monthsInBusiness": 6, "growthStage": "Seed"}
    first = http.post("/api/business-info", json=body, headers=ALICE).json()["data"]
    second = http.post("/api/business-info", json={**body, "industry": "Wholesale"}, headers=ALICE).json()["data"]
    assert first["id"] == second["id"]
    assert second["industry"] == "Wholesale"
    other = http.post("/api/business-info", json=body, headers=BOB).json()["data"]
    assert other["id"] != first["id"]


def test_onboarding_streams_and_saves_history(http):
    body = {
        "businessName": "Acme",
        "businessIndustry": "Retail",
        "businessDescription": "We sell anvils.",
        "growthStage": "Seed",
    }
    r = http.post("/api/onboarding", json=body, headers=ALICE)
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/plain")
    assert "| Outcome name |" in r.text
    chat_id = r.headers["X-Chat-Id"]

    history = http.get(f"/api/chat-history/{chat_id}", headers=ALICE).json()["data"]
    assert [m["role"] for m in history["messages"]] == ["system", "user", "assistant"]
    assert "Acme" in history["messages"][0]["content"]
    assert history["messages"][2]["content"] == r.text

    assert http.get(f"/api/chat-history/{chat_id}", headers=BOB).status_code == 404
    assert http.get("/api/chat-history/unknown", headers=ALICE).status_code == 404


def test_onboarding_provider_failure_is_500(db_url, monkeypatch):
    def broken(system_prompt, user_prompt, config):
        raise ConnectionError("ollama down")
        yield  # pragma: no cover

    monkeypatch.setattr("opsdash.onboarding.stream_completion", broken)
    app = create_app(make_config(db_url, ollama_enabled=True))
    with TestClient(app) as http:
        r = http.post(
            "/api/onboarding",
            json={"businessName": "A", "businessIndustry": "B", "businessDescription": "C"},
            headers=ALICE,
        )
    assert r.status_code == 500
    assert r.json() == {"success": False, "error": "Internal Server Error"}


def test_calendar_auth_url_requires_configuration(http, db_url):
    r = http.get("/api/calendar/auth-url", headers=ALICE)
    assert r.status_code == 500
    assert r.json()["error"] == "Calendar integration is not configured"

    cfg = make_config(
        db_url,
        google_client_id="cid.apps.googleusercontent.com",
        google_client_secret="secret",
        google_redirect_uri="http://localhost:8501/calendar",
    )
    with TestClient(create_app(cfg)) as configured:
        url = configured.get("/api/calendar/auth-url", headers=ALICE).json()["data"]["url"]
    assert url.startswith("https://accounts.google.com/o/oauth2/auth")
    assert "access_type=offline" in url
