from datetime import date

import pytest

from opsdash.client import ApiResult, CompletionStream
from opsdash.errors import OnboardingTimeout
from opsdash.onboarding import (
    OUTCOME_PROMPT,
    STEP_DESCRIPTION,
    STEP_RESULTS,
    build_system_prompt,
    iter_with_deadline,
    offline_completion,
    run_onboarding,
)

INFO = {"businessName": "Acme", "businessIndustry": "Retail", "growthStage": "Seed", "monthsInBusiness": 3}


class FakeClock:
    def __init__(self, step):
        self.now = 0.0
        self.step = step

    def __call__(self):
        value = self.now
        self.now += self.step
        return value


class FakeOnboardingClient:
    def __init__(self, chunks=("a", "b"), save_ok=True, stream_ok=True):
        self.chunks = chunks
        self.save_ok = save_ok
        self.stream_ok = stream_ok
        self.saved = None
        self.stream = None

    def save_business_info(self, fields):
        self.saved = fields
        return ApiResult.ok(fields) if self.save_ok else ApiResult.fail("Internal Server Error")

    def stream_onboarding(self, payload):
        if not self.stream_ok:
            return ApiResult.fail("Server error: 500")
        self.stream = CompletionStream(chat_id="chat-9", chunks=iter(self.chunks))
        return ApiResult.ok(self.stream)


def test_prompts_mention_the_business():
    prompt = build_system_prompt("Acme", "Retail", "We sell anvils")
    assert '"Acme"' in prompt and "Retail" in prompt and "We sell anvils" in prompt
    assert "5 most important outcome metrics" in OUTCOME_PROMPT
    assert "100 points" in OUTCOME_PROMPT


def test_offline_completion_is_a_five_row_table():
    text = "".join(offline_completion("Acme", today=date(2026, 1, 1)))
    rows = [line for line in text.splitlines() if line.startswith("| ") and "2026-04-01" in line]
    assert len(rows) == 5
    assert sum(int(r.rstrip(" |").rsplit("|", 1)[1]) for r in rows) == 100


def test_iter_with_deadline_passes_fast_streams():
    assert list(iter_with_deadline(["a", "b"], 10, clock=FakeClock(1))) == ["a", "b"]


def test_iter_with_deadline_raises_once_time_is_up():
    seen = []
    with pytest.raises(OnboardingTimeout):
        for chunk in iter_with_deadline(["a", "b", "c", "d"], 2.5, clock=FakeClock(1)):
            seen.append(chunk)
    assert seen == ["a", "b"]


def test_run_onboarding_success():
    client = FakeOnboardingClient()
    rendered = []
    result = run_onboarding(client, INFO, "We sell anvils", timeout=35, on_chunk=rendered.append)
    assert result.ok and result.step == STEP_RESULTS
    assert result.text == "ab"
    assert result.chat_id == "chat-9"
    assert rendered == ["a", "ab"]
    assert client.saved["missionStatement"] == "We sell anvils"
    assert client.saved["monthsInBusiness"] == 3


def test_run_onboarding_timeout_reverts_to_description():
    client = FakeOnboardingClient(chunks=["a"] * 10)
    result = run_onboarding(client, INFO, "desc", timeout=3, clock=FakeClock(1))
    assert not result.ok
    assert result.step == STEP_DESCRIPTION
    assert result.title == "Request Timeout"


def test_run_onboarding_save_or_stream_failure():
    assert run_onboarding(FakeOnboardingClient(save_ok=False), INFO, "d", timeout=5).title == "Submission Error"
    failed = run_onboarding(FakeOnboardingClient(stream_ok=False), INFO, "d", timeout=5)
    assert failed.step == STEP_DESCRIPTION
    assert failed.message == "Server error: 500"


def test_run_onboarding_against_api(api):
    result = run_onboarding(api_with_stream(api), INFO, "We sell anvils", timeout=35)
    assert result.ok
    assert "| Outcome name |" in result.text
    history = api.get_chat_history(result.chat_id)
    assert history.success
    assert history.data["messages"][-1]["content"] == result.text


def api_with_stream(api):
    """TestClient has no stream= kwarg; read the body through the regular request path."""

    class Adapter:
        def __getattr__(self, name):
            return getattr(api, name)

        def stream_onboarding(self, payload):
            resp = api.session.post("/api/onboarding", json=payload, headers={"X-User-Id": api.user_id})
            if resp.status_code >= 400:
                return ApiResult.fail(f"Server error: {resp.status_code}")
            return ApiResult.ok(
                CompletionStream(chat_id=resp.headers.get("X-Chat-Id"), chunks=iter([resp.text]), response=resp)
            )

    return Adapter()
