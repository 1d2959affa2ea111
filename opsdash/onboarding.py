"""AI-assisted onboarding.

Server side: build the consultant prompts from the business intake fields and
stream a completion from the configured Ollama model (LangChain). When Ollama
is disabled an offline outcome table is streamed instead so the flow still
works end to end.

View side: `run_onboarding` saves the intake, opens the stream and reads it
under a wall-clock deadline; on any failure the view goes back to the
description step so the user can retry.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import date, timedelta
from functools import lru_cache
from typing import Any, Callable, Dict, Iterable, Iterator, Optional

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_ollama.chat_models import ChatOllama

from opsdash.client import ApiClient, CompletionStream
from opsdash.config import AppConfig
from opsdash.errors import OnboardingTimeout

logger = logging.getLogger(__name__)

STEP_BUSINESS_INFO = 1
STEP_DESCRIPTION = 2
STEP_PROCESSING = "processing"
STEP_RESULTS = 3

OUTCOME_PROMPT = (
    "Please suggest the 5 most important outcome metrics for the next 3 months that I can use to "
    "track my progress towards accomplishing my mission and distribute 100 points among these "
    "outcome metrics as per their importance towards my mission. Output your result in the form of "
    "a table with the following columns: Outcome name, target value, deadline (date) and points "
    "allocated to that outcome."
)


def build_system_prompt(business_name: str, business_industry: str, business_description: str) -> str:
    return (
        "You are an elite business strategy consultant specializing in guiding startups and small "
        "businesses. You are consulting a new business owner whose business is named: "
        f'"{business_name}", which is in the industry of {business_industry} and is described as '
        f'follows: "{business_description}". Provide them with initial strategic recommendations '
        "and next steps to establish or grow their business. Be specific, actionable, and "
        "empathetic in your response."
    )


def offline_completion(business_name: str, *, today: Optional[date] = None) -> Iterator[str]:
    """Canned outcome table used when the completion provider is disabled."""
    deadline = ((today or date.today()) + timedelta(days=90)).isoformat()
    rows = [
        ("Monthly recurring revenue", "+20%", 30),
        ("New paying customers", "25", 25),
        ("Customer retention rate", "90%", 20),
        ("Qualified sales leads", "100", 15),
        ("Net promoter score", "50", 10),
    ]
    yield f"**Note:** the AI consultant is offline, showing a starter plan for {business_name}.\n\n"
    yield "| Outcome name | Target value | Deadline | Points |\n"
    yield "|---|---|---|---|\n"
    for name, target, points in rows:
        yield f"| {name} | {target} | {deadline} | {points} |\n"


@lru_cache(maxsize=8)
def _chat_model(model: str, base_url: str, temperature: float) -> ChatOllama:
    return ChatOllama(model=model, base_url=base_url, temperature=temperature)


def stream_completion(system_prompt: str, user_prompt: str, config: AppConfig) -> Iterator[str]:
    llm = _chat_model(config.ollama_model, config.ollama_base_url, float(config.ollama_temperature))
    messages = [SystemMessage(content=system_prompt), HumanMessage(content=user_prompt)]
    for chunk in llm.stream(messages):
        text = chunk.content if isinstance(chunk.content, str) else ""
        if text:
            yield text


def completion_for(intake: Dict[str, Any], config: AppConfig) -> Iterator[str]:
    name = intake.get("businessName", "")
    if not config.ollama_enabled:
        return offline_completion(name)
    system_prompt = build_system_prompt(
        name, intake.get("businessIndustry", ""), intake.get("businessDescription", "")
    )
    logger.debug("onboarding system prompt: %s", system_prompt)
    return stream_completion(system_prompt, OUTCOME_PROMPT, config)


def iter_with_deadline(
    chunks: Iterable[str],
    timeout: float,
    *,
    clock: Callable[[], float] = time.monotonic,
) -> Iterator[str]:
    """Pass chunks through until `timeout` seconds have elapsed, then raise OnboardingTimeout.

    The check happens between chunks; a single blocking read is bounded by the
    HTTP read timeout instead.
    """
    started = clock()
    for chunk in chunks:
        if clock() - started > timeout:
            raise OnboardingTimeout()
        yield chunk
    if clock() - started > timeout:
        raise OnboardingTimeout()


@dataclass
class OnboardingResult:
    ok: bool
    step: Any
    text: str = ""
    chat_id: Optional[str] = None
    title: str = ""
    message: str = ""


def run_onboarding(
    client: ApiClient,
    info: Dict[str, Any],
    description: str,
    *,
    timeout: float,
    on_chunk: Optional[Callable[[str], None]] = None,
    clock: Callable[[], float] = time.monotonic,
) -> OnboardingResult:
    """Save the intake, stream the consultant's answer and report which step to show next."""
    saved = client.save_business_info(
        {
            "name": info["businessName"].strip(),
            "industry": info["businessIndustry"].strip(),
            "missionStatement": description,
            "monthsInBusiness": int(info.get("monthsInBusiness") or 0),
            "annualRevenue": float(info.get("annualRevenue") or 0),
            "growthStage": info.get("growthStage"),
        }
    )
    if not saved.success:
        return OnboardingResult(
            False,
            STEP_DESCRIPTION,
            title="Submission Error",
            message="There was a problem submitting your data. Please try again.",
        )

    opened = client.stream_onboarding(
        {
            "businessName": info["businessName"].strip(),
            "businessIndustry": info["businessIndustry"].strip(),
            "businessDescription": description,
            "monthsInBusiness": int(info.get("monthsInBusiness") or 0),
            "annualRevenue": float(info.get("annualRevenue") or 0),
            "growthStage": info.get("growthStage"),
        }
    )
    if not opened.success:
        return OnboardingResult(False, STEP_DESCRIPTION, title="Error", message=opened.error or "Server error")

    stream: CompletionStream = opened.data
    parts = []
    try:
        for chunk in iter_with_deadline(stream.chunks, timeout, clock=clock):
            parts.append(chunk)
            if on_chunk is not None:
                on_chunk("".join(parts))
    except OnboardingTimeout:
        logger.warning("onboarding completion exceeded %.0fs, reverting", timeout)
        return OnboardingResult(
            False,
            STEP_DESCRIPTION,
            title="Request Timeout",
            message=(
                "The analysis is taking longer than expected. "
                "Please try again with a more concise description."
            ),
        )
    except Exception:  # noqa: BLE001 - a broken stream sends the user back to retry
        logger.exception("onboarding completion stream failed")
        return OnboardingResult(
            False,
            STEP_DESCRIPTION,
            title="Error",
            message="An error occurred while processing your business information. Please try again.",
        )
    finally:
        stream.close()

    return OnboardingResult(True, STEP_RESULTS, text="".join(parts), chat_id=stream.chat_id)
