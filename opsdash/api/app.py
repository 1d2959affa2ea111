"""REST service for the dashboard.

All routes live under /api and answer with the `{success, data}` envelope
(`{success: false, error}` on failure). The caller's identity arrives in the
X-User-Id header from the upstream identity provider.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, Iterator, Optional

from fastapi import Depends, FastAPI, Header, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, StreamingResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from opsdash.api.schemas import (
    BusinessInfoIn,
    JobIn,
    JobUpdate,
    OnboardingRequest,
    ProgressCountsRequest,
    QBOIn,
    QBOUpdate,
    TaskIn,
    TaskUpdate,
)
from opsdash.config import AppConfig, env_setting, get_config
from opsdash.errors import NotFoundError, OpsdashError, UnauthorizedError
from opsdash.gcal import generate_auth_url
from opsdash.logging_setup import setup_logging
from opsdash.onboarding import OUTCOME_PROMPT, build_system_prompt, completion_for
from opsdash.progress import job_progress, progress_by_job
from opsdash.store import repo
from opsdash.store.repo import ensure_seed_data, init_db

logger = logging.getLogger(__name__)

USER_HEADER = "X-User-Id"
CHAT_ID_HEADER = "X-Chat-Id"


def ok(data: Any = None) -> Dict[str, Any]:
    return {"success": True, "data": data}


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def require_user(x_user_id: Optional[str] = Header(default=None, alias=USER_HEADER)) -> str:
    if not x_user_id or not x_user_id.strip():
        raise UnauthorizedError()
    return x_user_id.strip()


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(OpsdashError)
    async def _opsdash_error(request: Request, exc: OpsdashError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
            return _error(exc.status_code, exc.public_message)
        return _error(exc.status_code, exc.message)

    @app.exception_handler(SQLAlchemyError)
    async def _store_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.exception("store failure on %s %s", request.method, request.url.path)
        return _error(500, "Internal Server Error")

    @app.exception_handler(RequestValidationError)
    async def _invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        problems = [str(e.get("msg", e)) for e in exc.errors()]
        return _error(422, "; ".join(problems) or "Invalid request")

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error(exc.status_code, str(exc.detail))


def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    cfg = config or get_config()
    db = cfg.database_url

    init_db(db)
    ensure_seed_data(db)

    app = FastAPI(title="opsdash-api", version="1.0")
    app.state.config = cfg
    _install_error_handlers(app)

    @app.get("/healthz")
    def healthz() -> Dict[str, Any]:
        return {"ok": True}

    # ---------------- Jobs ----------------

    @app.get("/api/jobs")
    def list_jobs(user_id: str = Depends(require_user)):
        return ok(repo.list_jobs(db))

    @app.post("/api/jobs")
    def create_job(body: JobIn, user_id: str = Depends(require_user)):
        job = repo.create_job(db, body.model_dump())
        logger.info("job %s created by %s", job["id"], user_id)
        return ok(job)

    # Registered before /api/jobs/{job_id} so "progress" is not taken for an id.
    @app.get("/api/jobs/progress")
    def jobs_progress(ids: str = Query(default=""), user_id: str = Depends(require_user)):
        job_ids = [i.strip() for i in ids.split(",") if i.strip()]
        tasks = repo.list_tasks(db, job_ids=job_ids) if job_ids else []
        return ok({job_id: p.percentage for job_id, p in progress_by_job(tasks, job_ids).items()})

    @app.post("/api/jobs/progress")
    def job_task_counts(body: ProgressCountsRequest, user_id: str = Depends(require_user)):
        tasks = repo.list_tasks(db, job_ids=[body.job_id])
        return ok(job_progress(tasks, body.job_id).to_dict())

    @app.get("/api/jobs/{job_id}")
    def get_job(job_id: str, user_id: str = Depends(require_user)):
        job = repo.get_job(db, job_id)
        if job is None:
            raise NotFoundError("Job", job_id)
        return ok(job)

    @app.put("/api/jobs/{job_id}")
    def update_job(job_id: str, body: JobUpdate, user_id: str = Depends(require_user)):
        job = repo.update_job(db, job_id, body.changes())
        if job is None:
            raise NotFoundError("Job", job_id)
        return ok(job)

    @app.delete("/api/jobs/{job_id}")
    def delete_job(job_id: str, user_id: str = Depends(require_user)):
        if not repo.delete_job(db, job_id):
            raise NotFoundError("Job", job_id)
        logger.info("job %s deleted by %s", job_id, user_id)
        return ok({"id": job_id})

    # ---------------- Tasks ----------------

    @app.get("/api/tasks")
    def list_tasks(job_id: Optional[str] = Query(default=None, alias="jobId"), user_id: str = Depends(require_user)):
        return ok(repo.list_tasks(db, job_ids=[job_id] if job_id else None))

    @app.post("/api/tasks")
    def create_task(body: TaskIn, user_id: str = Depends(require_user)):
        return ok(repo.create_task(db, body.model_dump()))

    @app.get("/api/tasks/{task_id}")
    def get_task(task_id: str, user_id: str = Depends(require_user)):
        task = repo.get_task(db, task_id)
        if task is None:
            raise NotFoundError("Task", task_id)
        return ok(task)

    @app.put("/api/tasks/{task_id}")
    def update_task(task_id: str, body: TaskUpdate, user_id: str = Depends(require_user)):
        task = repo.update_task(db, task_id, body.changes())
        if task is None:
            raise NotFoundError("Task", task_id)
        return ok(task)

    @app.delete("/api/tasks/{task_id}")
    def delete_task(task_id: str, user_id: str = Depends(require_user)):
        if not repo.delete_task(db, task_id):
            raise NotFoundError("Task", task_id)
        return ok({"id": task_id})

    # ---------------- Reference data ----------------

    @app.get("/api/owners")
    def list_owners(user_id: str = Depends(require_user)):
        return ok(repo.list_owners(db))

    @app.get("/api/business-functions")
    def list_business_functions(user_id: str = Depends(require_user)):
        return ok(repo.list_business_functions(db))

    # ---------------- QBOs ----------------

    @app.get("/api/qbos")
    def list_qbos(user_id: str = Depends(require_user)):
        return ok(repo.list_qbos(db, user_id))

    @app.post("/api/qbos")
    def create_qbo(body: QBOIn, user_id: str = Depends(require_user)):
        return ok(repo.create_qbo(db, user_id, body.model_dump()))

    @app.put("/api/qbos/{qbo_id}")
    def update_qbo(qbo_id: str, body: QBOUpdate, user_id: str = Depends(require_user)):
        qbo = repo.update_qbo(db, user_id, qbo_id, body.changes())
        if qbo is None:
            raise NotFoundError("QBO", qbo_id)
        return ok(qbo)

    @app.delete("/api/qbos/{qbo_id}")
    def delete_qbo(qbo_id: str, user_id: str = Depends(require_user)):
        if not repo.delete_qbo(db, user_id, qbo_id):
            raise NotFoundError("QBO", qbo_id)
        return ok({"id": qbo_id})

    # ---------------- Search ----------------

    @app.get("/api/search")
    def search(query: str = Query(default=""), user_id: str = Depends(require_user)):
        if not query.strip():
            return ok([])
        return ok(repo.search(db, query))

    # ---------------- Onboarding ----------------

    @app.post("/api/business-info")
    def save_business_info(body: BusinessInfoIn, user_id: str = Depends(require_user)):
        return ok(repo.upsert_business_info(db, user_id, body.model_dump()))

    @app.post("/api/onboarding")
    def onboarding(body: OnboardingRequest, user_id: str = Depends(require_user)):
        intake = body.intake()
        chunks = iter(completion_for(intake, cfg))
        # Pull the first chunk here so a provider failure is still a plain 500.
        try:
            first = next(chunks, "")
        except Exception as exc:  # noqa: BLE001 - provider errors vary by backend
            logger.exception("completion provider failed for %s", user_id)
            raise OpsdashError("Failed to generate a response") from exc

        chat_id = str(uuid.uuid4())
        system_prompt = build_system_prompt(
            body.business_name, body.business_industry, body.business_description
        )

        def stream() -> Iterator[str]:
            parts = [first]
            if first:
                yield first
            for chunk in chunks:
                parts.append(chunk)
                yield chunk
            repo.create_chat_history(
                db,
                user_id,
                chat_id=chat_id,
                title=f"Onboarding: {body.business_name}",
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": OUTCOME_PROMPT},
                    {"role": "assistant", "content": "".join(parts)},
                ],
            )
            logger.info("onboarding chat %s saved for %s", chat_id, user_id)

        return StreamingResponse(
            stream(),
            media_type="text/plain; charset=utf-8",
            headers={CHAT_ID_HEADER: chat_id},
        )

    @app.get("/api/chat-history/{chat_id}")
    def chat_history(chat_id: str, user_id: str = Depends(require_user)):
        history = repo.get_chat_history(db, user_id, chat_id)
        if history is None:
            raise NotFoundError("Chat history", chat_id)
        return ok(history)

    # ---------------- Calendar ----------------

    @app.get("/api/calendar/auth-url")
    def calendar_auth_url(user_id: str = Depends(require_user)):
        return ok({"url": generate_auth_url(cfg)})

    return app


def main() -> None:
    import uvicorn

    cfg = get_config()
    setup_logging(level=cfg.log_level, log_dir=cfg.log_dir)
    host = env_setting("OPSDASH_API_HOST", "127.0.0.1")
    port = env_setting("OPSDASH_API_PORT", 8000, int)
    logger.info("starting opsdash api on %s:%s (db=%s)", host, port, cfg.database_url)
    uvicorn.run(create_app(cfg), host=host, port=port, log_config=None)


if __name__ == "__main__":
    main()
