"""FastAPI application entrypoint for docsync service mode."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, Optional, TypeVar

import uvicorn
from fastapi import Depends, FastAPI, Header, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..config import merge_overrides
from ..errors import ConfigError, DocSyncError, PayloadError
from ..logging import get_logger
from ..orchestrator import Orchestrator
from .events import decode_body, is_actionable, is_bot_pull, parse_pull_request_event

logger = get_logger("service")

T = TypeVar("T")


class HealthResponse(BaseModel):
    status: str


class RepositoryOwner(BaseModel):
    login: Optional[str] = None


class RepositoryInfo(BaseModel):
    name: Optional[str] = None
    owner: Optional[RepositoryOwner] = None


class InitialDocsRequest(BaseModel):
    repository: Optional[RepositoryInfo] = None
    config: Dict[str, Any] = Field(default_factory=dict)


def _default_orchestrator() -> Orchestrator:
    return Orchestrator.from_environment()


async def _in_executor(func: Callable[[], T]) -> T:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, func)


def create_app(
    orchestrator_factory: Callable[[], Orchestrator] = _default_orchestrator,
) -> FastAPI:
    """Create the FastAPI application exposing the webhook and bulk endpoints."""

    app = FastAPI(title="docsync", version="0.1.0")

    async def get_orchestrator() -> Orchestrator:
        return orchestrator_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/webhook")
    async def webhook(
        request: Request,
        x_github_event: Optional[str] = Header(default=None),
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> JSONResponse:
        if not x_github_event:
            logger.error("No GitHub event header found")
            return JSONResponse(status_code=400, content={"error": "No GitHub event header found"})

        try:
            body = decode_body(await request.body(), request.headers.get("content-type"))
            event = parse_pull_request_event(body)
        except PayloadError as exc:
            logger.error("Invalid webhook payload: %s", exc)
            return JSONResponse(status_code=400, content={"error": "Invalid webhook payload"})

        if is_bot_pull(event, orchestrator.config.publish.labels or ("documentation",)):
            logger.info("Skipping bot PR #%d", event.pull_request.number)
            return JSONResponse(content={"message": "Skipping bot PR"})

        if not is_actionable(x_github_event, event.action):
            logger.info("Event ignored: %s %s", x_github_event, event.action)
            return JSONResponse(content={"message": "Event ignored"})

        try:
            config = merge_overrides(orchestrator.config, event.config)
        except ConfigError as exc:
            return JSONResponse(status_code=400, content={"error": "Invalid config", "details": str(exc)})

        owner = event.repository.owner.login
        repo = event.repository.name
        number = event.pull_request.number
        try:
            context = await _in_executor(lambda: orchestrator.run_update(owner, repo, number, config))
        except DocSyncError as exc:
            logger.error("Webhook error: %s", exc)
            return JSONResponse(
                status_code=500,
                content={"error": "Webhook processing failed", "details": str(exc)},
            )
        return JSONResponse(
            content={
                "message": "Documentation update completed",
                "pullRequestUrl": context.pull_request_url,
            }
        )

    @app.post("/generate-initial-docs")
    async def generate_initial_docs(
        payload: InitialDocsRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> JSONResponse:
        repository = payload.repository
        owner = repository.owner.login if repository and repository.owner else None
        repo = repository.name if repository else None
        if not owner or not repo:
            return JSONResponse(status_code=400, content={"error": "Missing repository information"})

        try:
            config = merge_overrides(orchestrator.config, payload.config)
        except ConfigError as exc:
            return JSONResponse(status_code=400, content={"error": "Invalid config", "details": str(exc)})

        logger.info("Starting initial documentation for %s/%s", owner, repo)
        try:
            context = await _in_executor(lambda: orchestrator.run_initial(owner, repo, config))
        except DocSyncError as exc:
            logger.error("Error generating initial docs: %s", exc)
            return JSONResponse(
                status_code=500,
                content={"error": "Failed to generate initial documentation", "details": str(exc)},
            )

        if context.pull_request_url:
            return JSONResponse(
                content={
                    "message": "Initial documentation PR created successfully!",
                    "pullRequestUrl": context.pull_request_url,
                }
            )
        return JSONResponse(
            content={"message": "Initial documentation process completed, but no PR was created."}
        )

    return app


def run_service(host: str = "0.0.0.0", port: int = 8000) -> None:  # pragma: no cover - integration path
    app = create_app()
    uvicorn.run(app, host=host, port=port)


__all__ = ["create_app", "run_service"]
