"""FastAPI application exposing the context providers over HTTP.

Editor assistants that support HTTP context providers POST the user's
query to a URL and expect a list of context items back. This module
provides:
- GET /health - Health check
- POST /gitlab, POST /github - Review comments for the workspace's branch
- POST /jira - One Jira issue (the query is the issue id)
- GET /jira/issues - Candidate issues for the picker

To run locally:
    uvicorn review_context.main:app --port 8000

Then visit http://localhost:8000/docs for the interactive API docs.
"""

from __future__ import annotations

import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from starlette.middleware.base import BaseHTTPMiddleware

from review_context import __version__
from review_context.config import AppConfig, load_config
from review_context.logging_config import get_logger, setup_logging
from review_context.provider import build_jira_provider, build_review_provider
from review_context.schemas import ContextItem, SubmenuItem

logger = get_logger(__name__)


class ContextRequest(BaseModel):
    """Body the host tool sends to an HTTP context provider."""

    model_config = ConfigDict(populate_by_name=True)

    query: str = ""
    full_input: str = Field("", alias="fullInput")
    workspace_path: str | None = Field(None, alias="workspacePath")


# ---------------------------------------------------------------------------
# Application Lifespan (startup/shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Load configuration once at startup."""
    setup_logging()
    app.state.config = load_config()
    yield


app = FastAPI(
    title="Review Context",
    description="Review discussion and issue context for editor assistants",
    version=__version__,
    lifespan=lifespan,
)


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        start = time.time()
        response = await call_next(request)
        logger.info(
            "http_request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_s=round(time.time() - start, 3),
        )
        return response


app.add_middleware(LoggingMiddleware)


def get_config(request: Request) -> AppConfig:
    config = getattr(request.app.state, "config", None)
    if config is None:
        config = request.app.state.config = load_config()
    return config


# ---------------------------------------------------------------------------
# Error Handling
# ---------------------------------------------------------------------------


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    """Configuration and input problems are the caller's to fix."""
    return JSONResponse(
        status_code=422,
        content={"error": "validation_error", "detail": str(exc)},
    )


@app.exception_handler(Exception)
async def general_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for anything the providers let through."""
    logger.error("request_failed", path=request.url.path, error=str(exc), exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"error": "internal_error", "detail": str(exc)},
    )


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@app.get("/health")
async def health_check() -> dict[str, str]:
    return {"status": "healthy"}


async def _review_items(host: str, body: ContextRequest, request: Request) -> list[ContextItem]:
    provider = build_review_provider(
        get_config(request),
        host=host,
        workspace_dir=body.workspace_path,
    )
    return await provider.get_context_items(body.query)


@app.post("/gitlab", response_model=list[ContextItem])
async def gitlab_comments(body: ContextRequest, request: Request) -> list[ContextItem]:
    """Render the merge-request discussion for the workspace's branch.

    ``workspacePath`` in the body overrides the configured workspace.
    """
    return await _review_items("gitlab", body, request)


@app.post("/github", response_model=list[ContextItem])
async def github_comments(body: ContextRequest, request: Request) -> list[ContextItem]:
    return await _review_items("github", body, request)


@app.post("/jira", response_model=list[ContextItem])
async def jira_issue(body: ContextRequest, request: Request) -> list[ContextItem]:
    """Render the Jira issue named by ``query``."""
    if not body.query.strip():
        raise HTTPException(status_code=422, detail="query must be an issue id or key")

    provider = build_jira_provider(get_config(request))
    return await provider.get_context_items(body.query.strip())


@app.get("/jira/issues", response_model=list[SubmenuItem])
async def jira_issues(request: Request) -> list[SubmenuItem]:
    provider = build_jira_provider(get_config(request))
    return await provider.load_submenu_items()
