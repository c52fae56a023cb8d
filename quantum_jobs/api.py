from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse

from quantum_jobs import catalog
from quantum_jobs.errors import InvalidArgument, WorkspaceClientError
from quantum_jobs.job_store import JobStore
from quantum_jobs.models import JobDetails, JobFilter, WireModel
from quantum_jobs.settings import get_settings
from quantum_jobs.storage import RedisBlobStore

logger = logging.getLogger(__name__)

API_DESCRIPTION = """
Workspace emulator - a local stand-in for the remote job service.

Jobs are stored, never executed. Each `GET` of a job moves it one step along
`Waiting -> Executing -> Succeeded`. Set the job metadata key
`emulator.outcome` to `Failed` or `Cancelled` to end it differently.

Listing endpoints return pages of `top` items with a `nextLink` while more
remain.
"""

WORKSPACE_PATH = (
    "/v1.0/subscriptions/{subscription_id}/resourceGroups/{resource_group}"
    "/providers/Microsoft.Quantum/workspaces/{workspace_name}"
)


def _workspace_scope(subscription_id: str, resource_group: str, workspace_name: str) -> str:
    return f"{subscription_id}/{resource_group}/{workspace_name}"


def _require_token(authorization: Annotated[str | None, Header()] = None) -> None:
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=401, detail="bearer token required")


def _jobs(request: Request) -> JobStore:
    return request.app.state.jobs


def _page_size(request: Request, top: int | None) -> int:
    return top or request.app.state.page_size


def _page(request: Request, items: list[WireModel], next_offset: int | None) -> dict:
    next_link = None
    if next_offset is not None:
        next_link = str(request.url.include_query_params(**{"$skiptoken": str(next_offset)}))
    page = {"value": [item.to_wire() for item in items]}
    if next_link:
        page["nextLink"] = next_link
    return page


def _error_response(status: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status, content={"error": {"code": code, "message": message}})


workspace = APIRouter(prefix=WORKSPACE_PATH, dependencies=[Depends(_require_token)])

Scope = Annotated[str, Depends(_workspace_scope)]
SkipToken = Annotated[int, Query(alias="$skiptoken", ge=0)]
Top = Annotated[int | None, Query(gt=0, le=1000)]


@workspace.put("/jobs/{job_id}", status_code=201)
async def create_job(job_id: str, details: JobDetails, scope: Scope, request: Request):
    if details.id != job_id:
        raise InvalidArgument(f"job id {details.id!r} does not match path id {job_id!r}")
    record = await _jobs(request).create(scope, details)
    logger.info("created job %s in %s", job_id, scope)
    return JSONResponse(status_code=201, content=record.to_wire())


@workspace.get("/jobs/{job_id}")
async def get_job(job_id: str, scope: Scope, request: Request):
    record = await _jobs(request).advance(scope, job_id)
    return record.to_wire()


@workspace.delete("/jobs/{job_id}", status_code=204)
async def cancel_job(job_id: str, scope: Scope, request: Request):
    await _jobs(request).cancel(scope, job_id)
    logger.info("cancelled job %s in %s", job_id, scope)
    return Response(status_code=204)


@workspace.get("/jobs")
async def list_jobs(
    scope: Scope,
    request: Request,
    skiptoken: SkipToken = 0,
    top: Top = None,
    status: str | None = None,
    provider_id: Annotated[str | None, Query(alias="providerId")] = None,
    target: str | None = None,
):
    job_filter = JobFilter(status=status, provider_id=provider_id, target=target)
    records, next_offset = await _jobs(request).list_page(
        scope, skiptoken, _page_size(request, top), job_filter
    )
    return _page(request, records, next_offset)


def _static_page(request: Request, items: list, skiptoken: int, top: int | None) -> dict:
    size = _page_size(request, top)
    end = skiptoken + size
    return _page(request, items[skiptoken:end], end if end < len(items) else None)


@workspace.get("/quotas")
async def list_quotas(scope: Scope, request: Request, skiptoken: SkipToken = 0, top: Top = None):
    return _static_page(request, catalog.QUOTAS, skiptoken, top)


@workspace.get("/providerStatus")
async def list_provider_status(
    scope: Scope, request: Request, skiptoken: SkipToken = 0, top: Top = None
):
    return _static_page(request, catalog.PROVIDER_STATUSES, skiptoken, top)


storage = APIRouter(prefix="/storage", dependencies=[Depends(_require_token)])


@storage.put("/{container}/{blob}", status_code=201)
async def put_blob(container: str, blob: str, request: Request):
    await request.app.state.blobs.put(container, blob, await request.body())
    # Served over HTTP, so the address is this app's, not the store's.
    return {"uri": f"{request.base_url}storage/{container}/{blob}"}


@storage.get("/{container}/{blob}")
async def get_blob(container: str, blob: str, request: Request):
    data = await request.app.state.blobs.get(container, blob)
    return Response(content=data, media_type="application/octet-stream")


def create_app(
    jobs: JobStore | None = None,
    blobs: RedisBlobStore | None = None,
    page_size: int | None = None,
) -> FastAPI:
    app = FastAPI(
        title="Quantum Workspace Emulator",
        version="0.1.0",
        description=API_DESCRIPTION,
    )
    if page_size is None:
        page_size = get_settings().page_size
    if page_size < 1:
        raise InvalidArgument(f"page size must be at least 1, got {page_size}")
    app.state.jobs = jobs or JobStore()
    app.state.blobs = blobs or RedisBlobStore()
    app.state.page_size = page_size

    @app.exception_handler(InvalidArgument)
    async def _invalid_argument(request: Request, exc: InvalidArgument):
        return _error_response(400, "InvalidArgument", str(exc))

    @app.exception_handler(WorkspaceClientError)
    async def _client_error(request: Request, exc: WorkspaceClientError):
        return _error_response(exc.status, type(exc).__name__, exc.message)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    app.include_router(workspace)
    app.include_router(storage)
    return app
