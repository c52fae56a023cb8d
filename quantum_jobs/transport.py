from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from quantum_jobs.errors import (
    Conflict,
    InvalidArgument,
    NotFound,
    WorkspaceClientError,
)
from quantum_jobs.models import JobDetails, JobFilter, Page, ProviderStatus, Quota

logger = logging.getLogger(__name__)

API_VERSION_PATH = "/v1.0"
USER_AGENT = "quantum-jobs/0.1.0"


class TokenProvider(Protocol):
    async def get_token(self) -> str: ...


class StaticTokenProvider:
    """Hands out a fixed bearer token."""

    def __init__(self, token: str) -> None:
        self._token = token

    async def get_token(self) -> str:
        return self._token


@dataclass(frozen=True)
class WorkspaceContext:
    subscription_id: str
    resource_group: str
    workspace_name: str
    location: str

    @property
    def default_endpoint(self) -> str:
        return f"https://{self.location.lower().replace(' ', '')}.quantum.azure.com"

    @property
    def base_path(self) -> str:
        return (
            f"{API_VERSION_PATH}/subscriptions/{self.subscription_id}"
            f"/resourceGroups/{self.resource_group}"
            f"/providers/Microsoft.Quantum/workspaces/{self.workspace_name}"
        )


class WorkspaceTransport(Protocol):
    async def create_job(self, job_id: str, details: JobDetails) -> JobDetails: ...

    async def get_job(self, job_id: str) -> JobDetails: ...

    async def cancel_job(self, job_id: str) -> None: ...

    async def list_jobs(
        self, cursor: str | None, job_filter: JobFilter | None = None
    ) -> Page[JobDetails]: ...

    async def list_quotas(self, cursor: str | None) -> Page[Quota]: ...

    async def list_provider_status(self, cursor: str | None) -> Page[ProviderStatus]: ...

    async def aclose(self) -> None: ...


def user_agent(application_id: str) -> str:
    return f"{application_id} {USER_AGENT}" if application_id else USER_AGENT


def raise_for_status(response: httpx.Response) -> None:
    if response.is_success:
        return
    try:
        body = response.json()
    except ValueError:
        body = None
    message = response.text
    if isinstance(body, dict):
        error = body.get("error") if isinstance(body.get("error"), dict) else body
        message = str(error.get("message") or error.get("detail") or message)
    status = response.status_code
    if status in (400, 422):
        raise InvalidArgument(message)
    if status == 404:
        raise NotFound(message)
    if status == 409:
        raise Conflict(message)
    raise WorkspaceClientError(status, message)


class HttpWorkspaceTransport:
    """REST transport for a workspace.

    ``application_id`` is fixed at construction and goes out in the
    ``User-Agent`` header of every request.
    """

    def __init__(
        self,
        context: WorkspaceContext,
        credential: TokenProvider,
        application_id: str = "",
        endpoint: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.context = context
        self._credential = credential
        self._headers = {"User-Agent": user_agent(application_id)}
        self._client = client or httpx.AsyncClient(
            base_url=endpoint or context.default_endpoint
        )
        self._owns_client = client is None

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> httpx.Response:
        token = await self._credential.get_token()
        headers = {**self._headers, "Authorization": f"Bearer {token}"}
        logger.debug("%s %s", method, url)
        response = await self._client.request(
            method, url, params=params, json=json, headers=headers
        )
        raise_for_status(response)
        return response

    def _jobs_path(self, job_id: str | None = None) -> str:
        path = f"{self.context.base_path}/jobs"
        return f"{path}/{job_id}" if job_id else path

    async def create_job(self, job_id: str, details: JobDetails) -> JobDetails:
        response = await self._request("PUT", self._jobs_path(job_id), json=details.to_wire())
        return JobDetails.model_validate(response.json())

    async def get_job(self, job_id: str) -> JobDetails:
        response = await self._request("GET", self._jobs_path(job_id))
        return JobDetails.model_validate(response.json())

    async def cancel_job(self, job_id: str) -> None:
        await self._request("DELETE", self._jobs_path(job_id))

    async def _get_page(
        self, path: str, cursor: str | None, params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        # nextLink is a complete URL that already carries the query.
        if cursor:
            host = httpx.URL(cursor).host
            if host and host != self._client.base_url.host:
                raise InvalidArgument(f"refusing to follow nextLink to foreign host {host!r}")
            response = await self._request("GET", cursor)
        else:
            response = await self._request("GET", path, params=params)
        return response.json()

    async def list_jobs(
        self, cursor: str | None, job_filter: JobFilter | None = None
    ) -> Page[JobDetails]:
        params = job_filter.to_wire() if job_filter else None
        data = await self._get_page(self._jobs_path(), cursor, params)
        return Page[JobDetails].model_validate(data)

    async def list_quotas(self, cursor: str | None) -> Page[Quota]:
        data = await self._get_page(f"{self.context.base_path}/quotas", cursor)
        return Page[Quota].model_validate(data)

    async def list_provider_status(self, cursor: str | None) -> Page[ProviderStatus]:
        data = await self._get_page(f"{self.context.base_path}/providerStatus", cursor)
        return Page[ProviderStatus].model_validate(data)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
