from __future__ import annotations

import asyncio
import logging
from uuid import uuid4

from pydantic import BaseModel, Field

from quantum_jobs.errors import InvalidArgument, WorkspaceNotConfigured
from quantum_jobs.identity import DiagnosticsOptions, compose_application_id
from quantum_jobs.job import CloudJob
from quantum_jobs.models import JobDetails, JobFilter, ProviderStatus, Quota
from quantum_jobs.paging import PagedLister
from quantum_jobs.settings import Settings, get_settings
from quantum_jobs.storage import BlobLocation
from quantum_jobs.transport import (
    HttpWorkspaceTransport,
    TokenProvider,
    WorkspaceContext,
    WorkspaceTransport,
)

logger = logging.getLogger(__name__)


class QuantumJobClientOptions(BaseModel):
    diagnostics: DiagnosticsOptions = Field(default_factory=DiagnosticsOptions)
    endpoint: str | None = None
    poll_interval: float | None = Field(default=None, gt=0)


class Workspace:
    """Job client bound to one workspace.

    The diagnostic application id is composed here, once, from the options
    and the ``AZURE_QUANTUM_NET_APPID`` environment value, and then sent with
    every request this client makes.
    """

    def __init__(
        self,
        subscription_id: str,
        resource_group_name: str,
        workspace_name: str,
        location: str,
        credential: TokenProvider,
        options: QuantumJobClientOptions | None = None,
        transport: WorkspaceTransport | None = None,
        settings: Settings | None = None,
    ) -> None:
        settings = settings or get_settings()
        options = options.model_copy(deep=True) if options else QuantumJobClientOptions()
        options.diagnostics.application_id = compose_application_id(
            options.diagnostics.application_id, settings.application_id
        )
        self.client_options = options
        self.context = WorkspaceContext(
            subscription_id=subscription_id,
            resource_group=resource_group_name,
            workspace_name=workspace_name,
            location=location,
        )
        self.poll_interval = options.poll_interval or settings.poll_interval
        self.transport = transport or HttpWorkspaceTransport(
            self.context,
            credential,
            application_id=self.application_id,
            endpoint=options.endpoint or settings.endpoint or None,
        )

    @classmethod
    def from_environment(
        cls,
        credential: TokenProvider,
        options: QuantumJobClientOptions | None = None,
        settings: Settings | None = None,
    ) -> Workspace:
        settings = settings or get_settings()
        missing = settings.missing_workspace_settings()
        if missing:
            raise WorkspaceNotConfigured(missing)
        return cls(
            subscription_id=settings.subscription_id,
            resource_group_name=settings.resource_group,
            workspace_name=settings.workspace_name,
            location=settings.location,
            credential=credential,
            options=options,
            settings=settings,
        )

    @property
    def application_id(self) -> str:
        return self.client_options.diagnostics.application_id

    async def __aenter__(self) -> Workspace:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.transport.aclose()

    @staticmethod
    def new_job_id() -> str:
        return str(uuid4())

    async def submit(
        self,
        details: JobDetails,
        job_id: str | None = None,
        input_location: BlobLocation | None = None,
    ) -> CloudJob:
        job_id = job_id if job_id is not None else details.id
        if not job_id or not job_id.strip():
            raise InvalidArgument("job id must not be empty")
        if details.id and details.id != job_id:
            raise InvalidArgument(f"job id {job_id!r} does not match details id {details.id!r}")
        update: dict[str, object] = {"id": job_id}
        if input_location is not None:
            update["container_uri"] = input_location.container_uri
            update["input_data_uri"] = input_location.input_uri
        details = details.model_copy(update=update)

        created = await self.transport.create_job(job_id, details)
        logger.info("submitted job %s to %s/%s", job_id, created.provider_id, created.target)
        return CloudJob(self, created)

    async def get_job(self, job_id: str) -> CloudJob:
        if not job_id:
            raise InvalidArgument("job id must not be empty")
        return CloudJob(self, await self.transport.get_job(job_id))

    async def cancel_job(self, job_id: str) -> CloudJob:
        if not job_id:
            raise InvalidArgument("job id must not be empty")
        await self.transport.cancel_job(job_id)
        logger.info("cancellation requested for job %s", job_id)
        return await self.get_job(job_id)

    def list_jobs(
        self,
        job_filter: JobFilter | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> PagedLister[JobDetails, CloudJob]:
        async def fetch(cursor: str | None):
            return await self.transport.list_jobs(cursor, job_filter)

        return PagedLister(
            fetch,
            convert=lambda details: CloudJob(self, details),
            cancel_event=cancel_event,
            name="jobs",
        )

    def list_quotas(
        self, cancel_event: asyncio.Event | None = None
    ) -> PagedLister[Quota, Quota]:
        return PagedLister(
            self.transport.list_quotas, cancel_event=cancel_event, name="quotas"
        )

    def list_provider_status(
        self, cancel_event: asyncio.Event | None = None
    ) -> PagedLister[ProviderStatus, ProviderStatus]:
        return PagedLister(
            self.transport.list_provider_status,
            cancel_event=cancel_event,
            name="provider statuses",
        )
