from __future__ import annotations

from datetime import datetime, timezone

import redis.asyncio as redis

from quantum_jobs.errors import Conflict, InvalidArgument, NotFound
from quantum_jobs.models import (
    TERMINAL_STATUSES,
    JobDetails,
    JobFilter,
    JobStatus,
    is_terminal,
)
from quantum_jobs.redis_client import get_redis

# Metadata key a submitter can set to choose how an emulated job ends.
OUTCOME_METADATA_KEY = "emulator.outcome"


class JobStore:
    """Redis-backed job records for the workspace emulator.

    Jobs do not run. Every read of a job moves it one step along
    Waiting -> Executing -> outcome, so pollers see a real progression.
    """

    def __init__(self, client: redis.Redis | None = None) -> None:
        self.redis = client or get_redis()
        self.key_prefix = "job:"
        self.index_prefix = "jobs:"

    def _key(self, scope: str, job_id: str) -> str:
        return f"{self.key_prefix}{scope}:{job_id}"

    def _index(self, scope: str) -> str:
        return f"{self.index_prefix}{scope}"

    async def create(self, scope: str, details: JobDetails) -> JobDetails:
        record = details.model_copy(
            update={
                "status": JobStatus.WAITING.value,
                "creation_time": self._now(),
                "begin_execution_time": None,
                "end_execution_time": None,
                "cancellation_time": None,
                "error_data": None,
            }
        )
        created = await self.redis.set(
            self._key(scope, details.id), record.model_dump_json(), nx=True
        )
        if not created:
            raise InvalidArgument(f"job id {details.id} is already in use")
        await self.redis.rpush(self._index(scope), details.id)  # type: ignore[misc]
        return record

    async def get(self, scope: str, job_id: str) -> JobDetails:
        raw = await self.redis.get(self._key(scope, job_id))
        if raw is None:
            raise NotFound(f"job {job_id} not found")
        return JobDetails.model_validate_json(raw)

    async def advance(self, scope: str, job_id: str) -> JobDetails:
        record = await self.get(scope, job_id)
        if is_terminal(record.status):
            return record
        if record.status == JobStatus.WAITING:
            return await self._save(
                scope,
                record,
                status=JobStatus.EXECUTING.value,
                begin_execution_time=self._now(),
            )
        outcome = record.metadata.get(OUTCOME_METADATA_KEY, JobStatus.SUCCEEDED.value)
        if outcome not in TERMINAL_STATUSES:
            outcome = JobStatus.SUCCEEDED.value
        updates: dict[str, object] = {"status": outcome, "end_execution_time": self._now()}
        if outcome == JobStatus.SUCCEEDED:
            updates["output_data_uri"] = f"{record.container_uri or ''}/rawOutputData"
        elif outcome == JobStatus.FAILED:
            updates["error_data"] = {"code": "EmulatedFailure", "message": "job failed"}
        return await self._save(scope, record, **updates)

    async def cancel(self, scope: str, job_id: str) -> JobDetails:
        record = await self.get(scope, job_id)
        if is_terminal(record.status):
            raise Conflict(f"job {job_id} already finished as {record.status}")
        now = self._now()
        return await self._save(
            scope,
            record,
            status=JobStatus.CANCELLED.value,
            cancellation_time=now,
            end_execution_time=now,
        )

    async def list_page(
        self,
        scope: str,
        offset: int,
        limit: int,
        job_filter: JobFilter | None = None,
    ) -> tuple[list[JobDetails], int | None]:
        """Return one page of jobs in submission order and the next offset."""
        if limit < 1:
            raise InvalidArgument(f"page size must be at least 1, got {limit}")
        ids = await self.redis.lrange(self._index(scope), 0, -1)  # type: ignore[misc]
        keys = [self._key(scope, self._decode(job_id)) for job_id in ids]
        raws = await self.redis.mget(keys) if keys else []
        records = [JobDetails.model_validate_json(raw) for raw in raws if raw is not None]
        if job_filter is not None:
            records = [record for record in records if job_filter.matches(record)]
        page = records[offset : offset + limit]
        next_offset = offset + limit if offset + limit < len(records) else None
        return page, next_offset

    async def _save(self, scope: str, record: JobDetails, **updates) -> JobDetails:
        # model_copy skips validation, so nested payloads are re-parsed here.
        record = JobDetails.model_validate({**record.model_dump(), **updates})
        await self.redis.set(self._key(scope, record.id), record.model_dump_json())
        return record

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    @staticmethod
    def _decode(value: str | bytes) -> str:
        if isinstance(value, bytes):
            return value.decode()
        return str(value)
