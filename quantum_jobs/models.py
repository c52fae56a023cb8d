from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class JobStatus(str, Enum):
    WAITING = "Waiting"
    EXECUTING = "Executing"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    CANCELLED = "Cancelled"


TERMINAL_STATUSES = frozenset(
    {JobStatus.SUCCEEDED.value, JobStatus.FAILED.value, JobStatus.CANCELLED.value}
)


def is_terminal(status: str | None) -> bool:
    """Unknown status strings are treated as still in progress."""
    return status in TERMINAL_STATUSES


class WireModel(BaseModel):
    """Base for payloads exchanged with the workspace (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ErrorData(WireModel):
    code: str
    message: str = ""


class JobDetails(WireModel):
    id: str
    name: str | None = None
    container_uri: str | None = None
    input_data_uri: str | None = None
    input_data_format: str
    input_params: dict[str, Any] = Field(default_factory=dict)
    provider_id: str
    target: str
    metadata: dict[str, str] = Field(default_factory=dict)
    output_data_uri: str | None = None
    output_data_format: str | None = None
    status: str | None = None
    creation_time: datetime | None = None
    begin_execution_time: datetime | None = None
    end_execution_time: datetime | None = None
    cancellation_time: datetime | None = None
    error_data: ErrorData | None = None


class JobFilter(WireModel):
    status: str | None = None
    provider_id: str | None = None
    target: str | None = None

    def matches(self, details: JobDetails) -> bool:
        return (
            (self.status is None or details.status == self.status)
            and (self.provider_id is None or details.provider_id == self.provider_id)
            and (self.target is None or details.target == self.target)
        )


class Quota(WireModel):
    dimension: str
    scope: str | None = None
    provider_id: str
    utilization: float = 0.0
    holds: float = 0.0
    limit: float = 0.0
    period: str | None = None


class TargetStatus(WireModel):
    id: str
    current_availability: str | None = None
    average_queue_time: int | None = None


class ProviderStatus(WireModel):
    id: str
    current_availability: str | None = None
    targets: list[TargetStatus] = Field(default_factory=list)


class Page(WireModel, Generic[T]):
    value: list[T] = Field(default_factory=list)
    next_link: str | None = None
