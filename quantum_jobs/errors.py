from __future__ import annotations


class WorkspaceError(Exception):
    """Base class for errors raised by the workspace client."""


class InvalidArgument(WorkspaceError):
    """Caller input is malformed or out of range."""


class WorkspaceClientError(WorkspaceError):
    """The workspace answered with an HTTP error status."""

    def __init__(self, status: int, message: str = "") -> None:
        super().__init__(f"[{status}] {message}" if message else f"[{status}]")
        self.status = status
        self.message = message


class NotFound(WorkspaceClientError):
    def __init__(self, message: str = "") -> None:
        super().__init__(404, message)


class Conflict(WorkspaceClientError):
    """The server rejected a state transition, e.g. cancelling a finished job."""

    def __init__(self, message: str = "") -> None:
        super().__init__(409, message)


class WaitTimeout(WorkspaceError):
    """A local wait ran past its deadline."""


class OperationCancelled(WorkspaceError):
    """A local cancellation signal fired."""


class WorkspaceNotConfigured(WorkspaceError):
    def __init__(self, missing: list[str]) -> None:
        super().__init__("workspace is not configured, missing: " + ", ".join(missing))
        self.missing = missing
