"""Diagnostic application id handling.

The application id is a short string sent with every request for telemetry
attribution. A caller may set one through :class:`DiagnosticsOptions` and the
environment may supply another through ``AZURE_QUANTUM_NET_APPID``; the two
are merged once, when the client is built.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator

from quantum_jobs.errors import InvalidArgument

MAX_APPLICATION_ID_LENGTH = 24


def compose_application_id(option_id: str | None, env_id: str | None) -> str:
    """Merge the option and environment ids into one bounded id.

    Both present gives ``"<option>-<env>"``; either alone is used as is. The
    result is cut to the first 24 characters, with no word awareness.
    """
    option_id = option_id or ""
    env_id = env_id or ""
    if option_id and env_id:
        composed = f"{option_id}-{env_id}"
    else:
        composed = option_id or env_id
    return composed[:MAX_APPLICATION_ID_LENGTH]


class DiagnosticsOptions(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    application_id: str = ""

    @field_validator("application_id")
    @classmethod
    def _check_length(cls, value: str) -> str:
        # InvalidArgument is not a ValueError, so pydantic lets it propagate.
        if len(value) > MAX_APPLICATION_ID_LENGTH:
            raise InvalidArgument(
                f"application id must be at most {MAX_APPLICATION_ID_LENGTH} "
                f"characters, got {len(value)}"
            )
        return value
