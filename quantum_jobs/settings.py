from __future__ import annotations

import os
from dataclasses import dataclass, field

APPID_ENV_VAR = "AZURE_QUANTUM_NET_APPID"

# Variables a live workspace cannot be built without.
WORKSPACE_ENV_VARS = (
    "AZURE_QUANTUM_SUBSCRIPTION_ID",
    "AZURE_QUANTUM_WORKSPACE_RG",
    "AZURE_QUANTUM_WORKSPACE_NAME",
    "AZURE_QUANTUM_WORKSPACE_LOCATION",
)


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    application_id: str = field(default_factory=lambda: os.getenv(APPID_ENV_VAR, ""))
    subscription_id: str = field(
        default_factory=lambda: os.getenv("AZURE_QUANTUM_SUBSCRIPTION_ID", "")
    )
    resource_group: str = field(
        default_factory=lambda: os.getenv("AZURE_QUANTUM_WORKSPACE_RG", "")
    )
    workspace_name: str = field(
        default_factory=lambda: os.getenv("AZURE_QUANTUM_WORKSPACE_NAME", "")
    )
    location: str = field(
        default_factory=lambda: os.getenv("AZURE_QUANTUM_WORKSPACE_LOCATION", "")
    )
    endpoint: str = field(default_factory=lambda: os.getenv("AZURE_QUANTUM_ENDPOINT", ""))
    poll_interval: float = field(
        default_factory=lambda: float(os.getenv("QUANTUM_JOBS_POLL_INTERVAL", "1.0"))
    )
    page_size: int = field(
        default_factory=lambda: int(os.getenv("QUANTUM_JOBS_PAGE_SIZE", "100"))
    )
    redis_url: str = field(
        default_factory=lambda: os.getenv("REDIS_URL", "redis://localhost:6379/0")
    )
    use_fake_redis: bool = field(default_factory=lambda: _env_flag("FAKE_REDIS"))

    def missing_workspace_settings(self) -> list[str]:
        values = {
            "AZURE_QUANTUM_SUBSCRIPTION_ID": self.subscription_id,
            "AZURE_QUANTUM_WORKSPACE_RG": self.resource_group,
            "AZURE_QUANTUM_WORKSPACE_NAME": self.workspace_name,
            "AZURE_QUANTUM_WORKSPACE_LOCATION": self.location,
        }
        return [name for name in WORKSPACE_ENV_VARS if not values[name].strip()]


def get_settings() -> Settings:
    return Settings()
