import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

WORKSPACE_VARS = (
    "AZURE_QUANTUM_NET_APPID",
    "AZURE_QUANTUM_SUBSCRIPTION_ID",
    "AZURE_QUANTUM_WORKSPACE_RG",
    "AZURE_QUANTUM_WORKSPACE_NAME",
    "AZURE_QUANTUM_WORKSPACE_LOCATION",
    "AZURE_QUANTUM_ENDPOINT",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove workspace variables so tests do not see the caller's setup."""
    for name in WORKSPACE_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
