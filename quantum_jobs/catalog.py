from __future__ import annotations

from quantum_jobs.models import ProviderStatus, Quota, TargetStatus

# Fixed catalog served by the workspace emulator.
PROVIDER_STATUSES = [
    ProviderStatus(
        id="Microsoft",
        current_availability="Available",
        targets=[
            TargetStatus(
                id="microsoft.paralleltempering-parameterfree.cpu",
                current_availability="Available",
                average_queue_time=5,
            ),
            TargetStatus(
                id="microsoft.simulatedannealing-parameterfree.cpu",
                current_availability="Available",
                average_queue_time=5,
            ),
            TargetStatus(
                id="microsoft.populationannealing.cpu",
                current_availability="Degraded",
                average_queue_time=60,
            ),
        ],
    ),
    ProviderStatus(
        id="ionq",
        current_availability="Available",
        targets=[
            TargetStatus(id="ionq.simulator", current_availability="Available", average_queue_time=1),
            TargetStatus(id="ionq.qpu", current_availability="Unavailable"),
        ],
    ),
]

QUOTAS = [
    Quota(dimension="combined_job_hours", scope="Subscription", provider_id="Microsoft", limit=20, period="Monthly"),
    Quota(dimension="concurrent_cpu_jobs", scope="Workspace", provider_id="Microsoft", limit=5, period="None"),
    Quota(dimension="concurrent_fpga_jobs", scope="Workspace", provider_id="Microsoft", limit=1, period="None"),
    Quota(dimension="qgs", scope="Subscription", provider_id="ionq", limit=16666667, period="Monthly"),
]
