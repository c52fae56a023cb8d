"""Submit a job to a workspace and wait for it.

Run the emulator first (``FAKE_REDIS=1 python main.py``), then::

    AZURE_QUANTUM_ENDPOINT=http://localhost:8765 python examples/main.py
"""

import asyncio
import json
import logging
import os

import httpx

from quantum_jobs.client import QuantumJobClientOptions, Workspace
from quantum_jobs.models import JobDetails
from quantum_jobs.storage import BlobLocation, compress_payload
from quantum_jobs.transport import StaticTokenProvider


def container_problem() -> dict:
    weights = [1, 5, 9, 21, 35, 5, 3, 5, 10, 11]
    terms = [
        {"c": wi * wj, "ids": [i, j]}
        for i, wi in enumerate(weights)
        for j, wj in enumerate(weights)
        if i != j
    ]
    return {"cost_function": {"version": "1.0", "type": "ising", "terms": terms}}


async def upload(endpoint: str, token: str, job_id: str, data: bytes) -> BlobLocation:
    container = f"{endpoint}/storage/job-{job_id}"
    async with httpx.AsyncClient(headers={"Authorization": f"Bearer {token}"}) as client:
        response = await client.put(f"{container}/inputData", content=compress_payload(data))
        response.raise_for_status()
    return BlobLocation(container_uri=container, input_uri=f"{container}/inputData")


async def main() -> None:
    logging.basicConfig(level=logging.INFO)
    endpoint = os.getenv("AZURE_QUANTUM_ENDPOINT", "http://localhost:8765")
    options = QuantumJobClientOptions(endpoint=endpoint, poll_interval=0.5)
    options.diagnostics.application_id = "ExampleApp"

    token = os.getenv("AZURE_QUANTUM_TOKEN", "local")

    async with Workspace(
        subscription_id=os.getenv("AZURE_QUANTUM_SUBSCRIPTION_ID", "SubscriptionId"),
        resource_group_name=os.getenv("AZURE_QUANTUM_WORKSPACE_RG", "ResourceGroupName"),
        workspace_name=os.getenv("AZURE_QUANTUM_WORKSPACE_NAME", "WorkspaceName"),
        location=os.getenv("AZURE_QUANTUM_WORKSPACE_LOCATION", "WestUs"),
        credential=StaticTokenProvider(token),
        options=options,
    ) as workspace:
        job_id = workspace.new_job_id()
        location = await upload(endpoint, token, job_id, json.dumps(container_problem()).encode())
        details = JobDetails(
            id=job_id,
            name="containers-example",
            input_data_format="microsoft.qio.v2",
            output_data_format="microsoft.qio-results.v2",
            provider_id="Microsoft",
            target="microsoft.paralleltempering-parameterfree.cpu",
            input_params={"params": {}},
        )
        job = await workspace.submit(details, input_location=location)
        await job.wait_until_terminal(timeout=30)
        print(f"job {job.id} finished as {job.status}")

        async for quota in workspace.list_quotas():
            print(f"quota {quota.provider_id}/{quota.dimension}: {quota.utilization}/{quota.limit}")


if __name__ == "__main__":
    asyncio.run(main())
