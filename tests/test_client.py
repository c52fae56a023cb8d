import asyncio
import json

import httpx
import pytest

from quantum_jobs.client import QuantumJobClientOptions, Workspace
from quantum_jobs.errors import (
    Conflict,
    InvalidArgument,
    NotFound,
    WorkspaceClientError,
    WorkspaceNotConfigured,
)
from quantum_jobs.models import JobFilter
from quantum_jobs.settings import Settings
from quantum_jobs.storage import BlobLocation
from quantum_jobs.transport import (
    HttpWorkspaceTransport,
    StaticTokenProvider,
    WorkspaceContext,
)

from fakes import FakeTransport, make_details, make_workspace

CONTEXT = WorkspaceContext("sub", "rg", "ws", "West US")
JOBS_PATH = "/v1.0/subscriptions/sub/resourceGroups/rg/providers/Microsoft.Quantum/workspaces/ws/jobs"


def http_transport(handler, application_id="MyApp"):
    client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler), base_url="https://westus.quantum.azure.com"
    )
    return HttpWorkspaceTransport(
        CONTEXT, StaticTokenProvider("secret"), application_id=application_id, client=client
    )


def test_default_endpoint_from_location():
    assert CONTEXT.default_endpoint == "https://westus.quantum.azure.com"


def test_requests_carry_token_and_application_id():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=make_details("job-1", status="Waiting").to_wire())

    async def scenario():
        transport = http_transport(handler)
        await transport.get_job("job-1")
        await transport.get_job("job-1")

    asyncio.run(scenario())
    assert [r.url.path for r in seen] == [f"{JOBS_PATH}/job-1"] * 2
    for request in seen:
        assert request.headers["Authorization"] == "Bearer secret"
        assert request.headers["User-Agent"].startswith("MyApp ")


def test_user_agent_without_application_id():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(204)

    asyncio.run(http_transport(handler, application_id="").cancel_job("job-1"))
    assert seen[0].method == "DELETE"
    assert seen[0].headers["User-Agent"].startswith("quantum-jobs/")


def test_create_job_sends_camel_case_body():
    bodies = []

    def handler(request):
        body = json.loads(request.content)
        bodies.append(body)
        return httpx.Response(201, json={**body, "status": "Waiting"})

    details = make_details("job-1", container_uri="c", input_data_uri="c/inputData")
    created = asyncio.run(http_transport(handler).create_job("job-1", details))

    assert bodies[0]["inputDataFormat"] == "microsoft.qio.v2"
    assert bodies[0]["inputDataUri"] == "c/inputData"
    assert bodies[0]["inputParams"] == {"params": {}}
    assert "status" not in bodies[0]
    assert created.status == "Waiting"


@pytest.mark.parametrize(
    "status, error",
    [(400, InvalidArgument), (404, NotFound), (409, Conflict), (500, WorkspaceClientError)],
)
def test_error_statuses_are_mapped(status, error):
    def handler(request):
        return httpx.Response(status, json={"error": {"code": "X", "message": "nope"}})

    with pytest.raises(error) as excinfo:
        asyncio.run(http_transport(handler).get_job("job-1"))
    assert "nope" in str(excinfo.value)


def test_transport_failures_propagate_unchanged():
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    with pytest.raises(httpx.ConnectError):
        asyncio.run(http_transport(handler).get_job("job-1"))


def test_list_jobs_follows_next_link():
    requests = []
    next_link = f"https://westus.quantum.azure.com{JOBS_PATH}?status=Waiting&$skiptoken=2"

    def handler(request):
        requests.append(request)
        if "$skiptoken" not in str(request.url):
            items = [make_details("a").to_wire(), make_details("b").to_wire()]
            return httpx.Response(200, json={"value": items, "nextLink": next_link})
        return httpx.Response(200, json={"value": [make_details("c").to_wire()]})

    async def scenario():
        transport = http_transport(handler)
        workspace = make_workspace(transport)
        lister = workspace.list_jobs(JobFilter(status="Waiting"))
        return [job.id async for job in lister], lister

    ids, lister = asyncio.run(scenario())
    assert ids == ["a", "b", "c"]
    assert lister.fetch_count == 2
    assert requests[0].url.params["status"] == "Waiting"
    assert requests[1].url.params["$skiptoken"] == "2"
    assert requests[1].url.params["status"] == "Waiting"


def test_submit_rejects_empty_job_id():
    workspace = make_workspace(FakeTransport())
    with pytest.raises(InvalidArgument):
        asyncio.run(workspace.submit(make_details("")))


def test_submit_rejects_mismatched_job_id():
    workspace = make_workspace(FakeTransport())
    with pytest.raises(InvalidArgument):
        asyncio.run(workspace.submit(make_details("job-1"), job_id="job-2"))


def test_submit_embeds_input_location_verbatim():
    transport = FakeTransport()
    workspace = make_workspace(transport)
    job_id = workspace.new_job_id()
    location = BlobLocation(container_uri="store/job-x", input_uri="store/job-x/inputData")

    job = asyncio.run(workspace.submit(make_details(""), job_id=job_id, input_location=location))

    assert job.id == job_id
    assert transport.jobs[job_id].container_uri == "store/job-x"
    assert transport.jobs[job_id].input_data_uri == "store/job-x/inputData"


def test_get_unknown_job_raises_not_found():
    workspace = make_workspace(FakeTransport())
    with pytest.raises(NotFound):
        asyncio.run(workspace.get_job("missing"))


def test_cancel_job_returns_refreshed_handle():
    transport = FakeTransport()
    workspace = make_workspace(transport)

    async def scenario():
        await workspace.submit(make_details("job-1"))
        return await workspace.cancel_job("job-1")

    job = asyncio.run(scenario())
    assert job.cancelled


def test_list_quotas_and_providers():
    transport = FakeTransport(pages={"quotas": [["q1"], ["q2"]], "providers": [["p1"]]})
    workspace = make_workspace(transport)

    async def scenario():
        return await workspace.list_quotas().collect(), await workspace.list_provider_status().collect()

    assert asyncio.run(scenario()) == (["q1", "q2"], ["p1"])


def test_context_manager_closes_transport():
    transport = FakeTransport()

    async def scenario():
        async with make_workspace(transport):
            pass

    asyncio.run(scenario())
    assert transport.closed


def test_from_environment_reports_missing_settings(clean_env):
    clean_env.setenv("AZURE_QUANTUM_SUBSCRIPTION_ID", "sub")
    with pytest.raises(WorkspaceNotConfigured) as excinfo:
        Workspace.from_environment(StaticTokenProvider("token"))
    assert excinfo.value.missing == [
        "AZURE_QUANTUM_WORKSPACE_RG",
        "AZURE_QUANTUM_WORKSPACE_NAME",
        "AZURE_QUANTUM_WORKSPACE_LOCATION",
    ]


def test_from_environment_builds_workspace():
    settings = Settings(
        subscription_id="sub",
        resource_group="rg",
        workspace_name="ws",
        location="westus",
        application_id="Env",
        endpoint="http://localhost:8765",
    )
    options = QuantumJobClientOptions(poll_interval=0.5)
    options.diagnostics.application_id = "Opt"

    workspace = Workspace.from_environment(StaticTokenProvider("t"), options, settings)

    assert workspace.context == WorkspaceContext("sub", "rg", "ws", "westus")
    assert workspace.application_id == "Opt-Env"
    assert workspace.poll_interval == 0.5
    asyncio.run(workspace.aclose())


def test_next_link_to_foreign_host_is_not_followed():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(
            200,
            json={
                "value": [make_details("a").to_wire()],
                "nextLink": f"https://attacker.example{JOBS_PATH}?$skiptoken=1",
            },
        )

    with pytest.raises(InvalidArgument):
        asyncio.run(make_workspace(http_transport(handler)).list_jobs().collect())
    assert len(requests) == 1
    assert requests[0].url.host == "westus.quantum.azure.com"
