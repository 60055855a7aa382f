import pytest
from fastapi import Response
from fastapi.testclient import TestClient

from apps.api.main import app
from apps.api.models import SweepRequest
from apps.api.routers.resources import update_deleted
from apps.api.services import ProviderService, get_provider
from core.config import Settings


@pytest.fixture
def service(fake_registry):
    return ProviderService(registry=fake_registry, app_settings=Settings(provider_version="v0.1"))


@pytest.fixture
def client(service):
    app.dependency_overrides[get_provider] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


def stored(fake_registry, resource):
    [store] = fake_registry.stores.values()
    return store.collection(resource).records()


def test_push_then_sweep_round_trip(client, fake_registry):
    body = {
        "Query": {"Account": "a1"},
        "Timestamp": 1,
        "Input": [
            {"Index": "vm-1", "Checksum": "c1", "Account": "a1"},
            {"Index": "vm-2", "Checksum": "c2", "Account": "a1"},
        ],
    }
    response = client.post("/resources/vm/push", json=body)
    assert response.status_code == 200
    assert response.json() == {"Status": 200, "Error": None}

    body["Timestamp"] = 2
    body["Input"] = body["Input"][:1]
    assert client.post("/resources/vm/push", json=body).status_code == 200
    response = client.post("/resources/vm/deleted", json={"Query": {"Account": "a1"}, "Timestamp": 2})
    assert response.json()["Status"] == 200

    state = {doc["Index"]: doc.get("Deleted") for doc in stored(fake_registry, "vm")}
    assert state == {"vm-1": 0, "vm-2": 1}


def test_push_with_wrong_setting_type_fails_before_store(client, fake_registry):
    response = client.post(
        "/resources/vm/push",
        json={"Setting": {"max_pool_size": "many"}, "Timestamp": 1, "Input": [{"Index": "a", "Checksum": "c"}]},
    )

    assert response.status_code == 500
    assert response.json()["Status"] == 500
    assert "max_pool_size" in response.json()["Error"]
    assert fake_registry.stores == {}


def test_push_rejects_resource_without_checksum(client):
    response = client.post("/resources/vm/push", json={"Timestamp": 1, "Input": [{"Index": "a"}]})

    assert response.status_code == 500
    assert "Checksum" in response.json()["Error"]


def test_store_failure_reports_500(client, fake_registry, service):
    client.post("/resources/vm/push", json={"Timestamp": 1, "Input": [{"Index": "a", "Checksum": "c"}]})
    [store] = fake_registry.stores.values()
    store.collection("vm").fail_on.add("update_many")

    response = client.post("/resources/vm/deleted", json={"Timestamp": 2})

    assert response.status_code == 500
    assert "update_many" in response.json()["Error"]


def test_job_upsert_lifecycle(client, fake_registry):
    response = client.post(
        "/jobs",
        json={"Resource": "sync_jobs", "SyncJob": {"Status": "running", "Type": "full", "StartAt": 1}},
    )
    assert response.status_code == 200
    index = response.json()["Index"]

    response = client.post(
        "/jobs",
        json={"Resource": "sync_jobs", "SyncJob": {"Index": index, "Status": "ended", "Type": "other", "EndAt": 9}},
    )
    assert response.json() == {"Index": index}

    [job] = stored(fake_registry, "sync_jobs")
    assert job["Status"] == "ended"
    assert job["EndAt"] == 9
    assert job["Type"] == "full"


def test_job_upsert_surfaces_configuration_error(client):
    response = client.post("/jobs", json={"Setting": {"timeout": "soon"}, "Resource": "sync_jobs", "SyncJob": {}})

    assert response.status_code == 500
    assert response.json()["error"] == "ConfigurationError"


def test_version_check(client):
    assert client.get("/version", params={"version": "v0.1"}).json() == {"version": "v0.1", "matched": True}
    assert client.get("/version", params={"version": "v0.2"}).json()["matched"] is False


def test_health_reports_store(client):
    payload = client.get("/health").json()

    assert payload["status"] == "pass"
    assert payload["dependencies"][0]["name"] == "mongodb"


@pytest.mark.asyncio
async def test_sweep_with_unparseable_envelope_replies_500(service, fake_registry):
    payload = SweepRequest.model_construct(setting={}, query={}, timestamp=[1])
    response = Response()

    reply = await update_deleted("vm", payload, response, provider=service)

    assert reply.status == 500
    assert response.status_code == 500
    assert "envelope" in reply.error
    assert not fake_registry.stores
