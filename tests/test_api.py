import pytest
from fastapi.testclient import TestClient

from clinic_pricing.api.main import app
from clinic_pricing.api.state import get_engine

from conftest import ORG


@pytest.fixture
def client(engine):
    app.dependency_overrides[get_engine] = lambda: engine
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_root(client):
    assert client.get("/").json()["status"] == "online"


def test_resolve(client):
    response = client.post("/prices/resolve", json={
        "scope_id": "C1", "code": "80053", "service_date": "2026-03-02",
    })

    assert response.status_code == 200
    body = response.json()
    assert body["price"] == "58.00"
    assert body["source"] == "organization_default"
    assert body["confidence"] == "high"
    assert body["needs_review"] is False


def test_resolve_bad_date_is_400(client):
    response = client.post("/prices/resolve", json={
        "scope_id": "C1", "code": "80053", "service_date": "someday",
    })
    assert response.status_code == 400


def test_resolve_accepts_utc_timestamp(client):
    response = client.post("/prices/resolve", json={
        "scope_id": "C1", "code": "80053", "service_date": "2026-03-02T00:00:00.000Z",
    })

    assert response.status_code == 200
    assert response.json()["price"] == "58.00"


def test_resolve_batch(client):
    response = client.post("/prices/resolve-batch", json={
        "scope_id": "C1", "codes": ["80053", "85025", "99999"], "service_date": "2026-03-02",
    })

    body = response.json()
    assert set(body) == {"80053", "85025", "99999"}
    assert body["99999"]["needs_review"] is True
    assert body["99999"]["price"] == "0.00"


def test_set_clinic_price(client):
    response = client.put("/prices/clinic", json={
        "scope_id": "C1", "code": "80053", "price": "57.25", "effective_from": "2026-03-02",
    })
    assert response.json() == {"success": True}

    body = client.post("/prices/resolve", json={
        "scope_id": "C1", "code": "80053", "service_date": "2026-03-02",
    }).json()
    assert body["price"] == "57.25"
    assert body["source"] == "clinic_override"


def test_set_default_price_store_failure_is_409(client, store):
    store.fail_insert = True

    response = client.put("/prices/default", json={"code": "80053", "price": "60.00"})

    assert response.status_code == 409


def test_negative_price_is_400(client):
    response = client.put("/prices/default", json={"code": "80053", "price": "-5"})
    assert response.status_code == 400


def test_import_defaults(client):
    response = client.post("/prices/default/import", json={
        "rows": [{"code": "80061", "price": "25.00"}, {"code": "80062", "price": "30.00"}],
        "effective_from": "2026-01-01",
    })

    assert response.json() == {"success": 2, "failed": 0, "errors": []}


def test_import_bad_effective_date_is_400(client):
    response = client.post("/prices/default/import", json={
        "rows": [{"code": "80061", "price": "25.00"}],
        "effective_from": "garbage",
    })

    assert response.status_code == 400


def test_resolve_during_outage_reports_degraded(client, store):
    store.fail_scopes = {"C1", ORG}
    store.fail_prefix = True

    body = client.post("/prices/resolve", json={
        "scope_id": "C1", "code": "80053", "service_date": "2026-03-02",
    }).json()

    assert body["degraded"] is True
    assert body["needs_review"] is True


def test_system_status_and_reload(client):
    client.post("/prices/resolve", json={"scope_id": "C1", "code": "80053", "service_date": "2026-03-02"})

    status = client.get("/system/status").json()
    assert status["cache"]["entries"] == 1

    assert client.post("/system/reload").json() == {"success": True}
    assert client.get("/system/status").json()["cache"]["entries"] == 0
