from __future__ import annotations

from typing import Any, Dict, List, Tuple

from fastapi.testclient import TestClient

import nodescout.registry.app as app_mod
from nodescout.discovery.schemas import SubmissionRecord
from nodescout.registry.app import app
from nodescout.registry.client import RegistrationClient
from nodescout.registry.storage import InMemorySubmissions


def test_registry_submit_and_list(monkeypatch):
    monkeypatch.setattr(app_mod, "store", InMemorySubmissions(ttl_seconds=60))
    client = TestClient(app)

    r = client.post(
        "/submit",
        json={"submitter": "B62qA", "graphql_control_port": 3085, "remote_addr": "10.0.0.1"},
    )
    assert r.status_code == 200
    assert r.json()["ok"] is True

    # remote_addr defaults to the caller's address.
    r = client.post("/submit", json={"submitter": "B62qB", "graphql_control_port": 10042})
    assert r.status_code == 200

    r2 = client.get("/submissions")
    assert r2.status_code == 200
    subs = r2.json()
    assert isinstance(subs, list)
    assert {s["submitter"] for s in subs} == {"B62qA", "B62qB"}
    by_sub = {s["submitter"]: s for s in subs}
    assert by_sub["B62qA"] == {"remote_addr": "10.0.0.1", "submitter": "B62qA", "graphql_control_port": 3085}
    assert by_sub["B62qB"]["remote_addr"] == "testclient"


def test_registry_rejects_bad_port():
    client = TestClient(app)
    r = client.post("/submit", json={"submitter": "x", "graphql_control_port": 70000})
    assert r.status_code == 422


def test_registry_healthz():
    r = TestClient(app).get("/healthz")
    assert r.status_code == 200
    assert r.json()["ok"] is True


def test_storage_expires_and_orders_by_recency():
    store = InMemorySubmissions(ttl_seconds=60)
    store.upsert(SubmissionRecord(remote_addr="1.1.1.1", submitter="old", control_port=1), now=1000.0)
    store.upsert(SubmissionRecord(remote_addr="1.1.1.2", submitter="new", control_port=1), now=1050.0)

    assert [r.submitter for r in store.list_active(now=1055.0)] == ["new", "old"]
    assert [r.submitter for r in store.list_active(now=1070.0)] == ["new"]

    # Re-registering refreshes the entry instead of adding a second one.
    store.upsert(SubmissionRecord(remote_addr="1.1.1.9", submitter="old", control_port=1), now=1080.0)
    active = store.list_active(now=1080.0)
    assert [r.remote_addr for r in active] == ["1.1.1.9", "1.1.1.2"]

    assert store.prune(now=1200.0) == 2
    assert store.list_active(now=1200.0) == []


def test_registration_client_posts_submission(monkeypatch):
    calls: List[Tuple[str, Dict[str, Any], float]] = []

    def fake_post(url: str, *, json: Dict[str, Any], timeout: float):  # noqa: A002 - match requests API
        calls.append((url, json, timeout))

        class _Resp:
            def raise_for_status(self) -> None:
                return None

        return _Resp()

    import nodescout.registry.client as mod

    monkeypatch.setattr(mod.requests, "post", fake_post)

    client = RegistrationClient("http://registry/", timeout_s=3.0)
    client.register(submitter="B62qA", control_port=3085)
    client.register(submitter="B62qA", control_port=3085, remote_addr="10.0.0.1")

    assert calls[0] == ("http://registry/submit", {"submitter": "B62qA", "graphql_control_port": 3085}, 3.0)
    assert calls[1][1]["remote_addr"] == "10.0.0.1"


def test_registration_client_list_tolerates_non_list(monkeypatch):
    class _Resp:
        def __init__(self, payload: Any):
            self._payload = payload

        def raise_for_status(self) -> None:
            return None

        def json(self) -> Any:
            return self._payload

    import nodescout.registry.client as mod

    monkeypatch.setattr(mod.requests, "get", lambda url, timeout: _Resp({"error": "nope"}))
    assert RegistrationClient("http://registry").list_submissions() == []

    monkeypatch.setattr(mod.requests, "get", lambda url, timeout: _Resp([{"submitter": "a"}]))
    assert RegistrationClient("http://registry").list_submissions() == [{"submitter": "a"}]


def test_registry_rejects_non_integer_port():
    client = TestClient(app)
    for port in (True, "3085", 3085.5):
        r = client.post("/submit", json={"submitter": "x", "graphql_control_port": port})
        assert r.status_code == 422
