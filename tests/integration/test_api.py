"""Integration smoke tests for REST API (in-memory UoW and fakes via dependency override)."""
from __future__ import annotations

import uuid

import jwt
import pytest
from fastapi.testclient import TestClient

from wa_dispatch.api.deps import get_gateway, get_media_signer, get_pool, get_publisher, get_resolver, get_uow
from wa_dispatch.app import create_app
from wa_dispatch.application.exceptions import GatewayError
from wa_dispatch.application.policies.retry import RetryPolicy
from wa_dispatch.config import settings
from wa_dispatch.domain.value_objects.enums import AuditEvent, MessageStatus, OutboxStatus
from wa_dispatch.services.credential_resolver import CredentialResolver
from wa_dispatch.services.dispatch_service import Dispatcher
from wa_dispatch.workers.pool import DispatchWorkerPool
from tests.conftest import (
    OTHER_TENANT_ID,
    TENANT_ID,
    FakeGateway,
    FakePublisher,
    FakeSigner,
    FakeUoW,
    make_credential,
    make_item,
    make_message,
    uow_factory_for,
)


def _make_token(sub: str = "user-42", tenant_id: uuid.UUID = TENANT_ID, roles: list | None = None) -> str:
    return jwt.encode(
        {"sub": sub, "tenant_id": str(tenant_id), "roles": roles or []},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )


def _auth(**kwargs) -> dict[str, str]:
    return {"Authorization": f"Bearer {_make_token(**kwargs)}"}


INTERNAL = {"X-Internal-Token": settings.INTERNAL_API_TOKEN}


@pytest.fixture
def env():
    app = create_app()
    uow = FakeUoW()
    credential = make_credential()
    uow.db.credentials[credential.id] = credential
    gateway = FakeGateway()
    signer = FakeSigner()
    publisher = FakePublisher()
    dispatcher = Dispatcher(
        uow_factory=uow_factory_for(uow.db),
        resolver=CredentialResolver(uow_factory_for(uow.db)),
        gateway=gateway,
        policy=RetryPolicy(base_delay_seconds=60, max_delay_seconds=3600),
        publisher=publisher,
    )
    pool = DispatchWorkerPool(
        dispatcher,
        uow_factory_for(uow.db),
        batch_size=10,
        concurrency=2,
        poll_interval=0.01,
        reaper_interval=60,
        reaper_timeout=300,
        worker_id="api-run",
    )

    async def _override():
        yield uow

    app.dependency_overrides[get_uow] = _override
    app.dependency_overrides[get_resolver] = lambda: CredentialResolver(uow_factory_for(uow.db))
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_media_signer] = lambda: signer
    app.dependency_overrides[get_publisher] = lambda: publisher
    app.dependency_overrides[get_pool] = lambda: pool
    return {
        "client": TestClient(app, raise_server_exceptions=False),
        "uow": uow,
        "gateway": gateway,
        "signer": signer,
        "publisher": publisher,
    }


@pytest.fixture
def client(env):
    return env["client"]


@pytest.fixture
def uow(env):
    return env["uow"]


def test_healthz(client):
    resp = client.get("/healthz")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_internal_routes_require_token(client):
    resp = client.post("/internal/outbox", json={"tenant_id": str(TENANT_ID), "payload": {"text": "x"}})
    assert resp.status_code == 403

    resp = client.post("/internal/dispatch/run", headers={"X-Internal-Token": "wrong"})
    assert resp.status_code == 403


def test_enqueue_then_dispatch_run(client, uow, env):
    resp = client.post(
        "/internal/outbox",
        headers=INTERNAL,
        json={"tenant_id": str(TENANT_ID), "payload": {"to": "5511999990000", "text": "hi"}, "max_retries": 2},
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["status"] == "QUEUED"
    assert data["retry_count"] == 0
    assert data["max_retries"] == 2

    resp = client.post("/internal/dispatch/run", headers=INTERNAL)
    assert resp.status_code == 200
    assert resp.json() == {
        "claimed": 1,
        "sent": 1,
        "requeued": 0,
        "failed": 0,
        "superseded": 0,
        "error": 0,
        "reaped": 0,
    }
    assert uow.db.outbox[uuid.UUID(data["id"])].status == OutboxStatus.SENT
    assert len(env["gateway"].sent) == 1


def test_enqueue_uses_default_max_retries(client):
    resp = client.post(
        "/internal/outbox",
        headers=INTERNAL,
        json={"tenant_id": str(TENANT_ID), "payload": {"text": "x"}},
    )
    assert resp.status_code == 201
    assert resp.json()["max_retries"] == settings.DISPATCH_MAX_RETRIES


def test_enqueue_rejects_empty_payload(client):
    resp = client.post("/internal/outbox", headers=INTERNAL, json={"tenant_id": str(TENANT_ID), "payload": {}})
    assert resp.status_code == 422


def test_gateway_health(client, env):
    env["gateway"].states = {"inst-1": "close"}

    resp = client.get("/internal/gateways/health", headers=INTERNAL)

    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "degraded"
    assert data["total_instances"] == 1
    assert data["offline_count"] == 1
    assert data["checks"][0]["state"] == "close"


def test_mark_read(client, uow, env):
    message = make_message(status=MessageStatus.SENT, provider_message_id="WAMID-1")
    uow.db.messages[message.id] = message

    resp = client.post(f"/api/v1/wa/messages/{message.id}/read", headers=_auth())

    assert resp.status_code == 200
    assert resp.json()["status"] == "READ"
    assert uow.db.messages[message.id].status == MessageStatus.READ
    assert uow.db.audit_events(AuditEvent.MARK_READ)
    assert env["publisher"].published


def test_mark_read_requires_token(client):
    resp = client.post(f"/api/v1/wa/messages/{uuid.uuid4()}/read")
    assert resp.status_code in (401, 403)


def test_mark_read_other_tenant_is_404(client, uow):
    message = make_message(tenant_id=OTHER_TENANT_ID, status=MessageStatus.SENT, provider_message_id="W")
    uow.db.messages[message.id] = message

    resp = client.post(f"/api/v1/wa/messages/{message.id}/read", headers=_auth())

    assert resp.status_code == 404


def test_mark_read_gateway_error_is_502(client, uow, env):
    message = make_message(status=MessageStatus.SENT, provider_message_id="WAMID-1")
    uow.db.messages[message.id] = message

    async def _fail(*args, **kwargs):
        raise GatewayError("mark_read: HTTP 503", retryable=True, status_code=503)

    env["gateway"].mark_read = _fail

    resp = client.post(f"/api/v1/wa/messages/{message.id}/read", headers=_auth())

    assert resp.status_code == 502
    assert resp.json()["retryable"] is True


def test_mark_read_without_credentials_is_422(client, uow):
    uow.db.credentials.clear()
    message = make_message(status=MessageStatus.SENT, provider_message_id="WAMID-1")
    uow.db.messages[message.id] = message

    resp = client.post(f"/api/v1/wa/messages/{message.id}/read", headers=_auth())

    assert resp.status_code == 422


def test_refresh_media(client, uow, env):
    message = make_message(content={"type": "image", "storage_path": "t/a.jpg"})
    uow.db.messages[message.id] = message

    resp = client.post("/api/v1/wa/media/refresh", headers=_auth(), json={"message_id": str(message.id)})

    assert resp.status_code == 200
    data = resp.json()
    assert data["media_url"] == env["signer"].url
    assert data["storage_path"] == "t/a.jpg"
    assert data["expires_in_seconds"] == settings.MEDIA_URL_TTL_SECONDS


def test_refresh_media_requires_target(client):
    resp = client.post("/api/v1/wa/media/refresh", headers=_auth(), json={})
    assert resp.status_code == 422


def test_dispatch_run_reaps_before_claiming(client, uow):
    stale = make_item(status=OutboxStatus.PROCESSING, claimed_by="dead-worker")
    uow.db.outbox[stale.id] = stale

    resp = client.post("/internal/dispatch/run", headers=INTERNAL)

    assert resp.status_code == 200
    assert resp.json()["reaped"] == 1
    assert resp.json()["sent"] == 1
    assert uow.db.outbox[stale.id].status == OutboxStatus.SENT


def test_every_application_error_has_a_handler():
    from wa_dispatch.application import exceptions

    app = create_app()
    declared = {
        obj
        for obj in vars(exceptions).values()
        if isinstance(obj, type) and issubclass(obj, exceptions.AppError) and obj is not exceptions.AppError
    }

    assert declared == {
        exceptions.NotFoundError,
        exceptions.ValidationError,
        exceptions.CredentialsNotFoundError,
        exceptions.GatewayError,
    }
    assert declared <= set(app.exception_handlers)
