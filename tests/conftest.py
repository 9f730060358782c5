"""Shared fakes for the request engine tests."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, List, Optional

import pytest

from media_relay.core.models import (
    ApprovalPolicy,
    Availability,
    MediaRequest,
    MediaType,
    RequestStatus,
    ServiceBinding,
    ServiceType,
)
from media_relay.core.notifier import Notifier
from media_relay.utils.crypto import EncryptionService, hash_contact


class FakeRequestRepository:
    def __init__(self):
        self.rows: Dict[int, MediaRequest] = {}
        self.updates: List[Dict[str, Any]] = []
        self._next_id = 1

    def find_by_status(self, status: RequestStatus) -> List[MediaRequest]:
        return [r for r in self.rows.values() if r.status == status]

    def find_all(self) -> List[MediaRequest]:
        return list(self.rows.values())

    def find_by_id(self, request_id: int) -> Optional[MediaRequest]:
        return self.rows.get(request_id)

    def create(self, **fields: Any) -> MediaRequest:
        request = MediaRequest(id=self._next_id, created_at=datetime.utcnow(), **fields)
        self.rows[request.id] = request
        self._next_id += 1
        return request

    def update(self, request_id: int, **fields: Any) -> MediaRequest:
        self.updates.append({"id": request_id, **fields})
        updated = replace(self.rows[request_id], updated_at=datetime.utcnow(), **fields)
        self.rows[request_id] = updated
        return updated

    def add(self, **fields: Any) -> MediaRequest:
        defaults = {
            "contact_hash": "hash",
            "media_type": MediaType.MOVIE,
            "title": "Inception",
            "status": RequestStatus.SUBMITTED,
            "service_config_id": 1,
        }
        defaults.update(fields)
        return self.create(**defaults)


class FakeServiceRepository:
    def __init__(self, bindings: Optional[List[ServiceBinding]] = None):
        self.bindings = {b.id: b for b in bindings or []}

    def find_by_id(self, service_id: int) -> Optional[ServiceBinding]:
        return self.bindings.get(service_id)

    def find_all(self) -> List[ServiceBinding]:
        return list(self.bindings.values())


class FakePolicyRepository:
    def __init__(self, policy: Optional[ApprovalPolicy] = None):
        self.policy = policy

    def get_active(self) -> Optional[ApprovalPolicy]:
        return self.policy


class RecordingEvents:
    def __init__(self):
        self.published: List[tuple] = []

    def publish(self, event: str, payload: Dict[str, Any]) -> None:
        self.published.append((event, payload))

    def names(self) -> List[str]:
        return [event for event, _ in self.published]


class RecordingSender:
    def __init__(self, fail: bool = False):
        self.sent: List[tuple] = []
        self.fail = fail

    async def send_message(self, address: str, text: str) -> None:
        if self.fail:
            raise RuntimeError("gateway down")
        self.sent.append((address, text))

    def texts(self) -> List[str]:
        return [text for _, text in self.sent]


class FakeDispatcher:
    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.calls: List[tuple] = []

    async def submit(self, binding, selection) -> None:
        self.calls.append((binding, selection))
        if self.error is not None:
            raise self.error


class FakeChecker:
    """Availability par id de demande; une exception est levée telle quelle."""

    def __init__(self, results: Optional[Dict[int, Any]] = None):
        self.results = results or {}
        self.calls: List[int] = []

    async def check(self, request, binding) -> Availability:
        self.calls.append(request.id)
        result = self.results.get(request.id, Availability())
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def encryption():
    return EncryptionService(EncryptionService.generate_key())


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def events():
    return RecordingEvents()


@pytest.fixture
def request_repo():
    return FakeRequestRepository()


@pytest.fixture
def notifier(sender, encryption):
    return Notifier(sender, encryption)


@pytest.fixture
def make_binding(encryption):
    def _make(service_type=ServiceType.RADARR, binding_id=1, enabled=True, **fields):
        return ServiceBinding(
            id=binding_id,
            name=fields.pop("name", f"{ServiceType(service_type).value}-{binding_id}"),
            service_type=ServiceType(service_type),
            base_url=fields.pop("base_url", "http://backend.local"),
            api_key_encrypted=encryption.encrypt("secret-key"),
            enabled=enabled,
            **fields,
        )

    return _make


@pytest.fixture
def contact():
    address = "+33 6 12 34 56 78"
    return address, hash_contact(address)


@pytest.fixture
def make_services():
    return FakeServiceRepository


@pytest.fixture
def make_policies():
    return FakePolicyRepository


@pytest.fixture
def make_dispatcher():
    return FakeDispatcher


@pytest.fixture
def make_checker():
    return FakeChecker


@pytest.fixture
def make_sender():
    return RecordingSender
