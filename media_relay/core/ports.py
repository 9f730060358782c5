"""Interfaces the engine depends on (persistence, events)."""
from typing import Any, Dict, List, Optional, Protocol

from media_relay.core.models import ApprovalPolicy, MediaRequest, RequestStatus, ServiceBinding


class RequestRepository(Protocol):
    def find_by_status(self, status: RequestStatus) -> List[MediaRequest]:
        ...

    def find_all(self) -> List[MediaRequest]:
        ...

    def find_by_id(self, request_id: int) -> Optional[MediaRequest]:
        ...

    def create(self, **fields: Any) -> MediaRequest:
        ...

    def update(self, request_id: int, **fields: Any) -> MediaRequest:
        ...


class ServiceRepository(Protocol):
    def find_by_id(self, service_id: int) -> Optional[ServiceBinding]:
        ...

    def find_all(self) -> List[ServiceBinding]:
        ...


class PolicyRepository(Protocol):
    def get_active(self) -> Optional[ApprovalPolicy]:
        ...


class EventPublisher(Protocol):
    def publish(self, event: str, payload: Dict[str, Any]) -> None:
        ...
