"""In-process event bus for request notifications to the admin UI."""
from typing import Any, Callable, Dict, List

import structlog

logger = structlog.get_logger(__name__)

REQUEST_NEW = "request:new"
REQUEST_STATUS_UPDATE = "request:status-update"

Subscriber = Callable[[str, Dict[str, Any]], None]


class EventBus:
    """Publie des événements vers les abonnés enregistrés."""

    def __init__(self):
        self._subscribers: List[Subscriber] = []

    def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
        self._subscribers.append(subscriber)

        def unsubscribe() -> None:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return unsubscribe

    def publish(self, event: str, payload: Dict[str, Any]) -> None:
        logger.info("event_published", event_name=event, request_id=payload.get("request_id"))
        for subscriber in list(self._subscribers):
            try:
                subscriber(event, payload)
            except Exception as e:
                # erreurs d'abonnés isolées
                logger.error("event_subscriber_failed", event_name=event, error=str(e))
