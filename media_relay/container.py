"""Assemblage des services de l'application."""
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import sessionmaker

from media_relay.config import Config
from media_relay.core.approval import RequestApprovalService
from media_relay.core.availability import AvailabilityChecker
from media_relay.core.dispatcher import SubmissionDispatcher
from media_relay.core.notifier import Notifier
from media_relay.core.reconciler import AvailabilityReconciler
from media_relay.db.repositories import SqlPolicyRepository, SqlRequestRepository, SqlServiceRepository
from media_relay.scheduler import MonitoringScheduler
from media_relay.services.events import EventBus
from media_relay.services.factory import ServiceClientFactory
from media_relay.services.messaging import LogMessageSender, MessageSender, WebhookMessageSender
from media_relay.utils.crypto import EncryptionService
from media_relay.utils.http_client import RobustHTTPClient, get_http_client


@dataclass
class Container:
    config: Config
    encryption: EncryptionService
    events: EventBus
    requests: SqlRequestRepository
    services: SqlServiceRepository
    clients: ServiceClientFactory
    approval: RequestApprovalService
    reconciler: AvailabilityReconciler
    scheduler: MonitoringScheduler


def build_sender(config: Config, http_client: RobustHTTPClient) -> MessageSender:
    if config.messaging.webhook_url:
        return WebhookMessageSender(
            config.messaging.webhook_url,
            token=config.messaging.token,
            timeout=config.messaging.timeout,
            http_client=http_client,
        )
    return LogMessageSender()


def build_container(
    config: Config,
    session_factory: sessionmaker,
    http_client: Optional[RobustHTTPClient] = None,
    sender: Optional[MessageSender] = None,
) -> Container:
    http_client = http_client or get_http_client()
    encryption = EncryptionService(config.security.encryption_key)
    events = EventBus()

    requests = SqlRequestRepository(session_factory)
    services = SqlServiceRepository(session_factory)
    policies = SqlPolicyRepository(session_factory)

    clients = ServiceClientFactory(encryption, http_client)
    notifier = Notifier(sender or build_sender(config, http_client), encryption)

    approval = RequestApprovalService(
        requests, services, policies, SubmissionDispatcher(clients), notifier, events, encryption
    )
    reconciler = AvailabilityReconciler(
        requests, services, AvailabilityChecker(clients), notifier, events
    )
    scheduler = MonitoringScheduler(
        reconciler.run_reconciliation_cycle,
        interval_seconds=config.monitoring.interval_seconds,
        run_on_start=config.monitoring.run_on_start,
    )

    return Container(
        config=config,
        encryption=encryption,
        events=events,
        requests=requests,
        services=services,
        clients=clients,
        approval=approval,
        reconciler=reconciler,
        scheduler=scheduler,
    )
