"""
Availability reconciliation loop.

Each cycle walks the SUBMITTED requests, asks their backend what is available,
tells the contact about anything new and persists what was announced so the
next cycle stays silent when nothing changed.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict

import structlog

from media_relay.core import messages
from media_relay.core.availability import AvailabilityChecker
from media_relay.core.lifecycle import validate_transition
from media_relay.core.models import Availability, MediaRequest, MediaType, RequestStatus
from media_relay.core.notifier import Notifier
from media_relay.core.ports import EventPublisher, RequestRepository, ServiceRepository
from media_relay.core.season_tracker import reconcile_episodes, reconcile_seasons
from media_relay.services.events import REQUEST_STATUS_UPDATE

logger = structlog.get_logger(__name__)


@dataclass
class CycleReport:
    checked: int = 0
    skipped: int = 0
    approved: int = 0
    errors: int = 0


class AvailabilityReconciler:
    """Fait avancer les demandes SUBMITTED en fonction de la disponibilité réelle."""

    def __init__(
        self,
        requests: RequestRepository,
        services: ServiceRepository,
        checker: AvailabilityChecker,
        notifier: Notifier,
        events: EventPublisher,
    ):
        self.requests = requests
        self.services = services
        self.checker = checker
        self.notifier = notifier
        self.events = events

    async def run_reconciliation_cycle(self) -> CycleReport:
        report = CycleReport()
        submitted = self.requests.find_by_status(RequestStatus.SUBMITTED)
        logger.info("reconciliation_cycle_started", submitted=len(submitted))

        # Séquentiel: une demande à la fois
        for request in submitted:
            try:
                outcome = await self.reconcile_request(request)
            except Exception as e:
                report.errors += 1
                logger.error(
                    "reconciliation_request_failed",
                    request_id=request.id,
                    title=request.title,
                    error=str(e),
                )
                continue
            if outcome is None:
                report.skipped += 1
                continue
            report.checked += 1
            if outcome == RequestStatus.APPROVED:
                report.approved += 1

        logger.info(
            "reconciliation_cycle_finished",
            checked=report.checked,
            skipped=report.skipped,
            approved=report.approved,
            errors=report.errors,
        )
        return report

    async def reconcile_request(self, request: MediaRequest):
        """Retourne le statut après traitement, ou None si la demande est ignorée."""
        if not request.service_config_id:
            logger.warning("request_without_service", request_id=request.id)
            return None
        binding = self.services.find_by_id(request.service_config_id)
        if binding is None or not binding.enabled:
            logger.warning(
                "service_unavailable_for_request",
                request_id=request.id,
                service_id=request.service_config_id,
            )
            return None

        availability = await self.checker.check(request, binding)
        logger.debug(
            "availability_checked",
            request_id=request.id,
            available=availability.is_available,
            partial=availability.is_partial,
            seasons=availability.available_seasons,
            total_seasons=availability.total_seasons,
        )

        if request.media_type == MediaType.MOVIE:
            return await self._handle_movie(request, availability)
        return await self._handle_series(request, availability)

    async def _handle_movie(self, request: MediaRequest, availability: Availability) -> RequestStatus:
        if not availability.is_available or request.status != RequestStatus.SUBMITTED:
            return request.status

        request = self._mark_approved(request)
        await self.notifier.notify(
            request,
            messages.media_available(
                request.media_type, request.title, request.year, availability.is_partial
            ),
        )
        return request.status

    async def _handle_series(self, request: MediaRequest, availability: Availability) -> RequestStatus:
        has_seasons = availability.available_seasons is not None
        has_episodes = availability.available_episodes is not None

        if has_seasons:
            request = await self._reconcile_seasons(request, availability)
        if has_episodes:
            request = await self._reconcile_episodes(request, availability)

        if (
            availability.is_available
            and not has_seasons
            and not has_episodes
            and request.availability_notified_at is None
        ):
            request = self.requests.update(request.id, availability_notified_at=datetime.utcnow())
            logger.info("series_availability_notified", request_id=request.id, partial=availability.is_partial)
            await self.notifier.notify(
                request,
                messages.media_available(
                    request.media_type, request.title, request.year, availability.is_partial
                ),
            )

        return request.status

    async def _reconcile_seasons(self, request: MediaRequest, availability: Availability) -> MediaRequest:
        update = reconcile_seasons(
            request.selected_seasons,
            request.notified_seasons,
            request.total_seasons,
            availability.available_seasons or [],
            availability.total_seasons,
        )

        # État notifié persisté avant tout envoi
        fields: Dict[str, Any] = {}
        if update.notified_changed:
            fields["notified_seasons"] = update.notified_seasons
        if update.total_changed:
            fields["total_seasons"] = update.total_seasons
        if fields:
            request = self.requests.update(request.id, **fields)
            logger.info(
                "season_state_updated",
                request_id=request.id,
                notified_seasons=request.notified_seasons,
                total_seasons=request.total_seasons,
            )

        if update.requested_available:
            await self.notifier.notify(
                request,
                messages.seasons_available(request.title, request.year, update.requested_available),
            )
        if update.released_beyond_request:
            await self.notifier.notify(
                request,
                messages.seasons_released(request.title, request.year, update.released_beyond_request),
            )
        if update.announced:
            await self.notifier.notify(
                request,
                messages.seasons_announced(request.title, request.year, update.announced),
            )

        if update.all_requested_available and request.status == RequestStatus.SUBMITTED:
            request = self._mark_approved(request)
        return request

    async def _reconcile_episodes(self, request: MediaRequest, availability: Availability) -> MediaRequest:
        update = reconcile_episodes(request.notified_episodes, availability.available_episodes or {})
        if not update.new_episodes:
            return request

        logger.info("new_episodes_available", request_id=request.id, count=len(update.new_episodes))
        request = self.requests.update(request.id, notified_episodes=update.notified_episodes)
        await self.notifier.notify(
            request,
            messages.episodes_available(request.title, request.year, update.new_episodes),
        )
        return request

    def _mark_approved(self, request: MediaRequest) -> MediaRequest:
        validate_transition(request.status, RequestStatus.APPROVED)
        updated = self.requests.update(request.id, status=RequestStatus.APPROVED)
        self.events.publish(REQUEST_STATUS_UPDATE, {
            "request_id": request.id,
            "status": RequestStatus.APPROVED.value,
            "previous_status": request.status.value,
            "timestamp": datetime.utcnow().isoformat(),
        })
        logger.info("request_available", request_id=request.id, title=request.title)
        return updated
