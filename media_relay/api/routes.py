"""API routes."""
from fastapi import APIRouter, Depends, HTTPException, Request
from typing import List, Optional
import logging

from media_relay.api.models import (
    MediaRequestResponse, CreateRequest, ProcessResponse, RejectRequest, UpdateRequest,
    MonitoringRunResponse, ServiceDiagnostic, DiagnosticsResponse
)
from media_relay.container import Container
from media_relay.core.exceptions import SubmissionError
from media_relay.core.models import MediaRequest, MediaSelection, RequestStatus, ServiceType
from media_relay.utils.crypto import hash_contact, mask_contact

logger = logging.getLogger(__name__)
router = APIRouter()


def get_container(request: Request) -> Container:
    return request.app.state.container


def _to_response(container: Container, media_request: MediaRequest) -> MediaRequestResponse:
    contact = None
    if media_request.contact_encrypted:
        try:
            contact = container.encryption.decrypt(media_request.contact_encrypted)
        except ValueError:
            contact = None
    return MediaRequestResponse(
        id=media_request.id,
        contact=mask_contact(contact),
        media_type=media_request.media_type,
        title=media_request.title,
        year=media_request.year,
        tmdb_id=media_request.tmdb_id,
        tvdb_id=media_request.tvdb_id,
        status=media_request.status,
        service_type=media_request.service_type,
        service_config_id=media_request.service_config_id,
        selected_seasons=media_request.selected_seasons,
        notified_seasons=media_request.notified_seasons,
        notified_episodes=media_request.notified_episodes,
        total_seasons=media_request.total_seasons,
        submitted_at=media_request.submitted_at,
        error_message=media_request.error_message,
        admin_notes=media_request.admin_notes,
        created_at=media_request.created_at,
        updated_at=media_request.updated_at,
    )


@router.get("/api/requests", response_model=List[MediaRequestResponse])
async def list_requests(status: Optional[RequestStatus] = None, container: Container = Depends(get_container)):
    """Liste les demandes, filtrées par statut si fourni."""
    if status is not None:
        requests = container.requests.find_by_status(status)
    else:
        requests = container.requests.find_all()
    return [_to_response(container, r) for r in requests]


@router.get("/api/requests/{request_id}", response_model=MediaRequestResponse)
async def get_request(request_id: int, container: Container = Depends(get_container)):
    media_request = container.requests.find_by_id(request_id)
    if not media_request:
        raise HTTPException(status_code=404, detail="Request not found")
    return _to_response(container, media_request)


@router.post("/api/requests", response_model=ProcessResponse)
async def create_request(body: CreateRequest, container: Container = Depends(get_container)):
    """Point d'entrée du front conversationnel: crée et traite une demande."""
    selection = MediaSelection(
        media_type=body.media_type,
        title=body.title,
        year=body.year,
        tmdb_id=body.tmdb_id,
        tvdb_id=body.tvdb_id,
        selected_seasons=body.selected_seasons,
    )
    result = await container.approval.decide_and_process(
        hash_contact(body.contact), body.contact, selection, body.service_id
    )
    return ProcessResponse(
        success=result.success,
        status=result.status,
        error_message=result.error_message,
        request_id=result.request_id,
    )


@router.post("/api/requests/{request_id}/approve", response_model=ProcessResponse)
async def approve_request(request_id: int, container: Container = Depends(get_container)):
    """Approuve (ou relance) une demande PENDING/FAILED."""
    try:
        result = await container.approval.approve_request(request_id)
    except SubmissionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ProcessResponse(
        success=result.success,
        status=result.status,
        error_message=result.error_message,
        request_id=result.request_id,
    )


@router.post("/api/requests/{request_id}/reject", response_model=MediaRequestResponse)
async def reject_request(request_id: int, body: RejectRequest, container: Container = Depends(get_container)):
    media_request = await container.approval.reject_request(request_id, body.reason)
    return _to_response(container, media_request)


@router.patch("/api/requests/{request_id}", response_model=MediaRequestResponse)
async def update_request(request_id: int, body: UpdateRequest, container: Container = Depends(get_container)):
    """Édition directe (statut, notes admin)."""
    media_request = container.approval.update_request(request_id, body.status, body.admin_notes)
    return _to_response(container, media_request)


@router.post("/api/monitoring/run", response_model=MonitoringRunResponse)
async def run_monitoring(container: Container = Depends(get_container)):
    """Lance un cycle de surveillance immédiatement."""
    logger.info("=== Manual monitoring cycle ===")
    started = await container.scheduler.trigger()
    if not started:
        return MonitoringRunResponse(started=False, message="Monitoring cycle already in progress")
    return MonitoringRunResponse(started=True, message="Monitoring cycle completed")


@router.get("/api/diagnostics", response_model=DiagnosticsResponse)
async def diagnostics(container: Container = Depends(get_container)):
    """Vérifie les connexions aux APIs."""
    results = []
    for binding in container.services.find_all():
        result = ServiceDiagnostic(
            id=binding.id,
            name=binding.name,
            type=binding.service_type,
            enabled=binding.enabled,
        )
        try:
            service_type = ServiceType(binding.service_type)
            if service_type == ServiceType.OVERSEERR:
                client = container.clients.overseerr(binding)
            elif service_type == ServiceType.RADARR:
                client = container.clients.radarr(binding)
            else:
                client = container.clients.sonarr(binding)
            status = await client.test_connection()
            result.connected = True
            result.version = status.get("version")
        except Exception as e:
            result.error = str(e)
        results.append(result)

    scheduler = container.scheduler
    return DiagnosticsResponse(
        services=results,
        monitoring={
            "running": scheduler.is_running,
            "cycle_in_progress": scheduler.is_cycle_in_progress,
            "interval_seconds": scheduler.interval_seconds,
            "last_run_at": scheduler.last_run_at.isoformat() if scheduler.last_run_at else None,
        },
    )
