"""Request creation, approval policy and administrator actions."""
from datetime import datetime
from typing import Any, Dict, Optional

import structlog

from media_relay.core import messages
from media_relay.core.dispatcher import SubmissionDispatcher, error_message_from
from media_relay.core.exceptions import RequestNotFoundError, SubmissionError
from media_relay.core.lifecycle import (
    ensure_admin_actionable,
    validate_initial_status,
    validate_transition,
)
from media_relay.core.models import (
    ApprovalAction,
    ApprovalPolicy,
    MediaRequest,
    MediaSelection,
    MediaType,
    PolicyMode,
    ProcessResult,
    RequestStatus,
    ServiceBinding,
)
from media_relay.core.notifier import Notifier
from media_relay.core.ports import EventPublisher, PolicyRepository, RequestRepository, ServiceRepository
from media_relay.core.rules import decide_action
from media_relay.services.events import REQUEST_NEW, REQUEST_STATUS_UPDATE
from media_relay.utils.crypto import EncryptionService, mask_contact

logger = structlog.get_logger(__name__)

AUTO_REJECT_NOTE = "Auto-rejected by system settings"
ADMIN_REJECT_NOTE = "Request rejected by administrator"


class RequestApprovalService:
    """Applique la politique d'approbation et soumet les demandes approuvées."""

    def __init__(
        self,
        requests: RequestRepository,
        services: ServiceRepository,
        policies: PolicyRepository,
        dispatcher: SubmissionDispatcher,
        notifier: Notifier,
        events: EventPublisher,
        encryption: EncryptionService,
    ):
        self.requests = requests
        self.services = services
        self.policies = policies
        self.dispatcher = dispatcher
        self.notifier = notifier
        self.events = events
        self.encryption = encryption

    def get_policy(self) -> ApprovalPolicy:
        """Politique active, auto_approve sans exceptions par défaut."""
        return self.policies.get_active() or ApprovalPolicy()

    async def decide_and_process(
        self,
        contact_hash: str,
        contact_address: Optional[str],
        selection: MediaSelection,
        binding_id: int,
    ) -> ProcessResult:
        """Crée la demande d'un contact et la traite selon la politique.

        Ne lève jamais: toute erreur inattendue (base, chiffrement, politique)
        devient un résultat FAILED pour que l'appelant puisse répondre au contact.
        """
        try:
            return await self._decide_and_process(contact_hash, contact_address, selection, binding_id)
        except Exception as e:
            error_message = error_message_from(e)
            logger.error(
                "request_processing_failed",
                contact_hash=contact_hash[-4:],
                title=selection.title,
                service_id=binding_id,
                error=error_message,
                exc_info=True,
            )
            return ProcessResult(
                success=False,
                status=RequestStatus.FAILED,
                error_message=error_message,
            )

    async def _decide_and_process(
        self,
        contact_hash: str,
        contact_address: Optional[str],
        selection: MediaSelection,
        binding_id: int,
    ) -> ProcessResult:
        binding = self.services.find_by_id(binding_id)
        if binding is None:
            logger.error("service_config_not_found", service_id=binding_id, title=selection.title)
            return ProcessResult(
                success=False,
                status=RequestStatus.FAILED,
                error_message="Service configuration not found",
            )

        policy = self.get_policy()
        action = decide_action(policy, contact_hash)
        logger.info(
            "processing_request",
            contact_hash=contact_hash[-4:],
            mode=PolicyMode(policy.mode).value,
            action=action.value,
            title=selection.title,
        )

        base_fields = {
            "contact_hash": contact_hash,
            "contact_encrypted": self.encryption.encrypt(contact_address) if contact_address else None,
            "media_type": MediaType(selection.media_type),
            "title": selection.title,
            "year": selection.year,
            "tmdb_id": selection.tmdb_id,
            "tvdb_id": selection.tvdb_id,
            "service_type": binding.service_type,
            "service_config_id": binding.id,
            "selected_seasons": list(selection.selected_seasons),
        }

        if action == ApprovalAction.AUTO_REJECT:
            request = self._create(
                status=RequestStatus.REJECTED, admin_notes=AUTO_REJECT_NOTE, **base_fields
            )
            await self.notifier.send(
                contact_address,
                messages.request_rejected_automatically(
                    request.media_type, request.title, request.year
                ),
                request.id,
            )
            self._emit_new(request, contact_address)
            return ProcessResult(
                success=False,
                status=RequestStatus.REJECTED,
                error_message="Request auto-rejected",
                request_id=request.id,
            )

        if action == ApprovalAction.HOLD:
            request = self._create(status=RequestStatus.PENDING, **base_fields)
            await self.notifier.send(
                contact_address,
                messages.request_pending(request.media_type, request.title, request.year),
                request.id,
            )
            self._emit_new(request, contact_address)
            return ProcessResult(success=True, status=RequestStatus.PENDING, request_id=request.id)

        # AUTO_APPROVE: soumission avant persistance
        error_message = await self._dispatch(binding, selection)
        if error_message is None:
            request = self._create(
                status=RequestStatus.SUBMITTED, submitted_at=datetime.utcnow(), **base_fields
            )
            text = messages.request_submitted(request.media_type, request.title, request.year)
        else:
            request = self._create(
                status=RequestStatus.FAILED, error_message=error_message, **base_fields
            )
            text = messages.request_failed(
                request.media_type, request.title, request.year, error_message
            )

        await self.notifier.send(contact_address, text, request.id)
        self._emit_new(request, contact_address)
        self._emit_status(request.id, None, request.status, error_message)

        if error_message is None:
            return ProcessResult(success=True, status=RequestStatus.SUBMITTED, request_id=request.id)
        return ProcessResult(
            success=False,
            status=RequestStatus.FAILED,
            error_message=error_message,
            request_id=request.id,
        )

    async def approve_request(self, request_id: int) -> ProcessResult:
        """Approbation admin d'une demande PENDING ou FAILED (relance incluse)."""
        request = self._get(request_id)
        ensure_admin_actionable(request.status, "approve")

        if not request.service_config_id:
            raise SubmissionError("Request has no service configuration")
        binding = self.services.find_by_id(request.service_config_id)
        if binding is None or not binding.enabled:
            raise SubmissionError("Service not found or disabled")

        previous_status = request.status
        error_message = await self._dispatch(binding, request.to_selection())

        if error_message is None:
            validate_transition(previous_status, RequestStatus.SUBMITTED)
            request = self.requests.update(
                request_id,
                status=RequestStatus.SUBMITTED,
                submitted_at=datetime.utcnow(),
                error_message=None,
            )
            await self.notifier.notify(
                request,
                messages.request_submitted(
                    request.media_type, request.title, request.year, by_admin=True
                ),
            )
            self._emit_status(request_id, previous_status, RequestStatus.SUBMITTED)
            logger.info("request_approved", request_id=request_id, title=request.title)
            return ProcessResult(success=True, status=RequestStatus.SUBMITTED, request_id=request_id)

        validate_transition(previous_status, RequestStatus.FAILED)
        request = self.requests.update(
            request_id, status=RequestStatus.FAILED, error_message=error_message
        )
        await self.notifier.notify(
            request,
            messages.request_failed(request.media_type, request.title, request.year, error_message),
        )
        self._emit_status(request_id, previous_status, RequestStatus.FAILED, error_message)
        logger.error("approved_request_submission_failed", request_id=request_id, error=error_message)
        return ProcessResult(
            success=False,
            status=RequestStatus.FAILED,
            error_message=error_message,
            request_id=request_id,
        )

    async def reject_request(self, request_id: int, reason: Optional[str] = None) -> MediaRequest:
        """Rejet admin d'une demande PENDING ou FAILED."""
        request = self._get(request_id)
        ensure_admin_actionable(request.status, "reject")
        previous_status = request.status
        validate_transition(previous_status, RequestStatus.REJECTED)

        request = self.requests.update(
            request_id,
            status=RequestStatus.REJECTED,
            admin_notes=reason or ADMIN_REJECT_NOTE,
        )
        await self.notifier.notify(
            request,
            messages.request_rejected_by_admin(
                request.media_type, request.title, request.year, reason
            ),
        )
        self._emit_status(request_id, previous_status, RequestStatus.REJECTED)
        logger.info("request_rejected", request_id=request_id, title=request.title)
        return request

    def update_request(
        self,
        request_id: int,
        status: Optional[RequestStatus] = None,
        admin_notes: Optional[str] = None,
    ) -> MediaRequest:
        """Édition directe par un administrateur (hors contrat de transitions)."""
        request = self._get(request_id)
        fields: Dict[str, Any] = {}
        if admin_notes is not None:
            fields["admin_notes"] = admin_notes
        if status is not None and status != request.status:
            fields["status"] = status
        if not fields:
            return request
        updated = self.requests.update(request_id, **fields)
        if "status" in fields:
            self._emit_status(request_id, request.status, updated.status)
        return updated

    def _get(self, request_id: int) -> MediaRequest:
        request = self.requests.find_by_id(request_id)
        if request is None:
            raise RequestNotFoundError(request_id)
        return request

    def _create(self, status: RequestStatus, **fields: Any) -> MediaRequest:
        validate_initial_status(status)
        return self.requests.create(status=status, **fields)

    async def _dispatch(self, binding: ServiceBinding, selection: MediaSelection) -> Optional[str]:
        """Retourne None si la soumission réussit, sinon le message d'erreur."""
        try:
            await self.dispatcher.submit(binding, selection)
            return None
        except Exception as e:
            logger.error(
                "submission_failed",
                service_id=binding.id,
                title=selection.title,
                error=str(e),
            )
            return error_message_from(e)

    def _emit_new(self, request: MediaRequest, contact_address: Optional[str]) -> None:
        self.events.publish(REQUEST_NEW, {
            "request_id": request.id,
            "title": request.title,
            "user": mask_contact(contact_address),
            "status": request.status.value,
        })

    def _emit_status(
        self,
        request_id: int,
        previous_status: Optional[RequestStatus],
        status: RequestStatus,
        error_message: Optional[str] = None,
    ) -> None:
        payload: Dict[str, Any] = {
            "request_id": request_id,
            "status": status.value,
            "previous_status": previous_status.value if previous_status else None,
            "timestamp": datetime.utcnow().isoformat(),
        }
        if error_message:
            payload["error_message"] = error_message
        self.events.publish(REQUEST_STATUS_UPDATE, payload)
