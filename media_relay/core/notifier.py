"""Best-effort delivery of user-facing messages."""
from typing import Optional

import structlog

from media_relay.core.models import MediaRequest
from media_relay.services.messaging import MessageSender
from media_relay.utils.crypto import EncryptionService, mask_contact

logger = structlog.get_logger(__name__)


class Notifier:
    """Envoie les messages aux contacts; une erreur d'envoi est loggée, jamais propagée."""

    def __init__(self, sender: MessageSender, encryption: EncryptionService):
        self.sender = sender
        self.encryption = encryption

    def resolve_address(self, request: MediaRequest) -> Optional[str]:
        """Adresse en clair du contact, si elle a été conservée chiffrée."""
        if not request.contact_encrypted:
            logger.info(
                "contact_address_unknown",
                request_id=request.id,
                contact_hash=request.contact_hash[-4:],
            )
            return None
        try:
            return self.encryption.decrypt(request.contact_encrypted)
        except ValueError as e:
            logger.error("contact_decrypt_failed", request_id=request.id, error=str(e))
            return None

    async def send(self, address: Optional[str], text: str, request_id: Optional[int] = None) -> bool:
        if not address:
            return False
        try:
            await self.sender.send_message(address, text)
            return True
        except Exception as e:
            logger.error(
                "notification_failed",
                request_id=request_id,
                to=mask_contact(address),
                error=str(e),
            )
            return False

    async def notify(self, request: MediaRequest, text: str) -> bool:
        return await self.send(self.resolve_address(request), text, request.id)
