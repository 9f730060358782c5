"""Outbound text transport."""
from typing import Optional, Protocol

import httpx
import structlog

from media_relay.core.exceptions import ServiceError
from media_relay.utils.crypto import mask_contact
from media_relay.utils.http_client import RobustHTTPClient, get_http_client

logger = structlog.get_logger(__name__)


class MessageSender(Protocol):
    async def send_message(self, address: str, text: str) -> None:
        ...


class WebhookMessageSender:
    """Envoie les messages via une passerelle HTTP (ex: bridge WhatsApp)."""

    SERVICE_NAME = "messaging"

    def __init__(
        self,
        webhook_url: str,
        token: Optional[str] = None,
        timeout: float = 15.0,
        http_client: Optional[RobustHTTPClient] = None,
    ):
        self.webhook_url = webhook_url
        self.token = token
        self.timeout = timeout
        self.http = http_client or get_http_client()

    async def send_message(self, address: str, text: str) -> None:
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else None
        try:
            await self.http.post_async(
                self.webhook_url,
                self.SERVICE_NAME,
                json={"to": address, "text": text},
                headers=headers,
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            raise ServiceError(f"Error sending message: {str(e)}")
        logger.info("message_sent", to=mask_contact(address))


class LogMessageSender:
    """Fallback sans passerelle: les messages sont seulement journalisés."""

    async def send_message(self, address: str, text: str) -> None:
        logger.info("message_not_sent_no_gateway", to=mask_contact(address), length=len(text))
