"""Builds backend clients from service bindings."""
from typing import Optional

from media_relay.core.models import ServiceBinding
from media_relay.services.overseerr import OverseerrService
from media_relay.services.radarr import RadarrService
from media_relay.services.sonarr import SonarrService
from media_relay.utils.crypto import EncryptionService
from media_relay.utils.http_client import RobustHTTPClient


class ServiceClientFactory:
    """Crée un client par appel; la clé API est déchiffrée juste avant usage."""

    def __init__(self, encryption: EncryptionService, http_client: Optional[RobustHTTPClient] = None):
        self.encryption = encryption
        self.http_client = http_client

    def _api_key(self, binding: ServiceBinding) -> str:
        return self.encryption.decrypt(binding.api_key_encrypted)

    def overseerr(self, binding: ServiceBinding) -> OverseerrService:
        return OverseerrService(binding.base_url, self._api_key(binding), self.http_client)

    def radarr(self, binding: ServiceBinding) -> RadarrService:
        return RadarrService(binding.base_url, self._api_key(binding), self.http_client)

    def sonarr(self, binding: ServiceBinding) -> SonarrService:
        return SonarrService(binding.base_url, self._api_key(binding), self.http_client)
