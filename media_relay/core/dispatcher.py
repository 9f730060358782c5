"""Submission of approved requests to their backend."""
import re
from typing import Any, Dict, List, Optional

import structlog

from media_relay.core.exceptions import SubmissionError
from media_relay.core.models import MediaSelection, MediaType, ServiceBinding, ServiceType
from media_relay.services.factory import ServiceClientFactory

logger = structlog.get_logger(__name__)

DEFAULT_QUALITY_PROFILE_ID = 1
# Overseerr choisit le vrai profil côté serveur, on envoie un placeholder
AGGREGATOR_PROFILE_ID = 1
DEFAULT_ROOT_FOLDERS = {
    MediaType.MOVIE: "/movies",
    MediaType.SERIES: "/tv",
}


def make_title_slug(title: str, external_id: int) -> str:
    """Slug URL-safe: "The Matrix", 603 -> "the-matrix-603"."""
    slug = re.sub(r"[^a-z0-9]+", "-", f"{title}-{external_id}".lower())
    return slug.strip("-")


def error_message_from(exc: BaseException) -> str:
    """Message lisible d'une erreur, "Unknown error" si elle n'en porte pas."""
    message = str(exc).strip() if isinstance(exc, Exception) else ""
    return message or "Unknown error"


def pick_default_server(servers: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    for server in servers:
        if server.get("is_default"):
            return server
    return servers[0] if servers else None


class SubmissionDispatcher:
    """Envoie une demande approuvée vers Overseerr, Radarr ou Sonarr."""

    def __init__(self, clients: ServiceClientFactory):
        self.clients = clients

    async def submit(self, binding: ServiceBinding, selection: MediaSelection) -> None:
        """Lève une exception en cas d'échec (politique ou backend)."""
        if not binding.enabled:
            raise SubmissionError(f"Service {binding.name} is disabled")

        service_type = ServiceType(binding.service_type)
        media_type = MediaType(selection.media_type)
        logger.info(
            "submitting_request",
            service=service_type.value,
            service_id=binding.id,
            media_type=media_type.value,
            title=selection.title,
        )

        if service_type == ServiceType.OVERSEERR:
            await self._submit_to_overseerr(binding, selection)
        elif service_type == ServiceType.RADARR and media_type == MediaType.MOVIE:
            await self._submit_to_radarr(binding, selection)
        elif service_type == ServiceType.SONARR and media_type == MediaType.SERIES:
            await self._submit_to_sonarr(binding, selection)
        else:
            raise SubmissionError(
                f"{service_type.value.capitalize()} cannot handle {media_type.value} requests"
            )

    def _root_folder(self, binding: ServiceBinding, media_type: MediaType) -> str:
        return binding.root_folder_path or DEFAULT_ROOT_FOLDERS[media_type]

    async def _submit_to_radarr(self, binding: ServiceBinding, selection: MediaSelection) -> None:
        if not selection.tmdb_id:
            raise SubmissionError("Missing TMDB ID for movie request")
        client = self.clients.radarr(binding)
        await client.add_movie(
            tmdb_id=selection.tmdb_id,
            title=selection.title,
            year=selection.year or 0,
            title_slug=make_title_slug(selection.title, selection.tmdb_id),
            quality_profile_id=binding.quality_profile_id or DEFAULT_QUALITY_PROFILE_ID,
            root_folder_path=self._root_folder(binding, MediaType.MOVIE),
            monitored=True,
            search_for_movie=True,
        )

    async def _submit_to_sonarr(self, binding: ServiceBinding, selection: MediaSelection) -> None:
        if not selection.tvdb_id:
            raise SubmissionError("Missing TVDB ID for series request")
        client = self.clients.sonarr(binding)
        await client.add_series(
            tvdb_id=selection.tvdb_id,
            title=selection.title,
            year=selection.year or 0,
            title_slug=make_title_slug(selection.title, selection.tvdb_id),
            quality_profile_id=binding.quality_profile_id or DEFAULT_QUALITY_PROFILE_ID,
            root_folder_path=self._root_folder(binding, MediaType.SERIES),
            monitored=True,
            search_for_missing_episodes=True,
        )

    async def _submit_to_overseerr(self, binding: ServiceBinding, selection: MediaSelection) -> None:
        media_type = MediaType(selection.media_type)
        if not selection.tmdb_id:
            raise SubmissionError(f"Missing TMDB ID for {media_type.value} request")

        client = self.clients.overseerr(binding)
        root_folder = self._root_folder(binding, media_type)

        if media_type == MediaType.MOVIE:
            server = pick_default_server(await client.get_radarr_servers())
            if not server:
                raise SubmissionError("No Radarr server configured in Overseerr")
            await client.request_movie(
                media_id=selection.tmdb_id,
                server_id=server["id"],
                profile_id=AGGREGATOR_PROFILE_ID,
                root_folder=root_folder,
            )
        else:
            server = pick_default_server(await client.get_sonarr_servers())
            if not server:
                raise SubmissionError("No Sonarr server configured in Overseerr")
            seasons = sorted(selection.selected_seasons) if selection.selected_seasons else "all"
            await client.request_series(
                media_id=selection.tmdb_id,
                server_id=server["id"],
                profile_id=AGGREGATOR_PROFILE_ID,
                root_folder=root_folder,
                seasons=seasons,
            )
