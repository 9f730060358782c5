"""Availability lookups against each backend type."""
from typing import Any, Dict, List, Optional

import structlog

from media_relay.core.models import Availability, MediaRequest, MediaType, ServiceBinding, ServiceType
from media_relay.services.factory import ServiceClientFactory
from media_relay.services.overseerr import MEDIA_STATUS_AVAILABLE, MEDIA_STATUS_PARTIALLY_AVAILABLE

logger = structlog.get_logger(__name__)

_AVAILABLE_STATUSES = (MEDIA_STATUS_AVAILABLE, MEDIA_STATUS_PARTIALLY_AVAILABLE)


def _overseerr_seasons(tv_details: Dict[str, Any]) -> Availability:
    """Saisons 4 (partielle) ou 5 (complète) comptent comme disponibles: Sonarr fait foi."""
    total = len([s for s in tv_details.get("seasons") or [] if (s.get("seasonNumber") or 0) > 0])
    media_info = tv_details.get("mediaInfo") or {}
    available = sorted(
        season.get("seasonNumber")
        for season in media_info.get("seasons") or []
        if season.get("status") in _AVAILABLE_STATUSES and (season.get("seasonNumber") or 0) > 0
    )
    return Availability(available_seasons=available or None, total_seasons=total)


def sonarr_complete_seasons(series: Dict[str, Any]) -> List[int]:
    """Une saison est disponible quand tous ses épisodes diffusés ont un fichier."""
    complete = []
    for season in series.get("seasons") or []:
        number = season.get("seasonNumber") or 0
        stats = season.get("statistics") or {}
        aired = stats.get("episodeCount") or 0
        downloaded = stats.get("episodeFileCount") or 0
        if number > 0 and aired > 0 and downloaded >= aired:
            complete.append(number)
    return sorted(complete)


class AvailabilityChecker:
    """Interroge le backend lié à une demande et normalise la réponse."""

    def __init__(self, clients: ServiceClientFactory):
        self.clients = clients

    async def check(self, request: MediaRequest, binding: ServiceBinding) -> Availability:
        service_type = ServiceType(binding.service_type)
        if service_type == ServiceType.OVERSEERR:
            return await self.check_overseerr(binding, request)
        if service_type == ServiceType.RADARR and request.media_type == MediaType.MOVIE:
            return await self.check_radarr(binding, request)
        if service_type == ServiceType.SONARR and request.media_type == MediaType.SERIES:
            return await self.check_sonarr(binding, request)
        logger.warning(
            "unsupported_availability_check",
            request_id=request.id,
            service=service_type.value,
            media_type=request.media_type.value,
        )
        return Availability()

    async def check_overseerr(self, binding: ServiceBinding, request: MediaRequest) -> Availability:
        if not request.tmdb_id:
            logger.warning("request_missing_tmdb_id", request_id=request.id)
            return Availability()

        client = self.clients.overseerr(binding)
        expected_type = "movie" if request.media_type == MediaType.MOVIE else "tv"
        match = next(
            (
                result for result in await client.search(request.title)
                if result.get("id") == request.tmdb_id and result.get("mediaType") == expected_type
            ),
            None,
        )
        if match is None:
            logger.debug("overseerr_media_not_found", request_id=request.id)
            return Availability()

        status = (match.get("mediaInfo") or {}).get("status")
        is_full = status == MEDIA_STATUS_AVAILABLE
        is_partial = status == MEDIA_STATUS_PARTIALLY_AVAILABLE

        if request.media_type == MediaType.SERIES and (is_full or is_partial):
            try:
                details = _overseerr_seasons(await client.get_tv_details(request.tmdb_id))
            except Exception as e:
                logger.error("overseerr_tv_details_failed", request_id=request.id, error=str(e))
                # disponibilité dégradée, sans liste de saisons
                return Availability(is_available=True, is_partial=is_partial)
            details.is_available = True
            details.is_partial = is_partial
            return details

        logger.debug("overseerr_media_status", request_id=request.id, status=status)
        return Availability(is_available=is_full or is_partial, is_partial=is_partial)

    async def check_radarr(self, binding: ServiceBinding, request: MediaRequest) -> Availability:
        if not request.tmdb_id:
            logger.warning("request_missing_tmdb_id", request_id=request.id)
            return Availability()

        movie = await self.clients.radarr(binding).get_movie_by_tmdb_id(request.tmdb_id)
        if movie is None:
            logger.debug("radarr_movie_not_found", request_id=request.id, tmdb_id=request.tmdb_id)
            return Availability()

        has_file = movie.get("hasFile") is True
        logger.debug("radarr_movie_status", request_id=request.id, has_file=has_file)
        return Availability(is_available=has_file)

    async def check_sonarr(self, binding: ServiceBinding, request: MediaRequest) -> Availability:
        if not request.tvdb_id:
            logger.warning("request_missing_tvdb_id", request_id=request.id)
            return Availability()

        client = self.clients.sonarr(binding)
        series = await client.get_series_by_tvdb_id(request.tvdb_id)
        if series is None:
            logger.debug("sonarr_series_not_found", request_id=request.id, tvdb_id=request.tvdb_id)
            return Availability()

        episode_file_count = (series.get("statistics") or {}).get("episodeFileCount") or 0
        numbered = [s for s in series.get("seasons") or [] if (s.get("seasonNumber") or 0) > 0]
        complete = sonarr_complete_seasons(series)

        available_episodes: Optional[Dict[int, List[int]]] = None
        if series.get("id"):
            try:
                available_episodes = await client.get_available_episodes_by_season(series["id"])
            except Exception as e:
                logger.warning("sonarr_episode_fetch_failed", request_id=request.id, error=str(e))

        is_available = episode_file_count > 0
        return Availability(
            is_available=is_available,
            is_partial=is_available and len(complete) < len(numbered),
            available_seasons=complete,
            available_episodes=available_episodes,
            total_seasons=len(numbered) or None,
        )
