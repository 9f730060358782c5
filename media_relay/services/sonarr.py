"""Sonarr API client."""
import httpx
from typing import List, Dict, Any, Optional
import structlog

from media_relay.core.exceptions import ServiceError
from media_relay.utils.http_client import RobustHTTPClient, get_http_client

logger = structlog.get_logger(__name__)


class SonarrService:
    """Service pour interagir avec Sonarr."""

    SERVICE_NAME = "sonarr"

    def __init__(self, base_url: str, api_key: str, http_client: Optional[RobustHTTPClient] = None):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        # Un disjoncteur par instance: plusieurs backends du même type peuvent coexister
        self.circuit_key = f"{self.SERVICE_NAME}:{self.base_url}"
        self.http = http_client or get_http_client()

    def _get_headers(self) -> Dict[str, str]:
        """Get API headers."""
        return {"X-Api-Key": self.api_key}

    async def test_connection(self) -> Dict[str, Any]:
        try:
            response = await self.http.get_async(
                f"{self.base_url}/api/v3/system/status",
                self.circuit_key,
                headers=self._get_headers(),
            )
            return {"version": response.json().get("version")}
        except httpx.HTTPError as e:
            raise ServiceError(f"Error reaching Sonarr: {str(e)}")

    async def get_series(self) -> List[Dict[str, Any]]:
        """Récupère toutes les séries depuis Sonarr."""
        try:
            response = await self.http.get_async(
                f"{self.base_url}/api/v3/series",
                self.circuit_key,
                headers=self._get_headers(),
            )
            return response.json()
        except httpx.HTTPError as e:
            raise ServiceError(f"Error fetching series from Sonarr: {str(e)}")

    async def get_series_by_tvdb_id(self, tvdb_id: int) -> Optional[Dict[str, Any]]:
        """Retrouve une série de la bibliothèque par son TVDB id."""
        for series in await self.get_series():
            if series.get("tvdbId") == tvdb_id:
                return series
        return None

    async def get_episodes(self, series_id: int) -> List[Dict[str, Any]]:
        """Récupère les épisodes d'une série."""
        try:
            response = await self.http.get_async(
                f"{self.base_url}/api/v3/episode",
                self.circuit_key,
                headers=self._get_headers(),
                params={"seriesId": series_id},
            )
            return response.json()
        except httpx.HTTPError as e:
            raise ServiceError(f"Error fetching episodes from Sonarr: {str(e)}")

    async def get_available_episodes_by_season(self, series_id: int) -> Dict[int, List[int]]:
        """Épisodes téléchargés (hasFile) groupés par saison, hors spéciaux."""
        available: Dict[int, List[int]] = {}
        for episode in await self.get_episodes(series_id):
            season = episode.get("seasonNumber") or 0
            if season <= 0 or not episode.get("hasFile"):
                continue
            available.setdefault(season, []).append(episode.get("episodeNumber"))
        return {season: sorted(set(eps)) for season, eps in available.items()}

    async def add_series(
        self,
        tvdb_id: int,
        title: str,
        year: int,
        title_slug: str,
        quality_profile_id: int,
        root_folder_path: str,
        monitored: bool = True,
        search_for_missing_episodes: bool = True,
    ) -> Dict[str, Any]:
        """Ajoute une série à Sonarr et lance la recherche des épisodes manquants."""
        body = {
            "title": title,
            "year": year,
            "tvdbId": tvdb_id,
            "titleSlug": title_slug,
            "qualityProfileId": quality_profile_id,
            "rootFolderPath": root_folder_path,
            "images": [],
            "seasons": [],
            "monitored": monitored,
            "seasonFolder": True,
            "addOptions": {"searchForMissingEpisodes": search_for_missing_episodes},
        }
        try:
            response = await self.http.post_async(
                f"{self.base_url}/api/v3/series",
                self.circuit_key,
                json=body,
                headers=self._get_headers(),
            )
        except httpx.HTTPError as e:
            raise ServiceError(f"Error adding series to Sonarr: {str(e)}")
        logger.info("sonarr_series_added", title=title, tvdb_id=tvdb_id)
        return response.json()
