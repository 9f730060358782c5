"""Radarr API client."""
import httpx
from typing import List, Dict, Any, Optional
import structlog

from media_relay.core.exceptions import ServiceError
from media_relay.utils.http_client import RobustHTTPClient, get_http_client

logger = structlog.get_logger(__name__)


class RadarrService:
    """Service pour interagir avec Radarr."""

    SERVICE_NAME = "radarr"

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
            raise ServiceError(f"Error reaching Radarr: {str(e)}")

    async def get_movies(self) -> List[Dict[str, Any]]:
        """Récupère tous les films depuis Radarr."""
        try:
            response = await self.http.get_async(
                f"{self.base_url}/api/v3/movie",
                self.circuit_key,
                headers=self._get_headers(),
            )
            return response.json()
        except httpx.HTTPError as e:
            raise ServiceError(f"Error fetching movies from Radarr: {str(e)}")

    async def get_movie_by_tmdb_id(self, tmdb_id: int) -> Optional[Dict[str, Any]]:
        """Retrouve un film de la bibliothèque par son TMDB id."""
        movies = await self.get_movies()
        for movie in movies:
            if movie.get("tmdbId") == tmdb_id:
                return movie
        return None

    async def add_movie(
        self,
        tmdb_id: int,
        title: str,
        year: int,
        title_slug: str,
        quality_profile_id: int,
        root_folder_path: str,
        monitored: bool = True,
        search_for_movie: bool = True,
    ) -> Dict[str, Any]:
        """Ajoute un film à Radarr et lance la recherche."""
        body = {
            "title": title,
            "year": year,
            "tmdbId": tmdb_id,
            "titleSlug": title_slug,
            "qualityProfileId": quality_profile_id,
            "rootFolderPath": root_folder_path,
            "images": [],
            "monitored": monitored,
            "addOptions": {"searchForMovie": search_for_movie},
        }
        try:
            response = await self.http.post_async(
                f"{self.base_url}/api/v3/movie",
                self.circuit_key,
                json=body,
                headers=self._get_headers(),
            )
        except httpx.HTTPError as e:
            raise ServiceError(f"Error adding movie to Radarr: {str(e)}")
        logger.info("radarr_movie_added", title=title, tmdb_id=tmdb_id)
        return response.json()
