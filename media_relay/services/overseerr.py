"""Overseerr API client."""
import httpx
from typing import List, Dict, Any, Optional, Union
import structlog

from media_relay.core.exceptions import ServiceError
from media_relay.utils.http_client import RobustHTTPClient, get_http_client

logger = structlog.get_logger(__name__)

# Overseerr media status codes
MEDIA_STATUS_PARTIALLY_AVAILABLE = 4
MEDIA_STATUS_AVAILABLE = 5


def _service_error(action: str, e: httpx.HTTPError) -> ServiceError:
    status_code = e.response.status_code if isinstance(e, httpx.HTTPStatusError) else None
    return ServiceError(f"Error {action} Overseerr: {str(e)}", status_code=status_code)


class OverseerrService:
    """Service pour interagir avec Overseerr (agrégateur de demandes)."""

    SERVICE_NAME = "overseerr"

    def __init__(self, base_url: str, api_key: str, http_client: Optional[RobustHTTPClient] = None):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        # Un disjoncteur par instance: plusieurs backends du même type peuvent coexister
        self.circuit_key = f"{self.SERVICE_NAME}:{self.base_url}"
        self.http = http_client or get_http_client()

    def _get_headers(self) -> Dict[str, str]:
        """Get API headers."""
        return {"X-Api-Key": self.api_key}

    async def _get(self, path: str, action: str, params: Optional[Dict[str, Any]] = None) -> Any:
        try:
            response = await self.http.get_async(
                f"{self.base_url}{path}",
                self.circuit_key,
                headers=self._get_headers(),
                params=params,
            )
            return response.json()
        except httpx.HTTPError as e:
            raise _service_error(action, e)

    async def _post(self, path: str, action: str, body: Dict[str, Any]) -> Any:
        try:
            response = await self.http.post_async(
                f"{self.base_url}{path}",
                self.circuit_key,
                json=body,
                headers=self._get_headers(),
            )
            return response.json()
        except httpx.HTTPError as e:
            raise _service_error(action, e)

    async def test_connection(self) -> Dict[str, Any]:
        """Vérifie la connexion et retourne la version."""
        data = await self._get("/api/v1/status", "reaching")
        return {"version": data.get("version")}

    async def search(self, query: str) -> List[Dict[str, Any]]:
        """Recherche films et séries par titre."""
        # Overseerr refuse les requêtes de moins de 2 caractères
        if len(query) < 2:
            return []
        data = await self._get(
            "/api/v1/search", "searching", params={"query": query, "page": 1}
        )
        results = data.get("results", [])
        logger.debug("overseerr_search_completed", query=query, count=len(results))
        return results

    async def get_tv_details(self, tmdb_id: int) -> Dict[str, Any]:
        """Détails d'une série, dont le statut par saison (mediaInfo.seasons)."""
        return await self._get(f"/api/v1/tv/{tmdb_id}", "fetching TV details from")

    async def _get_servers(self, kind: str) -> List[Dict[str, Any]]:
        servers = await self._get(
            f"/api/v1/settings/{kind}", f"fetching {kind.capitalize()} servers from"
        )
        return [
            {
                "id": server.get("id"),
                "name": server.get("name"),
                "type": kind,
                "is_default": bool(server.get("isDefault")),
            }
            for server in servers
        ]

    async def get_radarr_servers(self) -> List[Dict[str, Any]]:
        """Serveurs Radarr configurés dans Overseerr."""
        return await self._get_servers("radarr")

    async def get_sonarr_servers(self) -> List[Dict[str, Any]]:
        """Serveurs Sonarr configurés dans Overseerr."""
        return await self._get_servers("sonarr")

    async def request_movie(
        self,
        media_id: int,
        server_id: int,
        profile_id: int,
        root_folder: str,
        is_4k: bool = False,
    ) -> Dict[str, Any]:
        """Crée une demande de film (media_id = TMDB id)."""
        body = {
            "mediaType": "movie",
            "mediaId": media_id,
            "is4k": is_4k,
            "serverId": server_id,
            "profileId": profile_id,
            "rootFolder": root_folder,
        }
        data = await self._post("/api/v1/request", "requesting movie via", body)
        logger.info("overseerr_movie_requested", media_id=media_id, server_id=server_id)
        return data

    async def request_series(
        self,
        media_id: int,
        server_id: int,
        profile_id: int,
        root_folder: str,
        seasons: Union[str, List[int]] = "all",
        is_4k: bool = False,
    ) -> Dict[str, Any]:
        """Crée une demande de série (media_id = TMDB id)."""
        body = {
            "mediaType": "tv",
            "mediaId": media_id,
            "seasons": seasons,
            "is4k": is_4k,
            "serverId": server_id,
            "profileId": profile_id,
            "rootFolder": root_folder,
        }
        data = await self._post("/api/v1/request", "requesting series via", body)
        logger.info("overseerr_series_requested", media_id=media_id, seasons=seasons)
        return data
