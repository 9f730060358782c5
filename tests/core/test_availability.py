"""Availability lookups per backend type."""

import asyncio

from media_relay.core.availability import AvailabilityChecker, sonarr_complete_seasons
from media_relay.core.exceptions import ServiceError
from media_relay.core.models import MediaRequest, MediaType, RequestStatus, ServiceType


class StubOverseerr:
    def __init__(self, results, tv_details=None, tv_error=None):
        self.results = results
        self.tv_details = tv_details
        self.tv_error = tv_error

    async def search(self, query):
        return self.results

    async def get_tv_details(self, tmdb_id):
        if self.tv_error:
            raise self.tv_error
        return self.tv_details


class StubRadarr:
    def __init__(self, movie):
        self.movie = movie

    async def get_movie_by_tmdb_id(self, tmdb_id):
        return self.movie


class StubSonarr:
    def __init__(self, series, episodes=None, episode_error=None):
        self.series = series
        self.episodes = episodes or {}
        self.episode_error = episode_error

    async def get_series_by_tvdb_id(self, tvdb_id):
        return self.series

    async def get_available_episodes_by_season(self, series_id):
        if self.episode_error:
            raise self.episode_error
        return self.episodes


class StubClients:
    def __init__(self, overseerr=None, radarr=None, sonarr=None):
        self._overseerr = overseerr
        self._radarr = radarr
        self._sonarr = sonarr

    def overseerr(self, binding):
        return self._overseerr

    def radarr(self, binding):
        return self._radarr

    def sonarr(self, binding):
        return self._sonarr


def _request(media_type=MediaType.SERIES, **fields):
    defaults = {
        "id": 1,
        "contact_hash": "hash",
        "media_type": media_type,
        "title": "Dark",
        "status": RequestStatus.SUBMITTED,
        "tmdb_id": 70523,
        "tvdb_id": 334824,
    }
    defaults.update(fields)
    return MediaRequest(**defaults)


def _season(number, aired, downloaded):
    return {"seasonNumber": number, "statistics": {"episodeCount": aired, "episodeFileCount": downloaded}}


class TestOverseerr:
    def test_movie_available(self, make_binding):
        client = StubOverseerr([{"id": 27205, "mediaType": "movie", "mediaInfo": {"status": 5}}])
        checker = AvailabilityChecker(StubClients(overseerr=client))

        result = asyncio.run(
            checker.check(_request(MediaType.MOVIE, tmdb_id=27205), make_binding(ServiceType.OVERSEERR))
        )

        assert result.is_available
        assert not result.is_partial

    def test_match_requires_same_media_type(self, make_binding):
        client = StubOverseerr([{"id": 70523, "mediaType": "movie", "mediaInfo": {"status": 5}}])
        checker = AvailabilityChecker(StubClients(overseerr=client))

        result = asyncio.run(checker.check(_request(), make_binding(ServiceType.OVERSEERR)))

        assert not result.is_available

    def test_series_season_details(self, make_binding):
        client = StubOverseerr(
            [{"id": 70523, "mediaType": "tv", "mediaInfo": {"status": 4}}],
            tv_details={
                "seasons": [{"seasonNumber": 0}, {"seasonNumber": 1}, {"seasonNumber": 2}, {"seasonNumber": 3}],
                "mediaInfo": {"seasons": [
                    {"seasonNumber": 1, "status": 5},
                    {"seasonNumber": 2, "status": 4},
                    {"seasonNumber": 3, "status": 3},
                ]},
            },
        )
        checker = AvailabilityChecker(StubClients(overseerr=client))

        result = asyncio.run(checker.check(_request(), make_binding(ServiceType.OVERSEERR)))

        assert result.is_available
        assert result.is_partial
        assert result.available_seasons == [1, 2]
        assert result.total_seasons == 3

    def test_partial_series_detail_failure_degrades(self, make_binding):
        client = StubOverseerr(
            [{"id": 70523, "mediaType": "tv", "mediaInfo": {"status": 4}}],
            tv_error=ServiceError("boom"),
        )
        checker = AvailabilityChecker(StubClients(overseerr=client))

        result = asyncio.run(checker.check(_request(), make_binding(ServiceType.OVERSEERR)))

        assert result.is_available
        assert result.is_partial
        assert result.available_seasons is None


class TestRadarr:
    def test_has_file(self, make_binding):
        checker = AvailabilityChecker(StubClients(radarr=StubRadarr({"tmdbId": 27205, "hasFile": True})))

        result = asyncio.run(checker.check(_request(MediaType.MOVIE), make_binding(ServiceType.RADARR)))

        assert result.is_available

    def test_unknown_movie(self, make_binding):
        checker = AvailabilityChecker(StubClients(radarr=StubRadarr(None)))

        result = asyncio.run(checker.check(_request(MediaType.MOVIE), make_binding(ServiceType.RADARR)))

        assert not result.is_available


class TestSonarr:
    def test_complete_seasons_exclude_specials_and_unaired(self):
        series = {"seasons": [_season(0, 3, 3), _season(1, 10, 10), _season(2, 8, 5), _season(3, 0, 0)]}

        assert sonarr_complete_seasons(series) == [1]

    def test_series_with_episodes(self, make_binding):
        series = {
            "id": 12,
            "statistics": {"episodeFileCount": 15},
            "seasons": [_season(0, 1, 0), _season(1, 10, 10), _season(2, 8, 5)],
        }
        sonarr = StubSonarr(series, episodes={1: list(range(1, 11)), 2: [1, 2, 3, 4, 5]})
        checker = AvailabilityChecker(StubClients(sonarr=sonarr))

        result = asyncio.run(checker.check(_request(), make_binding(ServiceType.SONARR)))

        assert result.is_available
        assert result.is_partial
        assert result.available_seasons == [1]
        assert result.total_seasons == 2
        assert result.available_episodes[2] == [1, 2, 3, 4, 5]

    def test_episode_failure_keeps_season_data(self, make_binding):
        series = {"id": 12, "statistics": {"episodeFileCount": 10}, "seasons": [_season(1, 10, 10)]}
        sonarr = StubSonarr(series, episode_error=ServiceError("boom"))
        checker = AvailabilityChecker(StubClients(sonarr=sonarr))

        result = asyncio.run(checker.check(_request(), make_binding(ServiceType.SONARR)))

        assert result.available_seasons == [1]
        assert result.available_episodes is None
        assert not result.is_partial

    def test_movie_on_sonarr_is_unsupported(self, make_binding):
        checker = AvailabilityChecker(StubClients())

        result = asyncio.run(checker.check(_request(MediaType.MOVIE), make_binding(ServiceType.SONARR)))

        assert not result.is_available
