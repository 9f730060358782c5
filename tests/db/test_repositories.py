"""SQLAlchemy repositories and configuration sync on in-memory SQLite."""

import pytest
from sqlalchemy.orm import sessionmaker

from media_relay.config import ApprovalConfig, Config, ServiceConfigEntry
from media_relay.core.exceptions import RequestNotFoundError
from media_relay.core.models import MediaType, PolicyMode, RequestStatus, ServiceType
from media_relay.db.database import make_engine
from media_relay.db.models import Base
from media_relay.db.repositories import SqlPolicyRepository, SqlRequestRepository, SqlServiceRepository
from media_relay.db.seed import seed_policy, sync_from_config, sync_services
from media_relay.utils.crypto import hash_contact


@pytest.fixture
def session_factory():
    engine = make_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def _entry(**fields):
    defaults = {"name": "radarr", "type": "radarr", "url": "http://radarr:7878/", "api_key": "abc"}
    defaults.update(fields)
    return ServiceConfigEntry(**defaults)


class TestRequestRepository:
    def test_create_and_read_back(self, session_factory):
        repo = SqlRequestRepository(session_factory)

        created = repo.create(
            contact_hash="h1",
            media_type=MediaType.SERIES,
            title="Dark",
            status=RequestStatus.SUBMITTED,
            selected_seasons=[2, 1],
        )

        loaded = repo.find_by_id(created.id)
        assert loaded.media_type == MediaType.SERIES
        assert loaded.status == RequestStatus.SUBMITTED
        assert loaded.selected_seasons == [1, 2]
        assert loaded.notified_episodes == {}
        assert loaded.created_at is not None

    def test_episode_keys_round_trip_as_int(self, session_factory):
        repo = SqlRequestRepository(session_factory)
        created = repo.create(contact_hash="h1", media_type=MediaType.SERIES, title="Dark", status=RequestStatus.SUBMITTED)

        repo.update(created.id, notified_episodes={1: [3, 1, 2], 2: [1]})

        loaded = repo.find_by_id(created.id)
        assert loaded.notified_episodes == {1: [1, 2, 3], 2: [1]}

    def test_update_bumps_updated_at(self, session_factory):
        repo = SqlRequestRepository(session_factory)
        created = repo.create(contact_hash="h1", media_type=MediaType.MOVIE, title="Heat", status=RequestStatus.PENDING)

        updated = repo.update(created.id, status=RequestStatus.REJECTED, admin_notes="no")

        assert updated.status == RequestStatus.REJECTED
        assert updated.admin_notes == "no"
        assert updated.updated_at >= created.updated_at

    def test_find_by_status(self, session_factory):
        repo = SqlRequestRepository(session_factory)
        for status in (RequestStatus.PENDING, RequestStatus.SUBMITTED, RequestStatus.SUBMITTED):
            repo.create(contact_hash="h", media_type=MediaType.MOVIE, title="x", status=status)

        assert len(repo.find_by_status(RequestStatus.SUBMITTED)) == 2
        assert len(repo.find_all()) == 3

    def test_update_unknown_request(self, session_factory):
        with pytest.raises(RequestNotFoundError):
            SqlRequestRepository(session_factory).update(404, status=RequestStatus.FAILED)


class TestSync:
    def test_services_are_upserted_with_encrypted_key(self, session_factory, encryption):
        sync_services(session_factory, [_entry()], encryption)
        sync_services(session_factory, [_entry(api_key="new", priority=5, enabled=False)], encryption)

        bindings = SqlServiceRepository(session_factory).find_all()
        assert len(bindings) == 1
        binding = bindings[0]
        assert binding.service_type == ServiceType.RADARR
        assert binding.base_url == "http://radarr:7878"
        assert binding.priority == 5
        assert not binding.enabled
        assert binding.api_key_encrypted != "new"
        assert encryption.decrypt(binding.api_key_encrypted) == "new"

    def test_policy_seeded_once_with_hashed_contacts(self, session_factory):
        approval = ApprovalConfig(mode="manual", exceptions_enabled=True, exception_contacts=["+1 555 010 9999"])

        assert seed_policy(session_factory, approval)
        assert not seed_policy(session_factory, ApprovalConfig(mode="auto_deny"))

        policy = SqlPolicyRepository(session_factory).get_active()
        assert policy.mode == PolicyMode.MANUAL
        assert policy.exceptions_enabled
        assert policy.exception_contacts == frozenset({hash_contact("5550109999")})

    def test_no_policy_row(self, session_factory):
        assert SqlPolicyRepository(session_factory).get_active() is None

    def test_sync_from_config(self, session_factory, encryption):
        config = Config(services=[_entry(), _entry(name="overseerr", type="overseerr", url="http://o:5055")])

        sync_from_config(session_factory, config, encryption)

        names = {b.name for b in SqlServiceRepository(session_factory).find_all()}
        assert names == {"radarr", "overseerr"}
        assert SqlPolicyRepository(session_factory).get_active().mode == PolicyMode.AUTO_APPROVE
