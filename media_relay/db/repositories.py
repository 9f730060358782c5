"""Repositories: conversion entre lignes SQLAlchemy et dataclasses du core."""
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import sessionmaker

from media_relay.core.exceptions import RequestNotFoundError
from media_relay.core.models import (
    ApprovalPolicy,
    MediaRequest,
    MediaType,
    PolicyMode,
    RequestStatus,
    ServiceBinding,
    ServiceType,
)
from media_relay.db.models import ApprovalSettingsRow, MediaRequestRow, ServiceConfigRow

# Champs du core stockés en JSON sous un autre nom de colonne
_JSON_COLUMNS = {
    "selected_seasons": "selected_seasons_json",
    "notified_seasons": "notified_seasons_json",
    "notified_episodes": "notified_episodes_json",
}


def _enum_value(value: Any) -> Any:
    return getattr(value, "value", value)


def _episodes_to_json(episodes: Dict[int, List[int]]) -> Dict[str, List[int]]:
    return {str(season): sorted(eps) for season, eps in episodes.items()}


def _episodes_from_json(data: Optional[Dict[str, List[int]]]) -> Dict[int, List[int]]:
    return {int(season): list(eps) for season, eps in (data or {}).items()}


def request_from_row(row: MediaRequestRow) -> MediaRequest:
    return MediaRequest(
        id=row.id,
        contact_hash=row.contact_hash,
        contact_encrypted=row.contact_encrypted,
        media_type=MediaType(row.media_type),
        title=row.title,
        year=row.year,
        tmdb_id=row.tmdb_id,
        tvdb_id=row.tvdb_id,
        status=RequestStatus(row.status),
        service_type=ServiceType(row.service_type) if row.service_type else None,
        service_config_id=row.service_config_id,
        selected_seasons=list(row.selected_seasons_json or []),
        notified_seasons=list(row.notified_seasons_json or []),
        notified_episodes=_episodes_from_json(row.notified_episodes_json),
        total_seasons=row.total_seasons,
        availability_notified_at=row.availability_notified_at,
        submitted_at=row.submitted_at,
        error_message=row.error_message,
        admin_notes=row.admin_notes,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def binding_from_row(row: ServiceConfigRow) -> ServiceBinding:
    return ServiceBinding(
        id=row.id,
        name=row.name,
        service_type=ServiceType(row.service_type),
        base_url=row.base_url,
        api_key_encrypted=row.api_key_encrypted,
        enabled=row.enabled,
        quality_profile_id=row.quality_profile_id,
        root_folder_path=row.root_folder_path,
        priority=row.priority,
    )


def _to_columns(fields: Dict[str, Any]) -> Dict[str, Any]:
    columns = {}
    for name, value in fields.items():
        if name == "notified_episodes":
            value = _episodes_to_json(value or {})
        elif name in ("selected_seasons", "notified_seasons"):
            value = sorted(set(value or []))
        else:
            value = _enum_value(value)
        columns[_JSON_COLUMNS.get(name, name)] = value
    return columns


class SqlRequestRepository:
    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def find_by_status(self, status: RequestStatus) -> List[MediaRequest]:
        with self.session_factory() as db:
            rows = (
                db.query(MediaRequestRow)
                .filter(MediaRequestRow.status == _enum_value(status))
                .order_by(MediaRequestRow.created_at, MediaRequestRow.id)
                .all()
            )
            return [request_from_row(row) for row in rows]

    def find_all(self) -> List[MediaRequest]:
        with self.session_factory() as db:
            rows = db.query(MediaRequestRow).order_by(MediaRequestRow.created_at.desc()).all()
            return [request_from_row(row) for row in rows]

    def find_by_id(self, request_id: int) -> Optional[MediaRequest]:
        with self.session_factory() as db:
            row = db.query(MediaRequestRow).filter(MediaRequestRow.id == request_id).first()
            return request_from_row(row) if row else None

    def create(self, **fields: Any) -> MediaRequest:
        with self.session_factory() as db:
            now = datetime.utcnow()
            row = MediaRequestRow(created_at=now, updated_at=now, **_to_columns(fields))
            db.add(row)
            db.commit()
            db.refresh(row)
            return request_from_row(row)

    def update(self, request_id: int, **fields: Any) -> MediaRequest:
        with self.session_factory() as db:
            row = db.query(MediaRequestRow).filter(MediaRequestRow.id == request_id).first()
            if row is None:
                raise RequestNotFoundError(request_id)
            for column, value in _to_columns(fields).items():
                setattr(row, column, value)
            row.updated_at = datetime.utcnow()
            db.commit()
            db.refresh(row)
            return request_from_row(row)


class SqlServiceRepository:
    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def find_by_id(self, service_id: int) -> Optional[ServiceBinding]:
        with self.session_factory() as db:
            row = db.query(ServiceConfigRow).filter(ServiceConfigRow.id == service_id).first()
            return binding_from_row(row) if row else None

    def find_all(self) -> List[ServiceBinding]:
        with self.session_factory() as db:
            rows = db.query(ServiceConfigRow).order_by(ServiceConfigRow.priority.desc(), ServiceConfigRow.id).all()
            return [binding_from_row(row) for row in rows]


class SqlPolicyRepository:
    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def get_active(self) -> Optional[ApprovalPolicy]:
        with self.session_factory() as db:
            row = db.query(ApprovalSettingsRow).order_by(ApprovalSettingsRow.id).first()
            if row is None:
                return None
            return ApprovalPolicy(
                mode=PolicyMode(row.mode),
                exceptions_enabled=row.exceptions_enabled,
                exception_contacts=frozenset(row.exception_contacts_json or []),
            )
