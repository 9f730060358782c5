"""Pydantic models for API requests/responses."""
from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime

from media_relay.core.models import MediaType, RequestStatus, ServiceType


class MediaRequestResponse(BaseModel):
    id: int
    contact: str  # masqué
    media_type: MediaType
    title: str
    year: Optional[int]
    tmdb_id: Optional[int]
    tvdb_id: Optional[int]
    status: RequestStatus
    service_type: Optional[ServiceType]
    service_config_id: Optional[int]
    selected_seasons: List[int]
    notified_seasons: List[int]
    notified_episodes: Dict[int, List[int]]
    total_seasons: Optional[int]
    submitted_at: Optional[datetime]
    error_message: Optional[str]
    admin_notes: Optional[str]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]


class CreateRequest(BaseModel):
    contact: str  # Adresse brute du contact (numéro, identifiant de chat...)
    service_id: int
    media_type: MediaType
    title: str
    year: Optional[int] = None
    tmdb_id: Optional[int] = None
    tvdb_id: Optional[int] = None
    selected_seasons: List[int] = Field(default_factory=list)


class ProcessResponse(BaseModel):
    success: bool
    status: RequestStatus
    error_message: Optional[str] = None
    request_id: Optional[int] = None


class RejectRequest(BaseModel):
    reason: Optional[str] = None


class UpdateRequest(BaseModel):
    status: Optional[RequestStatus] = None
    admin_notes: Optional[str] = None


class MonitoringRunResponse(BaseModel):
    started: bool
    message: str


class ServiceDiagnostic(BaseModel):
    id: int
    name: str
    type: ServiceType
    enabled: bool
    connected: bool = False
    version: Optional[str] = None
    error: Optional[str] = None


class DiagnosticsResponse(BaseModel):
    services: List[ServiceDiagnostic]
    monitoring: Dict[str, Any]
