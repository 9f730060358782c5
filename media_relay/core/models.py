"""Core business models."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Dict, FrozenSet
from datetime import datetime


class MediaType(str, Enum):
    MOVIE = "movie"
    SERIES = "series"


class RequestStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    SUBMITTED = "SUBMITTED"
    FAILED = "FAILED"


class ServiceType(str, Enum):
    OVERSEERR = "overseerr"  # aggregator
    RADARR = "radarr"  # movie-acquirer
    SONARR = "sonarr"  # series-acquirer


class PolicyMode(str, Enum):
    AUTO_APPROVE = "auto_approve"
    MANUAL = "manual"
    AUTO_DENY = "auto_deny"


class ApprovalAction(str, Enum):
    AUTO_APPROVE = "AUTO_APPROVE"
    HOLD = "HOLD"
    AUTO_REJECT = "AUTO_REJECT"


@dataclass
class MediaSelection:
    """Titre choisi par l'utilisateur dans le front conversationnel."""
    media_type: MediaType
    title: str
    year: Optional[int] = None
    tmdb_id: Optional[int] = None
    tvdb_id: Optional[int] = None
    selected_seasons: List[int] = field(default_factory=list)


@dataclass
class MediaRequest:
    """Demande d'un contact pour un titre."""
    id: int
    contact_hash: str
    media_type: MediaType
    title: str
    status: RequestStatus
    contact_encrypted: Optional[str] = None
    year: Optional[int] = None

    # IDs
    tmdb_id: Optional[int] = None
    tvdb_id: Optional[int] = None

    # Binding
    service_type: Optional[ServiceType] = None
    service_config_id: Optional[int] = None

    # Series tracking
    selected_seasons: List[int] = field(default_factory=list)
    notified_seasons: List[int] = field(default_factory=list)
    notified_episodes: Dict[int, List[int]] = field(default_factory=dict)
    total_seasons: Optional[int] = None
    availability_notified_at: Optional[datetime] = None

    # Audit
    submitted_at: Optional[datetime] = None
    error_message: Optional[str] = None
    admin_notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def display_title(self) -> str:
        """Titre avec l'année entre parenthèses si connue."""
        if self.year:
            return f"{self.title} ({self.year})"
        return self.title

    def to_selection(self) -> MediaSelection:
        return MediaSelection(
            media_type=self.media_type,
            title=self.title,
            year=self.year,
            tmdb_id=self.tmdb_id,
            tvdb_id=self.tvdb_id,
            selected_seasons=list(self.selected_seasons),
        )


@dataclass
class ServiceBinding:
    """Backend configuré (Overseerr, Radarr ou Sonarr)."""
    id: int
    name: str
    service_type: ServiceType
    base_url: str
    api_key_encrypted: str
    enabled: bool = True
    quality_profile_id: Optional[int] = None
    root_folder_path: Optional[str] = None
    priority: int = 0


@dataclass
class ApprovalPolicy:
    mode: PolicyMode = PolicyMode.AUTO_APPROVE
    exceptions_enabled: bool = False
    exception_contacts: FrozenSet[str] = frozenset()


@dataclass
class Availability:
    """Snapshot normalisé de la disponibilité côté backend."""
    is_available: bool = False
    is_partial: bool = False
    available_seasons: Optional[List[int]] = None
    available_episodes: Optional[Dict[int, List[int]]] = None
    total_seasons: Optional[int] = None


@dataclass
class ProcessResult:
    success: bool
    status: RequestStatus
    error_message: Optional[str] = None
    request_id: Optional[int] = None
