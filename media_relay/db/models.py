"""SQLAlchemy models for database."""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, ForeignKey, JSON
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import relationship
from datetime import datetime

Base = declarative_base()


class MediaRequestRow(Base):
    """Demande de média d'un contact."""
    __tablename__ = "media_requests"

    id = Column(Integer, primary_key=True, index=True)
    contact_hash = Column(String, nullable=False, index=True)  # sha256 des 10 derniers chiffres
    contact_encrypted = Column(Text, nullable=True)  # Adresse chiffrée (Fernet)
    media_type = Column(String, nullable=False)  # movie, series
    title = Column(String, nullable=False)
    year = Column(Integer, nullable=True)
    tmdb_id = Column(Integer, nullable=True)
    tvdb_id = Column(Integer, nullable=True)
    status = Column(String, default="PENDING", nullable=False, index=True)  # PENDING, APPROVED, REJECTED, SUBMITTED, FAILED
    service_type = Column(String, nullable=True)  # overseerr, radarr, sonarr
    service_config_id = Column(Integer, ForeignKey("service_configs.id"), nullable=True, index=True)

    selected_seasons_json = Column(JSON, default=list)
    notified_seasons_json = Column(JSON, default=list)
    notified_episodes_json = Column(JSON, default=dict)  # {"1": [1, 2, 3]} (clés texte en JSON)
    total_seasons = Column(Integer, nullable=True)
    availability_notified_at = Column(DateTime, nullable=True)

    submitted_at = Column(DateTime, nullable=True)
    error_message = Column(Text, nullable=True)
    admin_notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    service = relationship("ServiceConfigRow", back_populates="requests")


class ServiceConfigRow(Base):
    """Backend configuré (Overseerr, Radarr, Sonarr)."""
    __tablename__ = "service_configs"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, unique=True)
    service_type = Column(String, nullable=False)
    base_url = Column(String, nullable=False)
    api_key_encrypted = Column(Text, nullable=False)
    enabled = Column(Boolean, default=True, nullable=False)
    quality_profile_id = Column(Integer, nullable=True)
    root_folder_path = Column(String, nullable=True)
    priority = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    requests = relationship("MediaRequestRow", back_populates="service")


class ApprovalSettingsRow(Base):
    """Politique d'approbation active (une seule ligne)."""
    __tablename__ = "approval_settings"

    id = Column(Integer, primary_key=True, index=True)
    mode = Column(String, default="auto_approve", nullable=False)  # auto_approve, manual, auto_deny
    exceptions_enabled = Column(Boolean, default=False, nullable=False)
    exception_contacts_json = Column(JSON, default=list)  # Hashes des contacts
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)
