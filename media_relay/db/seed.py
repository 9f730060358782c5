"""Synchronisation de la configuration YAML vers la base au démarrage."""
import logging
from datetime import datetime
from typing import List

from sqlalchemy.orm import sessionmaker

from media_relay.config import ApprovalConfig, ServiceConfigEntry
from media_relay.db.models import ApprovalSettingsRow, ServiceConfigRow
from media_relay.utils.crypto import EncryptionService, hash_contact

logger = logging.getLogger(__name__)


def sync_services(
    session_factory: sessionmaker,
    services: List[ServiceConfigEntry],
    encryption: EncryptionService,
) -> int:
    """Crée ou met à jour les bindings par nom; les clés API sont stockées chiffrées."""
    with session_factory() as db:
        for entry in services:
            row = db.query(ServiceConfigRow).filter(ServiceConfigRow.name == entry.name).first()
            if row is None:
                row = ServiceConfigRow(name=entry.name)
                db.add(row)
                logger.info(f"Adding service {entry.name} ({entry.type.value})")
            row.service_type = entry.type.value
            row.base_url = entry.url
            row.api_key_encrypted = encryption.encrypt(entry.api_key)
            row.enabled = entry.enabled
            row.quality_profile_id = entry.quality_profile_id
            row.root_folder_path = entry.root_folder_path
            row.priority = entry.priority
            row.updated_at = datetime.utcnow()
        db.commit()
    return len(services)


def seed_policy(session_factory: sessionmaker, approval: ApprovalConfig) -> bool:
    """Crée la politique d'approbation si aucune n'existe (la base fait foi ensuite)."""
    with session_factory() as db:
        if db.query(ApprovalSettingsRow).first() is not None:
            return False
        db.add(ApprovalSettingsRow(
            mode=approval.mode.value,
            exceptions_enabled=approval.exceptions_enabled,
            exception_contacts_json=sorted({hash_contact(c) for c in approval.exception_contacts}),
        ))
        db.commit()
    logger.info(f"Approval policy seeded with mode {approval.mode.value}")
    return True


def sync_from_config(session_factory: sessionmaker, config, encryption: EncryptionService) -> None:
    count = sync_services(session_factory, config.services, encryption)
    seed_policy(session_factory, config.approval)
    logger.info(f"Configuration synced ({count} services)")
