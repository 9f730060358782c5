"""
Encryption at rest for API keys and contact addresses, and contact hashing.

Secrets are encrypted with Fernet (AES-128-CBC + HMAC) using the key from
`security.encryption_key`. Contacts are looked up by a SHA-256 hash of their
last ten digits, so a number typed with or without country code maps to the
same hash.
"""
import hashlib
import re
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from media_relay.core.exceptions import ConfigurationError


class EncryptionService:
    """Chiffre / déchiffre les valeurs sensibles stockées en base."""

    def __init__(self, key: str):
        if not key:
            raise ConfigurationError("security.encryption_key is not set")
        try:
            self._fernet = Fernet(key.encode() if isinstance(key, str) else key)
        except (ValueError, TypeError) as e:
            raise ConfigurationError(f"Invalid encryption key: {str(e)}")

    @staticmethod
    def generate_key() -> str:
        return Fernet.generate_key().decode()

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("ascii")

    def decrypt(self, ciphertext: str) -> str:
        try:
            return self._fernet.decrypt(ciphertext.encode("ascii")).decode("utf-8")
        except InvalidToken:
            raise ValueError("Failed to decrypt data")


def _normalize_contact(address: str) -> str:
    digits = re.sub(r"\D", "", address)
    if digits:
        return digits[-10:]
    return address.strip().lower()


def hash_contact(address: str) -> str:
    """Hash stable d'une adresse de contact (jamais stockée en clair)."""
    return hashlib.sha256(_normalize_contact(address).encode("utf-8")).hexdigest()


def mask_contact(address: Optional[str]) -> str:
    """Ne garde que les 4 derniers caractères pour les logs et événements."""
    if not address:
        return "Unknown"
    normalized = _normalize_contact(address)
    if len(normalized) <= 4:
        return "*" * len(normalized)
    return "*" * (len(normalized) - 4) + normalized[-4:]
