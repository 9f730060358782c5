"""Encryption at rest and contact hashing."""

import pytest

from media_relay.core.exceptions import ConfigurationError
from media_relay.utils.crypto import EncryptionService, hash_contact, mask_contact


def test_encrypt_decrypt(encryption):
    token = encryption.encrypt("secret-api-key")

    assert token != "secret-api-key"
    assert encryption.decrypt(token) == "secret-api-key"


def test_decrypt_with_other_key_fails(encryption):
    other = EncryptionService(EncryptionService.generate_key())

    with pytest.raises(ValueError, match="Failed to decrypt data"):
        other.decrypt(encryption.encrypt("secret"))


@pytest.mark.parametrize("key", [None, "", "not-a-fernet-key"])
def test_invalid_key_rejected(key):
    with pytest.raises(ConfigurationError):
        EncryptionService(key)


def test_hash_ignores_country_code_and_formatting():
    assert hash_contact("+33 6 12 34 56 78") == hash_contact("0033612345678")
    assert hash_contact("+1 (555) 010-9999") == hash_contact("5550109999")
    assert hash_contact("+33612345678") != hash_contact("+33612345679")


def test_hash_of_non_numeric_address():
    assert hash_contact("Alice@Example.org") == hash_contact("alice@example.org")


def test_mask_contact():
    assert mask_contact("+33 6 12 34 56 78") == "******5678"
    assert mask_contact(None) == "Unknown"
