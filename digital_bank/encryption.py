"""
PII Encryption at Rest Module

Field-level encryption for the personal details stored on user records,
transparent to the rest of the system. Uses the cryptography library
(Fernet or AES-GCM); the NoOp provider keeps values in clear text for
development.
"""

import os
import base64
import hashlib
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Sequence, Union

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .errors import ConfigurationError


logger = logging.getLogger("digital_bank.encryption")

# Email stays in clear text: it is the login lookup key and carries the unique index
PII_FIELDS = ("phone_number", "address", "date_of_birth")

# Encryption marker prefix
ENCRYPTION_PREFIX = "ENC:"


class EncryptionProvider(ABC):
    """Abstract base class for encryption providers"""

    @abstractmethod
    def encrypt(self, plaintext: str) -> str:
        """Encrypt plaintext and return ciphertext"""
        pass

    @abstractmethod
    def decrypt(self, ciphertext: str) -> str:
        """Decrypt ciphertext and return plaintext"""
        pass


class NoOpEncryptionProvider(EncryptionProvider):
    """No-operation encryption provider for development/testing"""

    def encrypt(self, plaintext: str) -> str:
        return plaintext

    def decrypt(self, ciphertext: str) -> str:
        return ciphertext


class FernetEncryptionProvider(EncryptionProvider):
    """Fernet encryption provider (AES-128-CBC + HMAC-SHA256)"""

    def __init__(self, master_key: str, salt: Optional[bytes] = None):
        self.master_key = master_key.encode('utf-8')
        self.salt = salt or b'digital_bank_pii_salt'

        # Derive Fernet key from master key using PBKDF2
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=32,
            salt=self.salt,
            iterations=100000,
        )
        fernet_key = base64.urlsafe_b64encode(kdf.derive(self.master_key))
        self.fernet = Fernet(fernet_key)

    def encrypt(self, plaintext: str) -> str:
        token = self.fernet.encrypt(plaintext.encode('utf-8'))
        return f"{ENCRYPTION_PREFIX}{token.decode('ascii')}"

    def decrypt(self, ciphertext: str) -> str:
        if ciphertext.startswith(ENCRYPTION_PREFIX):
            ciphertext = ciphertext[len(ENCRYPTION_PREFIX):]
        try:
            return self.fernet.decrypt(ciphertext.encode('ascii')).decode('utf-8')
        except InvalidToken as e:
            raise ValueError("Failed to decrypt data: invalid token or key") from e


class AESGCMEncryptionProvider(EncryptionProvider):
    """AES-256-GCM encryption provider (authenticated encryption)"""

    def __init__(self, master_key: Union[str, bytes]):
        if isinstance(master_key, str):
            master_key = master_key.encode('utf-8')

        # Derive 32-byte key from master key using SHA-256
        self.aesgcm = AESGCM(hashlib.sha256(master_key).digest())

    def encrypt(self, plaintext: str) -> str:
        # Random 12-byte nonce, stored ahead of the ciphertext
        nonce = os.urandom(12)
        encrypted = self.aesgcm.encrypt(nonce, plaintext.encode('utf-8'), None)
        encoded = base64.urlsafe_b64encode(nonce + encrypted).decode('ascii')
        return f"{ENCRYPTION_PREFIX}{encoded}"

    def decrypt(self, ciphertext: str) -> str:
        if ciphertext.startswith(ENCRYPTION_PREFIX):
            ciphertext = ciphertext[len(ENCRYPTION_PREFIX):]
        try:
            combined = base64.urlsafe_b64decode(ciphertext.encode('ascii'))
            return self.aesgcm.decrypt(combined[:12], combined[12:], None).decode('utf-8')
        except Exception as e:
            raise ValueError(f"Failed to decrypt data: {e}") from e


class FieldEncryptor:
    """Encrypts the PII fields of a storage row on write and decrypts on read"""

    def __init__(self, provider: EncryptionProvider, fields: Sequence[str] = PII_FIELDS):
        self.provider = provider
        self.fields = tuple(fields)

    def encrypt_row(self, data: Dict[str, Any]) -> Dict[str, Any]:
        result = dict(data)
        for field in self.fields:
            value = result.get(field)
            if value is not None and not is_encrypted(value):
                result[field] = self.provider.encrypt(str(value))
        return result

    def decrypt_row(self, data: Dict[str, Any]) -> Dict[str, Any]:
        result = dict(data)
        for field in self.fields:
            value = result.get(field)
            if is_encrypted(value):
                result[field] = self.provider.decrypt(value)
        return result


def is_encrypted(value: Any) -> bool:
    """Check if value carries the encryption marker"""
    return isinstance(value, str) and value.startswith(ENCRYPTION_PREFIX)


def create_encryption_provider(provider_type: str, master_key: str) -> EncryptionProvider:
    """
    Factory function to create encryption providers

    Raises:
        ConfigurationError: for an unknown provider or a missing master key
    """
    provider_type = provider_type.lower()

    if provider_type == "noop":
        logger.info("Using NoOpEncryptionProvider - PII will NOT be encrypted")
        return NoOpEncryptionProvider()

    if not master_key:
        raise ConfigurationError(f"Encryption provider '{provider_type}' requires a master key")

    if provider_type == "fernet":
        return FernetEncryptionProvider(master_key)
    if provider_type == "aesgcm":
        return AESGCMEncryptionProvider(master_key)

    raise ConfigurationError(f"Unknown encryption provider '{provider_type}'")
