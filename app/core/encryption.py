"""
Backup encryption utilities.

Uses Fernet (symmetric encryption) to encrypt backup files at rest.
Backups are encrypted after serialization/compression and decrypted when read back.
"""

import logging
from typing import Optional
from cryptography.fernet import Fernet, InvalidToken
from app.core.config import settings

logger = logging.getLogger(__name__)


class BackupEncryption:
    """
    Encrypt/decrypt backup payloads using Fernet symmetric encryption.

    Fernet guarantees that a message encrypted using it cannot be
    manipulated or read without the key. Uses AES 128 in CBC mode.
    """

    def __init__(self, key: Optional[str] = None):
        """Initialize encryption with the given key, or the one from settings."""
        key = key if key is not None else settings.BACKUP_ENCRYPTION_KEY
        if not key:
            logger.warning(
                "BACKUP_ENCRYPTION_KEY not set. Backups will be written unencrypted. "
                "Generate a key with: python -c \"from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())\""
            )
            self.cipher = None
        else:
            try:
                self.cipher = Fernet(key.encode())
            except ValueError as e:
                logger.error(f"Invalid BACKUP_ENCRYPTION_KEY: {e}")
                self.cipher = None

    @property
    def enabled(self) -> bool:
        return self.cipher is not None

    @staticmethod
    def generate_key() -> str:
        return Fernet.generate_key().decode()

    def encrypt(self, data: bytes) -> bytes:
        """
        Encrypt a backup payload.

        Args:
            data: Plain (possibly gzipped) backup bytes

        Returns:
            Fernet token bytes, or data unchanged when no key is configured
        """
        if not self.cipher:
            return data
        return self.cipher.encrypt(data)

    def decrypt(self, token: bytes) -> bytes:
        """
        Decrypt a backup payload.

        Raises:
            InvalidToken: Wrong key or tampered file
        """
        if not self.cipher:
            return token

        try:
            return self.cipher.decrypt(token)
        except InvalidToken:
            logger.error("Backup decryption failed: invalid key or corrupted file")
            raise


# Singleton instance
backup_encryption = BackupEncryption()
