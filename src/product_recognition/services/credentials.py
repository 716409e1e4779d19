"""Symmetric encryption for provider API keys at rest."""

import logging
import os
from dataclasses import dataclass

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from product_recognition.domain.errors import CredentialError

KEY_LENGTH = 32
IV_LENGTH = 16
SEPARATOR = ":"

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CredentialCodec:
    """AES-256-CBC codec producing ``<ivHex>:<cipherHex>`` strings."""

    key: bytes

    def __post_init__(self) -> None:
        if len(self.key) != KEY_LENGTH:
            raise CredentialError(
                f"Encryption key must be {KEY_LENGTH} bytes, got {len(self.key)}"
            )

    @classmethod
    def from_secret(cls, secret: str) -> "CredentialCodec":
        """Build a codec from a UTF-8 secret string."""
        return cls(key=secret.encode("utf-8"))

    def encrypt(self, plaintext: str) -> str:
        """Encrypt plaintext under a fresh random IV."""
        iv = os.urandom(IV_LENGTH)
        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()
        encryptor = Cipher(algorithms.AES(self.key), modes.CBC(iv)).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()
        return f"{iv.hex()}{SEPARATOR}{ciphertext.hex()}"

    def decrypt(self, ciphertext: str | None) -> str:
        """Decrypt a stored credential, returning "" when it is unusable."""
        if not ciphertext:
            return ""
        iv_hex, sep, cipher_hex = ciphertext.partition(SEPARATOR)
        if not sep or not iv_hex or not cipher_hex:
            _logger.warning("Credential is not in iv:ciphertext format")
            return ""
        try:
            iv = bytes.fromhex(iv_hex)
            if len(iv) != IV_LENGTH:
                raise ValueError(f"IV must be {IV_LENGTH} bytes")
            decryptor = Cipher(algorithms.AES(self.key), modes.CBC(iv)).decryptor()
            padded = decryptor.update(bytes.fromhex(cipher_hex)) + decryptor.finalize()
            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            plaintext = unpadder.update(padded) + unpadder.finalize()
            return plaintext.decode("utf-8")
        except ValueError as exc:
            _logger.warning("Credential decryption failed: %s", type(exc).__name__)
            return ""
