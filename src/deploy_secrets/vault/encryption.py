# Deploy Secrets - Encryption Service
#
# Symmetric encryption keyed by the key file contents (Fernet:
# AES-128-CBC + HMAC-SHA256, random IV per token).
# Used for both layers: each secret value and the whole vault container.

from typing import Union

from cryptography.fernet import Fernet, InvalidToken

from ..exceptions import DecryptionError, InvalidKeyError


class EncryptionService:
    """
    Handles encryption/decryption for vault values and the vault container.

    Flow:
    1. Key Manager supplies the raw key file contents
    2. Fernet encrypts with a fresh random IV per call, so identical
       plaintexts never produce identical ciphertexts
    3. The HMAC tag rejects wrong keys and tampered/truncated tokens
    """

    @staticmethod
    def generate_key() -> bytes:
        """Generate a url-safe base64 Fernet key (32 random bytes)."""
        return Fernet.generate_key()

    @staticmethod
    def _cipher(key: bytes) -> Fernet:
        try:
            return Fernet(key.strip())
        except (ValueError, TypeError) as e:
            raise InvalidKeyError(f"Key material is not a valid encryption key: {e}") from e

    @staticmethod
    def validate_key(key: bytes) -> None:
        """Raise InvalidKeyError unless ``key`` is usable key material."""
        EncryptionService._cipher(key)

    @staticmethod
    def encrypt(plaintext: bytes, key: bytes) -> bytes:
        """
        Encrypt plaintext bytes.

        Args:
            plaintext: Data to encrypt
            key: Key file contents

        Returns:
            Fernet token (url-safe base64 bytes)
        """
        return EncryptionService._cipher(key).encrypt(plaintext)

    @staticmethod
    def decrypt(ciphertext: Union[bytes, str], key: bytes) -> bytes:
        """
        Decrypt a Fernet token.

        Raises:
            DecryptionError: Wrong key, malformed or truncated token
        """
        if isinstance(ciphertext, str):
            ciphertext = ciphertext.encode("ascii", errors="replace")
        cipher = EncryptionService._cipher(key)
        try:
            return cipher.decrypt(ciphertext.strip())
        except InvalidToken as e:
            raise DecryptionError("Decryption failed: wrong key or corrupted data") from e

    @staticmethod
    def encrypt_text(value: str, key: bytes) -> str:
        """Encrypt a UTF-8 string and return the token as text."""
        return EncryptionService.encrypt(value.encode("utf-8"), key).decode("ascii")

    @staticmethod
    def decrypt_text(token: str, key: bytes) -> str:
        """Decrypt a token produced by encrypt_text()."""
        plaintext = EncryptionService.decrypt(token, key)
        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecryptionError("Decrypted value is not valid UTF-8") from e
