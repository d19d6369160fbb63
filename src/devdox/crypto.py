"""Git token encryption using AES-256-GCM with a scrypt-derived key.

Stored format is two text fields: ``iv`` (base64) and ``encrypted``
(``<base64 ciphertext>.<base64 tag>``). The KDF salt and cost parameters
are fixed so that the same master key always yields the same AES key.

Never log or embed the master key, derived key or plaintext in errors.
"""

import asyncio
import base64
import binascii
import os
from dataclasses import dataclass

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

KEY_LENGTH = 32  # AES-256
IV_LENGTH = 12  # 96 bits, recommended for AES-GCM
AUTH_TAG_LENGTH = 16  # 128 bits
DELIMITER = "."

_KDF_SALT = b"salt"
_KDF_N = 2**14
_KDF_R = 8
_KDF_P = 1


class CipherError(Exception):
    """Base class for token cipher failures. Never retryable."""


class InvalidInputError(CipherError, ValueError):
    """Plaintext passed to encrypt is empty or not a string."""


class InvalidEnvelopeError(CipherError, ValueError):
    """Stored iv / ciphertext fields are structurally malformed."""


class KeyDerivationError(CipherError):
    """Master key is missing, not a string, too short, or scrypt failed."""


class EncryptionError(CipherError):
    """The AEAD cipher failed while encrypting."""


class DecryptionError(CipherError):
    """Decryption failed."""


class AuthenticationError(DecryptionError):
    """Tag did not verify: tampered data or the wrong master key."""


@dataclass(frozen=True)
class Envelope:
    """One encrypted secret as persisted alongside its record."""

    encrypted: str  # "<ciphertext>.<tag>", both base64
    iv: str  # base64

    @property
    def ciphertext(self) -> str:
        return self.encrypted.split(DELIMITER, 1)[0]

    @property
    def auth_tag(self) -> str:
        return self.encrypted.split(DELIMITER, 1)[-1]

    def to_dict(self) -> dict[str, str]:
        """Return the row fields used by the git_tokens table."""
        return {"token_value": self.encrypted, "iv": self.iv}

    @classmethod
    def from_dict(cls, row: dict) -> "Envelope":
        return cls(encrypted=row["token_value"], iv=row["iv"])


def derive_key(master_key: str) -> bytes:
    """Derive the 32-byte AES key from the master key with scrypt.

    The master key must be a string of at least KEY_LENGTH characters.
    Shorter keys are rejected rather than padded.

    Raises KeyDerivationError on any invalid key or KDF failure.
    """
    if not isinstance(master_key, str) or not master_key:
        raise KeyDerivationError("Master key is missing or not a string")
    if len(master_key) < KEY_LENGTH:
        raise KeyDerivationError(
            f"Master key must be at least {KEY_LENGTH} characters"
        )
    kdf = Scrypt(salt=_KDF_SALT, length=KEY_LENGTH, n=_KDF_N, r=_KDF_R, p=_KDF_P)
    try:
        return kdf.derive(master_key.encode("utf-8"))
    except Exception as e:
        raise KeyDerivationError(
            f"Key derivation failed: {type(e).__name__}"
        ) from e


def _b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _b64decode(text: str, field: str) -> bytes:
    """Strict base64 decode. Non-canonical input cannot verify."""
    try:
        data = base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as e:
        raise AuthenticationError(f"Envelope {field} is not valid base64") from e
    if _b64encode(data) != text:
        raise AuthenticationError(f"Envelope {field} is not canonical base64")
    return data


def encrypt(plaintext: str, master_key: str) -> Envelope:
    """Encrypt a token value. Every call uses a fresh random IV.

    Raises InvalidInputError, KeyDerivationError or EncryptionError.
    """
    if not isinstance(plaintext, str) or not plaintext:
        raise InvalidInputError("Invalid value for encryption")

    key = derive_key(master_key)
    iv = os.urandom(IV_LENGTH)
    try:
        sealed = AESGCM(key).encrypt(iv, plaintext.encode("utf-8"), None)
    except Exception as e:
        raise EncryptionError(f"Encryption failed: {type(e).__name__}") from e

    # AESGCM appends the tag to the ciphertext
    ciphertext, tag = sealed[:-AUTH_TAG_LENGTH], sealed[-AUTH_TAG_LENGTH:]
    return Envelope(
        encrypted=f"{_b64encode(ciphertext)}{DELIMITER}{_b64encode(tag)}",
        iv=_b64encode(iv),
    )


def _check_envelope(envelope: Envelope) -> tuple[str, str, str]:
    """Structural validation, done before any cryptographic work."""
    encrypted = getattr(envelope, "encrypted", None)
    iv = getattr(envelope, "iv", None)
    if not isinstance(encrypted, str) or not encrypted:
        raise InvalidEnvelopeError("Encrypted value is missing")
    if not isinstance(iv, str) or not iv:
        raise InvalidEnvelopeError("IV is missing")
    parts = encrypted.split(DELIMITER)
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise InvalidEnvelopeError("Invalid encrypted value format")
    return parts[0], parts[1], iv


def decrypt(envelope: Envelope, master_key: str) -> str:
    """Verify and decrypt an envelope back to the original token value.

    Raises InvalidEnvelopeError, KeyDerivationError or AuthenticationError.
    No plaintext is produced unless the tag verifies.
    """
    ciphertext_b64, tag_b64, iv_b64 = _check_envelope(envelope)
    key = derive_key(master_key)

    iv = _b64decode(iv_b64, "iv")
    ciphertext = _b64decode(ciphertext_b64, "ciphertext")
    tag = _b64decode(tag_b64, "tag")
    if len(iv) != IV_LENGTH or len(tag) != AUTH_TAG_LENGTH:
        raise AuthenticationError("Envelope could not be verified")

    try:
        plaintext = AESGCM(key).decrypt(iv, ciphertext + tag, None)
    except InvalidTag as e:
        raise AuthenticationError("Envelope could not be verified") from e
    except Exception as e:
        raise DecryptionError(f"Decryption failed: {type(e).__name__}") from e

    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecryptionError("Decrypted value is not valid UTF-8") from e


async def encrypt_async(plaintext: str, master_key: str) -> Envelope:
    """encrypt() in a worker thread, keeping scrypt off the event loop."""
    return await asyncio.to_thread(encrypt, plaintext, master_key)


async def decrypt_async(envelope: Envelope, master_key: str) -> str:
    """decrypt() in a worker thread, keeping scrypt off the event loop."""
    return await asyncio.to_thread(decrypt, envelope, master_key)
