"""
Cipher Crypto Core — Key derivation and AES-CBC encryption/decryption.

Implements the primitives behind the envelope cipher:
- Key derivation: PBKDF2-HMAC-SHA1(base64(prf_secret), KDF_SALT, 10000) → 32B
- Payload layer: AES-256-CBC + PKCS#7 with a random 128-bit IV

Security Note:
    Never log plaintext, PRF secrets or derived keys.
    CBC mode carries no integrity tag: a wrong key or a tampered ciphertext
    may still decrypt to garbage without any padding error.
"""
import os
import base64
import logging

from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .config import KDF_SALT, KDF_ITERATIONS

logger = logging.getLogger("passkey.cipher")

SALT_SIZE = 16  # PRF input
IV_SIZE = 16  # AES block size
KEY_LENGTH = 32  # AES-256
BLOCK_SIZE = 128  # PKCS#7 block size in bits


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

def derive_key(
    secret: bytes,
    kdf_salt: str = KDF_SALT,
    iterations: int = KDF_ITERATIONS,
) -> bytes:
    """Derive a 32-byte AES key from a PRF secret using PBKDF2-HMAC-SHA1.

    The secret is base64-encoded and the resulting ASCII text is used as
    the PBKDF2 password, keeping keys compatible with envelopes produced by
    the browser implementation.

    Args:
        secret: PRF output returned by the authenticator.
        kdf_salt: Fixed (non secret) PBKDF2 salt string.
        iterations: PBKDF2 iteration count.

    Returns:
        32-byte derived key.
    """
    password = base64.b64encode(secret)
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA1(),
        length=KEY_LENGTH,
        salt=kdf_salt.encode("utf-8"),
        iterations=iterations,
    )
    return kdf.derive(password)


def generate_salt() -> bytes:
    """Return a fresh random PRF salt."""
    return os.urandom(SALT_SIZE)


def generate_iv() -> bytes:
    """Return a fresh random AES initialization vector."""
    return os.urandom(IV_SIZE)


# ---------------------------------------------------------------------------
# Payload encryption
# ---------------------------------------------------------------------------

def _cipher(key: bytes, iv: bytes) -> Cipher:
    if len(key) != KEY_LENGTH:
        raise ValueError(f"Key must be {KEY_LENGTH} bytes, got {len(key)}")
    if len(iv) != IV_SIZE:
        raise ValueError(f"IV must be {IV_SIZE} bytes, got {len(iv)}")
    return Cipher(algorithms.AES(key), modes.CBC(iv))


def aes_cbc_encrypt(plaintext: bytes, key: bytes, iv: bytes) -> bytes:
    """Encrypt plaintext with AES-256-CBC and PKCS#7 padding.

    Args:
        plaintext: Data to encrypt.
        key: 32-byte AES key.
        iv: 16-byte initialization vector.

    Returns:
        Raw ciphertext bytes (a multiple of the block size).
    """
    padder = padding.PKCS7(BLOCK_SIZE).padder()
    padded = padder.update(plaintext) + padder.finalize()
    encryptor = _cipher(key, iv).encryptor()
    return encryptor.update(padded) + encryptor.finalize()


def aes_cbc_decrypt(ciphertext: bytes, key: bytes, iv: bytes) -> bytes:
    """Decrypt AES-256-CBC ciphertext and strip PKCS#7 padding.

    Args:
        ciphertext: Raw ciphertext bytes.
        key: 32-byte AES key.
        iv: 16-byte initialization vector.

    Returns:
        Decrypted plaintext bytes.

    Raises:
        ValueError: If the ciphertext is not block aligned or the padding
            is invalid (typically a wrong key).
    """
    decryptor = _cipher(key, iv).decryptor()
    padded = decryptor.update(ciphertext) + decryptor.finalize()
    unpadder = padding.PKCS7(BLOCK_SIZE).unpadder()
    return unpadder.update(padded) + unpadder.finalize()
