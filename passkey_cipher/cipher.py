"""
EnvelopeCipher — Encrypt/decrypt text with keys derived from a passkey PRF.

Flow:
- ``encrypt(plaintext)``: salt → PRF(salt) → derive_key → fresh IV →
  AES-256-CBC → envelope JSON
- ``decrypt(envelope)``: parse → PRF(envelope.salt) → derive_key →
  AES-256-CBC → UTF-8

Both operations suspend while the provider runs an authenticator ceremony.
Concurrent calls are not serialized here and no timeout is applied; wrap
calls in ``asyncio.wait_for`` when one is needed.

Security Note:
    Never log plaintext, PRF secrets or keys. CBC carries no integrity
    tag (see ``crypto``).
"""
import logging
from typing import Optional

from .config import CipherConfig
from .crypto import (
    aes_cbc_decrypt,
    aes_cbc_encrypt,
    derive_key,
    generate_iv,
    generate_salt,
)
from .envelope import Envelope, decode_envelope, encode_envelope
from .exceptions import (
    AuthenticationError,
    DecryptionError,
    EncryptionError,
    PasskeyCipherError,
    PRFUnsupportedError,
    UnsupportedBrowserError,
)
from .prf import PRFProvider

logger = logging.getLogger("passkey.cipher")


class EnvelopeCipher:
    """Envelope encryption bound to a PRF provider.

    Encryption stays disabled until the provider reports a successful
    authentication and confirmed PRF support.
    """

    def __init__(
        self,
        provider: PRFProvider,
        config: Optional[CipherConfig] = None,
    ):
        self._provider = provider
        self._config = config or CipherConfig()

    @property
    def provider(self) -> PRFProvider:
        return self._provider

    # ------------------------------------------------------------------
    # Capability gate
    # ------------------------------------------------------------------

    def ensure_enabled(self) -> None:
        """Refuse to operate unless authentication and PRF are confirmed.

        Raises:
            UnsupportedBrowserError: No authenticator on this platform.
            PRFUnsupportedError: PRF support is unknown or absent.
            AuthenticationError: The provider is not authenticated.
        """
        if not self._provider.is_supported():
            raise UnsupportedBrowserError(
                "WebAuthn is not supported by this browser"
            )
        status = self._provider.get_status()
        if status.supports_prf is None:
            raise PRFUnsupportedError(
                "PRF support has not been checked for this authenticator"
            )
        if status.supports_prf is False:
            raise PRFUnsupportedError(
                "Your authenticator does not support the PRF extension, "
                "which is required for encryption"
            )
        if not status.authenticated:
            raise AuthenticationError("PassKey is not authenticated")

    @property
    def enabled(self) -> bool:
        try:
            self.ensure_enabled()
        except PasskeyCipherError:
            return False
        return True

    def _derive(self, secret: bytes) -> bytes:
        return derive_key(
            secret,
            kdf_salt=self._config.kdf_salt,
            iterations=self._config.kdf_iterations,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def encrypt(self, plaintext: str) -> str:
        """Encrypt text into an envelope JSON string.

        Every call uses a fresh PRF salt and a fresh IV.

        Args:
            plaintext: Text to encrypt.

        Returns:
            Envelope JSON with base64 ``salt``, ``iv`` and ``ciphertext``.

        Raises:
            UnsupportedBrowserError, PRFUnsupportedError, AuthenticationError:
                The capability gate is closed.
            EncryptionError: Any failure in the pipeline, wrapping the cause.
        """
        self.ensure_enabled()
        try:
            salt = generate_salt()
            secret = await self._provider.evaluate(salt)
            key = self._derive(secret)
            iv = generate_iv()
            ciphertext = aes_cbc_encrypt(plaintext.encode("utf-8"), key, iv)
            envelope = Envelope(salt=salt, iv=iv, ciphertext=ciphertext)
            result = encode_envelope(envelope)
        except Exception as err:
            logger.warning("Encryption failed: %s", err)
            raise EncryptionError(f"Encryption failed: {err}") from err
        logger.debug("Encrypted payload into %d-byte ciphertext", len(ciphertext))
        return result

    async def decrypt(self, envelope_text: str) -> str:
        """Decrypt an envelope JSON string back to text.

        The PRF is re-evaluated with the envelope's own salt, which yields
        the encryption key again only for the same credential.

        Args:
            envelope_text: Envelope JSON produced by ``encrypt``.

        Returns:
            Decrypted text.

        Raises:
            UnsupportedBrowserError, PRFUnsupportedError, AuthenticationError:
                The capability gate is closed, or the PRF ceremony failed.
            FormatError: Malformed envelope; the PRF is never evaluated.
            DecryptionError: Wrong key, bad padding, or invalid UTF-8.
        """
        self.ensure_enabled()
        envelope = decode_envelope(envelope_text)
        try:
            secret = await self._provider.evaluate(envelope.salt)
        except PasskeyCipherError:
            raise
        except Exception as err:
            raise DecryptionError(f"Decryption failed: {err}") from err

        try:
            key = self._derive(secret)
            data = aes_cbc_decrypt(envelope.ciphertext, key, envelope.iv)
            return data.decode("utf-8")
        except UnicodeDecodeError as err:
            raise DecryptionError(
                "Decryption failed: plaintext is not valid UTF-8"
            ) from err
        except (TypeError, ValueError) as err:
            raise DecryptionError(f"Decryption failed: {err}") from err
