"""
PasskeyService — PRFProvider bound to a platform passkey authenticator.

Provides:
- ``register()`` — create (or re-validate) the passkey credential
- ``authenticate()`` — run an authentication ceremony
- ``evaluate(salt)`` — PRF extension evaluation, authenticating first if needed
- ``check_prf_support()`` — throwaway PRF evaluation gating the cipher

The ceremony itself lives behind the ``Authenticator`` protocol; responses
are WebAuthn JSON shaped dicts.

Security Note:
    Challenge and user handle are fixed demo constants (see ``config``).
    Nothing here verifies assertions server side. Never log PRF output.
"""
import base64
import binascii
import logging
from typing import Any, Optional, Protocol, runtime_checkable

from .config import CipherConfig, FIXED_CHALLENGE, FIXED_USER_ID
from .crypto import SALT_SIZE
from .exceptions import (
    AuthenticationError,
    NotAllowedError,
    PRFUnsupportedError,
    UnsupportedBrowserError,
)
from .prf import PasskeyStatus

logger = logging.getLogger("passkey.cipher")

PRF_PROBE_SALT = bytes([1]) * SALT_SIZE

_ES256 = -7
_RS256 = -257


@runtime_checkable
class Authenticator(Protocol):
    """Platform authenticator binding (navigator.credentials and friends)."""

    def is_available(self) -> bool:
        ...

    async def create_credential(self, options: dict) -> dict:
        ...

    async def get_assertion(self, options: dict) -> dict:
        ...


def b64url(data: bytes) -> str:
    """Unpadded base64url, as used by WebAuthn JSON."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


# ---------------------------------------------------------------------------
# Ceremony options
# ---------------------------------------------------------------------------

def registration_options(config: CipherConfig) -> dict[str, Any]:
    """Build PublicKeyCredentialCreationOptions JSON for a platform passkey."""
    return {
        "challenge": b64url(FIXED_CHALLENGE),
        "rp": {"name": config.rp_name, "id": config.rp_id},
        "user": {
            "id": b64url(FIXED_USER_ID),
            "name": config.user_name,
            "displayName": config.user_display_name,
        },
        "pubKeyCredParams": [
            {"type": "public-key", "alg": _ES256},
            {"type": "public-key", "alg": _RS256},
        ],
        "authenticatorSelection": {
            "authenticatorAttachment": "platform",
            "requireResidentKey": True,
            "residentKey": "required",
            "userVerification": "required",
        },
        "attestation": "none",
        "extensions": {},
    }


def authentication_options(
    config: CipherConfig,
    prf_salt: Optional[bytes] = None,
) -> dict[str, Any]:
    """Build PublicKeyCredentialRequestOptions JSON.

    Args:
        config: Relying party settings.
        prf_salt: When given, request a PRF evaluation of this salt.

    Returns:
        Options dict; discoverable credentials (empty allowCredentials).
    """
    options: dict[str, Any] = {
        "rpId": config.rp_id,
        "challenge": b64url(FIXED_CHALLENGE),
        "allowCredentials": [],
        "userVerification": "required",
    }
    if prf_salt is not None:
        options["extensions"] = {"prf": {"eval": {"first": prf_salt}}}
    return options


def _prf_first(response: dict) -> Optional[bytes]:
    results = response.get("clientExtensionResults") or {}
    prf = results.get("prf") or {}
    first = (prf.get("results") or {}).get("first")
    if not first:
        return None
    if isinstance(first, str):
        # WebAuthn JSON carries binary values as unpadded base64url
        padded = first + "=" * (-len(first) % 4)
        try:
            return base64.urlsafe_b64decode(padded)
        except (binascii.Error, ValueError) as err:
            raise AuthenticationError(
                f"Failed to get PRF: malformed PRF result: {err}"
            ) from err
    if isinstance(first, (bytes, bytearray, memoryview)):
        return bytes(first)
    raise AuthenticationError(
        f"Failed to get PRF: unexpected PRF result type {type(first).__name__}"
    )


class PasskeyService:
    """PRF provider backed by a passkey authenticator.

    The service owns the ``PasskeyStatus``; ciphers only read it.
    """

    def __init__(
        self,
        authenticator: Authenticator,
        config: Optional[CipherConfig] = None,
    ):
        self._authenticator = authenticator
        self._config = config or CipherConfig()
        self._status = PasskeyStatus()
        self._credential_id: Optional[str] = None

    @property
    def credential_id(self) -> Optional[str]:
        return self._credential_id

    def is_supported(self) -> bool:
        return self._authenticator.is_available()

    def get_status(self) -> PasskeyStatus:
        return self._status

    def _require_support(self) -> None:
        if not self.is_supported():
            self._status.message = "WebAuthn is not supported by this browser"
            raise UnsupportedBrowserError(self._status.message)

    # ------------------------------------------------------------------
    # Ceremonies
    # ------------------------------------------------------------------

    async def register(self) -> PasskeyStatus:
        """Register a passkey, or validate the one already registered.

        Returns:
            Updated status (registered and authenticated).

        Raises:
            UnsupportedBrowserError: No authenticator available.
            AuthenticationError: Registration or fallback authentication
                failed.
        """
        self._require_support()
        try:
            response = await self._authenticator.create_credential(
                registration_options(self._config)
            )
        except NotAllowedError:
            # credential already registered for this relying party
            self._status.registered = True
            logger.info("Passkey already registered, authenticating instead")
            try:
                await self.authenticate()
            except AuthenticationError as err:
                self._status.message = (
                    f"PassKey already exists but authentication failed: {err}"
                )
                raise
            self._status.message = (
                'PassKey already exists and was validated. Use "Check PRF '
                'Support" to verify encryption capabilities.'
            )
            return self._status
        except Exception as err:
            self._status.message = f"Failed to register PassKey: {err}"
            logger.warning("Passkey registration failed: %s", err)
            raise AuthenticationError(self._status.message) from err

        self._credential_id = response.get("id")
        self._status.registered = True
        self._status.authenticated = True
        self._status.message = (
            'PassKey registered successfully! Use "Check PRF Support" to '
            'verify encryption capabilities.'
        )
        logger.info("Passkey registered: credential=%s", self._credential_id)
        return self._status

    async def authenticate(self) -> PasskeyStatus:
        """Run an authentication ceremony.

        Raises:
            UnsupportedBrowserError: No authenticator available.
            AuthenticationError: The ceremony failed or was dismissed.
        """
        self._require_support()
        try:
            response = await self._authenticator.get_assertion(
                authentication_options(self._config)
            )
        except Exception as err:
            self._status.authenticated = False
            self._status.message = f"Failed to authenticate: {err}"
            logger.warning("Passkey authentication failed: %s", err)
            raise AuthenticationError(self._status.message) from err

        self._credential_id = response.get("id")
        self._status.authenticated = True
        self._status.message = "PassKey authentication successful!"
        logger.debug("Passkey authenticated: credential=%s", self._credential_id)
        return self._status

    async def ensure_authenticated(self) -> None:
        """Authenticate unless a previous ceremony already succeeded."""
        if not self._status.authenticated:
            await self.authenticate()

    # ------------------------------------------------------------------
    # PRF
    # ------------------------------------------------------------------

    async def evaluate(self, salt: bytes) -> bytes:
        """Evaluate the PRF extension for ``salt``.

        No fallback exists: an authenticator without PRF disables
        encryption rather than producing a software key.

        Args:
            salt: PRF input.

        Returns:
            PRF secret bound to the credential and salt.

        Raises:
            AuthenticationError: Ceremony failed or was canceled.
            PRFUnsupportedError: Authenticator returned no PRF result.
        """
        await self.ensure_authenticated()
        try:
            response = await self._authenticator.get_assertion(
                authentication_options(self._config, prf_salt=salt)
            )
        except Exception as err:
            raise AuthenticationError(f"Failed to get PRF: {err}") from err

        self._credential_id = response.get("id", self._credential_id)
        secret = _prf_first(response)
        if secret is None:
            self._status.supports_prf = False
            raise PRFUnsupportedError(
                "Your authenticator does not support the PRF extension, "
                "which is required for encryption"
            )
        self._status.supports_prf = True
        return secret

    async def check_prf_support(self) -> PasskeyStatus:
        """Probe PRF support; the evaluated secret is discarded.

        Returns:
            Status with ``supports_prf`` set to True or False.

        Raises:
            AuthenticationError: The probe ceremony failed; PRF support
                stays unknown.
        """
        try:
            await self.evaluate(PRF_PROBE_SALT)
        except PRFUnsupportedError:
            self._status.message = (
                "Your device does not support the PRF extension required "
                "for encryption."
            )
            logger.info("Authenticator lacks PRF support")
            return self._status
        except AuthenticationError as err:
            self._status.message = f"Failed to check PRF support: {err}"
            raise
        self._status.message = (
            "Your device supports the PRF extension required for encryption."
        )
        return self._status
