"""
SoftwareAuthenticator — in-memory passkey authenticator.

Stands in for the platform authenticator in tests and local tooling. PRF
outputs follow the WebAuthn PRF to hmac-secret mapping:

    HMAC-SHA-256(cred_random, SHA-256("WebAuthn PRF" || 0x00 || salt))

so a given credential always returns the same secret for the same salt and
different credentials return unrelated secrets.

Security Note:
    Credential secrets live in process memory only. Not for production.
"""
import os
import asyncio
import logging
from typing import Awaitable, Callable, Optional

from cryptography.hazmat.primitives import hashes, hmac

from .exceptions import NotAllowedError
from .passkey import b64url

logger = logging.getLogger("passkey.cipher")

_PRF_CONTEXT = b"WebAuthn PRF\x00"

PresenceCheck = Callable[[], Awaitable[bool]]


def prf_output(cred_random: bytes, salt: bytes) -> bytes:
    """Compute the 32-byte PRF output for a credential secret and salt."""
    digest = hashes.Hash(hashes.SHA256())
    digest.update(_PRF_CONTEXT + salt)
    mac = hmac.HMAC(cred_random, hashes.SHA256())
    mac.update(digest.finalize())
    return mac.finalize()


class SoftwareAuthenticator:
    """Discoverable-credential authenticator held in memory.

    Ceremonies are serialized like a real platform prompt: a second caller
    waits until the first ceremony completes.

    Args:
        prf_enabled: Whether PRF extension results are returned.
        available: Reported by ``is_available()``.
        user_presence: Awaited before every ceremony; returning False means
            the user dismissed the prompt.
    """

    def __init__(
        self,
        prf_enabled: bool = True,
        available: bool = True,
        user_presence: Optional[PresenceCheck] = None,
    ):
        self.prf_enabled = prf_enabled
        self.available = available
        self.user_presence = user_presence
        self.ceremonies = 0
        self._credentials: dict[str, tuple[str, bytes]] = {}  # id -> (rp_id, cred_random)
        self._lock = asyncio.Lock()

    def is_available(self) -> bool:
        return self.available

    async def _confirm_presence(self) -> None:
        self.ceremonies += 1
        if self.user_presence is not None and not await self.user_presence():
            raise NotAllowedError(
                "The operation either timed out or was not allowed."
            )

    def _find(self, rp_id: str) -> Optional[tuple[str, bytes]]:
        for cred_id, (cred_rp, cred_random) in self._credentials.items():
            if cred_rp == rp_id:
                return cred_id, cred_random
        return None

    async def create_credential(self, options: dict) -> dict:
        async with self._lock:
            await self._confirm_presence()
            rp_id = options["rp"]["id"]
            if self._find(rp_id) is not None:
                raise NotAllowedError(
                    f"A credential for {rp_id} is already registered"
                )
            cred_id = b64url(os.urandom(16))
            self._credentials[cred_id] = (rp_id, os.urandom(32))
            logger.debug("Software credential created: %s", cred_id)
            return {
                "id": cred_id,
                "rawId": cred_id,
                "type": "public-key",
                "clientExtensionResults": {},
            }

    async def get_assertion(self, options: dict) -> dict:
        async with self._lock:
            await self._confirm_presence()
            rp_id = options["rpId"]
            found = self._find(rp_id)
            if found is None:
                raise NotAllowedError(f"No credential available for {rp_id}")
            cred_id, cred_random = found
            results: dict = {}
            prf = (options.get("extensions") or {}).get("prf")
            if prf is not None and self.prf_enabled:
                salt = prf["eval"]["first"]
                results["prf"] = {
                    "results": {"first": prf_output(cred_random, salt)},
                }
            return {
                "id": cred_id,
                "rawId": cred_id,
                "type": "public-key",
                "clientExtensionResults": results,
            }
