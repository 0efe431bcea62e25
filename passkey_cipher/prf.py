"""
PRF Provider — the authenticator capability consumed by the envelope cipher.

A provider turns a 16-byte salt into a secret that is a deterministic
function of (credential, salt). Providers own a ``PasskeyStatus``; the
cipher only reads it to decide whether encryption is enabled.
"""
from typing import Callable, Optional, Protocol, Union, runtime_checkable

from pydantic import BaseModel

from .exceptions import PRFUnsupportedError


class PasskeyStatus(BaseModel):
    """Authentication and capability state of a passkey provider.

    ``supports_prf`` is tri-state: ``None`` until checked, then
    ``True``/``False``.
    """

    registered: bool = False
    authenticated: bool = False
    message: str = ""
    supports_prf: Optional[bool] = None


@runtime_checkable
class PRFProvider(Protocol):
    """Pseudorandom function exposed by a passkey authenticator."""

    def is_supported(self) -> bool:
        """Return True when a passkey authenticator is available at all."""
        ...

    def get_status(self) -> PasskeyStatus:
        """Return the current authentication/capability status."""
        ...

    async def evaluate(self, salt: bytes) -> bytes:
        """Return the PRF secret for ``salt``.

        Authenticates first when needed.

        Raises:
            AuthenticationError: The ceremony failed or was canceled.
            PRFUnsupportedError: The authenticator lacks the PRF extension.
        """
        ...

    async def check_prf_support(self) -> PasskeyStatus:
        """Probe PRF support with a throwaway evaluation."""
        ...


SecretSource = Union[bytes, Callable[[bytes], bytes]]


class StaticPRFProvider:
    """PRFProvider returning canned secrets, for tests and local tooling.

    Args:
        secret: Fixed secret, or a callable mapping a salt to a secret.
        supported: Whether an authenticator is reported as available.
        status: Initial status; defaults to authenticated with PRF support.
        error: Exception raised by every ``evaluate`` call when set.
    """

    def __init__(
        self,
        secret: SecretSource = bytes(32),
        supported: bool = True,
        status: Optional[PasskeyStatus] = None,
        error: Optional[Exception] = None,
    ):
        self._secret = secret
        self._supported = supported
        self._status = status or PasskeyStatus(
            registered=True, authenticated=True, supports_prf=True,
        )
        self.error = error
        self.calls: list[bytes] = []

    def is_supported(self) -> bool:
        return self._supported

    def get_status(self) -> PasskeyStatus:
        return self._status

    async def evaluate(self, salt: bytes) -> bytes:
        self.calls.append(salt)
        if self.error is not None:
            raise self.error
        if callable(self._secret):
            return self._secret(salt)
        return self._secret

    async def check_prf_support(self) -> PasskeyStatus:
        try:
            await self.evaluate(bytes(16))
        except PRFUnsupportedError:
            self._status.supports_prf = False
        else:
            self._status.supports_prf = True
        return self._status
