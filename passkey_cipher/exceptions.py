"""PassKey Cipher exceptions.

Errors raised at the authenticator boundary are wrapped with context and
re-raised (``raise ... from err``); the original failure stays reachable
through ``__cause__``.
"""


class PasskeyCipherError(Exception):
    """Base class for every error raised by passkey_cipher."""


class UnsupportedBrowserError(PasskeyCipherError):
    """No passkey authenticator is available on this platform."""


class AuthenticationError(PasskeyCipherError):
    """The authentication ceremony failed or was canceled."""


class NotAllowedError(AuthenticationError):
    """The authenticator refused the ceremony.

    Raised when the user dismisses the prompt, or during registration
    when a credential for this relying party already exists.
    """


class PRFUnsupportedError(PasskeyCipherError):
    """The authenticator is present but lacks the PRF extension."""


class FormatError(PasskeyCipherError):
    """An envelope is malformed or misses a required field."""


class EncryptionError(PasskeyCipherError):
    """Failure anywhere in the encrypt pipeline."""


class DecryptionError(PasskeyCipherError):
    """Failure in the decrypt pipeline (padding, block size, UTF-8)."""
