"""PassKey Cipher — Envelope encryption keyed by a passkey PRF.

Security Note (Threat Model):
    The AES key is re-derived from the authenticator PRF on every call and
    never persisted; it still lives in process memory while in use.
    Envelopes use AES-CBC without an integrity tag, and the KDF salt and
    ceremony challenge are fixed demo constants. These are accepted
    limitations of the envelope format, which stays compatible with the
    browser implementation.
"""

from .cipher import EnvelopeCipher
from .config import CipherConfig
from .crypto import derive_key
from .envelope import Envelope, encode_envelope, decode_envelope
from .exceptions import (
    PasskeyCipherError,
    UnsupportedBrowserError,
    AuthenticationError,
    NotAllowedError,
    PRFUnsupportedError,
    FormatError,
    EncryptionError,
    DecryptionError,
)
from .passkey import Authenticator, PasskeyService
from .prf import PRFProvider, PasskeyStatus, StaticPRFProvider
from .software import SoftwareAuthenticator
from .version import __version__

__all__ = [
    "EnvelopeCipher",
    "CipherConfig",
    "derive_key",
    "Envelope",
    "encode_envelope",
    "decode_envelope",
    "PasskeyCipherError",
    "UnsupportedBrowserError",
    "AuthenticationError",
    "NotAllowedError",
    "PRFUnsupportedError",
    "FormatError",
    "EncryptionError",
    "DecryptionError",
    "Authenticator",
    "PasskeyService",
    "PRFProvider",
    "PasskeyStatus",
    "StaticPRFProvider",
    "SoftwareAuthenticator",
    "__version__",
]
