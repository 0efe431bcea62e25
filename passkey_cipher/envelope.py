"""
Envelope — the self-describing unit produced by ``EnvelopeCipher.encrypt``.

Wire format (UTF-8 JSON object):
    {"salt": "<base64 16B>", "iv": "<base64 16B>", "ciphertext": "<base64>"}

Every field is mandatory; anything else is rejected with FormatError
before any cryptographic work starts.
"""
import base64
import binascii
from typing import Any

import orjson
from pydantic import BaseModel, field_validator

from .crypto import SALT_SIZE, IV_SIZE
from .exceptions import FormatError

_FIELDS = ("salt", "iv", "ciphertext")

# OpenSSL "Salted__" header emitted by passphrase-based cipher libraries.
_OPENSSL_MAGIC = b"Salted__"


class Envelope(BaseModel):
    """Immutable {salt, iv, ciphertext} triple."""

    salt: bytes
    iv: bytes
    ciphertext: bytes

    model_config = {"frozen": True, "strict": True}

    @field_validator("salt")
    @classmethod
    def validate_salt(cls, v: bytes) -> bytes:
        if len(v) != SALT_SIZE:
            raise ValueError(f"salt must be {SALT_SIZE} bytes, got {len(v)}")
        return v

    @field_validator("iv")
    @classmethod
    def validate_iv(cls, v: bytes) -> bytes:
        if len(v) != IV_SIZE:
            raise ValueError(f"iv must be {IV_SIZE} bytes, got {len(v)}")
        return v

    @field_validator("ciphertext")
    @classmethod
    def validate_ciphertext(cls, v: bytes) -> bytes:
        if not v:
            raise ValueError("ciphertext cannot be empty")
        return v


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _unb64(name: str, value: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as err:
        raise FormatError(f"Envelope field '{name}' is not valid base64") from err


def encode_envelope(envelope: Envelope) -> str:
    """Serialize an Envelope to its JSON transport string.

    Args:
        envelope: Envelope to serialize.

    Returns:
        JSON text with base64 encoded fields.
    """
    payload = {
        "salt": _b64(envelope.salt),
        "iv": _b64(envelope.iv),
        "ciphertext": _b64(envelope.ciphertext),
    }
    return orjson.dumps(payload).decode("utf-8")


def decode_envelope(text: Any) -> Envelope:
    """Parse a JSON transport string into an Envelope.

    Args:
        text: Envelope JSON text (str or bytes).

    Returns:
        Parsed Envelope.

    Raises:
        FormatError: If the input is not a JSON object carrying the three
            base64 string fields with the expected sizes.
    """
    if not isinstance(text, (str, bytes)):
        raise FormatError(
            f"Envelope must be JSON text, got {type(text).__name__}"
        )
    try:
        parsed = orjson.loads(text)
    except orjson.JSONDecodeError as err:
        raise FormatError("Envelope is not valid JSON") from err
    if not isinstance(parsed, dict):
        raise FormatError("Envelope must be a JSON object")
    missing = [name for name in _FIELDS if name not in parsed]
    if missing:
        raise FormatError(f"Envelope is missing field(s): {', '.join(missing)}")
    for name in _FIELDS:
        if not isinstance(parsed[name], str):
            raise FormatError(f"Envelope field '{name}' must be a string")

    ciphertext = _unb64("ciphertext", parsed["ciphertext"])
    if ciphertext.startswith(_OPENSSL_MAGIC):
        # key-derived ciphertexts never carry an embedded salt; drop it
        ciphertext = ciphertext[16:]
    try:
        return Envelope(
            salt=_unb64("salt", parsed["salt"]),
            iv=_unb64("iv", parsed["iv"]),
            ciphertext=ciphertext,
        )
    except ValueError as err:
        raise FormatError(f"Invalid envelope: {err}") from err
