"""
Cipher Configuration — KDF constants, relying party settings and
validated settings.

Reads optional overrides from environment variables:
    PASSKEY_KDF_SALT = <string, fixed PBKDF2 salt>
    PASSKEY_KDF_ITERATIONS = <integer>
    PASSKEY_RP_ID = <relying party id, e.g. "example.com">
    PASSKEY_RP_NAME = <relying party display name>

Security Note:
    The KDF salt and the ceremony challenge are fixed constants, not
    server-issued values. Envelopes stay decryptable only while the KDF
    salt and iteration count are unchanged. The fixed challenge offers no
    replay protection and is unsuitable for production without a server
    that issues and verifies challenges.
"""
import os
import logging

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger("passkey.cipher")

KDF_SALT = "passkey-encryption-demo-salt"
KDF_ITERATIONS = 10000

DEFAULT_RP_ID = "localhost"
DEFAULT_RP_NAME = "PassKey Encryption Demo"

# Mock server values; a real deployment fetches these from its backend.
FIXED_CHALLENGE = bytes([1]) * 32
FIXED_USER_ID = bytes([2]) * 16


def get_kdf_iterations() -> int:
    """Read the PBKDF2 iteration count from PASSKEY_KDF_ITERATIONS.

    Returns:
        Iteration count, KDF_ITERATIONS when the variable is unset.

    Raises:
        ValueError: If the value is not a valid integer.
    """
    raw = os.environ.get("PASSKEY_KDF_ITERATIONS")
    if raw is None:
        return KDF_ITERATIONS
    return int(raw)


class CipherConfig(BaseModel):
    """Validated cipher configuration."""

    kdf_salt: str = Field(default=KDF_SALT, min_length=1)
    kdf_iterations: int = Field(default=KDF_ITERATIONS, ge=1)
    rp_id: str = Field(default=DEFAULT_RP_ID)
    rp_name: str = Field(default=DEFAULT_RP_NAME)
    user_name: str = Field(default="user@example.com")
    user_display_name: str = Field(default="Example User")

    model_config = {"frozen": True}

    @field_validator("rp_id")
    @classmethod
    def validate_rp_id(cls, v: str) -> str:
        """A relying party id is a bare host name."""
        if not v or "/" in v or ":" in v:
            raise ValueError(f"Invalid relying party id: {v!r}")
        return v

    @classmethod
    def from_env(cls) -> "CipherConfig":
        """Create CipherConfig by loading values from environment.

        Returns:
            Populated CipherConfig instance.
        """
        config = cls(
            kdf_salt=os.environ.get("PASSKEY_KDF_SALT", KDF_SALT),
            kdf_iterations=get_kdf_iterations(),
            rp_id=os.environ.get("PASSKEY_RP_ID", DEFAULT_RP_ID),
            rp_name=os.environ.get("PASSKEY_RP_NAME", DEFAULT_RP_NAME),
        )
        if config.kdf_salt != KDF_SALT or config.kdf_iterations != KDF_ITERATIONS:
            logger.warning(
                "Non-default KDF settings (iterations=%d); envelopes are not "
                "interchangeable with the default configuration",
                config.kdf_iterations,
            )
        return config
