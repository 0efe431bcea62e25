"""Shared fixtures for the passkey_cipher test suite."""
import pytest

from passkey_cipher import (
    CipherConfig,
    EnvelopeCipher,
    PasskeyService,
    SoftwareAuthenticator,
    StaticPRFProvider,
)


@pytest.fixture
def zero_secret():
    return bytes(32)


@pytest.fixture
def provider(zero_secret):
    """Authenticated, PRF-capable stub returning an all-zero secret."""
    return StaticPRFProvider(secret=zero_secret)


@pytest.fixture
def cipher(provider):
    return EnvelopeCipher(provider)


@pytest.fixture
def config():
    return CipherConfig(rp_id="example.com", rp_name="Test RP")


@pytest.fixture
def authenticator():
    return SoftwareAuthenticator()


@pytest.fixture
def service(authenticator, config):
    return PasskeyService(authenticator, config=config)
