"""
Tests for EnvelopeCipher.

Tests cover:
- Round trip and the fixed "hello world" scenario
- Salt/IV freshness across encryptions
- Cross-credential failure
- Envelope format rejection before any PRF call
- Capability gate
- Error wrapping and propagation
"""
import asyncio

import orjson
import pytest

import passkey_cipher.cipher as cipher_mod
from passkey_cipher import (
    AuthenticationError,
    DecryptionError,
    EncryptionError,
    EnvelopeCipher,
    FormatError,
    NotAllowedError,
    PasskeyStatus,
    PRFUnsupportedError,
    StaticPRFProvider,
    UnsupportedBrowserError,
)
from passkey_cipher.crypto import aes_cbc_encrypt, derive_key
from passkey_cipher.envelope import Envelope, decode_envelope, encode_envelope


# --- Round trip ---

class TestRoundTrip:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("plaintext", [
        "hello world",
        "",
        "a" * 1000,
        "ñandú — 日本語 🔐",
        "line one\nline two\ttab",
    ])
    async def test_round_trip(self, cipher, plaintext):
        envelope = await cipher.encrypt(plaintext)
        assert await cipher.decrypt(envelope) == plaintext

    @pytest.mark.asyncio
    async def test_hello_world_with_fixed_salts(self, cipher, provider, monkeypatch):
        salt = b"\x10" * 16
        iv = b"\x20" * 16
        monkeypatch.setattr(cipher_mod, "generate_salt", lambda: salt)
        monkeypatch.setattr(cipher_mod, "generate_iv", lambda: iv)

        envelope = await cipher.encrypt("hello world")
        parsed = decode_envelope(envelope)
        assert parsed.salt == salt
        assert parsed.iv == iv
        assert len(parsed.ciphertext) == 16

        assert await cipher.decrypt(envelope) == "hello world"
        # PRF evaluated with the same salt on both sides
        assert provider.calls == [salt, salt]

    @pytest.mark.asyncio
    async def test_fixed_inputs_are_reproducible(self, cipher, monkeypatch):
        monkeypatch.setattr(cipher_mod, "generate_salt", lambda: b"\x10" * 16)
        monkeypatch.setattr(cipher_mod, "generate_iv", lambda: b"\x20" * 16)
        assert await cipher.encrypt("hello world") == await cipher.encrypt("hello world")

    @pytest.mark.asyncio
    async def test_envelope_is_json_with_three_fields(self, cipher):
        envelope = await cipher.encrypt("payload")
        assert set(orjson.loads(envelope)) == {"salt", "iv", "ciphertext"}


# --- Freshness ---

class TestFreshness:

    @pytest.mark.asyncio
    async def test_same_plaintext_different_envelopes(self, cipher):
        first = decode_envelope(await cipher.encrypt("same message"))
        second = decode_envelope(await cipher.encrypt("same message"))
        assert first.salt != second.salt
        assert first.iv != second.iv
        assert first.ciphertext != second.ciphertext

    @pytest.mark.asyncio
    async def test_prf_called_with_fresh_salt(self, cipher, provider):
        await cipher.encrypt("one")
        await cipher.encrypt("two")
        assert len(provider.calls) == 2
        assert provider.calls[0] != provider.calls[1]
        assert all(len(salt) == 16 for salt in provider.calls)


# --- Cross credential ---

class TestCrossCredential:

    @pytest.mark.asyncio
    async def test_other_secret_does_not_recover_plaintext(self, cipher):
        plaintext = "attack at dawn"
        envelope = await cipher.encrypt(plaintext)

        other = EnvelopeCipher(StaticPRFProvider(secret=b"\x01" * 32))
        try:
            result = await other.decrypt(envelope)
        except DecryptionError:
            return
        assert result != plaintext

    @pytest.mark.asyncio
    async def test_salt_dependent_secret_round_trips(self):
        provider = StaticPRFProvider(secret=lambda salt: salt * 2)
        cipher = EnvelopeCipher(provider)
        envelope = await cipher.encrypt("salted secret")
        assert await cipher.decrypt(envelope) == "salted secret"

    @pytest.mark.asyncio
    async def test_padding_ok_but_invalid_utf8(self, cipher):
        iv = b"\x20" * 16
        envelope = Envelope(
            salt=b"\x10" * 16,
            iv=iv,
            ciphertext=aes_cbc_encrypt(b"\xff\xfe", derive_key(bytes(32)), iv),
        )
        with pytest.raises(DecryptionError, match="UTF-8") as exc:
            await cipher.decrypt(encode_envelope(envelope))
        assert isinstance(exc.value.__cause__, UnicodeDecodeError)

    @pytest.mark.asyncio
    async def test_truncated_ciphertext_fails(self, cipher):
        envelope = orjson.loads(await cipher.encrypt("some text"))
        envelope["ciphertext"] = "AAAA"
        with pytest.raises(DecryptionError):
            await cipher.decrypt(orjson.dumps(envelope).decode())


# --- Format rejection ---

class TestFormatRejection:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["not json", "{}", '{"salt": "x"}'])
    async def test_rejected_without_prf_call(self, cipher, provider, text):
        with pytest.raises(FormatError):
            await cipher.decrypt(text)
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_non_string_fields(self, cipher, provider):
        text = orjson.dumps({"salt": 1, "iv": 2, "ciphertext": 3}).decode()
        with pytest.raises(FormatError):
            await cipher.decrypt(text)
        assert provider.calls == []


# --- Capability gate ---

class TestCapabilityGate:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("supports_prf", [None, False])
    async def test_prf_not_confirmed(self, supports_prf):
        provider = StaticPRFProvider(
            status=PasskeyStatus(authenticated=True, supports_prf=supports_prf),
        )
        cipher = EnvelopeCipher(provider)
        assert cipher.enabled is False
        with pytest.raises(PRFUnsupportedError):
            await cipher.encrypt("hello")
        with pytest.raises(PRFUnsupportedError):
            await cipher.decrypt("{}")
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_no_authenticator(self):
        provider = StaticPRFProvider(supported=False)
        cipher = EnvelopeCipher(provider)
        with pytest.raises(UnsupportedBrowserError):
            await cipher.encrypt("hello")
        with pytest.raises(UnsupportedBrowserError):
            await cipher.decrypt("{}")
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_not_authenticated(self):
        provider = StaticPRFProvider(
            status=PasskeyStatus(authenticated=False, supports_prf=True),
        )
        cipher = EnvelopeCipher(provider)
        with pytest.raises(AuthenticationError):
            await cipher.encrypt("hello")
        assert provider.calls == []

    def test_enabled(self, cipher):
        assert cipher.enabled is True


# --- Error propagation ---

class TestErrors:

    @pytest.mark.asyncio
    async def test_encrypt_wraps_authentication_error(self, provider, cipher):
        cause = NotAllowedError("dismissed")
        provider.error = cause
        with pytest.raises(EncryptionError) as exc:
            await cipher.encrypt("hello")
        assert exc.value.__cause__ is cause

    @pytest.mark.asyncio
    async def test_encrypt_wraps_prf_unsupported(self, provider, cipher):
        provider.error = PRFUnsupportedError("no prf")
        with pytest.raises(EncryptionError) as exc:
            await cipher.encrypt("hello")
        assert isinstance(exc.value.__cause__, PRFUnsupportedError)

    @pytest.mark.asyncio
    async def test_decrypt_propagates_authentication_error(self, provider, cipher):
        envelope = await cipher.encrypt("hello")
        provider.error = AuthenticationError("ceremony canceled")
        with pytest.raises(AuthenticationError, match="ceremony canceled"):
            await cipher.decrypt(envelope)

    @pytest.mark.asyncio
    async def test_decrypt_wraps_unexpected_provider_error(self, provider, cipher):
        envelope = await cipher.encrypt("hello")
        provider.error = RuntimeError("boom")
        with pytest.raises(DecryptionError) as exc:
            await cipher.decrypt(envelope)
        assert isinstance(exc.value.__cause__, RuntimeError)

    @pytest.mark.asyncio
    async def test_decrypt_wraps_non_bytes_secret(self, cipher):
        envelope = await cipher.encrypt("hello")
        broken = EnvelopeCipher(StaticPRFProvider(secret="x" * 32))
        with pytest.raises(DecryptionError) as exc:
            await broken.decrypt(envelope)
        assert isinstance(exc.value.__cause__, TypeError)

    @pytest.mark.asyncio
    async def test_caller_enforced_timeout(self):
        class StalledProvider(StaticPRFProvider):
            async def evaluate(self, salt):
                await asyncio.Event().wait()

        cipher = EnvelopeCipher(StalledProvider())
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(cipher.encrypt("hello"), timeout=0.05)
