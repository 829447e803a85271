"""Tests for settings, modes and protocol models"""

import pytest
from pydantic import ValidationError

from saltcrypt.common.config import CodecSettings, load_settings
from saltcrypt.common.errors import CipherError, UnsupportedModeError
from saltcrypt.common.modes import (
    BlockMode,
    PaddingScheme,
    display_name,
    needs_padding,
    parse_mode,
    parse_padding,
)
from saltcrypt.common.protocol import CipherEnvelope, SaltedHeader


def test_defaults(monkeypatch):
    for name in ("SALTCRYPT_DEFAULT_MODE", "SALTCRYPT_DEFAULT_PADDING",
                 "SALTCRYPT_SALT_KEY_SIZE", "SALTCRYPT_KDF_DIGEST", "SALTCRYPT_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    settings = load_settings()
    assert settings.default_mode is BlockMode.CBC
    assert settings.default_padding is PaddingScheme.PKCS7
    assert settings.salt_key_size == 32
    assert settings.kdf_digest == "md5"
    assert settings.log_level == "WARNING"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("SALTCRYPT_DEFAULT_MODE", "gcm")
    monkeypatch.setenv("SALTCRYPT_DEFAULT_PADDING", "ANSI X.923")
    monkeypatch.setenv("SALTCRYPT_SALT_KEY_SIZE", "24")
    monkeypatch.setenv("SALTCRYPT_KDF_DIGEST", "SHA256")
    monkeypatch.setenv("SALTCRYPT_LOG_LEVEL", "debug")
    settings = load_settings()
    assert settings.default_mode is BlockMode.GCM
    assert settings.default_padding is PaddingScheme.ANSIX923
    assert settings.salt_key_size == 24
    assert settings.kdf_digest == "sha256"
    assert settings.log_level == "DEBUG"


def test_invalid_settings():
    with pytest.raises(ValidationError):
        CodecSettings(salt_key_size=20)
    with pytest.raises(ValidationError):
        CodecSettings(kdf_digest="whirlpool")
    with pytest.raises((ValidationError, UnsupportedModeError)):
        CodecSettings(default_mode="XTS")


def test_display_names():
    assert display_name(BlockMode.CBC) == "CBC"
    assert display_name(BlockMode.GCM) == "GCM"
    assert display_name(PaddingScheme.PKCS7) == "PKCS7"
    assert display_name(PaddingScheme.ISO97971) == "ISO/IEC 9797-1"
    assert display_name(PaddingScheme.ANSIX923) == "ANSI X.923"
    assert display_name(PaddingScheme.ISO10126) == "ISO10126"
    assert display_name(PaddingScheme.ZERO) == "ZeroPadding"
    assert display_name(PaddingScheme.NONE) == "NoPadding"
    with pytest.raises(TypeError):
        display_name("CBC")


def test_every_member_has_a_name():
    for member in list(BlockMode) + list(PaddingScheme):
        assert display_name(member)


def test_parse_names_round_trip():
    for mode in BlockMode:
        assert parse_mode(display_name(mode)) is mode
    for scheme in PaddingScheme:
        assert parse_padding(display_name(scheme)) is scheme
        assert parse_padding(scheme.name.lower()) is scheme
    assert parse_padding("PKCS#7") is PaddingScheme.PKCS7
    with pytest.raises(UnsupportedModeError):
        parse_mode("XTS")
    with pytest.raises(UnsupportedModeError):
        parse_padding("OAEP")


def test_needs_padding():
    assert needs_padding(BlockMode.CBC)
    assert needs_padding(BlockMode.ECB)
    for mode in (BlockMode.CFB, BlockMode.CTR, BlockMode.OFB, BlockMode.GCM):
        assert not needs_padding(mode)


def test_salted_header_model():
    header = SaltedHeader(salt=b"12345678")
    assert header.to_bytes() == b"Salted__12345678"
    assert SaltedHeader.from_bytes(b"Salted__12345678tail") == header
    with pytest.raises(ValidationError):
        SaltedHeader(salt=b"123")


def test_envelope_split_gcm():
    raw = b"Salted__12345678" + b"C" * 5 + b"T" * 16
    env = CipherEnvelope.from_bytes(raw, BlockMode.GCM)
    assert env.header.salt == b"12345678"
    assert env.ciphertext == b"C" * 5
    assert env.tag == b"T" * 16
    assert env.to_bytes() == raw


def test_envelope_ecb_ignores_magic():
    raw = b"Salted__12345678"
    env = CipherEnvelope.from_bytes(raw, BlockMode.ECB)
    assert env.header is None
    assert env.ciphertext == raw


def test_envelope_gcm_too_short():
    with pytest.raises(CipherError):
        CipherEnvelope.from_bytes(b"short", BlockMode.GCM)
