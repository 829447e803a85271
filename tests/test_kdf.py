"""Tests for EVP_BytesToKey derivation and salted headers"""

import hashlib
import secrets

import pytest

from saltcrypt.common.errors import CipherError, RandomSourceError, UnsupportedModeError
from saltcrypt.common.modes import BlockMode
from saltcrypt.common.protocol import SALT_MAGIC, SaltedHeader
from saltcrypt.crypto import aes
from saltcrypt.crypto.kdf import (
    build_salted_header,
    derive_key_material,
    extract_salt,
    iv_size_for,
    parse_salted_header,
)


SALT = bytes.fromhex("0102030405060708")
PASSWORD = b"0123456789abcdef"


def test_derivation_matches_md5_chain():
    """D0 = MD5(pw||salt), D1 = MD5(D0||pw||salt), ..."""
    d0 = hashlib.md5(PASSWORD + SALT).digest()
    d1 = hashlib.md5(d0 + PASSWORD + SALT).digest()
    d2 = hashlib.md5(d1 + PASSWORD + SALT).digest()
    stream = d0 + d1 + d2

    material = derive_key_material(SALT, PASSWORD, 32, 48)
    assert material.key == stream[:32]
    assert material.iv == stream[32:48]


def test_derivation_sha256():
    d0 = hashlib.sha256(PASSWORD + SALT).digest()
    d1 = hashlib.sha256(d0 + PASSWORD + SALT).digest()
    material = derive_key_material(SALT, PASSWORD, 32, 44, digest="sha256")
    assert material.key == d0
    assert material.iv == d1[:12]


def test_derivation_is_deterministic():
    a = derive_key_material(SALT, PASSWORD, 16, 32)
    b = derive_key_material(SALT, PASSWORD, 16, 32)
    assert a == b
    c = derive_key_material(bytes(8), PASSWORD, 16, 32)
    assert c.key != a.key


def test_derivation_ecb_has_no_iv():
    material = derive_key_material(SALT, PASSWORD, 32, 32)
    assert len(material.key) == 32
    assert material.iv == b""


def test_derivation_rejects_bad_sizes():
    with pytest.raises(CipherError):
        derive_key_material(b"short", PASSWORD, 32, 48)
    with pytest.raises(CipherError):
        derive_key_material(SALT, PASSWORD, 32, 16)


def test_iv_sizes():
    for mode in (BlockMode.CBC, BlockMode.CFB, BlockMode.CTR, BlockMode.OFB):
        assert iv_size_for(mode, 16) == 16
    assert iv_size_for(BlockMode.GCM, 16) == 12
    assert iv_size_for(BlockMode.ECB, 16) == 0
    with pytest.raises(UnsupportedModeError):
        iv_size_for("CBC", 16)


@pytest.mark.parametrize("mode,iv_len", [
    (BlockMode.CBC, 16),
    (BlockMode.GCM, 12),
    (BlockMode.ECB, 0),
])
def test_build_and_parse_header(mode, iv_len):
    header, material = build_salted_header(PASSWORD, 16, mode, 32)
    raw = header.to_bytes()
    assert len(raw) == 16
    assert raw[:8] == SALT_MAGIC
    assert len(material.key) == 32
    assert len(material.iv) == iv_len

    again = parse_salted_header(SaltedHeader.from_bytes(raw), PASSWORD, 16, mode, 32)
    assert again == material
    # raw header bytes are accepted too
    assert parse_salted_header(raw, PASSWORD, 16, mode, 32) == material


def test_headers_use_fresh_salt():
    h1, _ = build_salted_header(PASSWORD, 16, BlockMode.CBC, 32)
    h2, _ = build_salted_header(PASSWORD, 16, BlockMode.CBC, 32)
    assert h1.salt != h2.salt


def test_extract_salt():
    assert extract_salt(b"Salted__" + SALT + b"rest") == SALT
    assert extract_salt(b"Salted__1234") is None
    assert extract_salt(b"salted__" + SALT) is None


def test_header_from_bytes_requires_magic():
    with pytest.raises(CipherError):
        SaltedHeader.from_bytes(b"NotSalt_" + SALT)


def test_salt_generation_fails_closed(monkeypatch):
    """A failing OS random source surfaces as RandomSourceError"""
    def broken(n):
        raise OSError("entropy source unavailable")

    monkeypatch.setattr(secrets, "token_bytes", broken)
    with pytest.raises(RandomSourceError):
        build_salted_header(PASSWORD, 16, BlockMode.CBC, 32)
    with pytest.raises(RandomSourceError):
        aes.encrypt(b"x", PASSWORD, None, BlockMode.CBC)
