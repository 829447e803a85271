"""EVP_BytesToKey key/IV derivation + "Salted__" header build/parse."""
import hashlib
import logging
from typing import Optional

from saltcrypt.common.errors import CipherError, UnsupportedModeError
from saltcrypt.common.modes import BlockMode
from saltcrypt.common.protocol import (
    GCM_NONCE_SIZE,
    SALT_SIZE,
    DerivedKeyMaterial,
    SaltedHeader,
)
from saltcrypt.common.utils import random_bytes

logger = logging.getLogger(__name__)

DEFAULT_DIGEST = "md5"


def iv_size_for(mode: BlockMode, block_size: int) -> int:
    """
    IV/nonce length a mode needs.

    Args:
        mode: Block mode
        block_size: Cipher block size in bytes

    Returns:
        block_size for CBC/CFB/CTR/OFB, 12 for GCM, 0 for ECB
    """
    if mode is BlockMode.GCM:
        return GCM_NONCE_SIZE
    if mode is BlockMode.ECB:
        return 0
    if mode in (BlockMode.CBC, BlockMode.CFB, BlockMode.CTR, BlockMode.OFB):
        return block_size
    raise UnsupportedModeError(f"unsupported block mode: {mode!r}")


def derive_key_material(
    salt: bytes,
    password: bytes,
    key_size: int,
    total_size: int,
    digest: str = DEFAULT_DIGEST,
) -> DerivedKeyMaterial:
    """
    OpenSSL EVP_BytesToKey with a single iteration.

    D_0 = H(password || salt), D_i = H(D_{i-1} || password || salt);
    the digests are concatenated until total_size bytes are available.

    Args:
        salt: 8-byte salt
        password: Password bytes (the caller's key)
        key_size: Bytes of key to return
        total_size: key_size + IV length
        digest: hashlib digest name

    Returns:
        DerivedKeyMaterial with key = first key_size bytes and
        iv = the following total_size - key_size bytes
    """
    if len(salt) != SALT_SIZE:
        raise CipherError(f"salt must be {SALT_SIZE} bytes, got {len(salt)}")
    if total_size < key_size:
        raise CipherError("total_size must be at least key_size")

    seed = bytes(password) + bytes(salt)
    block = hashlib.new(digest, seed).digest()
    material = block
    while len(material) < total_size:
        block = hashlib.new(digest, block + seed).digest()
        material += block

    return DerivedKeyMaterial(key=material[:key_size], iv=material[key_size:total_size])


def _total_size(mode: BlockMode, block_size: int, key_size: int) -> int:
    return key_size + iv_size_for(mode, block_size)


def build_salted_header(
    password: bytes,
    block_size: int,
    mode: BlockMode,
    key_size: int,
    digest: str = DEFAULT_DIGEST,
) -> tuple[SaltedHeader, DerivedKeyMaterial]:
    """
    Generate a fresh salt, its header and the key/IV derived from it.

    Args:
        password: Password bytes
        block_size: Cipher block size in bytes
        mode: Block mode (decides the IV length)
        key_size: Derived key length

    Returns:
        (header, material) tuple
    """
    header = SaltedHeader(salt=random_bytes(SALT_SIZE))
    material = derive_key_material(
        header.salt, password, key_size, _total_size(mode, block_size, key_size), digest
    )
    logger.debug("built salted header for %s, key %d bytes", mode.name, key_size)
    return header, material


def parse_salted_header(
    header: SaltedHeader,
    password: bytes,
    block_size: int,
    mode: BlockMode,
    key_size: int,
    digest: str = DEFAULT_DIGEST,
) -> DerivedKeyMaterial:
    """Re-derive the key/IV for a received header."""
    if not isinstance(header, SaltedHeader):
        header = SaltedHeader.from_bytes(header)
    return derive_key_material(
        header.salt, password, key_size, _total_size(mode, block_size, key_size), digest
    )


def extract_salt(data: bytes) -> Optional[bytes]:
    """Return the salt if data starts with a salted header, else None."""
    if SaltedHeader.matches(data):
        return SaltedHeader.from_bytes(data).salt
    return None
