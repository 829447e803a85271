"""Padding schemes: PKCS#7, ISO/IEC 9797-1 M2, ANSI X.923, ISO 10126, zero, none."""
from cryptography.hazmat.primitives import padding as sym_padding

from saltcrypt.common.errors import (
    BlockAlignmentError,
    InvalidBlockSizeError,
    PaddingValidationError,
    UnsupportedModeError,
)
from saltcrypt.common.modes import PaddingScheme
from saltcrypt.common.utils import random_bytes


MAX_BLOCK_SIZE = 255
MAX_ISO10126_BLOCK_SIZE = 256
ISO97971_MARKER = 0x80


def pad_size(data_size: int, block_size: int) -> int:
    """Bytes needed to reach the next block boundary, always in [1, block_size]."""
    return block_size - data_size % block_size


def _check_block_size(name: str, block_size: int, upper: int = MAX_BLOCK_SIZE) -> None:
    if block_size < 1 or block_size > upper:
        raise InvalidBlockSizeError(f"{name} block size is out of bounds: {block_size}")


def _check_aligned(name: str, data: bytes, block_size: int) -> None:
    if not data or len(data) % block_size != 0:
        raise BlockAlignmentError(
            f"{name} input length {len(data)} isn't a multiple of block size {block_size}"
        )


# PKCS#7 and ANSI X.923 use the library padders; block_size is given in bits there.

def _pkcs7_pad(data: bytes, block_size: int) -> bytes:
    _check_block_size("PKCS7", block_size)
    padder = sym_padding.PKCS7(block_size * 8).padder()
    return padder.update(data) + padder.finalize()


def _pkcs7_unpad(data: bytes, block_size: int) -> bytes:
    _check_block_size("PKCS7", block_size)
    _check_aligned("PKCS7", data, block_size)
    pad_len = data[-1]
    if pad_len < 1 or pad_len > block_size:
        raise PaddingValidationError(f"PKCS7 invalid padding length: {pad_len}")
    unpadder = sym_padding.PKCS7(block_size * 8).unpadder()
    try:
        return unpadder.update(data) + unpadder.finalize()
    except ValueError as e:
        raise PaddingValidationError("PKCS7 invalid padding bytes") from e


def _ansix923_pad(data: bytes, block_size: int) -> bytes:
    _check_block_size("ANSI X.923", block_size)
    padder = sym_padding.ANSIX923(block_size * 8).padder()
    return padder.update(data) + padder.finalize()


def _ansix923_unpad(data: bytes, block_size: int) -> bytes:
    _check_block_size("ANSI X.923", block_size)
    _check_aligned("ANSI X.923", data, block_size)
    pad_len = data[-1]
    if pad_len < 1 or pad_len > block_size:
        raise PaddingValidationError(f"ANSI X.923 invalid padding length: {pad_len}")
    unpadder = sym_padding.ANSIX923(block_size * 8).unpadder()
    try:
        return unpadder.update(data) + unpadder.finalize()
    except ValueError as e:
        raise PaddingValidationError("ANSI X.923 non-zero filler byte") from e


def _zero_pad(data: bytes, block_size: int) -> bytes:
    _check_block_size("ZeroPadding", block_size)
    return data + b"\x00" * pad_size(len(data), block_size)


def _zero_unpad(data: bytes, block_size: int) -> bytes:
    # Ambiguous when the plaintext itself ends in zero bytes
    return data.rstrip(b"\x00")


def _iso97971_pad(data: bytes, block_size: int) -> bytes:
    _check_block_size("ISO/IEC 9797-1", block_size)
    return _zero_pad(data + bytes([ISO97971_MARKER]), block_size)


def _iso97971_unpad(data: bytes, block_size: int) -> bytes:
    stripped = _zero_unpad(data, block_size)
    if not stripped:
        raise PaddingValidationError("ISO/IEC 9797-1 padding marker not found")
    return stripped[:-1]


def _iso10126_pad(data: bytes, block_size: int) -> bytes:
    _check_block_size("ISO10126", block_size, MAX_ISO10126_BLOCK_SIZE)
    n = pad_size(len(data), block_size)
    # A 256-byte pad is written as count byte 0
    return data + random_bytes(n - 1) + bytes([n % 256])


def _iso10126_unpad(data: bytes, block_size: int) -> bytes:
    _check_block_size("ISO10126", block_size, MAX_ISO10126_BLOCK_SIZE)
    _check_aligned("ISO10126", data, block_size)
    pad_len = data[-1]
    if pad_len == 0 and block_size == MAX_ISO10126_BLOCK_SIZE:
        pad_len = MAX_ISO10126_BLOCK_SIZE
    if pad_len < 1 or pad_len > block_size:
        raise PaddingValidationError(f"ISO10126 invalid padding length: {pad_len}")
    return data[:-pad_len]


def _no_pad(data: bytes, block_size: int) -> bytes:
    if block_size < 1:
        raise InvalidBlockSizeError(f"NoPadding block size is out of bounds: {block_size}")
    if len(data) % block_size != 0:
        raise BlockAlignmentError(
            f"NoPadding input length {len(data)} is not a multiple of the block size {block_size}"
        )
    return bytes(data)


_PADDERS = {
    PaddingScheme.PKCS7: (_pkcs7_pad, _pkcs7_unpad),
    PaddingScheme.ISO97971: (_iso97971_pad, _iso97971_unpad),
    PaddingScheme.ANSIX923: (_ansix923_pad, _ansix923_unpad),
    PaddingScheme.ISO10126: (_iso10126_pad, _iso10126_unpad),
    PaddingScheme.ZERO: (_zero_pad, _zero_unpad),
    PaddingScheme.NONE: (_no_pad, _no_pad),
}


def _lookup(scheme: PaddingScheme):
    try:
        return _PADDERS[scheme]
    except (KeyError, TypeError):
        raise UnsupportedModeError(f"unsupported padding scheme: {scheme!r}") from None


def pad(scheme: PaddingScheme, data: bytes, block_size: int) -> bytes:
    """
    Pad data up to a multiple of block_size.

    Args:
        scheme: Padding scheme
        data: Plaintext
        block_size: Block size in bytes

    Returns:
        Padded bytes

    Raises:
        InvalidBlockSizeError: block_size outside the scheme's range
        BlockAlignmentError: NoPadding with unaligned data
    """
    padder, _ = _lookup(scheme)
    return padder(bytes(data), block_size)


def unpad(scheme: PaddingScheme, data: bytes, block_size: int) -> bytes:
    """
    Remove padding added by pad().

    Args:
        scheme: Padding scheme
        data: Decrypted, padded bytes
        block_size: Block size in bytes

    Returns:
        Original data

    Raises:
        BlockAlignmentError: Data not a whole number of blocks
        PaddingValidationError: Bad count byte or filler
    """
    _, unpadder = _lookup(scheme)
    return unpadder(bytes(data), block_size)
