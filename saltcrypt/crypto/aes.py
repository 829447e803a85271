"""AES encrypt/decrypt over CBC, CFB, CTR, OFB, GCM and ECB (use library)."""
import logging
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

try:
    # CFB and OFB live in the decrepit package on newer cryptography releases
    from cryptography.hazmat.decrepit.ciphers.modes import CFB, OFB
except ImportError:
    from cryptography.hazmat.primitives.ciphers.modes import CFB, OFB

from saltcrypt.common.config import CodecSettings, load_settings
from saltcrypt.common.errors import (
    AuthenticationFailureError,
    BlockAlignmentError,
    InvalidIVLengthError,
    InvalidKeySizeError,
    PlaintextTooLargeError,
    UnsupportedModeError,
)
from saltcrypt.common.modes import BlockMode, PaddingScheme, needs_padding
from saltcrypt.common.protocol import (
    AES_BLOCK_SIZE,
    AES_KEY_SIZES,
    GCM_TAG_SIZE,
    HEADER_SIZE,
    CipherEnvelope,
    SaltedHeader,
)
from saltcrypt.crypto import kdf
from saltcrypt.crypto.ecb import AESBlock, ECBMode
from saltcrypt.crypto.padding import pad, unpad

logger = logging.getLogger(__name__)

# NIST SP 800-38D bound on GCM plaintext
GCM_MAX_PLAINTEXT = ((1 << 32) - 2) * AES_BLOCK_SIZE

_STREAM_MODES = {
    BlockMode.CBC: modes.CBC,
    BlockMode.CFB: CFB,
    BlockMode.CTR: modes.CTR,
    BlockMode.OFB: OFB,
}


def _check_key(key: bytes) -> None:
    if len(key) not in AES_KEY_SIZES:
        raise InvalidKeySizeError(f"AES key must be 16, 24 or 32 bytes, got {len(key)}")


def _check_mode(mode) -> None:
    if not isinstance(mode, BlockMode):
        raise UnsupportedModeError(f"unsupported block mode: {mode!r}")


def _check_iv(mode: BlockMode, iv: Optional[bytes]) -> None:
    expected = kdf.iv_size_for(mode, AES_BLOCK_SIZE)
    if expected == 0:
        return
    if iv is None:
        raise InvalidIVLengthError(f"{mode.name} needs a {expected}-byte IV and none was given")
    if len(iv) != expected:
        if mode is BlockMode.GCM:
            raise InvalidIVLengthError(f"GCM nonce must be {expected} bytes, got {len(iv)}")
        raise InvalidIVLengthError(f"IV length must equal block size {expected}, got {len(iv)}")


def _resolve(mode, padding, settings):
    if settings is None:
        settings = load_settings()
    mode = settings.default_mode if mode is None else mode
    padding = settings.default_padding if padding is None else padding
    _check_mode(mode)
    if not isinstance(padding, PaddingScheme):
        raise UnsupportedModeError(f"unsupported padding scheme: {padding!r}")
    return mode, padding, settings


def _encrypt_raw(key: bytes, iv: Optional[bytes], mode: BlockMode, data: bytes) -> bytes:
    if mode is BlockMode.GCM:
        if len(data) > GCM_MAX_PLAINTEXT:
            raise PlaintextTooLargeError("plaintext too large for GCM")
        try:
            return AESGCM(key).encrypt(iv, data, None)
        except OverflowError as e:
            raise PlaintextTooLargeError(str(e)) from e
    if mode is BlockMode.ECB:
        return ECBMode(AESBlock(key)).encrypt_blocks(data)
    encryptor = Cipher(algorithms.AES(key), _STREAM_MODES[mode](iv)).encryptor()
    return encryptor.update(data) + encryptor.finalize()


def _decrypt_raw(key: bytes, iv: Optional[bytes], mode: BlockMode, data: bytes) -> bytes:
    if mode is BlockMode.GCM:
        if len(data) < GCM_TAG_SIZE:
            raise AuthenticationFailureError("GCM authentication failed: data shorter than tag")
        try:
            return AESGCM(key).decrypt(iv, data, None)
        except InvalidTag:
            raise AuthenticationFailureError("GCM authentication failed") from None
    if mode is BlockMode.ECB:
        return ECBMode(AESBlock(key)).decrypt_blocks(data)
    if mode is BlockMode.CBC and len(data) % AES_BLOCK_SIZE != 0:
        raise BlockAlignmentError(
            f"CBC ciphertext length {len(data)} is not a multiple of {AES_BLOCK_SIZE}"
        )
    decryptor = Cipher(algorithms.AES(key), _STREAM_MODES[mode](iv)).decryptor()
    return decryptor.update(data) + decryptor.finalize()


def encrypt(
    plaintext: bytes,
    key: bytes,
    iv: Optional[bytes] = None,
    mode: Optional[BlockMode] = None,
    padding: Optional[PaddingScheme] = None,
    settings: Optional[CodecSettings] = None,
) -> bytes:
    """
    Encrypt plaintext with AES.

    When iv is None (and the mode is not ECB) the key is used as a password:
    a random salt is drawn, key and IV are derived from it and the output
    starts with the 16-byte "Salted__" header.

    Args:
        plaintext: Data to encrypt
        key: 16, 24 or 32-byte AES key
        iv: IV (16 bytes) or GCM nonce (12 bytes); ignored for ECB
        mode: Block mode (default from settings, normally CBC)
        padding: Padding scheme for CBC/ECB (default from settings, normally PKCS7)
        settings: CodecSettings, loaded from the environment if omitted

    Returns:
        [header] || ciphertext || [GCM tag]

    Raises:
        InvalidKeySizeError, InvalidIVLengthError, BlockAlignmentError,
        PlaintextTooLargeError, UnsupportedModeError
    """
    _check_key(key)
    mode, padding, settings = _resolve(mode, padding, settings)

    data = bytes(plaintext)
    if needs_padding(mode):
        data = pad(padding, data, AES_BLOCK_SIZE)

    prefix = b""
    if iv is None and mode is not BlockMode.ECB:
        header, material = kdf.build_salted_header(
            key, AES_BLOCK_SIZE, mode, settings.salt_key_size, settings.kdf_digest
        )
        key, iv = material.key, material.iv
        prefix = header.to_bytes()
    else:
        _check_iv(mode, iv)

    logger.debug(
        "encrypt mode=%s padding=%s in=%d salted=%s",
        mode.name, padding.name, len(plaintext), bool(prefix),
    )
    return prefix + _encrypt_raw(key, iv, mode, data)


def decrypt(
    ciphertext: bytes,
    key: bytes,
    iv: Optional[bytes] = None,
    mode: Optional[BlockMode] = None,
    padding: Optional[PaddingScheme] = None,
    settings: Optional[CodecSettings] = None,
) -> bytes:
    """
    Decrypt data produced by encrypt().

    If the data starts with "Salted__" (any mode but ECB), key and IV are
    re-derived from the embedded salt and the header is skipped; a caller
    IV is then ignored.

    Args:
        ciphertext: Data to decrypt
        key: 16, 24 or 32-byte AES key
        iv: IV/nonce used for encryption; unused for salted data
        mode: Block mode (default from settings)
        padding: Padding scheme for CBC/ECB (default from settings)
        settings: CodecSettings, loaded from the environment if omitted

    Returns:
        Plaintext bytes

    Raises:
        AuthenticationFailureError: GCM tag mismatch (no plaintext is returned)
        PaddingValidationError, BlockAlignmentError, InvalidIVLengthError,
        InvalidKeySizeError, UnsupportedModeError
    """
    _check_key(key)
    mode, padding, settings = _resolve(mode, padding, settings)

    data = bytes(ciphertext)
    salted = False
    # A header wins over a caller IV; ciphertext that happens to start with
    # the magic is misread (accepted risk)
    if mode is not BlockMode.ECB and SaltedHeader.matches(data):
        material = kdf.parse_salted_header(
            SaltedHeader.from_bytes(data),
            key,
            AES_BLOCK_SIZE,
            mode,
            settings.salt_key_size,
            settings.kdf_digest,
        )
        key, iv = material.key, material.iv
        data = data[HEADER_SIZE:]
        salted = True
    elif mode is BlockMode.GCM and iv is None:
        # nothing to authenticate against: corrupted header or missing nonce
        raise AuthenticationFailureError("GCM authentication failed: no nonce and no salted header")

    _check_iv(mode, iv)
    logger.debug(
        "decrypt mode=%s padding=%s in=%d salted=%s",
        mode.name, padding.name, len(ciphertext), salted,
    )

    plaintext = _decrypt_raw(key, iv, mode, data)
    if needs_padding(mode):
        plaintext = unpad(padding, plaintext, AES_BLOCK_SIZE)
    return plaintext


def encrypt_envelope(
    plaintext: bytes,
    key: bytes,
    iv: Optional[bytes] = None,
    mode: Optional[BlockMode] = None,
    padding: Optional[PaddingScheme] = None,
    settings: Optional[CodecSettings] = None,
) -> CipherEnvelope:
    """Like encrypt() but returns the output split into header/ciphertext/tag."""
    mode, padding, settings = _resolve(mode, padding, settings)
    raw = encrypt(plaintext, key, iv, mode, padding, settings)
    return CipherEnvelope.from_bytes(raw, mode, salted=iv is None and mode is not BlockMode.ECB)


def decrypt_envelope(
    envelope: CipherEnvelope,
    key: bytes,
    iv: Optional[bytes] = None,
    mode: Optional[BlockMode] = None,
    padding: Optional[PaddingScheme] = None,
    settings: Optional[CodecSettings] = None,
) -> bytes:
    return decrypt(envelope.to_bytes(), key, iv, mode, padding, settings)


class AESCodec:
    """
    Key, mode and padding bound together for repeated calls.
    Holds no cipher state between calls.
    """

    def __init__(
        self,
        key: bytes,
        mode: Optional[BlockMode] = None,
        padding: Optional[PaddingScheme] = None,
        settings: Optional[CodecSettings] = None,
    ):
        _check_key(key)
        self.key = bytes(key)
        self.mode, self.padding, self.settings = _resolve(mode, padding, settings)

    def encrypt(self, plaintext: bytes, iv: Optional[bytes] = None) -> bytes:
        return encrypt(plaintext, self.key, iv, self.mode, self.padding, self.settings)

    def decrypt(self, ciphertext: bytes, iv: Optional[bytes] = None) -> bytes:
        return decrypt(ciphertext, self.key, iv, self.mode, self.padding, self.settings)

    def __repr__(self) -> str:
        return f"AESCodec(mode={self.mode.name}, padding={self.padding.name}, key_bits={len(self.key) * 8})"
