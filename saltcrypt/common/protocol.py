"""Pydantic models: salted header, derived key material, cipher envelope."""
from typing import Optional

from pydantic import BaseModel, field_validator

from saltcrypt.common.errors import CipherError
from saltcrypt.common.modes import BlockMode


AES_BLOCK_SIZE = 16
AES_KEY_SIZES = (16, 24, 32)

SALT_MAGIC = b"Salted__"
SALT_SIZE = 8
HEADER_SIZE = len(SALT_MAGIC) + SALT_SIZE  # 16

GCM_NONCE_SIZE = 12
GCM_TAG_SIZE = 16


class SaltedHeader(BaseModel):
    """OpenSSL-style header: "Salted__" + 8-byte salt."""
    salt: bytes

    @field_validator("salt")
    @classmethod
    def _check_salt(cls, v: bytes) -> bytes:
        if len(v) != SALT_SIZE:
            raise ValueError(f"salt must be {SALT_SIZE} bytes, got {len(v)}")
        return v

    @staticmethod
    def matches(data: bytes) -> bool:
        """True if data is long enough and starts with the magic."""
        return len(data) >= HEADER_SIZE and data[:len(SALT_MAGIC)] == SALT_MAGIC

    @classmethod
    def from_bytes(cls, data: bytes) -> "SaltedHeader":
        """
        Parse the first 16 bytes of data as a salted header.

        Args:
            data: Buffer starting with a header

        Returns:
            SaltedHeader

        Raises:
            CipherError: If the magic is missing or data is too short
        """
        if not cls.matches(data):
            raise CipherError("data does not start with a salted header")
        return cls(salt=bytes(data[len(SALT_MAGIC):HEADER_SIZE]))

    def to_bytes(self) -> bytes:
        return SALT_MAGIC + self.salt


class DerivedKeyMaterial(BaseModel):
    """Key + IV produced by the password/salt derivation."""
    key: bytes
    iv: bytes = b""


class CipherEnvelope(BaseModel):
    """
    Encryption output split into its parts.
    Layout on the wire: [header(16)] || ciphertext || [tag(16), GCM only]
    """
    header: Optional[SaltedHeader] = None
    ciphertext: bytes
    tag: bytes = b""

    def to_bytes(self) -> bytes:
        prefix = self.header.to_bytes() if self.header is not None else b""
        return prefix + self.ciphertext + self.tag

    @classmethod
    def from_bytes(
        cls, data: bytes, mode: BlockMode, salted: Optional[bool] = None
    ) -> "CipherEnvelope":
        """
        Split raw codec output into header, ciphertext and tag.

        Args:
            data: Bytes returned by encrypt()
            mode: Mode the data was encrypted with
            salted: Whether a header is present; None means look for the magic

        Returns:
            CipherEnvelope
        """
        header = None
        body = bytes(data)
        if salted is None:
            salted = mode is not BlockMode.ECB and SaltedHeader.matches(body)
        if salted:
            header = SaltedHeader.from_bytes(body)
            body = body[HEADER_SIZE:]

        tag = b""
        if mode is BlockMode.GCM:
            if len(body) < GCM_TAG_SIZE:
                raise CipherError("GCM data shorter than the authentication tag")
            body, tag = body[:-GCM_TAG_SIZE], body[-GCM_TAG_SIZE:]

        return cls(header=header, ciphertext=body, tag=tag)
