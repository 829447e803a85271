"""Codec defaults loaded from the environment (.env supported)."""
import os
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

from saltcrypt.common.modes import (
    BlockMode,
    PaddingScheme,
    parse_mode,
    parse_padding,
)
from saltcrypt.common.protocol import AES_KEY_SIZES

load_dotenv()


class CodecSettings(BaseModel):
    """
    Defaults used when a caller leaves mode/padding unset, plus the
    parameters of the salted-header key derivation.
    """
    default_mode: BlockMode = BlockMode.CBC
    default_padding: PaddingScheme = PaddingScheme.PKCS7
    salt_key_size: int = 32
    kdf_digest: Literal["md5", "sha1", "sha256"] = "md5"
    log_level: str = "WARNING"

    @field_validator("default_mode", mode="before")
    @classmethod
    def _parse_mode(cls, v):
        if isinstance(v, str):
            return parse_mode(v)
        return v

    @field_validator("default_padding", mode="before")
    @classmethod
    def _parse_padding(cls, v):
        if isinstance(v, str):
            return parse_padding(v)
        return v

    @field_validator("salt_key_size")
    @classmethod
    def _check_key_size(cls, v: int) -> int:
        if v not in AES_KEY_SIZES:
            raise ValueError(f"salt_key_size must be one of {AES_KEY_SIZES}, got {v}")
        return v

    @field_validator("kdf_digest", mode="before")
    @classmethod
    def _lower_digest(cls, v):
        return v.lower() if isinstance(v, str) else v

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.upper()


def load_settings() -> CodecSettings:
    """
    Build settings from SALTCRYPT_* environment variables.

    Returns:
        CodecSettings with unset variables at their defaults
    """
    return CodecSettings(
        default_mode=os.getenv("SALTCRYPT_DEFAULT_MODE", "CBC"),
        default_padding=os.getenv("SALTCRYPT_DEFAULT_PADDING", "PKCS7"),
        salt_key_size=int(os.getenv("SALTCRYPT_SALT_KEY_SIZE", 32)),
        kdf_digest=os.getenv("SALTCRYPT_KDF_DIGEST", "md5"),
        log_level=os.getenv("SALTCRYPT_LOG_LEVEL", "WARNING"),
    )
