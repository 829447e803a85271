"""Block modes and padding schemes + their display names."""
from enum import Enum

from saltcrypt.common.errors import UnsupportedModeError


class BlockMode(Enum):
    """Block cipher mode of operation."""
    CBC = 0
    CFB = 1
    CTR = 2
    OFB = 3
    GCM = 4
    ECB = 5


class PaddingScheme(Enum):
    """Padding applied to CBC/ECB plaintext."""
    PKCS7 = 0
    ISO97971 = 1
    ANSIX923 = 2
    ISO10126 = 3
    ZERO = 4
    NONE = 5


# Modes that operate on whole blocks and therefore need padding
PADDED_MODES = frozenset({BlockMode.CBC, BlockMode.ECB})

_MODE_NAMES = {
    BlockMode.CBC: "CBC",
    BlockMode.CFB: "CFB",
    BlockMode.CTR: "CTR",
    BlockMode.OFB: "OFB",
    BlockMode.GCM: "GCM",
    BlockMode.ECB: "ECB",
}

_PADDING_NAMES = {
    PaddingScheme.PKCS7: "PKCS7",
    PaddingScheme.ISO97971: "ISO/IEC 9797-1",
    PaddingScheme.ANSIX923: "ANSI X.923",
    PaddingScheme.ISO10126: "ISO10126",
    PaddingScheme.ZERO: "ZeroPadding",
    PaddingScheme.NONE: "NoPadding",
}


def needs_padding(mode: BlockMode) -> bool:
    return mode in PADDED_MODES


def display_name(value) -> str:
    """
    Human-readable name of a mode or padding scheme.

    Args:
        value: BlockMode or PaddingScheme member

    Returns:
        Display string, e.g. "CBC" or "ANSI X.923"
    """
    if isinstance(value, BlockMode):
        return _MODE_NAMES[value]
    if isinstance(value, PaddingScheme):
        return _PADDING_NAMES[value]
    raise TypeError(f"not a mode or padding scheme: {value!r}")


def _normalize(name: str) -> str:
    return "".join(ch for ch in name.upper() if ch.isalnum())


def parse_mode(name: str) -> BlockMode:
    """Look up a BlockMode by member or display name (case-insensitive)."""
    key = _normalize(name)
    for mode, label in _MODE_NAMES.items():
        if key in (_normalize(mode.name), _normalize(label)):
            return mode
    raise UnsupportedModeError(f"unknown block mode: {name!r}")


def parse_padding(name: str) -> PaddingScheme:
    """
    Look up a PaddingScheme by member or display name.

    Accepts "PKCS7", "pkcs#7", "ISO/IEC 9797-1", "ansix923", "ZeroPadding",
    "NoPadding" and so on; punctuation and case are ignored.
    """
    key = _normalize(name)
    for scheme, label in _PADDING_NAMES.items():
        if key in (_normalize(scheme.name), _normalize(label)):
            return scheme
    raise UnsupportedModeError(f"unknown padding scheme: {name!r}")
