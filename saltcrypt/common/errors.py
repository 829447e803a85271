"""Codec error taxonomy."""


class CipherError(ValueError):
    """Base class for every error raised by the codec."""
    pass


class InvalidKeySizeError(CipherError):
    """Key is not 16, 24 or 32 bytes."""
    pass


class InvalidIVLengthError(CipherError):
    """IV/nonce missing or of the wrong length for the mode."""
    pass


class BlockAlignmentError(CipherError):
    """Input length is not a multiple of the block size."""
    pass


class InvalidBlockSizeError(CipherError):
    """Block size outside the range a padding scheme can encode."""
    pass


class PaddingValidationError(CipherError):
    """Bad count byte or filler found while unpadding."""
    pass


class AuthenticationFailureError(CipherError):
    """GCM tag did not verify."""
    pass


class PlaintextTooLargeError(CipherError):
    """Plaintext exceeds the GCM size bound."""
    pass


class UnsupportedModeError(CipherError):
    """Mode or padding scheme the codec does not know."""
    pass


class RandomSourceError(CipherError):
    """The OS random source could not supply bytes."""
    pass
