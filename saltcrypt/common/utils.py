"""Helpers: random_bytes, b64e, b64d, configure_logging."""
import base64
import logging
import secrets

from saltcrypt.common.errors import RandomSourceError


def random_bytes(n: int) -> bytes:
    """
    Read n bytes from the OS CSPRNG.

    There is no fallback generator: if the OS source fails the error
    propagates as RandomSourceError.
    """
    try:
        return secrets.token_bytes(n)
    except OSError as e:
        raise RandomSourceError(f"secure random source failed: {e}") from e


def b64e(b: bytes) -> str:
    return base64.b64encode(b).decode("ascii")


def b64d(s: str) -> bytes:
    return base64.b64decode(s.encode("ascii"), validate=True)


def configure_logging(level: str = "WARNING") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
