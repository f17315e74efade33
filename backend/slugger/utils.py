import secrets
import string

from .exceptions import RandomSourceUnavailable

__all__ = ["SLUG_ALPHABET", "MAX_SLUG_LENGTH", "DEFAULT_SLUG_LENGTH", "generate_slug"]

# A-Z then a-z. Index math in generate_slug depends on this staying fixed.
SLUG_ALPHABET = string.ascii_uppercase + string.ascii_lowercase
MAX_SLUG_LENGTH = 256
DEFAULT_SLUG_LENGTH = 8


def generate_slug(length: int, randbytes=secrets.token_bytes) -> str:
    """
    Generate one random candidate slug of `length` characters.

    Each character is `SLUG_ALPHABET[byte % 52]` for one byte from the secure
    source. 256 is not a multiple of 52, so the first 48 letters are slightly
    more likely than the last four; that bias is accepted.

    The caller owns the length bound.

    :param length: number of characters
    :param randbytes: callable returning `n` random bytes
    :raises RandomSourceUnavailable: the random source failed
    """
    try:
        raw = randbytes(length)
    except (OSError, NotImplementedError) as e:
        raise RandomSourceUnavailable(f"secure random source failed: {e}") from e

    if len(raw) != length:
        raise RandomSourceUnavailable(f"secure random source returned {len(raw)} of {length} bytes")

    return ''.join(SLUG_ALPHABET[b % len(SLUG_ALPHABET)] for b in raw)
