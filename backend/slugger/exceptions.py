"""
Exceptions raised while allocating slugs.

Collisions are not errors and never surface here: the allocator retries them.
Everything below is fatal to the call it happens in.
"""

__all__ = [
    "SlugError",
    "InvalidLength",
    "RandomSourceUnavailable",
    "QuotingFailed",
    "IdentifierQuotingFailed",
    "LiteralQuotingFailed",
    "QueryExecutionFailed",
]


class SlugError(Exception):
    """Base exception for slug allocation"""


class InvalidLength(SlugError, ValueError):
    """The requested slug length is outside [1, MAX_SLUG_LENGTH]"""


class RandomSourceUnavailable(SlugError):
    """The secure random source could not supply entropy"""


class QuotingFailed(SlugError):
    """A value could not be safely quoted for the target SQL dialect"""


class IdentifierQuotingFailed(QuotingFailed):
    """A table or column name could not be quoted as an identifier"""


class LiteralQuotingFailed(QuotingFailed):
    """A candidate could not be quoted as a string literal"""


class QueryExecutionFailed(SlugError):
    """The storage backend failed to execute a probe"""
