"""
Allocates slugs that are unused in a given table column.

A candidate is generated, probed, and regenerated until the probe finds no
row holding it. There is no retry cap: collisions get rarer as the length
grows, and a caller asking for short slugs against a dense column accepts
long loops.

The allocator never writes. Two concurrent callers can both be handed the
same slug before either inserts it, so the target column must carry a
UNIQUE constraint and callers must handle the resulting integrity error.
"""

from dataclasses import dataclass
import logging

from .exceptions import InvalidLength
from .probe import slug_exists
from .store import BaseSlugStore
from .utils import MAX_SLUG_LENGTH, generate_slug

__all__ = ["SlugRequest", "SlugAllocator", "gen_unique_slug"]

logger = logging.getLogger(__name__)

# Log a warning after this many consecutive collisions within one call.
COLLISION_WARN_EVERY = 100


@dataclass(frozen=True)
class SlugRequest:
    table_name: str
    column_name: str
    length: int


def validate_length(length) -> int:
    # bool is an int subclass; True is not a length
    if isinstance(length, bool) or not isinstance(length, int):
        raise InvalidLength(f"slug_length must be an integer, got {type(length).__name__}")
    if length < 1 or length > MAX_SLUG_LENGTH:
        raise InvalidLength(f"slug_length must be between 1 and {MAX_SLUG_LENGTH}")
    return length


class SlugAllocator:
    """
    Generate-and-check loop over a slug store.

    :param store: storage collaborator, defaults to the shared SQLAlchemy store
    :param generator: callable(length) -> candidate
    """

    def __init__(self, store: BaseSlugStore = None, generator=generate_slug):
        self._store = store
        self._generator = generator

    @property
    def store(self) -> BaseSlugStore:
        if self._store is None:
            from .db import get_store
            self._store = get_store()
        return self._store

    def allocate(self, request: SlugRequest) -> str:
        """
        Return a slug not present in request.table_name.request.column_name.

        :raises InvalidLength: before any storage access
        :raises RandomSourceUnavailable, QuotingFailed, QueryExecutionFailed: propagated as-is
        """
        length = validate_length(request.length)
        store = self.store

        with store.session() as session:
            collisions = 0
            while True:
                candidate = self._generator(length)
                if not slug_exists(store, session, request.table_name, request.column_name, candidate):
                    break

                collisions += 1
                logger.debug(f"Slug collision #{collisions} in {request.table_name!r}.{request.column_name!r}")
                if collisions % COLLISION_WARN_EVERY == 0:
                    logger.warning(
                        f"{collisions} consecutive slug collisions in "
                        f"{request.table_name!r}.{request.column_name!r} at length {length}; "
                        f"consider a longer slug"
                    )

        if collisions:
            logger.info(f"Allocated slug after {collisions} collision(s) in {request.table_name!r}.{request.column_name!r}")
        return candidate


def gen_unique_slug(table_name: str, column_name: str, length: int, store: BaseSlugStore = None) -> str:
    """
    Return a random slug of `length` letters unused in `table_name`.`column_name`.

    Convenience wrapper around SlugAllocator for one-off calls.
    """
    return SlugAllocator(store).allocate(SlugRequest(table_name, column_name, length))
