"""
Storage access used by the slug allocator.

BaseSlugStore is everything the allocator needs from a database: quoting,
a read-only query that reports a row count, and a scoped session.
SQLAlchemyStore implements it on top of an SQLAlchemy engine, so any dialect
SQLAlchemy supports can be probed.

Quoted values are wrapped in QuotedIdentifier / QuotedLiteral. Only a store
creates them, and the probe query builder accepts nothing else.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
import logging

from sqlalchemy import String
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from .exceptions import IdentifierQuotingFailed, LiteralQuotingFailed, QueryExecutionFailed

__all__ = ["QuotedIdentifier", "QuotedLiteral", "BaseSlugStore", "SQLAlchemyStore"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuotedIdentifier:
    sql: str


@dataclass(frozen=True)
class QuotedLiteral:
    sql: str


class BaseSlugStore(ABC):
    """
    Storage collaborator for slug allocation.
    Implementations must never execute anything but the text they are given,
    and must never commit.
    """

    @abstractmethod
    def quote_identifier(self, raw: str) -> QuotedIdentifier:
        """
        Quote a table or column name for interpolation into query text.

        :param raw: untrusted identifier
        :raises IdentifierQuotingFailed: raw cannot be represented safely
        """

    @abstractmethod
    def quote_literal(self, raw: str) -> QuotedLiteral:
        """
        Quote a string literal for interpolation into query text.

        :param raw: untrusted value
        :raises LiteralQuotingFailed: raw cannot be represented safely
        """

    @abstractmethod
    def execute_read_only(self, session, sql: str, max_rows: int) -> int:
        """
        Run a read-only query and report how many rows came back, at most `max_rows`.

        :raises QueryExecutionFailed: the backend reported an error
        """

    @abstractmethod
    def acquire_session(self):
        """
        Return a session handle owned by a single allocation.

        :raises QueryExecutionFailed: no session could be opened
        """

    @abstractmethod
    def release_session(self, session):
        """
        Release a handle returned by acquire_session. Must not raise.
        """

    @contextmanager
    def session(self):
        """
        Scoped session: released on every exit path, including errors.
        """
        handle = self.acquire_session()
        try:
            yield handle
        finally:
            self.release_session(handle)


class SQLAlchemyStore(BaseSlugStore):
    """
    Slug store backed by an SQLAlchemy engine.

    Sessions are pooled Connections. Nothing is ever committed; closing the
    connection rolls back whatever transaction the probes began.
    """

    def __init__(self, engine: Engine):
        self.__engine = engine
        self.__literal = String().literal_processor(dialect=engine.dialect)

    @property
    def engine(self) -> Engine:
        return self.__engine

    def quote_identifier(self, raw: str) -> QuotedIdentifier:
        if not isinstance(raw, str) or not raw:
            raise IdentifierQuotingFailed("identifier must be a non-empty string")
        if "\x00" in raw:
            raise IdentifierQuotingFailed("identifier contains a NUL character")
        try:
            raw.encode("utf-8")
        except UnicodeEncodeError as e:
            raise IdentifierQuotingFailed(f"identifier is not valid text: {e.reason}") from e
        # Always quote, even when the dialect would accept the bare name,
        # so reserved words and mixed case behave the same way.
        preparer = self.__engine.dialect.identifier_preparer
        return QuotedIdentifier(preparer.quote_identifier(raw))

    def quote_literal(self, raw: str) -> QuotedLiteral:
        if not isinstance(raw, str):
            raise LiteralQuotingFailed("literal must be a string")
        if "\x00" in raw:
            raise LiteralQuotingFailed("literal contains a NUL character")
        try:
            raw.encode("utf-8")
        except UnicodeEncodeError as e:
            raise LiteralQuotingFailed(f"literal is not valid text: {e.reason}") from e
        return QuotedLiteral(self.__literal(raw))

    def execute_read_only(self, session: Connection, sql: str, max_rows: int) -> int:
        # Quoted values are already escaped for the driver's paramstyle, so the
        # text goes to the DBAPI as-is rather than through text().
        try:
            result = session.exec_driver_sql(sql)
            try:
                return len(result.fetchmany(max_rows))
            finally:
                result.close()
        except SQLAlchemyError as e:
            raise QueryExecutionFailed(f"probe query failed: {e}") from e

    def acquire_session(self) -> Connection:
        try:
            return self.__engine.connect()
        except SQLAlchemyError as e:
            raise QueryExecutionFailed(f"could not open a database connection: {e}") from e

    def release_session(self, session: Connection):
        try:
            session.close()
        except SQLAlchemyError as e:
            # The connection is invalidated by the pool either way.
            logger.warning(f"Error while releasing connection: {e}")
