"""
Existence probe for a candidate slug in a caller-chosen table and column.

Table and column names come from callers and are untrusted. Quoting them is
the only thing standing between them and the query text, so every name and
every candidate goes through the store's quoting on every probe.
"""

from .store import BaseSlugStore, QuotedIdentifier, QuotedLiteral

__all__ = ["build_probe_query", "slug_exists"]

PROBE_QUERY = "SELECT 1 FROM {table} WHERE {column} = {candidate} LIMIT 1"


def build_probe_query(table: QuotedIdentifier, column: QuotedIdentifier, candidate: QuotedLiteral) -> str:
    """
    Build the fixed probe query from already-quoted parts.

    :raises TypeError: a part was not produced by a store's quoting
    """
    for name, part, kind in (("table", table, QuotedIdentifier),
                             ("column", column, QuotedIdentifier),
                             ("candidate", candidate, QuotedLiteral)):
        if not isinstance(part, kind):
            raise TypeError(f"{name} must be a {kind.__name__}, got {type(part).__name__}")

    return PROBE_QUERY.format(table=table.sql, column=column.sql, candidate=candidate.sql)


def slug_exists(store: BaseSlugStore, session, table_name: str, column_name: str, candidate: str) -> bool:
    """
    Check whether `candidate` is already stored in `table_name`.`column_name`.

    :param store: storage collaborator that quotes and executes
    :param session: handle from store.acquire_session()
    :param table_name: raw, untrusted table name
    :param column_name: raw, untrusted column name
    :param candidate: slug to look for
    :return: True if at least one row holds the candidate
    :raises IdentifierQuotingFailed, LiteralQuotingFailed, QueryExecutionFailed
    """
    table = store.quote_identifier(table_name)
    column = store.quote_identifier(column_name)
    literal = store.quote_literal(candidate)

    sql = build_probe_query(table, column, literal)
    return store.execute_read_only(session, sql, max_rows=1) > 0
