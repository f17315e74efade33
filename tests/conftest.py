import sys
import os
import pytest

# make sure the repository root is on sys.path for test collection
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

# Use a dedicated test sqlite file for consistency across the TestClient and direct store tests
test_db_path = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '.test.db'))
os.environ['DATABASE_URL'] = f'sqlite:///{test_db_path}'

from backend.slugger.db import Base, get_engine
from backend.slugger import models  # Ensure models are imported so table metadata is registered
from backend.slugger.store import BaseSlugStore, QuotedIdentifier, QuotedLiteral


@pytest.fixture(scope="session", autouse=True)
def prepare_db():
    # Create tables for tests and drop them at the end
    Base.metadata.create_all(bind=get_engine())
    yield
    Base.metadata.drop_all(bind=get_engine())


class StubStore(BaseSlugStore):
    """
    In-memory slug store recording every call in order.

    `exists(n)` decides the result of the n-th probe (1-based).
    `error`, if set, is raised by every probe.
    """

    def __init__(self, exists=None, error=None):
        self.exists = exists or (lambda n: False)
        self.error = error
        self.calls = []
        self.probes = 0

    def quote_identifier(self, raw):
        self.calls.append(("quote_identifier", raw))
        return QuotedIdentifier('"%s"' % raw.replace('"', '""'))

    def quote_literal(self, raw):
        self.calls.append(("quote_literal", raw))
        return QuotedLiteral("'%s'" % raw.replace("'", "''"))

    def execute_read_only(self, session, sql, max_rows):
        self.calls.append(("execute", sql))
        self.probes += 1
        if self.error is not None:
            raise self.error
        return 1 if self.exists(self.probes) else 0

    def acquire_session(self):
        self.calls.append(("acquire",))
        return object()

    def release_session(self, session):
        self.calls.append(("release",))

    def count(self, name):
        return sum(1 for c in self.calls if c[0] == name)


@pytest.fixture
def stub_store():
    return StubStore


@pytest.fixture
def db_session():
    from backend.slugger.db import get_session_local
    db = get_session_local()()
    try:
        yield db
    finally:
        db.query(models.ShortLink).delete()
        db.commit()
        db.close()
