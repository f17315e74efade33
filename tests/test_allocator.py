import logging

import pytest

from backend.slugger import allocator as allocator_module
from backend.slugger.allocator import SlugAllocator, SlugRequest, gen_unique_slug
from backend.slugger.exceptions import (
    IdentifierQuotingFailed,
    InvalidLength,
    QueryExecutionFailed,
    RandomSourceUnavailable,
)
from backend.slugger.utils import SLUG_ALPHABET, generate_slug


class RecordingGenerator:
    def __init__(self):
        self.generated = []

    def __call__(self, length):
        slug = generate_slug(length)
        self.generated.append(slug)
        return slug


class ProbeBudgetExhausted(Exception):
    pass


@pytest.mark.parametrize("length", [0, -1, 257, 10_000])
def test_invalid_length_touches_no_storage(stub_store, length):
    store = stub_store()
    with pytest.raises(InvalidLength):
        gen_unique_slug("users", "slug", length, store=store)
    assert store.calls == []


@pytest.mark.parametrize("length", [True, 8.0, "8", None])
def test_non_integer_length_is_invalid(stub_store, length):
    store = stub_store()
    with pytest.raises(InvalidLength):
        gen_unique_slug("users", "slug", length, store=store)
    assert store.calls == []


def test_invalid_length_is_a_value_error(stub_store):
    with pytest.raises(ValueError):
        gen_unique_slug("users", "slug", 0, store=stub_store())


@pytest.mark.parametrize("length", [1, 256])
def test_length_bounds_are_inclusive(stub_store, length):
    assert len(gen_unique_slug("users", "slug", length, store=stub_store())) == length


def test_first_absent_candidate_is_returned(stub_store):
    store = stub_store()
    slug = gen_unique_slug("users", "slug", 8, store=store)

    assert len(slug) == 8
    assert set(slug) <= set(SLUG_ALPHABET)
    assert store.probes == 1
    assert store.count("acquire") == 1
    assert store.count("release") == 1


@pytest.mark.parametrize("collisions", [1, 5, 40])
def test_retries_until_absent(stub_store, collisions):
    store = stub_store(exists=lambda n: n <= collisions)
    generator = RecordingGenerator()

    slug = SlugAllocator(store, generator).allocate(SlugRequest("users", "slug", 6))

    assert store.probes == collisions + 1
    assert len(generator.generated) == collisions + 1
    assert slug == generator.generated[-1]
    # every probe used the candidate generated for it
    literals = [c[1] for c in store.calls if c[0] == "quote_literal"]
    assert literals == generator.generated


def test_session_held_for_whole_loop(stub_store):
    store = stub_store(exists=lambda n: n <= 3)
    SlugAllocator(store).allocate(SlugRequest("users", "slug", 4))

    assert store.calls[0] == ("acquire",)
    assert store.calls[-1] == ("release",)
    assert store.count("acquire") == 1
    assert store.count("release") == 1


def test_loop_has_no_retry_cap(stub_store):
    budget = 20_000

    def always_exists(n):
        if n > budget:
            raise ProbeBudgetExhausted
        return True

    store = stub_store(exists=always_exists)
    with pytest.raises(ProbeBudgetExhausted):
        gen_unique_slug("users", "slug", 8, store=store)

    assert store.probes == budget + 1
    assert store.count("release") == 1


def test_backend_error_propagates_and_releases(stub_store):
    store = stub_store(error=QueryExecutionFailed("relation \"users\" does not exist"))
    with pytest.raises(QueryExecutionFailed):
        gen_unique_slug("users", "slug", 8, store=store)

    assert store.probes == 1
    assert store.count("release") == 1


def test_random_source_error_propagates_and_releases(stub_store):
    def broken(n):
        raise OSError("entropy pool unavailable")

    def generator(length):
        return generate_slug(length, randbytes=broken)

    store = stub_store()
    with pytest.raises(RandomSourceUnavailable):
        SlugAllocator(store, generator).allocate(SlugRequest("users", "slug", 8))

    assert store.probes == 0
    assert store.count("release") == 1


def test_quoting_error_propagates_and_releases(stub_store):
    class RejectingStore(stub_store):
        def quote_identifier(self, raw):
            raise IdentifierQuotingFailed("bad identifier")

    store = RejectingStore()
    with pytest.raises(IdentifierQuotingFailed):
        gen_unique_slug("users", "slug", 8, store=store)

    assert store.probes == 0
    assert store.count("release") == 1


def test_collision_streak_is_logged(stub_store, caplog, monkeypatch):
    monkeypatch.setattr(allocator_module, "COLLISION_WARN_EVERY", 10)
    store = stub_store(exists=lambda n: n <= 25)

    with caplog.at_level(logging.WARNING, logger="backend.slugger.allocator"):
        gen_unique_slug("users", "slug", 2, store=store)

    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 2
    assert "consider a longer slug" in warnings[0].getMessage()
