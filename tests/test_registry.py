"""Tests for the service registry and its shared/exclusive lock."""

import threading
import time

import pytest

from statuspages.registry import DEFAULT_NAME, ServiceRegistry, SharedLock
from tests.helpers import MockService


@pytest.fixture
def registry():
    return ServiceRegistry()


class TestAdd:
    def test_returns_requested_name(self, registry):
        assert registry.add("name", MockService()) == "name"

    def test_collision_appends_suffix(self, registry):
        assert registry.add("x", MockService()) == "x"
        assert registry.add("x", MockService()) == "x2"
        assert registry.add("x", MockService()) == "x3"

    def test_suffix_search_takes_first_free_integer(self, registry):
        registry.add("x", MockService())
        second = MockService()
        assert registry.add("x", second) == "x2"
        registry.add("x", MockService())  # x3
        registry.remove(second)

        assert registry.add("x", MockService()) == "x2"
        assert registry.add("x", MockService()) == "x4"

    def test_suffix_skips_explicitly_taken_names(self, registry):
        registry.add("x", MockService())
        registry.add("x2", MockService())
        assert registry.add("x", MockService()) == "x3"

    def test_empty_name_uses_default(self, registry):
        assert registry.add("", MockService()) == DEFAULT_NAME
        assert registry.add("", MockService()) == DEFAULT_NAME + "2"

    def test_idempotent(self, registry):
        service = MockService()
        first = registry.add("a", service)
        registry.add("b", MockService())

        assert registry.add("other", service) == first
        assert len(registry) == 2
        assert [s for _, s in registry.ordered_services()][0] is service

    def test_equal_services_are_distinct_entries(self, registry):
        a, b = MockService(), MockService()
        assert a == b

        assert registry.add("s", a) == "s"
        assert registry.add("s", b) == "s2"
        assert registry.lookup("s") is a
        assert registry.lookup("s2") is b


class TestRemove:
    def test_removes_from_every_view(self, registry):
        one, two, three = MockService(), MockService(), MockService()
        registry.add("one", one)
        registry.add("two", two)
        registry.add("three", three)

        assert registry.remove(two) is True

        assert registry.lookup("two") is None
        assert registry.name_of(two) is None
        assert two not in registry
        assert registry.ordered_services() == [("one", one), ("three", three)]

    def test_unknown_service_is_noop(self, registry):
        registry.add("one", MockService())
        assert registry.remove(MockService()) is False
        assert len(registry) == 1

    def test_name_is_reusable_after_removal(self, registry):
        service = MockService()
        registry.add("name", service)
        registry.remove(service)
        assert registry.add("name", MockService()) == "name"


def test_lookup_missing(registry):
    assert registry.lookup("missing") is None


def test_ordered_services_is_a_snapshot(registry):
    registry.add("one", MockService())
    snapshot = registry.ordered_services()
    registry.add("two", MockService())
    assert [name for name, _ in snapshot] == ["one"]


def test_concurrent_add_remove_keeps_views_consistent(registry):
    errors = []

    def worker():
        try:
            for _ in range(200):
                service = MockService()
                name = registry.add("w", service)
                assert registry.lookup(name) is service
                assert registry.name_of(service) == name
                registry.remove(service)
                assert registry.lookup(name) is not service
        except Exception as e:  # collected for the main thread
            errors.append(e)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    assert not errors
    assert len(registry) == 0
    assert registry.ordered_services() == []


class TestSharedLock:
    def test_readers_share(self):
        lock = SharedLock()
        barrier = threading.Barrier(2, timeout=5)
        results = []

        def reader():
            with lock.shared():
                # Both readers must be inside at once to pass the barrier.
                barrier.wait()
                results.append(True)

        threads = [threading.Thread(target=reader) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)
        assert results == [True, True]

    def test_writer_excludes_readers(self):
        lock = SharedLock()
        entered = threading.Event()

        def reader():
            with lock.shared():
                entered.set()

        with lock.exclusive():
            t = threading.Thread(target=reader)
            t.start()
            assert not entered.wait(0.1)
        assert entered.wait(5)
        t.join(timeout=5)

    def test_writer_waits_for_readers(self):
        lock = SharedLock()
        acquired = threading.Event()

        def writer():
            with lock.exclusive():
                acquired.set()

        lock.acquire_shared()
        t = threading.Thread(target=writer)
        t.start()
        assert not acquired.wait(0.1)
        lock.release_shared()
        assert acquired.wait(5)
        t.join(timeout=5)

    def test_waiting_writer_blocks_new_readers(self):
        lock = SharedLock()
        order = []

        def writer():
            with lock.exclusive():
                order.append("w")

        def reader():
            with lock.shared():
                order.append("r")

        lock.acquire_shared()
        w = threading.Thread(target=writer)
        w.start()
        deadline = time.monotonic() + 5
        while lock._writers_waiting == 0 and time.monotonic() < deadline:
            time.sleep(0.001)
        assert lock._writers_waiting == 1

        r = threading.Thread(target=reader)
        r.start()
        r.join(timeout=0.1)
        assert r.is_alive()  # queued behind the writer
        assert order == []

        lock.release_shared()
        w.join(timeout=5)
        r.join(timeout=5)
        assert order == ["w", "r"]
