"""Tests for the /pprof/ introspection endpoints."""

import sys
import threading
import tracemalloc

from statuspages import diagnostics
from statuspages.service import ResponseRecorder, StatusRequest


def _call(handler):
    w = ResponseRecorder()
    handler(StatusRequest(path="/pprof/"), w)
    assert w.status == 200
    assert w.headers["Content-Type"] == diagnostics.TEXT_CONTENT_TYPE
    return w.text


def test_handlers_cover_index_and_profiles():
    routes = diagnostics.handlers()
    assert set(routes) == {"/pprof/", "/pprof/cmdline", "/pprof/threads",
                           "/pprof/gc", "/pprof/heap"}


def test_index_lists_profiles():
    text = _call(diagnostics.index)
    for path in ("/pprof/cmdline", "/pprof/threads", "/pprof/gc", "/pprof/heap"):
        assert path in text


def test_cmdline(monkeypatch):
    monkeypatch.setattr(sys, "argv", ["prog", "-v"])
    assert _call(diagnostics.cmdline) == "prog\x00-v"


def test_threads_include_named_thread():
    release = threading.Event()
    t = threading.Thread(target=release.wait, name="diag-sleeper")
    t.start()
    try:
        text = _call(diagnostics.threads)
    finally:
        release.set()
        t.join(timeout=5)
    assert "Thread diag-sleeper" in text
    assert "Thread MainThread" in text


def test_gc_stats():
    text = _call(diagnostics.gc_stats)
    assert "thresholds:" in text
    assert "generation 0:" in text


def test_heap_without_tracing():
    if tracemalloc.is_tracing():
        tracemalloc.stop()
    assert "not tracing" in _call(diagnostics.heap)


def test_heap_with_tracing():
    tracemalloc.start()
    try:
        text = _call(diagnostics.heap)
    finally:
        tracemalloc.stop()
    assert text.startswith("current: ")
