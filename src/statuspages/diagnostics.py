"""Process introspection endpoints mounted under /pprof/."""

import gc
import sys
import threading
import traceback
import tracemalloc
from typing import Callable, Dict

from .service import ResponseWriter, StatusRequest

PREFIX = "/pprof/"
TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"

Handler = Callable[[StatusRequest, ResponseWriter], None]


def _write_text(response: ResponseWriter, text: str) -> None:
    response.set_header("Content-Type", TEXT_CONTENT_TYPE)
    response.set_header("X-Content-Type-Options", "nosniff")
    response.write(text)


def cmdline(request: StatusRequest, response: ResponseWriter) -> None:
    _write_text(response, "\x00".join(sys.argv))


def threads(request: StatusRequest, response: ResponseWriter) -> None:
    """Stack trace of every live thread."""
    names = {t.ident: t.name for t in threading.enumerate()}
    lines = []
    for ident, frame in sys._current_frames().items():
        lines.append(f"Thread {names.get(ident, '?')} ({ident}):\n")
        lines.extend(traceback.format_stack(frame))
        lines.append("\n")
    _write_text(response, "".join(lines))


def gc_stats(request: StatusRequest, response: ResponseWriter) -> None:
    lines = [
        f"enabled: {gc.isenabled()}",
        f"counts: {gc.get_count()}",
        f"thresholds: {gc.get_threshold()}",
        f"tracked objects: {len(gc.get_objects())}",
    ]
    for generation, stats in enumerate(gc.get_stats()):
        fields = " ".join(f"{k}={v}" for k, v in stats.items())
        lines.append(f"generation {generation}: {fields}")
    _write_text(response, "\n".join(lines) + "\n")


def heap(request: StatusRequest, response: ResponseWriter) -> None:
    """Top allocation sites, when tracemalloc is tracing."""
    if not tracemalloc.is_tracing():
        _write_text(response, "tracemalloc is not tracing; start the process "
                              "with PYTHONTRACEMALLOC=1 to enable heap profiles\n")
        return
    current, peak = tracemalloc.get_traced_memory()
    lines = [f"current: {current} bytes", f"peak: {peak} bytes", ""]
    snapshot = tracemalloc.take_snapshot()
    for stat in snapshot.statistics("lineno")[:25]:
        lines.append(str(stat))
    _write_text(response, "\n".join(lines) + "\n")


_ENDPOINTS: Dict[str, Handler] = {
    "cmdline": cmdline,
    "threads": threads,
    "gc": gc_stats,
    "heap": heap,
}


def index(request: StatusRequest, response: ResponseWriter) -> None:
    lines = ["Available profiles:"]
    lines.extend(f"  {PREFIX}{name}" for name in _ENDPOINTS)
    _write_text(response, "\n".join(lines) + "\n")


def handlers() -> Dict[str, Handler]:
    """Path -> handler for every diagnostics endpoint, index included."""
    routes = {PREFIX: index}
    routes.update({PREFIX + name: fn for name, fn in _ENDPOINTS.items()})
    return routes
