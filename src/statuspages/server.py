"""
Status Pages HTTP Server

This module provides:
- Server: owns the service registry, routes /status requests to the main
  page or to a single service page, and runs a ThreadingHTTPServer
- StatusHTTPHandler (built by _make_handler): adapts BaseHTTPRequestHandler
  requests to StatusRequest/ResponseWriter and hands them to the Server
"""

import logging
import socket
import threading
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Callable, Dict, List, Optional, Tuple
from urllib.parse import parse_qs, urlparse

from . import diagnostics, render
from .base_service import BaseService
from .config import StatusPagesConfig
from .errors import UnknownServiceError
from .registry import ServiceRegistry, SharedLock
from .service import (
    HTTPResponseWriter,
    ResponseWriter,
    Service,
    StatusRequest,
)

logger = logging.getLogger(__name__)

STATUS_PATH = "/status"
ROOT_PATH = "/"
SERVICE_PARAM = "service"

Handler = Callable[[StatusRequest, ResponseWriter], None]


class Server:
    """Status pages HTTP server.

    *listener* is an already listening socket to serve on; without one,
    ``run`` opens a socket on *listen_address* (loopback, OS-assigned port
    by default).
    *http_server* lets callers supply their own ``ThreadingHTTPServer``; its
    request handler class is replaced. With *bind_root_path* the root path
    "/" also serves the status pages, which is only sensible when the web
    server is dedicated to them. "/status" is always bound.
    """

    def __init__(
        self,
        listener: Optional[socket.socket] = None,
        http_server: Optional[ThreadingHTTPServer] = None,
        bind_root_path: bool = False,
        diagnostics_enabled: bool = True,
        listen_address: Tuple[str, int] = ("127.0.0.1", 0),
    ):
        self._listener = listener
        self._listen_address = listen_address
        self._http_server = http_server
        self._bind_root_path = bind_root_path
        self._diagnostics_enabled = diagnostics_enabled

        # Guards the registry and the routing table below.
        self._lock = SharedLock()
        self.registry = ServiceRegistry(self._lock)
        self._routes: Dict[str, Handler] = {}

        self._lifecycle = threading.Lock()
        self._stop = threading.Event()
        self._ready = threading.Event()

        self.base_service = BaseService()
        self.add_service("Base", self.base_service)

    @classmethod
    def from_config(cls, config: StatusPagesConfig) -> "Server":
        return cls(
            listen_address=(config.host, config.port),
            bind_root_path=config.bind_root_path,
            diagnostics_enabled=config.diagnostics,
        )

    # -- registry ----------------------------------------------------------

    def add_service(self, name: str, service: Service) -> str:
        """Add *service* to the status pages and return its name.

        If another service already uses *name*, a numeric suffix is appended.
        The returned name is the one passed back to every ``summary_fragment``
        and ``render_detail_page`` call. Adding a registered service again
        has no effect and returns its current name.
        """
        return self.registry.add(name, service)

    def remove_service(self, service: Service) -> None:
        """Remove *service*; a no-op if it is not registered."""
        self.registry.remove(service)

    def add_handler(self, path: str, handler: Handler) -> None:
        """Serve *path* with ``handler(request, response)``.

        A path ending in "/" also matches everything below it.
        """
        with self._lock.exclusive():
            self._routes[path] = handler

    # -- lifecycle ---------------------------------------------------------

    @property
    def address(self) -> Optional[Tuple[str, int]]:
        """``(host, port)`` being served, once ``run`` has bound it."""
        with self._lifecycle:
            if self._listener is None:
                return None
            return self._listener.getsockname()[:2]

    def wait_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until ``run`` is about to serve. Returns False on timeout."""
        return self._ready.wait(timeout)

    def close(self) -> None:
        """Stop a running server, or make a future ``run`` return at once."""
        with self._lifecycle:
            self._stop.set()

    def run(self, stop_event: Optional[threading.Event] = None) -> None:
        """Serve until *stop_event* is set, ``close`` is called or the
        transport fails. The server is closed on return and cannot be run
        again; *stop_event* is set on return as well.
        """
        with self._lifecycle:
            if stop_event is not None:
                if self._stop.is_set():
                    stop_event.set()
                self._stop = stop_event
            if self._stop.is_set():
                return
            server = self._prepare_http_server()
            logger.info("Status pages listening on %s:%d", *self._listener.getsockname()[:2])
            self._ready.set()

        watcher = threading.Thread(
            target=self._shutdown_on_stop, args=(server,),
            name="statuspages-stop", daemon=True,
        )
        watcher.start()
        try:
            server.serve_forever()
        finally:
            self._stop.set()
            watcher.join()
            server.server_close()
            logger.info("Status pages server closed")

    def _prepare_http_server(self) -> ThreadingHTTPServer:
        if self._listener is None and self._http_server is None:
            self._listener = socket.create_server(self._listen_address)

        handler = _make_handler(self)
        server = self._http_server
        if server is None:
            server = ThreadingHTTPServer(
                self._listener.getsockname()[:2], handler, bind_and_activate=False,
            )
        else:
            server.RequestHandlerClass = handler
        if self._listener is not None and server.socket is not self._listener:
            server.socket.close()
            server.socket = self._listener
        self._listener = server.socket
        server.server_address = self._listener.getsockname()
        self._http_server = server

        with self._lock.exclusive():
            if self._bind_root_path:
                self._routes[ROOT_PATH] = self.handle_status
            self._routes[STATUS_PATH] = self.handle_status
            if self._diagnostics_enabled:
                self._routes.update(diagnostics.handlers())
        return server

    def _shutdown_on_stop(self, server: ThreadingHTTPServer) -> None:
        self._stop.wait()
        server.shutdown()

    # -- routing -----------------------------------------------------------

    def _match(self, path: str) -> Optional[Handler]:
        with self._lock.shared():
            handler = self._routes.get(path)
            if handler is not None:
                return handler
            best = ""
            for pattern in self._routes:
                if pattern.endswith("/") and path.startswith(pattern) and len(pattern) > len(best):
                    best = pattern
            return self._routes.get(best) if best else None

    def serve_request(self, request: StatusRequest, response: ResponseWriter) -> None:
        """Route *request* through the handler table."""
        handler = self._match(request.path)
        if handler is None:
            response.set_header("Content-Type", diagnostics.TEXT_CONTENT_TYPE)
            response.write_header(HTTPStatus.NOT_FOUND)
            response.write("404 page not found\n")
            return
        try:
            handler(request, response)
        except Exception as e:
            logger.exception("Handler for %s failed", request.path)
            self._write_error(response, e)

    def handle_status(self, request: StatusRequest, response: ResponseWriter) -> None:
        """Main page when no service is named, otherwise that service's page."""
        name = request.param(SERVICE_PARAM)
        try:
            if name:
                service = self.registry.lookup(name)
                if service is None:
                    raise UnknownServiceError(name)
                service.render_detail_page(name, response, request)
                return

            body = self.render_index()
            response.set_header("Content-Type", render.CONTENT_TYPE)
            try:
                response.write(body)
            except OSError as e:
                # The client went away; nothing left to report to.
                logger.debug("Writing main page to %s failed: %s", request.client_address, e)
        except UnknownServiceError as e:
            logger.warning("%s", e)
            self._write_error(response, e)
        except Exception as e:
            logger.exception("Status page request for service %r failed", name)
            self._write_error(response, e)

    def render_index(self) -> str:
        """The main page: every service's entry, in registration order."""
        parts: List[str] = [render.begin("Main")]
        for name, service in self.registry.ordered_services():
            parts.append(render.service_entry(name))
            parts.append(service.summary_fragment(name))
        parts.append(render.END)
        return "".join(parts)

    def _write_error(self, response: ResponseWriter, error: BaseException,
                     status: int = HTTPStatus.INTERNAL_SERVER_ERROR) -> None:
        if response.started:
            logger.error("Response already started, dropping error: %s", error)
            return
        response.set_header("Content-Type", render.CONTENT_TYPE)
        response.write_header(status)
        try:
            response.write(render.error_body(error))
        except OSError as e:
            logger.debug("Writing error page failed: %s", e)


# ---------------------------------------------------------------------------
# HTTP handler
# ---------------------------------------------------------------------------

def _make_handler(status_server: Server):
    """Create a handler class bound to the given Server instance."""

    class StatusHTTPHandler(BaseHTTPRequestHandler):
        server_version = "statuspages"

        def log_message(self, format, *args):
            logger.debug("%s - %s", self.address_string(), format % args)

        def do_GET(self):
            self._dispatch()

        def do_POST(self):
            self._dispatch()

        def do_HEAD(self):
            self._dispatch()

        def _read_form(self) -> Dict[str, List[str]]:
            content_type = self.headers.get("Content-Type", "")
            if content_type.split(";")[0].strip().lower() != "application/x-www-form-urlencoded":
                return {}
            length = int(self.headers.get("Content-Length") or 0)
            body = self.rfile.read(length) if length > 0 else b""
            return parse_qs(body.decode("utf-8"), keep_blank_values=True, errors="strict")

        def _dispatch(self):
            parsed = urlparse(self.path)
            response = HTTPResponseWriter(self, send_body=self.command != "HEAD")
            try:
                query = parse_qs(parsed.query, keep_blank_values=True, errors="strict")
                form = self._read_form() if self.command == "POST" else {}
            except ValueError as e:
                # Bad Content-Length or parameters that are not UTF-8.
                status_server._write_error(response, e, HTTPStatus.BAD_REQUEST)
                return
            request = StatusRequest(
                method=self.command,
                path=parsed.path,
                query=query,
                form=form,
                headers=dict(self.headers.items()),
                client_address=self.client_address,
            )
            status_server.serve_request(request, response)

    return StatusHTTPHandler
