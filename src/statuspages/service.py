"""Service contract and the request/response objects handed to services."""

import io
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Dict, List, Mapping, Optional, Tuple, Union


@dataclass
class StatusRequest:
    """An inbound request to the status pages server."""
    method: str = "GET"
    path: str = "/status"
    query: Dict[str, List[str]] = field(default_factory=dict)
    form: Dict[str, List[str]] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)
    client_address: Optional[Tuple[str, int]] = None

    def param(self, name: str) -> str:
        """First value of *name*, looking at the form body before the query string."""
        for source in (self.form, self.query):
            values = source.get(name)
            if values:
                return values[0]
        return ""


class ResponseWriter(ABC):
    """Collects headers and a status, then streams the body.

    The status line and headers go out on the first ``write`` or on an
    explicit ``write_header``; after that they are fixed.
    """

    def __init__(self):
        self.headers: Dict[str, str] = {}
        self.status: int = HTTPStatus.OK
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    def set_header(self, name: str, value: str) -> None:
        if self._started:
            raise RuntimeError("headers already sent")
        self.headers[name] = value

    def write_header(self, status: int) -> None:
        if self._started:
            return
        self.status = status
        self._started = True
        self._send_head(status, dict(self.headers))

    def write(self, data: Union[str, bytes]) -> int:
        if isinstance(data, str):
            data = data.encode("utf-8")
        if not self._started:
            self.write_header(HTTPStatus.OK)
        self._send_body(data)
        return len(data)

    @abstractmethod
    def _send_head(self, status: int, headers: Dict[str, str]) -> None:
        """Emit the status line and headers."""

    @abstractmethod
    def _send_body(self, data: bytes) -> None:
        """Emit a chunk of the body."""


class HTTPResponseWriter(ResponseWriter):
    """ResponseWriter backed by a ``BaseHTTPRequestHandler``.

    With *send_body* false (HEAD requests) the body is discarded.
    """

    def __init__(self, handler, send_body: bool = True):
        super().__init__()
        self._handler = handler
        self._send_body_enabled = send_body

    def _send_head(self, status: int, headers: Dict[str, str]) -> None:
        self._handler.send_response(status)
        for name, value in headers.items():
            self._handler.send_header(name, value)
        self._handler.end_headers()

    def _send_body(self, data: bytes) -> None:
        if self._send_body_enabled:
            self._handler.wfile.write(data)


class ResponseRecorder(ResponseWriter):
    """In-memory ResponseWriter, for tests and for pre-rendering pages."""

    def __init__(self):
        super().__init__()
        self._body = io.BytesIO()

    def _send_head(self, status: int, headers: Dict[str, str]) -> None:
        pass

    def _send_body(self, data: bytes) -> None:
        self._body.write(data)

    @property
    def body(self) -> bytes:
        return self._body.getvalue()

    @property
    def text(self) -> str:
        return self.body.decode("utf-8")


class Service(ABC):
    """A unit that contributes to the status pages.

    The registry hands each call the name the service was registered under.
    """

    @abstractmethod
    def summary_fragment(self, name: str) -> str:
        """Return an HTML snippet for the main status page.

        The snippet is included verbatim, so the service escapes its own
        content. Raising aborts the main page.
        """

    @abstractmethod
    def render_detail_page(self, name: str, response: ResponseWriter,
                           request: StatusRequest) -> None:
        """Write this service's own page, headers and status included."""
