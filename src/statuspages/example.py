"""Example service used by ``statuspages serve``."""

import threading

from markupsafe import escape

from . import render
from .service import ResponseWriter, Service, StatusRequest


class ExampleService(Service):
    """Counts page views; its page has a form that resets the counter."""

    def __init__(self):
        self._lock = threading.Lock()
        self.views = 0

    def summary_fragment(self, name: str) -> str:
        with self._lock:
            views = self.views
        return f"<p>Example service, {views} page views</p>\n"

    def render_detail_page(self, name: str, response: ResponseWriter,
                           request: StatusRequest) -> None:
        with self._lock:
            if request.method == "POST" and request.param("action") == "reset":
                self.views = 0
            self.views += 1
            views = self.views

        body = (
            f"<p>Page views: {views}</p>\n"
            '<form method="post" action="./status">\n'
            f'\t<input type="hidden" name="service" value="{escape(name)}">\n'
            '\t<input type="hidden" name="action" value="reset">\n'
            '\t<button type="submit">Reset</button>\n'
            "</form>\n"
        )
        response.set_header("Content-Type", render.CONTENT_TYPE)
        response.write(render.page(name, body))
