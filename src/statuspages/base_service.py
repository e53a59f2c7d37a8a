"""Built-in service describing the running process."""

import os
import sys
from datetime import datetime
from typing import Callable, Optional

import humanize

from . import render
from .service import ResponseWriter, Service, StatusRequest


class BaseService(Service):
    """Process name, uptime, command line and environment."""

    def __init__(self, start_time: Optional[datetime] = None,
                 clock: Callable[[], datetime] = datetime.now):
        self._clock = clock
        self.start_time = start_time or clock()

    def summary_fragment(self, name: str) -> str:
        now = self._clock()
        return render.base_summary(
            process_name=sys.argv[0],
            now=now,
            start_time=self.start_time,
            start_time_ago=humanize.naturaltime(self.start_time, when=now),
        )

    def render_detail_page(self, name: str, response: ResponseWriter,
                           request: StatusRequest) -> None:
        environment = [f"{k}={v}" for k, v in os.environ.items()]
        body = render.page(name, render.base_detail(sys.argv, environment))
        response.set_header("Content-Type", render.CONTENT_TYPE)
        response.write(body)
