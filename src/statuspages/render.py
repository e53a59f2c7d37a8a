"""HTML fragments shared by the status pages.

Templates are compiled once at import time and only read afterwards. A
missing or broken template is a packaging defect, so it fails the import.
"""

from datetime import datetime
from functools import partial
from typing import Iterable
from urllib.parse import quote

from jinja2 import Environment, PackageLoader, TemplateError
from markupsafe import escape

from .errors import RenderError

TIME_FORMAT = "%H:%M:%S %d/%m/%Y"
CONTENT_TYPE = "text/html; charset=utf-8"


def _get_template_env() -> Environment:
    env = Environment(
        loader=PackageLoader("statuspages", "templates"),
        autoescape=True,
        keep_trailing_newline=True,
    )
    env.filters["query_escape"] = partial(quote, safe="")
    return env


_env = _get_template_env()
_begin = _env.get_template("begin.html.j2")
_service_entry = _env.get_template("service_entry.html.j2")
_base_summary = _env.get_template("base_summary.html.j2")
_base_detail = _env.get_template("base_detail.html.j2")

# Closing fragment of every page.
END = _env.get_template("end.html.j2").render()


def _render(template, **params) -> str:
    try:
        return template.render(**params)
    except TemplateError as e:
        raise RenderError(f"failed to render {template.name}: {e}") from e


def begin(title: str) -> str:
    """Opening fragment of a page titled ``<title> status page``."""
    return _render(_begin, title=title)


def page(title: str, body: str) -> str:
    """A whole page around *body*, which must already be safe HTML."""
    return begin(title) + body + END


def service_entry(name: str) -> str:
    """Main page heading linking to the detail page of service *name*."""
    return _render(_service_entry, name=name)


def error_body(error: BaseException) -> str:
    return str(escape(str(error)))


def base_summary(process_name: str, now: datetime, start_time: datetime,
                 start_time_ago: str) -> str:
    return _render(
        _base_summary,
        process_name=process_name,
        now=now,
        start_time=start_time,
        start_time_ago=start_time_ago,
        time_format=TIME_FORMAT,
    )


def base_detail(command_line: Iterable[str], environment: Iterable[str]) -> str:
    return _render(
        _base_detail,
        command_line=list(command_line),
        environment=list(environment),
    )


__all__ = [
    "CONTENT_TYPE",
    "END",
    "TIME_FORMAT",
    "base_detail",
    "base_summary",
    "begin",
    "error_body",
    "page",
    "service_entry",
]
