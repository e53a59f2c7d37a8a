"""
statuspages: embeddable HTTP status pages.

A host process creates a Server, registers Service objects on it and runs
it. Each service contributes a snippet to the main page at /status and owns
a detail page at /status?service=<name>.
"""

from .base_service import BaseService
from .errors import RenderError, StatusPagesError, UnknownServiceError
from .registry import ServiceRegistry
from .server import Server
from .service import (
    HTTPResponseWriter,
    ResponseRecorder,
    ResponseWriter,
    Service,
    StatusRequest,
)

__version__ = '0.1.0'
__all__ = [
    'BaseService',
    'HTTPResponseWriter',
    'RenderError',
    'ResponseRecorder',
    'ResponseWriter',
    'Server',
    'Service',
    'ServiceRegistry',
    'StatusPagesError',
    'StatusRequest',
    'UnknownServiceError',
]
