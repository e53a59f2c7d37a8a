"""
In-process Service Registry

This package provides:
1. ServiceRegistry: identity-keyed, insertion-ordered registry of status page services
2. SharedLock: shared/exclusive lock guarding the registry and the routing table
"""

from .service_registry import (
    DEFAULT_NAME,
    ServiceRegistry,
    SharedLock,
)

__all__ = [
    'DEFAULT_NAME',
    'ServiceRegistry',
    'SharedLock',
]
