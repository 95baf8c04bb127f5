"""Pooler backends for floaty."""

from floaty.backends.base import BaseBackend
from floaty.backends.http import HttpClient, HttpResponse
from floaty.backends.registry import BackendRegistry, get_backend_registry

__all__ = [
    "BaseBackend",
    "HttpClient",
    "HttpResponse",
    "BackendRegistry",
    "get_backend_registry",
]
