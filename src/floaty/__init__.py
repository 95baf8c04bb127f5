"""
floaty - a CLI helper for vmpooler, nspooler and ABS pooler services.

Acquire, inspect, modify and release short-lived test VMs from whichever
pooler service is configured in ~/.vmfloaty.yml.
"""

__version__ = "1.0.0"

# Re-export key components for easier access
from floaty.errors import FloatyError
from floaty.models.config import BackendKind, ServiceConfig
from floaty.service import Service

__all__ = [
    "BackendKind",
    "FloatyError",
    "Service",
    "ServiceConfig",
]
