"""Backend registry mapping service types to adapters."""

import logging
from typing import Dict, Type

from floaty.backends.abs import AbsBackend
from floaty.backends.base import BaseBackend
from floaty.backends.nspooler import NspoolerBackend
from floaty.backends.vmpooler import VmpoolerBackend
from floaty.models.config import BackendKind


logger = logging.getLogger(__name__)


class BackendRegistry:
    """Registry of backend classes by kind."""

    def __init__(self):
        """Initialize backend registry."""
        self._backend_classes: Dict[BackendKind, Type[BaseBackend]] = {
            BackendKind.VMPOOLER: VmpoolerBackend,
            BackendKind.ABS: AbsBackend,
            BackendKind.NSPOOLER: NspoolerBackend,
        }

    def get_backend_class(self, kind: BackendKind) -> Type[BaseBackend]:
        """Get the adapter class for a backend kind."""
        return self._backend_classes[kind]

    def create(self, kind: BackendKind, url: str, **kwargs) -> BaseBackend:
        """Instantiate the adapter for a service."""
        backend_class = self.get_backend_class(kind)
        logger.debug(f"Using {backend_class.__name__} for {url}")
        return backend_class(url, **kwargs)


_registry = BackendRegistry()


def get_backend_registry() -> BackendRegistry:
    """Get the shared backend registry."""
    return _registry
