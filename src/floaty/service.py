"""Service facade over the configured pooler backend."""

import logging
from typing import Any, Dict, List, Mapping, Optional

import httpx

from floaty.backends.base import BaseBackend
from floaty.backends.poller import DEFAULT_INTERVAL, DEFAULT_TIMEOUT
from floaty.backends.registry import BackendRegistry, get_backend_registry
from floaty.config.resolver import get_vmpooler_service_config, resolve_service_config
from floaty.models.config import BackendKind, CliOptions, ServiceConfig
from floaty.models.host import ProvisioningRequest
from floaty.models.modify import ModifyPatch


logger = logging.getLogger(__name__)


class Service:
    """One pooler service, selected and configured from the effective config.

    The backend is chosen once, when the service is created. Every operation
    forwards to it along with the configured url, token and user.
    """

    def __init__(
        self,
        config: ServiceConfig,
        verbose: bool = False,
        transport: Optional[httpx.BaseTransport] = None,
        global_config: Optional[Mapping[str, Any]] = None,
        registry: Optional[BackendRegistry] = None,
    ):
        """Initialize the service."""
        self.config = config
        self.verbose = verbose
        self.transport = transport
        self.global_config = global_config or {}
        self.registry = registry or get_backend_registry()
        self.backend: BaseBackend = self.registry.create(
            config.kind, config.url or "", verbose=verbose, transport=transport
        )
        self._fallback: Optional["Service"] = None

    @classmethod
    def from_options(
        cls,
        global_config: Mapping[str, Any],
        options: Optional[CliOptions] = None,
        verbose: bool = False,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> "Service":
        """Resolve the effective config for ``options`` and build the service."""
        config = resolve_service_config(global_config, options)
        return cls(config, verbose=verbose, transport=transport, global_config=global_config)

    @property
    def kind(self) -> BackendKind:
        return self.config.kind

    @property
    def type(self) -> str:
        """Service type label: Pooler, ABS or NonstandardPooler."""
        return self.kind.label

    @property
    def url(self) -> Optional[str]:
        return self.config.url

    @property
    def user(self) -> Optional[str]:
        return self.config.user

    @property
    def token(self) -> Optional[str]:
        return self.config.token

    def fallback_service(self) -> Optional["Service"]:
        """vmpooler service used to look up details of ABS allocated VMs.

        Returns ``None`` unless this is an ABS service declaring
        ``vmpooler_fallback``.
        """
        if self.kind is not BackendKind.ABS or not self.config.vmpooler_fallback:
            return None
        if self._fallback is None:
            config = get_vmpooler_service_config(self.global_config, self.config.vmpooler_fallback)
            self._fallback = Service(
                config,
                verbose=self.verbose,
                transport=self.transport,
                global_config=self.global_config,
                registry=self.registry,
            )
        return self._fallback

    def list(self, os_filter: Optional[str] = None) -> List[str]:
        return self.backend.list(os_filter)

    def list_active(self) -> List[str]:
        return self.backend.list_active(self.token, self.user)

    def list_active_job_ids(self) -> List[str]:
        return self.backend.list_active_job_ids(self.user)

    def retrieve(
        self,
        os_types: Dict[str, int],
        use_token: bool = True,
        ondemand: bool = False,
        continue_id: Optional[str] = None,
    ) -> Any:
        """Acquire hosts, optionally without sending the token."""
        if not use_token:
            logger.info("Requesting a vm without a token...")
        token = self.token if use_token else None
        return self.backend.retrieve(
            os_types, token, self.user, self.config, ondemand=ondemand, continue_id=continue_id
        )

    def wait_for_request(
        self,
        request_id: str,
        timeout: float = DEFAULT_TIMEOUT,
        interval: float = DEFAULT_INTERVAL,
    ) -> Any:
        """Block until an on-demand request is ready; ``False`` on timeout."""
        request = ProvisioningRequest(request_id=request_id)
        return self.backend.wait_for_request(request, timeout, interval)

    def query(self, hostname: str) -> Dict[str, Any]:
        return self.backend.query(hostname)

    def modify(self, hostname: str, patch: ModifyPatch) -> Dict[str, Any]:
        return self.backend.modify(hostname, self.token, patch)

    def disk(self, hostname: str, size: int) -> Dict[str, Any]:
        return self.backend.disk(hostname, self.token, size)

    def delete(self, hosts: List[str]) -> Dict[str, Any]:
        return self.backend.delete(hosts, self.token, self.user)

    def status(self) -> Any:
        return self.backend.status()

    def summary(self) -> Dict[str, Any]:
        return self.backend.summary()

    def snapshot(self, hostname: str) -> Dict[str, Any]:
        return self.backend.snapshot(hostname, self.token)

    def revert(self, hostname: str, snapshot_sha: Optional[str]) -> Dict[str, Any]:
        return self.backend.revert(hostname, self.token, snapshot_sha)

    def get_new_token(self, password: str, user: Optional[str] = None) -> str:
        return self.backend.get_token(user or self.user, password)

    def delete_token(self, password: str, token: Optional[str] = None, user: Optional[str] = None) -> Dict[str, Any]:
        return self.backend.delete_token(user or self.user, password, token or self.token)

    def token_status(self, token: Optional[str] = None) -> Dict[str, Any]:
        return self.backend.token_status(token or self.token)
