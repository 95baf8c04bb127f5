"""Base backend interface."""

import logging
import re
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Dict, Iterable, List, Optional

import httpx

from floaty.backends.http import HttpClient, HttpResponse
from floaty.errors import AuthError, TokenError, UnsupportedModificationError, UnsupportedOperationError
from floaty.models.config import BackendKind, ServiceConfig
from floaty.models.modify import ModifyPatch
from floaty.models.host import ProvisioningRequest


logger = logging.getLogger(__name__)


class BaseBackend(ABC):
    """Uniform operation set every pooler backend implements.

    Operations a backend cannot perform keep the default implementation,
    which raises ``UnsupportedOperationError``.
    """

    kind: ClassVar[BackendKind]
    modifiable_keys: ClassVar[frozenset] = frozenset()

    def __init__(self, url: str, verbose: bool = False, transport: Optional[httpx.BaseTransport] = None):
        """Initialize the backend for one service URL."""
        self.url = url
        self.verbose = verbose
        self.transport = transport

    def client(self, token: Optional[str] = None, auth: Optional[tuple] = None) -> HttpClient:
        """Create an HTTP client for this service."""
        return HttpClient(self.api_url, verbose=self.verbose, transport=self.transport, token=token, auth=auth)

    @property
    def api_url(self) -> str:
        """Base URL requests are made against."""
        return self.url

    def unsupported(self, operation: str) -> UnsupportedOperationError:
        return UnsupportedOperationError(f"{operation} is not supported for {self.kind.label} services")

    @staticmethod
    def require_token(token: Optional[str], action: str) -> None:
        """Fail before any request is made when no token is available."""
        if token is None:
            raise TokenError(f"Token provided was nil. Request cannot be made to {action}")

    @staticmethod
    def check_auth(response: HttpResponse) -> None:
        """Raise ``AuthError`` on HTTP 401."""
        if response.status == 401:
            raise AuthError(
                f"HTTP {response.status}: The token provided could not authenticate to the pooler.\n{response.body}"
            )

    def check_modify_keys(self, patch: ModifyPatch) -> Dict[str, Any]:
        """Return the patch as a request body, rejecting keys this backend cannot modify."""
        body = patch.as_request()
        for key in body:
            if key not in self.modifiable_keys:
                raise UnsupportedModificationError(
                    f"Configured service type does not support modification of {key}."
                )
        return body

    @staticmethod
    def filter_names(names: Iterable[str], os_filter: Optional[str]) -> List[str]:
        """Keep the names matching ``os_filter`` as a regular expression."""
        if not os_filter:
            return list(names)
        pattern = re.compile(os_filter)
        return [name for name in names if pattern.search(name)]

    # Token lifecycle, shared by all services

    def get_token(self, user: str, password: str) -> str:
        """Request a new token using basic authentication."""
        response = self.client(auth=(user, password)).post("token")
        body = response.json()
        if body.get("ok"):
            return body["token"]
        raise TokenError(f"HTTP {response.status}: There was a problem requesting a token:\n{body}")

    def delete_token(self, user: str, password: str, token: Optional[str]) -> Dict[str, Any]:
        """Revoke a token."""
        if token is None:
            raise TokenError("You did not provide a token")
        response = self.client(auth=(user, password)).delete(f"token/{token}")
        body = response.json()
        if body.get("ok"):
            return body
        raise TokenError(f"HTTP {response.status}: There was a problem deleting a token:\n{body}")

    def token_status(self, token: Optional[str]) -> Dict[str, Any]:
        """Fetch token details, including the VMs it holds."""
        if token is None:
            raise TokenError("You did not provide a token")
        response = self.client().get(f"token/{token}")
        body = response.json()
        if body.get("ok"):
            return body
        raise TokenError(f"HTTP {response.status}: There was a problem getting the status of a token:\n{body}")

    # Operations every backend provides

    @abstractmethod
    def list(self, os_filter: Optional[str] = None) -> List[str]:
        """List the templates or platforms the service offers."""
        pass

    @abstractmethod
    def list_active(self, token: Optional[str], user: Optional[str]) -> List[str]:
        """List hosts currently held by the user or token."""
        pass

    @abstractmethod
    def retrieve(
        self,
        os_types: Dict[str, int],
        token: Optional[str],
        user: Optional[str],
        config: ServiceConfig,
        ondemand: bool = False,
        continue_id: Optional[str] = None,
    ) -> Any:
        """Acquire hosts."""
        pass

    @abstractmethod
    def query(self, hostname: str) -> Dict[str, Any]:
        """Fetch details for a host (or job)."""
        pass

    @abstractmethod
    def delete(self, hosts: List[str], token: Optional[str], user: Optional[str]) -> Dict[str, Any]:
        """Release hosts, returning a result per host."""
        pass

    @abstractmethod
    def status(self) -> Any:
        """Fetch service status."""
        pass

    # Operations only some backends provide

    def list_active_job_ids(self, user: Optional[str]) -> List[str]:
        raise self.unsupported("list_active_job_ids")

    def wait_for_request(self, request: ProvisioningRequest, timeout: float, interval: float) -> Any:
        raise self.unsupported("ondemand requests")

    def modify(self, hostname: str, token: Optional[str], patch: ModifyPatch) -> Dict[str, Any]:
        raise self.unsupported("modify")

    def disk(self, hostname: str, token: Optional[str], size: int) -> Dict[str, Any]:
        raise self.unsupported("disk")

    def summary(self) -> Dict[str, Any]:
        raise self.unsupported("summary")

    def snapshot(self, hostname: str, token: Optional[str]) -> Dict[str, Any]:
        raise self.unsupported("snapshot")

    def revert(self, hostname: str, token: Optional[str], snapshot_sha: Optional[str]) -> Dict[str, Any]:
        raise self.unsupported("revert")
