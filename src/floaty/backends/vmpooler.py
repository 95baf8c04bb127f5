"""vmpooler backend."""

import logging
from typing import Any, Dict, List, Optional

from floaty.backends.base import BaseBackend
from floaty.backends.http import HttpResponse
from floaty.backends.poller import RequestPoller
from floaty.errors import (
    AcquisitionError,
    InvalidResponseError,
    MissingParameterError,
    ModifyError,
    PoolMaximumExceededError,
)
from floaty.models.config import BackendKind, ServiceConfig
from floaty.models.host import ProvisioningRequest
from floaty.models.modify import ModifyPatch


logger = logging.getLogger(__name__)


class VmpoolerBackend(BaseBackend):
    """Backend for vmpooler, the default pool manager."""

    kind = BackendKind.VMPOOLER
    modifiable_keys = frozenset({"tags", "lifetime", "disk"})

    def list(self, os_filter: Optional[str] = None) -> List[str]:
        """List pool templates."""
        response = self.client().get("vm")
        return self.filter_names(response.json(), os_filter)

    def list_active(self, token: Optional[str], user: Optional[str]) -> List[str]:
        """List VMs held by a token."""
        status = self.token_status(token)
        token_data = status.get(token) or {}
        vms = token_data.get("vms") or {}
        return list(vms.get("running") or [])

    @staticmethod
    def os_string(os_types: Dict[str, int]) -> str:
        """Flatten ``{"centos": 2, "debian": 1}`` into ``centos+centos+debian``."""
        return "+".join(os for os, count in os_types.items() for _ in range(count))

    def retrieve(
        self,
        os_types: Dict[str, int],
        token: Optional[str],
        user: Optional[str],
        config: ServiceConfig,
        ondemand: bool = False,
        continue_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Request VMs, either from the ready pools or provisioned on demand.

        An on-demand request returns the accepted request body holding
        ``request_id``; use ``wait_for_request`` to block until it is ready.
        """
        os_string = self.os_string(os_types)
        if not os_string:
            raise MissingParameterError("No operating systems provided to obtain.")

        path = f"ondemandvm/{os_string}" if ondemand else f"vm/{os_string}"
        response = self.client(token=token).post(path)
        body = response.json()

        if body.get("ok"):
            return body
        self.check_auth(response)
        if response.status == 403:
            raise PoolMaximumExceededError(
                f"HTTP {response.status}: Failed to obtain VMs from the pooler at {self.url}/{path}. "
                f"Request exceeds the configured per pool maximum. {body}"
            )
        raise AcquisitionError(
            f"HTTP {response.status}: Failed to obtain VMs from the pooler at {self.url}/{path}. {body}"
        )

    def check_ondemandvm(self, request_id: str) -> HttpResponse:
        """Probe the status of an on-demand request."""
        return self.client().get(f"ondemandvm/{request_id}")

    def wait_for_request(self, request: ProvisioningRequest, timeout: float, interval: float) -> Any:
        """Block until an on-demand request is fulfilled, ``False`` on timeout."""
        poller = RequestPoller(self.check_ondemandvm, timeout=timeout, interval=interval)
        return poller.wait(request)

    def modify(self, hostname: str, token: Optional[str], patch: ModifyPatch) -> Dict[str, Any]:
        """Change lifetime, tags or disk size of a VM."""
        self.require_token(token, "modify vm")
        body = self.check_modify_keys(patch)

        # disk is resized through its own endpoint
        disk = body.pop("disk", None)
        if disk is not None:
            resized = self.disk(hostname, token, disk)
            if not resized.get("ok"):
                raise ModifyError(f"Failed to resize the disk of vm/{hostname} to {disk} GB. {resized}")

        response = self.client(token=token).put(f"vm/{hostname}", body=body)
        res_body = response.json()

        if res_body.get("ok"):
            return res_body
        self.check_auth(response)
        raise ModifyError(f"HTTP {response.status}: Failed to modify VMs from the pooler vm/{hostname}. {res_body}")

    def disk(self, hostname: str, token: Optional[str], size: int) -> Dict[str, Any]:
        """Add disk space to a VM."""
        self.require_token(token, "modify vm")
        response = self.client(token=token).post(f"vm/{hostname}/disk/{size}")
        self.check_auth(response)
        return response.json()

    def delete(self, hosts: List[str], token: Optional[str], user: Optional[str]) -> Dict[str, Any]:
        """Return VMs to the pool."""
        self.require_token(token, "delete vm")
        client = self.client(token=token)

        results: Dict[str, Any] = {}
        for host in hosts:
            response = client.delete(f"vm/{host}")
            self.check_auth(response)
            try:
                results[host] = response.json()
            except InvalidResponseError as e:
                results[host] = {"ok": False, "message": str(e)}
        return results

    def status(self) -> Dict[str, Any]:
        return self.client().get("status").json()

    def summary(self) -> Dict[str, Any]:
        return self.client().get("summary").json()

    def query(self, hostname: str) -> Dict[str, Any]:
        return self.client().get(f"vm/{hostname}").json()

    def snapshot(self, hostname: str, token: Optional[str]) -> Dict[str, Any]:
        """Request a snapshot of a VM."""
        self.require_token(token, "snapshot vm")
        response = self.client(token=token).post(f"vm/{hostname}/snapshot")
        self.check_auth(response)
        return response.json()

    def revert(self, hostname: str, token: Optional[str], snapshot_sha: Optional[str]) -> Dict[str, Any]:
        """Revert a VM to a snapshot."""
        self.require_token(token, "revert vm")
        if snapshot_sha is None:
            raise MissingParameterError(f"Snapshot SHA provided was nil, could not revert {hostname}")
        response = self.client(token=token).post(f"vm/{hostname}/snapshot/{snapshot_sha}")
        self.check_auth(response)
        return response.json()
