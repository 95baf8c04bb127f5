"""Non-standard pooler (nspooler) backend."""

import logging
from typing import Any, Dict, List, Optional

from floaty.backends.base import BaseBackend
from floaty.errors import (
    AcquisitionError,
    InvalidResponseError,
    MissingParameterError,
    ModifyError,
    PoolMaximumExceededError,
)
from floaty.models.config import BackendKind, ServiceConfig
from floaty.models.modify import ModifyPatch


logger = logging.getLogger(__name__)


class NspoolerBackend(BaseBackend):
    """Backend for the non-standard pooler.

    Hosts are reserved rather than leased: there are no snapshots, no disk
    changes, and instead of tags a free-form reservation reason.
    """

    kind = BackendKind.NSPOOLER
    modifiable_keys = frozenset({"reason"})

    def list(self, os_filter: Optional[str] = None) -> List[str]:
        """List host platforms."""
        body = self.client().get("status").json()
        names = sorted(key for key in body if key != "ok")
        return self.filter_names(names, os_filter)

    def list_active(self, token: Optional[str], user: Optional[str]) -> List[str]:
        """List hosts reserved by a token."""
        status = self.token_status(token)
        return list(status.get("reserved_hosts") or [])

    def retrieve(
        self,
        os_types: Dict[str, int],
        token: Optional[str],
        user: Optional[str],
        config: ServiceConfig,
        ondemand: bool = False,
        continue_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Reserve hosts."""
        os_string = "&".join(f"{os}={count}" for os, count in os_types.items() if count > 0)
        if not os_string:
            raise MissingParameterError("No operating systems provided to obtain.")

        path = f"host/{os_string}"
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

    def modify(self, hostname: str, token: Optional[str], patch: ModifyPatch) -> Dict[str, Any]:
        """Change the reservation reason of a host."""
        self.require_token(token, "modify vm")
        body = self.check_modify_keys(patch)

        # the service calls it reserved_for_reason
        body = {"reserved_for_reason": body["reason"]} if "reason" in body else {}

        response = self.client(token=token).put(f"host/{hostname}", body=body)
        self.check_auth(response)
        res_body = response.json()
        if res_body and not res_body.get("ok", True):
            raise ModifyError(f"HTTP {response.status}: Failed to modify host/{hostname}. {res_body}")
        return res_body

    def delete(self, hosts: List[str], token: Optional[str], user: Optional[str]) -> Dict[str, Any]:
        """Release reserved hosts."""
        self.require_token(token, "delete vm")
        client = self.client(token=token)

        results: Dict[str, Any] = {}
        for host in hosts:
            response = client.delete(f"host/{host}")
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
        return self.client().get(f"host/{hostname}").json()
