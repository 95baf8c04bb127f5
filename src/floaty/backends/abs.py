"""Always Be Scheduling (ABS) backend."""

import json
import logging
import time
from typing import Any, Dict, List, Optional

from floaty.backends.base import BaseBackend
from floaty.backends.http import HttpResponse
from floaty.backends.poller import RequestPoller
from floaty.errors import AcquisitionError, ConfigurationError, MissingParameterError
from floaty.models.config import BackendKind, ServiceConfig
from floaty.models.host import ProvisioningRequest


logger = logging.getLogger(__name__)

API_VERSION = "/api/v2"
REQUEST_TIMEOUT = 3600
ALLOCATED_STATES = ("allocated", "filled")
PRIORITIES = {"high": 1, "medium": 2, "low": 3}

PLATFORMS = [
    ("vmpooler", "*** VMPOOLER Pools ***"),
    ("ondemand_vmpooler", "*** VMPOOLER ONDEMAND Pools ***"),
    ("nspooler", "*** NSPOOLER Pools ***"),
    ("aws", "*** AWS Pools ***"),
]


def backoff(attempt: int) -> float:
    """Seconds to wait before re-checking the queue, growing to 10."""
    return min(attempt, 10)


def _decode(value: Any) -> Any:
    """Older ABS releases wrap nested JSON in strings."""
    if isinstance(value, str):
        try:
            return json.loads(value)
        except ValueError:
            return None
    return value


class AbsBackend(BaseBackend):
    """Backend for ABS, which schedules jobs across the other poolers.

    A job request looks like::

        {
          "state": "filled",
          "allocated_resources": [
            {"hostname": "h3oyntawjm7xdch.delivery.example.net",
             "type": "centos-7.2-tmpfs-x86_64", "engine": "vmpooler"}
          ],
          "request": {
            "resources": {"centos-7.2-tmpfs-x86_64": 1},
            "job": {"id": "1572555572", "user": "jdoe", "tags": {"user": "jdoe"}},
            "priority": 1
          }
        }
    """

    kind = BackendKind.ABS

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        # requests seen by the last list_active_job_ids call, keyed by job id
        self._active_requests: Dict[str, Dict[str, Any]] = {}

    @property
    def api_url(self) -> str:
        """Service URL with the supported API version appended."""
        url = self.url.rstrip("/")
        if not url.endswith(API_VERSION):
            url = f"{url}{API_VERSION}"
        return url

    def list(self, os_filter: Optional[str] = None) -> List[str]:
        """List platforms of every engine ABS schedules onto."""
        client = self.client()
        os_list: List[str] = []

        for platform, header in PLATFORMS:
            response = client.get(f"status/platforms/{platform}")
            if not response.is_json():
                continue
            body = response.json()
            key = f"{platform}_platforms"
            if not isinstance(body, dict) or key not in body:
                continue
            os_list.append(header)
            os_list.extend(_decode(body[key]) or [])

        if os_filter:
            os_list = self.filter_names(os_list, os_filter)
        return os_list

    def get_active_requests(self, user: Optional[str]) -> List[Dict[str, Any]]:
        """Fetch queued and allocated requests belonging to ``user``."""
        response = self.client().get("status/queue")
        if not response.is_json():
            return []
        body = response.json()
        entries = body.get("queue", []) if isinstance(body, dict) else body

        requests: List[Dict[str, Any]] = []
        for entry in entries or []:
            req = _decode(entry)
            if not isinstance(req, dict):
                continue
            try:
                owner = req["request"]["job"]["user"]
            except (KeyError, TypeError):
                logger.warning(f"Couldn't parse user returned from abs/status/queue: {req}")
                continue
            if owner == user:
                requests.append(req)
        return requests

    def list_active_job_ids(self, user: Optional[str]) -> List[str]:
        """List job ids of the user's requests."""
        self._active_requests = {}
        for req in self.get_active_requests(user):
            job_id = str(req["request"]["job"]["id"])
            self._active_requests[job_id] = req
        return list(self._active_requests)

    def list_active(self, token: Optional[str], user: Optional[str]) -> List[str]:
        """List hostnames allocated to the user's requests."""
        hosts: List[str] = []
        for req in self.get_active_requests(user):
            for resource in req.get("allocated_resources") or []:
                hosts.append(resource["hostname"])
        return hosts

    @staticmethod
    def _check_queue_response(response: HttpResponse, request_name: str) -> None:
        if response.status in (200, 202):
            logger.debug(f"{request_name} returned HTTP {response.status}")
            return
        BaseBackend.check_auth(response)
        raise AcquisitionError(f"HTTP {response.status}: {request_name} request to ABS failed!\n{response.body}")

    def retrieve(
        self,
        os_types: Dict[str, int],
        token: Optional[str],
        user: Optional[str],
        config: ServiceConfig,
        ondemand: bool = False,
        continue_id: Optional[str] = None,
    ) -> Any:
        """Submit a job request and wait for ABS to allocate it.

        Returns the allocation in the same shape vmpooler uses, or ``False``
        if the request was not filled in time. Passing ``continue_id``
        resumes a job submitted by an earlier run.
        """
        if not any(count > 0 for count in os_types.values()):
            raise MissingParameterError("No operating systems provided to obtain.")

        job_id = continue_id or str(int(time.time() * 1000))
        req_obj: Dict[str, Any] = {
            "resources": os_types,
            "job": {
                "id": job_id,
                "tags": {"user": user},
            },
        }
        if config.priority:
            req_obj["priority"] = self.priority_value(config.priority)

        client = self.client(token=token)
        if self.verbose:
            logger.info(f"Posting to ABS {json.dumps(req_obj)}")
        logger.info(f"Requesting VMs with job_id: {job_id} Will retry for up to an hour.")

        response = client.post("request", body=req_obj)
        self._check_queue_response(response, "Initial request")

        def check_queue(_: str) -> HttpResponse:
            res = client.post("request", body=req_obj)
            self._check_queue_response(res, "Check queue request")
            # ABS answers 200 with an empty body until resources are allocated
            if res.status == 200 and isinstance(_decode(res.body), list):
                return res
            return HttpResponse(status=202, body=res.body)

        poller = RequestPoller(check_queue, timeout=REQUEST_TIMEOUT, interval=backoff)
        resources = poller.wait(ProvisioningRequest(request_id=job_id))
        if resources is False:
            logger.error(
                f"You can resume polling with `floaty get [same arguments] --continue {job_id}`, "
                f"query the state of the queue via `floaty query {job_id}` "
                f"or delete it via `floaty delete {job_id}`"
            )
            return False
        return self.translated(resources, job_id)

    @staticmethod
    def priority_value(priority: str) -> int:
        """Map high, medium or low (or a number) to the ABS priority."""
        name = priority.strip().lower()
        if name in PRIORITIES:
            return PRIORITIES[name]
        try:
            return int(name)
        except ValueError as e:
            raise ConfigurationError(
                f"Unknown priority '{priority}', expected one of: {', '.join(PRIORITIES)} or a number"
            ) from e

    @staticmethod
    def translated(resources: List[Dict[str, Any]], job_id: str) -> Dict[str, Any]:
        """Convert allocated resources into the vmpooler response shape."""
        body: Dict[str, Any] = {"ok": True, "job_id": job_id}
        for host in resources:
            body.setdefault(host["type"], {"hostname": []})["hostname"].append(host["hostname"])
        return body

    def query(self, hostname: str) -> Dict[str, Any]:
        """Fetch a job by id, keyed by that id."""
        if hostname in self._active_requests:
            return {hostname: self._active_requests[hostname]}
        body = self.client().get(f"status/queue/info/{hostname}").json()
        return {hostname: body}

    def delete(self, hosts: List[str], token: Optional[str], user: Optional[str]) -> Dict[str, Any]:
        """Return jobs to ABS.

        ``hosts`` may name job ids or hostnames. A job is only returned when
        all of its hosts are named, ABS cannot return a single VM of a job.
        """
        self.require_token(token, "delete vm")
        client = self.client(token=token)
        if self.verbose:
            logger.info(f"Trying to delete hosts {hosts}")

        results: Dict[str, Any] = {
            host: {"ok": False, "message": "VM not found in your active requests"} for host in hosts
        }
        jobs_to_delete: List[Dict[str, Any]] = []

        for req in self.get_active_requests(user):
            if req.get("state") not in ALLOCATED_STATES:
                continue
            job_id = str(req["request"]["job"]["id"])
            resources = req.get("allocated_resources") or []
            if job_id in hosts:
                results[job_id] = {"ok": False, "message": f"Job {job_id} could not be returned"}
                jobs_to_delete.append(req)
                continue

            allocated = [resource["hostname"] for resource in resources]
            for hostname in allocated:
                if hostname not in hosts:
                    continue
                if all(name in hosts for name in allocated):
                    results[hostname] = {"ok": False, "message": f"Job {job_id} could not be returned"}
                    if req not in jobs_to_delete:
                        jobs_to_delete.append(req)
                else:
                    results[hostname] = {
                        "ok": False,
                        "message": f"It is not possible to delete a single VM in an ABS request ({job_id}), "
                        "you must delete all VMs at once",
                    }

        for req in jobs_to_delete:
            job_id = str(req["request"]["job"]["id"])
            resources = req.get("allocated_resources") or []
            req_obj = {"job_id": job_id, "hosts": resources}
            if self.verbose:
                logger.info(f"Deleting {req_obj}")
            response = client.post("return", body=req_obj)
            self.check_auth(response)
            if response.body.strip() == "OK":
                results.pop(job_id, None)
                for resource in resources:
                    results[resource["hostname"]] = {"ok": True}
        return results

    def status(self) -> bool:
        """True when ABS reports itself healthy."""
        response = self.client().get("status")
        return response.body.strip() == "OK"
