"""Normalization and display of host listings across service types.

The three services describe hosts differently:

* vmpooler answers ``{"ok": true, "domain": "d.net", "centos-7": {"hostname": "h1"}}``
  (older releases) or with hostnames already qualified (newer releases).
* nspooler answers like newer vmpooler releases, hostnames are qualified.
* ABS allocations are translated to the vmpooler shape and carry a ``job_id``.

``standardize_hostnames`` reduces all of them to an ordered mapping of OS
template (or job id) to fully qualified hostnames.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import httpx

from floaty.errors import FloatyError, InvalidResponseError, MissingParameterError
from floaty.models.config import BackendKind
from floaty.models.host import HostRecord
from floaty.utils.output import emit


logger = logging.getLogger(__name__)

BOOKKEEPING_KEYS = ("request_id", "ready")
ALLOCATED_STATES = ("allocated", "filled")
VMPOOLER_ENGINES = ("vmpooler", "ondemand")


def generate_os_hash(os_args: Iterable[str]) -> Dict[str, int]:
    """Turn ``["centos", "debian=5"]`` into ``{"centos": 1, "debian": 5}``."""
    os_types: Dict[str, int] = {}
    for arg in os_args:
        name, sep, count = arg.partition("=")
        if not sep:
            os_types[name] = 1
            continue
        try:
            os_types[name] = int(count)
        except ValueError as e:
            raise MissingParameterError(f"Invalid VM count in '{arg}', expected {name}=<number>") from e
    return os_types


def _qualify(hostname: str, domain: Optional[str]) -> str:
    if domain and "." not in hostname:
        return f"{hostname}.{domain}"
    return hostname


def standardize_hostnames(response_body: Mapping[str, Any]) -> Dict[str, Union[List[str], str]]:
    """Reduce a retrieve response to ``{os_or_job: [fqdn, ...]}``.

    Order of groups and of hostnames within a group follows the response.
    An ABS ``job_id`` is passed through as a plain string entry.
    """
    body = dict(response_body)
    if not body.pop("ok", False):
        raise InvalidResponseError(f"Bad response passed to standardize_hostnames: {dict(response_body)}")

    # vmpooler may report the domain separately from the hostname
    domain = body.pop("domain", None)

    result: Dict[str, Union[List[str], str]] = {}
    job_id = body.pop("job_id", None)
    if job_id is not None:
        result["job_id"] = str(job_id)

    for key, value in body.items():
        if key in BOOKKEEPING_KEYS or not isinstance(value, Mapping) or "hostname" not in value:
            continue
        hostnames = value["hostname"]
        if isinstance(hostnames, str):
            hostnames = [hostnames]
        result[key] = [_qualify(name, domain) for name in hostnames]
    return result


def format_host_output(hosts: Mapping[str, Any]) -> str:
    """One ``- <fqdn> (<os>)`` line per host, in order."""
    return "\n".join(f"- {record.hostname} ({record.group_key})" for record in host_records(hosts))


def host_records(hosts: Mapping[str, Any]) -> List[HostRecord]:
    """Flatten a standardized mapping into host records; non-list entries are skipped."""
    records = []
    for group_key, names in hosts.items():
        if not isinstance(names, list):
            continue
        for name in names:
            records.append(HostRecord(group_key=group_key, hostname=name))
    return records


def _vmpooler_fqdn(hostname: str, host_data: Mapping[str, Any]) -> str:
    domain = host_data.get("domain")
    return f"{hostname}.{domain}" if domain else hostname


def _vmpooler_line(hostname: str, host_data: Mapping[str, Any]) -> str:
    fqdn = _vmpooler_fqdn(hostname, host_data)
    if host_data.get("state") == "destroyed":
        return f"- DESTROYED {fqdn}"

    duration = f"{host_data.get('running')}/{host_data.get('lifetime')} hours"
    metadata = [str(host_data.get("state")), str(host_data.get("template")), duration]
    metadata.extend(f"{key}: {value}" for key, value in (host_data.get("tags") or {}).items())
    return f"- {fqdn} ({', '.join(metadata)})"


def _nspooler_line(host_data: Mapping[str, Any]) -> str:
    line = f"- {host_data.get('fqdn')} ({host_data.get('os_triple')}"
    line += f", {host_data.get('hours_left_on_reservation')}h remaining"
    reason = host_data.get("reserved_for_reason")
    if reason:
        line += f", reason: {reason}"
    return line + ")"


def _abs_lines(service, host_data: Mapping[str, Any]) -> List[str]:
    state = host_data.get("state")
    if state not in ALLOCATED_STATES:
        return []

    job_id = host_data["request"]["job"]["id"]
    lines = [f"- [JobID:{job_id}] <{state}>"]
    fallback = service.fallback_service()

    for resource in host_data.get("allocated_resources") or []:
        fqdn = resource["hostname"]
        if fallback is not None and resource.get("engine") in VMPOOLER_ENGINES:
            bare = fqdn.split(".")[0]
            details = fallback.query(bare).get(bare)
            if details:
                lines.extend(render_host_lines(fallback, bare, details, indent=2))
                continue
        lines.append(f"  - {fqdn} ({resource.get('type')})")
    return lines


def render_host_lines(service, hostname: str, host_data: Mapping[str, Any], indent: int = 0) -> List[str]:
    """Describe one host (or ABS job) as display lines.

    ABS jobs render as a header line followed by one line per allocated
    resource. When the ABS service has a ``vmpooler_fallback``, resources
    provisioned by vmpooler are looked up there and shown with full details.
    """
    kind = service.kind
    if kind is BackendKind.ABS:
        lines = _abs_lines(service, host_data)
    elif kind is BackendKind.NSPOOLER:
        lines = [_nspooler_line(host_data)]
    else:
        lines = [_vmpooler_line(hostname, host_data)]
    return [" " * indent + line for line in lines]


def pretty_print_hosts(service, hostnames: Union[str, List[str]], print_to_stderr: bool = False):
    """Query each host and print its description."""
    if isinstance(hostnames, str):
        hostnames = [hostnames]

    for hostname in hostnames:
        host_data = service.query(hostname).get(hostname)
        if not host_data:
            logger.error(f"No information found for {hostname}")
            continue
        for line in render_host_lines(service, hostname, host_data):
            emit(line, print_to_stderr)


def print_fqdn_for_host(service, hostname: str, host_data: Mapping[str, Any]):
    """Print only the fully qualified hostname(s) of a host or job."""
    kind = service.kind
    if kind is BackendKind.ABS:
        for resource in host_data.get("allocated_resources") or []:
            emit(resource["hostname"])
    elif kind is BackendKind.NSPOOLER:
        emit(host_data["fqdn"])
    else:
        emit(_vmpooler_fqdn(hostname, host_data))


def get_host_data(service, hostnames: Union[str, List[str]]) -> Dict[str, Any]:
    """Query details of each host; failures are logged and skipped."""
    if isinstance(hostnames, str):
        hostnames = [hostnames]

    result: Dict[str, Any] = {}
    for hostname in hostnames:
        try:
            host_data = service.query(hostname).get(hostname)
        except (FloatyError, httpx.HTTPError) as e:
            logger.error(f"Something went wrong while trying to gather information on {hostname}:")
            logger.error(str(e))
            continue

        if not host_data:
            continue
        if service.kind is BackendKind.ABS and host_data.get("state") not in ALLOCATED_STATES:
            continue
        result[hostname] = host_data
    return result
