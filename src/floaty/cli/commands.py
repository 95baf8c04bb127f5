"""Command implementations for CLI."""

import logging
from typing import List, Optional
from urllib.parse import urlparse

import typer

from floaty.errors import ConfigurationError, InvalidResponseError, MissingParameterError, ModifyError
from floaty.models.config import BackendKind
from floaty.models.modify import ModifyPatch
from floaty.service import Service
from floaty.utils import output
from floaty.utils.hosts import (
    format_host_output,
    generate_os_hash,
    get_host_data,
    pretty_print_hosts,
    print_fqdn_for_host,
    standardize_hostnames,
)
from floaty.utils.status import pretty_print_status


logger = logging.getLogger(__name__)

MAX_POOL_REQUEST = 5

SERVICE_TYPES = """The values on the left below can be used in ~/.vmfloaty.yml as the value of type:

abs:       Always Be Scheduling
nspooler:  Non-standard Pooler, aka NSPooler
vmpooler:  VMPooler"""

SERVICE_EXAMPLES = """# Sample ~/.vmfloaty.yml with just vmpooler
user: 'jdoe'
url: 'https://vmpooler.example.net'
token: '456def789'

# Sample ~/.vmfloaty.yml with multiple services
# Note: when the --service is not specified on the command line,
# the first service listed here is selected automatically
user: 'jdoe'
services:
  abs-prod:
    type: 'abs'
    url: 'https://abs.example.net/api/v2'
    token: '123abc456'
    vmpooler_fallback: 'vmpooler-prod'
  nspooler-prod:
    type: 'nspooler'
    url: 'https://nspooler.example.net'
    token: '789ghi012'
  vmpooler-dev:
    type: 'vmpooler'
    url: 'https://vmpooler-dev.example.net'
    token: '987dsa654'
  vmpooler-prod:
    type: 'vmpooler'
    url: 'https://vmpooler.example.net'
    token: '456def789'
"""


def _print_json(data):
    output.console.print_json(data=data)


def _active_hosts(service: Service) -> List[str]:
    """Hosts held by the user; for ABS these are job ids."""
    if service.kind is BackendKind.ABS:
        return service.list_active_job_ids()
    return service.list_active()


def get_vms(
    service: Service,
    os_args: List[str],
    use_token: bool = True,
    force: bool = False,
    as_json: bool = False,
    ondemand: bool = False,
    continue_id: Optional[str] = None,
) -> bool:
    """Acquire VMs and print their hostnames."""
    resume = bool(continue_id) and service.kind is not BackendKind.ABS
    request_id = continue_id if resume else None

    if resume:
        response = service.wait_for_request(continue_id)
    else:
        os_types = generate_os_hash(os_args)
        if not os_types:
            raise MissingParameterError(
                "No operating systems provided to obtain. See `floaty get --help` for more information on how to get VMs."
            )

        large_requests = [name for name, count in os_types.items() if count > MAX_POOL_REQUEST]
        if large_requests and not force:
            logger.error(f"Requesting vms over {MAX_POOL_REQUEST} requires a --force flag.")
            logger.error("Try again with `floaty get --force`")
            return False

        response = service.retrieve(os_types, use_token=use_token, ondemand=ondemand, continue_id=continue_id)
        if ondemand and response and "request_id" in response:
            request_id = response["request_id"]
            response = service.wait_for_request(request_id)

    if response is False or response is None:
        logger.error("The request was not fulfilled in time")
        if request_id:
            logger.error(f"You can resume waiting with `floaty get --continue {request_id}`")
        return False

    hosts = standardize_hostnames(response)
    if as_json or ondemand or resume:
        _print_json(hosts)
    else:
        output.emit(format_host_output(hosts))
    return True


def list_vms(
    service: Service,
    os_filter: Optional[str] = None,
    active: bool = False,
    as_json: bool = False,
    hostname_only: bool = False,
):
    """List available templates, or the VMs held by the user."""
    if not active:
        for name in service.list(os_filter):
            output.emit(name)
        return

    running = _active_hosts(service)
    host = urlparse(service.url or "").hostname

    if not running:
        if as_json:
            _print_json({})
        else:
            logger.info(f"You have no running VMs on {host}")
    elif as_json:
        _print_json(get_host_data(service, running))
    elif hostname_only:
        for hostname, host_data in get_host_data(service, running).items():
            print_fqdn_for_host(service, hostname, host_data)
    else:
        output.emit(f"Your VMs on {host}:")
        pretty_print_hosts(service, running)


def query_host(service: Service, hostname: str):
    """Print everything the service knows about a host."""
    _print_json(service.query(hostname))


def modify_vms(
    service: Service,
    hostname: Optional[str],
    patch: ModifyPatch,
    modify_all: bool = False,
) -> bool:
    """Modify one or more VMs.

    A failure on one host does not stop the others; every host is attempted,
    the ones that succeeded are counted and the ones that failed are listed.
    """
    if not hostname and not modify_all:
        logger.error("ERROR: Provide a hostname or specify --all.")
        return False

    running = service.list_active() if modify_all else hostname.split(",")
    if patch.is_empty():
        logger.info("Nothing to modify. See `floaty modify --help` for the available options.")
        return True

    failures: List[str] = []
    for vm in running:
        try:
            service.modify(vm, patch)
        except ConfigurationError:
            raise
        except (ModifyError, InvalidResponseError) as e:
            logger.error(str(e))
            failures.append(vm)

    succeeded = len(running) - len(failures)
    if not failures:
        if modify_all:
            output.emit(f"Successfully modified all {len(running)} VMs.")
        else:
            output.emit(f"Successfully modified VM {hostname}.")
        output.emit("Use `floaty list --active` to see the results.")
        return True

    output.emit(f"Successfully modified {succeeded} of {len(running)} VMs.")
    logger.error("Failed to modify the following VMs:")
    for vm in failures:
        logger.error(f"- {vm}")
    return False


def delete_vms(
    service: Service,
    hostnames: Optional[str],
    delete_all: bool = False,
    force: bool = False,
    as_json: bool = False,
) -> bool:
    """Schedule VMs (or ABS jobs) for deletion."""
    if delete_all:
        running = _active_hosts(service)
        if not running:
            if as_json:
                _print_json({})
            else:
                logger.info("You have no running VMs.")
            return True

        if not force:
            pretty_print_hosts(service, running, print_to_stderr=True)
            if not typer.confirm("Delete all these VMs?", default=False):
                return True
        results = service.delete(running)
    elif hostnames:
        results = service.delete(hostnames.split(","))
    else:
        logger.info("You did not provide any hosts to delete")
        return False

    successes = [host for host, result in results.items() if result.get("ok")]
    failures = [host for host, result in results.items() if not result.get("ok")]

    if failures:
        logger.info("Unable to delete the following VMs:")
        for host in failures:
            message = results[host].get("message")
            logger.info(f"- {host}" + (f" ({message})" if message else ""))
        logger.info("Check `floaty list --active`; Do you need to specify a different service?")

    if successes:
        if as_json:
            _print_json(successes)
        else:
            output.emit("Scheduled the following VMs for deletion:")
            for host in successes:
                output.emit(f"- {host}")

    return not failures


def snapshot_vm(service: Service, hostname: str):
    """Request a snapshot of a VM."""
    result = service.snapshot(hostname)
    output.emit(f"Snapshot pending. Use `floaty query {hostname}` to determine when snapshot is valid.")
    _print_json(result)


def revert_vm(service: Service, hostname: str, snapshot_sha: Optional[str], snapshot_option: Optional[str] = None):
    """Revert a VM to a snapshot."""
    if snapshot_sha and snapshot_option:
        logger.info(f"Two snapshot arguments were given....using snapshot {snapshot_sha}")
    _print_json(service.revert(hostname, snapshot_sha or snapshot_option))


def show_status(service: Service, as_json: bool = False):
    """Show pool status."""
    if as_json:
        _print_json(service.status())
    else:
        pretty_print_status(service, service.verbose)


def show_summary(service: Service):
    """Show the service summary."""
    _print_json(service.summary())


def _prompt_user(service: Service) -> str:
    return service.user or typer.prompt(f"Enter your {service.url} service username")


def _prompt_password(service: Service) -> str:
    return typer.prompt(f"Enter your {service.url} service password", hide_input=True)


def get_token(service: Service):
    """Request a new token with the user's credentials."""
    user = _prompt_user(service)
    output.emit(service.get_new_token(_prompt_password(service), user=user))


def delete_token(service: Service, token: Optional[str] = None):
    """Revoke a token."""
    user = _prompt_user(service)
    _print_json(service.delete_token(_prompt_password(service), token=token, user=user))


def token_status(service: Service, token: Optional[str] = None):
    """Show what the service knows about a token."""
    _print_json(service.token_status(token))


def service_types():
    output.emit(SERVICE_TYPES)


def service_examples():
    output.emit(SERVICE_EXAMPLES)
