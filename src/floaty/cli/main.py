"""Main CLI implementation using Typer."""

import json
from pathlib import Path
from typing import Any, Callable, List, Optional

import httpx
import typer
from pydantic import ValidationError
from rich.markup import escape

from floaty.cli.commands import (
    delete_token,
    delete_vms,
    get_token,
    get_vms,
    list_vms,
    modify_vms,
    query_host,
    revert_vm,
    service_examples,
    service_types,
    show_status,
    show_summary,
    snapshot_vm,
    token_status,
)
from floaty.config.loader import read_config
from floaty.errors import FloatyError
from floaty.models.config import CliOptions
from floaty.models.modify import ModifyPatch
from floaty.service import Service
from floaty.utils.logging import setup_logging
from floaty.utils.output import stderr_console


# Create Typer app
app = typer.Typer(
    name="floaty",
    help="A CLI helper tool for Puppet's vmpooler to help you stay afloat",
    add_completion=False,
)


def _verbose_option():
    return typer.Option(False, "--verbose", help="Enables verbose output")


def _service_option():
    return typer.Option(None, "--service", help="Configured pooler service name")


def _url_option():
    return typer.Option(None, "--url", help="URL of pooler service")


def _user_option():
    return typer.Option(None, "--user", help="User to authenticate with")


def _token_option():
    return typer.Option(None, "--token", help="Token for pooler service")


def _loglevel_option():
    return typer.Option(None, "--loglevel", help="Set the log level (DEBUG, INFO, WARNING, ERROR)")


def _config_option():
    return typer.Option(None, "--config", help="Path to the floaty config file")


def _fail(message: str):
    stderr_console.print(f"[red]Error:[/red] {escape(message)}")
    raise typer.Exit(1)


def _run_cli_command(
    handler: Callable[..., Any],
    options: CliOptions,
    verbose: bool = False,
    loglevel: Optional[str] = None,
    config: Optional[Path] = None,
    **kwargs: Any,
):
    """Helper to run a CLI command with a configured service and error handling."""
    try:
        global_config = read_config(config)
        setup_logging(loglevel or global_config.get("loglevel") or "INFO")
        verbose = verbose or bool(global_config.get("verbose"))

        service = Service.from_options(global_config, options, verbose=verbose)
        result = handler(service, **kwargs)
    except FloatyError as e:
        _fail(str(e))
    except httpx.HTTPError as e:
        _fail(f"Could not reach the pooler service: {e}")

    if result is False:
        raise typer.Exit(1)


@app.command("get")
def get_command(
    os_types: Optional[List[str]] = typer.Argument(None, help="os_type[=count] to request"),
    notoken: bool = typer.Option(False, "--notoken", help="Makes a request without a token"),
    force: bool = typer.Option(False, "--force", help="Forces vmfloaty to get requested vms"),
    as_json: bool = typer.Option(False, "--json", help="Prints retrieved vms in JSON format"),
    ondemand: bool = typer.Option(False, "--ondemand", help="Requested vms are provisioned upon request"),
    continue_id: Optional[str] = typer.Option(
        None, "--continue", help="Wait for an already submitted request (ABS job id or ondemand request id)"
    ),
    priority: Optional[str] = typer.Option(
        None, "--priority", help="Priority for supported backends (ABS): high (1), medium (2), low (3)"
    ),
    verbose: bool = _verbose_option(),
    service: Optional[str] = _service_option(),
    url: Optional[str] = _url_option(),
    user: Optional[str] = _user_option(),
    token: Optional[str] = _token_option(),
    loglevel: Optional[str] = _loglevel_option(),
    config: Optional[Path] = _config_option(),
):
    """Gets a vm or vms based on the os argument."""
    options = CliOptions(service=service, url=url, user=user, token=token, priority=priority)
    _run_cli_command(
        get_vms,
        options,
        verbose=verbose,
        loglevel=loglevel,
        config=config,
        os_args=os_types or [],
        use_token=not notoken,
        force=force,
        as_json=as_json,
        ondemand=ondemand,
        continue_id=continue_id,
    )


@app.command("list")
def list_command(
    os_filter: Optional[str] = typer.Argument(None, help="Only show templates matching this pattern"),
    active: bool = typer.Option(False, "--active", help="Prints information about active vms for a given token"),
    as_json: bool = typer.Option(False, "--json", help="Prints information as JSON"),
    hostname_only: bool = typer.Option(False, "--hostnameonly", help="When listing active vms, prints only hostnames"),
    verbose: bool = _verbose_option(),
    service: Optional[str] = _service_option(),
    url: Optional[str] = _url_option(),
    user: Optional[str] = _user_option(),
    token: Optional[str] = _token_option(),
    loglevel: Optional[str] = _loglevel_option(),
    config: Optional[Path] = _config_option(),
):
    """Shows a list of available vms from the pooler or vms obtained with a token."""
    options = CliOptions(service=service, url=url, user=user, token=token)
    _run_cli_command(
        list_vms,
        options,
        verbose=verbose,
        loglevel=loglevel,
        config=config,
        os_filter=os_filter,
        active=active,
        as_json=as_json,
        hostname_only=hostname_only,
    )


@app.command("query")
def query_command(
    hostname: str = typer.Argument(..., help="Hostname to query"),
    verbose: bool = _verbose_option(),
    service: Optional[str] = _service_option(),
    url: Optional[str] = _url_option(),
    loglevel: Optional[str] = _loglevel_option(),
    config: Optional[Path] = _config_option(),
):
    """Get information about a given vm."""
    options = CliOptions(service=service, url=url)
    _run_cli_command(query_host, options, verbose=verbose, loglevel=loglevel, config=config, hostname=hostname)


@app.command("modify")
def modify_command(
    hostname: Optional[str] = typer.Argument(None, help="Hostname or comma separated hostnames to modify"),
    lifetime: Optional[int] = typer.Option(None, "--lifetime", help="VM TTL (Integer, in hours)"),
    disk: Optional[int] = typer.Option(None, "--disk", help="Increases VM disk space (Integer, in gb)"),
    tags: Optional[str] = typer.Option(None, "--tags", help="free-form VM tagging (JSON)"),
    reason: Optional[str] = typer.Option(None, "--reason", help="VM reservation reason (nspooler only)"),
    modify_all: bool = typer.Option(False, "--all", help="Modifies all vms acquired by a token"),
    verbose: bool = _verbose_option(),
    service: Optional[str] = _service_option(),
    url: Optional[str] = _url_option(),
    token: Optional[str] = _token_option(),
    loglevel: Optional[str] = _loglevel_option(),
    config: Optional[Path] = _config_option(),
):
    """Modify a VM's tags, time to live, disk space, or reservation reason."""
    try:
        parsed_tags = json.loads(tags) if tags else None
        patch = ModifyPatch(lifetime=lifetime, disk=disk, tags=parsed_tags, reason=reason)
    except (ValueError, ValidationError) as e:
        _fail(f"Invalid modification: {e}")

    options = CliOptions(service=service, url=url, token=token)
    _run_cli_command(
        modify_vms,
        options,
        verbose=verbose,
        loglevel=loglevel,
        config=config,
        hostname=hostname,
        patch=patch,
        modify_all=modify_all,
    )


@app.command("delete")
def delete_command(
    hostnames: Optional[str] = typer.Argument(None, help="Hostname or comma separated hostnames (or ABS job ids)"),
    delete_all: bool = typer.Option(False, "--all", help="Deletes all vms acquired by a token"),
    force: bool = typer.Option(False, "--force", "-f", help="Does not prompt user when deleting all vms"),
    as_json: bool = typer.Option(False, "--json", help="Outputs hosts scheduled for deletion as JSON"),
    verbose: bool = _verbose_option(),
    service: Optional[str] = _service_option(),
    url: Optional[str] = _url_option(),
    user: Optional[str] = _user_option(),
    token: Optional[str] = _token_option(),
    loglevel: Optional[str] = _loglevel_option(),
    config: Optional[Path] = _config_option(),
):
    """Schedules the deletion of a host or hosts."""
    options = CliOptions(service=service, url=url, user=user, token=token)
    _run_cli_command(
        delete_vms,
        options,
        verbose=verbose,
        loglevel=loglevel,
        config=config,
        hostnames=hostnames,
        delete_all=delete_all,
        force=force,
        as_json=as_json,
    )


@app.command("snapshot")
def snapshot_command(
    hostname: str = typer.Argument(..., help="Hostname to snapshot"),
    verbose: bool = _verbose_option(),
    service: Optional[str] = _service_option(),
    url: Optional[str] = _url_option(),
    token: Optional[str] = _token_option(),
    loglevel: Optional[str] = _loglevel_option(),
    config: Optional[Path] = _config_option(),
):
    """Takes a snapshot of a given vm."""
    options = CliOptions(service=service, url=url, token=token)
    _run_cli_command(snapshot_vm, options, verbose=verbose, loglevel=loglevel, config=config, hostname=hostname)


@app.command("revert")
def revert_command(
    hostname: str = typer.Argument(..., help="Hostname to revert"),
    snapshot_sha: Optional[str] = typer.Argument(None, help="Snapshot sha to revert to"),
    snapshot: Optional[str] = typer.Option(None, "--snapshot", help="SHA of snapshot"),
    verbose: bool = _verbose_option(),
    service: Optional[str] = _service_option(),
    url: Optional[str] = _url_option(),
    token: Optional[str] = _token_option(),
    loglevel: Optional[str] = _loglevel_option(),
    config: Optional[Path] = _config_option(),
):
    """Reverts a vm to a specified snapshot."""
    options = CliOptions(service=service, url=url, token=token)
    _run_cli_command(
        revert_vm,
        options,
        verbose=verbose,
        loglevel=loglevel,
        config=config,
        hostname=hostname,
        snapshot_sha=snapshot_sha,
        snapshot_option=snapshot,
    )


@app.command("status")
def status_command(
    as_json: bool = typer.Option(False, "--json", help="Prints status in JSON format"),
    verbose: bool = _verbose_option(),
    service: Optional[str] = _service_option(),
    url: Optional[str] = _url_option(),
    loglevel: Optional[str] = _loglevel_option(),
    config: Optional[Path] = _config_option(),
):
    """Prints the status of pools in the pooler service."""
    options = CliOptions(service=service, url=url)
    _run_cli_command(show_status, options, verbose=verbose, loglevel=loglevel, config=config, as_json=as_json)


@app.command("summary")
def summary_command(
    verbose: bool = _verbose_option(),
    service: Optional[str] = _service_option(),
    url: Optional[str] = _url_option(),
    loglevel: Optional[str] = _loglevel_option(),
    config: Optional[Path] = _config_option(),
):
    """Prints a summary of a pooler service."""
    options = CliOptions(service=service, url=url)
    _run_cli_command(show_summary, options, verbose=verbose, loglevel=loglevel, config=config)


# Token subcommands
token_app = typer.Typer(help="Retrieves or deletes a token or checks token status")
app.add_typer(token_app, name="token")


def _run_token_action(handler: Callable[..., Any], token_arg: Optional[str], **kwargs: Any):
    option_token = kwargs.pop("token")
    token = token_arg or option_token
    options = CliOptions(service=kwargs.pop("service"), url=kwargs.pop("url"), user=kwargs.pop("user"), token=token)
    _run_cli_command(handler, options, token=token, **kwargs)


@token_app.command("get")
def token_get_command(
    verbose: bool = _verbose_option(),
    service: Optional[str] = _service_option(),
    url: Optional[str] = _url_option(),
    user: Optional[str] = _user_option(),
    loglevel: Optional[str] = _loglevel_option(),
    config: Optional[Path] = _config_option(),
):
    """Request a new token."""
    options = CliOptions(service=service, url=url, user=user)
    _run_cli_command(get_token, options, verbose=verbose, loglevel=loglevel, config=config)


@token_app.command("delete")
def token_delete_command(
    token_arg: Optional[str] = typer.Argument(None, metavar="TOKEN", help="Token to delete"),
    verbose: bool = _verbose_option(),
    service: Optional[str] = _service_option(),
    url: Optional[str] = _url_option(),
    user: Optional[str] = _user_option(),
    token: Optional[str] = _token_option(),
    loglevel: Optional[str] = _loglevel_option(),
    config: Optional[Path] = _config_option(),
):
    """Delete a token."""
    _run_token_action(
        delete_token, token_arg, token=token, service=service, url=url, user=user,
        verbose=verbose, loglevel=loglevel, config=config,
    )


@token_app.command("status")
def token_status_command(
    token_arg: Optional[str] = typer.Argument(None, metavar="TOKEN", help="Token to check"),
    verbose: bool = _verbose_option(),
    service: Optional[str] = _service_option(),
    url: Optional[str] = _url_option(),
    token: Optional[str] = _token_option(),
    loglevel: Optional[str] = _loglevel_option(),
    config: Optional[Path] = _config_option(),
):
    """Show the status of a token."""
    _run_token_action(
        token_status, token_arg, token=token, service=service, url=url, user=None,
        verbose=verbose, loglevel=loglevel, config=config,
    )


# Service subcommands
service_app = typer.Typer(help="Display information about using vmfloaty with multiple services")
app.add_typer(service_app, name="service")


@service_app.command("types")
def service_types_command():
    """List the supported service types."""
    service_types()


@service_app.command("examples")
def service_examples_command():
    """Print a sample ~/.vmfloaty.yml."""
    service_examples()


def main():
    """Main entry point for CLI."""
    app()
