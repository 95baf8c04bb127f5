"""Service status rendering."""

import logging
from typing import Any, Dict

from rich.markup import escape

from floaty.models.config import BackendKind
from floaty.utils import output


logger = logging.getLogger(__name__)

CHAR = "o"


def _pool_bar(name: str, width: int, ready: int, pending: int, total: int) -> str:
    missing = total - ready - pending
    return (
        f"{escape(name.ljust(width))} "
        f"[green]{CHAR * ready}[/green][yellow]{CHAR * pending}[/yellow][red]{CHAR * missing}[/red]"
    )


def _print_pools(pools: Dict[str, Any], ready_key: str, total_key: str, verbose: bool):
    if not verbose:
        pools = {name: pool for name, pool in pools.items() if pool.get(ready_key, 0) < pool.get(total_key, 0)}
    width = max((len(name) for name in pools), default=0)

    for name, pool in pools.items():
        try:
            line = _pool_bar(name, width, pool[ready_key], pool.get("pending") or 0, pool[total_key])
        except (KeyError, TypeError) as e:
            logger.error(f"{name.ljust(width)} {e}")
            continue
        output.console.print(line, highlight=False)


def pretty_print_status(service, verbose: bool = False):
    """Print pool fill levels: ready in green, pending in yellow, missing in red.

    Only pools short of capacity are shown unless ``verbose`` is set.
    """
    status = service.status()
    kind = service.kind

    if kind is BackendKind.VMPOOLER:
        _print_pools(status.get("pools") or {}, "ready", "max", verbose)
        message = (status.get("status") or {}).get("message")
        if message:
            output.console.print(message, markup=False, highlight=False)
    elif kind is BackendKind.NSPOOLER:
        pools = {name: pool for name, pool in status.items() if name != "ok" and isinstance(pool, dict)}
        _print_pools(pools, "available_hosts", "total_hosts", verbose)
    elif status:
        output.console.print("[green]ABS is OK[/green]")
    else:
        logger.error("ABS Not OK")
