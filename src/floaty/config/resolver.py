"""Layered service configuration resolution."""

import logging
from typing import Any, Dict, Mapping, Optional

from floaty.errors import ConfigurationError
from floaty.models.config import CliOptions, ServiceConfig


logger = logging.getLogger(__name__)

DEFAULT_KEYS = ("url", "user", "token")
OVERRIDE_KEYS = ("url", "user", "token", "priority")

FALLBACK_EXAMPLE = """services:
  myabs:
    url: 'http://abs.com'
    user: 'superman'
    token: 'kryptonite'
    vmpooler_fallback: 'myvmpooler'
  myvmpooler:
    url: 'http://vmpooler.com'
    user: 'superman'
    token: 'kryptonite'"""


def resolve_service_config(global_config: Mapping[str, Any], options: Optional[CliOptions] = None) -> ServiceConfig:
    """Merge defaults, the selected service block and command line options.

    Precedence, lowest first: top-level keys, the selected entry under
    ``services`` (``options.service`` or else the first one declared), then
    any option given on the command line.
    """
    options = options or CliOptions()
    merged: Dict[str, Any] = {k: v for k, v in global_config.items() if k != "services"}

    services = global_config.get("services")
    if services is not None:
        if options.service is not None:
            if options.service not in services:
                raise ConfigurationError(
                    f"Could not find a configured service named '{options.service}' in the configuration file"
                )
            merged.update(services[options.service] or {})
        elif services:
            name, values = next(iter(services.items()))
            logger.debug(f"No service selected, defaulting to {name}")
            merged.update(values or {})

    for key in OVERRIDE_KEYS:
        value = getattr(options, key)
        if value is not None:
            merged[key] = value

    return ServiceConfig.from_mapping(merged)


def get_vmpooler_service_config(global_config: Mapping[str, Any], vmpooler_fallback: Optional[str]) -> ServiceConfig:
    """Resolve the vmpooler service an ABS service falls back to for host details."""
    merged: Dict[str, Any] = {k: global_config.get(k) for k in DEFAULT_KEYS}

    services = global_config.get("services") or {}
    if vmpooler_fallback is None:
        raise ConfigurationError(
            "The abs service should have a key named 'vmpooler_fallback' in the configuration file "
            f"with a value that points to a vmpooler service name, use this format:\n{FALLBACK_EXAMPLE}"
        )

    entry = services.get(vmpooler_fallback)
    # at a minimum, the url needs to be configured
    if not entry or not entry.get("url"):
        raise ConfigurationError(
            f"Could not find a configured service named '{vmpooler_fallback}' in the configuration file, "
            f"use this format:\n{FALLBACK_EXAMPLE}"
        )

    merged.update(entry)
    merged["type"] = "vmpooler"
    merged.pop("vmpooler_fallback", None)
    return ServiceConfig.from_mapping(merged)
