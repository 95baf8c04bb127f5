"""Configuration file loading."""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from floaty.errors import ConfigurationError


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("~/.vmfloaty.yml")
CONFIG_ENV_VAR = "FLOATY_CONFIG"


def config_path(path: Optional[Union[str, Path]] = None) -> Path:
    """Resolve the configuration file location."""
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH
    return Path(path).expanduser()


def read_config(path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """Read the YAML configuration file.

    Mapping order is preserved, the first entry under ``services`` is the
    default service. A missing file is not an error and yields an empty
    configuration.
    """
    config_file = config_path(path)
    if not config_file.exists():
        logger.debug(f"Config file not found: {config_file}")
        return {}

    yaml = YAML(typ="rt")
    try:
        data = yaml.load(config_file.read_text())
    except YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_file}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Expected a mapping at the top of {config_file}")

    logger.debug(f"Loaded config: {config_file}")
    return data
