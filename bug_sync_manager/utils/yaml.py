"""Helpers for reading and writing YAML documents with ruamel.yaml."""

import os
from pathlib import Path
from typing import Any

import structlog
from ruamel.yaml import YAML

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

CONFIG_FILE_MODE = 0o600


def load_yaml_file(path: Path) -> Any:
    """Load a YAML file and return its parsed content."""
    yaml = YAML(typ="safe")
    with open(path, encoding="utf-8") as f:
        return yaml.load(f)


def dump_yaml_to_file(data: Any, path: Path) -> None:
    """Write data to a YAML file, creating parent directories as needed.

    The file is written with owner-only permissions because it holds API tokens.
    """
    yaml = YAML()
    yaml.default_flow_style = False
    yaml.indent(mapping=2, sequence=4, offset=2)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(data, f)
    os.chmod(path, CONFIG_FILE_MODE)
    logger.debug("Wrote YAML file", path=str(path))
