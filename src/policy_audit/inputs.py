"""Load configuration snapshots used as evaluation input."""

import json
import logging
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)


def load_input(path: Path) -> Any:
    """
    Read a configuration snapshot from a JSON or YAML file.

    Args:
        path: Path to a .json, .yaml or .yml file

    Returns:
        Parsed document, passed to the evaluator as-is

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file type is unsupported or the content cannot be parsed
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")

    suffix = path.suffix.lower()
    with open(path, "r", encoding="utf-8") as f:
        if suffix == ".json":
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON in input {path}: {e}")
        elif suffix in (".yaml", ".yml"):
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in input {path}: {e}")
        else:
            raise ValueError(f"Unsupported input file type '{suffix}': {path}")

    logger.debug(f"Loaded input document from {path}")
    return data
