"""Audit configuration schema and loader.

Configuration is read from an optional YAML file. Keys absent from the
file fall back to environment variables (a ``.env`` file in the working
directory is loaded first), then to built-in defaults.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

ENV_POLICY_DIRS = "POLICY_AUDIT_POLICY_DIRS"
ENV_NAMESPACE = "POLICY_AUDIT_NAMESPACE"

NAMESPACE_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$")


class AuditConfig(BaseModel):
    """Policy audit configuration schema.

    Attributes:
        policy_dirs: Directories holding rule files.
        namespace: Required identity prefix for policies.
        silent: Suppress non-error console output.
        input_files: Configuration snapshots to evaluate.
    """

    policy_dirs: List[Path] = Field(
        default_factory=lambda: [Path("policies")],
        description="Directories holding rule files",
    )
    namespace: str = Field(
        default="gke.policy",
        description="Required identity prefix for policies",
    )
    silent: bool = Field(
        default=False,
        description="Suppress non-error console output",
    )
    input_files: List[Path] = Field(
        default_factory=list,
        description="Configuration snapshots to evaluate",
    )

    @field_validator("namespace")
    @classmethod
    def validate_namespace(cls, v: str) -> str:
        """Validate namespace is a dotted identifier."""
        if not NAMESPACE_PATTERN.match(v):
            raise ValueError(f"namespace must be a dotted identifier, got '{v}'")
        return v

    @field_validator("policy_dirs")
    @classmethod
    def validate_policy_dirs(cls, v: List[Path]) -> List[Path]:
        if not v:
            raise ValueError("at least one policy directory is required")
        return v


def _env_overrides() -> Dict[str, Any]:
    """Collect settings from environment variables."""
    values: Dict[str, Any] = {}
    policy_dirs = os.getenv(ENV_POLICY_DIRS)
    if policy_dirs:
        values["policy_dirs"] = [p for p in policy_dirs.split(os.pathsep) if p]
    namespace = os.getenv(ENV_NAMESPACE)
    if namespace:
        values["namespace"] = namespace
    return values


def load_config(config_path: Optional[Path] = None) -> AuditConfig:
    """Load audit configuration.

    Args:
        config_path: Optional path to a YAML configuration file.

    Returns:
        AuditConfig built from file, environment and defaults.

    Raises:
        ValueError: If the file is missing or contains invalid configuration.
    """
    load_dotenv(Path.cwd() / ".env")
    data: Dict[str, Any] = _env_overrides()

    if config_path is not None:
        config_path = Path(config_path)
        if not config_path.exists():
            raise ValueError(f"Config file not found: {config_path}")
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                file_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in config {config_path}: {e}")

        if file_data is None:
            logger.warning(f"Empty config at {config_path}")
        elif not isinstance(file_data, dict):
            raise ValueError(f"Config {config_path} must be a mapping")
        else:
            data.update(file_data)

    try:
        config = AuditConfig.model_validate(data)
    except Exception as e:
        raise ValueError(f"Failed to load config{f' from {config_path}' if config_path else ''}: {e}")

    logger.debug(f"Loaded config: namespace={config.namespace}, policy_dirs={config.policy_dirs}")
    return config
