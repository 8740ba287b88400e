"""Shared CLI utilities: logging setup and policy loading."""

import logging
from pathlib import Path
from typing import List, Optional

from rich.logging import RichHandler

from policy_audit.cli._console import console
from policy_audit.config import AuditConfig, load_config
from policy_audit.policy import PolicyAgent, read_policy_dirs


logger = logging.getLogger(__name__)


def setup_logging(*, verbose: bool = False, quiet: bool = False) -> None:
    """Configure logging with Rich handler."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def resolve_config(
    config_file: Optional[Path],
    policy_dirs: Optional[List[Path]],
) -> AuditConfig:
    """Load config and apply command-line policy directories on top."""
    config = load_config(config_file)
    if policy_dirs:
        config = config.model_copy(update={"policy_dirs": list(policy_dirs)})
    return config


def load_agent(config: AuditConfig) -> PolicyAgent:
    """Read rule files from the configured directories and load them.

    Raises:
        FileNotFoundError: If a policy directory does not exist
        CompileError: If any rule file is invalid
    """
    files = read_policy_dirs(config.policy_dirs)
    logger.info(f"Read {len(files)} rule files from {len(config.policy_dirs)} directories")
    return PolicyAgent(namespace=config.namespace).with_files(files)
