"""CLI package: Typer-based command-line interface.

Usage:
    python -m policy_audit --help
    python -m policy_audit check --input cluster.json
"""

from policy_audit.cli._app import app

# Register command modules (side-effect imports)
import policy_audit.cli.cmd_check  # noqa: F401
import policy_audit.cli.cmd_policies  # noqa: F401

__all__ = ["app"]
