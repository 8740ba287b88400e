"""Audit configuration management."""

from policy_audit.config.settings import (
    AuditConfig,
    load_config,
)

__all__ = [
    "AuditConfig",
    "load_config",
]
