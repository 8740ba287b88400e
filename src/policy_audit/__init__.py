"""
Policy Audit - compliance checks for observed cluster configuration.

This package compiles a catalog of documented policy rules, evaluates them
against a configuration snapshot and classifies each policy as valid,
violated or errored.
"""

__version__ = "0.1.0"

from policy_audit.policy import (
    PolicyAgent,
    PolicyEvaluationResult,
    Policy,
    RuleFile,
)

__all__ = [
    "PolicyAgent",
    "PolicyEvaluationResult",
    "Policy",
    "RuleFile",
]
