"""
Policy compilation and evaluation core.

Pipeline:
1. files - rule source (RuleFile, policy directories)
2. compiler - all-or-nothing compilation into a read-only ModuleSet
3. metadata - policy skeletons and metadata diagnostics
4. evaluator - rule evaluation engine boundary (IEvaluator)
5. correlator - raw results to completed policies
6. result - valid / violated / errored classification
"""

from policy_audit.policy.agent import PolicyAgent
from policy_audit.policy.compiler import Module, ModuleSet, compile_modules
from policy_audit.policy.errors import (
    CompileError,
    CorrelationError,
    MetadataError,
    PolicyAgentError,
    PolicyError,
    PolicyErrorCode,
    PolicyLookupError,
    ShapeError,
)
from policy_audit.policy.evaluator import IEvaluator, JsonLogicEvaluator
from policy_audit.policy.files import RuleFile, read_policy_dir, read_policy_dirs
from policy_audit.policy.metadata import extract_policies, metadata_errors
from policy_audit.policy.models import ExpressionValue, Policy, RawResult, RuleVerdict
from policy_audit.policy.result import PolicyEvaluationResult

__all__ = [
    "PolicyAgent",
    "Module",
    "ModuleSet",
    "compile_modules",
    "CompileError",
    "CorrelationError",
    "MetadataError",
    "PolicyAgentError",
    "PolicyError",
    "PolicyErrorCode",
    "PolicyLookupError",
    "ShapeError",
    "IEvaluator",
    "JsonLogicEvaluator",
    "RuleFile",
    "read_policy_dir",
    "read_policy_dirs",
    "extract_policies",
    "metadata_errors",
    "ExpressionValue",
    "Policy",
    "RawResult",
    "RuleVerdict",
    "PolicyEvaluationResult",
]
