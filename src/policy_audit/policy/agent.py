"""
Policy Agent - compile once, evaluate many.

The agent holds the last successfully compiled ModuleSet and the policy
skeletons extracted from it. Both are replaced together on recompilation
and never mutated afterwards; each evaluate() call works on its own copy
of the skeletons and returns a fresh PolicyEvaluationResult.

Compilation must be serialized with evaluation by the caller.
"""

import logging
from types import MappingProxyType
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from policy_audit.policy.compiler import ModuleSet, compile_modules
from policy_audit.policy.correlator import correlate
from policy_audit.policy.errors import MetadataError, PolicyAgentError
from policy_audit.policy.evaluator import IEvaluator, JsonLogicEvaluator
from policy_audit.policy.files import RuleFile
from policy_audit.policy.metadata import DEFAULT_NAMESPACE, extract_policies
from policy_audit.policy.models import Policy
from policy_audit.policy.result import PolicyEvaluationResult

logger = logging.getLogger(__name__)


class PolicyAgent:
    """Orchestrates compilation, metadata extraction and evaluation."""

    def __init__(
        self,
        namespace: str = DEFAULT_NAMESPACE,
        evaluator: Optional[IEvaluator] = None,
    ):
        """
        Initialize the agent.

        Args:
            namespace: Required identity prefix for policies
            evaluator: Rule evaluation engine. Uses JsonLogicEvaluator if not provided.
        """
        self.namespace = namespace
        self.evaluator = evaluator or JsonLogicEvaluator(namespace=namespace)
        self._module_set: Optional[ModuleSet] = None
        self._compiled: Optional[Mapping[str, Policy]] = None
        self._metadata_errors: List[MetadataError] = []

    @property
    def module_set(self) -> Optional[ModuleSet]:
        return self._module_set

    @property
    def compiled(self) -> Mapping[str, Policy]:
        """Evaluable policy skeletons keyed by identity."""
        return self._compiled or MappingProxyType({})

    @property
    def metadata_errors(self) -> List[MetadataError]:
        return list(self._metadata_errors)

    def compile(self, files: Iterable[RuleFile]) -> ModuleSet:
        """
        Compile rule files, replacing the held module set on success only.

        Raises:
            CompileError: If any file is invalid
        """
        module_set = compile_modules(files)
        self._module_set = module_set
        self._compiled = None
        return module_set

    def parse_compiled(self) -> Tuple[List[Policy], List[MetadataError]]:
        """
        Extract policies from the compiled module set.

        Raises:
            PolicyAgentError: If nothing has been compiled
        """
        return extract_policies(self._module_set, self.namespace)

    def with_files(self, files: Iterable[RuleFile]) -> "PolicyAgent":
        """Compile files and keep the policies with complete metadata."""
        self.compile(files)
        policies, errors = self.parse_compiled()
        for error in errors:
            logger.warning(f"Metadata error: {error}")
        self._metadata_errors = errors
        self._compiled = MappingProxyType({p.name: p for p in policies})
        logger.info(
            f"Loaded {len(policies)} policies ({len(errors)} metadata errors)"
        )
        return self

    def evaluate(self, input_data: Any) -> PolicyEvaluationResult:
        """
        Evaluate the loaded policies against an input document.

        Raises:
            PolicyAgentError: If with_files() has not been called
        """
        if self._module_set is None or self._compiled is None:
            raise PolicyAgentError("no policies loaded: call with_files() first")

        module_set = self._module_set.restrict(self._compiled.keys())
        raw_results = self.evaluator.evaluate(module_set, input_data)

        skeletons = {name: policy.skeleton() for name, policy in self._compiled.items()}
        result = correlate(raw_results, skeletons, self.namespace)
        logger.info(
            f"Evaluated {result.total_count} policies: {result.valid_count} valid, "
            f"{result.violated_count} violated, {result.errored_count} errored"
        )
        return result
