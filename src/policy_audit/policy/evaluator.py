"""
Rule Evaluation Engine - boundary between the policy core and the rule language.

The core only depends on the IEvaluator abstraction: given a compiled
module set and an input document it returns one untyped RawResult per
policy module. The concrete engine executes JSON Logic expressions with
the json-logic library.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, List

try:
    from json_logic import jsonLogic
except ImportError:
    raise ImportError(
        "json-logic library not found. Install with: uv add json-logic-qubit"
    )

from policy_audit.policy.compiler import Module, ModuleSet
from policy_audit.policy.metadata import DEFAULT_NAMESPACE, is_eligible
from policy_audit.policy.models import ExpressionValue, RawResult

logger = logging.getLogger(__name__)


class IEvaluator(ABC):
    """
    Abstract interface for rule evaluation engines.

    Stateless: accepts (modules + input) and returns raw results.
    """

    @abstractmethod
    def evaluate(self, module_set: ModuleSet, input_data: Any) -> List[RawResult]:
        """
        Evaluate compiled policies against an input document.

        Args:
            module_set: Compiled, read-only module snapshot
            input_data: Configuration snapshot (any JSON-like value)

        Returns:
            Raw results, each with an expression value shaped
            {"valid": bool, "violation": [str, ...]} and bindings {"name": identity}
        """
        pass


class JsonLogicEvaluator(IEvaluator):
    """
    Concrete implementation using json-logic library.

    Every eligible module is evaluated independently; an exception in one
    module produces an {"error": ...} value for that module and
    evaluation continues with the next one.
    """

    def __init__(self, namespace: str = DEFAULT_NAMESPACE):
        self.namespace = namespace

    def evaluate(self, module_set: ModuleSet, input_data: Any) -> List[RawResult]:
        start_time = time.time()

        modules = sorted(
            (m for m in module_set if is_eligible(m, self.namespace)),
            key=lambda m: m.identity,
        )

        results = []
        for module in modules:
            query = f"data.{module.identity}"
            try:
                value = self._evaluate_module(module, input_data)
                expression = ExpressionValue(value=value, text=query)
            except Exception as e:
                # Keep evaluating the remaining modules
                logger.warning(f"Evaluation of {module.identity} failed: {e}")
                expression = ExpressionValue(
                    value={"error": f"{type(e).__name__}: {e}"},
                    text=query,
                )
            results.append(RawResult(
                expressions=[expression],
                bindings={"name": module.identity},
            ))

        execution_time_ms = int((time.time() - start_time) * 1000)
        logger.debug(f"Evaluated {len(results)} modules in {execution_time_ms} ms")
        return results

    def _evaluate_module(self, module: Module, input_data: Any) -> dict:
        """
        Run one module's checks.

        ``valid`` defaults to "no violation triggered" when the module
        declares no explicit valid expression.
        """
        violations = []
        for rule in module.violations:
            if jsonLogic(rule.when, input_data):
                violations.append(jsonLogic(rule.msg, input_data))

        if module.valid is None:
            valid = not violations
        else:
            valid = jsonLogic(module.valid, input_data)

        return {"valid": valid, "violation": violations}
