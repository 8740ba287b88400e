"""
Result Correlator - attach raw evaluation outcomes to policy skeletons.

Raw results are untyped. Each one is parsed at the boundary into either a
RuleVerdict or an error; errors are recorded on the matching policy, or on
an unnamed placeholder when the result cannot be attributed. Nothing is
dropped: every raw result and every policy ends up in the returned
PolicyEvaluationResult.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from policy_audit.policy.errors import (
    CorrelationError,
    PolicyErrorCode,
    PolicyLookupError,
    ShapeError,
)
from policy_audit.policy.metadata import DEFAULT_NAMESPACE, in_namespace
from policy_audit.policy.models import Policy, RawResult, RuleVerdict
from policy_audit.policy.result import PolicyEvaluationResult

logger = logging.getLogger(__name__)


def _type_name(value: Any) -> str:
    return type(value).__name__


def get_bool_from_map(name: str, m: Optional[Mapping[str, Any]]) -> bool:
    """Read a required boolean key."""
    if not m or name not in m:
        raise ShapeError(f"map does not contain key: {name!r}")
    value = m[name]
    if not isinstance(value, bool):
        raise ShapeError(f"key {name!r} type is {_type_name(value)!r} (not a bool)")
    return value


def get_string_from_map(name: str, m: Optional[Mapping[str, Any]]) -> str:
    """Read a required string key."""
    if not m or name not in m:
        raise ShapeError(f"map does not contain key: {name!r}")
    value = m[name]
    if not isinstance(value, str):
        raise ShapeError(f"key {name!r} type is {_type_name(value)!r} (not a string)")
    return value


def get_string_list_from_map(name: str, m: Optional[Mapping[str, Any]]) -> List[str]:
    """Read a required key holding a list of strings."""
    if not m or name not in m:
        raise ShapeError(f"map does not contain key: {name!r}")
    value = m[name]
    if not isinstance(value, (list, tuple)):
        raise ShapeError(f"key {name!r} type is {_type_name(value)!r} (not a list)")
    for i, item in enumerate(value):
        if not isinstance(item, str):
            raise ShapeError(f"key's {name!r} list element {i} is not a string")
    return list(value)


def get_result_data_for_eval(result: RawResult) -> Tuple[Any, Dict[str, Any]]:
    """
    Return the first expression value and the bindings of a raw result.

    Raises:
        ShapeError: If there is no expression, the expression has no value,
            or the result has no bindings
    """
    if not result.expressions:
        raise ShapeError("result has no expressions", code=PolicyErrorCode.RESULT_MALFORMED)
    expression = result.expressions[0]
    if expression.value is None:
        text = f": {expression.text}" if expression.text else ""
        raise ShapeError(
            f"result expression has no value{text}",
            code=PolicyErrorCode.RESULT_MALFORMED,
        )
    if not result.bindings:
        raise ShapeError("result has no bindings", code=PolicyErrorCode.RESULT_MALFORMED)
    return expression.value, result.bindings


def map_bindings(bindings: Mapping[str, Any]) -> str:
    """
    Read the correlation name from result bindings.

    Raises:
        CorrelationError: If the name is missing or not a string
    """
    try:
        return get_string_from_map("name", bindings)
    except ShapeError as e:
        raise CorrelationError(f"unidentifiable result: {e}")


def parse_verdict(value: Any) -> RuleVerdict:
    """
    Validate a raw expression value into a RuleVerdict.

    ``valid`` is required and must be a bool. ``violation`` is optional
    and, when present, must be a list of strings. A value carrying an ``error`` key records an engine failure for the
    rule and is rejected with its message.

    Raises:
        ShapeError: If the value does not have that shape
    """
    if not isinstance(value, Mapping):
        raise ShapeError(f"result value type is {_type_name(value)!r} (expected a mapping)")
    if "error" in value:
        raise ShapeError(
            f"evaluation failed: {value['error']}",
            code=PolicyErrorCode.EVALUATION_FAILED,
        )
    valid = get_bool_from_map("valid", value)
    violations: List[str] = []
    if "violation" in value:
        violations = get_string_list_from_map("violation", value)
    return RuleVerdict(valid=valid, violations=tuple(violations))


def resolve_policy(
    name: str,
    policies: Mapping[str, Policy],
    namespace: str = DEFAULT_NAMESPACE,
) -> Optional[Policy]:
    """Look up a policy by binding name, accepting short names under the namespace."""
    policy = policies.get(name)
    if policy is None and not in_namespace(name, namespace):
        policy = policies.get(f"{namespace}.{name}")
    return policy


def correlate(
    raw_results: Iterable[RawResult],
    policies: Mapping[str, Policy],
    namespace: str = DEFAULT_NAMESPACE,
) -> PolicyEvaluationResult:
    """
    Correlate raw results with policy skeletons and classify them.

    The skeletons in ``policies`` are completed in place; callers that
    evaluate repeatedly should pass fresh copies.

    Args:
        raw_results: Evaluator output
        policies: Policy skeletons keyed by identity
        namespace: Required identity prefix, used to resolve short names

    Returns:
        New PolicyEvaluationResult
    """
    result = PolicyEvaluationResult()
    matched: Dict[str, Policy] = {}
    unmatched: List[Policy] = []

    for raw in raw_results:
        try:
            value, bindings = get_result_data_for_eval(raw)
            name = map_bindings(bindings)
        except (ShapeError, CorrelationError) as e:
            logger.warning(f"Unattributable evaluation result: {e}")
            unmatched.append(Policy(processing_errors=[e]))
            continue

        policy = resolve_policy(name, policies, namespace)
        if policy is None:
            error = PolicyLookupError(name)
            logger.warning(str(error))
            unmatched.append(Policy(name=name, processing_errors=[error]))
            continue

        if policy.name in matched:
            policy.processing_errors.append(
                ShapeError(f"policy {policy.name!r} received more than one result")
            )
            continue
        matched[policy.name] = policy

        try:
            verdict = parse_verdict(value)
        except ShapeError as e:
            logger.warning(f"Invalid result for policy {policy.name}: {e}")
            policy.processing_errors.append(e)
            continue

        policy.valid = verdict.valid
        policy.violations = list(verdict.violations)
        logger.debug(f"Policy {policy.name}: valid={policy.valid}")

    for name, policy in policies.items():
        if name not in matched:
            policy.processing_errors.append(
                CorrelationError(
                    f"policy {name!r} produced no evaluation result",
                    code=PolicyErrorCode.POLICY_NOT_FOUND,
                )
            )
            unmatched.append(policy)

    for policy in matched.values():
        result.add_policy(policy)
    for policy in unmatched:
        result.add_policy(policy)

    return result
