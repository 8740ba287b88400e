"""
Metadata Extractor - build policy skeletons from compiled modules.

A module becomes a policy only when its identity lies under the required
namespace and it is not a test module. Documentation fields are read from
the module's METADATA header; fields that are absent stay empty and are
reported as MetadataError entries instead of failing the batch.
"""

import logging
from typing import Any, List, Mapping, Optional, Tuple

from policy_audit.policy.compiler import Module, ModuleSet
from policy_audit.policy.errors import MetadataError, PolicyAgentError
from policy_audit.policy.models import Policy

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "gke.policy"

REQUIRED_FIELDS = ("title", "description", "group")


def in_namespace(identity: str, namespace: str) -> bool:
    """True if identity is a child of the dotted namespace."""
    return identity.startswith(namespace + ".")


def is_eligible(module: Module, namespace: str = DEFAULT_NAMESPACE) -> bool:
    """Eligible modules are non-test modules under the policy namespace."""
    return in_namespace(module.identity, namespace) and not module.is_test


def _text(value: Any) -> str:
    if value is None or isinstance(value, (dict, list)):
        return ""
    return value if isinstance(value, str) else str(value)


def map_module(module: Module) -> Policy:
    """
    Map a compiled module to a policy skeleton.

    Args:
        module: Compiled module

    Returns:
        Policy with identity, file and documentation fields populated
    """
    annotations: Mapping[str, Any] = module.annotations or {}
    custom = annotations.get("custom")
    if not isinstance(custom, Mapping):
        custom = {}

    return Policy(
        name=module.identity,
        file=module.path,
        title=_text(annotations.get("title")),
        description=_text(annotations.get("description")),
        group=_text(custom.get("group")),
    )


def metadata_errors(policy: Policy) -> List[MetadataError]:
    """One error per required documentation field that is empty."""
    return [
        MetadataError(policy.name, field_name)
        for field_name in REQUIRED_FIELDS
        if not getattr(policy, field_name)
    ]


def extract_policies(
    module_set: Optional[ModuleSet],
    namespace: str = DEFAULT_NAMESPACE,
) -> Tuple[List[Policy], List[MetadataError]]:
    """
    Extract policies from a compiled module set.

    Policies with incomplete metadata are left out of the returned policy
    list; their diagnostics are returned in the error list instead.

    Args:
        module_set: Result of compile_modules()
        namespace: Required identity prefix

    Returns:
        Tuple of (policies with complete metadata, metadata errors)

    Raises:
        PolicyAgentError: If module_set is None
    """
    if module_set is None:
        raise PolicyAgentError("no compiled modules: compile rule files first")

    policies: List[Policy] = []
    errors: List[MetadataError] = []

    for module in sorted(module_set, key=lambda m: m.path):
        if not is_eligible(module, namespace):
            logger.debug(f"Skipping module {module.identity} ({module.path})")
            continue
        policy = map_module(module)
        policy_errors = metadata_errors(policy)
        if policy_errors:
            errors.extend(policy_errors)
            continue
        policies.append(policy)

    logger.debug(f"Extracted {len(policies)} policies, {len(errors)} metadata errors")
    return policies, errors
