"""
Rule Compiler - turns raw rule files into an immutable module set.

A rule file is a YAML document with a ``package`` identity, an optional
list of ``violation`` checks and an optional ``valid`` expression. Checks
are JSON Logic expressions. A comment header introduced by a
``# METADATA`` line documents the policy:

    # METADATA
    # title: Control plane access restricted
    # description: Limit control plane access to authorized networks
    # custom:
    #   group: Security
    package: gke.policy.control_plane_access

    violation:
      - msg: "Cluster has not enabled master authorized networks"
        when: {"!": {"var": "master_authorized_networks_config.enabled"}}

Compilation is all-or-nothing: problems are collected across the whole
batch and a single CompileError is raised if any file is invalid.
"""

import logging
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

import yaml

from policy_audit.policy.errors import CompileError, PolicyErrorCode
from policy_audit.policy.files import RuleFile

logger = logging.getLogger(__name__)

METADATA_MARKER = "# METADATA"

PACKAGE_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$")
PACKAGE_LINE_PATTERN = re.compile(r"^package\s*:")

ALLOWED_KEYS = {"package", "violation", "valid"}

# Operator argument count validation rules
OPERATOR_ARG_COUNTS = {
    # Comparison operators
    "==": 2,
    "===": 2,
    "!=": 2,
    "!==": 2,
    ">": 2,
    ">=": 2,
    "<": lambda n: n in (2, 3),  # 3 args: between
    "<=": lambda n: n in (2, 3),

    # Logical operators
    "!": 1,
    "!!": 1,
    "and": lambda n: n >= 2,
    "or": lambda n: n >= 2,

    # Conditional
    "if": lambda n: n >= 3 and n % 2 == 1,
    "?:": 3,

    # Membership and strings
    "in": 2,
    "cat": lambda n: n >= 1,

    # Arithmetic
    "+": lambda n: n >= 1,
    "-": lambda n: n in (1, 2),
    "*": lambda n: n >= 1,
    "/": 2,
    "%": 2,
    "min": lambda n: n >= 1,
    "max": lambda n: n >= 1,

    # Data access
    "var": lambda n: n in (0, 1, 2),
    "missing": lambda n: n >= 1,
    "missing_some": 2,
    "merge": lambda n: n >= 0,
    "count": lambda n: n >= 0,
    "log": 1,
}


@dataclass(frozen=True)
class ViolationRule:
    """One violation check: ``msg`` is reported when ``when`` is truthy."""

    msg: Any
    when: Any


@dataclass(frozen=True)
class Module:
    """Compiled form of a single rule file."""

    identity: str
    file: RuleFile
    annotations: Mapping[str, Any] = field(default_factory=dict)
    violations: Tuple[ViolationRule, ...] = ()
    valid: Any = None

    @property
    def path(self) -> str:
        return self.file.path

    @property
    def is_test(self) -> bool:
        return self.file.is_test


class ModuleSet:
    """Read-only snapshot of a successfully compiled batch.

    Modules are keyed by file path. The snapshot is handed to both the
    metadata extractor and the evaluator; neither mutates it.
    """

    def __init__(self, modules: Iterable[Module]):
        self._modules = MappingProxyType({m.path: m for m in modules})

    @property
    def modules(self) -> Mapping[str, Module]:
        return self._modules

    def __len__(self) -> int:
        return len(self._modules)

    def __iter__(self) -> Iterator[Module]:
        return iter(self._modules.values())

    def __contains__(self, path: object) -> bool:
        return path in self._modules

    def get(self, path: str) -> Optional[Module]:
        return self._modules.get(path)

    def by_identity(self, identity: str) -> List[Module]:
        """Return every module (policy and test) declaring an identity."""
        return [m for m in self if m.identity == identity]

    def restrict(self, identities: Iterable[str]) -> "ModuleSet":
        """Return a new snapshot holding only non-test modules with the given identities."""
        wanted = set(identities)
        return ModuleSet(m for m in self if m.identity in wanted and not m.is_test)


def compile_modules(files: Iterable[RuleFile]) -> ModuleSet:
    """
    Compile a batch of rule files.

    Args:
        files: Complete collection of rule files

    Returns:
        ModuleSet containing one Module per file

    Raises:
        CompileError: If any file is invalid or two policy files share an identity
    """
    files = list(files)
    modules: List[Module] = []
    problems: List[Tuple[str, str]] = []
    seen_paths = set()

    for rule_file in files:
        if rule_file.path in seen_paths:
            problems.append((rule_file.path, "duplicate file path in batch"))
            continue
        seen_paths.add(rule_file.path)

        module, file_problems = parse_module(rule_file)
        if file_problems:
            problems.extend((rule_file.path, p) for p in file_problems)
        else:
            modules.append(module)

    if problems:
        first_file = problems[0][0]
        details = [f"{path}: {problem}" for path, problem in problems]
        raise CompileError(
            f"failed to compile {len({p for p, _ in problems})} of {len(files)} rule files: "
            + "; ".join(details),
            file=first_file,
            problems=details,
        )

    _check_unique_identities(modules)

    logger.info(f"Compiled {len(modules)} rule modules")
    return ModuleSet(modules)


def _check_unique_identities(modules: List[Module]) -> None:
    """Reject two non-test modules declaring the same identity."""
    owners: Dict[str, str] = {}
    for module in modules:
        if module.is_test:
            continue
        if module.identity in owners:
            message = (
                f"policy identity {module.identity!r} declared by both "
                f"{owners[module.identity]} and {module.path}"
            )
            raise CompileError(
                message,
                file=module.path,
                problems=[message],
                code=PolicyErrorCode.DUPLICATE_IDENTITY,
            )
        owners[module.identity] = module.path


def parse_module(rule_file: RuleFile) -> Tuple[Optional[Module], List[str]]:
    """
    Parse and validate a single rule file.

    Returns:
        Tuple of (module or None, list of problems). The module is None
        whenever problems is non-empty.
    """
    problems: List[str] = []

    try:
        document = yaml.safe_load(rule_file.content)
    except yaml.YAMLError as e:
        return None, [f"invalid syntax: {e}"]

    if not isinstance(document, dict):
        return None, ["rule file must be a mapping with a 'package' key"]

    unknown = sorted(set(map(str, document)) - ALLOWED_KEYS)
    if unknown:
        problems.append(f"unknown top-level keys: {', '.join(unknown)}")

    identity = document.get("package")
    if not isinstance(identity, str) or not PACKAGE_PATTERN.match(identity):
        problems.append(f"invalid or missing package declaration: {identity!r}")

    try:
        annotations = parse_metadata_header(rule_file.content)
    except ValueError as e:
        problems.append(str(e))
        annotations = {}

    violations: List[ViolationRule] = []
    raw_violations = document.get("violation", [])
    if raw_violations is None:
        raw_violations = []
    if not isinstance(raw_violations, list):
        problems.append("'violation' must be a list of checks")
        raw_violations = []
    for i, entry in enumerate(raw_violations):
        if not isinstance(entry, dict) or "msg" not in entry or "when" not in entry:
            problems.append(f"violation[{i}] must be a mapping with 'msg' and 'when'")
            continue
        extra = sorted(set(map(str, entry)) - {"msg", "when"})
        if extra:
            problems.append(f"violation[{i}] has unknown keys: {', '.join(extra)}")
        if not isinstance(entry["msg"], (str, dict)):
            problems.append(f"violation[{i}].msg must be a string or an operator node")
        problems.extend(validate_expression(entry["msg"], f"violation[{i}].msg"))
        problems.extend(validate_expression(entry["when"], f"violation[{i}].when"))
        violations.append(ViolationRule(msg=entry["msg"], when=entry["when"]))

    valid = document.get("valid")
    if valid is not None:
        problems.extend(validate_expression(valid, "valid"))

    if problems:
        return None, problems

    module = Module(
        identity=identity,
        file=rule_file,
        annotations=MappingProxyType(annotations),
        violations=tuple(violations),
        valid=valid,
    )
    return module, []


def parse_metadata_header(content: str) -> Dict[str, Any]:
    """
    Read the METADATA comment block preceding the package declaration.

    Args:
        content: Raw rule file text

    Returns:
        Parsed header mapping (empty when the file has no header)

    Raises:
        ValueError: If the header is not a YAML mapping
    """
    header_lines: Optional[List[str]] = None
    for line in content.splitlines():
        if PACKAGE_LINE_PATTERN.match(line):
            break
        if header_lines is None:
            if line.strip() == METADATA_MARKER:
                header_lines = []
            continue
        if not line.startswith("#"):
            break
        text = line[1:]
        if text.startswith(" "):
            text = text[1:]
        header_lines.append(text)

    if not header_lines:
        return {}

    try:
        header = yaml.safe_load("\n".join(header_lines))
    except yaml.YAMLError as e:
        raise ValueError(f"invalid METADATA header: {e}")

    if header is None:
        return {}
    if not isinstance(header, dict):
        raise ValueError("METADATA header must be a mapping")
    return header


def validate_expression(node: Any, location: str) -> List[str]:
    """
    Structurally validate a JSON Logic expression.

    Args:
        node: Expression tree (mapping, list or scalar)
        location: Path of the node in the rule file, used in messages

    Returns:
        List of problems (empty if valid)
    """
    problems: List[str] = []

    if isinstance(node, list):
        for i, item in enumerate(node):
            problems.extend(validate_expression(item, f"{location}[{i}]"))
        return problems

    if not isinstance(node, dict):
        return problems

    if len(node) != 1:
        return [f"{location}: operator node must have exactly one key, got {len(node)}"]

    op, args = next(iter(node.items()))
    if op not in OPERATOR_ARG_COUNTS:
        return [f"{location}: unknown operator {op!r}"]

    if not isinstance(args, (list, tuple)):
        args = [args]

    expected = OPERATOR_ARG_COUNTS[op]
    arg_count = len(args)
    if callable(expected):
        if not expected(arg_count):
            problems.append(f"{location}: operator {op!r} does not accept {arg_count} arguments")
    elif arg_count != expected:
        problems.append(f"{location}: operator {op!r} expects {expected} arguments, got {arg_count}")

    for i, arg in enumerate(args):
        problems.extend(validate_expression(arg, f"{location}.{op}[{i}]"))

    return problems
