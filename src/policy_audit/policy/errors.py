"""Error taxonomy for policy compilation and evaluation.

Compile errors are fatal to the call that raised them. Every other error
type is recorded against a policy (or an unnamed placeholder) and surfaces
in the errored bucket of the evaluation result.
"""

from enum import Enum
from typing import List, Optional


class PolicyErrorCode(str, Enum):
    """Stable error codes for policy processing failures."""

    COMPILE_FAILED = "COMPILE_FAILED"  # Rule source is syntactically invalid
    DUPLICATE_IDENTITY = "DUPLICATE_IDENTITY"  # Two files declare the same package
    METADATA_MISSING = "METADATA_MISSING"  # Required documentation field absent
    RESULT_MALFORMED = "RESULT_MALFORMED"  # Raw outcome has no value or bindings
    RESULT_UNIDENTIFIABLE = "RESULT_UNIDENTIFIABLE"  # Bindings lack a usable name
    RESULT_SHAPE = "RESULT_SHAPE"  # valid/violation missing or wrong type
    POLICY_NOT_FOUND = "POLICY_NOT_FOUND"  # Name matches no compiled policy
    EVALUATION_FAILED = "EVALUATION_FAILED"  # Engine raised while running a rule
    AGENT_STATE = "AGENT_STATE"  # Operation called out of order


class PolicyError(Exception):
    """Base exception class for all policy-related errors."""

    def __init__(
        self,
        message: str,
        code: PolicyErrorCode = PolicyErrorCode.COMPILE_FAILED,
        original_error: Optional[Exception] = None,
    ):
        """
        Initialize the PolicyError.

        Args:
            message: Error message
            code: Error code for categorization
            original_error: Original exception if this is a wrapped error
        """
        self.message = message
        self.code = code
        self.original_error = original_error
        super().__init__(self.message)


class CompileError(PolicyError):
    """Raised when any rule file in a batch fails to compile."""

    def __init__(
        self,
        message: str,
        file: Optional[str] = None,
        problems: Optional[List[str]] = None,
        code: PolicyErrorCode = PolicyErrorCode.COMPILE_FAILED,
        original_error: Optional[Exception] = None,
    ):
        self.file = file
        self.problems = problems or []
        super().__init__(message, code=code, original_error=original_error)


class MetadataError(PolicyError):
    """A required documentation field is missing from a policy header."""

    def __init__(self, policy: str, field: str):
        self.policy = policy
        self.field = field
        super().__init__(
            f"policy {policy!r} has no {field!r} metadata field",
            code=PolicyErrorCode.METADATA_MISSING,
        )


class ShapeError(PolicyError):
    """Raw evaluation output does not have the expected shape."""

    def __init__(self, message: str, code: PolicyErrorCode = PolicyErrorCode.RESULT_SHAPE):
        super().__init__(message, code=code)


class CorrelationError(PolicyError):
    """Raw evaluation output cannot be attributed to any policy."""

    def __init__(self, message: str, code: PolicyErrorCode = PolicyErrorCode.RESULT_UNIDENTIFIABLE):
        super().__init__(message, code=code)


class PolicyLookupError(PolicyError, LookupError):
    """Correlation name does not match a compiled policy."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f"policy {name!r} was not found in compiled policies",
            code=PolicyErrorCode.POLICY_NOT_FOUND,
        )


class PolicyAgentError(PolicyError):
    """Agent operations invoked before their prerequisites."""

    def __init__(self, message: str):
        super().__init__(message, code=PolicyErrorCode.AGENT_STATE)
