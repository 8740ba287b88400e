"""Data types shared by the extraction, evaluation and classification steps."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class Policy:
    """A documented compliance check and, after evaluation, its outcome.

    Created as a skeleton by the metadata extractor (identity and
    documentation only) and completed once by the result correlator.
    """

    name: str = ""
    file: str = ""
    title: str = ""
    description: str = ""
    group: str = ""
    valid: Optional[bool] = None
    violations: List[str] = field(default_factory=list)
    processing_errors: List[Exception] = field(default_factory=list)

    @property
    def evaluated(self) -> bool:
        """True once a verdict has been copied onto the policy."""
        return self.valid is not None

    def metadata_errors(self) -> List[Exception]:
        """One MetadataError per empty required documentation field."""
        from policy_audit.policy.metadata import metadata_errors
        return metadata_errors(self)

    def skeleton(self) -> "Policy":
        """Copy of the identity and documentation fields without any outcome."""
        return Policy(
            name=self.name,
            file=self.file,
            title=self.title,
            description=self.description,
            group=self.group,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "file": self.file,
            "title": self.title,
            "description": self.description,
            "group": self.group,
            "valid": self.valid,
            "violations": list(self.violations),
            "processing_errors": [str(e) for e in self.processing_errors],
        }


@dataclass(frozen=True)
class RuleVerdict:
    """Validated outcome of one rule: the boundary form of a raw result value."""

    valid: bool
    violations: tuple = ()


@dataclass
class ExpressionValue:
    """One evaluated query expression. ``value`` is None when only text is set."""

    value: Any = None
    text: str = ""


@dataclass
class RawResult:
    """Untyped per-rule outcome as produced by an evaluator."""

    expressions: List[ExpressionValue] = field(default_factory=list)
    bindings: Optional[Dict[str, Any]] = None
