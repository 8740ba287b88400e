"""Result Aggregator - partition policies into valid, violated and errored."""

from typing import Any, Dict, List

from policy_audit.policy.models import Policy


class PolicyEvaluationResult:
    """
    Outcome of one evaluation run.

    Every added policy lands in exactly one bucket:
    - errored: any processing error (regardless of verdict)
    - valid[group]: verdict is true
    - violated[group]: otherwise
    """

    def __init__(self):
        self.valid: Dict[str, List[Policy]] = {}
        self.violated: Dict[str, List[Policy]] = {}
        self.errored: List[Policy] = []

    def add_policy(self, policy: Policy) -> None:
        """Classify a completed policy into its bucket."""
        if policy.processing_errors:
            self.errored.append(policy)
        elif policy.valid:
            self.valid.setdefault(policy.group, []).append(policy)
        else:
            self.violated.setdefault(policy.group, []).append(policy)

    def groups(self) -> List[str]:
        """Distinct groups seen in the valid and violated buckets, sorted."""
        return sorted(set(self.valid) | set(self.violated))

    def valid_policies(self, group: str) -> List[Policy]:
        return self.valid.get(group, [])

    def violated_policies(self, group: str) -> List[Policy]:
        return self.violated.get(group, [])

    @property
    def valid_count(self) -> int:
        return sum(len(p) for p in self.valid.values())

    @property
    def violated_count(self) -> int:
        return sum(len(p) for p in self.violated.values())

    @property
    def errored_count(self) -> int:
        return len(self.errored)

    @property
    def total_count(self) -> int:
        return self.valid_count + self.violated_count + self.errored_count

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "summary": {
                "valid": self.valid_count,
                "violated": self.violated_count,
                "errored": self.errored_count,
            },
            "valid": {
                group: [p.to_dict() for p in policies]
                for group, policies in sorted(self.valid.items())
            },
            "violated": {
                group: [p.to_dict() for p in policies]
                for group, policies in sorted(self.violated.items())
            },
            "errored": [p.to_dict() for p in self.errored],
        }
