"""
Pytest fixtures and configuration for policy_audit tests.
Provides rule file builders and a scripted evaluator.
"""

from typing import Any, List, Optional

import pytest

from policy_audit.policy import IEvaluator, ModuleSet, RawResult, RuleFile


def make_rule_content(
    package: str,
    title: Optional[str] = "TestTitle",
    description: Optional[str] = "TestDescription",
    group: Optional[str] = "TestGroup",
    body: str = "violation: []\n",
) -> str:
    """Build rule file text, omitting header fields passed as None."""
    header = ["# METADATA"]
    if title is not None:
        header.append(f"# title: {title}")
    if description is not None:
        header.append(f"# description: {description}")
    if group is not None:
        header.append("# custom:")
        header.append(f"#   group: {group}")
    return "\n".join(header) + f"\npackage: {package}\n" + body


class ScriptedEvaluator(IEvaluator):
    """Evaluator returning a fixed list of raw results."""

    def __init__(self, results: List[RawResult]):
        self.results = results
        self.calls: List[ModuleSet] = []

    def evaluate(self, module_set: ModuleSet, input_data: Any) -> List[RawResult]:
        self.calls.append(module_set)
        return list(self.results)


@pytest.fixture
def rule_file():
    """Factory for RuleFile objects under the default namespace."""
    def _make(policy_id: str, folder: str = "folder", **kwargs) -> RuleFile:
        name = f"{policy_id}.yaml"
        content = make_rule_content(f"gke.policy.{policy_id}", **kwargs)
        return RuleFile(name=name, path=f"{folder}/{name}", content=content)
    return _make


@pytest.fixture
def policy_dir(tmp_path):
    """Create a policy directory with two valid rules and one test module."""
    base = tmp_path / "policies"
    (base / "security").mkdir(parents=True)
    (base / "security" / "private_cluster.yaml").write_text(make_rule_content(
        "gke.policy.private_cluster",
        title="Private cluster",
        description="Cluster should be private",
        group="Security",
        body=(
            "violation:\n"
            "  - msg: \"GKE cluster is not private\"\n"
            "    when: {\"!\": {\"var\": \"private_cluster_config.enable_private_nodes\"}}\n"
        ),
    ))
    (base / "release_channel.yaml").write_text(make_rule_content(
        "gke.policy.release_channel",
        title="Release channel",
        description="Cluster should use a release channel",
        group="Management",
        body=(
            "violation:\n"
            "  - msg: \"GKE cluster is not enrolled in a release channel\"\n"
            "    when: {\"!\": {\"var\": \"release_channel.channel\"}}\n"
        ),
    ))
    (base / "release_channel_test.yaml").write_text(
        "package: gke.policy.release_channel\nviolation: []\n"
    )
    (base / "README.txt").write_text("not a rule file")
    return base
