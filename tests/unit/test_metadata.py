"""Unit tests for policy metadata extraction."""

import pytest

from policy_audit.policy import (
    MetadataError,
    Policy,
    PolicyAgentError,
    RuleFile,
    compile_modules,
    extract_policies,
    metadata_errors,
)
from policy_audit.policy.metadata import map_module

from conftest import make_rule_content


class TestMapModule:
    """Tests for module to policy skeleton mapping."""

    def test_all_fields_mapped(self):
        file = "folder/test_one.yaml"
        content = make_rule_content(
            "gke.policy.test",
            title="This is title",
            description="This is long description",
            group="TestGroup",
        )
        module_set = compile_modules([RuleFile("test_one.yaml", file, content)])
        policy = map_module(module_set.get(file))

        assert policy.name == "gke.policy.test"
        assert policy.file == file
        assert policy.title == "This is title"
        assert policy.description == "This is long description"
        assert policy.group == "TestGroup"
        assert policy.valid is None
        assert policy.violations == []

    def test_header_values_round_trip_verbatim(self):
        """Header strings come back exactly as written."""
        content = make_rule_content("gke.policy.p1", title="T", description="D", group="G")
        module_set = compile_modules([RuleFile("p1.yaml", "p1.yaml", content)])
        policy = map_module(module_set.get("p1.yaml"))

        assert (policy.title, policy.description, policy.group) == ("T", "D", "G")

    def test_absent_fields_left_empty(self):
        content = "# METADATA\n# title: Only title\npackage: gke.policy.p\n"
        module_set = compile_modules([RuleFile("p.yaml", "p.yaml", content)])
        policy = map_module(module_set.get("p.yaml"))

        assert policy.title == "Only title"
        assert policy.description == ""
        assert policy.group == ""


class TestMetadataErrors:
    """Tests for per-field metadata diagnostics."""

    @pytest.mark.parametrize("policy,expected", [
        (Policy(title="title", description="description", group="group"), 0),
        (Policy(title="title", description="description"), 1),
        (Policy(title="title"), 2),
        (Policy(), 3),
    ])
    def test_error_count_matches_empty_fields(self, policy, expected):
        assert len(metadata_errors(policy)) == expected
        assert len(policy.metadata_errors()) == expected

    def test_errors_name_field(self):
        errors = metadata_errors(Policy(name="gke.policy.x", title="t", description="d"))

        assert len(errors) == 1
        assert isinstance(errors[0], MetadataError)
        assert errors[0].field == "group"
        assert errors[0].policy == "gke.policy.x"


class TestExtractPolicies:
    """Tests for extraction over a compiled module set."""

    def test_incomplete_metadata_excluded(self):
        files = [
            RuleFile("ok.yaml", "folder/ok.yaml", make_rule_content("gke.policy.testOk")),
            RuleFile("bad.yaml", "folder/bad.yaml",
                     "# METADATA\n# title:  TestTitle\npackage: gke.policy.badMeta\n"),
            RuleFile("bad2.yaml", "folder/bad2.yaml",
                     make_rule_content("gke.policy.badMetaTwo", group=None)),
        ]
        policies, errors = extract_policies(compile_modules(files))

        assert [p.name for p in policies] == ["gke.policy.testOk"]
        assert len(errors) == 3
        assert sum(1 for e in errors if e.policy == "gke.policy.badMetaTwo") == 1

    def test_namespace_and_test_modules_skipped(self):
        content_three = make_rule_content("gke.something.invalid")
        files = [
            RuleFile("one.yaml", "folder/one.yaml", make_rule_content("gke.policy.package_one")),
            RuleFile("three.yaml", "folder/three.yaml", content_three),
            RuleFile("one_test.yaml", "folder/one_test.yaml",
                     make_rule_content("gke.policy.package_one_tests")),
            RuleFile("prefix.yaml", "folder/prefix.yaml", make_rule_content("gke.policyx.other")),
        ]
        policies, errors = extract_policies(compile_modules(files))

        assert [p.name for p in policies] == ["gke.policy.package_one"]
        assert errors == []

    def test_custom_namespace(self):
        files = [RuleFile("a.yaml", "a.yaml", make_rule_content("acme.rules.a"))]
        policies, _ = extract_policies(compile_modules(files), namespace="acme.rules")
        assert len(policies) == 1

    def test_no_module_set(self):
        with pytest.raises(PolicyAgentError):
            extract_policies(None)
