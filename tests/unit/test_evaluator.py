"""Unit tests for the JSON Logic evaluator."""

from policy_audit.policy import JsonLogicEvaluator, RuleFile, compile_modules

from conftest import make_rule_content


def _compile(*items):
    files = [RuleFile(f"{p}.yaml", f"{p}.yaml", make_rule_content(f"gke.policy.{p}", body=body))
             for p, body in items]
    return compile_modules(files)


class TestJsonLogicEvaluator:
    """Tests for raw result production."""

    def test_violation_triggered(self):
        module_set = _compile(("p1", (
            "violation:\n"
            "  - msg: \"X has not enabled Y\"\n"
            "    when: {\"!\": {\"var\": \"x.y\"}}\n"
        )))
        results = JsonLogicEvaluator().evaluate(module_set, {"x": {"y": False}})

        assert len(results) == 1
        assert results[0].bindings == {"name": "gke.policy.p1"}
        assert results[0].expressions[0].value == {
            "valid": False,
            "violation": ["X has not enabled Y"],
        }

    def test_no_violation_is_valid(self):
        module_set = _compile(("p1", (
            "violation:\n"
            "  - msg: \"X has not enabled Y\"\n"
            "    when: {\"!\": {\"var\": \"x.y\"}}\n"
        )))
        results = JsonLogicEvaluator().evaluate(module_set, {"x": {"y": True}})

        assert results[0].expressions[0].value == {"valid": True, "violation": []}

    def test_explicit_valid_expression(self):
        module_set = _compile(("p1", "valid: {\"==\": [{\"var\": \"mode\"}, \"strict\"]}\n"))

        strict = JsonLogicEvaluator().evaluate(module_set, {"mode": "strict"})
        loose = JsonLogicEvaluator().evaluate(module_set, {"mode": "loose"})

        assert strict[0].expressions[0].value["valid"] is True
        assert loose[0].expressions[0].value["valid"] is False

    def test_message_expression(self):
        module_set = _compile(("p1", (
            "violation:\n"
            "  - msg: {\"cat\": [\"cluster \", {\"var\": \"name\"}, \" is public\"]}\n"
            "    when: true\n"
        )))
        results = JsonLogicEvaluator().evaluate(module_set, {"name": "prod"})

        assert results[0].expressions[0].value["violation"] == ["cluster prod is public"]

    def test_results_ordered_by_identity(self):
        module_set = _compile(("b", "violation: []\n"), ("a", "violation: []\n"))
        results = JsonLogicEvaluator().evaluate(module_set, {})

        assert [r.bindings["name"] for r in results] == ["gke.policy.a", "gke.policy.b"]

    def test_skips_other_namespaces_and_tests(self):
        files = [
            RuleFile("a.yaml", "a.yaml", make_rule_content("gke.policy.a")),
            RuleFile("lib.yaml", "lib.yaml", "package: gke.lib\n"),
            RuleFile("a_test.yaml", "a_test.yaml", "package: gke.policy.a\n"),
        ]
        results = JsonLogicEvaluator().evaluate(compile_modules(files), {})

        assert [r.bindings["name"] for r in results] == ["gke.policy.a"]

    def test_engine_error_yields_error_value(self):
        module_set = _compile(
            ("broken", "valid: {\"/\": [1, 0]}\n"),
            ("fine", "violation: []\n"),
        )
        results = JsonLogicEvaluator().evaluate(module_set, {})

        broken, fine = results
        assert broken.bindings == {"name": "gke.policy.broken"}
        assert broken.expressions[0].text == "data.gke.policy.broken"
        assert "ZeroDivisionError" in broken.expressions[0].value["error"]
        assert fine.expressions[0].value == {"valid": True, "violation": []}
