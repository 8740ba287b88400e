"""Unit tests for PolicyEvaluationResult classification."""

from policy_audit.policy import Policy, PolicyEvaluationResult


class TestPolicyEvaluationResult:
    """Tests for bucket assignment and counts."""

    def test_new_result_is_empty(self):
        r = PolicyEvaluationResult()
        assert r.valid == {}
        assert r.violated == {}
        assert r.errored == []
        assert r.total_count == 0

    def test_groups(self):
        r = PolicyEvaluationResult()
        r.add_policy(Policy(group="test-one", valid=True))
        r.add_policy(Policy(group="test-one", valid=False))
        r.add_policy(Policy(group="test-two", valid=True))
        r.add_policy(Policy(group="test-two", valid=False))
        r.add_policy(Policy(group="test-three", valid=False))

        assert r.groups() == ["test-one", "test-three", "test-two"]

    def test_errored_policies_do_not_contribute_groups(self):
        r = PolicyEvaluationResult()
        r.add_policy(Policy(group="hidden", processing_errors=[ValueError("error")]))
        assert r.groups() == []

    def test_add_policy(self):
        group = "groupOne"
        r = PolicyEvaluationResult()
        for policy in [
            Policy(group=group, valid=True),
            Policy(group=group, valid=True),
            Policy(group=group, valid=False, violations=["error"]),
            Policy(group=group, processing_errors=[ValueError("error")]),
        ]:
            r.add_policy(policy)

        assert len(r.valid[group]) == 2
        assert len(r.violated[group]) == 1
        assert len(r.errored) == 1

    def test_errors_win_over_verdict(self):
        """A policy with processing errors is errored even if valid is true."""
        r = PolicyEvaluationResult()
        r.add_policy(Policy(group="g", valid=True, processing_errors=[ValueError("e")]))

        assert r.valid_count == 0
        assert r.errored_count == 1

    def test_unknown_verdict_is_violated(self):
        r = PolicyEvaluationResult()
        r.add_policy(Policy(group="g"))
        assert r.violated_count == 1

    def test_empty_group_key(self):
        r = PolicyEvaluationResult()
        r.add_policy(Policy(valid=True))
        assert r.groups() == [""]
        assert len(r.valid_policies("")) == 1

    def test_counts(self):
        r = PolicyEvaluationResult()
        for group in ["groupOne", "groupOne", "groupTwo", "groupThree"]:
            r.add_policy(Policy(group=group, valid=False, violations=["error"]))
        for group in ["groupOne", "groupTwo", "groupTwo"]:
            r.add_policy(Policy(group=group, valid=True))
        for group in ["groupOne", "groupTwo"]:
            r.add_policy(Policy(group=group, processing_errors=[ValueError("error")]))

        assert r.violated_count == 4
        assert r.valid_count == 3
        assert r.errored_count == 2
        assert r.total_count == 9

    def test_lookup_missing_group(self):
        r = PolicyEvaluationResult()
        assert r.valid_policies("nope") == []
        assert r.violated_policies("nope") == []

    def test_to_dict(self):
        r = PolicyEvaluationResult()
        r.add_policy(Policy(name="gke.policy.a", group="g", valid=False, violations=["v"]))
        r.add_policy(Policy(processing_errors=[ValueError("broken")]))

        data = r.to_dict()
        assert data["summary"] == {"valid": 0, "violated": 1, "errored": 1}
        assert data["violated"]["g"][0]["violations"] == ["v"]
        assert data["errored"][0]["processing_errors"] == ["broken"]
