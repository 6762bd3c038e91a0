# tests/domain/test_navigation_rules.py
import copy
import pickle
from dataclasses import replace

import pytest

from domain.exceptions import NavigationRuleError
from domain.navigation.predicates import Comparison, ComparisonOperator, ResultPredicates, ResultSelector
from domain.navigation.rules import (
    NULL_STEP_IDENTIFIER,
    DirectStepNavigationRule,
    NullStepIdentifier,
    PredicateSkipStepNavigationRule,
    PredicateStepNavigationRule,
    StepNavigationRule,
)
from domain.results import ResultStore, TaskResult


def store(answers):
    return ResultStore(current=TaskResult.from_answers("survey", answers))


PAIN_HIGH = ResultPredicates.numeric(ResultSelector("pain"), minimum=5)
PAIN_LOW = Comparison(ResultSelector("pain"), ComparisonOperator.LESS_THAN, 5)
PAIN_ANY = Comparison(ResultSelector("pain"), ComparisonOperator.GREATER_OR_EQUAL, 0)


def pain_rule(default=None):
    return PredicateStepNavigationRule(
        [PAIN_HIGH, PAIN_LOW],
        ["medication_step", "exercise_step"],
        default,
    )


class TestNullStepIdentifier:
    def test_singleton(self):
        assert NullStepIdentifier() is NULL_STEP_IDENTIFIER

    def test_never_equal_to_a_step_identifier(self):
        for candidate in ("", "NULL_STEP_IDENTIFIER", "null", "None", "end"):
            assert NULL_STEP_IDENTIFIER != candidate

    def test_survives_copy_and_pickle(self):
        assert copy.copy(NULL_STEP_IDENTIFIER) is NULL_STEP_IDENTIFIER
        assert copy.deepcopy(NULL_STEP_IDENTIFIER) is NULL_STEP_IDENTIFIER
        assert pickle.loads(pickle.dumps(NULL_STEP_IDENTIFIER)) is NULL_STEP_IDENTIFIER


class TestPredicateStepNavigationRuleConstruction:
    @pytest.mark.parametrize("count", [1, 2, 5])
    def test_equal_lengths_construct(self, count):
        rule = PredicateStepNavigationRule([PAIN_HIGH] * count, ["a"] * count)
        assert len(rule.entries) == count

    @pytest.mark.parametrize("predicates,destinations", [(1, 0), (1, 2), (3, 2), (0, 1)])
    def test_unequal_lengths_fail(self, predicates, destinations):
        with pytest.raises(NavigationRuleError):
            PredicateStepNavigationRule([PAIN_HIGH] * predicates, ["a"] * destinations, "fallback")

    def test_empty_rule_with_default_is_legal(self):
        rule = PredicateStepNavigationRule([], [], "consent_step")
        assert rule.destination_step(store({})) == "consent_step"

    def test_empty_rule_without_default_fails(self):
        with pytest.raises(NavigationRuleError):
            PredicateStepNavigationRule([], [])

    def test_invalid_destination_fails(self):
        with pytest.raises(NavigationRuleError):
            PredicateStepNavigationRule([PAIN_HIGH], [""])
        with pytest.raises(NavigationRuleError):
            PredicateStepNavigationRule([PAIN_HIGH], [None])

    def test_non_predicate_fails(self):
        with pytest.raises(NavigationRuleError):
            PredicateStepNavigationRule(["pain >= 5"], ["a"])

    def test_entries_keep_author_order(self):
        rule = pain_rule()
        assert [e.destination for e in rule.entries] == ["medication_step", "exercise_step"]
        assert [e.predicate for e in rule.entries] == [PAIN_HIGH, PAIN_LOW]

    def test_rule_is_frozen(self):
        rule = pain_rule()
        with pytest.raises(Exception):  # FrozenInstanceError
            rule.default_step_identifier = "x"


class TestPredicateStepNavigationRuleEvaluation:
    def test_high_pain_goes_to_medication(self):
        assert pain_rule().destination_step(store({"pain": 7})) == "medication_step"

    def test_unanswered_pain_is_no_override(self):
        assert pain_rule().destination_step(store({})) is None

    def test_minor_ends_task(self):
        rule = PredicateStepNavigationRule(
            [Comparison(ResultSelector("age"), ComparisonOperator.LESS_THAN, 18)],
            [NULL_STEP_IDENTIFIER],
            "consent_step",
        )
        assert rule.destination_step(store({"age": 16})) is NULL_STEP_IDENTIFIER
        assert rule.destination_step(store({"age": 30})) == "consent_step"

    def test_first_match_wins(self):
        rule = PredicateStepNavigationRule(
            [PAIN_LOW, PAIN_ANY, PAIN_HIGH],
            ["low", "any", "high"],
        )
        assert rule.destination_step(store({"pain": 9})) == "any"
        assert rule.destination_step(store({"pain": 1})) == "low"

    def test_first_match_wins_regardless_of_length(self):
        predicates = [PAIN_ANY] + [PAIN_HIGH] * 20
        destinations = ["first"] + [f"other_{i}" for i in range(20)]
        rule = PredicateStepNavigationRule(predicates, destinations)
        assert rule.destination_step(store({"pain": 9})) == "first"

    def test_default_when_nothing_matches(self):
        assert pain_rule("fallback").destination_step(store({"age": 3})) == "fallback"

    def test_repeated_evaluation_is_idempotent(self):
        rule = pain_rule("fallback")
        results = store({"pain": 3})
        assert {rule.destination_step(results) for _ in range(5)} == {"exercise_step"}


class TestRuleCopies:
    def test_equality(self):
        assert pain_rule("x") == pain_rule("x")
        assert pain_rule("x") != pain_rule("y")

    def test_deepcopy_is_equal(self):
        rule = PredicateStepNavigationRule([PAIN_HIGH], [NULL_STEP_IDENTIFIER], "next")
        clone = copy.deepcopy(rule)
        assert clone == rule
        assert clone.destination_step_identifiers[0] is NULL_STEP_IDENTIFIER

    def test_with_entry_appends_and_leaves_source_unchanged(self):
        rule = pain_rule()
        extended = rule.with_entry(PAIN_ANY, "anything")
        assert len(rule.entries) == 2
        assert [e.destination for e in extended.entries][-1] == "anything"

    def test_replace_revalidates(self):
        with pytest.raises(NavigationRuleError):
            replace(pain_rule(), destination_step_identifiers=("only_one",))


class TestDirectStepNavigationRule:
    def test_always_returns_destination(self):
        rule = DirectStepNavigationRule("summary")
        assert rule.destination_step(store({})) == "summary"
        assert rule.destination_step(store({"pain": 9})) == "summary"

    def test_null_destination(self):
        rule = DirectStepNavigationRule(NULL_STEP_IDENTIFIER)
        assert rule.destination_step(store({})) is NULL_STEP_IDENTIFIER

    def test_shares_navigation_rule_contract(self):
        rules = [DirectStepNavigationRule("a"), pain_rule("b")]
        assert all(isinstance(r, StepNavigationRule) for r in rules)
        assert [r.destination_step(store({})) for r in rules] == ["a", "b"]

    def test_empty_destination_fails(self):
        with pytest.raises(NavigationRuleError):
            DirectStepNavigationRule("")


class TestPredicateSkipStepNavigationRule:
    def test_non_smoker_skips(self):
        rule = PredicateSkipStepNavigationRule(
            [ResultPredicates.boolean(ResultSelector("smoker"), False)]
        )
        assert rule.should_skip(store({"smoker": False})) is True
        assert rule.should_skip(store({"smoker": True})) is False

    def test_no_match_does_not_skip(self):
        rule = PredicateSkipStepNavigationRule([PAIN_HIGH])
        assert rule.should_skip(store({})) is False

    def test_flags_default_to_skip(self):
        rule = PredicateSkipStepNavigationRule([PAIN_HIGH, PAIN_LOW])
        assert rule.skip_flags == (True, True)

    def test_earlier_flag_wins(self):
        rule = PredicateSkipStepNavigationRule([PAIN_HIGH, PAIN_ANY], [False, True])
        assert rule.should_skip(store({"pain": 8})) is False
        assert rule.should_skip(store({"pain": 2})) is True

    def test_arity_mismatch_fails(self):
        with pytest.raises(NavigationRuleError):
            PredicateSkipStepNavigationRule([PAIN_HIGH, PAIN_LOW], [True])

    def test_empty_rule_fails(self):
        with pytest.raises(NavigationRuleError):
            PredicateSkipStepNavigationRule([])

    def test_with_entry(self):
        rule = PredicateSkipStepNavigationRule([PAIN_HIGH]).with_entry(PAIN_LOW, skip=False)
        assert rule.skip_flags == (True, False)

    @pytest.mark.parametrize("answers", [{"pain": 9}, {"pain": 2}, {"pain": None}, {}, {"pain": "x"}])
    def test_agrees_with_destination_rule_on_matching(self, answers):
        predicates = [PAIN_HIGH, PAIN_LOW]
        skip_rule = PredicateSkipStepNavigationRule(predicates)
        destination_rule = PredicateStepNavigationRule(predicates, ["high", "low"])
        results = store(answers)
        assert skip_rule.should_skip(results) == (destination_rule.destination_step(results) is not None)
