# tests/domain/test_results.py
import pytest

from domain.exceptions import ValidationError
from domain.navigation.predicates import ResultSelector
from domain.results import QuestionResult, ResultStore, StepResult, TaskResult


class TestTaskResult:
    def test_from_answers_single_question_steps(self):
        task = TaskResult.from_answers("survey", {"pain": 7, "smoker": None})
        assert [s.identifier for s in task.results] == ["pain", "smoker"]
        assert task.step_result("pain").question_result("pain").answer == 7
        assert task.step_result("smoker").question_result("smoker").is_skipped is True

    def test_from_answers_multi_question_step(self):
        task = TaskResult.from_answers("survey", {"vitals": {"pulse": 80, "temp": 36.6}})
        step = task.step_result("vitals")
        assert step.question_result("pulse").answer == 80
        assert step.question_result("temp").answer == 36.6
        assert step.question_result("weight") is None

    def test_revisited_step_uses_last_result(self):
        task = TaskResult(
            identifier="survey",
            results=[
                StepResult("pain", [QuestionResult("pain", 2)]),
                StepResult("pain", [QuestionResult("pain", 9)]),
            ],
        )
        assert task.step_result("pain").question_result("pain").answer == 9


class TestResultStore:
    def test_none_and_own_identifier_resolve_to_current(self):
        current = TaskResult.from_answers("survey", {})
        results = ResultStore(current=current)
        assert results.task_result(None) is current
        assert results.task_result("survey") is current
        assert results.task_result("other") is None

    def test_additional_task_result_lookup(self):
        baseline = TaskResult.from_answers("baseline", {"pain": 3})
        results = ResultStore(current=TaskResult.from_answers("survey", {}), additional=[baseline])
        question = results.question_result(ResultSelector("pain", task_identifier="baseline"))
        assert question == QuestionResult("pain", 3)

    def test_question_result_absent(self):
        results = ResultStore(current=TaskResult.from_answers("survey", {"pain": 1}))
        assert results.question_result(ResultSelector("age")) is None
        assert results.question_result(ResultSelector("other", step_identifier="pain")) is None

    def test_duplicate_additional_identifier_rejected(self):
        with pytest.raises(ValidationError):
            ResultStore(
                current=TaskResult.from_answers("survey", {}),
                additional=[
                    TaskResult.from_answers("baseline", {}),
                    TaskResult.from_answers("baseline", {}),
                ],
            )

    def test_additional_identifier_equal_to_current_rejected(self):
        with pytest.raises(ValidationError):
            ResultStore(
                current=TaskResult.from_answers("survey", {}),
                additional=[TaskResult.from_answers("survey", {})],
            )
