# domain/results.py
"""
Collected answers that navigation rules are evaluated against.

The task runner owns these objects; rules only read them.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from domain.exceptions import ValidationError

if TYPE_CHECKING:
    from domain.navigation.predicates import ResultSelector


@dataclass(frozen=True)
class QuestionResult:
    identifier: str
    answer: Any = None  # None => presented but skipped

    @property
    def is_skipped(self) -> bool:
        return self.answer is None


@dataclass(frozen=True)
class StepResult:
    identifier: str
    results: List[QuestionResult] = field(default_factory=list)

    def question_result(self, identifier: str) -> Optional[QuestionResult]:
        for result in reversed(self.results):
            if result.identifier == identifier:
                return result
        return None


@dataclass(frozen=True)
class TaskResult:
    identifier: str
    results: List[StepResult] = field(default_factory=list)

    def step_result(self, identifier: str) -> Optional[StepResult]:
        # 再訪問されたステップは最後の結果を使う
        for result in reversed(self.results):
            if result.identifier == identifier:
                return result
        return None

    @classmethod
    def from_answers(cls, identifier: str, answers: Dict[str, Any]) -> "TaskResult":
        """
        Build a task result from a plain mapping.

        ``{"pain": 7}`` becomes a step ``pain`` holding a question ``pain``;
        ``{"vitals": {"pulse": 80, "temp": 36.5}}`` becomes a step with two
        questions.
        """
        steps: List[StepResult] = []
        for step_id, value in answers.items():
            if isinstance(value, dict):
                questions = [QuestionResult(identifier=k, answer=v) for k, v in value.items()]
            else:
                questions = [QuestionResult(identifier=step_id, answer=value)]
            steps.append(StepResult(identifier=step_id, results=questions))
        return cls(identifier=identifier, results=steps)


@dataclass(frozen=True)
class ResultStore:
    """
    Snapshot of the ongoing task result plus results of previously completed tasks.
    """
    current: TaskResult
    additional: List[TaskResult] = field(default_factory=list)

    def __post_init__(self) -> None:
        seen = {self.current.identifier}
        for task_result in self.additional:
            if task_result.identifier in seen:
                raise ValidationError(
                    f"Duplicate task result identifier: {task_result.identifier}"
                )
            seen.add(task_result.identifier)

    def task_result(self, identifier: Optional[str]) -> Optional[TaskResult]:
        if identifier is None or identifier == self.current.identifier:
            return self.current
        for task_result in self.additional:
            if task_result.identifier == identifier:
                return task_result
        return None

    def question_result(self, selector: "ResultSelector") -> Optional[QuestionResult]:
        task_result = self.task_result(selector.task_identifier)
        if task_result is None:
            return None
        step_result = task_result.step_result(selector.step_id)
        if step_result is None:
            return None
        return step_result.question_result(selector.result_identifier)
