# domain/navigation/predicates.py
"""
Result predicates: boolean tests over answers held in a ResultStore.

A predicate is a small expression tree. Leaves (Comparison) look up one
question result and compare its answer; AndPredicate / OrPredicate /
NotPredicate combine sub-predicates, which may point at different questions
or even different task results.

Evaluation never raises: a missing result, a skipped answer or an answer of
the wrong type simply does not match.
"""
from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Iterable, Optional, Tuple

from domain.exceptions import ValidationError
from domain.results import ResultStore


class ComparisonOperator(str, Enum):
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    LESS_THAN = "less_than"
    LESS_OR_EQUAL = "less_or_equal"
    GREATER_THAN = "greater_than"
    GREATER_OR_EQUAL = "greater_or_equal"
    BETWEEN = "between"
    CONTAINS_ANY = "contains_any"
    CONTAINS_ALL = "contains_all"
    MATCHES = "matches"
    IS_SKIPPED = "is_skipped"


_SEQUENCE_OPERATORS = (
    ComparisonOperator.BETWEEN,
    ComparisonOperator.CONTAINS_ANY,
    ComparisonOperator.CONTAINS_ALL,
)


@dataclass(frozen=True)
class ResultSelector:
    result_identifier: str
    step_identifier: Optional[str] = None  # None => same as result_identifier
    task_identifier: Optional[str] = None  # None => ongoing task

    def __post_init__(self) -> None:
        if not self.result_identifier:
            raise ValidationError("Result selector requires a result identifier")

    @property
    def step_id(self) -> str:
        return self.step_identifier or self.result_identifier


class Predicate(ABC):
    @abstractmethod
    def matches(self, results: ResultStore) -> bool: ...


@dataclass(frozen=True)
class Comparison(Predicate):
    selector: ResultSelector
    operator: ComparisonOperator
    expected: Any = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "operator", ComparisonOperator(self.operator))
        if self.operator in _SEQUENCE_OPERATORS:
            if isinstance(self.expected, (str, bytes)) or not isinstance(self.expected, Iterable):
                raise ValidationError(
                    f"{self.operator.value} expects a sequence, got {self.expected!r}"
                )
            object.__setattr__(self, "expected", tuple(_freeze(v) for v in self.expected))
        else:
            object.__setattr__(self, "expected", _freeze(self.expected))
        if self.operator is ComparisonOperator.BETWEEN:
            if len(self.expected) != 2 or self.expected == (None, None):
                raise ValidationError("between expects (minimum, maximum) with at least one bound")
        if self.operator is ComparisonOperator.MATCHES:
            try:
                re.compile(self.expected)
            except (re.error, TypeError) as e:
                raise ValidationError(f"Invalid pattern {self.expected!r}: {e}")

    def matches(self, results: ResultStore) -> bool:
        question = results.question_result(self.selector)
        if question is None:
            return False
        if self.operator is ComparisonOperator.IS_SKIPPED:
            return question.is_skipped
        if question.is_skipped:
            return False
        try:
            return bool(self._compare(question.answer))
        except (TypeError, ValueError):
            return False

    def _compare(self, answer: Any) -> bool:
        op = self.operator
        expected = self.expected

        if op is ComparisonOperator.CONTAINS_ANY:
            return any(_same(item, e) for item in _as_choices(answer) for e in expected)
        if op is ComparisonOperator.CONTAINS_ALL:
            choices = _as_choices(answer)
            return all(any(_same(c, e) for c in choices) for e in expected)
        if op is ComparisonOperator.MATCHES:
            return re.fullmatch(expected, str(answer)) is not None

        if op is ComparisonOperator.BETWEEN:
            minimum, maximum = expected
            value = _coerce(answer, minimum if minimum is not None else maximum)
            if minimum is not None and value < minimum:
                return False
            if maximum is not None and value > maximum:
                return False
            return True

        value = _coerce(answer, expected)
        if op is ComparisonOperator.EQUALS:
            return _same(value, expected)
        if op is ComparisonOperator.NOT_EQUALS:
            return not _same(value, expected)
        if op is ComparisonOperator.LESS_THAN:
            return value < expected
        if op is ComparisonOperator.LESS_OR_EQUAL:
            return value <= expected
        if op is ComparisonOperator.GREATER_THAN:
            return value > expected
        if op is ComparisonOperator.GREATER_OR_EQUAL:
            return value >= expected
        return False


def _as_choices(answer: Any) -> Tuple[Any, ...]:
    if isinstance(answer, (list, tuple, set, frozenset)):
        return tuple(answer)
    return (answer,)


def _freeze(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v) for v in value)
    return value


def _same(a: Any, b: Any) -> bool:
    if isinstance(a, tuple) and isinstance(b, tuple):
        return len(a) == len(b) and all(_same(x, y) for x, y in zip(a, b))
    return isinstance(a, bool) == isinstance(b, bool) and a == b


def _coerce(answer: Any, expected: Any) -> Any:
    # 日付の回答はISO文字列で届くことがある
    if isinstance(answer, str):
        if isinstance(expected, datetime):
            return datetime.fromisoformat(answer)
        if isinstance(expected, date):
            return date.fromisoformat(answer)
    if isinstance(answer, bool) != isinstance(expected, bool):
        # True == 1 in Python; a yes/no answer never matches a number
        raise TypeError("boolean and non-boolean values are not comparable")
    return _freeze(answer)


def _check_children(predicates: Tuple[Any, ...]) -> None:
    for p in predicates:
        if not isinstance(p, Predicate):
            raise ValidationError(f"Not a predicate: {p!r}")


@dataclass(frozen=True)
class AndPredicate(Predicate):
    predicates: Tuple[Predicate, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "predicates", tuple(self.predicates))
        if not self.predicates:
            raise ValidationError("and requires at least one predicate")
        _check_children(self.predicates)

    def matches(self, results: ResultStore) -> bool:
        return all(p.matches(results) for p in self.predicates)


@dataclass(frozen=True)
class OrPredicate(Predicate):
    predicates: Tuple[Predicate, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "predicates", tuple(self.predicates))
        if not self.predicates:
            raise ValidationError("or requires at least one predicate")
        _check_children(self.predicates)

    def matches(self, results: ResultStore) -> bool:
        return any(p.matches(results) for p in self.predicates)


@dataclass(frozen=True)
class NotPredicate(Predicate):
    predicate: Predicate

    def __post_init__(self) -> None:
        _check_children((self.predicate,))

    def matches(self, results: ResultStore) -> bool:
        return not self.predicate.matches(results)


class ResultPredicates:
    """Shortcuts for the common per-answer-type comparisons."""

    @staticmethod
    def boolean(selector: ResultSelector, expected: bool) -> Comparison:
        return Comparison(selector, ComparisonOperator.EQUALS, bool(expected))

    @staticmethod
    def numeric(
        selector: ResultSelector,
        *,
        equals: Any = None,
        minimum: Any = None,
        maximum: Any = None,
    ) -> Comparison:
        """
        equals=5 -> answer == 5, minimum/maximum -> inclusive range.
        Use Comparison directly for strict bounds.
        """
        if equals is not None:
            return Comparison(selector, ComparisonOperator.EQUALS, equals)
        if minimum is not None and maximum is None:
            return Comparison(selector, ComparisonOperator.GREATER_OR_EQUAL, minimum)
        if maximum is not None and minimum is None:
            return Comparison(selector, ComparisonOperator.LESS_OR_EQUAL, maximum)
        return Comparison(selector, ComparisonOperator.BETWEEN, (minimum, maximum))

    @staticmethod
    def choice(selector: ResultSelector, *expected: Any, match_all: bool = False) -> Comparison:
        op = ComparisonOperator.CONTAINS_ALL if match_all else ComparisonOperator.CONTAINS_ANY
        return Comparison(selector, op, expected)

    @staticmethod
    def text(
        selector: ResultSelector,
        expected: Optional[str] = None,
        *,
        pattern: Optional[str] = None,
    ) -> Comparison:
        if pattern is not None:
            return Comparison(selector, ComparisonOperator.MATCHES, pattern)
        return Comparison(selector, ComparisonOperator.EQUALS, expected)

    @staticmethod
    def date_between(
        selector: ResultSelector,
        *,
        minimum: Optional[date] = None,
        maximum: Optional[date] = None,
    ) -> Comparison:
        return Comparison(selector, ComparisonOperator.BETWEEN, (minimum, maximum))

    @staticmethod
    def skipped(selector: ResultSelector) -> Comparison:
        return Comparison(selector, ComparisonOperator.IS_SKIPPED)
