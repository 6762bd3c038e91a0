# domain/navigation/rules.py
"""
Step navigation rules.

A rule is attached to one step by the task runner and is evaluated each time
that step is left (destination rules) or about to be entered (skip rules).
Rules are immutable; every call is a pure function of the ResultStore.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Any, Optional, Sequence, Tuple, Union

from domain.exceptions import NavigationRuleError
from domain.navigation.predicates import Predicate
from domain.results import ResultStore


class NullStepIdentifier:
    """
    Destination meaning "end the task after this step".

    There is exactly one instance, NULL_STEP_IDENTIFIER. It never compares
    equal to a step identifier string.
    """
    _instance: Optional["NullStepIdentifier"] = None

    def __new__(cls) -> "NullStepIdentifier":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __reduce__(self):
        return (NullStepIdentifier, ())

    def __copy__(self) -> "NullStepIdentifier":
        return self

    def __deepcopy__(self, memo) -> "NullStepIdentifier":
        return self

    def __repr__(self) -> str:
        return "NULL_STEP_IDENTIFIER"


NULL_STEP_IDENTIFIER = NullStepIdentifier()

Destination = Union[str, NullStepIdentifier]


def _check_destination(destination: Any) -> None:
    if destination is NULL_STEP_IDENTIFIER:
        return
    if not isinstance(destination, str) or not destination.strip():
        raise NavigationRuleError(f"Invalid destination step identifier: {destination!r}")


def _first_match(predicates: Sequence[Predicate], results: ResultStore) -> Optional[int]:
    """Index of the first predicate that matches, in declared order."""
    for index, predicate in enumerate(predicates):
        if predicate.matches(results):
            return index
    return None


@dataclass(frozen=True)
class NavigationRuleEntry:
    predicate: Predicate
    destination: Destination


class StepNavigationRule(ABC):
    @abstractmethod
    def destination_step(self, results: ResultStore) -> Optional[Destination]:
        """
        Returns the step to go to after the owning step.

        NULL_STEP_IDENTIFIER ends the task. None means the rule makes no
        decision and the runner moves on in declared order.
        """
        ...


@dataclass(frozen=True)
class PredicateStepNavigationRule(StepNavigationRule):
    result_predicates: Tuple[Predicate, ...]
    destination_step_identifiers: Tuple[Destination, ...]
    default_step_identifier: Optional[Destination] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "result_predicates", tuple(self.result_predicates))
        object.__setattr__(
            self, "destination_step_identifiers", tuple(self.destination_step_identifiers)
        )

        if len(self.result_predicates) != len(self.destination_step_identifiers):
            raise NavigationRuleError(
                "Each result predicate needs exactly one destination step identifier "
                f"(predicates={len(self.result_predicates)}, "
                f"destinations={len(self.destination_step_identifiers)})"
            )
        if not self.result_predicates and self.default_step_identifier is None:
            raise NavigationRuleError(
                "Predicate navigation rule needs at least one predicate or a default step identifier"
            )
        for predicate in self.result_predicates:
            if not isinstance(predicate, Predicate):
                raise NavigationRuleError(f"Not a result predicate: {predicate!r}")
        for destination in self.destination_step_identifiers:
            _check_destination(destination)
        if self.default_step_identifier is not None:
            _check_destination(self.default_step_identifier)

    @property
    def entries(self) -> Tuple[NavigationRuleEntry, ...]:
        return tuple(
            NavigationRuleEntry(predicate=p, destination=d)
            for p, d in zip(self.result_predicates, self.destination_step_identifiers)
        )

    def destination_step(self, results: ResultStore) -> Optional[Destination]:
        index = _first_match(self.result_predicates, results)
        if index is not None:
            return self.destination_step_identifiers[index]
        return self.default_step_identifier

    def with_entry(self, predicate: Predicate, destination: Destination) -> "PredicateStepNavigationRule":
        return replace(
            self,
            result_predicates=self.result_predicates + (predicate,),
            destination_step_identifiers=self.destination_step_identifiers + (destination,),
        )


@dataclass(frozen=True)
class DirectStepNavigationRule(StepNavigationRule):
    destination_step_identifier: Destination

    def __post_init__(self) -> None:
        _check_destination(self.destination_step_identifier)

    def destination_step(self, results: ResultStore) -> Destination:
        return self.destination_step_identifier


class SkipStepNavigationRule(ABC):
    @abstractmethod
    def should_skip(self, results: ResultStore) -> bool: ...


@dataclass(frozen=True)
class PredicateSkipStepNavigationRule(SkipStepNavigationRule):
    """
    Skips the owning step when a predicate matches.

    skip_flags pairs a verdict with each predicate (all True when omitted),
    so an earlier predicate can pin "do not skip" ahead of a broader one.
    """
    result_predicates: Tuple[Predicate, ...]
    skip_flags: Optional[Tuple[bool, ...]] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "result_predicates", tuple(self.result_predicates))
        if self.skip_flags is None:
            object.__setattr__(self, "skip_flags", (True,) * len(self.result_predicates))
        else:
            object.__setattr__(self, "skip_flags", tuple(bool(f) for f in self.skip_flags))

        if not self.result_predicates:
            raise NavigationRuleError("Skip navigation rule needs at least one result predicate")
        if len(self.result_predicates) != len(self.skip_flags):
            raise NavigationRuleError(
                "Each result predicate needs exactly one skip flag "
                f"(predicates={len(self.result_predicates)}, flags={len(self.skip_flags)})"
            )
        for predicate in self.result_predicates:
            if not isinstance(predicate, Predicate):
                raise NavigationRuleError(f"Not a result predicate: {predicate!r}")

    def should_skip(self, results: ResultStore) -> bool:
        index = _first_match(self.result_predicates, results)
        if index is None:
            return False
        return self.skip_flags[index]

    def with_entry(self, predicate: Predicate, skip: bool = True) -> "PredicateSkipStepNavigationRule":
        return replace(
            self,
            result_predicates=self.result_predicates + (predicate,),
            skip_flags=self.skip_flags + (skip,),
        )
