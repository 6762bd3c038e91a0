# domain/flow.py
"""
Navigable flow domain model
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from domain.exceptions import FlowDefinitionError
from domain.navigation.rules import (
    NULL_STEP_IDENTIFIER,
    DirectStepNavigationRule,
    PredicateStepNavigationRule,
    SkipStepNavigationRule,
    StepNavigationRule,
)


@dataclass(frozen=True)
class FlowMeta:
    id: str
    name: str = ""
    version: int = 1
    description: str = ""


@dataclass(frozen=True)
class FlowStep:
    id: str
    name: str = ""


@dataclass(frozen=True)
class NavigationFlow:
    """
    Flow aggregate root: steps in declared order plus at most one
    navigation rule and one skip rule per step.
    """
    meta: FlowMeta
    steps: List[FlowStep]
    navigation_rules: Dict[str, StepNavigationRule] = field(default_factory=dict)
    skip_rules: Dict[str, SkipStepNavigationRule] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.steps:
            raise FlowDefinitionError(f"Flow has no steps: {self.meta.id}")

        seen = set()
        for step in self.steps:
            if not step.id or not step.id.strip():
                raise FlowDefinitionError("Step identifier must not be empty")
            if step.id in seen:
                raise FlowDefinitionError(f"Duplicate step identifier: {step.id}")
            seen.add(step.id)

        for kind, rules in (("navigation", self.navigation_rules), ("skip", self.skip_rules)):
            for step_id in rules:
                if step_id not in seen:
                    raise FlowDefinitionError(f"{kind} rule attached to unknown step: {step_id}")

        for step_id, rule in self.navigation_rules.items():
            for destination in _destinations_of(rule):
                if destination is NULL_STEP_IDENTIFIER:
                    continue
                if destination not in seen:
                    raise FlowDefinitionError(
                        f"Rule on step {step_id} points to unknown step: {destination}"
                    )

    @property
    def step_ids(self) -> List[str]:
        return [step.id for step in self.steps]

    def has_step(self, step_id: str) -> bool:
        return step_id in self.step_ids

    def index_of(self, step_id: str) -> int:
        return self.step_ids.index(step_id)

    def step_following(self, step_id: str) -> Optional[str]:
        index = self.index_of(step_id) + 1
        if index < len(self.steps):
            return self.steps[index].id
        return None

    def navigation_rule_for(self, step_id: str) -> Optional[StepNavigationRule]:
        return self.navigation_rules.get(step_id)

    def skip_rule_for(self, step_id: str) -> Optional[SkipStepNavigationRule]:
        return self.skip_rules.get(step_id)


def _destinations_of(rule: StepNavigationRule) -> Iterable[object]:
    if isinstance(rule, PredicateStepNavigationRule):
        yield from rule.destination_step_identifiers
        if rule.default_step_identifier is not None:
            yield rule.default_step_identifier
    elif isinstance(rule, DirectStepNavigationRule):
        yield rule.destination_step_identifier
