# application/navigation/step_navigator.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from application.exceptions import NavigationError
from application.ports.logger import LoggerPort
from domain.flow import NavigationFlow
from domain.navigation.rules import NULL_STEP_IDENTIFIER
from domain.results import ResultStore


@dataclass(frozen=True)
class NavigationDecision:
    step_id: Optional[str]  # None => task ends
    skipped: List[str] = field(default_factory=list)

    @property
    def task_ended(self) -> bool:
        return self.step_id is None


class StepNavigator:
    """
    Decides which step follows another for one flow.

    Steps without a navigation rule, and rules that make no decision, fall
    back to declared order. A step whose skip rule fires is passed over as
    if it had been visited, so its own navigation rule still applies.
    """

    def __init__(self, flow: NavigationFlow, logger: LoggerPort):
        self._flow = flow
        self._logger = logger.bind(flow_id=flow.meta.id)

    def next_step(self, current_step_id: Optional[str], results: ResultStore) -> NavigationDecision:
        if current_step_id is None:
            candidate: Optional[str] = self._flow.steps[0].id
        else:
            if not self._flow.has_step(current_step_id):
                raise NavigationError(f"Unknown step: {current_step_id}", step_id=current_step_id)
            candidate = self._destination_after(current_step_id, results)

        skipped: List[str] = []
        while candidate is not None and self.should_skip(candidate, results):
            if candidate in skipped:
                raise NavigationError(
                    f"Cyclic skip chain: {' -> '.join(skipped + [candidate])}",
                    step_id=candidate,
                )
            self._logger.info("navigation.step_skipped", step_id=candidate)
            skipped.append(candidate)
            candidate = self._destination_after(candidate, results)

        if candidate is None:
            self._logger.info("navigation.task_end", from_step=current_step_id, skipped=skipped)
        return NavigationDecision(step_id=candidate, skipped=skipped)

    def should_skip(self, step_id: str, results: ResultStore) -> bool:
        rule = self._flow.skip_rule_for(step_id)
        if rule is None:
            return False
        return rule.should_skip(results)

    def _destination_after(self, step_id: str, results: ResultStore) -> Optional[str]:
        rule = self._flow.navigation_rule_for(step_id)
        if rule is not None:
            destination = rule.destination_step(results)
            if destination is NULL_STEP_IDENTIFIER:
                self._logger.info("navigation.rule_applied", from_step=step_id, to_step=None)
                return None
            if destination is not None:
                self._logger.info("navigation.rule_applied", from_step=step_id, to_step=destination)
                return destination
            self._logger.debug("navigation.no_decision", from_step=step_id)

        following = self._flow.step_following(step_id)
        self._logger.debug("navigation.linear", from_step=step_id, to_step=following)
        return following
