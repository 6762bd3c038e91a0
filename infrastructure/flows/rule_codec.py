# infrastructure/flows/rule_codec.py
"""
dict <-> domain conversion for navigation rules and flows.

The dict form is what the YAML / JSON loaders read and write:

    navigation_rules:
      pain:
        type: predicate
        entries:
          - when: {result: pain, op: greater_or_equal, value: 5}
            goto: medication_step
          - when: {result: age, op: less_than, value: 18}
            end: true
        default: {goto: consent_step}
      intro:
        type: direct
        goto: pain
    skip_rules:
      smoking_details:
        entries:
          - when: {result: smoker, op: equals, value: false}
            skip: true

Predicates nest with ``all`` / ``any`` / ``not``.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from domain.flow import FlowMeta, FlowStep, NavigationFlow
from domain.navigation.predicates import (
    AndPredicate,
    Comparison,
    ComparisonOperator,
    NotPredicate,
    OrPredicate,
    Predicate,
    ResultSelector,
)
from domain.navigation.rules import (
    NULL_STEP_IDENTIFIER,
    Destination,
    DirectStepNavigationRule,
    PredicateSkipStepNavigationRule,
    PredicateStepNavigationRule,
    SkipStepNavigationRule,
    StepNavigationRule,
)


class FlowLoadError(Exception):
    pass


class NavigationRuleCodec:
    # ---- predicates ----

    def predicate_to_dict(self, predicate: Predicate) -> Dict[str, Any]:
        if isinstance(predicate, AndPredicate):
            return {"all": [self.predicate_to_dict(p) for p in predicate.predicates]}
        if isinstance(predicate, OrPredicate):
            return {"any": [self.predicate_to_dict(p) for p in predicate.predicates]}
        if isinstance(predicate, NotPredicate):
            return {"not": self.predicate_to_dict(predicate.predicate)}
        if isinstance(predicate, Comparison):
            data: Dict[str, Any] = {"result": predicate.selector.result_identifier}
            if predicate.selector.step_identifier is not None:
                data["step"] = predicate.selector.step_identifier
            if predicate.selector.task_identifier is not None:
                data["task"] = predicate.selector.task_identifier
            data["op"] = predicate.operator.value
            if predicate.operator is not ComparisonOperator.IS_SKIPPED:
                data["value"] = _encode_value(predicate.expected)
            return data
        raise FlowLoadError(f"Unsupported predicate type: {type(predicate).__name__}")

    def predicate_from_dict(self, data: Any) -> Predicate:
        if not isinstance(data, dict):
            raise FlowLoadError(f"Predicate must be a mapping: {data!r}")
        if "all" in data:
            return AndPredicate(self._predicate_list(data["all"], "all"))
        if "any" in data:
            return OrPredicate(self._predicate_list(data["any"], "any"))
        if "not" in data:
            return NotPredicate(self.predicate_from_dict(data["not"]))

        if "result" not in data or "op" not in data:
            raise FlowLoadError(f"Predicate needs 'result' and 'op': {data!r}")
        try:
            operator = ComparisonOperator(data["op"])
        except ValueError:
            raise FlowLoadError(f"Unknown predicate operator: {data['op']}")

        selector = ResultSelector(
            result_identifier=data["result"],
            step_identifier=data.get("step"),
            task_identifier=data.get("task"),
        )
        return Comparison(selector, operator, _decode_value(data.get("value")))

    def _predicate_list(self, items: Any, key: str) -> List[Predicate]:
        if not isinstance(items, list):
            raise FlowLoadError(f"'{key}' must be a list of predicates")
        return [self.predicate_from_dict(item) for item in items]

    # ---- navigation rules ----

    def rule_to_dict(self, rule: StepNavigationRule) -> Dict[str, Any]:
        if isinstance(rule, PredicateStepNavigationRule):
            data: Dict[str, Any] = {
                "type": "predicate",
                "entries": [
                    {"when": self.predicate_to_dict(entry.predicate), **_destination_to_dict(entry.destination)}
                    for entry in rule.entries
                ],
            }
            if rule.default_step_identifier is not None:
                data["default"] = _destination_to_dict(rule.default_step_identifier)
            return data
        if isinstance(rule, DirectStepNavigationRule):
            return {"type": "direct", **_destination_to_dict(rule.destination_step_identifier)}
        raise FlowLoadError(f"Unsupported navigation rule type: {type(rule).__name__}")

    def rule_from_dict(self, data: Any) -> StepNavigationRule:
        if not isinstance(data, dict):
            raise FlowLoadError(f"Navigation rule must be a mapping: {data!r}")
        rule_type = str(data.get("type", "predicate")).lower()

        if rule_type == "direct":
            return DirectStepNavigationRule(_destination_from_dict(data))
        if rule_type == "predicate":
            predicates: List[Predicate] = []
            destinations: List[Destination] = []
            for entry in self._entries(data):
                predicates.append(self.predicate_from_dict(entry.get("when")))
                destinations.append(_destination_from_dict(entry))
            default: Optional[Destination] = None
            if data.get("default") is not None:
                default = _destination_from_dict(data["default"])
            return PredicateStepNavigationRule(predicates, destinations, default)

        raise FlowLoadError(f"Unknown navigation rule type: {rule_type}")

    # ---- skip rules ----

    def skip_rule_to_dict(self, rule: SkipStepNavigationRule) -> Dict[str, Any]:
        if isinstance(rule, PredicateSkipStepNavigationRule):
            return {
                "type": "predicate",
                "entries": [
                    {"when": self.predicate_to_dict(p), "skip": flag}
                    for p, flag in zip(rule.result_predicates, rule.skip_flags)
                ],
            }
        raise FlowLoadError(f"Unsupported skip rule type: {type(rule).__name__}")

    def skip_rule_from_dict(self, data: Any) -> SkipStepNavigationRule:
        if not isinstance(data, dict):
            raise FlowLoadError(f"Skip rule must be a mapping: {data!r}")
        rule_type = str(data.get("type", "predicate")).lower()
        if rule_type != "predicate":
            raise FlowLoadError(f"Unknown skip rule type: {rule_type}")

        entries = self._entries(data)
        return PredicateSkipStepNavigationRule(
            [self.predicate_from_dict(entry.get("when")) for entry in entries],
            [_skip_flag(entry) for entry in entries],
        )

    def _entries(self, data: Dict[str, Any]) -> List[Dict[str, Any]]:
        entries = data.get("entries", [])
        if not isinstance(entries, list) or not all(isinstance(e, dict) for e in entries):
            raise FlowLoadError("'entries' must be a list of mappings")
        return entries

    # ---- flows ----

    def flow_to_dict(self, flow: NavigationFlow) -> Dict[str, Any]:
        return {
            "meta": {
                "id": flow.meta.id,
                "name": flow.meta.name,
                "version": flow.meta.version,
                "description": flow.meta.description,
            },
            "steps": [{"id": step.id, "name": step.name} for step in flow.steps],
            "navigation_rules": {
                step_id: self.rule_to_dict(rule) for step_id, rule in flow.navigation_rules.items()
            },
            "skip_rules": {
                step_id: self.skip_rule_to_dict(rule) for step_id, rule in flow.skip_rules.items()
            },
        }

    def flow_from_dict(self, data: Dict[str, Any]) -> NavigationFlow:
        if not isinstance(data, dict):
            raise FlowLoadError(f"Flow definition must be a mapping: {data!r}")
        meta_data = _section(data, "meta", dict)
        if not meta_data.get("id"):
            raise FlowLoadError("Flow meta.id is required")
        meta = FlowMeta(
            id=str(meta_data["id"]),
            name=meta_data.get("name", ""),
            version=meta_data.get("version", 1),
            description=meta_data.get("description", ""),
        )

        steps: List[FlowStep] = []
        for step_data in _section(data, "steps", list):
            # "- intro" のような短縮形も許可
            if isinstance(step_data, str):
                steps.append(FlowStep(id=step_data))
            elif isinstance(step_data, dict) and "id" in step_data:
                steps.append(FlowStep(id=str(step_data["id"]), name=step_data.get("name", "")))
            else:
                raise FlowLoadError(f"Invalid step definition: {step_data!r}")

        navigation_rules = {
            str(step_id): self.rule_from_dict(rule_data)
            for step_id, rule_data in _section(data, "navigation_rules", dict).items()
        }
        skip_rules = {
            str(step_id): self.skip_rule_from_dict(rule_data)
            for step_id, rule_data in _section(data, "skip_rules", dict).items()
        }

        return NavigationFlow(
            meta=meta,
            steps=steps,
            navigation_rules=navigation_rules,
            skip_rules=skip_rules,
        )


def _section(data: Dict[str, Any], key: str, kind: type) -> Any:
    value = data.get(key)
    if value is None:
        return kind()
    if not isinstance(value, kind):
        raise FlowLoadError(f"'{key}' must be a {'mapping' if kind is dict else 'list'}: {value!r}")
    return value


def _skip_flag(entry: Dict[str, Any]) -> bool:
    flag = entry.get("skip", True)
    if not isinstance(flag, bool):
        raise FlowLoadError(f"'skip' must be true or false: {flag!r}")
    return flag


def _destination_to_dict(destination: Destination) -> Dict[str, Any]:
    if destination is NULL_STEP_IDENTIFIER:
        return {"end": True}
    return {"goto": destination}


def _destination_from_dict(data: Any) -> Destination:
    if not isinstance(data, dict):
        raise FlowLoadError(f"Destination must be a mapping: {data!r}")
    if data.get("end") is True:
        return NULL_STEP_IDENTIFIER
    if "goto" not in data:
        raise FlowLoadError(f"Destination needs 'goto' or 'end: true': {data!r}")
    return data["goto"]


def _encode_value(value: Any) -> Any:
    # JSONでも往復できるよう日付はタグ付き文字列にする
    if isinstance(value, datetime):
        return {"datetime": value.isoformat()}
    if isinstance(value, date):
        return {"date": value.isoformat()}
    if isinstance(value, (list, tuple)):
        return [_encode_value(v) for v in value]
    return value


def _decode_value(value: Any) -> Any:
    if isinstance(value, dict) and len(value) == 1:
        try:
            if "datetime" in value:
                return datetime.fromisoformat(value["datetime"])
            if "date" in value:
                return date.fromisoformat(value["date"])
        except (TypeError, ValueError) as e:
            raise FlowLoadError(f"Invalid date value {value!r}: {e}")
    if isinstance(value, list):
        return [_decode_value(v) for v in value]
    return value
