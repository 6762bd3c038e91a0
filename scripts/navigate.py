#!/usr/bin/env python3
"""
Flow navigation helper

Usage:
  python scripts/navigate.py next --flow-file <path> [--current-step <id>] (--answers <json> | --results <path>)
  python scripts/navigate.py next --flow-id <id> --api-base-url <url> [--current-step <id>] (--answers <json> | --results <path>)
  python scripts/navigate.py skip --flow-file <path> --step <id> (--answers <json> | --results <path>)
  python scripts/navigate.py show --flow-file <path>

Examples:
  python scripts/navigate.py next --flow-file flows/pain_survey.yaml --current-step pain --answers '{"pain": 7}'
  python scripts/navigate.py next --flow-id pain_survey --api-base-url http://localhost:8000 --answers '{"pain": 7}'

A results file holds {"identifier": ..., "answers": {...}, "additional": [{"identifier": ..., "answers": {...}}]}
in JSON or YAML.
"""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict

import requests
import yaml
from dotenv import load_dotenv

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

load_dotenv()

from infrastructure.config.settings import load_settings
from infrastructure.logging.log_setup import setup_console_logging

setup_console_logging(level=load_settings().log_level)

from application.exceptions import NavigationError
from application.navigation.step_navigator import StepNavigator
from domain.exceptions import ValidationError
from domain.flow import NavigationFlow
from domain.results import ResultStore, TaskResult
from infrastructure.flows.loader_registry import FlowLoaderRegistry
from infrastructure.flows.rule_codec import FlowLoadError
from infrastructure.logging.loguru_logger import LoguruLogger


DEFAULT_TASK_ID = "task"
DEFAULT_API_TIMEOUT_SEC = 30


def _parse_json_payload(raw: str, label: str) -> dict:
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON for {label}: {exc}") from exc
    if not isinstance(parsed, dict):
        raise ValueError(f"{label} must be a JSON object")
    return parsed


def _load_results_file(path: str) -> dict:
    try:
        content = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ValueError(f"Unable to read results file: {exc}") from exc
    if Path(path).suffix.lower() in {".yaml", ".yml"}:
        try:
            parsed = yaml.safe_load(content)
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML for results: {exc}") from exc
        if not isinstance(parsed, dict):
            raise ValueError("results must be a mapping")
        return parsed
    return _parse_json_payload(content, "results")


def _load_results_payload(args: argparse.Namespace) -> Dict[str, Any]:
    if args.answers is not None and args.results is not None:
        raise ValueError("Use either --answers or --results, not both")
    if args.results is not None:
        payload = _load_results_file(args.results)
        payload.setdefault("identifier", args.task_id)
        payload.setdefault("answers", {})
        payload.setdefault("additional", [])
        return payload
    answers = _parse_json_payload(args.answers, "answers") if args.answers is not None else {}
    return {"identifier": args.task_id, "answers": answers, "additional": []}


def _build_result_store(payload: Dict[str, Any]) -> ResultStore:
    try:
        return ResultStore(
            current=TaskResult.from_answers(payload["identifier"], payload["answers"]),
            additional=[
                TaskResult.from_answers(item["identifier"], item.get("answers", {}))
                for item in payload["additional"]
            ],
        )
    except (KeyError, TypeError, AttributeError, ValidationError) as exc:
        raise ValueError(f"Malformed results: {exc}") from exc


def _load_flow(path: str) -> NavigationFlow:
    registry = FlowLoaderRegistry()
    try:
        loader = registry.get_loader(Path(path))
        return loader.load_from_file(path)
    except (FlowLoadError, ValidationError) as e:
        raise ValueError(f"Failed to load flow: {e}") from e


def _add_results_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--answers", type=str)
    parser.add_argument("--results", type=str)
    parser.add_argument("--task-id", type=str, default=DEFAULT_TASK_ID)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Flow navigation helper")
    subparsers = parser.add_subparsers(dest="command")

    next_parser = subparsers.add_parser("next", help="Decide the step after --current-step")
    next_parser.add_argument("--flow-file", type=str)
    next_parser.add_argument("--flow-id", type=str)
    next_parser.add_argument("--api-base-url", type=str)
    next_parser.add_argument("--current-step", type=str)
    _add_results_arguments(next_parser)

    skip_parser = subparsers.add_parser("skip", help="Evaluate the skip rule of a step")
    skip_parser.add_argument("--flow-file", type=str, required=True)
    skip_parser.add_argument("--step", type=str, required=True)
    _add_results_arguments(skip_parser)

    show_parser = subparsers.add_parser("show", help="Print steps and rules of a flow")
    show_parser.add_argument("--flow-file", type=str, required=True)

    return parser


def _next_local(args: argparse.Namespace) -> int:
    flow = _load_flow(args.flow_file)
    results = _build_result_store(_load_results_payload(args))
    navigator = StepNavigator(flow, LoguruLogger())
    try:
        decision = navigator.next_step(args.current_step, results)
    except (NavigationError, ValidationError) as e:
        raise ValueError(str(e)) from e

    if decision.skipped:
        print(f"Skipped: {', '.join(decision.skipped)}")
    if decision.task_ended:
        print("Next: <end of task>")
    else:
        print(f"Next: {decision.step_id}")
    return 0


def _next_api(args: argparse.Namespace) -> int:
    if not args.flow_id:
        raise ValueError("flow-id is required for API navigation")
    payload = _load_results_payload(args)
    body = {
        "current_step_id": args.current_step,
        "task_result": {"identifier": payload["identifier"], "answers": payload["answers"]},
        "additional_task_results": payload["additional"],
    }
    url = f"{args.api_base_url.rstrip('/')}/flows/{args.flow_id}/navigation"
    response = requests.post(url, json=body, timeout=DEFAULT_API_TIMEOUT_SEC)
    print(f"Status: {response.status_code}")
    print(json.dumps(response.json(), indent=2, ensure_ascii=False))
    return 0 if response.status_code < 400 else 1


def _skip_local(args: argparse.Namespace) -> int:
    flow = _load_flow(args.flow_file)
    if not flow.has_step(args.step):
        raise ValueError(f"Unknown step: {args.step}")
    results = _build_result_store(_load_results_payload(args))
    skip = StepNavigator(flow, LoguruLogger()).should_skip(args.step, results)
    print(f"Skip {args.step}: {'yes' if skip else 'no'}")
    return 0


def _show(args: argparse.Namespace) -> int:
    flow = _load_flow(args.flow_file)
    print(f"Flow: {flow.meta.name or flow.meta.id} (v{flow.meta.version})")
    for i, step in enumerate(flow.steps):
        markers = []
        if step.id in flow.navigation_rules:
            markers.append(type(flow.navigation_rules[step.id]).__name__)
        if step.id in flow.skip_rules:
            markers.append("skip rule")
        suffix = f"  <{', '.join(markers)}>" if markers else ""
        print(f"  {i+1}. [{step.id}] {step.name}{suffix}")
    return 0


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args(sys.argv[1:])

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        if args.command == "next":
            if args.flow_file:
                exit_code = _next_local(args)
            elif args.api_base_url:
                exit_code = _next_api(args)
            else:
                raise ValueError("flow-file or api-base-url is required")
        elif args.command == "skip":
            exit_code = _skip_local(args)
        elif args.command == "show":
            exit_code = _show(args)
        else:
            raise ValueError(f"Unknown command: {args.command}")
    except ValueError as exc:
        print(f"ERROR: {exc}")
        sys.exit(1)
    except requests.RequestException as exc:
        print(f"ERROR: API request failed: {exc}")
        sys.exit(1)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
