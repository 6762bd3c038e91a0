"""FastAPI アプリケーション - ステップナビゲーション REST API"""
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import Body, FastAPI, HTTPException
from pydantic import BaseModel, Field

import sys

# プロジェクトルートをPythonパスに追加
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from application.exceptions import NavigationError
from application.navigation.step_navigator import StepNavigator
from domain.exceptions import ValidationError
from domain.flow import NavigationFlow
from domain.navigation.rules import DirectStepNavigationRule, PredicateStepNavigationRule
from domain.results import ResultStore, TaskResult
from infrastructure.config.settings import load_settings
from infrastructure.flows.file_finder import FlowFileFinder
from infrastructure.flows.loader_registry import FlowLoaderRegistry
from infrastructure.flows.rule_codec import FlowLoadError
from infrastructure.logging.log_setup import setup_console_logging
from infrastructure.logging.loguru_logger import LoguruLogger


# リクエストモデル
class TaskResultPayload(BaseModel):
    """タスク結果（ステップID -> 回答）"""
    identifier: str = Field(description="Task result identifier")
    answers: Dict[str, Any] = Field(
        default_factory=dict,
        description="Step id -> answer, or step id -> {question id: answer}. null means skipped.",
    )


class NavigationRequest(BaseModel):
    """次ステップ判定リクエスト"""
    current_step_id: Optional[str] = Field(
        default=None,
        description="Step being left. Omit to get the first step.",
    )
    task_result: TaskResultPayload
    additional_task_results: List[TaskResultPayload] = Field(
        default_factory=list,
        description="Results of previously completed tasks",
    )


class NavigationResponse(BaseModel):
    """次ステップ判定レスポンス"""
    flow_id: str
    from_step_id: Optional[str] = None
    next_step_id: Optional[str] = Field(default=None, description="null when the task ends")
    task_ended: bool
    skipped_step_ids: List[str] = Field(default_factory=list)


class SkipRequest(BaseModel):
    task_result: TaskResultPayload
    additional_task_results: List[TaskResultPayload] = Field(default_factory=list)


class SkipResponse(BaseModel):
    flow_id: str
    step_id: str
    skip: bool


class FlowSummaryResponse(BaseModel):
    id: str
    name: str
    version: int
    description: str
    steps: List[str]
    navigation_rules: Dict[str, str] = Field(description="Step id -> rule kind")
    skip_rules: List[str] = Field(description="Step ids with a skip rule")


# FastAPIアプリケーション
app = FastAPI(
    title="Step Navigator",
    description="Conditional step navigation for branching task flows",
    version="1.0.0",
)

# 設定
SETTINGS = load_settings()
FLOWS_DIR = SETTINGS.flows_dir
setup_console_logging(level=SETTINGS.log_level)


@app.get("/")
def read_root():
    """ヘルスチェック"""
    return {"status": "ok", "service": "step-navigator"}


def _build_logger() -> LoguruLogger:
    return LoguruLogger()


def _load_flow(flow_id: str) -> NavigationFlow:
    finder = FlowFileFinder(FLOWS_DIR)
    flow_file = finder.find_by_id(flow_id)

    if flow_file is None:
        raise HTTPException(status_code=404, detail=f"Flow file not found: {flow_id}")

    registry = FlowLoaderRegistry()
    try:
        loader = registry.get_loader(flow_file)
        return loader.load_from_file(flow_file)
    except (FlowLoadError, ValidationError) as e:
        # Reason: The flow file exists but cannot be parsed or validated.
        # Impact: Returns HTTP 422 with the loader message.
        raise HTTPException(status_code=422, detail=f"Invalid flow definition {flow_id}: {e}")


def _build_result_store(
    task_result: TaskResultPayload,
    additional: List[TaskResultPayload],
) -> ResultStore:
    return ResultStore(
        current=TaskResult.from_answers(task_result.identifier, task_result.answers),
        additional=[TaskResult.from_answers(t.identifier, t.answers) for t in additional],
    )


def _rule_kind(rule) -> str:
    if isinstance(rule, PredicateStepNavigationRule):
        return "predicate"
    if isinstance(rule, DirectStepNavigationRule):
        return "direct"
    return type(rule).__name__


@app.get("/flows/{flow_id}", response_model=FlowSummaryResponse)
def get_flow(flow_id: str) -> FlowSummaryResponse:
    flow = _load_flow(flow_id)
    return FlowSummaryResponse(
        id=flow.meta.id,
        name=flow.meta.name,
        version=flow.meta.version,
        description=flow.meta.description,
        steps=flow.step_ids,
        navigation_rules={step_id: _rule_kind(rule) for step_id, rule in flow.navigation_rules.items()},
        skip_rules=list(flow.skip_rules.keys()),
    )


@app.post("/flows/{flow_id}/navigation", response_model=NavigationResponse)
def navigate(flow_id: str, request: NavigationRequest = Body(...)) -> NavigationResponse:
    """
    指定ステップの次に表示するステップを判定する

    Args:
        flow_id: フローID（例: "pain-survey"）
        request: 現在のステップと回答

    Returns:
        次のステップ（タスク終了時は null）
    """
    logger = _build_logger().bind(flow_id=flow_id)
    flow = _load_flow(flow_id)

    try:
        results = _build_result_store(request.task_result, request.additional_task_results)
        decision = StepNavigator(flow, logger).next_step(request.current_step_id, results)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NavigationError as e:
        logger.error("navigation.failed", error=str(e), step_id=e.step_id)
        raise HTTPException(status_code=409, detail=str(e))

    return NavigationResponse(
        flow_id=flow_id,
        from_step_id=request.current_step_id,
        next_step_id=decision.step_id,
        task_ended=decision.task_ended,
        skipped_step_ids=decision.skipped,
    )


@app.post("/flows/{flow_id}/steps/{step_id}/skip", response_model=SkipResponse)
def should_skip(flow_id: str, step_id: str, request: SkipRequest = Body(...)) -> SkipResponse:
    logger = _build_logger().bind(flow_id=flow_id)
    flow = _load_flow(flow_id)
    if not flow.has_step(step_id):
        raise HTTPException(status_code=404, detail=f"Step not found: {step_id}")

    try:
        results = _build_result_store(request.task_result, request.additional_task_results)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    skip = StepNavigator(flow, logger).should_skip(step_id, results)
    return SkipResponse(flow_id=flow_id, step_id=step_id, skip=skip)
