from __future__ import annotations

import pytest
from loguru import logger

from infrastructure.logging.log_setup import setup_console_logging
from infrastructure.logging.loguru_logger import LoguruLogger


@pytest.fixture
def records():
    captured = []
    handler_id = logger.add(lambda message: captured.append(message.record), level="DEBUG")
    yield captured
    logger.remove(handler_id)


def test_loguru_logger_emits_event_with_fields(records) -> None:
    LoguruLogger().info("navigation.rule_applied", from_step="pain", to_step="medication_step")

    record = records[-1]
    assert record["message"] == "navigation.rule_applied"
    assert record["level"].name == "INFO"
    assert record["extra"]["type"] == "navigation.rule_applied"
    assert record["extra"]["from_step"] == "pain"
    assert record["extra"]["to_step"] == "medication_step"


def test_bind_merges_fields_without_mutating_parent(records) -> None:
    parent = LoguruLogger().bind(flow_id="survey")
    child = parent.bind(step_id="pain")

    child.warning("navigation.step_skipped")

    assert parent.bound == {"flow_id": "survey"}
    assert records[-1]["extra"]["flow_id"] == "survey"
    assert records[-1]["extra"]["step_id"] == "pain"
    assert records[-1]["level"].name == "WARNING"


def test_levels(records) -> None:
    log = LoguruLogger()
    log.debug("a")
    log.error("b")

    assert [r["level"].name for r in records[-2:]] == ["DEBUG", "ERROR"]


def test_setup_console_logging_filters_by_level(capsys) -> None:
    setup_console_logging(level="warning")
    try:
        log = LoguruLogger()
        log.info("navigation.linear", from_step="a")
        log.warning("navigation.no_decision", step_id="pain")
    finally:
        logger.remove()

    err = capsys.readouterr().err
    assert "navigation.no_decision" in err
    assert "'step_id': 'pain'" in err
    assert "navigation.linear" not in err
