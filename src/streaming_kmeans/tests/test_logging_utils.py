from typing import List, Tuple

import pytest
from loguru import logger as loguru_logger

from streaming_kmeans.src.utils import logging_utils


@pytest.fixture(autouse=True)
def restore_logger_state():
    """Ensure Loguru sinks do not leak between tests."""
    loguru_logger.remove()
    logging_utils.clear_recent_logs()
    yield
    loguru_logger.remove()
    logging_utils.clear_recent_logs()


def test_configure_logger_sets_up_colored_sink(monkeypatch):
    add_calls: List[Tuple[tuple, dict]] = []
    removed = {"value": False}

    def fake_remove():
        removed["value"] = True

    def fake_add(*args, **kwargs):
        add_calls.append((args, kwargs))
        return 1

    monkeypatch.setattr(logging_utils.logger, "remove", fake_remove)
    monkeypatch.setattr(logging_utils.logger, "add", fake_add)

    logging_utils.configure_logger(level="debug")

    assert removed["value"] is True, "Logger.remove should be called before reconfiguration"
    assert len(add_calls) == 2, "stderr sink and recent-logs sink should be installed"
    args, kwargs = add_calls[0]
    assert kwargs["format"] == logging_utils.LOG_FORMAT
    assert kwargs["level"] == "DEBUG"


def test_log_helpers_emit_expected_levels():
    records = []

    def sink(message):
        records.append(
            (
                message.record["level"].name,
                message.record["message"],
                dict(message.record["extra"]),
            )
        )

    logging_utils.logger.add(sink, level="INFO")

    logging_utils.log_info("hello", source="test-info")
    logging_utils.log_warning("careful", source="test-warn")
    logging_utils.log_error("boom", source="test-error")

    assert records == [
        ("INFO", "hello", {"source": "test-info"}),
        ("WARNING", "careful", {"source": "test-warn"}),
        ("ERROR", "boom", {"source": "test-error"}),
    ]


def test_recent_logs_keep_latest_entries():
    # Arrange
    logging_utils.configure_logger(level="INFO")

    # Act
    for index in range(5):
        logging_utils.log_info(f"message {index}", batch_id=index)
    recent = logging_utils.get_recent_logs(limit=2)

    # Assert
    assert [entry["message"] for entry in recent] == ["message 3", "message 4"]
    assert recent[-1]["level"] == "INFO"
    assert recent[-1]["extra"] == {"batch_id": 4}


def test_recent_logs_with_non_positive_limit_are_empty():
    logging_utils.configure_logger(level="INFO")
    logging_utils.log_info("ignored")

    assert logging_utils.get_recent_logs(limit=0) == []


def test_recent_logs_filter_by_minimum_level():
    logging_utils.configure_logger(level="DEBUG")
    logging_utils.logger.debug("noise")
    logging_utils.log_warning("slow batch")
    logging_utils.log_error("bad batch")

    recent = logging_utils.get_recent_logs(limit=10, min_level="warning")

    assert [entry["message"] for entry in recent] == ["slow batch", "bad batch"]
