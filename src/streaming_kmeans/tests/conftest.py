import pytest
from loguru import logger


@pytest.fixture
def caplog_loguru():
    """Collect (level, message, extra) for every Loguru record emitted during a test."""
    records = []

    def sink(message):
        records.append(
            (
                message.record["level"].name,
                message.record["message"],
                dict(message.record["extra"]),
            )
        )

    handler_id = logger.add(sink, level="DEBUG")
    yield records
    logger.remove(handler_id)
