import pytest
from loguru import logger


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop the sinks a test (or the CLI it invoked) added"""
    yield
    logger.remove()


@pytest.fixture
def log_messages():
    """Collect warning messages logged during a test"""
    messages = []
    handler_id = logger.add(messages.append, level="WARNING", format="{message}")
    yield messages
    logger.remove(handler_id)
