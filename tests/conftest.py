import pytest
from loguru import logger

from fakes import FakeCurseForge, FakeModrinth


@pytest.fixture
def modrinth() -> FakeModrinth:
    return FakeModrinth()


@pytest.fixture
def curseforge() -> FakeCurseForge:
    return FakeCurseForge()


@pytest.fixture
def log_messages():
    """Collects formatted loguru messages emitted during the test."""
    messages = []
    handler_id = logger.add(messages.append, format="{message}", level="DEBUG")
    yield messages
    logger.remove(handler_id)
