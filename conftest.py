"""Root-level pytest fixtures shared by every test package."""

from __future__ import annotations

import pytest

from ioc_platform.config.container import Container
from ioc_platform.injector.resolver import Resolver
from ioc_platform.services.logger.memory_logger import MemoryLogger


@pytest.fixture
def memory_logger() -> MemoryLogger:
    return MemoryLogger()


@pytest.fixture
def container(memory_logger: MemoryLogger) -> Container:
    """Fresh container logging into memory."""
    return Container(logger=memory_logger)


@pytest.fixture
def resolver(memory_logger: MemoryLogger) -> Resolver:
    """Resolver with no registry attached."""
    return Resolver(logger=memory_logger)


@pytest.fixture(autouse=True)
def _reset_global_container():
    Container.clear_instance()
    yield
    Container.clear_instance()
