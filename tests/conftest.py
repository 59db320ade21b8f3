"""Shared fixtures and helpers for tests."""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from release_gen.emit.python import mixin_name
from release_gen.models import EmittedUnit

_REPO_ROOT = Path(__file__).parent.parent


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        if rel.parts and rel.parts[0] == "unit":
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# Test doubles for owned resources
# ---------------------------------------------------------------------------


class Resource:
    """Sync-only resource that records every close() in a shared log."""

    def __init__(self, log: list[str], name: str) -> None:
        self.log = log
        self.name = name

    def close(self) -> None:
        self.log.append(f"close {self.name}")


class AsyncResource(Resource):
    async def aclose(self) -> None:
        self.log.append(f"aclose {self.name}")


def load_mixin(unit: EmittedUnit) -> type:
    """Execute a generated module in a fresh namespace and return its mixin class."""
    namespace: dict[str, Any] = {"__name__": unit.module}
    exec(compile(unit.text, unit.path, "exec"), namespace)  # noqa: S102
    class_name = unit.qualified_name.rsplit(".", 1)[-1]
    return namespace[mixin_name(class_name)]


# ---------------------------------------------------------------------------
# Shared unit-test fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def log() -> list[str]:
    return []


@pytest.fixture
def resource(log: list[str]) -> Callable[[str], Resource]:
    return lambda name: Resource(log, name)


@pytest.fixture
def async_resource(log: list[str]) -> Callable[[str], AsyncResource]:
    return lambda name: AsyncResource(log, name)


@pytest.fixture
def mixin_loader() -> Callable[[EmittedUnit], type]:
    return load_mixin
