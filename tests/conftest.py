"""Pytest configuration and fixtures for confchain tests."""

from collections.abc import Callable, Iterator
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def reset_config_singleton() -> Iterator[None]:
    """Reset evaluator config singleton before and after each test.

    This ensures tests don't leak settings between each other. Tests that
    need non-default settings must load them explicitly.
    """
    from confchain.core.config import _reset_config

    _reset_config()
    yield
    _reset_config()


@pytest.fixture(autouse=True)
def isolate_config_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's CONFCHAIN_CONFIG out of the tests."""
    monkeypatch.delenv("CONFCHAIN_CONFIG", raising=False)


@pytest.fixture
def write_file(tmp_path: Path) -> Callable[[str, str], Path]:
    """Return a helper writing a file below tmp_path (parents created)."""

    def _write(relative: str, content: str) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write
