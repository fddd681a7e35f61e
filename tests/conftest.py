"""
Pytest configuration and fixtures for provision-runner tests.
"""

from __future__ import annotations

import logging
import textwrap
from pathlib import Path
from typing import Callable, Generator, List

import pytest

from provision_runner.progress_store import MemoryProgressStore
from provision_runner.steps import ActionResult


class Recorder:
    """Builds actions that log their step number into a shared list."""

    def __init__(self) -> None:
        self.calls: List[int] = []

    def ok(self, n: int) -> Callable[[], ActionResult]:
        def _action() -> ActionResult:
            self.calls.append(n)
            return ActionResult.success()

        return _action

    def fail(self, n: int, returncode: int = 3, diagnostic: str = "boom") -> Callable[[], ActionResult]:
        def _action() -> ActionResult:
            self.calls.append(n)
            return ActionResult.failure(returncode, diagnostic)

        return _action


class Prompt:
    def __init__(self, answer: bool) -> None:
        self.answer = answer
        self.questions: List[str] = []

    def __call__(self, question: str) -> bool:
        self.questions.append(question)
        return self.answer


class RebootSpy:
    def __init__(self) -> None:
        self.count = 0

    def __call__(self) -> None:
        self.count += 1


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def store() -> MemoryProgressStore:
    return MemoryProgressStore()


@pytest.fixture
def reboot_spy() -> RebootSpy:
    return RebootSpy()


@pytest.fixture
def write_plan(tmp_path: Path) -> Callable[[str], Path]:
    def _write(body: str, name: str = "plan.yaml") -> Path:
        p = tmp_path / name
        p.write_text(textwrap.dedent(body), encoding="utf-8")
        return p

    return _write


@pytest.fixture
def confirm_yes() -> Prompt:
    return Prompt(True)


@pytest.fixture
def confirm_no() -> Prompt:
    return Prompt(False)


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """configure_logging() only installs handlers once per process; undo it per test."""

    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    yield
    for h in list(root.handlers):
        if h not in before:
            root.removeHandler(h)
            h.close()
    root.setLevel(level)
    for attr in ("_provision_runner_configured", "_provision_runner_log_path"):
        if hasattr(root, attr):
            delattr(root, attr)
