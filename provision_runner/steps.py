from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, Optional, Protocol, Sequence

from .errors import StepDefinitionError
from .lib.command import fmt_argv, run_cmd
from .lib.files import write_file

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActionResult:
    ok: bool
    returncode: int = 0
    diagnostic: str = ""

    @classmethod
    def success(cls, diagnostic: str = "") -> "ActionResult":
        return cls(ok=True, returncode=0, diagnostic=diagnostic)

    @classmethod
    def failure(cls, returncode: int = 1, diagnostic: str = "") -> "ActionResult":
        # A failed action must never look like exit status 0 to the caller.
        return cls(ok=False, returncode=returncode or 1, diagnostic=diagnostic)


class Action(Protocol):
    """Opaque unit of work. Must be safe to re-run if interrupted."""

    def __call__(self) -> ActionResult:
        ...


@dataclass(frozen=True)
class Step:
    index: int
    description: str
    action: Action
    requires_reboot: bool = False


def as_action_result(out: Any, label: str) -> ActionResult:
    """None/True is success, False is failure, an ActionResult passes through."""

    if isinstance(out, ActionResult):
        return out
    if out is False:
        return ActionResult.failure(1, f"{label} returned False")
    return ActionResult.success()


def describe_action(action: Any) -> str:
    describe = getattr(action, "describe", None)
    if callable(describe):
        return str(describe())
    return getattr(action, "__qualname__", None) or repr(action)


@dataclass(frozen=True)
class CommandAction:
    """Run argv commands in order, stopping at the first non-zero exit."""

    commands: Sequence[Sequence[str]]
    env: Optional[Mapping[str, str]] = None
    cwd: Optional[str] = None

    def describe(self) -> str:
        return " && ".join(fmt_argv(c) for c in self.commands)

    def __call__(self) -> ActionResult:
        for argv in self.commands:
            r = run_cmd(argv, check=False, env=self.env, cwd=self.cwd)
            if not r.ok:
                return ActionResult.failure(r.returncode, r.stderr.strip() or f"{fmt_argv(r.argv)} exited {r.returncode}")
        return ActionResult.success()


@dataclass(frozen=True)
class FileAction:
    path: str
    content: str
    append: bool = False
    mode: Optional[int] = None

    def describe(self) -> str:
        return f"{'append to' if self.append else 'write'} {self.path}"

    def __call__(self) -> ActionResult:
        try:
            write_file(self.path, self.content, append=self.append, mode=self.mode)
        except OSError as e:
            return ActionResult.failure(1, f"{self.path}: {e}")
        return ActionResult.success()


@dataclass(frozen=True)
class CallableAction:
    """Adapt a plain function: None/True is success, False is failure."""

    fn: Callable[[], Any]
    label: str = ""

    def describe(self) -> str:
        return self.label or getattr(self.fn, "__qualname__", repr(self.fn))

    def __call__(self) -> ActionResult:
        return as_action_result(self.fn(), self.describe())


def validate_steps(steps: Sequence[Step]) -> List[Step]:
    """Indices must run 1..n in registration order."""

    out = list(steps)
    for expected, step in enumerate(out, start=1):
        if step.index != expected:
            raise StepDefinitionError(
                f"Step indices must be contiguous from 1; expected {expected}, got {step.index} ({step.description!r})"
            )
    return out
