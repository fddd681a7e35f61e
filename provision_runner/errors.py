from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .steps import ActionResult, Step

EXIT_OK = 0
EXIT_INVALID_ARGUMENT = 64
EXIT_PLAN_INVALID = 65
EXIT_STORE_UNAVAILABLE = 74
EXIT_REBOOT_FAILED = 75


class RunnerError(RuntimeError):
    exit_code = 1


class InvalidArgument(RunnerError):
    """Rejected caller input (e.g. a skip target outside the registered steps)."""

    exit_code = EXIT_INVALID_ARGUMENT


class StoreUnavailable(RunnerError):
    """The progress store could not be read or written."""

    exit_code = EXIT_STORE_UNAVAILABLE


class ActionFailure(RunnerError):
    """A step's action reported failure. The run halts; progress is not advanced."""

    def __init__(self, step: "Step", result: "ActionResult") -> None:
        self.step = step
        self.result = result
        # Process exit statuses are 8 bits; 256 would read as success.
        self.exit_code = result.returncode if 0 < result.returncode < 256 else 1
        msg = f"Step {step.index} ({step.description}) failed with exit code {result.returncode}"
        if result.diagnostic:
            msg += f"\n{result.diagnostic.rstrip()}"
        super().__init__(msg)


class PlanError(ValueError):
    def __init__(self, message: str, *, step: Optional[int] = None) -> None:
        self.step = step
        super().__init__(f"step #{step}: {message}" if step is not None else message)


class StepDefinitionError(ValueError):
    pass


class RebootFailed(RunnerError):
    """The step completed and was recorded, but the reboot could not be triggered."""

    exit_code = EXIT_REBOOT_FAILED

    def __init__(self, step: "Step", reason: str) -> None:
        self.step = step
        super().__init__(
            f"Step {step.index} is recorded as completed but the reboot failed ({reason}); "
            f"reboot manually, then re-run to continue"
        )
