"""Resumable provisioning step runner.

Core design goals:
- Each registered step runs exactly once across invocations
- Progress persisted after every step (resume after crash or reboot)
- Dry-run preview that never touches recorded progress
- Explicit skip-to for steps already satisfied by other means
- Centralized logging
"""

from .errors import ActionFailure, InvalidArgument, RebootFailed, StoreUnavailable
from .progress_store import FileProgressStore, MemoryProgressStore, ProgressStore
from .runner import RunConfig, RunResult, RunStatus, SkipOutcome, StepRunner
from .steps import ActionResult, CallableAction, CommandAction, FileAction, Step

__all__ = [
    "ActionFailure",
    "ActionResult",
    "CallableAction",
    "CommandAction",
    "FileAction",
    "FileProgressStore",
    "InvalidArgument",
    "MemoryProgressStore",
    "ProgressStore",
    "RebootFailed",
    "RunConfig",
    "RunResult",
    "RunStatus",
    "SkipOutcome",
    "Step",
    "StepRunner",
    "StoreUnavailable",
]
