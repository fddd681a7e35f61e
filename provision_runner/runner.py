from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Union

from .errors import ActionFailure, InvalidArgument, RebootFailed, StoreUnavailable
from .interaction import prompt_yes_no, system_reboot
from .progress_store import ProgressStore, describe_store
from .steps import Action, ActionResult, Step, as_action_result, describe_action, validate_steps

logger = logging.getLogger(__name__)


Confirm = Callable[[str], bool]
Reboot = Callable[[], None]


@dataclass(frozen=True)
class RunConfig:
    dry_run: bool = False
    skip_to: Optional[Union[int, str]] = None


class SkipOutcome(enum.Enum):
    ADVANCED = "advanced"
    ALREADY_COMPLETED = "already_completed"
    PREVIEWED = "previewed"


class RunStatus(enum.Enum):
    COMPLETED = "completed"
    PREVIEWED = "previewed"
    REBOOTING = "rebooting"
    REBOOT_DEFERRED = "reboot_deferred"


@dataclass(frozen=True)
class RunResult:
    status: RunStatus
    progress: int
    ran_steps: List[int] = field(default_factory=list)
    skipped_steps: List[int] = field(default_factory=list)
    previewed_steps: List[int] = field(default_factory=list)
    reboot_step: Optional[int] = None


class StepRunner:
    """Execute an ordered list of steps exactly once each, across invocations.

    Progress is a single integer (highest completed step index) kept in a
    ProgressStore. It only moves forward: after a successful action, or via
    skip_to(). skip_to() marks steps completed *without* running them; the
    caller vouches that their effects already exist.
    """

    def __init__(
        self,
        steps: Optional[Sequence[Step]] = None,
        *,
        store: ProgressStore,
        config: RunConfig = RunConfig(),
        confirm: Confirm = prompt_yes_no,
        reboot: Reboot = system_reboot,
    ) -> None:
        self._steps: List[Step] = validate_steps(steps or [])
        self.store = store
        self.config = config
        self.confirm = confirm
        self.reboot = reboot
        self._progress: Optional[int] = None

    @property
    def steps(self) -> List[Step]:
        return list(self._steps)

    @property
    def max_step_index(self) -> int:
        return len(self._steps)

    @property
    def current_progress(self) -> int:
        if self._progress is None:
            self.initialize()
        assert self._progress is not None
        return self._progress

    @property
    def is_complete(self) -> bool:
        return self.current_progress >= self.max_step_index

    def register(self, description: str, action: Action, *, requires_reboot: bool = False) -> Step:
        if self._progress is not None:
            raise RuntimeError("Steps must be registered before the runner is initialized")
        step = Step(
            index=len(self._steps) + 1,
            description=description,
            action=action,
            requires_reboot=requires_reboot,
        )
        self._steps.append(step)
        return step

    def initialize(self) -> int:
        try:
            if not self.store.exists():
                if self.config.dry_run:
                    logger.info("No progress recorded yet at %s", describe_store(self.store))
                else:
                    self.store.write(0)
            self._progress = self.store.read()
        except StoreUnavailable:
            raise
        except OSError as e:
            raise StoreUnavailable(f"Progress store {describe_store(self.store)} unavailable: {e}") from e

        logger.info(
            "Progress: %d/%d steps completed (%s)",
            min(self._progress, self.max_step_index),
            self.max_step_index,
            describe_store(self.store),
        )
        return self._progress

    def check_skip_target(self, target: Union[int, str]) -> int:
        if isinstance(target, bool):
            raise InvalidArgument(f"Skip target must be a step number, got {target!r}")
        try:
            n = int(str(target).strip())
        except ValueError as e:
            raise InvalidArgument(f"Skip target must be a step number, got {target!r}") from e
        if not 1 <= n <= self.max_step_index:
            raise InvalidArgument(f"Skip target {n} is outside 1..{self.max_step_index}")
        return n

    def skip_to(self, target: Union[int, str]) -> SkipOutcome:
        n = self.check_skip_target(target)
        current = self.current_progress

        if n <= current:
            logger.info("Step %d already passed (progress is at %d); nothing to skip", n, current)
            return SkipOutcome.ALREADY_COMPLETED

        if self.config.dry_run:
            logger.info("[DRY RUN] Would mark steps %d..%d as completed without running them", current + 1, n)
            self._progress = n
            return SkipOutcome.PREVIEWED

        logger.warning("Marking steps %d..%d as completed WITHOUT running them", current + 1, n)
        self._persist(n)
        return SkipOutcome.ADVANCED

    def _persist(self, value: int) -> None:
        try:
            self.store.write(value)
        except StoreUnavailable:
            raise
        except OSError as e:
            raise StoreUnavailable(f"Progress store {describe_store(self.store)} unavailable: {e}") from e
        self._progress = value

    def _invoke(self, step: Step) -> ActionResult:
        try:
            out = step.action()
        except Exception as e:
            logger.exception("Step %d raised", step.index)
            return ActionResult.failure(1, f"{type(e).__name__}: {e}")
        return as_action_result(out, describe_action(step.action))

    def run(self) -> RunResult:
        dry_run = self.config.dry_run
        ran: List[int] = []
        skipped: List[int] = []
        previewed: List[int] = []

        current = self.current_progress

        for step in self._steps:
            if step.index <= current:
                logger.info("Step %d: %s (Already Completed)", step.index, step.description)
                skipped.append(step.index)
                continue

            logger.info("=== Step %d: %s ===", step.index, step.description)
            logger.info("Action: %s", describe_action(step.action))

            if dry_run:
                logger.info("[DRY RUN] Would execute step %d", step.index)
                if step.requires_reboot:
                    logger.info("[DRY RUN] Step %d would require a reboot", step.index)
                previewed.append(step.index)
                continue

            result = self._invoke(step)
            if not result.ok:
                failure = ActionFailure(step, result)
                logger.error("%s", failure)
                raise failure

            self._persist(step.index)
            current = step.index
            ran.append(step.index)
            logger.info("Step %d completed successfully", step.index)

            if step.requires_reboot:
                if self.confirm(f"Step {step.index} requires a system reboot. Would you like to reboot now? (y/N) "):
                    logger.info("Rebooting system...")
                    try:
                        self.reboot()
                    except Exception as e:
                        reboot_failure = RebootFailed(step, str(e).strip() or type(e).__name__)
                        logger.error("%s", reboot_failure)
                        raise reboot_failure from e
                    return RunResult(RunStatus.REBOOTING, current, ran, skipped, previewed, step.index)
                if step.index < self.max_step_index:
                    logger.warning("Please remember to reboot before continuing to step %d.", step.index + 1)
                else:
                    logger.warning("Please remember to reboot to finish setup.")
                return RunResult(RunStatus.REBOOT_DEFERRED, current, ran, skipped, previewed, step.index)

        if dry_run:
            logger.info("[DRY RUN] %d step(s) would run; no changes were made", len(previewed))
            return RunResult(RunStatus.PREVIEWED, current, ran, skipped, previewed)

        logger.info("All steps completed successfully")
        return RunResult(RunStatus.COMPLETED, current, ran, skipped, previewed)
