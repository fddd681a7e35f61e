from __future__ import annotations

import argparse
import logging
from typing import Optional, Sequence, Union

from .errors import ActionFailure, EXIT_INVALID_ARGUMENT, EXIT_OK, EXIT_PLAN_INVALID, PlanError, RunnerError
from .interaction import auto_confirm, prompt_yes_no, system_reboot
from .lib.env import PATHS
from .logging_utils import configure_logging
from .plan import load_plan
from .progress_store import FileProgressStore
from .runner import Confirm, Reboot, RunConfig, RunResult, StepRunner
from .steps import Step

logger = logging.getLogger(__name__)


def format_steps(steps: Sequence[Step]) -> str:
    lines = []
    for step in steps:
        suffix = "  [reboot]" if step.requires_reboot else ""
        lines.append(f"{step.index:>3}. {step.description}{suffix}")
    return "\n".join(lines)


def run(
    *,
    plan_path: str,
    progress_path: Optional[str] = None,
    dry_run: bool = False,
    skip_to: Optional[Union[int, str]] = None,
    confirm: Optional[Confirm] = None,
    reboot: Optional[Reboot] = None,
) -> RunResult:
    """Load a plan and execute/resume it, persisting progress next to the plan."""

    plan = load_plan(plan_path)
    store = FileProgressStore(progress_path or PATHS.progress_path_for(plan_path))
    config = RunConfig(dry_run=dry_run, skip_to=skip_to)

    runner = StepRunner(
        plan.steps,
        store=store,
        config=config,
        confirm=confirm or prompt_yes_no,
        reboot=reboot or system_reboot,
    )
    # Reject a bad skip target before the store is created or read.
    if config.skip_to is not None:
        runner.check_skip_target(config.skip_to)

    runner.initialize()

    if config.skip_to is not None:
        runner.skip_to(config.skip_to)

    return runner.run()


def main(argv: Optional[list[str]] = None) -> int:
    p = argparse.ArgumentParser(prog="provision-runner")
    p.add_argument("--plan", default=None, help=f"Path to the step plan (yaml); default ${PATHS.plan_env}")
    p.add_argument("--progress", default=None, help="Path to the progress marker file (default: next to the plan)")
    p.add_argument("--log", default=None, help=f"Path to the runner log (default {PATHS.log_default})")
    p.add_argument("--verbose", action="store_true", help="Log command output")
    p.add_argument("--dry-run", action="store_true", help="Preview pending steps without running or recording anything")
    p.add_argument("--skip-to", default=None, metavar="N", help="Mark steps up to N as completed without running them")
    p.add_argument("--list-steps", action="store_true", help="Print the plan's steps and exit")
    reboot_group = p.add_mutually_exclusive_group()
    reboot_group.add_argument("--yes", action="store_true", help="Reboot without asking when a step requires it")
    reboot_group.add_argument("--no-reboot", action="store_true", help="Never reboot; stop and defer instead")

    args = p.parse_args(argv)

    configure_logging(
        log_path=PATHS.log_path(args.log),
        level=logging.DEBUG if args.verbose else logging.INFO,
    )

    plan_path = PATHS.plan_path(args.plan)
    if not plan_path:
        logger.error("No plan given (use --plan or set %s)", PATHS.plan_env)
        return EXIT_INVALID_ARGUMENT

    if args.list_steps:
        try:
            steps = load_plan(plan_path).steps
        except (PlanError, FileNotFoundError) as e:
            logger.error("Invalid plan: %s", e)
            return EXIT_PLAN_INVALID
        print(format_steps(steps))
        return EXIT_OK

    confirm: Optional[Confirm] = None
    if args.yes:
        confirm = auto_confirm(True)
    elif args.no_reboot:
        confirm = auto_confirm(False)

    try:
        run(
            plan_path=plan_path,
            progress_path=args.progress,
            dry_run=bool(args.dry_run),
            skip_to=args.skip_to,
            confirm=confirm,
        )
    except (PlanError, FileNotFoundError) as e:
        logger.error("Invalid plan: %s", e)
        return EXIT_PLAN_INVALID
    except ActionFailure as e:
        logger.error("Run halted at step %d (exit %d); fix the cause and re-run to resume", e.step.index, e.exit_code)
        return e.exit_code
    except RunnerError as e:
        logger.error("Run halted: %s", e)
        return e.exit_code

    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
