from __future__ import annotations

import logging
import os
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .errors import PlanError, StepDefinitionError
from .steps import Action, CommandAction, FileAction, Step, validate_steps

logger = logging.getLogger(__name__)


def _expand(value: str) -> str:
    return os.path.expanduser(os.path.expandvars(value))


def _parse_mode(raw: Any, *, step: int) -> Optional[int]:
    if raw is None:
        return None
    if isinstance(raw, bool):
        raise PlanError(f"invalid file mode {raw!r}", step=step)
    if isinstance(raw, int):
        # YAML 1.1 already read 0644 as octal.
        return raw
    try:
        return int(str(raw), 8)
    except ValueError as e:
        raise PlanError(f"invalid file mode {raw!r}", step=step) from e


def _parse_commands(raw: Any, *, step: int) -> List[List[str]]:
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, list) or not raw:
        raise PlanError("'run' must be a non-empty list of commands", step=step)

    commands: List[List[str]] = []
    for cmd in raw:
        if isinstance(cmd, str):
            argv = shlex.split(cmd)
        elif isinstance(cmd, list) and all(isinstance(a, (str, int, float)) for a in cmd):
            argv = [str(a) for a in cmd]
        else:
            raise PlanError(f"command must be a string or a list of strings, got {cmd!r}", step=step)
        if not argv:
            raise PlanError("empty command", step=step)
        commands.append([_expand(a) for a in argv])
    return commands


def _parse_action(raw: Dict[str, Any], *, step: int) -> Action:
    has_run = "run" in raw
    has_write = "write_file" in raw
    if has_run == has_write:
        raise PlanError("exactly one of 'run' or 'write_file' is required", step=step)

    if has_run:
        env = raw.get("env") or {}
        if not isinstance(env, dict):
            raise PlanError("'env' must be a mapping", step=step)
        cwd = raw.get("cwd")
        return CommandAction(
            commands=_parse_commands(raw["run"], step=step),
            env={str(k): _expand(str(v)) for k, v in env.items()} or None,
            cwd=_expand(str(cwd)) if cwd else None,
        )

    spec = raw["write_file"]
    if not isinstance(spec, dict) or not spec.get("path"):
        raise PlanError("'write_file' needs at least a 'path'", step=step)
    return FileAction(
        path=_expand(str(spec["path"])),
        content=str(spec.get("content") or ""),
        append=bool(spec.get("append", False)),
        mode=_parse_mode(spec.get("mode"), step=step),
    )


@dataclass(frozen=True)
class Plan:
    raw: Dict[str, Any]
    source: str = "<memory>"

    @property
    def name(self) -> str:
        return str(self.raw.get("name") or Path(self.source).stem)

    @property
    def steps(self) -> List[Step]:
        entries = self.raw.get("steps")
        if not isinstance(entries, list) or not entries:
            raise PlanError(f"{self.source}: 'steps' must be a non-empty list")

        out: List[Step] = []
        for pos, entry in enumerate(entries, start=1):
            if not isinstance(entry, dict):
                raise PlanError("step must be a mapping", step=pos)
            description = entry.get("description")
            if not description:
                raise PlanError("'description' is required", step=pos)
            index = entry.get("index", pos)
            if isinstance(index, bool) or not isinstance(index, int):
                raise PlanError(f"'index' must be an integer, got {index!r}", step=pos)
            out.append(
                Step(
                    index=index,
                    description=str(description),
                    action=_parse_action(entry, step=pos),
                    requires_reboot=bool(entry.get("requires_reboot", False)),
                )
            )

        try:
            return validate_steps(out)
        except StepDefinitionError as e:
            raise PlanError(f"{self.source}: {e}") from e


def load_plan(path: str) -> Plan:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(path)

    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise PlanError(f"{path}: plan must be YAML")

    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise PlanError(f"{path}: {e}") from e
    if not isinstance(raw, dict):
        raise PlanError(f"{path}: plan must contain a mapping/object")

    plan = Plan(raw=raw, source=str(p))
    logger.info("Loaded plan %s from %s", plan.name, p)
    return plan
