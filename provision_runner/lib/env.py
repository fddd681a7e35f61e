from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class Paths:
    log_default: str = "/var/log/provision-runner.log"
    plan_env: str = "PROVISION_RUNNER_PLAN"
    log_env: str = "PROVISION_RUNNER_LOG"

    def plan_path(self, requested: Optional[str]) -> Optional[str]:
        return requested or os.environ.get(self.plan_env) or None

    def log_path(self, requested: Optional[str]) -> str:
        return requested or os.environ.get(self.log_env) or self.log_default

    @staticmethod
    def progress_path_for(plan_path: str) -> str:
        """Progress marker lives next to the plan: robot_jetson.yaml -> .robot_jetson_progress"""
        p = Path(plan_path)
        return str(p.parent / f".{p.stem}_progress")


PATHS = Paths()
