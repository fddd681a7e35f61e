from __future__ import annotations

import logging
from typing import Callable

from .lib.command import run_cmd

logger = logging.getLogger(__name__)


def prompt_yes_no(question: str, *, input_fn: Callable[[str], str] = input) -> bool:
    """Ask on the terminal; only an answer starting with y/Y confirms.

    No terminal (EOF) counts as "no" so unattended runs defer instead of rebooting.
    """

    try:
        reply = input_fn(question)
    except EOFError:
        logger.info("No interactive input available; treating as 'no'")
        return False
    return reply.strip()[:1] in {"y", "Y"}


def auto_confirm(answer: bool) -> Callable[[str], bool]:
    def _confirm(question: str) -> bool:
        logger.info("%s -> %s (non-interactive)", question.strip(), "yes" if answer else "no")
        return answer

    return _confirm


def system_reboot() -> None:
    run_cmd(["sync"])
    run_cmd(["reboot"])
