from __future__ import annotations
from dataclasses import dataclass
import logging, subprocess

from ..config import ExecutorConfig

@dataclass
class CommandOutput:
    returncode: int
    output: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

class TerminalTool:
    def __init__(self, cfg: ExecutorConfig):
        self.cfg = cfg

    def run(self, command: str) -> CommandOutput:
        """Run ``command`` through the shell and wait; stdout and stderr are merged."""
        if not self.cfg.allow_shell:
            raise PermissionError("shell disabled by config")
        logging.info("running `%s` with %s", command, self.cfg.shell)
        proc = subprocess.run(
            [self.cfg.shell, "-c", command],
            cwd=str(self.cfg.working_dir),
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
        )
        return CommandOutput(proc.returncode, proc.stdout or "")
