from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Union
import logging

from ..config import ExecutorConfig
from ..context import PromptContext
from .fs import FileSystemTool
from .planner import AskUser, CreateFile, Plan, PlanStep, RunCommand, describe
from .terminal import TerminalTool

class State(str, Enum):
    PARSED = "parsed"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"

@dataclass(frozen=True)
class Success:
    output: Optional[str] = None
    bytes_written: Optional[int] = None

@dataclass(frozen=True)
class Failed:
    error: str
    output: Optional[str] = None

@dataclass(frozen=True)
class Skipped:
    reason: str

ExecutionResult = Union[Success, Failed, Skipped]

@dataclass(frozen=True)
class ExecutionSummary:
    state: State
    results: tuple[tuple[PlanStep, ExecutionResult], ...] = ()
    context: PromptContext = PromptContext()

    @property
    def success(self) -> bool:
        return all(isinstance(r, Success) for _, r in self.results)

    @property
    def executed(self) -> int:
        return sum(1 for _, r in self.results if not isinstance(r, Skipped))

    def failures(self) -> list[tuple[int, PlanStep, Failed]]:
        return [(i, s, r) for i, (s, r) in enumerate(self.results) if isinstance(r, Failed)]

def _log_plan(text: str) -> None:
    logging.info("%s", text)

class Executor:
    """
    Runs a parsed Plan: show it, wait for confirmation, then run every step
    in order. Step failures are recorded in the summary, never raised.
    """
    def __init__(self, cfg: ExecutorConfig, context: PromptContext = PromptContext()):
        self.cfg = cfg
        self.fs = FileSystemTool(cfg)
        self.term = TerminalTool(cfg)
        self.context = context
        self.state = State.PARSED

    def execute(
        self,
        plan: Plan,
        confirm: Callable[[], bool],
        ask_user: Callable[[str], str],
        show: Optional[Callable[[str], None]] = None,
    ) -> ExecutionSummary:
        self.state = State.PARSED
        (show or _log_plan)(plan.render())
        if not plan.steps:
            self.state = State.COMPLETED
            return ExecutionSummary(self.state, (), self.context)

        self.state = State.AWAITING_CONFIRMATION
        if not confirm():
            self.state = State.ABORTED
            logging.info("plan not confirmed, nothing executed")
            skipped = tuple((s, Skipped("plan not confirmed")) for s in plan.steps)
            return ExecutionSummary(self.state, skipped, self.context)

        self.state = State.RUNNING
        results: list[tuple[PlanStep, ExecutionResult]] = []
        failed = False
        for i, step in enumerate(plan.steps):
            if failed and self.cfg.stop_on_failure:
                results.append((step, Skipped("previous step failed")))
                continue
            logging.info("step %d/%d: %s", i + 1, len(plan.steps), describe(step))
            result = self.dispatch(step, ask_user)
            if isinstance(result, Failed):
                failed = True
                logging.warning("step %d failed: %s", i + 1, result.error)
            results.append((step, result))

        self.state = State.COMPLETED
        return ExecutionSummary(self.state, tuple(results), self.context)

    def dispatch(self, step: PlanStep, ask_user: Callable[[str], str]) -> ExecutionResult:
        m = {
            CreateFile: lambda: self._create_file(step),
            RunCommand: lambda: self._run_command(step),
            AskUser: lambda: self._ask_user(step, ask_user),
        }.get(type(step))
        if not m:
            raise ValueError(f"unknown step: {step!r}")
        return m()

    def _create_file(self, step: CreateFile) -> ExecutionResult:
        try:
            n = self.fs.write(step.path, step.content)
        except (OSError, ValueError) as e:
            return Failed(f"Failed to write file '{step.path}': {e}")
        return Success(bytes_written=n)

    def _run_command(self, step: RunCommand) -> ExecutionResult:
        if not self.cfg.allow_shell:
            return Skipped("shell disabled by config")
        try:
            out = self.term.run(step.command)
        except OSError as e:
            return Failed(f"Failed to execute command: {e}")
        if out.ok:
            return Success(output=out.output)
        return Failed(f"exit code {out.returncode}", output=out.output)

    def _ask_user(self, step: AskUser, ask_user: Callable[[str], str]) -> ExecutionResult:
        try:
            answer = ask_user(step.question)
        except (EOFError, OSError) as e:
            return Failed(f"No answer: {e!r}")
        # later prompts (session follow-ups) see the answer
        self.context = self.context.extend(f"user: {step.question}", answer)
        return Success(output=answer)
