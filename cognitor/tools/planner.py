"""
Plan steps and the parser for the LLM's plan notation.

The model is asked to reply with tagged, line-delimited steps::

    THOUGHT create a script and run it
    CREATE_FILE path=hello.sh
    echo hello
    END
    RUN_COMMAND command=sh hello.sh
    ASK_USER question=Anything else?

The reply is untrusted input. Parsing either returns a complete Plan or
raises a PlanParseError; a step is never dropped or guessed.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Union
import re

from ..errors import CognitorError

@dataclass(frozen=True)
class CreateFile:
    path: str
    content: str

@dataclass(frozen=True)
class RunCommand:
    command: str

@dataclass(frozen=True)
class AskUser:
    question: str

PlanStep = Union[CreateFile, RunCommand, AskUser]

def describe(step: PlanStep) -> str:
    if isinstance(step, CreateFile):
        return f"Create file '{step.path}'"
    if isinstance(step, RunCommand):
        return f"Run command: `{step.command}`"
    return f"Ask user: '{step.question}'"

@dataclass(frozen=True)
class Plan:
    steps: tuple[PlanStep, ...] = ()
    thought: Optional[str] = None

    def __len__(self) -> int:
        return len(self.steps)

    def render(self) -> str:
        """Review text listing every step with its concrete arguments."""
        lines = ["--- Proposed Plan ---"]
        if self.thought:
            lines.append(f"Thought: {self.thought}")
        if not self.steps:
            lines.append("No actions planned.")
        for i, step in enumerate(self.steps, 1):
            if isinstance(step, CreateFile):
                lines.append(f"{i}. Create file '{step.path}' with content:")
                lines.append(step.content)
            else:
                lines.append(f"{i}. {describe(step)}")
        lines.append("---------------------")
        return "\n".join(lines)

class PlanParseError(CognitorError):
    def __init__(self, message: str, raw: str = ""):
        self.raw = raw
        super().__init__(message)

class UnknownStepType(PlanParseError):
    def __init__(self, tag: str, raw: str = ""):
        self.tag = tag
        super().__init__(f"Unknown step type '{tag}'", raw)

class MissingField(PlanParseError):
    def __init__(self, step_index: int, field: str, raw: str = ""):
        self.step_index = step_index
        self.field = field
        super().__init__(f"Step {step_index} is missing required field '{field}'", raw)

class UnterminatedBlock(PlanParseError):
    def __init__(self, step_index: int, tag: str, raw: str = ""):
        self.step_index = step_index
        self.tag = tag
        super().__init__(f"Step {step_index} ({tag}) has no closing END line", raw)

class InvalidField(PlanParseError):
    def __init__(self, step_index: int, field: str, reason: str, raw: str = ""):
        self.step_index = step_index
        self.field = field
        self.reason = reason
        super().__init__(f"Step {step_index} field '{field}' is invalid: {reason}", raw)

# tag -> required field on the header line
FIELDS = {
    "CREATE_FILE": "path",
    "RUN_COMMAND": "command",
    "ASK_USER": "question",
}
END = "END"
THOUGHT = "THOUGHT"

FENCE = re.compile(r"\A\s*```[\w-]*[ \t]*\n(.*?)\n?```\s*\Z", re.S)

def strip_fence(text: str) -> str:
    m = FENCE.match(text)
    return m.group(1) if m else text

def _field(header: str, name: str, index: int, raw: str) -> str:
    prefix = name + "="
    if not header.startswith(prefix):
        raise MissingField(index, name, raw)
    value = header[len(prefix):].strip()
    if not value:
        raise MissingField(index, name, raw)
    if "\x00" in value:
        raise InvalidField(index, name, "contains a NUL character", raw)
    return value

def parse(llm_output: str) -> Plan:
    raw = llm_output
    lines = strip_fence(llm_output).splitlines()
    steps: list[PlanStep] = []
    thoughts: list[str] = []
    i = 0
    while i < len(lines):
        line = lines[i].strip()
        i += 1
        if not line or line.startswith("#"):
            continue
        word, *tail = line.split(None, 1)
        rest = tail[0] if tail else ""
        tag = word.upper()
        rest = rest.strip()
        index = len(steps)
        if tag == THOUGHT:
            if rest:
                thoughts.append(rest)
            continue
        if tag not in FIELDS:
            raise UnknownStepType(word, raw)
        value = _field(rest, FIELDS[tag], index, raw)
        if tag == "CREATE_FILE":
            body: list[str] = []
            while i < len(lines) and lines[i].strip() != END:
                body.append(lines[i])
                i += 1
            if i >= len(lines):
                raise UnterminatedBlock(index, tag, raw)
            i += 1  # END
            steps.append(CreateFile(path=value, content="\n".join(body)))
        elif tag == "RUN_COMMAND":
            steps.append(RunCommand(command=value))
        else:
            steps.append(AskUser(question=value))
    return Plan(steps=tuple(steps), thought=" ".join(thoughts) or None)
