"""
CLIFF: Command Line Interface Friendly & Facilitator
Ask a configured LLM questions, or let it plan and run actions on this machine.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from colorama import Fore, Style, just_fix_windows_console
from dotenv import load_dotenv

from .config import Config, ExecutorConfig, ModelConfig
from .context import PromptContext, gather
from .errors import CognitorError
from .llm import LLM
from .tools.executor import ExecutionSummary, Executor, Failed, Skipped, State, Success
from .tools.planner import PlanParseError, describe, parse

class CLIColors:
    """Color utilities for CLI output"""

    @staticmethod
    def success(text: str) -> str:
        return f"{Fore.GREEN}{text}{Style.RESET_ALL}"

    @staticmethod
    def error(text: str) -> str:
        return f"{Fore.RED}{text}{Style.RESET_ALL}"

    @staticmethod
    def warning(text: str) -> str:
        return f"{Fore.YELLOW}{text}{Style.RESET_ALL}"

    @staticmethod
    def info(text: str) -> str:
        return f"{Fore.CYAN}{text}{Style.RESET_ALL}"

    @staticmethod
    def highlight(text: str) -> str:
        return f"{Fore.MAGENTA}{Style.BRIGHT}{text}{Style.RESET_ALL}"

def split_sources(values: Optional[Sequence[str]]) -> list[str]:
    out: list[str] = []
    for v in values or ():
        out.extend(s.strip() for s in v.split(",") if s.strip())
    return out

class CognitorCLI:
    """Main CLI class"""

    def __init__(self, config_path: Optional[Path] = None, model: Optional[str] = None,
                 context_sources: Sequence[str] = (), llm: Optional[LLM] = None,
                 working_dir: Optional[Path] = None):
        self.config_path = config_path or Config.config_path()
        self.config = Config.load(self.config_path)
        self.model_override = model
        self.context_sources = list(context_sources)
        self.working_dir = working_dir
        self._llm = llm

    @property
    def llm(self) -> LLM:
        if self._llm is None:
            self._llm = LLM()
        return self._llm

    def _context(self) -> PromptContext:
        if not self.context_sources:
            return PromptContext()
        return gather(self.context_sources, self.llm.client)

    # --- ask / session ---

    def ask(self, prompt: str) -> bool:
        model = self.config.resolve(self.model_override)
        answer = self.llm.ask(model, prompt, self._context())
        print(CLIColors.success(answer) + "\n")
        return True

    def session(self) -> bool:
        model = self.config.resolve(self.model_override)
        context = self._context()
        history: list[str] = []
        print(CLIColors.info("Ask your questions (or type 'exit' to end):"))
        while True:
            try:
                question = input("> ").strip()
            except (KeyboardInterrupt, EOFError):
                print()
                break
            if not question:
                continue
            if question.lower() in ("exit", "quit"):
                break
            try:
                answer = self.llm.ask(model, question, context, history)
            except CognitorError as e:
                print(CLIColors.error(f"❌ {e}"))
                continue
            print(CLIColors.success(answer) + "\n")
            history.append(f"User: {question}\nLLM: {answer}")
        print(CLIColors.info("Ending session."))
        return True

    # --- act ---

    def act(self, instruction: str, auto_confirm: bool = False, stop_on_failure: bool = False) -> bool:
        model = self.config.resolve(self.model_override)
        context = self._context()
        raw = self.llm.ask_for_plan(model, instruction, context)
        try:
            plan = parse(raw)
        except PlanParseError as e:
            print(CLIColors.error(f"❌ Could not parse the plan: {e}"))
            print(CLIColors.warning("Raw LLM output:"))
            print(e.raw)
            return False

        cfg = ExecutorConfig(stop_on_failure=stop_on_failure)
        if self.working_dir is not None:
            cfg.working_dir = self.working_dir
        executor = Executor(cfg.resolve(), context)
        summary = executor.execute(
            plan,
            confirm=(lambda: True) if auto_confirm else self._confirm,
            ask_user=self._ask_user,
            show=lambda text: print(CLIColors.highlight(text)),
        )
        self._print_summary(summary)
        return summary.state != State.ABORTED and summary.success

    def _confirm(self) -> bool:
        try:
            choice = input(CLIColors.info("Execute this plan? (y/N): ")).strip().lower()
        except EOFError:
            return False
        return choice in ("y", "yes")

    def _ask_user(self, question: str) -> str:
        return input(CLIColors.info(f"{question} ")).strip()

    def _print_summary(self, summary: ExecutionSummary) -> None:
        if summary.state == State.ABORTED:
            print(CLIColors.warning("⏭️  Plan not confirmed, nothing was executed."))
            return
        if not summary.results:
            print(CLIColors.info("No actions to execute."))
            return
        print(CLIColors.highlight("\n--- Execution Summary ---"))
        for i, (step, result) in enumerate(summary.results, 1):
            if isinstance(result, Success):
                print(CLIColors.success(f"✅ {i}. {describe(step)}"))
                if result.bytes_written is not None:
                    print(f"   {result.bytes_written} bytes written")
                elif result.output:
                    print(result.output.rstrip("\n"))
            elif isinstance(result, Failed):
                print(CLIColors.error(f"❌ {i}. {describe(step)}: {result.error}"))
                if result.output:
                    print(result.output.rstrip("\n"))
            elif isinstance(result, Skipped):
                print(CLIColors.warning(f"⏭️  {i}. {describe(step)}: skipped ({result.reason})"))
        print(CLIColors.info(f"{summary.executed}/{len(summary.results)} steps executed"))

    # --- config ---

    def config_add(self, **fields) -> bool:
        try:
            model = ModelConfig(**fields)
        except ValueError as e:
            print(CLIColors.error(f"❌ Invalid model configuration: {e}"))
            return False
        self.config.add_model(model)
        self.config.save(self.config_path)
        print(CLIColors.success(f"Model '{model.name}' added."))
        return True

    def config_set_default(self, name: str) -> bool:
        self.config.set_default_model(name)
        self.config.save(self.config_path)
        print(CLIColors.success(f"Default model set to '{name}'."))
        return True

    def config_set_current(self, name: str) -> bool:
        self.config.set_current_model(name)
        self.config.save(self.config_path)
        print(CLIColors.success(f"Current model set to '{name}'."))
        return True

    def config_clear_current(self) -> bool:
        self.config.clear_current_model()
        self.config.save(self.config_path)
        print(CLIColors.success("Current model selection cleared. Using default model."))
        return True

    def config_delete(self, name: str) -> bool:
        self.config.delete_model(name)
        self.config.save(self.config_path)
        print(CLIColors.success(f"Model '{name}' deleted."))
        return True

    def config_list(self) -> bool:
        print("Configured Models:")
        if not self.config.models:
            print("  No models configured.")
        for name, m in self.config.models.items():
            markers = ""
            if name == self.config.default_model:
                markers += " (default)"
            if name == self.config.current_model:
                markers += " (current)"
            print(
                f"  - {name}{markers}: URL={m.api_url}, Key={'Set' if m.api_key else 'Not Set'}, "
                f"Identifier={m.model_identifier or 'Not Set'}"
            )
        print(f"\nActive model for next command (unless overridden): {self.config.active_name() or 'None'}")
        return True

    def config_path_show(self) -> bool:
        print(f"Config file path: {self.config_path}")
        return True

def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser"""
    parser = argparse.ArgumentParser(
        prog="cognitor",
        description="CLIFF: Command Line Interface Friendly & Facilitator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s ask "what does this script do?" -c run.sh
  %(prog)s act "create a hello world python script and run it"
  %(prog)s session
  %(prog)s config list
""",
    )
    parser.add_argument("--model", "-m", help="Configured model to use for this command")
    parser.add_argument("--context", "-c", action="append",
                        help="Files or URLs to provide as context (comma separated, repeatable)")
    parser.add_argument("--config", type=Path, help="Config file (default: $COGNITOR_CONFIG or ~/.config/cognitor/config.json)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    ask_parser = subparsers.add_parser("ask", help="Ask a question to the configured LLM")
    ask_parser.add_argument("prompt", help="The prompt/question to ask")

    act_parser = subparsers.add_parser("act", help="Ask the LLM for a plan and execute it")
    act_parser.add_argument("instruction", help="The instruction or goal for the LLM")
    act_parser.add_argument("--auto-confirm", action="store_true", help="Execute the plan without asking")
    act_parser.add_argument("--stop-on-failure", action="store_true", help="Skip remaining steps after a failed one")

    subparsers.add_parser("session", help="Start an interactive question session")

    config_parser = subparsers.add_parser("config", help="Manage LLM configurations")
    config_sub = config_parser.add_subparsers(dest="action", help="Configuration sub-command")

    add = config_sub.add_parser("add", help="Add a new model configuration")
    add.add_argument("--name", "-n", required=True)
    add.add_argument("--api-url", required=True)
    add.add_argument("--api-key")
    add.add_argument("--api-key-header", help="e.g. 'Authorization: Bearer {{api_key}}'")
    add.add_argument("--model-identifier")
    add.add_argument("--request-format", required=True, help="JSON body template containing {{prompt}}")
    add.add_argument("--response-json-path", required=True, help="e.g. $.choices[0].message.content")

    for action, help_text in (("set-default", "Set the default model"),
                              ("set-current", "Set the current model (overrides the default)"),
                              ("delete", "Delete a configured model")):
        p = config_sub.add_parser(action, help=help_text)
        p.add_argument("name")
    config_sub.add_parser("clear-current", help="Clear the current model, falling back to default")
    config_sub.add_parser("list", help="List all configured models")
    config_sub.add_parser("path", help="Show the config file path")

    return parser

def run(cli: CognitorCLI, args: argparse.Namespace) -> bool:
    if args.command == "ask":
        return cli.ask(args.prompt)
    if args.command == "act":
        return cli.act(args.instruction, args.auto_confirm, args.stop_on_failure)
    if args.command == "session":
        return cli.session()
    action = args.action
    if action == "add":
        return cli.config_add(
            name=args.name, api_url=args.api_url, api_key=args.api_key,
            api_key_header=args.api_key_header, model_identifier=args.model_identifier,
            request_format=args.request_format, response_json_path=args.response_json_path,
        )
    if action == "set-default":
        return cli.config_set_default(args.name)
    if action == "set-current":
        return cli.config_set_current(args.name)
    if action == "clear-current":
        return cli.config_clear_current()
    if action == "delete":
        return cli.config_delete(args.name)
    if action == "list":
        return cli.config_list()
    if action == "path":
        return cli.config_path_show()
    raise ValueError(f"unknown config action: {action}")

def main(argv: Optional[Sequence[str]] = None):
    """Main CLI entry point"""
    load_dotenv()
    just_fix_windows_console()
    parser = create_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.command or (args.command == "config" and not args.action):
        parser.print_help()
        sys.exit(0)

    try:
        cli = CognitorCLI(args.config, args.model, split_sources(args.context))
        success = run(cli, args)
    except CognitorError as e:
        print(CLIColors.error(f"❌ {e}"), file=sys.stderr)
        success = False
    except KeyboardInterrupt:
        print("\n" + CLIColors.warning("Interrupted."), file=sys.stderr)
        sys.exit(130)

    sys.exit(0 if success else 1)

if __name__ == "__main__":
    main()
