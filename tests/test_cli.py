import json
from pathlib import Path

import httpx
import pytest

from cognitor.cli import CognitorCLI, create_parser, main, split_sources
from cognitor.config import Config, ModelConfig
from cognitor.llm import LLM


def _llm(answer: str, seen: list | None = None) -> LLM:
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(json.loads(request.content)["q"])
        return httpx.Response(200, json={"answer": answer})

    return LLM(client=httpx.Client(transport=httpx.MockTransport(handler)))


@pytest.fixture
def configured(config_file: Path, echo_model: ModelConfig) -> Path:
    cfg = Config()
    cfg.add_model(echo_model)
    cfg.set_default_model(echo_model.name)
    cfg.save(config_file)
    return config_file


def _inputs(monkeypatch: pytest.MonkeyPatch, *answers: str) -> list:
    prompts = []
    it = iter(answers)

    def fake_input(prompt: str = "") -> str:
        prompts.append(prompt)
        try:
            return next(it)
        except StopIteration:
            raise EOFError() from None

    monkeypatch.setattr("builtins.input", fake_input)
    return prompts


def test_split_sources() -> None:
    assert split_sources(["a.txt,b.txt", " c.txt ", ""]) == ["a.txt", "b.txt", "c.txt"]
    assert split_sources(None) == []


def test_parser_act_flags() -> None:
    args = create_parser().parse_args(["-m", "echo", "-c", "a,b", "act", "do it", "--auto-confirm"])
    assert args.command == "act"
    assert args.model == "echo"
    assert args.auto_confirm is True
    assert args.stop_on_failure is False


def test_ask_prints_answer(configured: Path, capsys: pytest.CaptureFixture) -> None:
    cli = CognitorCLI(configured, llm=_llm("forty-two"))
    assert cli.ask("meaning?")
    assert "forty-two" in capsys.readouterr().out


def test_act_confirmed(configured: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch,
                       capsys: pytest.CaptureFixture) -> None:
    work = tmp_path / "work"
    work.mkdir()
    plan = "CREATE_FILE path=a.txt\nx\nEND\nRUN_COMMAND command=cat a.txt\nASK_USER question=Name?\n"
    prompts = _inputs(monkeypatch, "y", "Ada")
    cli = CognitorCLI(configured, llm=_llm(plan), working_dir=work)

    assert cli.act("make a file")
    assert (work / "a.txt").read_text() == "x"
    assert "Execute this plan?" in prompts[0]
    assert "Name?" in prompts[1]
    out = capsys.readouterr().out
    assert "Create file 'a.txt'" in out
    assert "3/3 steps executed" in out


def test_act_declined(configured: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    work = tmp_path / "work"
    work.mkdir()
    _inputs(monkeypatch, "n")
    cli = CognitorCLI(configured, llm=_llm("CREATE_FILE path=a.txt\nx\nEND"), working_dir=work)
    assert not cli.act("make a file")
    assert not (work / "a.txt").exists()


def test_act_auto_confirm_never_prompts(configured: Path, tmp_path: Path,
                                         monkeypatch: pytest.MonkeyPatch) -> None:
    prompts = _inputs(monkeypatch)
    cli = CognitorCLI(configured, llm=_llm("CREATE_FILE path=a.txt\nx\nEND"), working_dir=tmp_path)
    assert cli.act("make a file", auto_confirm=True)
    assert prompts == []
    assert (tmp_path / "a.txt").read_text() == "x"


def test_act_bad_plan_shows_raw_output(configured: Path, capsys: pytest.CaptureFixture) -> None:
    cli = CognitorCLI(configured, llm=_llm("DELETE_FILE path=/etc/passwd"))
    assert not cli.act("clean up")
    out = capsys.readouterr().out
    assert "Unknown step type 'DELETE_FILE'" in out
    assert "DELETE_FILE path=/etc/passwd" in out


def test_session_keeps_history(configured: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    seen: list = []
    _inputs(monkeypatch, "first", "", "second", "exit")
    cli = CognitorCLI(configured, llm=_llm("reply", seen))
    assert cli.session()
    assert len(seen) == 2
    assert "Conversation History" not in seen[0]
    assert "User: first\nLLM: reply" in seen[1]


def test_config_commands_roundtrip(config_file: Path, capsys: pytest.CaptureFixture) -> None:
    cli = CognitorCLI()
    assert cli.config_add(
        name="gemini",
        api_url="https://g.test/v1/models/{{model}}:generateContent",
        api_key="AIza-secret",
        api_key_header="x-goog-api-key: {{api_key}}",
        model_identifier="gemini-flash",
        request_format='{"contents": [{"parts": [{"text": "{{prompt}}"}]}]}',
        response_json_path="$.candidates[0].content.parts[0].text",
    )
    assert cli.config_set_default("gemini")
    assert cli.config_list()
    out = capsys.readouterr().out
    assert "gemini (default)" in out
    assert "Key=Set" in out
    assert "AIza-secret" not in out

    assert Config.load(config_file).default_model == "gemini"
    assert cli.config_delete("gemini")
    assert Config.load(config_file).models == {}


def test_config_add_invalid(config_file: Path, capsys: pytest.CaptureFixture) -> None:
    cli = CognitorCLI()
    assert not cli.config_add(name="x", api_url="u", request_format="{}", response_json_path="$.a")
    assert "Invalid model configuration" in capsys.readouterr().out
    assert not config_file.exists()


def test_main_without_model_exits_1(config_file: Path, capsys: pytest.CaptureFixture) -> None:
    with pytest.raises(SystemExit) as exc:
        main(["ask", "hello"])
    assert exc.value.code == 1
    assert "No active model configured" in capsys.readouterr().err


def test_main_config_path(config_file: Path, capsys: pytest.CaptureFixture) -> None:
    with pytest.raises(SystemExit) as exc:
        main(["config", "path"])
    assert exc.value.code == 0
    assert str(config_file) in capsys.readouterr().out
