from pathlib import Path

import pytest

from cognitor.config import ModelConfig


@pytest.fixture
def echo_model() -> ModelConfig:
    return ModelConfig(
        name="echo",
        api_url="https://llm.example.test/v1/complete",
        model_identifier="echo-1",
        request_format='{"model": "{{model}}", "q": "{{prompt}}"}',
        response_json_path="$.answer",
    )


@pytest.fixture
def config_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    path = tmp_path / "cfg" / "config.json"
    monkeypatch.setenv("COGNITOR_CONFIG", str(path))
    return path
