from __future__ import annotations
from pathlib import Path
from pydantic import BaseModel, Field, SecretStr, field_serializer, field_validator
from typing import Optional
import json, logging, os

from .errors import ConfigError
from .extract import ExtractionError, parse_path
from .utils import atomic_write, expand_home

CONFIG_ENV = "COGNITOR_CONFIG"

class ModelConfig(BaseModel):
    name: str = Field(..., description="Unique name the model is selected by.")
    api_url: str = Field(..., description="Endpoint the rendered request body is POSTed to.")
    api_key: Optional[SecretStr] = None
    api_key_header: Optional[str] = Field(None, description="e.g. 'x-goog-api-key: {{api_key}}'; Bearer auth when unset")
    model_identifier: Optional[str] = None
    request_format: str = Field(..., description="JSON body template, must contain {{prompt}}")
    response_json_path: str = Field(..., description="Selector for the answer, e.g. $.choices[0].message.content")

    @field_validator("name")
    @classmethod
    def _name_not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be empty")
        return v

    @field_validator("request_format")
    @classmethod
    def _has_prompt(cls, v: str) -> str:
        if "{{prompt}}" not in v:
            raise ValueError("request_format must contain the {{prompt}} placeholder")
        return v

    @field_validator("api_key_header")
    @classmethod
    def _header_shape(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        name, sep, _ = v.partition(":")
        if not sep or not name.strip():
            raise ValueError("api_key_header must look like 'Header-Name: value'")
        return v

    @field_validator("response_json_path")
    @classmethod
    def _valid_path(cls, v: str) -> str:
        try:
            parse_path(v)
        except ExtractionError as e:
            raise ValueError(str(e)) from None
        return v

    @field_serializer("api_key", when_used="json")
    def _dump_key(self, v: Optional[SecretStr]) -> Optional[str]:
        # only reached when writing the config file
        return v.get_secret_value() if v else None

    def secret(self) -> Optional[str]:
        return self.api_key.get_secret_value() if self.api_key else None

class Config(BaseModel):
    models: dict[str, ModelConfig] = {}
    default_model: Optional[str] = None
    current_model: Optional[str] = None

    @staticmethod
    def config_path() -> Path:
        env = os.environ.get(CONFIG_ENV)
        if env:
            return expand_home(env)
        return Path.home() / ".config" / "cognitor" / "config.json"

    @classmethod
    def load(cls, path: Path | None = None) -> "Config":
        path = path or cls.config_path()
        if not path.exists():
            logging.debug("no config at %s, starting empty", path)
            return cls()
        try:
            return cls.model_validate_json(path.read_text(encoding="utf-8"))
        except ValueError as e:
            raise ConfigError(f"Invalid config file {path}: {e}") from e

    def save(self, path: Path | None = None) -> Path:
        path = path or self.config_path()
        data = json.dumps(self.model_dump(mode="json"), indent=2)
        atomic_write(path, data.encode("utf-8"))
        return path

    def add_model(self, model: ModelConfig) -> None:
        if model.name in self.models:
            logging.info("replacing model config '%s'", model.name)
        self.models[model.name] = model

    def delete_model(self, name: str) -> None:
        self._require(name)
        del self.models[name]
        if self.default_model == name:
            self.default_model = None
        if self.current_model == name:
            self.current_model = None

    def set_default_model(self, name: str) -> None:
        self._require(name)
        self.default_model = name

    def set_current_model(self, name: str) -> None:
        self._require(name)
        self.current_model = name

    def clear_current_model(self) -> None:
        self.current_model = None

    def active_name(self) -> Optional[str]:
        for name in (self.current_model, self.default_model):
            if name and name in self.models:
                return name
        return None

    def resolve(self, override: Optional[str] = None) -> ModelConfig:
        """Pick the model for this invocation: override > current > default."""
        if override:
            return self._require(override)
        name = self.active_name()
        if name is None:
            raise ConfigError(
                "No active model configured. Use 'cognitor config add' and 'cognitor config set-default'."
            )
        return self.models[name]

    def _require(self, name: str) -> ModelConfig:
        m = self.models.get(name)
        if m is None:
            raise ConfigError(f"Model '{name}' not found")
        return m

class ExecutorConfig(BaseModel):
    working_dir: Path = Field(default_factory=Path.cwd, description="Base for relative paths and commands.")
    shell: str = Field(default_factory=lambda: os.environ.get("SHELL") or "/bin/sh")
    allow_shell: bool = True
    stop_on_failure: bool = False

    def resolve(self):
        self.working_dir = expand_home(self.working_dir).resolve()
        return self
