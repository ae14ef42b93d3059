"""
YAML-driven configuration for dbdocdiff.

Design choice:
- Put all parameters in YAML, except secrets (API key), which should come from an env var.
- The same LLM settings can be read from the environment alone (LLM_PROVIDER, API_KEY,
  API_BASE_URL, MODEL_NAME, OUTPUT_LANGUAGE), once, at process start.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Literal, Mapping, Optional

import os
import yaml
from pydantic import BaseModel, Field, ValidationError

from .errors import ConfigurationError


class ProviderKind(str, Enum):
    GEMINI = "gemini"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    LOCAL = "local"

    @classmethod
    def parse(cls, value: str) -> "ProviderKind":
        try:
            return cls(value.strip().lower())
        except ValueError:
            options = ", ".join(k.value for k in cls)
            raise ConfigurationError(f"Unknown LLM_PROVIDER: '{value}'. Expected one of: {options}.") from None


# Credentials are optional only for a self-hosted server.
CREDENTIAL_REQUIRED = {
    ProviderKind.GEMINI: True,
    ProviderKind.OPENAI: True,
    ProviderKind.ANTHROPIC: True,
    ProviderKind.LOCAL: False,
}


class ProjectConfig(BaseModel):
    old_workbook: str
    new_workbook: str
    output_dir: str = "comparison_output"


class LLMConfig(BaseModel):
    provider: ProviderKind = ProviderKind.GEMINI
    api_key_env: str = "API_KEY"
    api_key: Optional[str] = None  # discouraged; prefer env
    base_url: Optional[str] = None  # None -> provider default
    model: Optional[str] = None  # None -> provider default
    language: Literal["en", "ja", "fr"] = "en"
    timeout_sec: float = 120.0
    max_retries: int = Field(0, ge=0)  # SDK-level; failed sheets are never retried here
    temperature: float = 0.1
    max_tokens: int = 4096

    def resolved_api_key(self) -> Optional[str]:
        """Explicit key first, then the env var. None when neither is set."""
        if self.api_key:
            return self.api_key
        return os.getenv(self.api_key_env) or None

    def require_api_key(self) -> str:
        key = self.resolved_api_key()
        if not key:
            raise self.missing_key_error()
        return key

    def missing_key_error(self) -> ConfigurationError:
        return ConfigurationError(
            f"API Key is missing for {self.provider.value}. "
            f"Set env var '{self.api_key_env}' or provide llm.api_key in YAML."
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "LLMConfig":
        env = os.environ if environ is None else environ
        data = {"provider": ProviderKind.parse(env.get("LLM_PROVIDER") or "gemini")}
        if env.get("API_KEY"):
            data["api_key"] = env["API_KEY"]
        if env.get("API_BASE_URL"):
            data["base_url"] = env["API_BASE_URL"]
        if env.get("MODEL_NAME"):
            data["model"] = env["MODEL_NAME"]
        if env.get("OUTPUT_LANGUAGE"):
            data["language"] = env["OUTPUT_LANGUAGE"]
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid LLM configuration: {e}") from e


class ReportConfig(BaseModel):
    title: str = "Database Definition Diff Report"
    write_json: bool = True
    write_pdf: bool = True
    truncate_chars: int = 2000


class RuntimeConfig(BaseModel):
    verbose: bool = True


class DbDocDiffConfig(BaseModel):
    project: ProjectConfig
    llm: LLMConfig = Field(default_factory=LLMConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)
    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "DbDocDiffConfig":
        path = Path(path)
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Cannot read config '{path}': {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config '{path}' must be a YAML mapping.")
        llm = data.get("llm")
        if isinstance(llm, dict) and isinstance(llm.get("provider"), str):
            llm["provider"] = ProviderKind.parse(llm["provider"])
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid config '{path}': {e}") from e
