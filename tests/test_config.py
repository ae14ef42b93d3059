"""Tests for YAML and environment configuration."""

from __future__ import annotations

import pytest

from dbdocdiff.config import DbDocDiffConfig, LLMConfig, ProviderKind
from dbdocdiff.errors import ConfigurationError


class TestProviderKind:
    @pytest.mark.parametrize("raw", ["gemini", "OpenAI", " anthropic ", "LOCAL"])
    def test_parse_known(self, raw):
        assert ProviderKind.parse(raw).value == raw.strip().lower()

    def test_parse_unknown(self):
        with pytest.raises(ConfigurationError, match="Unknown LLM_PROVIDER"):
            ProviderKind.parse("mistral")


class TestFromEnv:
    def test_defaults(self):
        cfg = LLMConfig.from_env({})
        assert cfg.provider == ProviderKind.GEMINI
        assert cfg.model is None
        assert cfg.base_url is None
        assert cfg.language == "en"

    def test_reads_all_variables(self):
        cfg = LLMConfig.from_env(
            {
                "LLM_PROVIDER": "local",
                "API_KEY": "k",
                "API_BASE_URL": "http://127.0.0.1:8080/v1",
                "MODEL_NAME": "qwen",
                "OUTPUT_LANGUAGE": "ja",
            }
        )
        assert cfg.provider == ProviderKind.LOCAL
        assert cfg.api_key == "k"
        assert cfg.base_url == "http://127.0.0.1:8080/v1"
        assert cfg.model == "qwen"
        assert cfg.language == "ja"

    def test_unknown_provider(self):
        with pytest.raises(ConfigurationError):
            LLMConfig.from_env({"LLM_PROVIDER": "bard"})

    def test_unsupported_language(self):
        with pytest.raises(ConfigurationError):
            LLMConfig.from_env({"OUTPUT_LANGUAGE": "de"})


class TestApiKey:
    def test_explicit_key_wins(self, monkeypatch):
        monkeypatch.setenv("API_KEY", "from-env")
        assert LLMConfig(api_key="explicit").resolved_api_key() == "explicit"

    def test_env_key(self, monkeypatch):
        monkeypatch.setenv("MY_KEY", "from-env")
        assert LLMConfig(api_key_env="MY_KEY").require_api_key() == "from-env"

    def test_missing_key(self, no_api_key_env):
        cfg = LLMConfig(provider=ProviderKind.ANTHROPIC)
        assert cfg.resolved_api_key() is None
        with pytest.raises(ConfigurationError, match="anthropic"):
            cfg.require_api_key()


class TestFromYaml:
    def test_minimal(self, tmp_path):
        path = tmp_path / "cfg.yaml"
        path.write_text(
            "project:\n  old_workbook: a.xlsx\n  new_workbook: b.xlsx\nllm:\n  provider: OpenAI\n  language: fr\n",
            encoding="utf-8",
        )
        cfg = DbDocDiffConfig.from_yaml(path)
        assert cfg.project.output_dir == "comparison_output"
        assert cfg.llm.provider == ProviderKind.OPENAI
        assert cfg.llm.language == "fr"
        assert cfg.llm.max_retries == 0
        assert cfg.runtime.verbose is True

    def test_unknown_provider(self, tmp_path):
        path = tmp_path / "cfg.yaml"
        path.write_text(
            "project:\n  old_workbook: a.xlsx\n  new_workbook: b.xlsx\nllm:\n  provider: nope\n", encoding="utf-8"
        )
        with pytest.raises(ConfigurationError):
            DbDocDiffConfig.from_yaml(path)

    def test_missing_project(self, tmp_path):
        path = tmp_path / "cfg.yaml"
        path.write_text("llm:\n  provider: gemini\n", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            DbDocDiffConfig.from_yaml(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            DbDocDiffConfig.from_yaml(tmp_path / "nope.yaml")
