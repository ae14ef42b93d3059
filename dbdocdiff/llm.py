"""
Sheet comparison through a remote LLM, behind one provider-agnostic contract.

Variants:
- gemini:    google-genai, backend-enforced JSON schema
- openai:    OpenAI SDK chat completions, JSON mode + schema in the prompt
- anthropic: Anthropic SDK messages API, schema in the prompt
- local:     self-hosted OpenAI-compatible server, prompt-only schema
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Type

import anthropic
import httpx
import openai
from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types

from .config import CREDENTIAL_REQUIRED, LLMConfig, ProviderKind
from .errors import ConfigurationError, ProviderError
from .models import SheetDiffPayload
from .prompts import DIFF_RESPONSE_SCHEMA, build_system_prompt, build_user_prompt, message
from .utils import normalize_response


class SheetDiffProvider(ABC):
    """
    Compares two CSV renditions of one sheet and returns normalized diffs.

    The credential is read once, when the provider is built. The SDK client is
    created on first use, after the credential check, so a missing key never
    reaches the network.
    """

    kind: ProviderKind
    default_model: str
    default_base_url: Optional[str] = None

    def __init__(self, config: LLMConfig, *, client: Any = None, verbose: bool = True):
        self.config = config
        self.model = config.model or self.default_model
        self.base_url = config.base_url or self.default_base_url
        self.verbose = verbose
        self._client = client
        self._key = config.resolved_api_key()

    @property
    def name(self) -> str:
        return self.kind.value

    def compare(self, sheet_name: str, old_csv: str, new_csv: str, language: str) -> SheetDiffPayload:
        system = build_system_prompt(language)
        user = build_user_prompt(sheet_name, old_csv, new_csv)
        api_key = self._api_key()

        if self._client is None:
            self._client = self._create_client(api_key)

        if self.verbose:
            print(f"[LLM] Comparing sheet '{sheet_name}' with {self.name} ({self.model})...")

        text = self._complete(self._client, system, user)
        if not text or not text.strip():
            return SheetDiffPayload(diffs=[], summary=message(language, "no_content"))
        return normalize_response(text, placeholder=message(language, "no_summary"))

    def _api_key(self) -> str:
        if self._key:
            return self._key
        if CREDENTIAL_REQUIRED[self.kind]:
            raise self.config.missing_key_error()
        return "dummy"

    @abstractmethod
    def _create_client(self, api_key: str) -> Any:
        ...

    @abstractmethod
    def _complete(self, client: Any, system: str, user: str) -> Optional[str]:
        """Run one request and return the raw completion text (may be empty)."""


class GeminiProvider(SheetDiffProvider):
    kind = ProviderKind.GEMINI
    default_model = "gemini-2.5-flash"

    def _create_client(self, api_key: str) -> Any:
        http_options = genai_types.HttpOptions(
            base_url=self.base_url,
            timeout=int(self.config.timeout_sec * 1000),
        )
        return genai.Client(api_key=api_key, http_options=http_options)

    def _complete(self, client: Any, system: str, user: str) -> Optional[str]:
        try:
            response = client.models.generate_content(
                model=self.model,
                contents=user,
                config=genai_types.GenerateContentConfig(
                    system_instruction=system,
                    response_mime_type="application/json",
                    response_schema=DIFF_RESPONSE_SCHEMA,
                ),
            )
        except genai_errors.APIError as e:
            body = json.dumps(e.details, ensure_ascii=False, default=str) if e.details else str(e)
            raise ProviderError(self.name, body, http_status=e.code) from e
        except httpx.HTTPError as e:
            raise ProviderError(self.name, f"{type(e).__name__}: {e}") from e
        return response.text


class OpenAICompatibleProvider(SheetDiffProvider):
    kind = ProviderKind.OPENAI
    default_model = "gpt-4o"
    default_base_url = "https://api.openai.com/v1"
    json_mode = True

    def _create_client(self, api_key: str) -> Any:
        return openai.OpenAI(
            base_url=self.base_url,
            api_key=api_key,
            timeout=self.config.timeout_sec,
            max_retries=self.config.max_retries,
        )

    def _complete(self, client: Any, system: str, user: str) -> Optional[str]:
        kwargs: Dict[str, Any] = {}
        # Many local servers reject response_format, so those rely on the prompt alone.
        if self.json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            completion = client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
                temperature=self.config.temperature,
                **kwargs,
            )
        except openai.APIStatusError as e:
            raise ProviderError(self.name, e.response.text, http_status=e.status_code) from e
        except openai.APIError as e:
            raise ProviderError(self.name, f"{type(e).__name__}: {e}") from e

        if not completion.choices:
            return None
        return completion.choices[0].message.content


class LocalProvider(OpenAICompatibleProvider):
    kind = ProviderKind.LOCAL
    default_model = "local-model"
    default_base_url = "http://localhost:1234/v1"
    json_mode = False


class AnthropicProvider(SheetDiffProvider):
    kind = ProviderKind.ANTHROPIC
    default_model = "claude-3-5-sonnet-latest"

    def __init__(self, config: LLMConfig, **kwargs: Any):
        super().__init__(config, **kwargs)
        # The SDK appends /v1/messages itself.
        if self.base_url:
            root = self.base_url.rstrip("/")
            self.base_url = root[:-3] if root.endswith("/v1") else root

    def _create_client(self, api_key: str) -> Any:
        return anthropic.Anthropic(
            api_key=api_key,
            base_url=self.base_url,
            timeout=self.config.timeout_sec,
            max_retries=self.config.max_retries,
        )

    def _complete(self, client: Any, system: str, user: str) -> Optional[str]:
        try:
            response = client.messages.create(
                model=self.model,
                system=system,
                messages=[{"role": "user", "content": user}],
                max_tokens=self.config.max_tokens,
                temperature=self.config.temperature,
            )
        except anthropic.APIStatusError as e:
            raise ProviderError(self.name, e.response.text, http_status=e.status_code) from e
        except anthropic.APIError as e:
            raise ProviderError(self.name, f"{type(e).__name__}: {e}") from e

        for block in response.content or []:
            if getattr(block, "type", None) == "text":
                return block.text
        return None


PROVIDERS: Dict[ProviderKind, Type[SheetDiffProvider]] = {
    ProviderKind.GEMINI: GeminiProvider,
    ProviderKind.OPENAI: OpenAICompatibleProvider,
    ProviderKind.ANTHROPIC: AnthropicProvider,
    ProviderKind.LOCAL: LocalProvider,
}


def build_provider(config: LLMConfig, *, verbose: bool = True) -> SheetDiffProvider:
    """Select the variant once, before any sheet is processed."""
    kind = config.provider
    if not isinstance(kind, ProviderKind):
        kind = ProviderKind.parse(str(kind))
    provider_cls = PROVIDERS.get(kind)
    if provider_cls is None:
        raise ConfigurationError(f"No provider registered for '{kind.value}'.")
    return provider_cls(config, verbose=verbose)
