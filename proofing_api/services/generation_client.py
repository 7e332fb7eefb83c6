import logging
from typing import Any, Dict, List, Optional

import anthropic
import requests

from proofing_api.config import Settings
from proofing_api.errors import ConfigurationError, UpstreamError

LOGGER = logging.getLogger(__name__)

WEB_SEARCH_TOOL = {"type": "web_search_20250305", "name": "web_search"}

class AnthropicGenerationClient:
    """Thin wrapper over the Messages API that hands back plain dicts."""

    def __init__(self, api_key: str, model: str, max_tokens: int):
        self.client = anthropic.Anthropic(api_key=api_key)
        self.model = model
        self.max_tokens = max_tokens

    def create(self, system: str, messages: List[dict], tools: Optional[List[dict]] = None) -> Dict[str, Any]:
        kwargs = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "system": system,
            "messages": messages,
        }
        if tools:
            kwargs["tools"] = tools

        try:
            response = self.client.messages.create(**kwargs)
        except anthropic.APIStatusError as e:
            LOGGER.error("Anthropic API error body: %s", e.response.text)
            raise UpstreamError("Anthropic", e.status_code, e.response.text)
        except anthropic.APIConnectionError as e:
            raise UpstreamError("Anthropic", None, str(e))

        data = response.model_dump(exclude_none=True)
        return {"stop_reason": data.get("stop_reason"), "content": data.get("content", [])}

class DifyGenerationClient:
    """Dify chat app in blocking mode. Dify runs its own tools, so a tool grant is ignored."""

    def __init__(self, api_key: str, api_url: str, user: str = "proofreading-rewrite", timeout: float = 120):
        self.api_key = api_key
        self.api_url = api_url
        self.user = user
        self.timeout = timeout

    def create(self, system: str, messages: List[dict], tools: Optional[List[dict]] = None) -> Dict[str, Any]:
        query = "\n\n".join(part for part in (system, _last_user_text(messages)) if part)
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }
        body = {"inputs": {}, "query": query, "response_mode": "blocking", "user": self.user}

        try:
            res = requests.post(f"{self.api_url}/chat-messages", json=body, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise UpstreamError("Dify", None, str(e))

        if not res.ok:
            raise UpstreamError("Dify", res.status_code, res.text)

        answer = res.json().get("answer") or ""
        return {"stop_reason": "end_turn", "content": [{"type": "text", "text": answer}]}

def _last_user_text(messages: List[dict]) -> str:
    for message in reversed(messages):
        if message.get("role") != "user":
            continue
        content = message.get("content")
        if isinstance(content, str):
            return content
        return "".join(b.get("text", "") for b in content if isinstance(b, dict) and b.get("type") == "text")
    return ""

def build_generation_client(settings: Settings, provider: str = "anthropic"):
    """Pick the backend, failing before any network call when its credential is absent."""
    if provider == "dify":
        if not settings.dify_api_key:
            raise ConfigurationError("DIFY_API_KEY が設定されていません")
        return DifyGenerationClient(settings.dify_api_key, settings.dify_api_url)

    if provider != "anthropic":
        raise ConfigurationError(f"Unknown generation provider: {provider}")
    if not settings.anthropic_api_key:
        raise ConfigurationError("ANTHROPIC_API_KEY が設定されていません")
    return AnthropicGenerationClient(
        settings.anthropic_api_key,
        settings.anthropic_model,
        settings.anthropic_max_tokens,
    )
