import os
from dataclasses import dataclass
from typing import Optional

def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")

def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    try:
        return int(raw) if raw else default
    except ValueError:
        return default

def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    try:
        return float(raw) if raw else default
    except ValueError:
        return default

@dataclass(frozen=True)
class Settings:
    anthropic_api_key: Optional[str] = None
    anthropic_model: str = "claude-sonnet-4-20250514"
    anthropic_max_tokens: int = 8000
    dify_api_key: Optional[str] = None
    dify_api_url: str = "https://dify.pepalab.com/v1"
    rewrite_provider: str = "anthropic"
    tool_use_enabled: bool = True
    max_tool_iterations: int = 10
    link_probe_enabled: bool = True
    link_probe_sample_cap: int = 20
    link_probe_timeout: float = 5.0

def load_settings() -> Settings:
    """Read settings from the environment. Credentials are checked later, when a client is built."""
    return Settings(
        anthropic_api_key=os.getenv("ANTHROPIC_API_KEY") or None,
        anthropic_model=os.getenv("ANTHROPIC_MODEL") or Settings.anthropic_model,
        anthropic_max_tokens=_env_int("ANTHROPIC_MAX_TOKENS", Settings.anthropic_max_tokens),
        dify_api_key=os.getenv("DIFY_API_KEY") or None,
        dify_api_url=(os.getenv("DIFY_API_URL") or Settings.dify_api_url).rstrip("/"),
        rewrite_provider=(os.getenv("REWRITE_PROVIDER") or Settings.rewrite_provider).strip().lower(),
        tool_use_enabled=_env_flag("TOOL_USE_ENABLED", True),
        max_tool_iterations=max(1, _env_int("MAX_TOOL_ITERATIONS", Settings.max_tool_iterations)),
        link_probe_enabled=_env_flag("LINK_PROBE_ENABLED", True),
        link_probe_sample_cap=max(0, _env_int("LINK_PROBE_SAMPLE_CAP", Settings.link_probe_sample_cap)),
        link_probe_timeout=_env_float("LINK_PROBE_TIMEOUT", Settings.link_probe_timeout),
    )
