from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict

import yaml
from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    env: str
    log_level: str
    currency: str

    default_projection_months: int

    accounts_path: str
    preferences_path: str

    llm_provider: str
    llm_model: str
    llm_temperature: float

    chat_mode: str
    chat_max_history: int
    chat_fallback_enabled: bool


def _deep_get(d: Dict[str, Any], path: str, default=None):
    cur = d
    for part in path.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return default
        cur = cur[part]
    return cur


def _as_bool(v: Any) -> bool:
    return str(v).strip().lower() in ("1", "true", "yes", "on")


def load_settings(config_path: str = "config.yaml") -> Settings:
    """
    Loads config.yaml + overrides from .env/environment variables.
    """
    load_dotenv()  # loads .env into env vars

    cfg: Dict[str, Any] = {}
    if os.path.exists(config_path):
        with open(config_path, "r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}

    # Empty env vars count as "not set" so a blank LLM_PROVIDER= line in .env
    # does not override config.yaml.
    def _env_or_cfg(key: str, cfg_path: str, default):
        v = os.getenv(key)
        if v is None:
            return _deep_get(cfg, cfg_path, default)
        v = v.strip()
        return _deep_get(cfg, cfg_path, default) if v == "" else v

    env = _env_or_cfg("APP_ENV", "app.env", "dev")
    log_level = _env_or_cfg("LOG_LEVEL", "app.log_level", "INFO")
    currency = str(_env_or_cfg("APP_CURRENCY", "app.currency", "USD")).strip().upper()

    default_projection_months = int(_env_or_cfg("DEFAULT_PROJECTION_MONTHS", "projection.default_months", 36))

    accounts_path = _env_or_cfg("ACCOUNTS_PATH", "storage.accounts_path", "data/accounts.json")
    preferences_path = _env_or_cfg("PREFERENCES_PATH", "storage.preferences_path", "data/preferences.json")

    llm_provider = _env_or_cfg("LLM_PROVIDER", "llm.provider", "openai")
    llm_model = _env_or_cfg("LLM_MODEL", "llm.model", "gpt-4o-mini")
    llm_temperature = float(_env_or_cfg("LLM_TEMPERATURE", "llm.temperature", 0.7))

    if isinstance(llm_provider, str):
        lp = llm_provider.strip().lower()
        if lp in ("google", "googleai", "google-genai", "genai"):
            llm_provider = "gemini"
        else:
            llm_provider = lp

    chat_mode = str(_env_or_cfg("CHAT_MODE", "chat.mode", "llm")).strip().lower()
    chat_max_history = int(_env_or_cfg("CHAT_MAX_HISTORY", "chat.max_history", 50))
    chat_fallback_enabled = _as_bool(_env_or_cfg("CHAT_FALLBACK_ENABLED", "chat.fallback_enabled", True))

    return Settings(
        env=env,
        log_level=log_level,
        currency=currency,
        default_projection_months=default_projection_months,
        accounts_path=accounts_path,
        preferences_path=preferences_path,
        llm_provider=llm_provider,
        llm_model=llm_model,
        llm_temperature=llm_temperature,
        chat_mode=chat_mode,
        chat_max_history=chat_max_history,
        chat_fallback_enabled=chat_fallback_enabled,
    )


# Optional convenience singleton
SETTINGS = load_settings()
