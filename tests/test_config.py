from src.core.config import load_settings


def test_yaml_values_and_env_overrides(monkeypatch, tmp_path):
    cfg = tmp_path / "config.yaml"
    cfg.write_text(
        "app:\n  currency: eur\nprojection:\n  default_months: 48\n"
        "llm:\n  provider: google\nchat:\n  mode: llm\n  fallback_enabled: false\n",
        encoding="utf-8",
    )
    for key in ("APP_CURRENCY", "DEFAULT_PROJECTION_MONTHS", "LLM_PROVIDER", "CHAT_FALLBACK_ENABLED"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("CHAT_MODE", "rules")
    monkeypatch.setenv("CHAT_MAX_HISTORY", "")

    s = load_settings(str(cfg))
    assert s.currency == "EUR"
    assert s.default_projection_months == 48
    assert s.llm_provider == "gemini"
    assert s.chat_mode == "rules"
    assert s.chat_max_history == 50
    assert s.chat_fallback_enabled is False


def test_defaults_without_config_file(monkeypatch, tmp_path):
    for key in ("DEFAULT_PROJECTION_MONTHS", "CHAT_MODE", "LLM_PROVIDER"):
        monkeypatch.delenv(key, raising=False)
    s = load_settings(str(tmp_path / "missing.yaml"))
    assert s.default_projection_months == 36
    assert s.llm_provider == "openai"
    assert s.chat_mode == "llm"
