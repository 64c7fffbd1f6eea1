from __future__ import annotations

from goalplanner.core.config import Settings
from goalplanner.services.ai.provider_config import coerce_provider, resolve_config
from goalplanner.services.ai.types import ResolveOptions


def _settings(**overrides) -> Settings:
    values = {
        "goal_planner_provider": "rules",
        "goal_planner_model": None,
        "goal_planner_timeout_ms": 20000,
        "goal_planner_api_url": None,
        "goal_planner_api_key": None,
        "openai_api_key": None,
        "openai_base_url": None,
        "ollama_base_url": None,
        "ollama_model": None,
        "anthropic_api_key": None,
        "anthropic_base_url": None,
        "opik_enabled": False,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def test_builtin_defaults_per_provider() -> None:
    settings = _settings()

    openai = resolve_config(ResolveOptions(provider="openai"), settings)
    assert (openai.model, openai.base_url, openai.api_key) == ("gpt-4.1-mini", "https://api.openai.com/v1", "")
    assert openai.timeout_ms == 20000

    ollama = resolve_config(ResolveOptions(provider="ollama"), settings)
    assert (ollama.model, ollama.base_url) == ("llama3.1", "http://localhost:11434")

    anthropic = resolve_config(ResolveOptions(provider="anthropic"), settings)
    assert anthropic.model == "claude-sonnet-4-5-20250929"
    assert anthropic.base_url == "https://api.anthropic.com"

    compatible = resolve_config(ResolveOptions(provider="openai-compatible"), settings)
    assert compatible.base_url == ""


def test_explicit_options_beat_settings() -> None:
    settings = _settings(
        goal_planner_model="settings-model",
        openai_api_key="sk-env",
        openai_base_url="https://proxy.example.com/v1",
        goal_planner_timeout_ms=9000,
    )

    config = resolve_config(
        ResolveOptions(
            provider="openai",
            model="option-model",
            base_url="https://override.example.com/v1/",
            api_key="sk-option",
            timeout_ms=1500,
        ),
        settings,
    )

    assert config.model == "option-model"
    assert config.base_url == "https://override.example.com/v1"
    assert config.api_key == "sk-option"
    assert config.timeout_ms == 1500


def test_settings_fill_missing_options() -> None:
    settings = _settings(
        goal_planner_model="settings-model",
        openai_api_key="sk-env",
        openai_base_url="https://proxy.example.com/v1/",
        goal_planner_timeout_ms=9000,
    )

    config = resolve_config(ResolveOptions(provider="openai", model="", api_key=""), settings)

    assert config.model == "settings-model"
    assert config.base_url == "https://proxy.example.com/v1"
    assert config.api_key == "sk-env"
    assert config.timeout_ms == 9000


def test_unknown_provider_resolves_to_openai() -> None:
    config = resolve_config(ResolveOptions(provider="mystery"), _settings(openai_api_key="sk-env"))

    assert config.provider == "openai"
    assert config.api_key == "sk-env"
    assert coerce_provider(None) == "openai"
    assert coerce_provider("  Anthropic ") == "anthropic"


def test_compatible_provider_key_and_url_fallbacks() -> None:
    settings = _settings(openai_api_key="sk-openai", goal_planner_api_url="https://llm.internal/v1/")
    config = resolve_config(ResolveOptions(provider="openai-compatible"), settings)

    assert config.api_key == "sk-openai"
    assert config.base_url == "https://llm.internal/v1"

    preferred = resolve_config(
        ResolveOptions(provider="openai-compatible"),
        _settings(openai_api_key="sk-openai", goal_planner_api_key="sk-planner"),
    )
    assert preferred.api_key == "sk-planner"


def test_ollama_model_setting_wins_over_generic_model() -> None:
    settings = _settings(
        ollama_model="qwen2.5",
        goal_planner_model="generic",
        ollama_base_url="http://gpu-box:11434/",
    )

    config = resolve_config(ResolveOptions(provider="ollama"), settings)

    assert config.model == "qwen2.5"
    assert config.base_url == "http://gpu-box:11434"
    assert config.api_key == ""

    generic = resolve_config(ResolveOptions(provider="ollama"), _settings(goal_planner_model="generic"))
    assert generic.model == "generic"


def test_anthropic_reads_its_own_credentials() -> None:
    settings = _settings(anthropic_api_key="sk-ant", openai_api_key="sk-openai")

    config = resolve_config(ResolveOptions(provider="anthropic"), settings)

    assert config.api_key == "sk-ant"
    assert config.timeout_seconds == 20.0
