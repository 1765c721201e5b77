"""
Unit tests for configuration loading.
"""

import pytest

from persona_engine.config.settings import SystemConfig, load_config
from persona_engine.core.errors import ConfigurationError
from persona_engine.engine import build_store
from persona_engine.store.json_file import JsonFileStore
from persona_engine.store.memory import InMemoryStore


def test_default_weights():
    """Test that the scoring weights keep their defaults."""
    config = SystemConfig()

    assert (
        config.ranker.weight_factor,
        config.ranker.recency_factor,
        config.ranker.frequency_factor,
        config.ranker.relevance_factor,
    ) == (0.4, 0.3, 0.2, 0.1)
    assert config.selector.fallback_confidence == 0.3
    assert config.conversation.history_limit == 20


def test_load_config_reads_environment(monkeypatch, tmp_path):
    """Test environment overrides."""
    monkeypatch.setenv("PERSONA_LOG_LEVEL", "WARNING")
    monkeypatch.setenv("PERSONA_RANDOM_SEED", "17")
    monkeypatch.setenv("PERSONA_STORE_TIMEOUT", "0.25")
    monkeypatch.setenv("PERSONA_STORE_BACKEND", "json")
    monkeypatch.setenv("PERSONA_STORE_PATH", str(tmp_path))

    config = load_config()

    assert config.log_level == "WARNING"
    assert config.random_seed == 17
    assert config.store.timeout_seconds == 0.25
    assert config.store.backend == "json"
    assert config.store.path == str(tmp_path)


def test_load_config_reads_env_file(monkeypatch, tmp_path):
    """Test loading overrides from a .env file."""
    # setenv first so teardown removes whatever load_dotenv writes
    monkeypatch.setenv("PERSONA_RANDOM_SEED", "0")
    monkeypatch.delenv("PERSONA_RANDOM_SEED")
    env_file = tmp_path / ".env"
    env_file.write_text("PERSONA_RANDOM_SEED=5\n")

    config = load_config(str(env_file))

    assert config.random_seed == 5


def test_build_store(tmp_path):
    """Test store backend selection."""
    config = SystemConfig()
    assert isinstance(build_store(config.store), InMemoryStore)

    config.store.backend = "json"
    config.store.path = str(tmp_path)
    assert isinstance(build_store(config.store), JsonFileStore)

    config.store.backend = "postgres"
    with pytest.raises(ConfigurationError):
        build_store(config.store)
