from __future__ import annotations

import json
import stat

import pytest

from lllm.config.store import (
    Config,
    ConfigStore,
    mask_api_key,
    resolve_api_key,
)
from lllm.core.ai import API_KEY_ENV, ConfigurationError


@pytest.fixture
def store(tmp_path) -> ConfigStore:
    return ConfigStore(tmp_path / "cfg" / "config.json")


def test_load_missing_file_returns_empty_config(store):
    config = store.load()

    assert config == Config()
    assert store.path.parent.is_dir()
    assert not store.path.exists()


def test_set_api_key_persists_pretty_json(store):
    store.set_api_key("  sk-abc123  ")

    text = store.path.read_text(encoding="utf-8")
    assert json.loads(text) == {"apiKey": "sk-abc123"}
    assert text.startswith('{\n  "apiKey"')
    assert store.get_api_key() == "sk-abc123"
    mode = stat.S_IMODE(store.path.stat().st_mode)
    assert mode == 0o600


def test_set_api_key_overwrites_previous_value(store):
    store.set_api_key("sk-first")
    store.set_api_key("sk-second")

    assert store.get_api_key() == "sk-second"


def test_set_api_key_rejects_blank(store):
    with pytest.raises(ConfigurationError):
        store.set_api_key("   ")
    assert not store.path.exists()


def test_load_rejects_invalid_json(store):
    store.path.parent.mkdir(parents=True)
    store.path.write_text("{not json", encoding="utf-8")

    with pytest.raises(ConfigurationError) as exc:
        store.load()
    assert str(store.path) in str(exc.value)


def test_load_rejects_non_object(store):
    store.path.parent.mkdir(parents=True)
    store.path.write_text('["sk-abc"]', encoding="utf-8")

    with pytest.raises(ConfigurationError):
        store.load()


def test_every_read_hits_the_file(store):
    store.set_api_key("sk-one")
    store.path.write_text('{"apiKey": "sk-two"}', encoding="utf-8")

    assert store.get_api_key() == "sk-two"


def test_resolve_prefers_config_file_over_env(store):
    store.set_api_key("sk-from-config")

    resolved = resolve_api_key(store, env={API_KEY_ENV: "sk-from-env"})

    assert resolved is not None
    assert resolved.value == "sk-from-config"
    assert resolved.source == "config"


def test_resolve_falls_back_to_env(store):
    resolved = resolve_api_key(store, env={API_KEY_ENV: " sk-from-env "})

    assert resolved is not None
    assert resolved.value == "sk-from-env"
    assert resolved.source == "env"


def test_resolve_returns_none_without_credential(store):
    assert resolve_api_key(store, env={}) is None
    assert resolve_api_key(store, env={API_KEY_ENV: "  "}) is None


def test_resolve_loads_dotenv_from_working_directory(
    store, tmp_path, monkeypatch
):
    # setenv first so the value loaded from .env is removed on teardown
    monkeypatch.setenv(API_KEY_ENV, "placeholder")
    monkeypatch.delenv(API_KEY_ENV)
    (tmp_path / ".env").write_text(
        f"{API_KEY_ENV}=sk-from-dotenv\n", encoding="utf-8"
    )
    monkeypatch.chdir(tmp_path)

    resolved = resolve_api_key(store)

    assert resolved is not None
    assert resolved.value == "sk-from-dotenv"
    assert resolved.source == "env"


@pytest.mark.parametrize(
    ("key", "expected"),
    [
        ("sk-proj-abcdefghijklmnop1234", "sk-proj...1234"),
        ("sk-abcdefgh1234", "sk-abcd...1234"),
        ("short", "*****"),
    ],
)
def test_mask_api_key(key, expected):
    assert mask_api_key(key) == expected
