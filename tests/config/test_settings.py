from __future__ import annotations

import tomllib

import pytest

from lllm.config import settings as settings_mod


def test_missing_file_uses_defaults(tmp_path):
    settings = settings_mod.load_settings(tmp_path / "settings.toml")

    assert settings.chat.model == "gpt-4o-mini"
    assert settings.chat.temperature == 0.7
    assert settings.chat.max_tokens == 4096
    assert settings.logging.level == "INFO"
    assert settings.logging.verbose is False


def test_partial_override_keeps_other_defaults(tmp_path):
    path = tmp_path / "settings.toml"
    path.write_text(
        '[chat]\nmodel = "gpt-4o"\n\n[logging]\nlevel = "debug"\n',
        encoding="utf-8",
    )

    settings = settings_mod.load_settings(path)

    assert settings.chat.model == "gpt-4o"
    assert settings.chat.max_tokens == 4096
    assert settings.logging.level == "DEBUG"


def test_integer_temperature_is_accepted(tmp_path):
    path = tmp_path / "settings.toml"
    path.write_text("[chat]\ntemperature = 1\n", encoding="utf-8")

    assert settings_mod.load_settings(path).chat.temperature == 1.0


@pytest.mark.parametrize(
    ("body", "needle"),
    [
        ("[chat]\nmodle = 'x'\n", "chat.modle"),
        ("[extras]\nfoo = 1\n", "extras"),
        ("chat = 3\n", "Expected table for 'chat'"),
        ("[chat]\ntemperature = 2.5\n", "chat.temperature"),
        ("[chat]\ntemperature = 'hot'\n", "chat.temperature"),
        ("[chat]\nmax_tokens = 0\n", "chat.max_tokens"),
        ("[chat]\nmax_tokens = true\n", "chat.max_tokens"),
        ("[chat]\nmodel = '  '\n", "chat.model"),
        ("[logging]\nlevel = 'LOUD'\n", "logging.level"),
        ("[logging]\nverbose = 'yes'\n", "logging.verbose"),
    ],
)
def test_invalid_values_raise(tmp_path, body, needle):
    path = tmp_path / "settings.toml"
    path.write_text(body, encoding="utf-8")

    with pytest.raises(settings_mod.SettingsError) as exc:
        settings_mod.load_settings(path)
    assert needle in str(exc.value)


def test_malformed_toml_raises(tmp_path):
    path = tmp_path / "settings.toml"
    path.write_text("[chat\n", encoding="utf-8")

    with pytest.raises(settings_mod.SettingsError):
        settings_mod.load_settings(path)


def test_template_parses_to_defaults(tmp_path):
    parsed = tomllib.loads(settings_mod.settings_template())

    assert parsed == settings_mod.default_tree()


def test_write_template_refuses_overwrite(tmp_path):
    path = tmp_path / "nested" / "settings.toml"

    settings_mod.write_template(path)
    path.write_text("# edited\n", encoding="utf-8")

    with pytest.raises(settings_mod.SettingsError):
        settings_mod.write_template(path)
    assert path.read_text(encoding="utf-8") == "# edited\n"

    settings_mod.write_template(path, overwrite=True)
    assert "[chat]" in path.read_text(encoding="utf-8")


def test_default_tree_is_a_copy():
    tree = settings_mod.default_tree()
    tree["chat"]["model"] = "mutated"

    assert settings_mod.default_tree()["chat"]["model"] == "gpt-4o-mini"
