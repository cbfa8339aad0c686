"""Tests for settings and logging setup"""
import pytest
from pydantic import ValidationError
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from anvil.config import Settings, load_settings
from anvil.log import bind_context, clear_context, configure_logging, get_logger

ANVIL_VARS = ("ANVIL_LOG_LEVEL", "ANVIL_LOG_JSON", "ANVIL_SEED", "ANVIL_STARTING_HP",
              "ANVIL_MAX_ENERGY", "ANVIL_HAND_SIZE", "ANVIL_NARRATOR_MODEL", "OPENAI_API_KEY")


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    # setenv first so monkeypatch also removes whatever load_dotenv writes
    for name in ANVIL_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_defaults(clean_env):
    settings = load_settings(str(clean_env / "missing.env"))
    assert settings == Settings()


def test_environment_overrides(clean_env, monkeypatch):
    monkeypatch.setenv("ANVIL_SEED", "42")
    monkeypatch.setenv("ANVIL_LOG_JSON", "true")
    monkeypatch.setenv("ANVIL_HAND_SIZE", "6")
    settings = load_settings(str(clean_env / "missing.env"))
    assert settings.seed == 42
    assert settings.log_json is True
    assert settings.hand_size == 6


def test_env_file_is_read(clean_env):
    env_file = clean_env / ".env"
    env_file.write_text("ANVIL_STARTING_HP=70\nANVIL_NARRATOR_MODEL=gpt-4o-mini\n")
    settings = load_settings(str(env_file))
    assert settings.starting_hp == 70
    assert settings.narrator_model == "gpt-4o-mini"


def test_bad_integer_fails(clean_env, monkeypatch):
    monkeypatch.setenv("ANVIL_MAX_ENERGY", "lots")
    with pytest.raises(ValidationError, match="max_energy"):
        load_settings(str(clean_env / "missing.env"))


def test_empty_hand_size_is_refused(clean_env, monkeypatch):
    monkeypatch.setenv("ANVIL_HAND_SIZE", "0")
    with pytest.raises(ValidationError, match="hand_size"):
        load_settings(str(clean_env / "missing.env"))


def test_api_key_reads_the_unprefixed_variable(clean_env, monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    assert load_settings(str(clean_env / "missing.env")).openai_api_key == "sk-test"


def test_settings_are_frozen():
    with pytest.raises(ValidationError):
        Settings().hand_size = 9


def test_logging_configures_and_logs(capsys):
    configure_logging(level="DEBUG", json_format=True)
    bind_context(combat_id="abc123")
    get_logger("tests").info("combat_started", enemy="rust_slime")
    clear_context()
    out = capsys.readouterr().out
    assert "combat_started" in out
    assert "abc123" in out
