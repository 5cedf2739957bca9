import pytest

from discord_copilot.config import load_config


def test_defaults_match_pipeline_constants(config):
    assert config.core.HISTORY_LENGTH == 10
    assert config.core.MAX_MESSAGE_LENGTH == 2000
    assert config.rag.VECTOR_SEARCH_K == 3
    assert config.rag.MATCH_THRESHOLD == pytest.approx(0.5)
    assert config.rag.CHUNK_SIZE == 500
    assert config.core.SERIALIZE_CHANNELS is False
    assert config.models.USE_LOCAL is False


def test_toml_overrides_environment(tmp_path):
    cfg = tmp_path / "config.toml"
    cfg.write_text(
        """
[copilot.limits]
history_length = 4
max_message_length = 100

[copilot.pipeline]
serialize_channels = true
failure_notice = "Something broke."

[copilot.retrieval]
vector_search_k = 5
match_threshold = 0.75
"""
    )

    config = load_config(cfg)

    assert config.core.HISTORY_LENGTH == 4
    assert config.core.MAX_MESSAGE_LENGTH == 100
    assert config.core.SERIALIZE_CHANNELS is True
    assert config.core.FAILURE_NOTICE == "Something broke."
    assert config.rag.VECTOR_SEARCH_K == 5
    assert config.rag.MATCH_THRESHOLD == pytest.approx(0.75)


def test_missing_credentials_are_listed(monkeypatch):
    monkeypatch.delenv("DISCORD_API_TOKEN", raising=False)

    with pytest.raises(ValueError) as excinfo:
        load_config("does-not-exist.toml")

    message = str(excinfo.value)
    assert "DISCORD_API_TOKEN" in message
    assert "OPENAI_API_KEY" not in message


def test_message_model_required_unless_local(monkeypatch):
    monkeypatch.delenv("MSG_MODEL_ID", raising=False)

    with pytest.raises(ValueError, match="MSG_MODEL_ID"):
        load_config("does-not-exist.toml")

    monkeypatch.setenv("USE_LOCAL", "1")
    config = load_config("does-not-exist.toml")
    assert config.models.USE_LOCAL is True
    assert config.models.MSG_MODEL_ID is None


def test_local_model_settings_from_toml(tmp_path):
    cfg = tmp_path / "config.toml"
    cfg.write_text(
        """
[copilot.models]
use_local = true
local_model_id = "llama3"
local_server_url = "http://gpu-box:11434"
"""
    )

    config = load_config(cfg)

    assert config.models.USE_LOCAL is True
    assert config.models.LOCAL_MODEL_ID == "llama3"
    assert config.models.LOCAL_SERVER_URL == "http://gpu-box:11434"


def test_config_path_from_environment(tmp_path, monkeypatch):
    cfg = tmp_path / "alt.toml"
    cfg.write_text("[copilot.limits]\nhistory_length = 2\n")
    monkeypatch.setenv("COPILOT_CONFIG", str(cfg))

    config = load_config()

    assert config.core.HISTORY_LENGTH == 2


def test_validation_can_be_scoped(monkeypatch):
    monkeypatch.delenv("DISCORD_API_TOKEN", raising=False)
    monkeypatch.delenv("MSG_MODEL_ID", raising=False)

    config = load_config("does-not-exist.toml", validate=False)
    config.validate(discord=False, model=False)

    with pytest.raises(ValueError) as excinfo:
        config.validate()
    assert "DISCORD_API_TOKEN, MSG_MODEL_ID" in str(excinfo.value)
