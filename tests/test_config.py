from pathlib import Path

import config


def _write_config(path: Path, text: str) -> None:
    path.write_text(text, encoding="utf-8")


def test_load_config_reads_sections(config_dir):
    _write_config(
        config.CONFIG_PATH,
        "[lines]\ndata_path = \"~/lines.json\"\n\n[leaderboard]\ndefault_limit = 5\nmax_limit = 20\n",
    )

    loaded = config.load_config()

    assert loaded["lines"]["data_path"] == Path("~/lines.json").expanduser()
    assert loaded["leaderboard"] == {"default_limit": 5, "max_limit": 20}
    assert loaded["cache"]["ttl_seconds"] == 300
    assert loaded["logging"]["level"] == "INFO"


def test_environment_overrides_file(config_dir, monkeypatch, tmp_path):
    monkeypatch.setenv("VERSE_LINES_PATH", str(tmp_path / "custom.json"))
    monkeypatch.setenv("LEADERBOARD_MAX_LIMIT", "7")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    assert config.get_config_value("lines", "data_path") == tmp_path / "custom.json"
    assert config.get_config_value("leaderboard", "max_limit") == 7
    assert config.get_config_value("logging", "level") == "DEBUG"
    assert config.get_config_value("missing", "key", "fallback") == "fallback"


def test_empty_data_path_uses_bundled_file(config_dir):
    assert config.get_config_value("lines", "data_path") == config.DEFAULT_VERSE_LINES_PATH


def test_example_config_is_copied_on_first_run(tmp_path, monkeypatch):
    config_dir = tmp_path / ".hifztrack"
    monkeypatch.setattr(config, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(config, "CONFIG_PATH", config_dir / "config.toml")

    loaded = config.load_config()

    assert (config_dir / "config.toml").exists()
    assert loaded["leaderboard"]["max_limit"] == 50
