from pathlib import Path

import pytest

import config
from db import database
from utils import cache, cohort, lines


def _write_test_config(config_path: Path) -> None:
    config_path.write_text(
        "\n".join(
            [
                "[lines]",
                "data_path = \"\"",
                "",
                "[leaderboard]",
                "default_limit = 10",
                "max_limit = 50",
                "",
                "[cache]",
                "ttl_seconds = 300",
            ]
        ),
        encoding="utf-8",
    )


@pytest.fixture
def config_dir(tmp_path, monkeypatch):
    config_dir = tmp_path / ".hifztrack"
    config_dir.mkdir()
    config_path = config_dir / "config.toml"
    _write_test_config(config_path)
    for name in ("VERSE_LINES_PATH", "LEADERBOARD_DEFAULT_LIMIT", "LEADERBOARD_MAX_LIMIT", "CACHE_TTL_SECONDS", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(config, "CONFIG_PATH", config_path)
    cohort.reset_limits()
    yield config_dir
    cohort.reset_limits()


@pytest.fixture
def line_table():
    # Every verse one line except a few known ones, so expected counts are easy to read.
    table = lines.LineTable({(1, 1): 1.0, (1, 2): 1.0, (2, 1): 0.5, (2, 2): 2.5, (112, 1): 0.6})
    lines.reset_line_table(table)
    yield table
    lines.reset_line_table()


@pytest.fixture
def conn(config_dir, line_table, monkeypatch):
    monkeypatch.setattr(database, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(database, "DB_PATH", config_dir / "hifztrack.db")
    cache.reset_cache()
    database.init_db()
    with database.get_conn() as connection:
        yield connection
    cache.reset_cache()
