import tomllib
import shutil
from pathlib import Path
from typing import Any, Dict, Optional
from dotenv import load_dotenv
import os

CONFIG_DIR = Path.home() / ".hifztrack"
CONFIG_PATH = CONFIG_DIR / "config.toml"
PROJECT_CONFIG_EXAMPLE = Path(__file__).parent / "config.toml"
DEFAULT_VERSE_LINES_PATH = Path(__file__).parent / "data" / "quran-verse-lines.json"

def load_config() -> Dict[str, Any]:
    """Load config from ~/.hifztrack/config.toml, copy example if missing, load .env overrides."""
    load_dotenv()  # Load .env for overrides (e.g., VERSE_LINES_PATH env var)
    if not CONFIG_PATH.exists():
        CONFIG_DIR.mkdir(exist_ok=True)
        shutil.copy(PROJECT_CONFIG_EXAMPLE, CONFIG_PATH)
    with open(CONFIG_PATH, "rb") as f:
        config = tomllib.load(f)

    lines_cfg = config.get("lines", {})
    data_path = os.getenv("VERSE_LINES_PATH", lines_cfg.get("data_path") or "")
    config["lines"] = {
        "data_path": Path(data_path).expanduser() if data_path else DEFAULT_VERSE_LINES_PATH,
    }
    leaderboard_cfg = config.get("leaderboard", {})
    config["leaderboard"] = {
        "default_limit": int(os.getenv(
            "LEADERBOARD_DEFAULT_LIMIT", leaderboard_cfg.get("default_limit", 10)
        )),
        "max_limit": int(os.getenv(
            "LEADERBOARD_MAX_LIMIT", leaderboard_cfg.get("max_limit", 50)
        )),
    }
    cache_cfg = config.get("cache", {})
    config["cache"] = {
        "ttl_seconds": float(os.getenv("CACHE_TTL_SECONDS", cache_cfg.get("ttl_seconds", 300))),
    }
    logging_cfg = config.get("logging", {})
    config["logging"] = {
        "level": os.getenv("LOG_LEVEL", logging_cfg.get("level", "INFO")).upper(),
    }
    return config

def get_config_value(section: str, key: str, default: Optional[Any] = None) -> Any:
    """Get nested config value, e.g., get_config_value('leaderboard', 'max_limit')."""
    config = load_config()
    value = config.get(section, {}).get(key, default)
    return value
