import os
from pathlib import Path
from typing import Any, Dict

import yaml

DEFAULT_CONFIG_PATH = Path("research_portal.config.yaml")
DEFAULT_DATABASE_URL = "sqlite:///research_portal.db"
DEFAULT_CORPUS_PATH = Path("fixtures/demo_corpus.json")
DATABASE_URL_ENV = "RESEARCH_PORTAL_DATABASE_URL"

ALLOWED_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def load_config(path: Path | None = None) -> Dict[str, Any]:
    """
    Load the portal configuration from YAML.

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ValueError: If the document is not a mapping
    """
    cfg_path = path or DEFAULT_CONFIG_PATH
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config file not found: {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}
    if not isinstance(config, dict):
        raise ValueError("Config must be a dictionary")

    storage = config.get("storage")
    if storage is not None and not isinstance(storage, dict):
        raise ValueError("Config 'storage' must be a dictionary if provided")
    return config


def load_config_or_default(path: Path | None = None) -> Dict[str, Any]:
    """Like load_config, but a missing default file yields an empty config."""
    try:
        return load_config(path)
    except FileNotFoundError:
        if path is not None:
            raise
        return {}


def get_database_url(config: Dict[str, Any] | None = None) -> str:
    """
    Resolve the database connection string.

    Order: RESEARCH_PORTAL_DATABASE_URL, storage.database_url,
    storage.sqlite_path, then the local SQLite default.
    """
    env_url = os.environ.get(DATABASE_URL_ENV)
    if env_url:
        return env_url
    storage = (config or {}).get("storage") or {}
    if storage.get("database_url"):
        return storage["database_url"]
    if storage.get("sqlite_path"):
        return f"sqlite:///{storage['sqlite_path']}"
    return DEFAULT_DATABASE_URL


def get_echo_sql(config: Dict[str, Any] | None = None) -> bool:
    storage = (config or {}).get("storage") or {}
    return bool(storage.get("echo", False))


def get_log_level(config: Dict[str, Any] | None = None) -> str:
    level = str(((config or {}).get("logging") or {}).get("level", "INFO")).upper()
    if level not in ALLOWED_LOG_LEVELS:
        raise ValueError(f"Unsupported log level: {level}")
    return level


def get_demo_corpus_path(config: Dict[str, Any] | None = None) -> Path:
    demo = (config or {}).get("demo") or {}
    return Path(demo.get("corpus_json", DEFAULT_CORPUS_PATH))
