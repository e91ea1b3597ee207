"""Configuration: YAML settings merged over built-in defaults."""

import copy
import logging
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULTS = {
    "quiz": {
        "questions_per_session": 10,
        "time_limit": 15,
        "extra_time_bonus": 10,
        "band_size": 50,
        "max_records": 150,
        "tick_interval": 0.1,
        "replaced_questions": "release",
        "show_timer": True,
    },
    "questions": {
        "directory": "data",
        "categories": {
            "Science": "science.txt",
            "Computer": "computer.txt",
            "Sports": "sports.txt",
            "History": "history.txt",
            "IQ": "iq.txt",
        },
    },
    "session": {
        "db_path": "quiz_sessions.db",
    },
    "narration": {
        "enabled": False,
        "rate": 170,
        "volume": 1.0,
        "voice_index": 0,
    },
    "logging": {
        "file": "quiz.log",
    },
}


def _merge(base: dict, override: dict) -> dict:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


def load_config(path: Optional[str] = None) -> dict:
    """Return the defaults overlaid with the YAML file at *path*, if it exists."""
    config = copy.deepcopy(DEFAULTS)
    if path is None:
        return config
    config_path = Path(path)
    if not config_path.exists():
        logger.debug(f"No config file at {config_path}; using defaults")
        return config
    with open(config_path) as f:
        loaded = yaml.safe_load(f) or {}
    if not isinstance(loaded, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping")
    # A categories table in the file replaces the default one outright.
    categories = loaded.get("questions", {}).get("categories") if isinstance(loaded.get("questions"), dict) else None
    _merge(config, loaded)
    if categories is not None:
        config["questions"]["categories"] = dict(categories)
    return config
