"""
Configuration and logging setup.

The config lives in ~/.config/tuido/config.yaml and is created with the
defaults on first run. Only ``main()`` reads it; the state machine receives a
ready-made store and never looks at configuration itself.
"""
import logging
from pathlib import Path

import yaml

from .storage import TaskStore

CONFIG_DIR = Path.home() / ".config" / "tuido"
CONFIG_FILE = CONFIG_DIR / "config.yaml"

DEFAULT_CONFIG = {
    "data_file": str(TaskStore.default_path()),
    "log_file": "/tmp/tuido.log",
    "log_level": "DEBUG",
    "first_weekday": "sunday",  # or "monday"
    "poll_interval_ms": 100,
}


def load_config(config_file: Path = CONFIG_FILE) -> dict:
    config = DEFAULT_CONFIG.copy()
    config_file = Path(config_file)
    if config_file.exists():
        try:
            with config_file.open("r", encoding="utf-8") as f:
                user_config = yaml.safe_load(f) or {}
            if not isinstance(user_config, dict):
                raise ValueError(f"expected a mapping, got {type(user_config).__name__}")
            config.update(user_config)
        except (OSError, yaml.YAMLError, ValueError) as e:
            logging.error(f"Error loading config file {config_file}: {e}")
    else:
        try:
            config_file.parent.mkdir(parents=True, exist_ok=True)
            with config_file.open("w", encoding="utf-8") as f:
                yaml.dump(DEFAULT_CONFIG, f, indent=2)
            logging.info(f"Default config file created at {config_file}")
        except OSError as e:
            logging.error(f"Error creating default config file: {e}")
    return config


def setup_logging(config: dict):
    level = getattr(logging, str(config.get("log_level", "DEBUG")).upper(), logging.DEBUG)
    logging.basicConfig(filename=config["log_file"], level=level,
                        format='%(asctime)s [%(levelname)s] %(message)s')
