import logging
import yaml
from pathlib import Path

DEFAULT_CONFIG_PATH = Path(__file__).parent / "guard.yaml"

DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_CONFIG_CACHE = {}


def load_config(path: str | None = None) -> dict:
    """
    Load YAML config with per-file cache.
    Falls back to config/guard.yaml.
    """

    if path is None:
        path = str(DEFAULT_CONFIG_PATH)

    if path in _CONFIG_CACHE:
        return _CONFIG_CACHE[path]

    config_path = Path(path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    _CONFIG_CACHE[path] = data
    return data


def clear_config_cache():
    _CONFIG_CACHE.clear()


def setup_logging(config: dict):
    log_cfg = config.get("logging", {})

    logging.basicConfig(
        level=getattr(logging, str(log_cfg.get("level", "INFO")).upper(), logging.INFO),
        format=log_cfg.get("format", DEFAULT_LOG_FORMAT),
    )
