"""Configuration loading from CLI args, env vars, and an optional YAML file."""

import argparse
import logging
import os
from dataclasses import dataclass

import yaml

from timeroll.errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RollingConfig:
    file_name_pattern: str = "logs/app.%d.log"
    active_file_name: str | None = None
    write_interval: float = 0.05
    run_time: float = 0.0
    log_level: str = "INFO"


def load_yaml_config(path: str | None) -> dict:
    """Load the ``rolling`` section of a YAML file. Returns empty dict if no path."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")
    section = data.get("rolling", {}) or {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"'rolling' section in {path} must be a mapping")
    logger.info("Loaded YAML config from %s", path)
    return section


def build_cli_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Time-based rolling log writer")
    parser.add_argument("--config", default=None,
                        help="Path to YAML config file (default: $CONFIG_PATH)")
    parser.add_argument("--file-name-pattern", default=None,
                        help="Archive name template with one %%d date specifier")
    parser.add_argument("--active-file-name", default=None,
                        help="Fixed path for the active file (decoupled naming)")
    parser.add_argument("--write-interval", type=float, default=None,
                        help="Seconds between generated log lines")
    parser.add_argument("--run-time", type=float, default=None,
                        help="Stop after this many seconds (0 runs until signalled)")
    parser.add_argument("--log-level", default=None, help="Logging level")
    return parser


def _pick(cli_value, env_key: str, yaml_data: dict, yaml_key: str, default):
    if cli_value is not None:
        return cli_value
    if env_key in os.environ:
        return os.environ[env_key]
    if yaml_data.get(yaml_key) is not None:
        return yaml_data[yaml_key]
    return default


def load_config(argv=None) -> RollingConfig:
    """Build RollingConfig: CLI args override env vars, which override YAML."""
    args = build_cli_parser().parse_args(argv)
    yaml_data = load_yaml_config(args.config or os.environ.get("CONFIG_PATH"))

    try:
        write_interval = float(_pick(args.write_interval, "WRITE_INTERVAL", yaml_data,
                                     "write_interval", RollingConfig.write_interval))
        run_time = float(_pick(args.run_time, "RUN_TIME", yaml_data,
                               "run_time", RollingConfig.run_time))
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid numeric setting: {exc}") from exc

    active_file_name = _pick(args.active_file_name, "ACTIVE_FILE_NAME", yaml_data,
                             "active_file_name", None)

    return RollingConfig(
        file_name_pattern=str(_pick(args.file_name_pattern, "FILE_NAME_PATTERN", yaml_data,
                                    "file_name_pattern", RollingConfig.file_name_pattern)),
        active_file_name=str(active_file_name) if active_file_name else None,
        write_interval=write_interval,
        run_time=run_time,
        log_level=str(_pick(args.log_level, "LOG_LEVEL", yaml_data,
                            "log_level", RollingConfig.log_level)).upper(),
    )
