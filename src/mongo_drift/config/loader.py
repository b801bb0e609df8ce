"""TOML configuration loader for mongo-drift.

Usage:
    from mongo_drift.config.loader import load_drift_config

    config = load_drift_config()
    profile = config.profiles["prod"]
"""

import os
import tomllib
from pathlib import Path

from mongo_drift.config.models import AuditDefaults, DriftConfig, DriftProfile

CONFIG_ENV_VAR = "MONGO_DRIFT_CONFIG"
DEFAULT_CONFIG_FILE = "mongo-drift.toml"


def default_config_path() -> Path:
    """Config path from ``$MONGO_DRIFT_CONFIG``, else ``./mongo-drift.toml``."""
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return Path.cwd() / DEFAULT_CONFIG_FILE


def load_drift_config(config_path: Path | None = None) -> DriftConfig:
    """Load mongo-drift configuration from a TOML file.

    Args:
        config_path: Path to the TOML file.  Defaults to
            ``default_config_path()``.

    Returns:
        DriftConfig with all profiles and audit defaults.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        tomllib.TOMLDecodeError: If the file is not valid TOML.
        pydantic.ValidationError: If a profile or setting is invalid.

    Example:
        >>> config = load_drift_config(Path("mongo-drift.toml"))
        >>> config.profiles["prod"].database
        'app'
    """
    if config_path is None:
        config_path = default_config_path()

    if not config_path.exists():
        raise FileNotFoundError(
            f"mongo-drift config not found: {config_path}\n"
            f"Create it with [profiles.<name>] tables (uri, database)."
        )

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    profiles = {}
    for name, profile_data in data.get("profiles", {}).items():
        profiles[name] = DriftProfile(**profile_data)

    return DriftConfig(
        profiles=profiles,
        audit=AuditDefaults(**data.get("audit", {})),
    )
