"""Configuration management: profiles, TOML loading, and config models.

Usage:
    >>> from mongo_drift.config import load_drift_config, DriftProfile, DriftConfig
"""

from mongo_drift.config.loader import load_drift_config
from mongo_drift.config.models import AuditDefaults, DriftConfig, DriftProfile

__all__ = ["load_drift_config", "AuditDefaults", "DriftConfig", "DriftProfile"]
