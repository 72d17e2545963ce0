"""Configuration loading and parsing for ztp."""

import os
from pathlib import Path

import yaml

from ztp.config.models import ConfigOverrides, ProfileKind, ZtpConfig
from ztp.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_FILE = Path("ztp.yaml")


def load_config(config_file: str = "", overrides: ConfigOverrides | None = None) -> ZtpConfig:
    """Load configuration from file or defaults.

    Args:
        config_file: Path to YAML configuration file (optional)
        overrides: Configuration overrides from CLI/env (optional)

    Returns:
        Loaded and validated configuration

    Raises:
        ValueError: If configuration is invalid
        FileNotFoundError: If specified config file doesn't exist
    """
    config: ZtpConfig

    if config_file:
        config = _load_from_file(Path(config_file))
    elif DEFAULT_CONFIG_FILE.exists():
        config = _load_from_file(DEFAULT_CONFIG_FILE)
    else:
        logger.info("No config file found, using defaults")
        config = ZtpConfig()

    if overrides:
        config.overrides = overrides
        _apply_overrides(config, overrides)

    return config


def _load_from_file(path: Path) -> ZtpConfig:
    """Load configuration from a YAML file.

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If file is invalid YAML or doesn't match schema
    """
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    logger.info("Loading configuration file", path=str(path))

    try:
        with path.open("r") as f:
            data = yaml.safe_load(f)

        # Treat empty files as empty configuration
        if data is None:
            data = {}

        if not isinstance(data, dict):
            raise ValueError("Configuration file must contain a YAML mapping")

        return ZtpConfig.model_validate(data)

    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in configuration file: {e}") from e
    except Exception as e:
        raise ValueError(f"Failed to parse configuration: {e}") from e


def _apply_overrides(config: ZtpConfig, overrides: ConfigOverrides) -> None:
    """Apply configuration overrides to a config object in place."""
    if overrides.profile is not None:
        config.profile = overrides.profile

    if overrides.git_name:
        config.git.name = overrides.git_name
    if overrides.git_email:
        config.git.email = overrides.git_email

    if overrides.terraform_version:
        config.terraform.version = overrides.terraform_version

    if overrides.razer:
        config.hardware.razer = True

    for name in overrides.extra_packages:
        if name not in config.extra_packages:
            config.extra_packages.append(name)


def get_env_overrides() -> ConfigOverrides:
    """Get configuration overrides from environment variables.

    Environment variables are prefixed with ZTP_ (e.g. ZTP_GIT_NAME).

    Raises:
        ValueError: If ZTP_PROFILE is not a known profile
    """

    def get_bool(key: str) -> bool:
        val = os.getenv(f"ZTP_{key.upper()}")
        return val is not None and val.lower() in ("1", "true", "yes")

    def get_str(key: str) -> str:
        return os.getenv(f"ZTP_{key.upper()}", "")

    def get_list(key: str) -> list[str]:
        val = os.getenv(f"ZTP_{key.upper()}", "")
        return [item.strip() for item in val.split(",") if item.strip()]

    profile = get_str("profile")

    return ConfigOverrides(
        profile=ProfileKind(profile) if profile else None,
        git_name=get_str("git_name"),
        git_email=get_str("git_email"),
        terraform_version=get_str("terraform_version"),
        razer=get_bool("razer"),
        extra_packages=get_list("extra_packages"),
    )
