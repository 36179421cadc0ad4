"""Configuration management module.

This module handles persistent configuration storage using TOML format.
Stores defaults for clone runs: subscription, auth method and the
copy-tags / availability-set / accelerated-networking toggles.

Security:
- Config file permissions: 0600 (owner read/write only)
- Path validation
"""

import logging
import os
import tempfile
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

import tomli
import tomlkit

from azclone.credential_factory import AuthMethod

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class ConfigError(Exception):
    """Raised when configuration operations fail."""

    exit_code = 1


@dataclass
class AzcloneConfig:
    """azclone configuration data."""

    default_subscription: str | None = None
    auth_method: str = AuthMethod.AZURE_CLI.value
    copy_tags: bool = False
    use_existing_availability_set: bool = True
    force_accelerated_networking: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, excluding None values."""
        data = asdict(self)
        # Filter out None values as TOML doesn't support them
        return {k: v for k, v in data.items() if v is not None}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AzcloneConfig":
        """Create from dictionary, ignoring unknown keys."""
        return cls(
            default_subscription=data.get("default_subscription"),
            auth_method=data.get("auth_method", AuthMethod.AZURE_CLI.value),
            copy_tags=_bool_value(data, "copy_tags", False),
            use_existing_availability_set=_bool_value(data, "use_existing_availability_set", True),
            force_accelerated_networking=_bool_value(data, "force_accelerated_networking", False),
        )

    @classmethod
    def keys(cls) -> list[str]:
        return [f.name for f in fields(cls)]


class ConfigManager:
    """Manage azclone configuration file.

    Configuration is stored at ~/.azclone/config.toml with secure permissions.
    """

    DEFAULT_CONFIG_DIR = Path.home() / ".azclone"
    DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.toml"

    @classmethod
    def _validate_config_path(cls, path: Path) -> Path:
        """Ensure a custom config path lies in ~/.azclone, the CWD or the temp dir.

        Raises:
            ConfigError: If path is outside allowed directories
        """
        resolved_path = path.resolve()
        allowed_dirs = [
            cls.DEFAULT_CONFIG_DIR.resolve(),
            Path.cwd().resolve(),
            Path(tempfile.gettempdir()).resolve(),
        ]
        for allowed_dir in allowed_dirs:
            if resolved_path.is_relative_to(allowed_dir):
                return resolved_path

        raise ConfigError(
            f"Config path outside allowed directories: {resolved_path}\n"
            f"Allowed directories:\n"
            f"  - {cls.DEFAULT_CONFIG_DIR}\n"
            f"  - {Path.cwd()}"
        )

    @classmethod
    def get_config_path(cls, custom_path: str | None = None) -> Path:
        """Get configuration file path.

        Raises:
            ConfigError: If a custom path is invalid or does not exist
        """
        if custom_path:
            path = cls._validate_config_path(Path(custom_path).expanduser())
            if not path.exists():
                raise ConfigError(f"Config file not found: {path}")
            return path

        return cls.DEFAULT_CONFIG_FILE

    @classmethod
    def ensure_config_dir(cls) -> Path:
        """Ensure config directory exists with secure permissions.

        Raises:
            ConfigError: If directory creation fails
        """
        try:
            cls.DEFAULT_CONFIG_DIR.mkdir(parents=True, exist_ok=True)
            os.chmod(cls.DEFAULT_CONFIG_DIR, 0o700)
            logger.debug(f"Config directory ready: {cls.DEFAULT_CONFIG_DIR}")
            return cls.DEFAULT_CONFIG_DIR
        except OSError as e:
            raise ConfigError(f"Failed to create config directory: {e}") from e

    @classmethod
    def load_config(cls, custom_path: str | None = None) -> AzcloneConfig:
        """Load configuration from file, or defaults when there is none.

        Raises:
            ConfigError: If the file cannot be read or parsed
        """
        config_path = cls.get_config_path(custom_path)

        if not config_path.exists():
            logger.debug("Config file not found, using defaults")
            return AzcloneConfig()

        try:
            mode = config_path.stat().st_mode & 0o777
            if mode & 0o077:
                logger.warning(
                    f"Config file has insecure permissions: {oct(mode)}. Fixing to 0600..."
                )
                os.chmod(config_path, 0o600)

            with open(config_path, "rb") as f:
                data = tomli.load(f)

            logger.debug(f"Loaded config from: {config_path}")
            return AzcloneConfig.from_dict(data)

        except (OSError, tomli.TOMLDecodeError) as e:
            raise ConfigError(f"Failed to load config: {e}") from e

    @classmethod
    def save_config(cls, config: AzcloneConfig, custom_path: str | None = None) -> Path:
        """Save configuration to file, preserving comments in an existing file.

        Raises:
            ConfigError: If saving fails or path is outside allowed directories
        """
        temp_path: Path | None = None
        try:
            if custom_path:
                config_path = cls._validate_config_path(Path(custom_path).expanduser())
                config_path.parent.mkdir(parents=True, exist_ok=True)
            else:
                cls.ensure_config_dir()
                config_path = cls.DEFAULT_CONFIG_FILE

            temp_path = config_path.with_suffix(".tmp")

            if config_path.exists():
                with open(config_path) as f:
                    doc = tomlkit.load(f)
            else:
                doc = tomlkit.document()
            for key, value in config.to_dict().items():
                doc[key] = value

            with open(temp_path, "w") as f:
                tomlkit.dump(doc, f)
            os.chmod(temp_path, 0o600)

            # Atomic rename
            temp_path.replace(config_path)
            logger.debug(f"Saved config to: {config_path}")
            return config_path

        except OSError as e:
            if temp_path and temp_path.exists():
                temp_path.unlink()
            raise ConfigError(f"Failed to save config: {e}") from e

    @classmethod
    def set_value(cls, key: str, value: str, custom_path: str | None = None) -> AzcloneConfig:
        """Set one key from its string form and save.

        Raises:
            ConfigError: Unknown key or value of the wrong type
        """
        if key not in AzcloneConfig.keys():
            raise ConfigError(
                f"Unknown config key: {key}. Valid keys: {', '.join(AzcloneConfig.keys())}"
            )

        if custom_path and not Path(custom_path).expanduser().exists():
            config = AzcloneConfig()
        else:
            config = cls.load_config(custom_path)
        current = getattr(config, key)

        if isinstance(current, bool):
            setattr(config, key, _parse_bool(key, value))
        elif key == "auth_method":
            try:
                setattr(config, key, AuthMethod(value).value)
            except ValueError as e:
                valid = ", ".join(method.value for method in AuthMethod)
                raise ConfigError(f"Invalid auth_method: {value}. Valid values: {valid}") from e
        else:
            setattr(config, key, value or None)

        cls.save_config(config, custom_path)
        return config


def _parse_bool(key: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigError(f"Invalid boolean for {key}: {value!r} (use true/false)")


def _bool_value(data: dict[str, Any], key: str, default: bool) -> bool:
    value = data.get(key, default)
    if isinstance(value, str):
        return _parse_bool(key, value)
    return bool(value)
