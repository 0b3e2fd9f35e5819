"""Configuration management."""

import json
import os
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from shared.errors import ConfigurationError

DEFAULT_SETTINGS_FILES = ("appsettings.json", "appsettings.local.json")
DEFAULT_REGION = "us-east-1"
DEFAULT_EXTENSION = ".webp"
DEFAULT_TIMEOUT = 10.0

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


@dataclass(frozen=True)
class PurgeConfig:
    """Immutable settings for one purge run."""

    bucket: Optional[str]
    primary_path: Optional[str]
    secondary_path: Optional[str] = None
    cdn_distribution_id: Optional[str] = None
    extension: str = DEFAULT_EXTENSION
    region: str = DEFAULT_REGION
    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    workers: int = 1
    timeout: float = DEFAULT_TIMEOUT
    retry_attempts: int = 1
    edge_check_enabled: bool = True
    invalidation_dry_run: bool = False

    @property
    def secondary_enabled(self) -> bool:
        return self.secondary_path is not None

    @property
    def cdn_enabled(self) -> bool:
        return self.cdn_distribution_id is not None

    def validate(self) -> bool:
        """Validate required configuration is set."""
        required = {"S3_BUCKET": self.bucket, "S3_PATH": self.primary_path}
        missing = [name for name, value in required.items() if not value]

        if missing:
            raise ConfigurationError(f"Missing required settings: {', '.join(missing)}")

        if bool(self.access_key) != bool(self.secret_key):
            raise ConfigurationError("AWS_ACCESS_KEY and AWS_SECRET_KEY must be set together")

        return True


def _as_prefix(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    if value.endswith("/") or value.endswith("\\"):
        return value
    return value + "/"


def _optional(settings: Mapping[str, Any], name: str) -> Optional[str]:
    value = settings.get(name)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _integer(settings: Mapping[str, Any], name: str, default: int, minimum: int = 1) -> int:
    raw = _optional(settings, name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")
    return value


def _number(settings: Mapping[str, Any], name: str, default: float) -> float:
    raw = _optional(settings, name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from e
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {value}")
    return value


def _flag(settings: Mapping[str, Any], name: str, default: bool) -> bool:
    raw = _optional(settings, name)
    if raw is None:
        return default
    if raw.lower() in _TRUE_VALUES:
        return True
    if raw.lower() in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {raw!r}")


def read_settings_files(paths: Iterable[str]) -> Dict[str, Any]:
    """Merge JSON settings files in order; missing files are skipped."""
    merged: Dict[str, Any] = {}
    for path in paths:
        if not os.path.isfile(path):
            continue
        try:
            with open(path, encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Error reading settings file {path}: {str(e)}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Settings file {path} must contain a JSON object")
        merged.update(data)
    return merged


def load_config(
    env: Optional[Mapping[str, str]] = None,
    settings_files: Tuple[str, ...] = DEFAULT_SETTINGS_FILES,
) -> PurgeConfig:
    """
    Build a PurgeConfig from settings files overlaid by environment variables.

    Args:
        env: Environment mapping (defaults to os.environ)
        settings_files: JSON files read in order, later ones win

    Returns:
        Unvalidated PurgeConfig; call validate() before use
    """
    settings = read_settings_files(settings_files)
    environment = os.environ if env is None else env
    settings.update({name: value for name, value in environment.items() if value and value.strip()})

    return PurgeConfig(
        bucket=_optional(settings, "S3_BUCKET"),
        primary_path=_as_prefix(_optional(settings, "S3_PATH")),
        secondary_path=_as_prefix(_optional(settings, "S3_SECONDARY_PATH")),
        cdn_distribution_id=_optional(settings, "CDN_DISTRIBUTION_ID"),
        extension=_optional(settings, "FILE_EXTENSION") or DEFAULT_EXTENSION,
        region=_optional(settings, "AWS_REGION") or DEFAULT_REGION,
        access_key=_optional(settings, "AWS_ACCESS_KEY"),
        secret_key=_optional(settings, "AWS_SECRET_KEY"),
        workers=_integer(settings, "PURGE_WORKERS", 1),
        timeout=_number(settings, "REMOTE_TIMEOUT", DEFAULT_TIMEOUT),
        retry_attempts=_integer(settings, "RETRY_ATTEMPTS", 1),
        edge_check_enabled=_flag(settings, "EDGE_CHECK_ENABLED", True),
        invalidation_dry_run=_flag(settings, "INVALIDATION_DRY_RUN", False),
    )
