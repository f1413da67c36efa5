"""Settings loader with hierarchical configuration support."""

import json
import os
from pathlib import Path
from typing import Any

from src.commons.settings.models import Settings

ENV_PREFIX = "TEAMZONES__"
CONFIG_DIR_ENV = "TEAMZONES_CONFIG_DIR"


class SettingsLoader:
    """Loads and merges configuration from multiple sources.

    Configuration precedence (highest to lowest):
    1. Environment variables (``TEAMZONES__SECTION__KEY``)
    2. Environment-specific config (appsettings.{env}.json)
    3. Base config (appsettings.json)
    """

    def __init__(
        self,
        config_dir: Path | None = None,
        environment: str | None = None,
    ) -> None:
        """Initialize the settings loader.

        Args:
            config_dir: Directory containing configuration files. Defaults to
                $TEAMZONES_CONFIG_DIR, then 'config' in the working directory.
            environment: Environment name (dev, staging, prod).
                Defaults to TEAMZONES__APP__ENVIRONMENT or 'dev'.
        """
        self.config_dir = config_dir or Path(os.getenv(CONFIG_DIR_ENV, "config"))
        self.environment = environment or os.getenv(
            f"{ENV_PREFIX}APP__ENVIRONMENT", "dev"
        )

    def load(self) -> Settings:
        """Load settings with proper precedence."""
        config = self._load_json("appsettings.json")
        config = _deep_merge(
            config, self._load_json(f"appsettings.{self.environment}.json")
        )
        config = _deep_merge(config, self._load_env_vars())
        return Settings(**config)

    def _load_env_vars(self) -> dict[str, Any]:
        """Parse prefixed environment variables into nested dicts.

        ``TEAMZONES__PIPELINE__STAGES__SUMMARY=true`` becomes
        ``{"pipeline": {"stages": {"summary": True}}}``.
        """
        result: dict[str, Any] = {}

        for key, value in os.environ.items():
            if not key.startswith(ENV_PREFIX):
                continue

            key_path = key[len(ENV_PREFIX) :].lower().split("__")

            current = result
            for part in key_path[:-1]:
                current = current.setdefault(part, {})

            current[key_path[-1]] = _coerce_value(value)

        return result

    def _load_json(self, filename: str) -> dict[str, Any]:
        """Load a JSON config file, or an empty dict if it does not exist."""
        path = self.config_dir / filename
        if path.exists():
            with path.open(encoding="utf-8") as f:
                return dict(json.load(f))
        return {}


def _coerce_value(value: str) -> Any:
    """Coerce an environment string to bool, None, int, float or JSON."""
    lowered = value.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    if lowered in ("null", "none"):
        return None

    try:
        return int(value)
    except ValueError:
        pass

    try:
        return float(value)
    except ValueError:
        pass

    # Lists/dicts like CORS_ORIGINS
    if value.startswith(("[", "{")):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            pass

    return value


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``."""
    result = base.copy()
    for key, value in override.items():
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


class _SettingsHolder:
    """Holder for the cached settings instance."""

    instance: Settings | None = None


def get_settings(
    config_dir: Path | None = None,
    environment: str | None = None,
    *,
    reload: bool = False,
) -> Settings:
    """Get or create the process-wide settings instance.

    Args:
        config_dir: Optional config directory override.
        environment: Optional environment override.
        reload: Force reload settings from files.
    """
    if _SettingsHolder.instance is None or reload:
        loader = SettingsLoader(config_dir=config_dir, environment=environment)
        _SettingsHolder.instance = loader.load()
    return _SettingsHolder.instance


def reset_settings() -> None:
    """Reset the cached settings instance. Useful for testing."""
    _SettingsHolder.instance = None
