"""Settings loader with hierarchical configuration support."""

import json
import os
from pathlib import Path
from typing import Any

from media_pipeline.commons.settings.models import Settings

# Plain variable names used by existing deployments (.env files shared with the
# admin panel and website), mapped onto the nested settings tree.
ENV_ALIASES: dict[str, tuple[str, ...]] = {
    "MINIO_ENDPOINT": ("object_storage", "internal", "host"),
    "MINIO_PORT": ("object_storage", "internal", "port"),
    "MINIO_USE_SSL": ("object_storage", "internal", "use_ssl"),
    "MINIO_ACCESS_KEY": ("object_storage", "internal", "access_key"),
    "MINIO_SECRET_KEY": ("object_storage", "internal", "secret_key"),
    "MINIO_PUBLIC_ENDPOINT": ("object_storage", "public", "host"),
    "MINIO_PUBLIC_PORT": ("object_storage", "public", "port"),
    "MINIO_PUBLIC_USE_SSL": ("object_storage", "public", "use_ssl"),
    "MINIO_BUCKET": ("object_storage", "bucket"),
    "MUX_TOKEN_ID": ("transcoding", "token_id"),
    "MUX_TOKEN_SECRET": ("transcoding", "token_secret"),
}

# Settings that must stay strings even when the value looks numeric.
_STRING_KEYS = {"host", "access_key", "secret_key", "token_id", "token_secret"}


class SettingsLoader:
    """Loads and merges configuration from multiple sources.

    Configuration precedence (highest to lowest):
    1. Prefixed environment variables (MEDIA_PIPELINE__SECTION__KEY)
    2. Plain aliases (MINIO_*, MUX_*)
    3. Environment-specific config (appsettings.{env}.json)
    4. Base config (appsettings.json)
    """

    ENV_PREFIX = "MEDIA_PIPELINE__"

    def __init__(
        self,
        config_dir: Path | None = None,
        environment: str | None = None,
        environ: dict[str, str] | None = None,
    ) -> None:
        """Initialize the settings loader.

        Args:
            config_dir: Directory containing configuration files.
                       Defaults to 'config' in current working directory.
            environment: Environment name (dev, staging, prod).
                        Defaults to MEDIA_PIPELINE__APP__ENVIRONMENT or 'dev'.
            environ: Environment mapping to read. Defaults to os.environ.
        """
        self.config_dir = config_dir or Path("config")
        self._environ = environ if environ is not None else dict(os.environ)
        self.environment = environment or self._environ.get(
            f"{self.ENV_PREFIX}APP__ENVIRONMENT", "dev"
        )

    def load(self) -> Settings:
        """Load settings with proper precedence.

        Returns:
            Fully resolved Settings instance.
        """
        config = self._load_json("appsettings.json")
        config = self._deep_merge(
            config, self._load_json(f"appsettings.{self.environment}.json")
        )
        config = self._deep_merge(config, self._load_aliases())
        config = self._deep_merge(config, self._load_env_vars())
        return Settings(**config)

    def _load_aliases(self) -> dict[str, Any]:
        """Translate plain MINIO_*/MUX_* variables into nested overrides."""
        result: dict[str, Any] = {}
        for name, key_path in ENV_ALIASES.items():
            value = self._environ.get(name)
            if value is None or value == "":
                continue
            self._assign(result, list(key_path), value)

        # The public endpoint signs with the same credentials as the internal one
        storage = result.get("object_storage", {})
        if "public" in storage:
            for key in ("access_key", "secret_key"):
                if key in storage.get("internal", {}):
                    storage["public"].setdefault(key, storage["internal"][key])
        return result

    def _load_env_vars(self) -> dict[str, Any]:
        """Load environment variables with the MEDIA_PIPELINE__ prefix.

        Parses env vars like MEDIA_PIPELINE__OBJECT_STORAGE__BUCKET into nested
        dicts: {"object_storage": {"bucket": "value"}}
        """
        result: dict[str, Any] = {}
        for key, value in self._environ.items():
            if not key.startswith(self.ENV_PREFIX):
                continue
            key_path = key[len(self.ENV_PREFIX) :].lower().split("__")
            self._assign(result, key_path, value)
        return result

    def _assign(self, target: dict[str, Any], key_path: list[str], value: str) -> None:
        current = target
        for part in key_path[:-1]:
            current = current.setdefault(part, {})
        final_key = key_path[-1]
        if final_key in _STRING_KEYS:
            current[final_key] = value
        else:
            current[final_key] = self._coerce_value(value)

    def _coerce_value(self, value: str) -> Any:
        """Coerce string environment variable to bool, int, float, JSON or str."""
        if value.lower() in ("true", "false"):
            return value.lower() == "true"

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

    def _load_json(self, filename: str) -> dict[str, Any]:
        """Load a JSON config file, or an empty dict if it doesn't exist."""
        path = self.config_dir / filename
        if path.exists():
            with path.open(encoding="utf-8") as f:
                return dict(json.load(f))
        return {}

    def _deep_merge(
        self,
        base: dict[str, Any],
        override: dict[str, Any],
    ) -> dict[str, Any]:
        """Deep merge two dictionaries, values in override win."""
        result = base.copy()
        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value
        return result


# Global settings instance
_settings: Settings | None = None


def get_settings(
    config_dir: Path | None = None,
    environment: str | None = None,
    *,
    reload: bool = False,
) -> Settings:
    """Get or create the global settings instance.

    Args:
        config_dir: Optional config directory override.
        environment: Optional environment override.
        reload: Force reload settings from files.

    Returns:
        Settings instance.
    """
    global _settings  # noqa: PLW0603
    if _settings is None or reload:
        loader = SettingsLoader(config_dir=config_dir, environment=environment)
        _settings = loader.load()
    return _settings


def reset_settings() -> None:
    """Reset the global settings instance. Useful for testing."""
    global _settings  # noqa: PLW0603
    _settings = None
