"""Configuration loading with pydantic-settings.

Supports loading configuration from multiple sources with precedence:
1. Direct kwargs (highest priority)
2. Environment variables (CONTRACT_INDEX__SECTION__KEY)
3. ./contract-index.yaml
4. ~/.config/contract-index/config.yaml
5. Built-in defaults (lowest priority)
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from contract_index.config.models import (
    ContractIndexConfig,
    DatabaseConfig,
    IndexerConfig,
    IngestConfig,
    LoggingConfig,
)
from contract_index.core.errors import ConfigError

GLOBAL_CONFIG_PATH = Path("~/.config/contract-index/config.yaml").expanduser()
LOCAL_CONFIG_NAME = "contract-index.yaml"


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with path.open() as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "top-level YAML value must be a mapping")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


class _YamlSource(PydanticBaseSettingsSource):
    """Settings source that reads from pre-loaded YAML config."""

    def __init__(self, settings_cls: type[BaseSettings], yaml_config: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._yaml_config = yaml_config

    def get_field_value(
        self,
        field: Any,  # noqa: ARG002
        field_name: str,
    ) -> tuple[Any, str, bool]:
        val = self._yaml_config.get(field_name)
        return val, field_name, val is not None

    def __call__(self) -> dict[str, Any]:
        return self._yaml_config


def _make_settings_class(yaml_config: dict[str, Any]) -> type[BaseSettings]:
    """Create a Settings class with instance-based YAML source (thread-safe)."""

    class ContractIndexSettings(BaseSettings):
        """Root config. Env vars: CONTRACT_INDEX__DATABASE__PATH, etc."""

        model_config = SettingsConfigDict(
            env_prefix="CONTRACT_INDEX__",
            env_nested_delimiter="__",
            case_sensitive=False,
        )

        logging: LoggingConfig = LoggingConfig()
        database: DatabaseConfig = DatabaseConfig()
        ingest: IngestConfig = IngestConfig()
        indexer: IndexerConfig = IndexerConfig()

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            # Precedence (first wins): init kwargs > env vars > yaml files
            return (init_settings, env_settings, _YamlSource(settings_cls, yaml_config))

    return ContractIndexSettings


ContractIndexSettings = _make_settings_class({})


def load_config(
    work_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
    **kwargs: Any,
) -> ContractIndexConfig:
    """Load config: defaults < global yaml < local yaml < env vars < kwargs.

    Args:
        work_dir: Directory searched for contract-index.yaml.
                  Defaults to current working directory.
        global_config_path: Override for the per-user config file.
        **kwargs: Override values (highest precedence), keyed by section.

    Returns:
        Fully resolved configuration object.

    Raises:
        ConfigError: On invalid YAML syntax or validation errors.
    """
    work_dir = work_dir or Path.cwd()

    yaml_config = _load_yaml(global_config_path or GLOBAL_CONFIG_PATH)
    local_config = _load_yaml(work_dir / LOCAL_CONFIG_NAME)
    if local_config:
        yaml_config = _deep_merge(yaml_config, local_config)

    settings_cls = _make_settings_class(yaml_config)
    try:
        settings = settings_cls(**kwargs)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(loc) for loc in err["loc"])
        raise ConfigError.invalid_value(field, err.get("input"), err["msg"]) from e
    return ContractIndexConfig.model_validate(settings.model_dump())


def require_db_path(config: ContractIndexConfig) -> Path:
    """Return the configured database path or raise ConfigError."""
    if not config.database.path:
        raise ConfigError.missing_required("database.path")
    return Path(config.database.path).expanduser()
