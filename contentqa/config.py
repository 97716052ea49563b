"""Configuration for the QA checks."""

from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from .storage.loader import read_yaml_mapping

DATA_SIZE_LIMIT = 524288  # half of a 1 MiB memcache entry
DATA_SUMMARY_LENGTH = 1024


class ConfigError(Exception):
    """Raised when a configuration file is unreadable or invalid."""

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        super().__init__(message)


class QaConfig(BaseModel):
    """Tunable settings for the checks."""

    size_limit: int = Field(default=DATA_SIZE_LIMIT, gt=0)
    summary_length: int = Field(default=DATA_SUMMARY_LENGTH, ge=0)
    checks: list[str] | None = None


def load_config(path: str | Path | None = None) -> QaConfig:
    """Load a QaConfig from a YAML file, or return defaults.

    Raises:
        ConfigError: If the file cannot be read or fails validation.
    """
    if path is None:
        return QaConfig()

    data = read_yaml_mapping(path, ConfigError)
    try:
        return QaConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}", str(path)) from e
