"""Compiler configuration.

Defaults live in ``defaults.yaml`` next to this module. A user file passed with
``--config`` is overlaid key by key, then CLI flags win over both.
"""

from pathlib import Path

import yaml
from pydantic import BaseModel, ValidationError

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"


class ConfigError(ValueError):
    """Raised when a configuration file cannot be read or validated."""


class FieldCorrection(BaseModel):
    """Re-type a property whose declared type disagrees with the live API."""

    datatype: str
    replacement: str
    base_name: str | None = None

    def matches(self, base_name: str, datatype: str) -> bool:
        if datatype != self.datatype:
            return False
        return self.base_name is None or self.base_name == base_name


class DiscriminatorDefault(BaseModel):
    field: str
    value: str  # "name" or "snake_name"


class CompilerConfig(BaseModel):
    """Every tunable the pipeline reads, with the shipped defaults."""

    target_api_prefix: str | None = None
    skip_serializing_if_none: bool = True
    package_version: str = "0.1.0"
    denylist: list[str] = []
    name_overrides: dict[str, str] = {}
    field_corrections: list[FieldCorrection] = []
    response_type_overrides: dict[str, str] = {}
    pagination_bases: list[str] = []
    discriminator_defaults: list[DiscriminatorDefault] = []
    reference_overrides: list[str] = []
    no_default_types: list[str] = []
    ignored_query_params: list[str] = []
    operation_name_extension: str = "x-codegen-operation-name"

    @property
    def models_file(self) -> str:
        if self.target_api_prefix:
            return f"{self.target_api_prefix}_models.rs"
        return "models.rs"

    def is_reference_override(self, model_name: str, field: str | None = None) -> bool:
        if model_name in self.reference_overrides:
            return True
        return field is not None and f"{model_name}.{field}" in self.reference_overrides


def _read_yaml(path: Path) -> dict:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read config {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config {path} must be a mapping, got {type(data).__name__}")
    return data


def load_config(path: Path | None = None, **overrides) -> CompilerConfig:
    """Load the shipped defaults, overlay ``path`` and then ``overrides``.

    Overrides whose value is None are ignored so CLI options can be passed
    through unconditionally.
    """
    data = _read_yaml(DEFAULTS_PATH)
    if path is not None:
        data.update(_read_yaml(path))
    data.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return CompilerConfig(**data)
    except ValidationError as e:
        raise ConfigError(str(e)) from e
