"""Settings for image generation.

Loads an optional YAML settings file, applies ``DOCIMA_*`` environment
overrides and validates the result into a frozen pydantic model. Settings
only change defaults and gating; an explicit ``ImageFile.overwrite(...)``
always wins over ``default_overwrite``.

Environment overrides (strings, coerced by pydantic):
    DOCIMA_DEFAULT_OVERWRITE   default overwrite policy of new ImageFiles
    DOCIMA_BUILD_WHEN_DOC      only generate when DOCIMA_DOC is also set
    DOCIMA_DOC                 marks a documentation build
    DOCIMA_STRICT_ANCHOR       reject href/target on a non-anchor wrapper
    DOCIMA_ATOMIC_WRITE        write fragments via tmp file + rename
    DOCIMA_LOG_LEVEL           level used by the CLI

Usage::

    from docima.config import load_settings
    settings = load_settings("configs/docima.yaml")
"""

import logging
import os
from pathlib import Path
from typing import Mapping, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from docima.errors import ConfigurationError
from docima.utils import fs
from docima.utils.project import DEFAULT_MARKERS

logger = logging.getLogger(__name__)

ENV_VARS = {
    "default_overwrite": "DOCIMA_DEFAULT_OVERWRITE",
    "build_when_doc": "DOCIMA_BUILD_WHEN_DOC",
    "doc": "DOCIMA_DOC",
    "strict_anchor": "DOCIMA_STRICT_ANCHOR",
    "atomic_write": "DOCIMA_ATOMIC_WRITE",
    "log_level": "DOCIMA_LOG_LEVEL",
}

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class DocimaSettings(BaseModel):
    """Process-wide generation settings."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    default_overwrite: bool = Field(True, description="Overwrite policy of a fresh ImageFile")
    build_when_doc: bool = Field(False, description="Generate only during documentation builds")
    doc: bool = Field(False, description="This is a documentation build")
    strict_anchor: bool = Field(False, description="href/target require an <a> wrapper")
    atomic_write: bool = Field(False, description="Write fragments atomically")
    markers: Tuple[str, ...] = Field(DEFAULT_MARKERS, description="Project root marker files")
    log_level: str = Field("INFO", description="CLI logging level")

    @field_validator('markers')
    @classmethod
    def validate_markers(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        if not v or any(not m for m in v):
            raise ValueError(f"markers must be a non-empty list of file names, got: {list(v)}")
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.upper()
        if v not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {_LOG_LEVELS}, got '{v}'")
        return v

    @property
    def generation_enabled(self) -> bool:
        """False when generation is gated to documentation builds and this isn't one."""
        return self.doc or not self.build_when_doc


def load_settings(
    path: Optional[Union[str, Path]] = None,
    env: Optional[Mapping[str, str]] = None
) -> DocimaSettings:
    """Load settings from an optional YAML file plus environment overrides.

    Parameters
    ----------
    path : Union[str, Path], optional
        YAML file with any subset of the DocimaSettings fields
    env : Mapping[str, str], optional
        Environment to read overrides from; defaults to ``os.environ``

    Returns
    -------
    DocimaSettings
        Validated settings

    Raises
    ------
    ConfigurationError
        If the file is missing, unparsable, or a value fails validation
    """
    data = {}
    if path is not None:
        try:
            loaded = fs.load_yaml(path)
        except (FileNotFoundError, yaml.YAMLError) as e:
            raise ConfigurationError(str(e)) from e
        if not isinstance(loaded, dict):
            raise ConfigurationError(f"Settings file {path} must hold a mapping")
        data.update(loaded)

    env = os.environ if env is None else env
    for field, var in ENV_VARS.items():
        if var in env:
            data[field] = env[var]

    try:
        settings = DocimaSettings(**data)
    except ValidationError as e:
        source = f" in {path}" if path is not None else ""
        raise ConfigurationError(f"Invalid settings{source}: {e}") from e

    logger.debug(f"Settings: {settings.model_dump()}")
    return settings


def get_settings() -> DocimaSettings:
    """Settings from the environment alone (read on every call)."""
    return load_settings()
