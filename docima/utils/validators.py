"""YAML schema validation for image manifests.

An image manifest (images.v1) declares every image a build generates, in
the order they are generated:

    schema: images.v1
    defaults:
      overwrite: true
      attrs: {loading: lazy}
    images:
      - path: images/square-random-pixels.html
        width: 32
        height: 32
        fill: docima.fills:random_pixels
        fill_args: {seed: 1234}
        attrs: {title: random pixels}
        wrapper: a
        wrapper_attrs: {href: "https://www.python.org/"}

Per-image ``attrs``/``wrapper_attrs`` are merged over ``defaults`` (image
wins per key); ``overwrite`` and ``wrapper`` fall back to ``defaults`` when
not given.

Usage:
    from docima.utils import validators
    manifest = validators.load_manifest("configs/images.yaml")
"""

import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from docima.errors import ConfigurationError
from docima.utils import fs

FILL_REF_PATTERN = re.compile(r"^[A-Za-z_][\w.]*:[A-Za-z_][\w.]*$")


class ImageDefaults(BaseModel):
    """Values shared by every image of a manifest."""
    model_config = ConfigDict(extra="forbid")

    overwrite: Optional[bool] = Field(None, description="Default overwrite policy")
    attrs: Dict[str, str] = Field(default_factory=dict, description="Default <img> attributes")
    wrapper: str = Field("", description="Default wrapper tag")
    wrapper_attrs: Dict[str, str] = Field(default_factory=dict, description="Default wrapper attributes")


class ImageEntry(BaseModel):
    """One image to generate."""
    model_config = ConfigDict(extra="forbid")

    path: str = Field(..., min_length=1, description="Output file relative to the project root")
    width: int = Field(..., gt=0, description="Width in pixels")
    height: int = Field(..., gt=0, description="Height in pixels")
    fill: str = Field(..., description="Fill function as 'module:attribute'")
    fill_args: Optional[Dict[str, Any]] = Field(
        None, description="Keyword arguments; when given, 'fill' is a factory"
    )
    attrs: Dict[str, str] = Field(default_factory=dict)
    wrapper: Optional[str] = None
    wrapper_attrs: Dict[str, str] = Field(default_factory=dict)
    overwrite: Optional[bool] = None

    @field_validator('fill')
    @classmethod
    def validate_fill(cls, v: str) -> str:
        if not FILL_REF_PATTERN.match(v):
            raise ValueError(f"fill must look like 'package.module:function', got '{v}'")
        return v


class ManifestV1(BaseModel):
    """Container for all images of a build (YAML file format)."""
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    schema_version: str = Field("images.v1", alias="schema", description="Schema version")
    defaults: ImageDefaults = Field(default_factory=ImageDefaults)
    images: List[ImageEntry] = Field(default_factory=list)

    @field_validator('schema_version')
    @classmethod
    def validate_schema(cls, v: str) -> str:
        if v != "images.v1":
            raise ValueError(f"Expected schema 'images.v1', got '{v}'")
        return v

    @model_validator(mode='after')
    def validate_unique_paths(self) -> 'ManifestV1':
        """Two entries writing the same file would silently shadow each other."""
        seen = set()
        for entry in self.images:
            if entry.path in seen:
                raise ValueError(f"Duplicate image path: {entry.path}")
            seen.add(entry.path)
        return self


def validate_manifest(data: Dict[str, Any], source: str = "<manifest>") -> ManifestV1:
    """Validate already-parsed manifest data.

    Raises
    ------
    ConfigurationError
        With the offending keys and the source name
    """
    if not isinstance(data, dict):
        raise ConfigurationError(f"Manifest {source} must hold a mapping")
    try:
        return ManifestV1.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Manifest validation failed at {source}: {e}") from e


def load_manifest(path: Union[str, Path]) -> ManifestV1:
    """Load and validate an images.v1 manifest.

    Parameters
    ----------
    path : Union[str, Path]
        Path to the manifest YAML

    Returns
    -------
    ManifestV1
        Validated manifest

    Raises
    ------
    ConfigurationError
        If the file is missing, unparsable or fails validation
    """
    path = Path(path)
    try:
        data = fs.load_yaml(path)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Manifest not found: {path}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(str(e)) from e

    return validate_manifest(data, str(path))
