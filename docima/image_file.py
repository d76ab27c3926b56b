"""Image configuration: the ``ImageSpec`` record and its fluent builder.

``ImageFile`` accumulates the configuration of one image through chained
setters. Each setter returns a new builder and leaves the receiver as it was,
so a partially configured ``ImageFile`` can be shared as a template. Nothing
is validated here; ``generator.validate_spec`` runs once when generation
starts.

Required: width, height, path. Optional: <img> attributes, a wrapper tag
with its own attributes, and the overwrite policy.

Usage:
    from docima import ImageFile

    ImageFile() \\
        .path("images/plot.html") \\
        .width(600) \\
        .height(400) \\
        .attr("title", "My image") \\
        .wrapper("div") \\
        .wrapper_attr("style", "padding: 3px;") \\
        .overwrite(True) \\
        .generate(my_fill_function)
"""

from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional, Union

from docima.config import DocimaSettings, get_settings

if TYPE_CHECKING:
    from docima.generator import GenerationStatus


def _frozen(mapping: Optional[Mapping[str, str]] = None) -> Mapping[str, str]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class ImageSpec:
    """Complete configuration of one generated image.

    Attributes
    ----------
    width, height : int
        Image dimensions in pixels; 0 means "not set"
    path : str
        Output file, relative to the project root; "" means "not set"
    attributes : Mapping[str, str]
        ``<img>`` attributes (read-only)
    wrapper : str
        Wrapper tag name; "" for no wrapper
    wrapper_attributes : Mapping[str, str]
        Wrapper tag attributes (read-only), ignored without a wrapper
    overwrite : bool
        Regenerate even if the output file already exists
    """

    width: int = 0
    height: int = 0
    path: str = ""
    attributes: Mapping[str, str] = field(default_factory=_frozen, hash=False)
    wrapper: str = ""
    wrapper_attributes: Mapping[str, str] = field(default_factory=_frozen, hash=False)
    overwrite: bool = True

    def __post_init__(self):
        # Copy caller mappings so later changes to them don't leak in
        object.__setattr__(self, "attributes", _frozen(self.attributes))
        object.__setattr__(self, "wrapper_attributes", _frozen(self.wrapper_attributes))


class ImageFile:
    """Fluent, immutable-step builder for an ``ImageSpec``.

    Parameters
    ----------
    settings : DocimaSettings, optional
        Source of the default overwrite policy; read from the environment
        when omitted
    """

    def __init__(self, settings: Optional[DocimaSettings] = None):
        settings = get_settings() if settings is None else settings
        self._spec = ImageSpec(overwrite=settings.default_overwrite)

    @classmethod
    def _from_spec(cls, spec: ImageSpec) -> "ImageFile":
        new = cls.__new__(cls)
        new._spec = spec
        return new

    def _with(self, **changes) -> "ImageFile":
        return self._from_spec(replace(self._spec, **changes))

    def __repr__(self) -> str:
        return f"ImageFile({self._spec!r})"

    # -- required ------------------------------------------------------------

    def width(self, width: int) -> "ImageFile":
        """Sets the width of the image."""
        return self._with(width=width)

    def height(self, height: int) -> "ImageFile":
        """Sets the height of the image."""
        return self._with(height=height)

    def path(self, path: Union[str, Path]) -> "ImageFile":
        """Sets the output file, relative to the project root."""
        return self._with(path=str(path))

    # -- optional ------------------------------------------------------------

    def attr(self, name: str, value: str) -> "ImageFile":
        """Sets one attribute of the ``<img>`` tag (replacing any previous value)."""
        return self._with(attributes=_frozen({**self._spec.attributes, name: value}))

    def wrapper(self, tag: str) -> "ImageFile":
        """Sets the tag wrapped around ``<img>``; an empty tag disables wrapping."""
        return self._with(wrapper=tag)

    def wrapper_attr(self, name: str, value: str) -> "ImageFile":
        """Sets one attribute of the wrapper tag.

        ``href`` and ``target`` are only meaningful on an ``a`` wrapper; that
        is checked at generation time when ``strict_anchor`` is enabled.
        """
        return self._with(
            wrapper_attributes=_frozen({**self._spec.wrapper_attributes, name: value})
        )

    def overwrite(self, overwrite: bool) -> "ImageFile":
        """Sets whether an existing output file is regenerated."""
        return self._with(overwrite=overwrite)

    # -- finish --------------------------------------------------------------

    def build(self) -> ImageSpec:
        """Returns the accumulated configuration."""
        return self._spec

    def generate(
        self,
        fill: Callable[..., Any],
        project_root: Optional[Union[str, Path]] = None,
        settings: Optional[DocimaSettings] = None
    ) -> "GenerationStatus":
        """Generates the image with ``fill`` and writes the fragment.

        See ``docima.generator.generate``.
        """
        from docima.generator import generate

        return generate(self._spec, fill, project_root=project_root, settings=settings)
