"""Build every image declared in a manifest.

Turns validated ``ImageEntry`` records into ``ImageFile`` builders, imports
their fill functions and generates them one after another in manifest order.
The first failure stops the build.

Usage:
    from docima.manifest import build_manifest
    from docima.utils.validators import load_manifest

    statuses = build_manifest(load_manifest("configs/images.yaml"))
"""

import importlib
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from docima.config import DocimaSettings, get_settings
from docima.errors import ConfigurationError
from docima.generator import FillFunction, GenerationStatus
from docima.image_file import ImageFile
from docima.utils.logging_config import pop_context, push_context
from docima.utils.project import find_project_root
from docima.utils.validators import ImageDefaults, ImageEntry, ManifestV1

logger = logging.getLogger(__name__)


def resolve_fill(reference: str, args: Optional[Mapping[str, Any]] = None) -> FillFunction:
    """Import ``module:attribute`` and return the fill function.

    Parameters
    ----------
    reference : str
        Dotted module path and attribute, e.g. ``docima.fills:random_pixels``
    args : Mapping[str, Any], optional
        When given, the attribute is a factory called with these keyword
        arguments and its result is the fill function

    Raises
    ------
    ConfigurationError
        If the module or attribute can't be found, the factory call fails,
        or the result is not callable
    """
    module_name, _, attr_path = reference.partition(":")
    try:
        target = importlib.import_module(module_name)
        for part in attr_path.split("."):
            target = getattr(target, part)
    except (ImportError, AttributeError) as e:
        raise ConfigurationError(f"Cannot resolve fill '{reference}': {e}") from e

    if args is not None:
        try:
            target = target(**args)
        except Exception as e:
            raise ConfigurationError(f"Bad fill_args for '{reference}': {e}") from e

    if not callable(target):
        raise ConfigurationError(f"Fill '{reference}' is not callable")
    return target


def to_image_file(
    entry: ImageEntry,
    defaults: Optional[ImageDefaults] = None,
    settings: Optional[DocimaSettings] = None
) -> ImageFile:
    """Build the ``ImageFile`` for one manifest entry, applying defaults."""
    defaults = defaults or ImageDefaults()

    image = ImageFile(settings).path(entry.path).width(entry.width).height(entry.height)

    for name, value in {**defaults.attrs, **entry.attrs}.items():
        image = image.attr(name, value)

    image = image.wrapper(entry.wrapper if entry.wrapper is not None else defaults.wrapper)
    for name, value in {**defaults.wrapper_attrs, **entry.wrapper_attrs}.items():
        image = image.wrapper_attr(name, value)

    overwrite = entry.overwrite if entry.overwrite is not None else defaults.overwrite
    if overwrite is not None:
        image = image.overwrite(overwrite)

    return image


def build_manifest(
    manifest: ManifestV1,
    project_root: Optional[Union[str, Path]] = None,
    settings: Optional[DocimaSettings] = None
) -> Dict[str, GenerationStatus]:
    """Generate all images of a manifest sequentially.

    Parameters
    ----------
    manifest : ManifestV1
        Validated manifest
    project_root : Union[str, Path], optional
        Root for all output paths; discovered once when omitted
    settings : DocimaSettings, optional
        Defaults to the environment settings

    Returns
    -------
    Dict[str, GenerationStatus]
        Status per image path, in manifest order

    Raises
    ------
    DocimaError
        The first failure; later images are not generated
    """
    settings = get_settings() if settings is None else settings
    if project_root is None and manifest.images and settings.generation_enabled:
        project_root = find_project_root(markers=settings.markers)

    statuses = {}
    for entry in manifest.images:
        push_context(image=entry.path)
        try:
            fill = resolve_fill(entry.fill, entry.fill_args)
            image = to_image_file(entry, manifest.defaults, settings)
            statuses[entry.path] = image.generate(fill, project_root=project_root, settings=settings)
        finally:
            pop_context(keys=["image"])

    written = sum(1 for s in statuses.values() if s is GenerationStatus.WRITTEN)
    logger.info(f"Built {len(statuses)} image(s), {written} written")
    return statuses
