"""Image generation: fill → PNG → base64 → HTML fragment → file.

Pipeline for one ``ImageSpec``:
    1. Validate required fields (no I/O before this passes)
    2. Skip when generation is gated to documentation builds
    3. Resolve ``project_root / spec.path``
    4. Skip when the target exists and overwrite is off
    5. Create parent directories
    6. Allocate a zeroed RGB8 buffer (width * height * 3 bytes)
    7. Call the fill function with (buffer, width, height)
    8. Encode as PNG (best compression)
    9. Encode as MIME base64 (76-char lines, CRLF)
    10. Assemble the <img> tag and optional wrapper
    11. Write the fragment (create-or-truncate)

The target file is treated as content-addressed by path only: an existing
file is kept as-is when overwrite is off, even if the configuration changed.

Usage:
    from docima.generator import generate
    status = generate(spec, fill, project_root=Path("."))
"""

import base64
import enum
import html
import io
import logging
import re
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Union

import numpy as np
from PIL import Image

from docima.config import DocimaSettings, get_settings
from docima.errors import (
    CallbackError,
    CodecError,
    ConfigurationError,
    FilesystemError,
    MissingFieldError,
)
from docima.image_file import ImageSpec
from docima.utils import fs
from docima.utils.project import find_project_root

logger = logging.getLogger(__name__)

IMAGE_FORMAT = "png"
MIME_LINE_LENGTH = 76
MIME_LINE_SEPARATOR = "\r\n"
ANCHOR_ONLY_ATTRIBUTES = ("href", "target")
NAME_PATTERN = re.compile(r"[A-Za-z_:][-\w:.]*")

FillFunction = Callable[[np.ndarray, int, int], Any]


class GenerationStatus(enum.Enum):
    """Outcome of a successful ``generate`` call."""

    WRITTEN = "written"
    SKIPPED = "skipped"
    DISABLED = "disabled"


def validate_spec(
    spec: ImageSpec,
    settings: Optional[DocimaSettings] = None
) -> Optional[ConfigurationError]:
    """Check a spec before generation.

    Parameters
    ----------
    spec : ImageSpec
        Configuration to check
    settings : DocimaSettings, optional
        Enables the anchor-only rule when ``strict_anchor`` is set

    Returns
    -------
    ConfigurationError or None
        The first problem found, or None if the spec is usable

    Notes
    -----
    Pure: never raises and never touches the filesystem. Fields are checked
    in the order width, height, path; then tag and attribute names must be
    valid markup names.
    """
    if not spec.width or spec.width <= 0:
        return MissingFieldError("width")
    if not spec.height or spec.height <= 0:
        return MissingFieldError("height")
    if not spec.path:
        return MissingFieldError("path")

    if spec.wrapper and not NAME_PATTERN.fullmatch(spec.wrapper):
        return ConfigurationError(f"invalid wrapper tag name: {spec.wrapper!r}")
    for kind, attributes in (("attribute", spec.attributes),
                             ("wrapper attribute", spec.wrapper_attributes)):
        for name in sorted(attributes):
            if not NAME_PATTERN.fullmatch(name):
                return ConfigurationError(f"invalid {kind} name: {name!r}")

    if settings is not None and settings.strict_anchor and spec.wrapper != "a":
        misplaced = sorted(k for k in spec.wrapper_attributes if k in ANCHOR_ONLY_ATTRIBUTES)
        if misplaced:
            return ConfigurationError(
                f"wrapper attribute(s) {', '.join(misplaced)} require an 'a' wrapper, "
                f"got '{spec.wrapper}'"
            )

    return None


def encode_png(buffer: np.ndarray, width: int, height: int) -> bytes:
    """Encode an RGB8 buffer as PNG with maximum zlib compression.

    Raises
    ------
    CodecError
        If Pillow rejects the data or dimensions
    """
    try:
        img = Image.frombytes("RGB", (width, height), buffer.tobytes())
        out = io.BytesIO()
        img.save(out, format="PNG", compress_level=9)
    except (ValueError, OSError) as e:
        raise CodecError(f"PNG encoding failed for {width}x{height} image: {e}") from e
    return out.getvalue()


def encode_base64_mime(data: bytes) -> str:
    """Base64 with 76-character lines, each terminated by CRLF."""
    encoded = base64.b64encode(data).decode("ascii")
    lines = [encoded[i:i + MIME_LINE_LENGTH] for i in range(0, len(encoded), MIME_LINE_LENGTH)]
    return "".join(line + MIME_LINE_SEPARATOR for line in lines)


def render_attributes(attributes: Mapping[str, str]) -> str:
    """Render ``key="value"`` pairs in sorted key order, each with a leading space."""
    return "".join(
        f' {name}="{html.escape(str(value), quote=True)}"'
        for name, value in sorted(attributes.items())
    )


def assemble_fragment(spec: ImageSpec, encoded: str) -> str:
    """Build the ``<img>`` tag (and wrapper) around base64 image data.

    Examples
    --------
    >>> spec = ImageSpec(width=1, height=1, path="x.html", wrapper="a",
    ...                  wrapper_attributes={"href": "https://example.com"})
    >>> assemble_fragment(spec, "AAAA")
    '<a href="https://example.com"><img src="data:image/png;base64,\\nAAAA"/></a>'
    """
    content = (
        f'<img src="data:image/{IMAGE_FORMAT};base64,\n{encoded}"'
        f'{render_attributes(spec.attributes)}/>'
    )

    if spec.wrapper:
        opening = f"<{spec.wrapper}{render_attributes(spec.wrapper_attributes)}>"
        content = f"{opening}{content}</{spec.wrapper}>"

    return content


def _fill_buffer(fill: FillFunction, width: int, height: int) -> np.ndarray:
    buffer = np.zeros(width * height * 3, dtype=np.uint8)
    expected = buffer.shape

    try:
        fill(buffer, width, height)
    except Exception as e:
        raise CallbackError(f"fill function {_describe(fill)} failed: {e}") from e

    if buffer.shape != expected:
        raise CallbackError(
            f"fill function {_describe(fill)} resized the buffer "
            f"from {expected} to {buffer.shape}"
        )
    return buffer


def _describe(fill: FillFunction) -> str:
    return getattr(fill, "__qualname__", None) or repr(fill)


def generate(
    spec: ImageSpec,
    fill: FillFunction,
    project_root: Optional[Union[str, Path]] = None,
    settings: Optional[DocimaSettings] = None
) -> GenerationStatus:
    """Generate one image and write it as an HTML fragment.

    Parameters
    ----------
    spec : ImageSpec
        Image configuration (see ``ImageFile``)
    fill : callable
        ``fill(buffer, width, height)``; writes RGB bytes into the flat
        uint8 ``buffer``. Raise to report failure. The buffer must not be
        resized or kept after returning.
    project_root : Union[str, Path], optional
        Directory ``spec.path`` is relative to; discovered from the working
        directory when omitted
    settings : DocimaSettings, optional
        Defaults to the environment settings

    Returns
    -------
    GenerationStatus
        WRITTEN, SKIPPED (target exists, overwrite off) or DISABLED
        (generation gated to documentation builds)

    Raises
    ------
    MissingFieldError
        width, height or path not set
    ConfigurationError
        Invalid tag or attribute name, or an anchor-only attribute on
        another wrapper (strict_anchor)
    ProjectRootNotFoundError
        No project root found and none given
    CallbackError
        The fill function raised or resized the buffer
    CodecError
        PNG encoding failed
    FilesystemError
        Directory creation or file write failed
    """
    settings = get_settings() if settings is None else settings

    problem = validate_spec(spec, settings)
    if problem is not None:
        raise problem

    if not settings.generation_enabled:
        logger.debug(f"Generation disabled outside documentation builds: {spec.path}")
        return GenerationStatus.DISABLED

    if project_root is None:
        project_root = find_project_root(markers=settings.markers)
    target = Path(project_root) / spec.path

    if target.exists() and not spec.overwrite:
        logger.info(f"Kept existing {spec.path}")
        return GenerationStatus.SKIPPED

    try:
        fs.ensure_dir(target.parent)
    except OSError as e:
        raise FilesystemError(f"Cannot create directory {target.parent}: {e}") from e

    buffer = _fill_buffer(fill, spec.width, spec.height)
    png = encode_png(buffer, spec.width, spec.height)
    fragment = assemble_fragment(spec, encode_base64_mime(png))
    logger.debug(
        f"{spec.path}: {spec.width}x{spec.height}, {len(png)} PNG bytes, "
        f"{len(fragment)} fragment chars"
    )

    write = fs.atomic_write_text if settings.atomic_write else fs.write_text
    try:
        write(target, fragment)
    except OSError as e:
        raise FilesystemError(f"Cannot write {target}: {e}") from e

    logger.info(f"Wrote {spec.path}")
    return GenerationStatus.WRITTEN
