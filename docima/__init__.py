"""docima: generate images at build time and embed them in documentation.

A fill function paints an RGB buffer; docima encodes it as PNG, inlines it
as a base64 data URI in an ``<img>`` tag (optionally wrapped in another
tag) and writes that HTML fragment to a file under the project root, ready
to be included verbatim by the documentation toolchain.

Architecture layers (strict one-way dependency):
    cli → manifest → {generator, image_file, fills} → config → utils/ → errors

Key invariants:
    - width, height and path are checked before any I/O
    - Attributes are rendered in sorted key order (reproducible output)
    - An existing fragment is left untouched unless overwrite is on
    - A fragment is written only once fully assembled in memory

Usage:
    from docima import ImageFile, fills

    ImageFile() \\
        .path("images/square-random-pixels.html") \\
        .width(32) \\
        .height(32) \\
        .attr("alt", "A 32x32 square filled with random color pixels.") \\
        .wrapper("a") \\
        .wrapper_attr("href", "https://www.python.org/") \\
        .generate(fills.random_pixels(seed=1234))
"""

from . import fills
from .config import DocimaSettings, get_settings, load_settings
from .errors import (
    CallbackError,
    CodecError,
    ConfigurationError,
    DocimaError,
    FilesystemError,
    MissingFieldError,
    ProjectRootNotFoundError,
)
from .generator import GenerationStatus, generate, validate_spec
from .image_file import ImageFile, ImageSpec

__version__ = "0.9.1"

__all__ = [
    'fills',
    'DocimaSettings',
    'get_settings',
    'load_settings',
    'CallbackError',
    'CodecError',
    'ConfigurationError',
    'DocimaError',
    'FilesystemError',
    'MissingFieldError',
    'ProjectRootNotFoundError',
    'GenerationStatus',
    'generate',
    'validate_spec',
    'ImageFile',
    'ImageSpec',
]
