"""Exception hierarchy for image generation.

Every failure of a ``generate`` call surfaces as a subclass of
``DocimaError``; the underlying exception (I/O, Pillow, caller code) is kept
as ``__cause__``.

    DocimaError
    ├── ConfigurationError
    │   └── MissingFieldError
    ├── CallbackError
    ├── CodecError
    ├── FilesystemError
    └── ProjectRootNotFoundError
"""


class DocimaError(Exception):
    """Base class for all docima errors."""

    pass


class ConfigurationError(DocimaError):
    """Raised when an image or settings configuration is invalid."""

    pass


class MissingFieldError(ConfigurationError):
    """A required ``ImageSpec`` field was never set.

    Parameters
    ----------
    field : str
        Name of the missing field: "width", "height" or "path"
    """

    def __init__(self, field: str):
        super().__init__(f"missing required field: {field}")
        self.field = field


class CallbackError(DocimaError):
    """The pixel-fill callback failed."""

    pass


class CodecError(DocimaError):
    """PNG or base64 encoding failed."""

    pass


class FilesystemError(DocimaError):
    """Creating the output directory or writing the fragment failed."""

    pass


class ProjectRootNotFoundError(DocimaError):
    """No ancestor directory contains a project marker file."""

    pass
