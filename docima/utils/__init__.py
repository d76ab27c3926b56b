"""Cross-cutting utilities (lowest dependency layer).

This package provides shared primitives for:
    - Project-root discovery and path resolution (project)
    - Fragment writes & YAML loading (fs)
    - Manifest schema validation (validators)
    - Unified logging (logging_config)

No module in utils/ may import from upper layers (generator, image_file,
manifest, cli); docima.errors is the only shared dependency.

Convenience imports:
    from docima.utils import fs, project, validators
    from docima.utils.logging_config import setup_logging, get_logger
"""

from . import fs
from . import logging_config
from . import project
from . import validators

from .logging_config import get_logger, push_context, setup_logging

__all__ = [
    # Modules
    'fs',
    'logging_config',
    'project',
    'validators',
    # Direct exports
    'setup_logging',
    'get_logger',
    'push_context',
]
