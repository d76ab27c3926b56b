"""Project-root discovery and output path resolution.

The project root is the closest ancestor of the working directory (itself
included) that directly contains a project manifest marker file. Output paths
are always ``project_root / relative``.

Usage:
    from docima.utils import project
    root = project.find_project_root()
    target = project.root_path("images/plot.html", root)
"""

import logging
from pathlib import Path
from typing import Iterable, Optional, Union

from docima.errors import ProjectRootNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_MARKERS = ("pyproject.toml", "setup.py", "setup.cfg")


def find_project_root(
    start: Optional[Union[str, Path]] = None,
    markers: Iterable[str] = DEFAULT_MARKERS
) -> Path:
    """Walk up from ``start`` to the first directory holding a marker file.

    Parameters
    ----------
    start : Union[str, Path], optional
        Directory to start from; defaults to the current working directory
    markers : Iterable[str]
        File names that identify a project root

    Returns
    -------
    Path
        The discovered project root

    Raises
    ------
    ProjectRootNotFoundError
        If neither ``start`` nor any of its ancestors (up to and including
        the filesystem root) contains a marker

    Notes
    -----
    Existence checks only; nothing is cached between calls.
    """
    start = Path.cwd() if start is None else Path(start).absolute()
    markers = tuple(markers)

    for candidate in (start, *start.parents):
        if any((candidate / marker).is_file() for marker in markers):
            logger.debug(f"Project root: {candidate}")
            return candidate

    raise ProjectRootNotFoundError(
        f"no project root above {start} (looked for {', '.join(markers)})"
    )


def root_path(
    relative: Union[str, Path],
    root: Optional[Union[str, Path]] = None
) -> Path:
    """Join ``relative`` onto the project root.

    ``..`` segments and absolute inputs are not normalised; callers pass a
    path relative to the root.
    """
    root = find_project_root() if root is None else Path(root)
    return root / relative
