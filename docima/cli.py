"""Command line entry point.

Commands:
    build MANIFEST   generate every image of an images.v1 manifest
    root             print the discovered project root

CLI:
    python -m docima build configs/images.yaml
    python -m docima build configs/images.yaml --root . --no-overwrite
    python -m docima build configs/images.yaml --doc --json-logs
    python -m docima root

Exit codes: 0 on success, 1 on any docima error.
"""

import argparse
import logging
import sys
from typing import List, Optional

from docima import __version__
from docima.config import load_settings
from docima.errors import DocimaError
from docima.manifest import build_manifest
from docima.utils.logging_config import pop_context, push_context, setup_logging
from docima.utils.project import find_project_root
from docima.utils.validators import load_manifest

logger = logging.getLogger(__name__)


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docima",
        description="Generate images as embeddable HTML fragments",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--settings",
        "-s",
        type=str,
        help="Settings YAML file (DOCIMA_* environment variables still apply)",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: from settings, INFO)",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        help="Also log to this file",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Log JSON lines instead of human-readable text",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    build = commands.add_parser("build", help="Generate all images of a manifest")
    build.add_argument("manifest", type=str, help="images.v1 manifest (YAML)")
    build.add_argument(
        "--root",
        "-r",
        type=str,
        help="Project root for output paths (default: discovered from cwd)",
    )
    build.add_argument(
        "--overwrite",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Force the overwrite policy of every image",
    )
    build.add_argument(
        "--doc",
        action="store_true",
        help="Mark this as a documentation build (see build_when_doc)",
    )

    commands.add_parser("root", help="Print the discovered project root")

    return parser


def _build(args: argparse.Namespace, settings) -> None:
    manifest = load_manifest(args.manifest)

    if args.overwrite is not None:
        manifest = manifest.model_copy(update={
            "images": [e.model_copy(update={"overwrite": args.overwrite}) for e in manifest.images]
        })
    if args.doc:
        settings = settings.model_copy(update={"doc": True})

    push_context(manifest=args.manifest)
    try:
        statuses = build_manifest(manifest, project_root=args.root, settings=settings)
    finally:
        pop_context(keys=["manifest"])

    for path, status in statuses.items():
        print(f"{status.value:9s} {path}")


def main(argv: Optional[List[str]] = None) -> int:
    """Run the CLI; returns the process exit code."""
    args = _parser().parse_args(argv)

    try:
        settings = load_settings(args.settings)
    except DocimaError as e:
        print(f"Error loading settings: {e}", file=sys.stderr)
        return 1

    setup_logging(
        log_level=args.log_level or settings.log_level,
        log_file=args.log_file,
        json=args.json_logs,
        quiet_libs=["PIL"],
    )

    try:
        if args.command == "root":
            print(find_project_root(markers=settings.markers))
        else:
            _build(args, settings)
    except DocimaError as e:
        logger.error(f"{type(e).__name__}: {e}")
        if e.__cause__ is not None:
            logger.debug("Caused by", exc_info=e.__cause__)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
