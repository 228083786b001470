"""
CLI — run one native-image build from the environment.

    python -m native_image build --app DIR --layers DIR [--output DIR]
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from native_image import DEFAULT_LAYER_NAME, __version__
from native_image.config import load_settings
from native_image.errors import NativeImageError
from native_image.runner import NativeImageBuild

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="native_image",
        description="native_image — compile a JVM application into a native binary",
    )
    parser.add_argument("--version", action="version", version=__version__)
    sub = parser.add_subparsers(dest="command", required=True)

    build = sub.add_parser("build", help="Build and relocate the native image")
    build.add_argument(
        "--app",
        type=Path,
        required=True,
        help="Application directory (exploded JAR or directory holding the JAR)",
    )
    build.add_argument(
        "--layers",
        type=Path,
        required=True,
        help="Directory for the cached layer and its metadata",
    )
    build.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Directory to write native_image_result.json",
    )
    build.add_argument("--layer-name", default=DEFAULT_LAYER_NAME)
    build.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    return parser


def run_build(args: argparse.Namespace) -> int:
    if not args.app.is_dir():
        logger.error("Application directory not found: %s", args.app)
        return 1

    try:
        settings = load_settings()
        if settings.native_image_enabled is False:
            logger.info("BP_NATIVE_IMAGE is false, skipping native image build")
            return 0

        config = settings.to_config(args.app, layer_name=args.layer_name)
        result = NativeImageBuild(config, args.app, args.layers).execute(
            output_dir=args.output,
        )
    except NativeImageError as e:
        logger.error("%s", e)
        return 1

    print(f"Outcome: {result.outcome.value}")
    print(f"Binary: {result.binary_path}")
    for process in result.processes:
        marker = " (default)" if process.default else ""
        print(f"Process {process.type}: {process.command}{marker}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if getattr(args, "verbose", False) else logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    if args.command == "build":
        return run_build(args)
    return 2


if __name__ == "__main__":
    sys.exit(main())
