from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Optional, Sequence

from .config import load_config
from .errors import BlogsmithError

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="blogsmith", description="Markdown blog builder and server.")
    parser.add_argument("--config", default="site.toml", help="Path to site config file (TOML/YAML/JSON).")
    parser.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, WARNING, ...).")
    parser.add_argument("--posts", default=None, help="Directory containing Markdown posts.")
    parser.add_argument("--assets", default=None, help="Directory of static assets.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    build = subparsers.add_parser("build", help="Generate the static site.")
    build.add_argument("--output", default=None, help="Output directory for the site.")
    build.add_argument(
        "--workers",
        default=None,
        type=int,
        help="Number of worker threads for parsing/rendering (0 = auto).",
    )
    build.add_argument(
        "--minify",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Minify generated HTML.",
    )

    serve = subparsers.add_parser("serve", help="Serve pages on demand.")
    serve.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve.add_argument("--port", default=8000, type=int, help="Port to listen on.")
    return parser


def run_build(args: argparse.Namespace) -> int:
    from .builder import build_site

    config = load_config(Path(args.config)).with_overrides(
        posts=args.posts,
        assets=args.assets,
        output=args.output,
        workers=args.workers,
        minify=args.minify,
    )
    start = time.perf_counter()
    result = build_site(config)
    elapsed = time.perf_counter() - start
    logger.info("Build completed in %.2fs.", elapsed)
    logger.info("Site generated in: %s", config.output)
    if result.posts_failed:
        logger.warning("%d posts failed to render and were left out.", len(result.posts_failed))
    return 0


def run_serve(args: argparse.Namespace) -> int:
    import uvicorn

    from .server import create_app

    config = load_config(Path(args.config)).with_overrides(posts=args.posts, assets=args.assets)
    uvicorn.run(create_app(config), host=args.host, port=args.port, log_level=args.log_level.lower())
    return 0


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    try:
        if args.command == "build":
            code = run_build(args)
        else:
            code = run_serve(args)
    except BlogsmithError as exc:
        logger.error("%s", exc)
        sys.exit(1)
    sys.exit(code)
