"""Command line entry point: generate, serve, initials."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from dotenv import load_dotenv

from scribe.config import DEFAULT_CONFIG_PATH, ConfigError, load_config
from scribe.generator import SiteGenerationError, generate
from scribe.initials import generate_letters, parse_letters
from scribe.serve import DEFAULT_HOST, DEFAULT_PORT, serve_site

logger = logging.getLogger("scribe")

BANNER = """
   ◜ s c r i b e ◝
    ink • eternal
"""


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="scribe", description="A minimal static site generator • ink • eternal")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug output")
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Generate the static site")
    gen.add_argument("-c", "--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to config file")

    srv = sub.add_parser("serve", help="Serve the generated site locally")
    srv.add_argument("-d", "--dist", type=Path, default=Path("dist"), help="Directory to serve")
    srv.add_argument("-p", "--port", type=int, default=DEFAULT_PORT, help="Port to serve on")
    srv.add_argument("--host", default=DEFAULT_HOST, help="Host to bind to")
    srv.add_argument("--open", action="store_true", help="Open a browser once serving")

    ini = sub.add_parser("initials", help="Generate illuminated initials for specific letters")
    ini.add_argument("-l", "--letters", required=True, help='Letters, e.g. "ABC" or "a,b,c"')
    ini.add_argument("-c", "--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to config file")
    ini.add_argument("-o", "--output", type=Path, default=Path("initials"), help="Output directory for initials")
    return parser.parse_args(argv)


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s" if verbose else "%(message)s",
        stream=sys.stderr,
    )
    # keep urllib3 connection chatter out of -v output
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def run_generate(config_path: Path) -> int:
    try:
        config = load_config(config_path)
        generate(config)
    except (ConfigError, SiteGenerationError, OSError) as exc:
        logger.error("Error: %s", exc)
        return 1
    return 0


def run_initials(letters_text: str, config_path: Path, output_dir: Path) -> int:
    try:
        config = load_config(config_path)
    except ConfigError as exc:
        logger.error("Error: %s", exc)
        return 1
    if not config.openai_api_key:
        logger.error("Error: OPENAI_API_KEY not found in environment. Cannot generate illuminated initials.")
        return 1
    letters = parse_letters(letters_text)
    if not letters:
        logger.error("Error: No valid letters provided.")
        return 1
    try:
        generate_letters(letters, output_dir, config.openai_api_key)
    except OSError as exc:
        logger.error("Error: %s", exc)
        return 1
    logger.info("Illuminated initials generation complete!")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_dotenv()
    args = parse_args(argv)
    setup_logging(args.verbose)
    print(BANNER, file=sys.stderr)

    if args.command == "generate":
        return run_generate(args.config)
    if args.command == "serve":
        return 0 if serve_site(args.dist, host=args.host, port=args.port, open_browser=args.open) else 1
    return run_initials(args.letters, args.config, args.output)


if __name__ == "__main__":
    sys.exit(main())
