"""Main module for the image optimizer CLI."""

import os
import sys
import argparse
from typing import Optional

from .core import (
    OptimizerFactory,
    ProxyConfig,
    SignedUrlGenerator,
    get_logger,
    load_config_from_env,
    load_config_from_file,
    with_error_handling,
)
from .core.logging_config import redirect_to_stderr
from .core.models import DEFAULT_WIDTHS

VERSION = "1.0.0"


def _load_config(options_file: Optional[str], site_url: str = "") -> ProxyConfig:
    if options_file:
        return load_config_from_file(options_file, site_url=site_url)
    config = load_config_from_env()
    if site_url:
        config = config.model_copy(update={"site_url": site_url})
    return config


@with_error_handling
def run_rewrite(args: argparse.Namespace) -> int:
    """Rewrite one HTML document and write the result."""
    config = _load_config(args.options_file, args.site_url)
    processor = OptimizerFactory.create_processor(
        config, inject_hints=not args.no_head_hints
    )

    if args.input == "-":
        document = sys.stdin.read()
    else:
        with open(args.input, encoding="utf-8") as handle:
            document = handle.read()

    result = processor.process(document)

    if args.output == "-":
        sys.stdout.write(result.html)
    else:
        with open(args.output, "w", encoding="utf-8") as handle:
            handle.write(result.html)

    logger = get_logger("imgproxy-optimizer")
    logger.info(
        f"Rewrote {result.rewritten_count} image(s), skipped {result.skipped_count}, "
        f"{len(result.preloads)} preload hint(s)"
    )
    return 0 if result.success else 1


@with_error_handling
def run_sign(args: argparse.Namespace) -> int:
    """Print the signed proxy URL for a single source URL."""
    generator = SignedUrlGenerator(_load_config(args.options_file))
    if not generator.is_configured():
        get_logger("imgproxy-optimizer").warning(
            "Proxy URL, key or salt missing; printing the source URL unchanged"
        )
    print(generator.generate_url(args.url, args.width, args.height, args.resize_type))
    return 0


@with_error_handling
def run_srcset(args: argparse.Namespace) -> int:
    """Print the srcset for a single source URL."""
    generator = SignedUrlGenerator(_load_config(args.options_file))
    print(generator.generate_srcset(args.url, args.widths, args.original_width))
    return 0


def main() -> None:
    """
    Entry point for the command-line interface of the image optimizer.

    Commands: "rewrite" runs the full document pipeline over a file or
    stdin, "sign" and "srcset" show generated URLs, "version" prints the
    version. Configuration comes from an options file (JSON in option-store
    shape) or from IMGPROXY_OPTIMIZER_* environment variables.
    """
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="imgproxy-optimizer",
        description="Imgproxy Image Optimizer - signed proxy URLs, srcset and preload hints for <img> tags",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Rewrite a page using settings from the environment
  imgproxy-optimizer rewrite --input page.html --site-url https://www.example.com

  # Sign a single image URL
  imgproxy-optimizer sign /uploads/photo.jpg --width 640

  # Show version
  imgproxy-optimizer version
        """,
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers: argparse._SubParsersAction = parser.add_subparsers(
        dest="command", help="Available commands"
    )

    rewrite_parser = subparsers.add_parser("rewrite", help="Rewrite <img> tags in an HTML document")
    rewrite_parser.add_argument("--input", default="-", help="HTML file to read (default: stdin)")
    rewrite_parser.add_argument("--output", default="-", help="File to write (default: stdout)")
    rewrite_parser.add_argument("--options-file", default=None, help="JSON options file")
    rewrite_parser.add_argument("--site-url", default="", help="URL of the current site")
    rewrite_parser.add_argument(
        "--no-head-hints", action="store_true", help="Do not inject dns-prefetch/preload links"
    )

    sign_parser = subparsers.add_parser("sign", help="Print the signed proxy URL for an image")
    sign_parser.add_argument("url", help="Source image URL")
    sign_parser.add_argument("--width", type=int, default=0, help="Target width (0 = auto)")
    sign_parser.add_argument("--height", type=int, default=0, help="Target height (0 = auto)")
    sign_parser.add_argument("--resize-type", default="fit", help="Resize mode (default: fit)")
    sign_parser.add_argument("--options-file", default=None, help="JSON options file")

    srcset_parser = subparsers.add_parser("srcset", help="Print the srcset for an image")
    srcset_parser.add_argument("url", help="Source image URL")
    srcset_parser.add_argument(
        "--widths",
        default=",".join(str(w) for w in DEFAULT_WIDTHS),
        help="Comma-separated candidate widths",
    )
    srcset_parser.add_argument(
        "--original-width", type=int, default=None, help="Intrinsic width; larger candidates are dropped"
    )
    srcset_parser.add_argument("--options-file", default=None, help="JSON options file")

    subparsers.add_parser("version", help="Show version information")

    args: argparse.Namespace = parser.parse_args()

    if args.debug:
        # setup_logger re-reads LOG_LEVEL on every call
        os.environ["LOG_LEVEL"] = "DEBUG"
    redirect_to_stderr("imgproxy-optimizer")

    commands = {
        "rewrite": run_rewrite,
        "sign": run_sign,
        "srcset": run_srcset,
    }

    if args.command in commands:
        try:
            exit_code = commands[args.command](args)
        except Exception as e:
            get_logger("imgproxy-optimizer").error(f"Command failed: {e}")
            sys.exit(1)
        sys.exit(exit_code)

    elif args.command == "version":
        print("Imgproxy Image Optimizer")
        print(f"Version {VERSION}")
        sys.exit(0)

    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
