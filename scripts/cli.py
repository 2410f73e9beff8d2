"""Minimal CLI entry point for manual testing of the MMS extractor."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from mms_extractor.config.settings import MmsExtractorSettings
from mms_extractor.core.models import MediaItem
from mms_extractor.pipeline.media import MmsMedia


def setup_logging(level: str) -> None:
    """Configure logging with timestamp and module info."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def on_media(mime_type: str, items: list[MediaItem]) -> None:
    """Print one line per staged file."""
    for item in items:
        print(f"  {mime_type:30s} {item.size:>10d}  {item.path}")


def _add_settings_args(subparser: argparse.ArgumentParser) -> None:
    """Add --tmp-dir and --conf-dir overrides to a subparser."""
    subparser.add_argument("message", type=Path, help="Path to a raw MMS mail file")
    subparser.add_argument(
        "--tmp-dir",
        type=Path,
        default=None,
        dest="tmp_dir",
        help="Staging directory (default: from settings)",
    )
    subparser.add_argument(
        "--conf-dir",
        type=Path,
        default=None,
        dest="conf_dir",
        help="Directory holding carrier rule files (default: from settings)",
    )


def _build_settings(args: argparse.Namespace) -> MmsExtractorSettings:
    """Settings from the environment, with CLI overrides applied."""
    overrides = {
        key: getattr(args, key)
        for key in ("tmp_dir", "conf_dir")
        if getattr(args, key, None) is not None
    }
    return MmsExtractorSettings(**overrides)


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="MMS Extractor - Pull user media out of carrier MMS messages"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    extract_parser = subparsers.add_parser("extract", help="Extract media from a message")
    _add_settings_args(extract_parser)
    extract_parser.add_argument(
        "--keep",
        action="store_true",
        help="Leave extracted files in the staging directory",
    )

    carrier_parser = subparsers.add_parser(
        "carrier", help="Show the carrier and rule file a message resolves to"
    )
    _add_settings_args(carrier_parser)

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        sys.exit(1)

    if not args.message.is_file():
        print(f"Error: {args.message} is not a file", file=sys.stderr)
        sys.exit(1)

    settings = _build_settings(args)
    setup_logging(settings.log_level)

    try:
        if args.command == "carrier":
            mms = MmsMedia.from_file(args.message, settings=settings, lazy=True)
            print(f"carrier: {mms.carrier}")
            print(f"config:  {mms.config_id}")

        elif args.command == "extract":
            mms = MmsMedia.from_file(args.message, settings=settings, lazy=True)
            print(f"carrier: {mms.carrier}")
            print(f"number:  {mms.number}")
            print(f"subject: {mms.subject}")
            print("media:")
            mms.process(on_media)
            default = mms.default_media
            print(f"default: {default.path if default else '(none)'}")
            print(f"body:    {mms.body}")
            if not args.keep:
                mms.purge()

    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        print(f"\nError: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
