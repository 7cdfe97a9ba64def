#!/usr/bin/env python3
"""
pharbuild CLI

Commands:
  pharbuild build - Compile the archive described by a manifest
  pharbuild strip - Print a source file with comments and whitespace stripped

Usage:
  pharbuild build [manifest] [-o <output>] [-v]
  pharbuild strip <file> [--lexer <name>]
"""

import argparse
import logging
import sys
from pathlib import Path

from .config import Settings
from .errors import PharBuildError
from .lexer import list_lexers, select_lexer
from .manifest import DEFAULT_MANIFEST, BuildManifest
from .strip import strip_source

logger = logging.getLogger(__name__)


def cmd_build(args):
    """Build an archive from a manifest."""
    manifest = BuildManifest.from_file(Path(args.manifest))
    result = manifest.build(output=args.output, settings=Settings.from_env())

    print(f"Archive: {result.output_path}")
    print(f"Entries: {len(result.entries)}")
    print(f"Size: {result.size_bytes} bytes")
    print(f"Signature ({result.signature_type}): {result.signature}")


def cmd_strip(args):
    """Strip a single file to stdout."""
    lexer_name = args.lexer or Settings.from_env().lexer
    lexer = select_lexer(lexer_name)

    content = Path(args.file).read_bytes()
    sys.stdout.buffer.write(strip_source(content, lexer))
    sys.stdout.flush()


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="pharbuild",
        description="Bundle a PHP project into a single executable phar archive",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # -v after the subcommand; SUPPRESS keeps the top-level value
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--verbose", "-v", action="store_true", default=argparse.SUPPRESS,
                        help="Verbose logging")

    # build command
    build_parser = subparsers.add_parser("build", parents=[common], help="Compile an archive from a manifest")
    build_parser.add_argument("manifest", nargs="?", default=DEFAULT_MANIFEST,
                              help=f"Build manifest YAML file (default: {DEFAULT_MANIFEST})")
    build_parser.add_argument("-o", "--output", help="Output file (overrides the manifest)")

    # strip command
    strip_parser = subparsers.add_parser("strip", parents=[common], help="Strip comments and whitespace from a file")
    strip_parser.add_argument("file", help="Source file")
    strip_parser.add_argument("--lexer", choices=sorted(list_lexers()),
                              help="Lexer to use (default: PHARBUILD_LEXER or php)")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        if args.command == "build":
            cmd_build(args)
        elif args.command == "strip":
            cmd_strip(args)
        else:
            parser.print_help()
            sys.exit(1)
    except (PharBuildError, OSError) as e:
        logger.error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
