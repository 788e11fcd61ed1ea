"""Command-line interface for the manifest processor.

This module provides the CLI entry point that reads a manifest file,
processes it against the URLs it was loaded from and prints the result.
"""

import argparse
import logging
import sys
from pathlib import Path

from .core.validator import validate_manifest_with_error_details
from .errors import ProcessError, WebAppManifestError
from .manifest import WebAppManifest, load_manifest
from .pipeline import ManifestProcessor, ProcessOptions, ProcessResult
from .urls import is_absolute


def read_manifest(path: str) -> WebAppManifest:
    """Parse a manifest from a file path, or from stdin when ``path`` is ``-``.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ManifestParseError: If the input is not a JSON object
    """
    if path == "-":
        return WebAppManifest.from_json(sys.stdin.read())
    return load_manifest(Path(path))


def process_manifest(
    path: str,
    manifest_url: str,
    document_url: str | None = None,
    options: ProcessOptions | None = None,
) -> ProcessResult:
    """Read and process a manifest.

    Args:
        path: Manifest file, or ``-`` for stdin
        manifest_url: Absolute URL the manifest is served from
        document_url: Absolute URL of the linking document (defaults to
            ``manifest_url``)
        options: Processing options

    Returns:
        ProcessResult with the processed manifest and its diagnostics

    Raises:
        ValueError: If input validation fails
        WebAppManifestError: If the manifest cannot be parsed or processed
    """
    manifest = read_manifest(path)
    print(f"Processing manifest: {path}", file=sys.stderr)
    processor = ManifestProcessor(options)
    return processor.process(manifest, document_url or manifest_url, manifest_url)


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the webmanifest command."""
    parser = argparse.ArgumentParser(
        prog="webmanifest",
        description="Process a web app manifest and print it with absolute URLs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Basic usage
  webmanifest site.webmanifest --manifest-url https://example.com/site.webmanifest

  # Manifest linked from a page in a subdirectory
  webmanifest site.webmanifest --manifest-url https://example.com/site.webmanifest \\
      --document-url https://example.com/app/index.html

  # Read from stdin and fail on a cross-origin start URL
  cat site.webmanifest | webmanifest - --manifest-url https://example.com/m.json \\
      --strict-origin
        """,
    )

    parser.add_argument("path", help="Manifest file to process, or - for stdin")

    parser.add_argument(
        "--manifest-url", required=True, help="Absolute URL the manifest is served from"
    )

    parser.add_argument(
        "--document-url",
        help="Absolute URL of the document linking the manifest (defaults to --manifest-url)",
    )

    parser.add_argument(
        "--strict-origin",
        action="store_true",
        help="Fail instead of replacing a start URL from another origin",
    )

    parser.add_argument(
        "--strict-scope",
        action="store_true",
        help="Fail instead of resetting a scope that does not contain the start URL",
    )

    parser.add_argument(
        "--no-validate",
        action="store_true",
        help="Skip JSON Schema validation of the processed manifest",
    )

    parser.add_argument("--indent", type=int, default=2, help="JSON indentation (default: 2)")

    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="Increase log verbosity (-v, -vv)"
    )

    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    for option, url in (("--manifest-url", args.manifest_url), ("--document-url", args.document_url)):
        if url is not None and not is_absolute(url):
            parser.error(f"{option} must be an absolute URL: {url}")

    if args.path != "-":
        path = Path(args.path)
        if not path.exists():
            print(f"Error: Path does not exist: {path}", file=sys.stderr)
            sys.exit(1)

        if not path.is_file():
            print(f"Error: Path is not a file: {path}", file=sys.stderr)
            sys.exit(1)

    options = ProcessOptions(strict_origin=args.strict_origin, strict_scope=args.strict_scope)

    try:
        result = process_manifest(args.path, args.manifest_url, args.document_url, options)
    except ProcessError as e:
        print(f"Error: Failed to process manifest: {e}", file=sys.stderr)
        for diagnostic in e.diagnostics:
            print(f"  {diagnostic}", file=sys.stderr)
        sys.exit(1)
    except (WebAppManifestError, OSError) as e:
        print(f"Error: Failed to process manifest: {e}", file=sys.stderr)
        sys.exit(1)

    for diagnostic in result.diagnostics:
        print(f"Warning: {diagnostic}", file=sys.stderr)

    if not args.no_validate:
        print("Validating manifest against schema...", file=sys.stderr)
        is_valid, error_msg = validate_manifest_with_error_details(result.manifest)

        if not is_valid:
            print("Error: Manifest validation failed:", file=sys.stderr)
            print(error_msg, file=sys.stderr)
            sys.exit(1)

        print("Validation successful!", file=sys.stderr)

    # Output JSON to stdout
    print(result.manifest.to_json(indent=args.indent))


if __name__ == "__main__":
    main()
