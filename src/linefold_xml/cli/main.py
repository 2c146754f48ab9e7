"""Main CLI entry point for the linefold-xml command-line tool.

Provides checking, re-formatting and inspection of line-folded XML files,
one file or whole directories at a time.
"""

import argparse
import json
import logging
import sys
import time
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from linefold_xml import __version__
from linefold_xml.api.document import Document
from linefold_xml.shared.config import ConfigError, LinefoldConfig
from linefold_xml.shared.errors import LinefoldXMLError, MalformedInputError
from linefold_xml.shared.logging import get_logger
from linefold_xml.tree.node import Node

MS_PER_SECOND = 1000


class CLIConfig:
    """Configuration management for CLI operations."""

    def __init__(self) -> None:
        self.document_config = LinefoldConfig.default()
        self.recursive = False

    @classmethod
    def from_file(cls, config_path: Path) -> "CLIConfig":
        """Load CLI configuration from a JSON file.

        The file holds a serialized ``LinefoldConfig`` (see
        ``LinefoldConfig.to_json``). An unreadable or invalid file is
        reported on stderr and the defaults are kept.
        """
        config = cls()
        try:
            config.document_config = LinefoldConfig.from_json(
                config_path.read_text(encoding="utf-8")
            )
        except (OSError, ConfigError) as e:
            print(f"Warning: Could not load config file: {e}", file=sys.stderr)
        return config


class DocumentProcessor:
    """Core document processing logic for CLI operations."""

    def __init__(self, config: CLIConfig) -> None:
        self.config = config
        self.logger = get_logger(
            __name__,
            config.document_config.global_.correlation_id,
            "cli_processor",
        )

    def process_single_file(self, file_path: Path) -> Dict[str, Any]:
        """Load a single file and return a result record."""
        start_time = time.time()
        try:
            document = Document.load(file_path, self.config.document_config)
        except (LinefoldXMLError, OSError) as e:
            self.logger.debug("Failed to process file", extra={"file": str(file_path)})
            result: Dict[str, Any] = {
                "file": str(file_path),
                "success": False,
                "error": str(e),
                "error_type": type(e).__name__,
            }
            if isinstance(e, MalformedInputError) and e.position is not None:
                result["line"] = e.position.line
                result["column"] = e.position.column
            return result

        return {
            "file": str(file_path),
            "success": True,
            "version": document.version,
            "encoding": document.encoding,
            "element_count": document.element_count,
            "processing_time_ms": (time.time() - start_time) * MS_PER_SECOND,
        }

    def find_xml_files(self, path: Path, recursive: bool = False) -> Iterator[Path]:
        """Expand ``path`` into the files to process.

        Files are yielded as given (loading rejects a wrong suffix);
        directories expand to their XML files in sorted order.
        """
        if path.is_dir():
            extension = self.config.document_config.document.file_extension
            pattern = f"**/*{extension}" if recursive else f"*{extension}"
            for xml_file in sorted(path.glob(pattern)):
                if xml_file.is_file():
                    yield xml_file
        else:
            yield path

    def collect_files(self, paths: List[Path]) -> List[Path]:
        all_files: List[Path] = []
        for path in paths:
            all_files.extend(self.find_xml_files(path, self.config.recursive))
        return all_files

    def batch_process(self, paths: List[Path]) -> List[Dict[str, Any]]:
        """Check every file found under ``paths``."""
        return [self.process_single_file(f) for f in self.collect_files(paths)]


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="linefold-xml",
        description="Check, format and inspect line-folded XML documents"
    )

    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Quiet output"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        help="Configuration file path (JSON)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Check command
    check_parser = subparsers.add_parser("check", help="Check that XML files load")
    check_parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="XML files or directories to check"
    )
    check_parser.add_argument(
        "--recursive", "-r",
        action="store_true",
        help="Recursively process directories"
    )
    check_parser.add_argument(
        "--format", "-f",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)"
    )

    # Format command
    format_parser = subparsers.add_parser("format", help="Re-serialize XML files")
    format_parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="XML files or directories to format"
    )
    format_parser.add_argument(
        "--recursive", "-r",
        action="store_true",
        help="Recursively process directories"
    )
    destination = format_parser.add_mutually_exclusive_group()
    destination.add_argument(
        "--output", "-o",
        type=Path,
        help="Output file (single input only; default: stdout)"
    )
    destination.add_argument(
        "--in-place", "-i",
        action="store_true",
        help="Rewrite each file in place"
    )
    format_parser.add_argument(
        "--indent",
        type=int,
        help="Spaces per nesting level"
    )

    # Show command
    show_parser = subparsers.add_parser("show", help="Display a document tree")
    show_parser.add_argument(
        "path",
        type=Path,
        help="XML file to display"
    )
    show_parser.add_argument(
        "--format", "-f",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)"
    )

    return parser


def format_results(results: List[Dict[str, Any]], format_type: str) -> str:
    """Format check results for output."""
    if format_type == "json":
        return json.dumps(results, indent=2)

    if not results:
        return "No files to check."

    lines = []
    successful = sum(1 for r in results if r.get("success", False))
    lines.append(f"Checked {len(results)} files, {successful} valid")
    lines.append("-" * 60)

    for result in results:
        status = "✓" if result.get("success", False) else "✗"
        lines.append(f"{status} {result['file']}")
        if result.get("success", False):
            lines.append(
                f"   Version: {result['version']}, "
                f"Elements: {result['element_count']}, "
                f"Time: {result['processing_time_ms']:.1f}ms"
            )
        else:
            lines.append(f"   Error: {result['error']}")

    return "\n".join(lines)


def format_outline(node: Node, depth: int = 0) -> List[str]:
    """Render a node tree as an indented outline, one node per line."""
    attributes = " ".join(f'{k}="{v}"' for k, v in node.attributes.items())
    label = f"{node.tag} [{attributes}]" if attributes else node.tag
    if not node.has_children():
        text = node.get_text()
        return ["  " * depth + (f"{label}: {text!r}" if text else label)]

    lines = ["  " * depth + label]
    for child in node.iter_children():
        lines.extend(format_outline(child, depth + 1))
    return lines


def _load_config(args: argparse.Namespace) -> CLIConfig:
    config = CLIConfig.from_file(args.config) if args.config else CLIConfig()
    config.recursive = getattr(args, "recursive", False)
    return config


def cmd_check(args: argparse.Namespace) -> int:
    """Handle check command."""
    config = _load_config(args)
    processor = DocumentProcessor(config)

    results = processor.batch_process(args.paths)
    print(format_results(results, args.format))

    if not results:
        return 1
    successful = sum(1 for r in results if r.get("success", False))
    return 0 if successful == len(results) else 1


def cmd_format(args: argparse.Namespace) -> int:
    """Handle format command."""
    config = _load_config(args)
    if args.indent is not None:
        try:
            config.document_config = config.document_config.override(
                serialization__indent_width=args.indent
            )
        except ConfigError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 2

    processor = DocumentProcessor(config)
    files = processor.collect_files(args.paths)
    if args.output and len(files) != 1:
        print("Error: --output requires exactly one input file", file=sys.stderr)
        return 2

    failures = 0
    for file_path in files:
        try:
            document = Document.load(file_path, config.document_config)
            if args.in_place:
                document.save()
                print(f"Formatted: {file_path}", file=sys.stderr)
            elif args.output:
                # Written with the document's own encoding, like a save
                document.save(args.output)
                print(f"Formatted: {file_path} -> {args.output}", file=sys.stderr)
            else:
                sys.stdout.write(document.to_string())
        except (LinefoldXMLError, OSError) as e:
            print(f"Failed to format {file_path}: {e}", file=sys.stderr)
            failures += 1

    return 0 if files and failures == 0 else 1


def cmd_show(args: argparse.Namespace) -> int:
    """Handle show command."""
    config = _load_config(args)
    try:
        document = Document.load(args.path, config.document_config)
    except (LinefoldXMLError, OSError) as e:
        print(f"Failed to load {args.path}: {e}", file=sys.stderr)
        return 1

    if args.format == "json":
        print(json.dumps(document.to_dict(), indent=2))
    else:
        encoding = document.encoding or "(none)"
        print(f"XML {document.version}, encoding {encoding}")
        print("\n".join(format_outline(document.root)))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    # Set up logging verbosity
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)
    elif args.quiet:
        logging.basicConfig(level=logging.ERROR)

    # Route to appropriate command handler
    try:
        if args.command == "check":
            return cmd_check(args)
        elif args.command == "format":
            return cmd_format(args)
        elif args.command == "show":
            return cmd_show(args)
        else:
            print(f"Unknown command: {args.command}", file=sys.stderr)
            return 1

    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT


if __name__ == "__main__":
    sys.exit(main())
