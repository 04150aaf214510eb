"""Command-line interface for the LAS Alias Manager."""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

import uvicorn

from .config import settings


def main(argv: Optional[list[str]] = None):
    """Main entry point for the CLI."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    parser = argparse.ArgumentParser(
        description="LAS Alias Manager - reconcile LAS curve mnemonics against an alias dictionary"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Server command
    server_parser = subparsers.add_parser("serve", help="Start the web server")
    server_parser.add_argument(
        "--host", default=settings.host, help=f"Host to bind to (default: {settings.host})"
    )
    server_parser.add_argument(
        "--port", type=int, default=settings.port, help=f"Port to bind to (default: {settings.port})"
    )
    server_parser.add_argument(
        "--reload", action="store_true", help="Enable auto-reload for development"
    )

    # Analyze command
    analyze_parser = subparsers.add_parser(
        "analyze", help="Classify the curves of every LAS file in a folder"
    )
    analyze_parser.add_argument("directory", help="Folder containing LAS files")
    analyze_parser.add_argument(
        "--dictionary", "-d", help=f"CSV dictionary (default: {settings.database_path})"
    )
    analyze_parser.add_argument(
        "--no-subfolders", action="store_true", help="Do not scan subfolders"
    )

    # Stats command
    stats_parser = subparsers.add_parser("stats", help="Show dictionary statistics")
    stats_parser.add_argument("dictionary", help="CSV dictionary file")

    # Convert command
    convert_parser = subparsers.add_parser(
        "convert", help="Convert the legacy TXT lists to a CSV dictionary"
    )
    convert_parser.add_argument(
        "files",
        nargs="*",
        metavar="FILE",
        help="IGNORED PRIMARY ALIASES OUTPUT (prompted for when fewer than four are given)",
    )

    # Export command
    export_parser = subparsers.add_parser(
        "export", help="Export a CSV dictionary to ListNamesAlias.txt"
    )
    export_parser.add_argument("dictionary", help="CSV dictionary file")
    export_parser.add_argument("output", help="ListNamesAlias.txt file to create or extend")

    args = parser.parse_args(argv)

    if args.command == "serve":
        run_server(args.host, args.port, args.reload)
    elif args.command == "analyze":
        run_analyze(args.directory, args.dictionary, not args.no_subfolders)
    elif args.command == "stats":
        run_stats(args.dictionary)
    elif args.command == "convert":
        run_convert(args.files)
    elif args.command == "export":
        run_export(args.dictionary, args.output)
    else:
        parser.print_help()
        sys.exit(1)


def run_server(host: str, port: int, reload: bool):
    """Run the web server."""
    uvicorn.run(
        "lasalias.api:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
    )


def run_analyze(directory: str, dictionary: Optional[str], recursive: bool):
    """Print the classification of every LAS file in a folder."""
    from .manager import AliasManager

    manager = AliasManager()
    try:
        manager.load_dictionary(dictionary)
        results = manager.analyze_directory(directory, recursive=recursive)
    except (FileNotFoundError, NotADirectoryError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    for result in results:
        print(result)

    unknown = manager.get_unknown_curves_grouped(results)
    print()
    print(f"Files: {len(results)}, with errors: {sum(1 for r in results if r.has_error)}")
    print(f"Unknown curve names: {len(unknown)}")
    for name, files in unknown.items():
        print(f"  {name:<12} {len(files)} file(s)")


def run_stats(dictionary: str):
    """Print dictionary statistics."""
    from .dictionary import DictionaryStorage

    path = Path(dictionary)
    if not path.is_file():
        print(f"Error: Dictionary file not found: {path}")
        sys.exit(1)

    loaded, report = DictionaryStorage(path).load()
    stats = loaded.get_statistics()
    print(f"Dictionary: {path}")
    print(f"  Base names:    {stats.base_count}")
    print(f"  Aliases:       {stats.alias_count}")
    print(f"  Ignored:       {stats.ignored_count}")
    if report.records_skipped:
        print(f"  Skipped:       {report.records_skipped}")
        for warning in report.warnings:
            print(f"    {warning}")


def _prompt(message: str) -> str:
    try:
        return input(message).strip()
    except EOFError:
        return ""


def run_convert(files: list[str]):
    """Convert the three legacy TXT lists into a CSV dictionary."""
    from .export import AliasFormatConverter

    print("=" * 46)
    print("  TXT to CSV Alias Dictionary Converter")
    print("=" * 46)
    print()

    if len(files) > 4:
        print(f"Error: expected 4 file arguments, got {len(files)}")
        print("Usage: lasalias convert IGNORED PRIMARY ALIASES OUTPUT")
        return

    if len(files) == 4:
        ignored_file, primary_file, alias_file, output_file = files
    else:
        print("Enter the paths to the input files:")
        print()
        ignored_file = _prompt("File 1 - Ignored names file (e.g., ListNameAlias_NO.txt): ")
        primary_file = _prompt("File 2 - Primary names file (base names only): ")
        alias_file = _prompt("File 3 - Alias file (primary names with field names): ")
        output_file = _prompt("Output CSV file path: ")

    for label, name in (
        ("Ignored names", ignored_file),
        ("Primary names", primary_file),
        ("Alias", alias_file),
    ):
        if not name or not Path(name).is_file():
            print(f"Error: {label} file not found: {name}")
            return

    if not output_file:
        print("Error: Output file path is required")
        return

    print()
    print("Converting...")
    try:
        result = AliasFormatConverter().convert_to_csv(
            Path(ignored_file), Path(primary_file), Path(alias_file), Path(output_file)
        )
    except (OSError, ValueError) as e:
        print(f"Error during conversion: {e}")
        return

    print()
    print(f"Success! CSV file created: {output_file}")
    print()
    print("Summary:")
    print(f"  Base names:    {result.base_count}")
    print(f"  Aliases:       {result.alias_count}")
    print(f"  Ignored:       {result.ignored_count}")
    print(f"  Total records: {result.total}")
    if result.duplicates_skipped:
        print(f"  Duplicates:    {result.duplicates_skipped} skipped")


def run_export(dictionary: str, output: str):
    """Export a whole CSV dictionary to ListNamesAlias.txt."""
    from .manager import AliasManager

    manager = AliasManager()
    try:
        manager.load_dictionary(dictionary)
    except FileNotFoundError as e:
        print(f"Error: {e}")
        sys.exit(1)

    count = manager.export_list_names(Path(output), user_defined_only=False)
    print(f"Exported {count} entries to {output}")


if __name__ == "__main__":
    main()
