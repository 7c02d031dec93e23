"""CLI for converting an ARRL DXCC list to JSON."""
import argparse
import logging
import sys
from pathlib import Path
from .assembler import DXCCParseError
from .checker import check_consistency, check_document, load_document
from .config import Config
from .document_io import SourceDocumentError, generate_output_filename, parse_file, write_result
from .models import FILTER_ALL, FILTER_CURRENT, FILTER_DELETED

logger = logging.getLogger(__name__)

RULE = "=" * 60


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dxcc-txt2json",
        description="Convert the ARRL DXCC Current and Deleted Entities text list to JSON",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--all", dest="filter_mode", action="store_const", const=FILTER_ALL,
                      help="Output all entities (current and deleted) [default]")
    mode.add_argument("--current", dest="filter_mode", action="store_const", const=FILTER_CURRENT,
                      help="Output only current entities")
    mode.add_argument("--deleted", dest="filter_mode", action="store_const", const=FILTER_DELETED,
                      help="Output only deleted entities")
    parser.add_argument("input_file", nargs="?", help="Path to the DXCC text file (.txt)")
    parser.add_argument("output_file", nargs="?", help="Output JSON file (.json); generated when omitted")
    parser.add_argument("--check", type=str, metavar="FILE", help="Check an existing JSON result instead of parsing")
    parser.add_argument("--config", type=str, help="Path to config file")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def _validate_args(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    if args.check:
        return
    if not args.input_file:
        parser.error("input_file is required (e.g. 2022_Current_Deleted.txt)")
    if not args.input_file.endswith(".txt"):
        parser.error(f"Input file must be in .txt format, got '{args.input_file}'")
    if args.output_file and not args.output_file.endswith(".json"):
        parser.error(f"Output file must be in .json format, got '{args.output_file}'")


def run_check(path: str) -> int:
    """Check a JSON result file; 0 when structurally valid."""
    try:
        data = load_document(path)
    except (OSError, ValueError) as e:
        logging.error(e)
        return 1

    result = check_document(data)
    for e in result.errors:
        print(f"ERROR: {e}")
    for w in result.warnings:
        print(f"WARNING: {w}")
    if not result.ok:
        return 1

    problems = check_consistency(data)
    for p in problems:
        print(f"INCONSISTENT: {p}")
    print(f"{path}: {len(data['entities'])} entities, "
          f"{len(result.warnings)} warning(s), {len(problems)} inconsistency(ies)")
    return 1 if problems else 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _validate_args(parser, args)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s"
    )

    if args.check:
        return run_check(args.check)

    config = Config.load(args.config)
    errors = config.validate()
    if errors:
        for e in errors:
            logging.error(e)
        return 1

    filter_mode = args.filter_mode or config.default_filter

    print(RULE)
    print("DXCC Entity Data Parser")
    print(RULE)

    try:
        outcome = parse_file(args.input_file, filter_mode, config=config)
    except SourceDocumentError as e:
        print(f"\nDXCC data generation failed: {e}", file=sys.stderr)
        if e.suggestions:
            print("Possible files in directory:", file=sys.stderr)
            for s in e.suggestions:
                print(f"   - {s}", file=sys.stderr)
        return 1
    except DXCCParseError as e:
        print(f"\nDXCC data generation failed: {e}", file=sys.stderr)
        print("Check that the file is an ARRL DXCC Current/Deleted list in plain text.", file=sys.stderr)
        return 1

    result = outcome.result
    if args.output_file:
        output_path = Path(args.output_file)
    else:
        output_path = generate_output_filename(filter_mode, result.metadata.edition, config.output_dir)
    try:
        write_result(result, output_path)
    except OSError as e:
        print(f"\nDXCC data generation failed: {e}", file=sys.stderr)
        print(f"Check that {output_path.parent} is a writable directory.", file=sys.stderr)
        return 1

    stats = result.metadata.statistics
    print(f"\n{RULE}")
    print("DXCC data generation completed")
    print(f"  Input file:        {args.input_file}")
    print(f"  Output file:       {output_path}")
    print(f"  Filter type:       {filter_mode}")
    print(f"  Total entities:    {result.total_entities}")
    print(f"  Current entities:  {stats.current_entities}")
    print(f"  Deleted entities:  {stats.deleted_entities}")
    print(f"  Current notes:     {stats.notes_statistics.current_notes_count}")
    print(f"  Deleted notes:     {stats.notes_statistics.deleted_notes_count}")
    print(f"  File size:         {output_path.stat().st_size / 1024:.1f} KB")

    report = outcome.report
    if report.has_anomalies:
        summary = report.summary()
        print("  Anomalies:")
        print(f"    Unmatched lines:       {summary['unmatchedLines']}")
        if summary["missingNoteSections"]:
            print(f"    Missing NOTES:         {', '.join(summary['missingNoteSections'])}")
        if summary["unresolvedNotes"]:
            print(f"    Unresolved notes:      {', '.join(summary['unresolvedNotes'])}")
        if summary["duplicateSymbolNotes"]:
            print(f"    Duplicate legends:     {', '.join(summary['duplicateSymbolNotes'])}")
        if summary["duplicateEntityCodes"]:
            print(f"    Duplicate codes:       {', '.join(map(str, summary['duplicateEntityCodes']))}")
        for w in summary["warnings"]:
            print(f"    Warning: {w}")
    print(RULE)
    return 0


if __name__ == "__main__":
    sys.exit(main())
