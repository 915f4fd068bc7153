"""deltarecord CLI: compute and apply record deltas stored as JSON files."""

import argparse
import json
import logging
import sys
from importlib.metadata import version as get_version, PackageNotFoundError
from pathlib import Path
from typing import Optional


def _emit(content: str, out: Optional[Path], label: str, quiet: bool) -> None:
    """Write content to ``out`` (reporting the path) or to stdout."""
    if out is None:
        print(content)
        return
    out = Path(out).resolve()
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(content + "\n", encoding="utf-8")
    if not quiet:
        print(f"[OK] {label}")
        print(f"  Output: {out}")


def main():
    """Main CLI entry point for deltarecord commands."""
    # Get version for --version argument (handle PackageNotFoundError)
    try:
        deltarecord_version = get_version("deltarecord")
    except PackageNotFoundError:
        deltarecord_version = "dev"

    parser = argparse.ArgumentParser(
        prog="deltarecord",
        description="deltarecord: compute and apply structural deltas between records"
    )
    parser.add_argument("--version", action="version", version=f"deltarecord {deltarecord_version}")
    # Common arguments
    parent_parser = argparse.ArgumentParser(add_help=False)
    parent_parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress all non-error output."
    )
    parent_parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging level for diagnostics on stderr (default: WARNING)"
    )
    parent_parser.add_argument(
        "--type",
        dest="record_type",
        required=True,
        help="Record class as 'package.module:ClassName'"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # compute command
    compute_parser = subparsers.add_parser(
        "compute",
        help="Compute the delta between two record JSON files",
        parents=[parent_parser]
    )
    compute_parser.add_argument(
        "--from",
        dest="old_path",
        type=Path,
        required=True,
        help="Path to the old record"
    )
    compute_parser.add_argument(
        "--to",
        dest="new_path",
        type=Path,
        required=True,
        help="Path to the new record"
    )
    compute_parser.add_argument(
        "--out",
        type=Path,
        default=None,
        help="Write the delta here instead of stdout"
    )

    # apply command
    apply_parser = subparsers.add_parser(
        "apply",
        help="Apply a delta JSON file to a base record",
        parents=[parent_parser]
    )
    apply_parser.add_argument(
        "--base",
        dest="base_path",
        type=Path,
        required=True,
        help="Path to the base record"
    )
    apply_parser.add_argument(
        "--delta",
        dest="delta_path",
        type=Path,
        required=True,
        help="Path to the delta"
    )
    apply_parser.add_argument(
        "--out",
        type=Path,
        default=None,
        help="Write the updated record here instead of stdout"
    )

    # summary command
    summary_parser = subparsers.add_parser(
        "summary",
        help="Summarize which fields a delta changes",
        parents=[parent_parser]
    )
    summary_parser.add_argument(
        "--delta",
        dest="delta_path",
        type=Path,
        required=True,
        help="Path to the delta"
    )

    # schema command
    schema_parser = subparsers.add_parser(
        "schema",
        help="Print the JSON schema of a record type's delta",
        parents=[parent_parser]
    )
    schema_parser.add_argument(
        "--out",
        type=Path,
        default=None,
        help="Write the schema here instead of stdout"
    )

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        from . import api
        from ._internal.canonical_json import canonical_dumps
        from ._internal.loading import load_record_type, read_json, read_record

        record_cls = load_record_type(args.record_type)

        if args.command == "compute":
            old = read_record(record_cls, args.old_path.resolve())
            new = read_record(record_cls, args.new_path.resolve())
            delta = api.compute_delta(old, new)
            _emit(api.dumps_delta(delta), args.out, "Delta computed", args.quiet)
            if args.out is not None and not args.quiet:
                fields = delta.present_fields()
                print(f"  Changed: {len(fields)} field(s){': ' + ', '.join(fields) if fields else ''}")
        elif args.command == "apply":
            base = read_record(record_cls, args.base_path.resolve())
            delta = api.load_delta(record_cls, read_json(args.delta_path.resolve()))
            updated = api.apply_delta(base, delta)
            _emit(canonical_dumps(updated.model_dump(mode="json")), args.out, "Delta applied", args.quiet)
        elif args.command == "summary":
            delta = api.load_delta(record_cls, read_json(args.delta_path.resolve()))
            summary = api.summarize(delta)
            if not args.quiet:
                print(f"Record: {summary.record_type}")
                if summary.empty:
                    print("  Status: NO CHANGES")
                else:
                    print(f"  Status: CHANGED ({len(summary.changed_fields)} field(s))")
                    for path in summary.changed_paths:
                        print(f"  - {path}")
        elif args.command == "schema":
            schema = api.delta_json_schema(record_cls)
            _emit(json.dumps(schema, indent=2, ensure_ascii=False), args.out, "Schema written", args.quiet)
        sys.exit(0)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
