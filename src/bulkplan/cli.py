"""bulkplan CLI: validate and order import batches."""

import argparse
import json
import sys
from importlib.metadata import version as get_version, PackageNotFoundError
from pathlib import Path


def main():
    """Main CLI entry point for bulkplan commands."""
    try:
        bulkplan_version = get_version("bulkplan")
    except PackageNotFoundError:
        bulkplan_version = "dev"

    parser = argparse.ArgumentParser(
        prog="bulkplan",
        description="bulkplan: validate legacy references and order import batches for creation"
    )
    parser.add_argument("--version", action="version", version=f"bulkplan {bulkplan_version}")
    # Common arguments
    parent_parser = argparse.ArgumentParser(add_help=False)
    parent_parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress all non-error output."
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    validate_parser = subparsers.add_parser(
        "validate",
        help="Check a batch for duplicate legacy IDs, dangling references and cycles",
        parents=[parent_parser]
    )
    validate_parser.add_argument(
        "items",
        type=Path,
        help="Path to a JSON file holding a list of items (or {\"items\": [...]})"
    )
    validate_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the validation result as JSON"
    )

    order_parser = subparsers.add_parser(
        "order",
        help="Print the batch in creation order",
        parents=[parent_parser]
    )
    order_parser.add_argument(
        "items",
        type=Path,
        help="Path to a JSON file holding a list of items (or {\"items\": [...]})"
    )
    order_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the ordered items as JSON instead of one name per line"
    )

    prepare_parser = subparsers.add_parser(
        "prepare",
        help="Turn raw rows (column|resolver headers) into items JSON",
        parents=[parent_parser]
    )
    prepare_parser.add_argument(
        "rows",
        type=Path,
        help="Path to a JSON file holding a list of row objects (or {\"rows\": [...]})"
    )
    prepare_parser.add_argument(
        "--source-name",
        default=None,
        help="Source name recorded on each item (defaults to the file name)"
    )

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    # Lazy imports: only load settings, logging and the kernel once a command runs
    from .config import load_settings
    from .logging import setup_logging

    settings = load_settings()
    setup_logging(settings)

    if args.command == "prepare":
        from .api import prepare

        try:
            items = prepare(args.rows, source_name=args.source_name, settings=settings)
        except (OSError, ValueError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        if not args.quiet:
            print(json.dumps({"items": [item.model_dump(mode="json") for item in items]}, indent=2))
    elif args.command == "validate":
        from .api import validate

        result = validate(args.items)
        if args.json:
            print(json.dumps(result.model_dump(exclude_none=True), indent=2))
        elif not args.quiet:
            status = "OK" if result.ok else "FAILED"
            print(f"[{status}] Validation complete")
            print(f"  Errors: {len(result.errors)}")
            print(f"  Warnings: {len(result.warnings)}")
            for issue in result.errors + result.warnings:
                print(f"  {issue.code}: {issue.message}")
        if not result.ok:
            sys.exit(1)
    elif args.command == "order":
        from .api import plan
        from .kernel.errors import HierarchyError

        try:
            import_plan = plan(args.items)
        except HierarchyError as e:
            print(f"Error [{e.code.value}]: {e}", file=sys.stderr)
            sys.exit(1)
        except (OSError, ValueError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)

        if args.json:
            print(json.dumps(
                {
                    "counts": import_plan.counts,
                    "items": [item.model_dump(mode="json") for item in import_plan.items],
                },
                indent=2,
            ))
        elif not args.quiet:
            for name in import_plan.names:
                print(name)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
