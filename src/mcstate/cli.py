"""Command-line interface for mcstate."""

import argparse
import logging
import sys

import numpy as np

from mcstate.io.leaves import PickledValue


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="mcstate",
        description="Inspect Monte Carlo checkpoint files",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Show debug log output"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Inspect command
    inspect_parser = subparsers.add_parser("inspect", help="Show the tree stored in a file")
    inspect_parser.add_argument("filename", help="File written by mcstate.save")
    inspect_parser.add_argument(
        "groups", nargs="*", help="Only show the part of the tree below these groups"
    )

    # Version command
    subparsers.add_parser("version", help="Show version information")

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    if args.command == "inspect":
        return run_inspect(args)
    elif args.command == "version":
        show_version()
        return 0
    else:
        parser.print_help()
        return 1


def describe(value) -> str:
    """One-line description of a leaf value."""
    if isinstance(value, np.ndarray):
        return f"array {value.dtype} {value.shape}"
    if isinstance(value, (bytes, bytearray)):
        return f"bytes ({len(value)})"
    if isinstance(value, PickledValue):
        return f"pickle ({len(value.raw)} bytes)"
    if isinstance(value, (dict, list)):
        return f"{type(value).__name__} ({len(value)} entries)"
    text = repr(value)
    return text if len(text) <= 60 else text[:57] + "..."


def format_tree(group, indent: int = 0) -> list[str]:
    from mcstate.io.store import Group

    lines = []
    for name in group:
        child = group.raw(name)
        pad = "  " * indent
        if isinstance(child, Group):
            lines.append(f"{pad}{name}/")
            lines.extend(format_tree(child, indent + 1))
        else:
            lines.append(f"{pad}{name} = {describe(child)}")
    return lines


def run_inspect(args) -> int:
    """Print the tree of a file."""
    from mcstate.errors import MCStateError
    from mcstate.io.store import Group, open_store

    path = "/".join(args.groups)
    try:
        with open_store(args.filename, "r") as store:
            group = store.raw(path)
            if not isinstance(group, Group):
                print(f"{args.filename}:{path} = {describe(group)}")
                return 0
            print(f"{args.filename}:{group.path or '/'}")
            for line in format_tree(group, indent=1):
                print(line)
    except (OSError, ValueError, MCStateError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


def show_version():
    """Show version information."""
    from mcstate import __version__
    print(f"mcstate {__version__}")


if __name__ == "__main__":
    sys.exit(main())
