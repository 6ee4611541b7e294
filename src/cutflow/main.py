"""Subcommand dispatcher for cutflow.

Usage:
    cutflow export  --manifest project.yaml --output-dir renders/
    cutflow probe   intro.mp4 music.mp3 logo.png
    cutflow health
"""

import argparse
import json
import sys


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="cutflow",
        description="Timeline-to-ffmpeg compiler, media probing and export.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # Register subcommands. Each delegates to its own module's main().
    subparsers.add_parser("export", help="Compile a project manifest and render it")
    subparsers.add_parser("probe", help="Ingest media files: kind and duration")
    subparsers.add_parser("health", help="Print a liveness payload")

    # Parse only the subcommand name, pass the rest to the subcommand's parser.
    parsed, remaining = parser.parse_known_args(args)

    if parsed.command is None:
        parser.print_help()
        sys.exit(1)

    if parsed.command == "export":
        from .export_cli import main as export_main
        export_main(remaining)
    elif parsed.command == "probe":
        from .probe_cli import main as probe_main
        probe_main(remaining)
    elif parsed.command == "health":
        from .runner import health
        print(json.dumps(health()))


if __name__ == "__main__":
    main()
