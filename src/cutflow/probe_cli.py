"""CLI for media ingestion — report kind and duration per file.

Usage:
    cutflow probe intro.mp4 music.mp3 logo.png
    cutflow probe intro.mp4 --output media.json
"""

import argparse
import json
from pathlib import Path

from .ingest import ingest


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Probe media files for kind and duration.",
    )
    parser.add_argument(
        "paths", nargs="+",
        help="Media files to ingest",
    )
    parser.add_argument(
        "--output", default=None,
        help="Write records as JSON to this path instead of stdout",
    )
    parsed = parser.parse_args(args)

    records = []
    for path in parsed.paths:
        record = ingest(path)
        print(f"  PROBE  {record['kind']:<5} {record['duration']:>4}s  {record['path']}", flush=True)
        records.append(record)

    if parsed.output:
        Path(parsed.output).parent.mkdir(parents=True, exist_ok=True)
        with open(parsed.output, "w") as f:
            json.dump(records, f, indent=2)
        print(f"\nDone: {len(records)} files -> {parsed.output}")
    else:
        print(json.dumps(records, indent=2))


if __name__ == "__main__":
    main()
