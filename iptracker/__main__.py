from __future__ import annotations

import argparse
from pathlib import Path
from typing import Iterator, Optional, Sequence

from .config import settings
from .tracker import TopNTracker, format_entries

DEMO_HITS = (
    "192.168.0.1",
    "10.0.0.1",
    "8.8.8.8",
    "8.8.8.8",
    "8.8.8.8",
    "192.168.0.1",
)


def read_addresses(path: Path) -> Iterator[str]:
    with path.open("r", encoding="utf-8") as handle:
        for line in handle:
            address = line.strip()
            if address:
                yield address


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Print the most frequent IP addresses from a stream of hits")
    parser.add_argument("addresses", nargs="*", help="Addresses to record, in order (defaults to a demo sequence)")
    parser.add_argument("--file", type=Path, help="Read one address per line from this file")
    parser.add_argument("--limit", type=int, default=settings.top_n, help="Size of the ranked window")
    parser.add_argument("--serve", action="store_true", help="Run the HTTP tracker service instead")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_parser().parse_args(argv)

    if args.serve:
        import uvicorn

        uvicorn.run("iptracker.main:app", host="0.0.0.0", port=settings.port)
        return

    tracker = TopNTracker(limit=args.limit)

    if args.file is not None:
        if not args.file.exists():
            raise FileNotFoundError(f"Address file not found: {args.file}")
        for address in read_addresses(args.file):
            tracker.record_hit(address)
    for address in args.addresses or ([] if args.file is not None else DEMO_HITS):
        tracker.record_hit(address)

    for line in format_entries(tracker.top_n()):
        print(line)


if __name__ == "__main__":
    main()
