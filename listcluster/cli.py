# listcluster/cli.py
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from loguru import logger

from .config import DEFAULT_MIN_SIMILARITY, DEFAULT_P, MAX_CONCURRENCY
from .export import edges_to_frame, filter_edges, write_edges
from .graph import compute_graph, pair_count
from .loaders import load_ranked_lists


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="listcluster",
        description="Build a rank-biased overlap similarity graph over ranked lists.",
    )
    ap.add_argument("--input", type=Path, required=True,
                    help="Ranked lists: long-format CSV (label,member[,rank]), JSON or JSONL")
    ap.add_argument("--p", type=float, default=DEFAULT_P,
                    help="RBO persistence in [0, 1] (default: %(default)s)")
    ap.add_argument("--concurrency", type=int, default=None,
                    help=f"Worker threads, 1..{MAX_CONCURRENCY} (default: CPU count)")
    ap.add_argument("--min-similarity", type=float, default=DEFAULT_MIN_SIMILARITY,
                    help="Drop edges below this similarity")
    ap.add_argument("--output", type=Path, default=None,
                    help="Edge CSV path; writes to stdout when omitted")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    ap = _build_parser()
    args = ap.parse_args(argv)

    if not 0.0 <= args.p <= 1.0:
        ap.error(f"--p must be between 0 and 1, got {args.p}")
    if args.concurrency is not None and not 1 <= args.concurrency <= MAX_CONCURRENCY:
        ap.error(f"--concurrency must be between 1 and {MAX_CONCURRENCY}")

    lists = load_ranked_lists(args.input)
    edges, error = compute_graph(args.p, lists, concurrency=args.concurrency)
    kept = filter_edges(edges, args.min_similarity)

    if args.output is not None:
        write_edges(kept, args.output)
        logger.info("Wrote {} edges to {}", len(kept), args.output)
    else:
        sys.stdout.write(edges_to_frame(kept).to_csv(index=False))

    if error is not None:
        logger.error("First pair failure: {}", error)
        if not edges and pair_count(len(lists)) > 0:
            return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
