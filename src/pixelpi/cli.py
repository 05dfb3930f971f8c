#!/usr/bin/env python3
"""CLI interface for pixelpi."""

import argparse
import logging
import sys
from pathlib import Path

from .config import BOUNDARIES, OUT_OF_RANGE_POLICIES, Config
from .corpus import DirectoryImageSource, ImageSource, RandomImageSource
from .pipeline import PiPhotoRanker


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the pixelpi command."""
    parser = argparse.ArgumentParser(
        description="Rank photos by how closely their RGB values approximate pi",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    parser.add_argument("images", type=str, nargs="?", default=None,
                       help="Path to folder containing images")
    parser.add_argument("-o", "--output", type=str, default=None,
                       help="Output directory for results.json (omit to only log results)")

    parser.add_argument("--top-k", type=int, default=20,
                       help="Number of best-approximating photos to report")
    parser.add_argument("--boundary", type=str, default="inclusive", choices=BOUNDARIES,
                       help="Unit sphere membership test: inclusive (<= 1) or strict (< 1)")
    parser.add_argument("--out-of-range", type=str, default="reject",
                       choices=OUT_OF_RANGE_POLICIES,
                       help="What to do with float components outside [0, 1]")
    parser.add_argument("--num-workers", type=int, default=1,
                       help="Number of parallel workers (1 = sequential)")
    parser.add_argument("--limit", type=int, default=None,
                       help="Use only the first N images of the folder")
    parser.add_argument("--random", type=int, default=None, metavar="N",
                       help="Use N uniform random 550x800 images instead of a folder")
    parser.add_argument("--seed", type=int, default=None,
                       help="Random seed for --random")
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for pixelpi.

    Parses command-line arguments and runs the estimation pipeline.
    """
    # Configure logging
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S"
    )

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.random is None and args.images is None:
        parser.error("either an image folder or --random N is required")
    if args.random is not None and args.images is not None:
        parser.error("use either an image folder or --random N, not both")

    # Validate inputs
    if args.random is None and not Path(args.images).is_dir():
        print(f"Error: Image folder not found: {args.images}")
        sys.exit(1)

    config = Config(
        output_dir=Path(args.output) if args.output else None,
        top_k=args.top_k,
        boundary=args.boundary,
        out_of_range=args.out_of_range,
        num_workers=args.num_workers,
    )

    try:
        ranker = PiPhotoRanker(config)
        source: ImageSource
        if args.random is not None:
            source = RandomImageSource(count=args.random, seed=args.seed)
        else:
            source = DirectoryImageSource(args.images, limit=args.limit)
        result = ranker.run(source)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    print("\nBest approximations:")
    for record in result.top:
        print(record.identifier)


if __name__ == "__main__":
    main()
