#!/usr/bin/env python3
"""Configuration dataclass for the pixelpi pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

# Type aliases
Boundary = Literal["inclusive", "strict"]
OutOfRangePolicy = Literal["reject", "clamp"]

BOUNDARIES: tuple[str, ...] = ("inclusive", "strict")
OUT_OF_RANGE_POLICIES: tuple[str, ...] = ("reject", "clamp")


@dataclass
class Config:
    """Settings for estimating and ranking a photo corpus."""

    # Output (None = results are only logged)
    output_dir: Path | None = None
    results_filename: str = "results.json"

    # Ranking
    top_k: int = 20

    # Estimator policies
    boundary: Boundary = "inclusive"  # "strict" reproduces norm(p) < 1
    out_of_range: OutOfRangePolicy = "reject"

    # Parallelism (1 = sequential)
    num_workers: int = 1
    chunksize: int = 4

    def __post_init__(self) -> None:
        """Coerce string paths to Path."""
        if self.output_dir is not None and not isinstance(self.output_dir, Path):
            self.output_dir = Path(self.output_dir)

    @property
    def results_path(self) -> Path | None:
        """Location of the results JSON file.

        Returns:
            output_dir / results_filename, or None when no output_dir is set.
        """
        if self.output_dir is None:
            return None
        return self.output_dir / self.results_filename

    def validate(self) -> None:
        """Validate configuration parameters.

        Raises:
            ValueError: If any parameter is invalid.
        """
        if self.top_k < 0:
            msg = f"top_k must be >= 0, got {self.top_k}"
            raise ValueError(msg)
        if self.boundary not in BOUNDARIES:
            msg = f"boundary must be one of {BOUNDARIES}, got {self.boundary!r}"
            raise ValueError(msg)
        if self.out_of_range not in OUT_OF_RANGE_POLICIES:
            msg = f"out_of_range must be one of {OUT_OF_RANGE_POLICIES}, got {self.out_of_range!r}"
            raise ValueError(msg)
        if self.num_workers < 1:
            msg = f"num_workers must be >= 1, got {self.num_workers}"
            raise ValueError(msg)
        if self.chunksize < 1:
            msg = f"chunksize must be >= 1, got {self.chunksize}"
            raise ValueError(msg)
