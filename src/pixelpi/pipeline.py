"""Photo corpus to ranked pi estimates pipeline."""

import json
import logging
from collections.abc import Iterable
from functools import partial
from multiprocessing import Pool
from typing import Any

import numpy.typing as npt
from tqdm import tqdm

from .config import Boundary, Config, OutOfRangePolicy
from .corpus import ImageSource
from .estimator import estimate_record
from .exceptions import InvalidInputError
from .models import EstimateRecord, PipelineResult
from .ranker import rank_and_summarise, top_k

logger = logging.getLogger(__name__)


def _estimate_worker(
    item: tuple[str, npt.NDArray[Any]],
    boundary: Boundary,
    out_of_range: OutOfRangePolicy,
) -> EstimateRecord:
    """Worker function for parallel estimation.

    Args:
        item: Tuple of (identifier, image).
        boundary: Sphere membership boundary.
        out_of_range: Policy for components outside [0, 1].

    Returns:
        EstimateRecord for the image.
    """
    identifier, image = item
    return estimate_record(identifier, image, boundary, out_of_range)


class PiPhotoRanker:
    """Estimate pi for every image of a corpus and rank the results."""

    def __init__(self, config: Config | None = None):
        """
        Initialize the ranker.

        Args:
            config: Pipeline settings (default: Config()).

        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = config if config is not None else Config()
        self.config.validate()

        if self.config.output_dir is not None:
            self.config.output_dir.mkdir(parents=True, exist_ok=True)

    def _gather(self, records: Iterable[EstimateRecord], total: int) -> dict[str, EstimateRecord]:
        gathered: dict[str, EstimateRecord] = {}
        # total is an upper bound; sources may skip unreadable images
        with tqdm(total=total, desc="Estimating pi") as pbar:
            for record in records:
                if record.identifier in gathered:
                    msg = f"Duplicate image identifier {record.identifier!r}"
                    raise InvalidInputError(msg)
                gathered[record.identifier] = record
                pbar.update(1)
            pbar.total = pbar.n
            pbar.refresh()
        return gathered

    def estimate_corpus(self, source: ImageSource) -> dict[str, EstimateRecord]:
        """Estimate pi for every image the source yields.

        Records come back in source order whether or not a worker pool is used.

        Args:
            source: Supplier of (identifier, image) pairs.

        Returns:
            Dictionary mapping identifiers to EstimateRecords.

        Raises:
            InvalidInputError: If the source repeats an identifier or an
                image violates the estimator contract.
        """
        worker_func = partial(
            _estimate_worker,
            boundary=self.config.boundary,
            out_of_range=self.config.out_of_range,
        )

        if self.config.num_workers == 1:
            records = self._gather(map(worker_func, source), len(source))
        else:
            with Pool(processes=self.config.num_workers) as pool:
                records = self._gather(
                    pool.imap(worker_func, source, chunksize=self.config.chunksize),
                    len(source),
                )

        logger.info(f"Estimated pi for {len(records)} images")
        return records

    def run(self, source: ImageSource) -> PipelineResult:
        """Estimate, rank and summarise a corpus.

        Args:
            source: Supplier of (identifier, image) pairs.

        Returns:
            PipelineResult with the full ranking, the top_k best records and
            summary statistics.

        Raises:
            InvalidInputError: If the corpus is empty or any image is invalid.
        """
        logger.info(f"Boundary: {self.config.boundary}")
        logger.info(f"Out-of-range policy: {self.config.out_of_range}")
        logger.info(f"Parallel workers: {self.config.num_workers}")

        records = self.estimate_corpus(source)
        ranked, statistics = rank_and_summarise(records)
        result = PipelineResult(
            ranked=ranked,
            top=top_k(ranked, self.config.top_k),
            statistics=statistics,
        )

        stats = result.statistics
        logger.info(f"Mean estimate: {stats.mean:.6f} (std {stats.std:.6f}, n={stats.count})")
        for position, record in enumerate(result.top, start=1):
            logger.info(f"  {position:3d}. {record.identifier}: "
                        f"{record.estimate:.6f} (error {record.error:.6f})")

        if self.config.results_path is not None:
            self.save_results(result)

        return result

    def save_results(self, result: PipelineResult) -> None:
        """Save a pipeline result to disk as JSON.

        Args:
            result: Result of run().

        Raises:
            ValueError: If no output directory is configured.
        """
        path = self.config.results_path
        if path is None:
            msg = "No output_dir configured"
            raise ValueError(msg)

        with path.open("w") as f:
            json.dump(result.model_dump(), f, indent=2)
        logger.info(f"Results saved to {path}")
