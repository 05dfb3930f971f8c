#!/usr/bin/env python3
"""Image sources yielding (identifier, image) pairs for the pipeline."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any, Protocol

import cv2
import numpy as np
import numpy.typing as npt

from .estimator import random_image

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".bmp", ".tiff", ".tif", ".webp"})


class ImageSource(Protocol):
    """Protocol for anything that supplies named images."""

    def __iter__(self) -> Iterator[tuple[str, npt.NDArray[Any]]]:
        """Yield (identifier, image) pairs in a fixed order.

        Images are RGB arrays of shape (H, W, 3).
        """
        ...

    def __len__(self) -> int:
        """Number of images the source will attempt to yield.

        An upper bound: sources may skip items they cannot decode.
        """
        ...


def load_rgb(path: Path) -> npt.NDArray[np.uint8] | None:
    """Decode an image file as an RGB uint8 array.

    Args:
        path: Path to image file

    Returns:
        Array of shape (H, W, 3), or None if decoding failed
    """
    img = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if img is None:
        return None
    return cv2.cvtColor(img, cv2.COLOR_BGR2RGB)


class DirectoryImageSource:
    """All image files in a folder, in sorted file-name order."""

    def __init__(
        self,
        folder: str | Path,
        extensions: frozenset[str] = IMAGE_EXTENSIONS,
        limit: int | None = None,
    ):
        """Initialize the source.

        Args:
            folder: Folder containing the photos.
            extensions: Lower-case file suffixes to include.
            limit: Use only the first N files (None = all).

        Raises:
            ValueError: If the folder does not exist or limit is negative.
        """
        if limit is not None and limit < 0:
            msg = f"limit must be >= 0, got {limit}"
            raise ValueError(msg)

        self.folder = Path(folder)
        if not self.folder.is_dir():
            msg = f"Image folder not found: {self.folder}"
            raise ValueError(msg)

        files = sorted(
            f for f in self.folder.iterdir()
            if f.is_file() and f.suffix.lower() in extensions
        )
        if limit is not None and len(files) > limit:
            logger.info(f"Using first {limit} images out of {len(files)}")
            files = files[:limit]
        self.files: list[Path] = files

    def __len__(self) -> int:
        """Number of candidate files; unreadable ones are skipped when iterating."""
        return len(self.files)

    def __iter__(self) -> Iterator[tuple[str, npt.NDArray[Any]]]:
        for path in self.files:
            img = load_rgb(path)
            if img is None:
                logger.warning(f"Skipping unreadable image: {path.name}")
                continue
            yield path.name, img


class RandomImageSource:
    """Reproducible corpus of uniform random images.

    The default size matches a typical 550-pixel-wide photo; a year of such
    images is a useful baseline for a real photo corpus.
    """

    def __init__(self, count: int = 365, height: int = 550, width: int = 800,
                 seed: int | None = None):
        if count < 0:
            msg = f"count must be >= 0, got {count}"
            raise ValueError(msg)
        self.count = count
        self.height = height
        self.width = width
        self.seed = seed

    def __len__(self) -> int:
        return self.count

    def __iter__(self) -> Iterator[tuple[str, npt.NDArray[Any]]]:
        rng = np.random.default_rng(self.seed)
        width = len(str(max(self.count - 1, 0)))
        for i in range(self.count):
            yield f"random_{i:0{width}d}", random_image(self.height, self.width, rng)
