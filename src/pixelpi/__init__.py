"""pixelpi - Approximate pi from the RGB values of photos and rank them."""

from .config import Config
from .corpus import DirectoryImageSource, ImageSource, RandomImageSource
from .estimator import estimate, estimate_record, random_image, to_samples
from .exceptions import InvalidInputError
from .models import EstimateRecord, PipelineResult, SummaryStatistics
from .pipeline import PiPhotoRanker
from .ranker import rank, rank_and_summarise, summary_statistics, top_k

__version__ = "0.1.0"

__all__ = [
    "Config",
    "DirectoryImageSource",
    "EstimateRecord",
    "ImageSource",
    "InvalidInputError",
    "PiPhotoRanker",
    "PipelineResult",
    "RandomImageSource",
    "SummaryStatistics",
    "estimate",
    "estimate_record",
    "random_image",
    "rank",
    "rank_and_summarise",
    "summary_statistics",
    "to_samples",
    "top_k",
]
