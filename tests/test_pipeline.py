"""
Integration tests for image sources, the pipeline and the CLI.
"""

import json
import math
import tempfile
from pathlib import Path

import cv2
import numpy as np
import pytest

from pixelpi import (
    Config,
    DirectoryImageSource,
    InvalidInputError,
    PiPhotoRanker,
    RandomImageSource,
)
from pixelpi import ranker as ranker_module
from pixelpi.cli import main
from pixelpi.corpus import load_rgb


def create_test_image(path: Path, color: tuple[int, int, int] = (0, 0, 0),
                      size: tuple[int, int] = (20, 20)) -> None:
    """Create a lossless solid-colour test image.

    Args:
        path: Path to save image (use .png so pixel values survive).
        color: BGR color tuple.
        size: (height, width).
    """
    img = np.zeros((*size, 3), dtype=np.uint8)
    img[:] = color
    cv2.imwrite(str(path), img)


def create_half_image(path: Path) -> None:
    """Create a PNG that is half black, half white (estimate exactly 3)."""
    img = np.zeros((20, 20, 3), dtype=np.uint8)
    img[:, 10:] = 255
    cv2.imwrite(str(path), img)


def create_corpus(folder: Path) -> None:
    """Create a small corpus with known estimates.

    half.png -> 3.0, black.png -> 6.0, white.png -> 0.0
    """
    folder.mkdir(parents=True, exist_ok=True)
    create_half_image(folder / "half.png")
    create_test_image(folder / "black.png", (0, 0, 0))
    create_test_image(folder / "white.png", (255, 255, 255))


class ListImageSource:
    """In-memory image source for tests."""

    def __init__(self, items):
        self.items = items

    def __iter__(self):
        return iter(self.items)

    def __len__(self):
        return len(self.items)


class TestDirectoryImageSource:
    """Test loading images from a folder."""

    def test_yields_sorted_file_names(self):
        """Test that images come back in sorted file-name order."""
        with tempfile.TemporaryDirectory() as tmpdir:
            folder = Path(tmpdir)
            create_corpus(folder)
            (folder / "notes.txt").write_text("not an image")

            source = DirectoryImageSource(folder)
            names = [name for name, _ in source]

            assert len(source) == 3
            assert names == ["black.png", "half.png", "white.png"]

    def test_converts_bgr_to_rgb(self):
        """Test that images are delivered in RGB channel order."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "red.png"
            create_test_image(path, (0, 0, 255))  # red in BGR

            img = load_rgb(path)

            assert img is not None
            assert img.shape == (20, 20, 3)
            assert img.dtype == np.uint8
            assert tuple(img[0, 0]) == (255, 0, 0)

    def test_skips_unreadable_files(self, caplog):
        """Test that corrupt image files are skipped with a warning."""
        with tempfile.TemporaryDirectory() as tmpdir:
            folder = Path(tmpdir)
            create_test_image(folder / "good.png")
            (folder / "broken.png").write_bytes(b"definitely not a png")

            names = [name for name, _ in DirectoryImageSource(folder)]

            assert names == ["good.png"]
            assert "broken.png" in caplog.text

    def test_limit(self):
        """Test that limit keeps only the first N files."""
        with tempfile.TemporaryDirectory() as tmpdir:
            folder = Path(tmpdir)
            create_corpus(folder)

            source = DirectoryImageSource(folder, limit=2)

            assert [name for name, _ in source] == ["black.png", "half.png"]

    def test_missing_folder_raises(self):
        """Test that a missing folder is reported immediately."""
        with tempfile.TemporaryDirectory() as tmpdir:
            with pytest.raises(ValueError):
                DirectoryImageSource(Path(tmpdir) / "missing")

    def test_negative_limit_raises(self):
        """Test that a negative limit is rejected instead of dropping files."""
        with tempfile.TemporaryDirectory() as tmpdir:
            folder = Path(tmpdir)
            create_corpus(folder)

            with pytest.raises(ValueError):
                DirectoryImageSource(folder, limit=-1)

    def test_len_is_upper_bound_when_files_are_unreadable(self):
        """Test that len counts candidates while estimation covers readable images."""
        with tempfile.TemporaryDirectory() as tmpdir:
            folder = Path(tmpdir)
            create_test_image(folder / "good.png")
            (folder / "broken.png").write_bytes(b"definitely not a png")

            source = DirectoryImageSource(folder)
            records = PiPhotoRanker().estimate_corpus(source)

            assert len(source) == 2
            assert list(records) == ["good.png"]


class TestRandomImageSource:
    """Test the synthetic baseline corpus."""

    def test_seeded_source_is_reproducible(self):
        """Test that the same seed yields identical images."""
        first = list(RandomImageSource(count=3, height=5, width=5, seed=7))
        second = list(RandomImageSource(count=3, height=5, width=5, seed=7))

        assert [name for name, _ in first] == [name for name, _ in second]
        for (_, a), (_, b) in zip(first, second):
            np.testing.assert_array_equal(a, b)

    def test_identifiers_sort_in_generation_order(self):
        """Test that zero-padded identifiers sort numerically."""
        names = [name for name, _ in RandomImageSource(count=12, height=2, width=2, seed=0)]

        assert names == sorted(names)
        assert names[0] == "random_00"
        assert names[-1] == "random_11"

    def test_negative_count_raises(self):
        """Test that a negative count is rejected."""
        with pytest.raises(ValueError):
            RandomImageSource(count=-1)


class TestConfig:
    """Test configuration validation."""

    def test_defaults_are_valid(self):
        """Test that the default configuration validates."""
        cfg = Config()
        cfg.validate()

        assert cfg.top_k == 20
        assert cfg.boundary == "inclusive"
        assert cfg.out_of_range == "reject"
        assert cfg.results_path is None

    @pytest.mark.parametrize("kwargs", [
        {"top_k": -1},
        {"num_workers": 0},
        {"chunksize": 0},
        {"boundary": "open"},
        {"out_of_range": "ignore"},
    ])
    def test_invalid_values_raise(self, kwargs):
        """Test that invalid settings are rejected."""
        with pytest.raises(ValueError):
            Config(**kwargs).validate()

    def test_results_path(self):
        """Test that string output directories are coerced to Path."""
        cfg = Config(output_dir="out")  # type: ignore[arg-type]

        assert cfg.results_path == Path("out") / "results.json"


class TestPiPhotoRanker:
    """Test the full estimate, rank and summarise pipeline."""

    def test_run_ranks_directory_corpus(self):
        """Test ranking of a corpus with known estimates."""
        with tempfile.TemporaryDirectory() as tmpdir:
            folder = Path(tmpdir) / "images"
            create_corpus(folder)

            ranker = PiPhotoRanker(Config(top_k=2))
            result = ranker.run(DirectoryImageSource(folder))

            assert [r.identifier for r in result.ranked] == ["half.png", "black.png", "white.png"]
            assert [r.identifier for r in result.top] == ["half.png", "black.png"]
            assert result.ranked[0].estimate == 3.0
            assert result.ranked[0].error == pytest.approx(math.pi - 3.0)
            assert result.statistics.count == 3
            assert result.statistics.mean == pytest.approx(3.0)
            assert result.statistics.std == pytest.approx(3.0)

    def test_run_writes_results_json(self):
        """Test that results are saved when an output directory is set."""
        with tempfile.TemporaryDirectory() as tmpdir:
            folder = Path(tmpdir) / "images"
            output = Path(tmpdir) / "output"
            create_corpus(folder)

            PiPhotoRanker(Config(output_dir=output, top_k=1)).run(DirectoryImageSource(folder))

            results_path = output / "results.json"
            assert results_path.exists()
            with results_path.open() as f:
                data = json.load(f)
            assert [r["identifier"] for r in data["ranked"]] == ["half.png", "black.png", "white.png"]
            assert [r["identifier"] for r in data["top"]] == ["half.png"]
            assert data["statistics"]["count"] == 3

    def test_save_results_without_output_dir_raises(self):
        """Test that saving needs a configured output directory."""
        ranker = PiPhotoRanker()
        result = ranker.run(ListImageSource([("a", np.zeros((2, 2, 3)))]))

        with pytest.raises(ValueError):
            ranker.save_results(result)

    def test_parallel_matches_sequential(self):
        """Test that a worker pool produces identical records in the same order."""
        source = RandomImageSource(count=6, height=20, width=20, seed=1)

        sequential = PiPhotoRanker(Config(num_workers=1)).estimate_corpus(source)
        parallel = PiPhotoRanker(Config(num_workers=2, chunksize=1)).estimate_corpus(source)

        assert list(parallel) == list(sequential)
        assert parallel == sequential

    def test_duplicate_identifiers_from_source_raise(self):
        """Test that a source repeating an identifier is rejected."""
        source = ListImageSource([
            ("same", np.zeros((2, 2, 3))),
            ("same", np.ones((2, 2, 3))),
        ])

        with pytest.raises(InvalidInputError):
            PiPhotoRanker().estimate_corpus(source)

    def test_empty_corpus_raises(self):
        """Test that a corpus with no images cannot be summarised."""
        with pytest.raises(InvalidInputError):
            PiPhotoRanker().run(ListImageSource([]))

    def test_invalid_image_propagates(self):
        """Test that an out-of-range image fails the run under reject."""
        source = ListImageSource([("bad", np.full((2, 2, 3), 2.0))])

        with pytest.raises(InvalidInputError):
            PiPhotoRanker().run(source)

    def test_clamp_policy_applies_to_corpus(self):
        """Test that the configured range policy reaches the estimator."""
        source = ListImageSource([("bright", np.full((2, 2, 3), 2.0))])

        result = PiPhotoRanker(Config(out_of_range="clamp")).run(source)

        assert result.ranked[0].estimate == 0.0

    def test_strict_boundary_applies_to_corpus(self):
        """Test that the configured boundary reaches the estimator."""
        with tempfile.TemporaryDirectory() as tmpdir:
            folder = Path(tmpdir)
            create_test_image(folder / "red.png", (0, 0, 255))

            inclusive = PiPhotoRanker().run(DirectoryImageSource(folder))
            strict = PiPhotoRanker(Config(boundary="strict")).run(DirectoryImageSource(folder))

            assert inclusive.ranked[0].estimate == 6.0
            assert strict.ranked[0].estimate == 0.0

    def test_invalid_config_raises(self):
        """Test that the pipeline validates its configuration."""
        with pytest.raises(ValueError):
            PiPhotoRanker(Config(num_workers=0))

    def test_run_validates_records_once(self, monkeypatch):
        """Test that ranking and statistics share one collection pass."""
        calls = []
        original = ranker_module._collect

        def counting_collect(recs):
            calls.append(recs)
            return original(recs)

        monkeypatch.setattr(ranker_module, "_collect", counting_collect)
        source = ListImageSource([("a", np.zeros((2, 2, 3))), ("b", np.ones((2, 2, 3)))])

        result = PiPhotoRanker().run(source)

        assert len(calls) == 1
        assert result.statistics.count == 2


class TestCLI:
    """Test the pixelpi command."""

    def test_directory_run(self, capsys):
        """Test ranking a folder and writing results."""
        with tempfile.TemporaryDirectory() as tmpdir:
            folder = Path(tmpdir) / "images"
            output = Path(tmpdir) / "output"
            create_corpus(folder)

            main([str(folder), "-o", str(output), "--top-k", "2"])

            assert (output / "results.json").exists()
            out = capsys.readouterr().out
            assert "half.png" in out
            assert "black.png" in out
            assert "white.png" not in out

    def test_random_run(self, capsys):
        """Test the synthetic baseline mode."""
        main(["--random", "2", "--seed", "0", "--top-k", "1"])

        out = capsys.readouterr().out
        assert "random_" in out

    def test_missing_folder_exits(self):
        """Test that a missing image folder exits with status 1."""
        with tempfile.TemporaryDirectory() as tmpdir:
            with pytest.raises(SystemExit) as excinfo:
                main([str(Path(tmpdir) / "missing")])

            assert excinfo.value.code == 1

    def test_no_source_is_usage_error(self):
        """Test that omitting both folder and --random is a usage error."""
        with pytest.raises(SystemExit) as excinfo:
            main([])

        assert excinfo.value.code == 2

    def test_folder_and_random_is_usage_error(self):
        """Test that a folder and --random together are rejected."""
        with tempfile.TemporaryDirectory() as tmpdir:
            with pytest.raises(SystemExit) as excinfo:
                main([tmpdir, "--random", "2"])

            assert excinfo.value.code == 2
